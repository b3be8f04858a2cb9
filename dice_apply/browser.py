"""
Low-level Playwright helpers shared by the search driver and the job processor.

Nothing here raises for the common failure modes of an unreliable job board
(timeouts, missing elements, closed tabs); callers get ``False`` / a default
value and decide what that means.
"""
from __future__ import annotations

from typing import Sequence

from playwright.async_api import Page

from dice_apply.log import get_logger

log = get_logger(__name__)

NAV_TIMEOUT_MS = 45_000
SETTLE_MS = 2_000
RETRY_DELAY_MS = 3_000


async def navigate(
    page: Page,
    url: str,
    max_retries: int = 2,
    *,
    timeout_ms: int = NAV_TIMEOUT_MS,
    settle_ms: int = SETTLE_MS,
    retry_delay_ms: int = RETRY_DELAY_MS,
) -> bool:
    """Load *url* with up to ``max_retries`` extra attempts.

    An attempt counts as loaded once the network is idle, the settle delay has
    passed and the document has a non-empty title.
    """
    for attempt in range(max_retries + 1):
        if page.is_closed():
            log.error("Page is closed, cannot navigate to %s", url)
            return False
        try:
            log.debug("Loading %s (attempt %d)", url, attempt + 1)
            await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            await page.wait_for_timeout(settle_ms)
            title = await page.title()
            if title:
                log.info("Loaded %s", url)
                return True
            log.warning("Attempt %d for %s returned an untitled page", attempt + 1, url)
        except Exception as exc:
            log.error("Attempt %d failed for %s: %s", attempt + 1, url, str(exc).split("\n")[0])
        if attempt < max_retries and not page.is_closed():
            await page.wait_for_timeout(retry_delay_ms)
    return False


async def _element_text(element) -> str:
    text = await element.text_content()
    if not text or not text.strip():
        text = await element.inner_text()
    return (text or "").strip()


async def extract_text(
    page: Page,
    selectors: Sequence[str],
    *,
    min_length: int = 3,
    default: str = "unknown",
) -> str:
    """Text of the first element, in selector priority order, longer than *min_length*."""
    for selector in selectors:
        try:
            elements = await page.query_selector_all(selector)
            for element in elements:
                text = await _element_text(element)
                if len(text) > min_length:
                    log.debug("Text found with selector %s", selector)
                    return text
        except Exception:
            continue
    return default


async def is_visible(page: Page, selector: str, *, timeout: int = 2000) -> bool:
    """Safe visibility check that never throws."""
    try:
        return await page.locator(selector).first.is_visible(timeout=timeout)
    except Exception:
        return False


async def first_visible(page: Page, selectors: Sequence[str], *, timeout: int = 2000) -> str | None:
    """Return the first selector with a visible match, or None."""
    for selector in selectors:
        if await is_visible(page, selector, timeout=timeout):
            return selector
    return None


async def click_first_visible(
    page: Page,
    selectors: Sequence[str],
    *,
    timeout: int = 2000,
    settle_ms: int = 0,
) -> str | None:
    """Click the first visible element matching any selector; return that selector."""
    for selector in selectors:
        try:
            loc = page.locator(selector).first
            if await loc.is_visible(timeout=timeout):
                await loc.click()
                if settle_ms:
                    await page.wait_for_timeout(settle_ms)
                return selector
        except Exception:
            continue
    return None


async def safe_click(page: Page, selector: str, description: str = "element", *, timeout: int = 10_000) -> bool:
    try:
        await page.wait_for_selector(selector, timeout=timeout)
        await page.click(selector, timeout=timeout)
        log.debug("Clicked %s", description)
        return True
    except Exception as exc:
        log.error("Failed to click %s: %s", description, str(exc).split("\n")[0])
        return False

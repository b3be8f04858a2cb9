"""Dice login and the search-term / pagination driver."""
from __future__ import annotations

from typing import Sequence
from urllib.parse import quote

from playwright.async_api import BrowserContext, Locator, Page

from dice_apply.browser import navigate, safe_click
from dice_apply.config import LOGIN_URL, Settings
from dice_apply.log import get_logger
from dice_apply.models import RunStatistics
from dice_apply.processor import CONTEXT_CLOSED, ProcessFn, run_batch

log = get_logger(__name__)

SEARCH_URL = "https://www.dice.com/jobs"
CARD_SELECTOR = "[data-testid='job-search-serp-card']"
CARD_WAIT_MS = 15_000
LOGGED_IN_MARKER = "/dashboard/overview"


class LoginError(RuntimeError):
    """Dice login could not be completed; the run cannot continue."""


def build_search_url(term: str, page_num: int = 1) -> str:
    url = f"{SEARCH_URL}?filters.easyApply=true&filters.postedDate=ONE&q={quote(term, safe='')}"
    if page_num > 1:
        url += f"&page={page_num}"
    return url


async def login(page: Page, settings: Settings) -> None:
    if LOGGED_IN_MARKER in page.url:
        log.info("Already logged in")
        return
    if not settings.has_credentials:
        raise LoginError("DICE_USERNAME / DICE_PASSWORD not set")
    if not await navigate(page, LOGIN_URL):
        raise LoginError("Failed to load login page")

    log.info("Logging in as %s", settings.username)
    try:
        await page.wait_for_selector('input[name="email"]', timeout=15_000)
        await page.fill('input[name="email"]', settings.username)
        await safe_click(page, 'button[type="submit"]', "email submit button")
        await page.wait_for_selector('input[name="password"]', timeout=15_000)
        await page.fill('input[name="password"]', settings.password)
        async with page.expect_navigation(wait_until="networkidle", timeout=30_000):
            await safe_click(page, 'button[type="submit"]', "password submit button")
        await page.wait_for_timeout(3000)
    except Exception as exc:
        raise LoginError(f"Login failed: {str(exc).splitlines()[0]}") from exc
    log.info("Login successful")


async def _card_href(card: Locator) -> str | None:
    try:
        return await card.locator("a").first.get_attribute("href", timeout=2000)
    except Exception:
        return None


async def collect_cards(page: Page) -> list[Locator] | None:
    """Card locators on the current results page; None when no card marker shows up."""
    try:
        await page.wait_for_selector(CARD_SELECTOR, timeout=CARD_WAIT_MS)
    except Exception:
        return None
    return await page.locator(CARD_SELECTOR).all()


async def search_terms(
    page: Page,
    context: BrowserContext,
    terms: Sequence[str],
    process: ProcessFn,
    settings: Settings,
    stats: RunStatistics | None = None,
    seen: set[str] | None = None,
) -> RunStatistics:
    """Search each term page by page, apply to every card, and tally the outcomes.

    *seen* carries the detail links already dispatched so a job listed under
    several terms is handled once per run.
    """
    stats = stats if stats is not None else RunStatistics()
    seen = seen if seen is not None else set()

    for term in terms:
        log.info('Processing search term "%s"', term)
        for page_num in range(1, settings.max_pages + 1):
            if page.is_closed():
                log.error("Main page closed unexpectedly, skipping term")
                break

            log.info('Page %d for "%s"', page_num, term)
            if not await navigate(page, build_search_url(term, page_num)):
                log.warning("Page %d failed to load, moving to the next term", page_num)
                break

            cards = await collect_cards(page)
            if cards is None:
                log.info('No more job cards for "%s" on page %d', term, page_num)
                break
            log.info("Found %d job cards", len(cards))
            if not cards:
                break

            hrefs: list[str | None] = [None] * len(cards)
            if settings.skip_seen_jobs:
                fresh: list[Locator] = []
                fresh_hrefs: list[str | None] = []
                for card in cards:
                    href = await _card_href(card)
                    if href and (href in seen or href in fresh_hrefs):
                        continue
                    fresh.append(card)
                    fresh_hrefs.append(href)
                if len(fresh) < len(cards):
                    log.info("Skipping %d job(s) already seen this run", len(cards) - len(fresh))
                cards, hrefs = fresh, fresh_hrefs
                if not cards:
                    continue

            outcomes = await run_batch(
                context,
                cards,
                process,
                concurrency=settings.max_concurrent_tabs,
                tab_delay=settings.tab_delay,
                batch_delay=settings.page_delay,
            )
            stats.record_all(outcomes)
            # cards cut off by a closed session stay eligible for the next context
            for href, outcome in zip(hrefs, outcomes):
                if href and outcome.reason != CONTEXT_CLOSED:
                    seen.add(href)
            if page.is_closed() or len(context.pages) == 0:
                log.error("Browsing session closed, stopping search")
                return stats
    return stats

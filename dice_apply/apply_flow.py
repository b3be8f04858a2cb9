"""
Easy-apply submission on a Dice job detail page.

A linear best-effort sequence: already-applied check → Apply → Next → Submit →
confirmation. Next and Submit are optional because single-step easy-apply
forms skip them.
"""
from __future__ import annotations

from playwright.async_api import Page

from dice_apply.browser import click_first_visible, first_visible
from dice_apply.log import get_logger
from dice_apply.models import ApplyResult

log = get_logger(__name__)

ALREADY_APPLIED_SELECTORS: tuple[str, ...] = (
    "text=You have already applied",
    "text=Application submitted",
    "text=Already applied",
    ".already-applied",
    "[data-testid='already-applied']",
    "text=Application received",
    "text=Applied",
)

APPLY_SELECTORS: tuple[str, ...] = (
    "#applyButton",
    "apply-button-wc",
    "button:has-text('Easy apply')",
    "button:has-text('Apply now')",
    "button:has-text('Apply')",
    "[data-testid='apply-button']",
    ".apply-button",
    "button[data-testid='easy-apply']",
    "input[value*='Apply']",
)

NEXT_SELECTORS: tuple[str, ...] = (
    "button:has-text('Next')",
    "button:has-text('Continue')",
    "[data-testid='next-button']",
    ".next-button",
    "input[value*='Next']",
)

SUBMIT_SELECTORS: tuple[str, ...] = (
    "button:has-text('Submit')",
    "button:has-text('Submit Application')",
    "input[type='submit']",
    "[data-testid='submit-button']",
    ".submit-button",
    "button:has-text('Send Application')",
    "button:has-text('Apply Now')",
    "input[value*='Submit']",
)

CONFIRMATION_SELECTORS: tuple[str, ...] = (
    ".post-apply-banner",
    "[data-testid='application-confirmation']",
    ".application-success",
    ".confirmation-message",
    "text=Application submitted",
    "text=Successfully applied",
    "text=Application received",
    "text=Thank you for applying",
    "text=Your application has been submitted",
    "text=Application sent",
)

CONFIRMATION_URL_MARKERS: tuple[str, ...] = ("success", "applied", "confirmation", "thank-you")

_PROBE_TIMEOUT_MS = 1_000
_CONTROL_TIMEOUT_MS = 2_000
_CONFIRM_TIMEOUT_MS = 5_000


async def _find_confirmation(page: Page) -> str | None:
    for selector in CONFIRMATION_SELECTORS:
        try:
            await page.wait_for_selector(selector, timeout=_CONFIRM_TIMEOUT_MS)
            return selector
        except Exception:
            continue
    url = page.url.lower()
    for marker in CONFIRMATION_URL_MARKERS:
        if marker in url:
            return f"url:{marker}"
    return None


async def apply_to_job(page: Page) -> ApplyResult:
    try:
        if page.is_closed():
            return ApplyResult(success=False, reason="Page is closed")
        log.debug("Attempting to apply: %s", page.url)
        await page.wait_for_timeout(2000)

        found = await first_visible(page, ALREADY_APPLIED_SELECTORS, timeout=_PROBE_TIMEOUT_MS)
        if found:
            log.info("Already applied (found %s)", found)
            return ApplyResult(success=True, already_applied=True, reason="Already applied")

        clicked = await click_first_visible(
            page, APPLY_SELECTORS, timeout=_CONTROL_TIMEOUT_MS, settle_ms=3000,
        )
        if not clicked:
            return ApplyResult(success=False, reason="No apply control found")
        log.debug("Clicked apply control %s", clicked)

        nxt = await click_first_visible(page, NEXT_SELECTORS, timeout=_CONTROL_TIMEOUT_MS, settle_ms=3000)
        if nxt:
            log.debug("Clicked next control %s", nxt)

        sub = await click_first_visible(page, SUBMIT_SELECTORS, timeout=_CONTROL_TIMEOUT_MS, settle_ms=4000)
        if sub:
            log.debug("Clicked submit control %s", sub)

        confirmation = await _find_confirmation(page)
        if confirmation:
            log.info("Application confirmed (%s)", confirmation)
            return ApplyResult(success=True, reason="Applied")

        # Optimistic: nothing failed outright but nothing confirmed either
        log.warning("Application finished but could not be verified: %s", page.url)
        return ApplyResult(success=True, reason="Applied (unverified)", confirmed=False)
    except Exception as exc:
        err = str(exc).split("\n")[0]
        log.error("Error during job application: %s", err)
        return ApplyResult(success=False, reason=err)

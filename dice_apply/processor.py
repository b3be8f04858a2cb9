"""
Per-card job processing and the staggered batch runner.

Each card task opens exactly one detail tab, owns it for its whole lifetime
and closes it on every exit path. Cards run ``concurrency`` at a time;
groups never overlap.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence

from playwright.async_api import BrowserContext, Locator, Page

from dice_apply.apply_flow import apply_to_job
from dice_apply.details import extract_company_name, extract_job_description, extract_job_title
from dice_apply.log import get_logger
from dice_apply.models import (
    ALREADY_APPLIED,
    APPLIED,
    FAILED,
    MATCH,
    PARTIAL_MATCH,
    SKIPPED,
    UNKNOWN_COMPANY,
    UNKNOWN_TITLE,
    JobOutcome,
    MatchResult,
)
from dice_apply.scorer import RelevanceScorer, matching_terms
from dice_apply.tracker import OutcomeLog

log = get_logger(__name__)

TAB_OPEN_TIMEOUT_MS = 15_000
TAB_LOAD_TIMEOUT_MS = 15_000
TAB_SETTLE_MS = 2_000

CONTEXT_CLOSED = "Context closed"

ProcessFn = Callable[[BrowserContext, Locator, int], Awaitable[JobOutcome]]


def context_closed(context: BrowserContext) -> bool:
    return len(context.pages) == 0


class JobProcessor:
    """Drive one job card from click to recorded outcome."""

    def __init__(
        self,
        outcome_log: OutcomeLog,
        scorer: RelevanceScorer,
        cv_keywords: Sequence[str],
        search_terms: Sequence[str],
    ) -> None:
        self.outcome_log = outcome_log
        self.scorer = scorer
        self.cv_keywords = list(cv_keywords)
        self.search_terms = list(search_terms)

    def _finish(
        self,
        title: str,
        company: str,
        url: str | None,
        decision: str,
        reason: str,
        status: str,
        match: MatchResult | None = None,
    ) -> JobOutcome:
        self.outcome_log.append(title, company, status, match, url)
        return JobOutcome(
            title=title,
            company=company,
            source_url=url,
            decision=decision,
            reason=reason,
            relevance=match.verdict if match else None,
        )

    async def _open_tab(self, context: BrowserContext, link: Locator) -> Page | None:
        try:
            async with context.expect_page(timeout=TAB_OPEN_TIMEOUT_MS) as page_info:
                await link.click()
            return await page_info.value
        except Exception as exc:
            log.warning("No tab opened: %s", str(exc).split("\n")[0])
            return None

    async def process(self, context: BrowserContext, card: Locator, index: int) -> JobOutcome:
        tab: Page | None = None
        title, company = UNKNOWN_TITLE, UNKNOWN_COMPANY
        url: str | None = None
        match: MatchResult | None = None

        try:
            if context_closed(context):
                return self._finish(title, company, url, SKIPPED, CONTEXT_CLOSED, f"Skipped - {CONTEXT_CLOSED}")

            link = card.locator("a").first
            if await link.count() == 0:
                return self._finish(title, company, url, FAILED, "No clickable link", "Failed - No clickable link")

            log.info("Opening job card %d", index + 1)
            tab = await self._open_tab(context, link)
            if tab is None or tab.is_closed():
                return self._finish(title, company, url, FAILED, "No tab opened", "Failed - No tab opened")

            await tab.wait_for_load_state("domcontentloaded", timeout=TAB_LOAD_TIMEOUT_MS)
            await tab.wait_for_timeout(TAB_SETTLE_MS)
            url = tab.url

            title = await extract_job_title(tab)
            company = await extract_company_name(tab)
            log.info('Job %d: "%s" @ %s', index + 1, title, company)

            terms = matching_terms(title, self.search_terms)
            if terms:
                log.debug('"%s" matches search terms %s', title, terms)
            else:
                description = await extract_job_description(tab)
                if not description:
                    return self._finish(
                        title, company, url, SKIPPED, "Insufficient signal",
                        "Skipped - No description & no title match",
                    )
                match = await self.scorer.score(self.cv_keywords, description)
                log.info('LLM verdict for "%s": %s', title, match.verdict)
                if match.verdict not in (MATCH, PARTIAL_MATCH):
                    return self._finish(
                        title, company, url, SKIPPED, f"LLM {match.verdict}",
                        f"Skipped (LLM {match.verdict.upper()})", match,
                    )

            result = await apply_to_job(tab)
            if not result.success:
                return self._finish(
                    title, company, url, FAILED, result.reason, f"Failed - {result.reason}", match,
                )
            if result.already_applied:
                return self._finish(title, company, url, ALREADY_APPLIED, result.reason, "Already Applied", match)
            status = "Success - Applied" if result.confirmed else "Success - Applied (unverified)"
            return self._finish(title, company, url, APPLIED, result.reason, status, match)
        except Exception as exc:
            err = str(exc).split("\n")[0]
            log.error("Error processing job card %d: %s", index + 1, err)
            return self._finish(title, company, url, FAILED, err, f"Failed - {err}", match)
        finally:
            if tab is not None and not tab.is_closed():
                try:
                    await tab.close()
                except Exception as exc:
                    log.error("Failed to close tab: %s", exc)


async def run_batch(
    context: BrowserContext,
    cards: Sequence[Locator],
    process: ProcessFn,
    *,
    concurrency: int = 2,
    tab_delay: float = 3.0,
    batch_delay: float = 4.0,
) -> list[JobOutcome]:
    """Process *cards* in groups of *concurrency*; one outcome per dispatched card, in order.

    Card ``i`` of a group starts ``i * tab_delay`` seconds after the group so
    tabs never open in the same instant. Stops early once the context has no
    open pages left.
    """
    if concurrency < 1:
        raise ValueError("concurrency must be >= 1")

    results: list[JobOutcome] = []
    for start in range(0, len(cards), concurrency):
        if context_closed(context):
            log.warning("Context closed, stopping job batch processing")
            break
        group = cards[start:start + concurrency]
        log.info("Processing batch %d (%d jobs)", start // concurrency + 1, len(group))

        async def _staggered(card: Locator, offset: int) -> JobOutcome:
            await asyncio.sleep(offset * tab_delay)
            if context_closed(context):
                return JobOutcome(
                    title=UNKNOWN_TITLE, company=UNKNOWN_COMPANY, source_url=None,
                    decision=SKIPPED, reason=CONTEXT_CLOSED,
                )
            return await process(context, card, start + offset)

        settled = await asyncio.gather(
            *(_staggered(card, offset) for offset, card in enumerate(group)),
            return_exceptions=True,
        )
        for offset, item in enumerate(settled):
            if isinstance(item, BaseException):
                log.error("Batch job %d failed: %s", start + offset + 1, item)
                results.append(JobOutcome.placeholder(str(item) or type(item).__name__))
            else:
                results.append(item)

        if start + concurrency < len(cards):
            if context_closed(context):
                break
            log.info("Pausing %.1fs before next batch", batch_delay)
            await asyncio.sleep(batch_delay)
    return results

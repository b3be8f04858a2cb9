"""
Dice easy-apply run.

Runs: CV keywords → (per term group) login → search → apply → track → report.
"""
from __future__ import annotations

import asyncio
from typing import Any

from playwright.async_api import Browser, async_playwright

from dice_apply.config import Settings, load_settings
from dice_apply.log import get_logger
from dice_apply.models import RunStatistics
from dice_apply.processor import JobProcessor
from dice_apply.report import build_run_report, log_summary, write_run_report
from dice_apply.resume_parser import extract_keywords, read_text
from dice_apply.scorer import RelevanceScorer, make_groq_client
from dice_apply.search import login, search_terms
from dice_apply.tracker import OutcomeLog

log = get_logger(__name__)

VIEWPORT = {"width": 1280, "height": 800}
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def term_groups(terms: list[str], size: int) -> list[list[str]]:
    return [terms[i:i + size] for i in range(0, len(terms), size)]


async def _run_group(
    browser: Browser,
    group: list[str],
    processor: JobProcessor,
    settings: Settings,
    stats: RunStatistics,
    seen: set[str],
) -> None:
    context = await browser.new_context(viewport=VIEWPORT, user_agent=USER_AGENT)
    try:
        page = await context.new_page()
        await login(page, settings)
        await search_terms(page, context, group, processor.process, settings, stats, seen)
    finally:
        await context.close()


async def run(settings: Settings | None = None, outcome_log: OutcomeLog | None = None) -> dict[str, Any]:
    settings = settings or load_settings()
    outcome_log = outcome_log or OutcomeLog()
    outcome_log.init()

    client = make_groq_client(settings.groq_api_key)
    if client is None:
        log.warning("GROQ_API_KEY not set — LLM relevance scoring disabled")
    cv_keywords: list[str] = []
    if client is not None:
        cv_keywords = await extract_keywords(read_text(settings.cv_path), client, settings.groq_model)
        if not cv_keywords:
            log.warning("No CV keywords — falling back to title keyword matching only")
    scorer = RelevanceScorer(client if cv_keywords else None, settings.groq_model)

    processor = JobProcessor(outcome_log, scorer, cv_keywords, settings.search_terms)
    stats = RunStatistics()
    seen: set[str] = set()
    groups = term_groups(settings.search_terms, settings.term_batch_size)

    errors: list[str] = []
    try:
        async with async_playwright() as p:
            browser = await p.chromium.launch(headless=settings.headless, slow_mo=100)
            try:
                for n, group in enumerate(groups, 1):
                    log.info("Batch %d/%d: %s", n, len(groups), ", ".join(group))
                    try:
                        await _run_group(browser, group, processor, settings, stats, seen)
                    except Exception as exc:
                        log.error("Batch %d (%s) failed: %s", n, ", ".join(group), exc)
                        errors.append(f"Batch {n} ({', '.join(group)}): {exc}")
            finally:
                await browser.close()
    except Exception as exc:
        log.error("Browser session failed: %s", exc)
        errors.append(f"Browser session: {exc}")
    finally:
        outcome_log.save()

    if errors:
        log.warning("Batches completed with %d error(s)", len(errors))
    else:
        log.info("All batches completed")
    summary = outcome_log.summary()
    report = build_run_report(
        stats, summary, settings.search_terms, llm_enabled=scorer.enabled, errors=errors,
    )
    report_path = write_run_report(report)
    log_summary(stats, summary)

    return {
        "stats": stats.as_dict(),
        "log_path": summary["filepath"],
        "report_path": str(report_path),
        "errors": errors,
    }


def main() -> int:
    """Console entry point; 1 when a batch or the browser session broke."""
    settings = load_settings()
    if not settings.has_credentials:
        log.error("DICE_USERNAME and DICE_PASSWORD must be set (see .env.example)")
        return 1
    try:
        result = asyncio.run(run(settings))
    except Exception as exc:
        log.exception("Run failed: %s", exc)
        return 1
    for err in result["errors"]:
        log.error("%s", err)
    return 1 if result["errors"] else 0


if __name__ == "__main__":
    raise SystemExit(main())

"""Build the end-of-run summary (Markdown file + log lines)."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Sequence

from dice_apply.config import REPORTS_DIR
from dice_apply.log import get_logger
from dice_apply.models import RunStatistics

log = get_logger(__name__)

_RULE = "=" * 70


def build_run_report(
    stats: RunStatistics,
    log_summary: dict,
    terms: Sequence[str],
    *,
    llm_enabled: bool = True,
    errors: Sequence[str] = (),
) -> str:
    stamp = datetime.now().strftime("%Y-%m-%d %H:%M")
    lines: list[str] = [f"# Dice Apply Run — {stamp}", ""]

    lines.append(
        f"**{stats.total}** jobs processed | **{stats.applied}** applied | "
        f"**{stats.already_applied}** already applied | **{stats.failed}** failed | "
        f"**{stats.skipped}** skipped"
    )
    lines.append("")
    lines.append(f"- **Search terms:** {', '.join(terms)}")
    lines.append(f"- **Outcome log:** `{log_summary.get('filepath', '')}` ({log_summary.get('record_count', 0)} rows)")
    if stats.total:
        lines.append(f"- **Success rate:** {stats.success_rate:.1%}")
    confidence = stats.llm_confidence
    if confidence is not None:
        lines.append(
            f"- **LLM match confidence:** {confidence:.1%} "
            f"({stats.match} match, {stats.partial_match} partial, {stats.no_match} no match)"
        )
    lines.append("")

    lines.append("## Outcomes")
    lines.append("")
    lines.append("| Outcome | Count |")
    lines.append("|---------|------:|")
    for label, count in (
        ("Applied", stats.applied),
        ("Already applied", stats.already_applied),
        ("Failed", stats.failed),
        ("Skipped", stats.skipped),
    ):
        lines.append(f"| {label} | {count} |")
    lines.append("")

    if errors:
        lines.append("## Batch errors")
        lines.append("")
        for err in errors:
            lines.append(f"- {err}")
        lines.append("")

    hints: list[str] = []
    if not llm_enabled:
        hints.append("**LLM scoring off:** set `GROQ_API_KEY` and point `CV_PATH` at a readable CV")
    if stats.total == 0:
        hints.append("**No jobs:** check the search terms in `config/search.yaml` and the Dice login")
    if stats.failed:
        hints.append("**Failures:** see the `Status` column of the outcome log for per-job reasons")
    if hints:
        lines.append("## Troubleshooting")
        lines.append("")
        for i, hint in enumerate(hints, 1):
            lines.append(f"{i}. {hint}")
        lines.append("")

    return "\n".join(lines)


def write_run_report(content: str, directory: Path | None = None) -> Path:
    directory = directory or REPORTS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"run_{datetime.now().strftime('%Y-%m-%d_%H%M%S')}.md"
    path.write_text(content, encoding="utf-8")
    log.info("Report written → %s", path)
    return path


def log_summary(stats: RunStatistics, log_info: dict) -> None:
    log.info(_RULE)
    log.info("FINAL SUMMARY")
    log.info(_RULE)
    log.info("Outcome log: %s", log_info.get("filepath", ""))
    log.info("Total jobs processed: %d", stats.total)
    log.info("Successfully applied: %d", stats.applied)
    log.info("Already applied: %d", stats.already_applied)
    log.info("Failed applications: %d", stats.failed)
    log.info("Skipped (no match / LLM no match): %d", stats.skipped)
    log.info("LLM matches (good/partial): %d", stats.match + stats.partial_match)
    if stats.total:
        log.info("Success rate: %.1f%%", stats.success_rate * 100)
    if stats.llm_confidence is not None:
        log.info("LLM match confidence: %.1f%%", stats.llm_confidence * 100)
    log.info(_RULE)

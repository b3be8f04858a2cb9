"""Per-run job outcome log (CSV) with periodic flushes and file locking."""
from __future__ import annotations

import csv
import fcntl
from datetime import datetime
from pathlib import Path

from dice_apply.config import LOGS_DIR
from dice_apply.log import get_logger
from dice_apply.models import MatchResult

log = get_logger(__name__)

HEADERS: list[str] = [
    "Sr.No", "Job Title", "Company Name", "Status", "Category",
    "Timestamp", "LLM Match", "LLM Reason", "Job Page URL",
]


def _lock(f, exclusive: bool = True) -> None:
    """Advisory file lock (Unix fcntl)."""
    try:
        op = fcntl.LOCK_EX if exclusive else fcntl.LOCK_SH
        fcntl.flock(f.fileno(), op)
    except (OSError, AttributeError):
        pass


def _unlock(f) -> None:
    try:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)
    except (OSError, AttributeError):
        pass


def log_filename(now: datetime | None = None) -> str:
    """``JobApp_2025-01-31_02-05-PM.csv`` style name, one per run."""
    now = now or datetime.now()
    return f"JobApp_{now.strftime('%Y-%m-%d_%I-%M-%p')}.csv"


def categorize_status(status: str) -> str:
    low = status.lower()
    if "already applied" in low:
        return "already_applied"
    if "skipped" in low:
        return "skipped"
    if "failed" in low or "error" in low:
        return "failed"
    if "success" in low or "applied" in low:
        return "success"
    return "unknown"


class OutcomeLog:
    """Append-only table of job outcomes for one run.

    Rows are buffered and written every ``save_every`` records and on
    ``save()``, so a crash loses at most a handful of rows.
    """

    def __init__(self, directory: Path | None = None, *, save_every: int = 5, filename: str | None = None) -> None:
        self.directory = directory or LOGS_DIR
        self.filename = filename or log_filename()
        self.filepath = self.directory / self.filename
        self.save_every = save_every
        self.rows: list[dict[str, str]] = []
        self._pending: list[dict[str, str]] = []
        self._initialized = False

    def init(self) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        with open(self.filepath, "w", newline="", encoding="utf-8") as f:
            _lock(f)
            csv.writer(f).writerow(HEADERS)
            _unlock(f)
        self._initialized = True
        log.info("Initialized outcome log → %s", self.filepath)

    def append(
        self,
        title: str,
        company: str,
        status: str,
        match: MatchResult | None = None,
        url: str | None = None,
    ) -> None:
        if not self._initialized:
            self.init()
        row = {
            "Sr.No": str(len(self.rows) + 1),
            "Job Title": title,
            "Company Name": company,
            "Status": status,
            "Category": categorize_status(status),
            "Timestamp": datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "LLM Match": match.verdict.upper() if match else "N/A",
            "LLM Reason": match.rationale if match else "",
            "Job Page URL": url or "N/A",
        }
        self.rows.append(row)
        self._pending.append(row)
        suffix = f" (LLM: {match.verdict})" if match else ""
        log.info("[%s] %s - %s - %s%s", row["Sr.No"], title, company, status, suffix)

        if len(self._pending) >= self.save_every:
            self.save()

    def save(self) -> None:
        if not self._pending:
            return
        if not self._initialized:
            self.init()
        try:
            with open(self.filepath, "a", newline="", encoding="utf-8") as f:
                _lock(f)
                csv.DictWriter(f, fieldnames=HEADERS).writerows(self._pending)
                _unlock(f)
        except OSError as exc:
            log.error("Error saving outcome log %s: %s", self.filepath, exc)
            return
        log.debug("Flushed %d row(s) → %s", len(self._pending), self.filepath.name)
        self._pending.clear()

    def summary(self) -> dict:
        counts: dict[str, int] = {}
        for row in self.rows:
            counts[row["Category"]] = counts.get(row["Category"], 0) + 1
        return {
            "filename": self.filename,
            "filepath": str(self.filepath),
            "record_count": len(self.rows),
            "counts": counts,
        }

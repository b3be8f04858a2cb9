"""Data models for job outcomes and run statistics."""
from __future__ import annotations

from dataclasses import dataclass

APPLIED = "applied"
ALREADY_APPLIED = "already_applied"
SKIPPED = "skipped"
FAILED = "failed"
DECISIONS: tuple[str, ...] = (APPLIED, ALREADY_APPLIED, SKIPPED, FAILED)

MATCH = "match"
PARTIAL_MATCH = "partial_match"
NO_MATCH = "no_match"
VERDICT_SKIPPED = "skipped"
VERDICT_ERROR = "error"
VERDICTS: tuple[str, ...] = (MATCH, PARTIAL_MATCH, NO_MATCH, VERDICT_SKIPPED, VERDICT_ERROR)

UNKNOWN_TITLE = "Unknown Job Title"
UNKNOWN_COMPANY = "Unknown Company"


@dataclass(frozen=True)
class MatchResult:
    verdict: str
    rationale: str = ""


@dataclass(frozen=True)
class ApplyResult:
    success: bool
    already_applied: bool = False
    reason: str = ""
    # False when the sequence finished without seeing any confirmation marker
    confirmed: bool = True


@dataclass(frozen=True)
class JobOutcome:
    title: str
    company: str
    source_url: str | None
    decision: str
    reason: str = ""
    relevance: str | None = None

    def __post_init__(self) -> None:
        if self.decision not in DECISIONS:
            raise ValueError(f"Unknown decision: {self.decision!r}")
        if self.relevance is not None and self.relevance not in VERDICTS:
            raise ValueError(f"Unknown relevance verdict: {self.relevance!r}")

    @classmethod
    def placeholder(cls, reason: str) -> "JobOutcome":
        """Stand-in for a card whose task raised instead of returning."""
        return cls(title=UNKNOWN_TITLE, company=UNKNOWN_COMPANY, source_url=None,
                   decision=FAILED, reason=reason)


@dataclass
class RunStatistics:
    total: int = 0
    applied: int = 0
    already_applied: int = 0
    failed: int = 0
    skipped: int = 0
    match: int = 0
    partial_match: int = 0
    no_match: int = 0

    def record(self, outcome: JobOutcome) -> None:
        self.total += 1
        if outcome.decision == APPLIED:
            self.applied += 1
        elif outcome.decision == ALREADY_APPLIED:
            self.already_applied += 1
        elif outcome.decision == SKIPPED:
            self.skipped += 1
        else:
            self.failed += 1

        if outcome.relevance == MATCH:
            self.match += 1
        elif outcome.relevance == PARTIAL_MATCH:
            self.partial_match += 1
        elif outcome.relevance == NO_MATCH:
            self.no_match += 1

    def record_all(self, outcomes: list[JobOutcome]) -> None:
        for outcome in outcomes:
            self.record(outcome)

    @property
    def success_rate(self) -> float:
        return self.applied / self.total if self.total else 0.0

    @property
    def llm_confidence(self) -> float | None:
        """Share of LLM-scored jobs judged a match or partial match."""
        scored = self.match + self.partial_match + self.no_match
        if not scored:
            return None
        return (self.match + self.partial_match) / scored

    def as_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "applied": self.applied,
            "already_applied": self.already_applied,
            "failed": self.failed,
            "skipped": self.skipped,
            "match": self.match,
            "partial_match": self.partial_match,
            "no_match": self.no_match,
        }

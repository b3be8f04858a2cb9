"""Decide whether a job is worth applying to: title keywords first, then the LLM."""
from __future__ import annotations

import re
from typing import Sequence

from openai import AsyncOpenAI

from dice_apply.log import get_logger
from dice_apply.models import (
    MATCH,
    NO_MATCH,
    PARTIAL_MATCH,
    VERDICT_ERROR,
    VERDICT_SKIPPED,
    MatchResult,
)
from dice_apply.retry import retry

log = get_logger(__name__)

GROQ_BASE_URL = "https://api.groq.com/openai/v1"

_MATCH_PROMPT = """\
Analyze the following job description and the provided keywords extracted from a CV.
Determine if there's a strong match between the job requirements and the CV's skills.
Respond with "MATCH" if there's a good overlap, "PARTIAL_MATCH" if there's some overlap
but not strong, or "NO_MATCH" if there's little to no overlap. Provide a brief
explanation for your decision.

CV Keywords:
```
{cv_keywords}
```

Job Description:
```
{job_description}
```

Respond with only one sentence that starts with the verdict.
Match:
"""

# Longer descriptions add tokens without changing the verdict
_MAX_DESCRIPTION_CHARS = 6000

_VERDICT_RE = re.compile(r"\b(NO[ _-]MATCH|PARTIAL[ _-]MATCH|MATCH)\b")


def make_groq_client(api_key: str) -> AsyncOpenAI | None:
    if not api_key:
        return None
    return AsyncOpenAI(api_key=api_key, base_url=GROQ_BASE_URL)


def matching_terms(title: str, terms: Sequence[str]) -> list[str]:
    """Search terms contained in *title*, case-insensitive."""
    if not title:
        return []
    title_low = title.lower()
    return [t for t in terms if t.lower() in title_low]


def parse_verdict(reply: str) -> str:
    """Map a free-text model reply onto a verdict.

    The first label in the reply wins. NO_MATCH and PARTIAL_MATCH both
    contain "MATCH", so the longer labels come first in the pattern.
    Replies without any label count as ``no_match``.
    """
    m = _VERDICT_RE.search((reply or "").upper())
    if not m:
        return NO_MATCH
    label = m.group(1)
    if label.startswith("NO"):
        return NO_MATCH
    if label.startswith("PARTIAL"):
        return PARTIAL_MATCH
    return MATCH


class RelevanceScorer:
    """Classify job-description fit against résumé keywords via Groq.

    ``score`` never raises: a missing client or missing input yields
    ``skipped``, an API failure yields ``error``.
    """

    def __init__(self, client: AsyncOpenAI | None, model: str) -> None:
        self.client = client
        self.model = model

    @property
    def enabled(self) -> bool:
        return self.client is not None

    @retry(max_attempts=2, base_delay=2.0, retryable=(Exception,))
    async def _complete(self, prompt: str) -> str:
        resp = await self.client.chat.completions.create(
            model=self.model,
            messages=[{"role": "user", "content": prompt}],
            max_tokens=120,
            temperature=0.1,
        )
        return (resp.choices[0].message.content or "").strip()

    async def score(self, keywords: Sequence[str], description: str) -> MatchResult:
        if self.client is None or not keywords or not description:
            return MatchResult(VERDICT_SKIPPED, "Missing data or LLM client")

        prompt = _MATCH_PROMPT.format(
            cv_keywords=", ".join(keywords),
            job_description=description[:_MAX_DESCRIPTION_CHARS],
        )
        try:
            reply = await self._complete(prompt)
        except Exception as exc:
            log.error("Groq API error during job matching: %s", exc)
            return MatchResult(VERDICT_ERROR, f"Groq API error: {exc}")

        verdict = parse_verdict(reply)
        log.debug("LLM verdict %s: %s", verdict, reply[:120])
        return MatchResult(verdict, reply)

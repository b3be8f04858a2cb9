"""Scrape title, company and description from a Dice job detail page."""
from __future__ import annotations

import re

from playwright.async_api import Page

from dice_apply.browser import extract_text
from dice_apply.log import get_logger
from dice_apply.models import UNKNOWN_COMPANY, UNKNOWN_TITLE

log = get_logger(__name__)

# Ordered by reliability on Dice; the trailing generic selectors are the last resort.
TITLE_SELECTORS: tuple[str, ...] = (
    'h1[data-testid="job-title"]',
    'h1[data-cy="job-title"]',
    "h1.job-title",
    'h1[class*="job-title"]',
    'h1[class*="JobTitle"]',
    'h1[id*="job-title"]',
    "h1:first-of-type",
    ".job-header h1",
    ".job-details h1",
    "h1",
)

COMPANY_SELECTORS: tuple[str, ...] = (
    '[data-testid="company-name"]',
    '[data-cy="company-name"]',
    ".company-name",
    '[class*="company-name"]',
    ".job-company",
    ".employer-name",
    'a[href*="/company/"]',
    'span[class*="company"]',
    ".company-info span",
    '[class*="company"]',
)

DESCRIPTION_SELECTORS: tuple[str, ...] = (
    '[data-cy="job-description"]',
    '[data-testid="job-description"]',
    ".job-description",
    'div[class*="job-description"]',
    'div[class*="JobDescription"]',
    'section[id*="description"]',
    'div[data-qa="job-description"]',
    "div.job-details-content",
    'div[class*="description"]',
)

MIN_DESCRIPTION_CHARS = 200
_MIN_LINE_CHARS = 50
_NOISE_PREFIXES = ("Apply now", "Sign in")

_VISIBLE_TEXT_JS = """
() => {
  const parts = [];
  document.querySelectorAll("body *:not(script):not(style)").forEach((el) => {
    if (el.offsetParent !== null && el.children.length === 0) {
      parts.push(el.textContent);
    }
  });
  return parts.join("\\n");
}
"""


def _squash(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


async def extract_job_title(page: Page) -> str:
    title = await extract_text(page, TITLE_SELECTORS, min_length=3, default=UNKNOWN_TITLE)
    if title == UNKNOWN_TITLE:
        log.warning("Could not extract job title from %s", page.url)
    return title


async def extract_company_name(page: Page) -> str:
    company = await extract_text(page, COMPANY_SELECTORS, min_length=2, default=UNKNOWN_COMPANY)
    if company == UNKNOWN_COMPANY:
        log.warning("Could not extract company name from %s", page.url)
    return company


async def _visible_body_text(page: Page) -> str:
    raw = await page.evaluate(_VISIBLE_TEXT_JS)
    lines = [
        line.strip()
        for line in (raw or "").split("\n")
        if len(line.strip()) > _MIN_LINE_CHARS and not line.strip().startswith(_NOISE_PREFIXES)
    ]
    return _squash(" ".join(lines))


async def extract_job_description(page: Page) -> str:
    """Concatenated description blocks; empty string when nothing substantial is found."""
    try:
        chunks: list[str] = []
        for selector in DESCRIPTION_SELECTORS:
            try:
                elements = await page.query_selector_all(selector)
            except Exception:
                continue
            for element in elements:
                text = (await element.text_content() or "").strip()
                if len(text) > MIN_DESCRIPTION_CHARS and text not in chunks:
                    chunks.append(text)

        description = _squash(" ".join(chunks))
        if len(description) < MIN_DESCRIPTION_CHARS:
            log.debug("Description looks incomplete, trying a broader scrape")
            description = await _visible_body_text(page)
            if len(description) < MIN_DESCRIPTION_CHARS:
                log.warning("Could not extract a substantial job description")
                return ""

        log.debug("Extracted %d characters of job description", len(description))
        return description
    except Exception as exc:
        log.error("Error extracting job description: %s", str(exc).split("\n")[0])
        return ""

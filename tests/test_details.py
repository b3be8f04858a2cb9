from __future__ import annotations

import pytest

from conftest import COMPANY_SEL, DESCRIPTION_SEL, LONG_DESCRIPTION, TITLE_SEL, FakePage
from dice_apply.details import extract_company_name, extract_job_description, extract_job_title


@pytest.mark.asyncio
async def test_title_and_company_from_primary_selectors():
    page = FakePage(texts={TITLE_SEL: ["  Senior SDET  "], COMPANY_SEL: ["IBM"]})
    assert await extract_job_title(page) == "Senior SDET"
    assert await extract_company_name(page) == "IBM"


@pytest.mark.asyncio
async def test_title_falls_back_to_bare_h1():
    page = FakePage(texts={"h1": ["Performance Test Engineer"]})
    assert await extract_job_title(page) == "Performance Test Engineer"


@pytest.mark.asyncio
async def test_unknown_placeholders():
    page = FakePage()
    assert await extract_job_title(page) == "Unknown Job Title"
    assert await extract_company_name(page) == "Unknown Company"


@pytest.mark.asyncio
async def test_description_deduplicates_blocks():
    page = FakePage(texts={
        DESCRIPTION_SEL: [LONG_DESCRIPTION],
        ".job-description": [LONG_DESCRIPTION, "Too short to count"],
    })
    assert await extract_job_description(page) == LONG_DESCRIPTION


@pytest.mark.asyncio
async def test_description_falls_back_to_visible_text():
    body = "\n".join([
        "Apply now to join one of the fastest growing QA organisations anywhere",
        "Short line",
        "You will own end-to-end automation for our checkout and billing services.",
        "Experience with Playwright, k6 and GitHub Actions is strongly preferred here.",
        "We value clear communication and pragmatic, well-tested engineering work.",
    ])
    page = FakePage(body_text=body)

    description = await extract_job_description(page)

    assert description.startswith("You will own end-to-end automation")
    assert "Apply now" not in description
    assert "Short line" not in description


@pytest.mark.asyncio
async def test_description_empty_when_nothing_substantial():
    page = FakePage(body_text="Sign in\nShort")
    assert await extract_job_description(page) == ""

"""Tests for the easy-apply submission sequence."""
from __future__ import annotations

import pytest

from conftest import APPLY_SEL, BANNER_SEL, FakePage
from dice_apply.apply_flow import apply_to_job

NEXT_SEL = "button:has-text('Next')"
SUBMIT_SEL = "button:has-text('Submit')"


@pytest.mark.asyncio
async def test_already_applied_short_circuits_without_clicking():
    page = FakePage(visible={"text=Already applied", APPLY_SEL})
    result = await apply_to_job(page)
    assert result.success and result.already_applied
    assert page.clicked == []


@pytest.mark.asyncio
async def test_missing_apply_control_fails():
    page = FakePage(visible=set())
    result = await apply_to_job(page)
    assert not result.success
    assert result.reason == "No apply control found"


@pytest.mark.asyncio
async def test_full_sequence_with_confirmation_banner():
    page = FakePage(
        visible={APPLY_SEL, NEXT_SEL, SUBMIT_SEL},
        on_click={SUBMIT_SEL: lambda p: p.visible.add(BANNER_SEL)},
    )
    result = await apply_to_job(page)
    assert result.success and result.confirmed
    assert not result.already_applied
    assert page.clicked == [APPLY_SEL, NEXT_SEL, SUBMIT_SEL]


@pytest.mark.asyncio
async def test_confirmation_from_url():
    def redirect(p):
        p.url = "https://www.dice.com/job-applications/thank-you"

    page = FakePage(visible={APPLY_SEL}, on_click={APPLY_SEL: redirect})
    result = await apply_to_job(page)
    assert result.success and result.confirmed


@pytest.mark.asyncio
async def test_unverified_application_still_reports_success():
    page = FakePage(url="https://www.dice.com/job-detail/xyz", visible={APPLY_SEL})
    result = await apply_to_job(page)
    assert result.success
    assert result.confirmed is False
    assert "unverified" in result.reason


@pytest.mark.asyncio
async def test_closed_page_fails():
    page = FakePage()
    page.closed = True
    result = await apply_to_job(page)
    assert not result.success
    assert result.reason == "Page is closed"

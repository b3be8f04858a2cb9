"""In-memory stand-ins for the slice of the Playwright async API the bot uses."""
from __future__ import annotations

import os
from types import SimpleNamespace
from typing import Callable

os.environ.setdefault("LOG_TO_FILE", "false")

import pytest
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from dice_apply.config import Settings
from dice_apply.models import MatchResult


class FakeElement:
    def __init__(self, text: str | None, inner: str | None = None) -> None:
        self._text = text
        self._inner = inner if inner is not None else (text or "")

    async def text_content(self) -> str | None:
        return self._text

    async def inner_text(self) -> str:
        return self._inner


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str) -> None:
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def is_visible(self, timeout: int | None = None) -> bool:
        return self.page.is_shown(self.selector)

    async def click(self, **kwargs) -> None:
        self.page.click_selector(self.selector)

    async def count(self) -> int:
        return 1 if self.page.is_shown(self.selector) else 0

    async def all(self) -> list:
        return list(self.page.items.get(self.selector, []))


class FakePage:
    def __init__(
        self,
        *,
        title: str = "Dice",
        url: str = "about:blank",
        texts: dict[str, list] | None = None,
        visible: set[str] | None = None,
        goto_failures: int = 0,
        on_click: dict[str, Callable[["FakePage"], None]] | None = None,
        on_goto: Callable[["FakePage", str], None] | None = None,
        body_text: str = "",
    ) -> None:
        self.title_text = title
        self.url = url
        self.texts = texts or {}
        self.visible = set(visible or ())
        self.items: dict[str, list] = {}
        self.goto_failures = goto_failures
        self.on_click = on_click or {}
        self.on_goto = on_goto
        self.body_text = body_text
        self.closed = False
        self.context: FakeContext | None = None
        self.goto_calls: list[str] = []
        self.clicked: list[str] = []
        self.waits: list[int] = []
        self.filled: dict[str, str] = {}

    def is_shown(self, selector: str) -> bool:
        return selector in self.visible or bool(self.items.get(selector))

    def click_selector(self, selector: str) -> None:
        self.clicked.append(selector)
        hook = self.on_click.get(selector)
        if hook:
            hook(self)

    def is_closed(self) -> bool:
        return self.closed

    async def close(self) -> None:
        self.closed = True

    async def goto(self, url: str, wait_until: str | None = None, timeout: int | None = None) -> None:
        self.goto_calls.append(url)
        if self.goto_failures > 0:
            self.goto_failures -= 1
            raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded navigating to {url}")
        self.url = url
        if self.on_goto:
            self.on_goto(self, url)

    async def wait_for_timeout(self, ms: int) -> None:
        self.waits.append(ms)

    async def wait_for_load_state(self, state: str = "load", timeout: int | None = None) -> None:
        return None

    async def title(self) -> str:
        return self.title_text

    async def query_selector_all(self, selector: str) -> list[FakeElement]:
        return [e if isinstance(e, FakeElement) else FakeElement(e) for e in self.texts.get(selector, [])]

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def wait_for_selector(self, selector: str, timeout: int | None = None) -> None:
        if not self.is_shown(selector):
            raise PlaywrightTimeoutError(f"waiting for {selector} failed: timeout {timeout}ms exceeded")

    async def evaluate(self, expression: str):
        return self.body_text

    async def fill(self, selector: str, value: str) -> None:
        self.filled[selector] = value

    async def click(self, selector: str, timeout: int | None = None) -> None:
        self.click_selector(selector)


class _PageEvent:
    """Mimics ``EventContextManager``: ``value`` resolves to the opened page."""

    def __init__(self, context: "FakeContext") -> None:
        self.context = context
        self.page: FakePage | None = None

    async def __aenter__(self) -> "_PageEvent":
        self.context.waiters.append(self)
        return self

    async def __aexit__(self, *exc) -> bool:
        if self in self.context.waiters:
            self.context.waiters.remove(self)
        return False

    @property
    def value(self):
        async def _resolve() -> FakePage:
            if self.page is None:
                raise PlaywrightTimeoutError("Timeout 15000ms exceeded while waiting for event \"page\"")
            return self.page

        return _resolve()


class FakeContext:
    def __init__(self, *pages: FakePage) -> None:
        self._pages: list[FakePage] = []
        self.waiters: list[_PageEvent] = []
        self.opened: list[FakePage] = []
        for p in pages:
            self.attach(p)

    def attach(self, page: FakePage) -> None:
        page.context = self
        self._pages.append(page)

    @property
    def pages(self) -> list[FakePage]:
        return [p for p in self._pages if not p.closed]

    def expect_page(self, timeout: int | None = None) -> _PageEvent:
        return _PageEvent(self)

    def open(self, page: FakePage) -> None:
        self.attach(page)
        self.opened.append(page)
        for waiter in self.waiters:
            if waiter.page is None:
                waiter.page = page
                return

    def close_all(self) -> None:
        for p in self._pages:
            p.closed = True

    async def new_page(self) -> FakePage:
        page = FakePage()
        self.attach(page)
        return page

    async def close(self) -> None:
        self.close_all()


class _CardLink:
    def __init__(self, card: "FakeCard") -> None:
        self.card = card

    @property
    def first(self) -> "_CardLink":
        return self

    async def count(self) -> int:
        return 1 if self.card.has_link else 0

    async def click(self, **kwargs) -> None:
        self.card.clicks += 1
        if self.card.detail is not None and self.card.context is not None:
            self.card.context.open(self.card.detail)

    async def get_attribute(self, name: str, timeout: int | None = None) -> str | None:
        return self.card.href if name == "href" else None


class FakeCard:
    def __init__(
        self,
        detail: FakePage | None,
        context: FakeContext | None = None,
        *,
        href: str | None = None,
        has_link: bool = True,
    ) -> None:
        self.detail = detail
        self.context = context
        self.href = href
        self.has_link = has_link
        self.clicks = 0

    def locator(self, selector: str) -> _CardLink:
        return _CardLink(self)


class FakeScorer:
    def __init__(self, verdict: str = "match", *, enabled: bool = True) -> None:
        self.verdict = verdict
        self.enabled = enabled
        self.calls: list[tuple[list[str], str]] = []

    async def score(self, keywords, description) -> MatchResult:
        self.calls.append((list(keywords), description))
        return MatchResult(self.verdict, f"{self.verdict.upper()}: canned reply")


def fake_completion_client(reply: str | Exception) -> SimpleNamespace:
    """Object shaped like ``AsyncOpenAI`` whose completion returns *reply* (or raises it)."""
    calls: list[dict] = []

    async def create(**kwargs):
        calls.append(kwargs)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])

    completions = SimpleNamespace(create=create)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions), calls=calls)


TITLE_SEL = 'h1[data-testid="job-title"]'
COMPANY_SEL = '[data-testid="company-name"]'
DESCRIPTION_SEL = '[data-cy="job-description"]'
APPLY_SEL = "button:has-text('Apply')"
BANNER_SEL = ".post-apply-banner"

LONG_DESCRIPTION = (
    "We are hiring an engineer to design, build and maintain automated test suites "
    "for our payments platform. You will work with Python, Playwright and CI pipelines, "
    "partner with developers on release quality and own regression coverage end to end."
)


def _show(selector: str) -> Callable[[FakePage], None]:
    return lambda page: page.visible.add(selector)


def make_detail_page(
    title: str = "QA Automation Engineer",
    company: str = "Acme Corp",
    *,
    description: str | None = None,
    visible: set[str] | None = None,
    confirm_on_apply: bool = True,
    url: str = "https://www.dice.com/job-detail/abc123",
) -> FakePage:
    texts: dict[str, list] = {TITLE_SEL: [title], COMPANY_SEL: [company]}
    if description:
        texts[DESCRIPTION_SEL] = [description]
    on_click = {APPLY_SEL: _show(BANNER_SEL)} if confirm_on_apply else {}
    return FakePage(
        title=title,
        url=url,
        texts=texts,
        visible=visible if visible is not None else {APPLY_SEL},
        on_click=on_click,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        username="tester@example.com",
        password="secret",
        search_terms=["QA"],
        max_pages=5,
        max_concurrent_tabs=2,
        tab_delay=0,
        page_delay=0,
    )


@pytest.fixture
def outcome_log(tmp_path):
    from dice_apply.tracker import OutcomeLog

    log = OutcomeLog(tmp_path, filename="outcomes.csv")
    log.init()
    return log

"""Pytest configuration and an in-memory stand-in for Playwright pages."""

from __future__ import annotations

import sys
from collections import defaultdict
from pathlib import Path
from typing import Any, Callable, DefaultDict, List, Set

import pytest

_ROOT = Path(__file__).resolve().parents[1]
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from runtime.config import BrowserConfig  # noqa: E402
from runtime.context import Context  # noqa: E402


class FakeLocator:
    def __init__(self, page: "FakePage", description: str) -> None:
        self.page = page
        self.description = description

    def nth(self, index: int) -> "FakeLocator":
        return FakeLocator(self.page, f"{self.description}.nth({index})")

    @property
    def first(self) -> "FakeLocator":
        return FakeLocator(self.page, f"{self.description}.first")

    def _act(self, name: str, *payload: Any) -> None:
        if self.description in self.page.fail_selectors:
            raise TimeoutError(f"Timeout 10000ms exceeded waiting for {self.description}")
        self.page.record(name, self.description, *payload)

    async def click(self, **kwargs: Any) -> None:
        self._act("click", kwargs.get("button", "left"))

    async def dblclick(self, **kwargs: Any) -> None:
        self._act("dblclick", kwargs.get("button", "left"))

    async def hover(self, **kwargs: Any) -> None:
        self._act("hover")

    async def fill(self, text: str, **kwargs: Any) -> None:
        self._act("fill", text)

    async def press_sequentially(self, text: str, **kwargs: Any) -> None:
        self._act("press_sequentially", text)

    async def press(self, key: str, **kwargs: Any) -> None:
        self._act("press", key)

    async def select_option(self, values: List[str], **kwargs: Any) -> None:
        self._act("select_option", list(values))

    async def wait_for(self, **kwargs: Any) -> None:
        self._act("wait_for", kwargs.get("state"))

    async def aria_snapshot(self) -> str:
        if self.page.fail_snapshot:
            raise RuntimeError("snapshot exploded")
        return f'- document "{self.page.page_title}"'


class FakeKeyboard:
    def __init__(self, page: "FakePage") -> None:
        self.page = page

    async def press(self, key: str) -> None:
        self.page.record("keyboard.press", key)


class FakePage:
    def __init__(self, browser_context: "FakeBrowserContext") -> None:
        self.browser_context = browser_context
        self.url = "about:blank"
        self.page_title = ""
        self.events: List[tuple] = []
        self.keyboard = FakeKeyboard(self)
        self.fail_selectors: Set[str] = set()
        self.fail_snapshot = browser_context.fail_snapshot
        self.closed = False
        self._handlers: DefaultDict[str, List[Callable[..., Any]]] = defaultdict(list)

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._handlers[event].append(handler)

    def record(self, *event: Any) -> None:
        self.events.append(event)

    async def goto(self, url: str, **kwargs: Any) -> None:
        if url.startswith("bad://"):
            raise RuntimeError(f"net::ERR_ABORTED at {url}")
        self.url = url
        self.page_title = f"Title of {url}"
        self.record("goto", url)

    async def go_back(self, **kwargs: Any) -> None:
        self.record("go_back")

    async def go_forward(self, **kwargs: Any) -> None:
        self.record("go_forward")

    async def title(self) -> str:
        return self.page_title

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, f"locator({selector})")

    def get_by_role(self, role: str, **kwargs: Any) -> FakeLocator:
        name = kwargs.get("name")
        return FakeLocator(self, f"role({role}, {name})" if name else f"role({role})")

    def get_by_text(self, text: str) -> FakeLocator:
        return FakeLocator(self, f"text({text})")

    def get_by_label(self, text: str) -> FakeLocator:
        return FakeLocator(self, f"label({text})")

    def get_by_test_id(self, test_id: str) -> FakeLocator:
        return FakeLocator(self, f"test_id({test_id})")

    async def wait_for_load_state(self, state: str = "load", timeout: Any = None) -> None:
        self.record("wait_for_load_state", state, timeout)

    async def wait_for_timeout(self, ms: float) -> None:
        self.record("wait_for_timeout", ms)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.record("evaluate")
        return True

    async def bring_to_front(self) -> None:
        self.record("bring_to_front")

    async def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        for handler in list(self._handlers["close"]):
            handler(self)


class FakeBrowserContext:
    def __init__(self) -> None:
        self.pages: List[FakePage] = []
        self.closed = False
        self.fail_snapshot = False
        self._handlers: DefaultDict[str, List[Callable[..., Any]]] = defaultdict(list)

    def on(self, event: str, handler: Callable[..., Any]) -> None:
        self._handlers[event].append(handler)

    async def new_page(self) -> FakePage:
        page = FakePage(self)
        self.pages.append(page)
        for handler in list(self._handlers["page"]):
            handler(page)
        return page

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def browser_context() -> FakeBrowserContext:
    return FakeBrowserContext()


@pytest.fixture
def config() -> BrowserConfig:
    return BrowserConfig()


@pytest.fixture
def context(browser_context: FakeBrowserContext, config: BrowserConfig) -> Context:
    async def factory() -> FakeBrowserContext:
        return browser_context

    return Context(config, browser_context_factory=factory)

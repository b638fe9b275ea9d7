"""Browser session shared by every tool invocation.

A :class:`Context` owns one Playwright browser context and the tabs opened in
it.  Tools receive the context, act on the current :class:`Tab` and describe
what they did through a :class:`toolset.tool.ToolResult`; :meth:`Context.run_tool`
turns that result into the ``{"content": [...], "isError": bool}`` payload
served by the HTTP layer.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import urlsplit, urlunsplit

import httpx
from playwright.async_api import BrowserContext, Page, async_playwright
from pydantic import ValidationError

from toolset.errors import error_message, format_validation_error
from toolset.tool import text_content

from .config import BrowserConfig, load_config
from .page_stability import wait_for_completion

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from toolset.tool import Tool, ToolActionResult, ToolResult

log = logging.getLogger(__name__)

BrowserContextFactory = Callable[[], Awaitable[BrowserContext]]

NO_TAB_MESSAGE = "No current snapshot available. Capture a snapshot or navigate to a new location first."


def _error_response(message: str) -> Dict[str, Any]:
    return {"content": [text_content(message)], "isError": True}


# ---------------------------------------------------------------------------
# CDP helpers


def _json_version_url(base: str) -> str:
    base = (base or "").strip()
    if not base:
        return ""
    working = base
    if working.startswith("//"):
        working = f"http:{working}"
    elif "://" not in working:
        working = f"http://{working}"
    try:
        parsed = urlsplit(working)
    except ValueError:
        return ""
    scheme = parsed.scheme or "http"
    if scheme in {"ws", "wss"}:
        scheme = "http" if scheme == "ws" else "https"
    return urlunsplit((scheme, parsed.netloc, "/json/version", "", ""))


async def wait_for_cdp(endpoint: str, *, timeout: float = 6.0, poll_interval: float = 0.25) -> bool:
    """Poll ``/json/version`` until the DevTools endpoint answers."""

    version_url = _json_version_url(endpoint)
    if not version_url:
        return False
    poll_interval = max(poll_interval, 0.25)
    deadline = time.time() + max(timeout, 1.0)
    async with httpx.AsyncClient(timeout=2.0) as client:
        while time.time() < deadline:
            try:
                response = await client.get(version_url)
                if response.status_code == 200:
                    return True
            except httpx.HTTPError as exc:
                log.debug("CDP endpoint %s not ready: %s", version_url, exc)
            await asyncio.sleep(poll_interval)
    log.warning("Timed out waiting for CDP endpoint %s", version_url)
    return False


# ---------------------------------------------------------------------------
# Tabs and snapshots


@dataclass(frozen=True, slots=True)
class PageSnapshot:
    """Textual state of a page captured at one point in time."""

    url: str
    title: str
    aria: str

    @classmethod
    async def create(cls, page: Page) -> "PageSnapshot":
        aria = await page.locator("body").aria_snapshot()
        return cls(url=page.url, title=await page.title(), aria=aria)

    def text(self) -> str:
        return "\n".join(
            [
                "### Page state",
                f"- Page URL: {self.url}",
                f"- Page Title: {self.title}",
                "- Page Snapshot",
                "```yaml",
                self.aria,
                "```",
            ]
        )


class Tab:
    def __init__(self, context: "Context", page: Page, on_close: Callable[["Tab"], None]) -> None:
        self.context = context
        self.page = page
        self._on_close = on_close
        self._snapshot: Optional[PageSnapshot] = None
        self._closed = False
        page.on("close", self._handle_close)

    def _handle_close(self, *_: Any) -> None:
        if self._closed:
            return
        self._closed = True
        self._on_close(self)

    def is_closed(self) -> bool:
        return self._closed

    async def close(self) -> None:
        await self.page.close()
        # Pages closed programmatically may not emit the event before returning.
        self._handle_close()

    async def title(self) -> str:
        return await self.page.title()

    async def navigate(self, url: str) -> None:
        self._snapshot = None
        await self.page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self.context.config.navigation_timeout_ms,
        )
        try:
            await self.page.wait_for_load_state("load", timeout=5_000)
        except Exception as exc:
            log.debug("Load event not reached for %s: %s", url, exc)

    async def wait_for_network_idle(self, timeout_ms: int) -> None:
        await self.page.wait_for_load_state("networkidle", timeout=timeout_ms)

    async def wait_for_timeout(self, ms: float) -> None:
        await self.page.wait_for_timeout(ms)

    async def capture_snapshot(self) -> None:
        self._snapshot = await PageSnapshot.create(self.page)

    def has_snapshot(self) -> bool:
        return self._snapshot is not None

    def snapshot_or_die(self) -> PageSnapshot:
        if self._snapshot is None:
            raise RuntimeError("No snapshot available")
        return self._snapshot


# ---------------------------------------------------------------------------
# Context


class Context:
    """Shared mutable session: the browser context, its tabs and the current tab."""

    def __init__(
        self,
        config: Optional[BrowserConfig] = None,
        *,
        browser_context_factory: Optional[BrowserContextFactory] = None,
    ) -> None:
        self.config = config or load_config()
        self._browser_context_factory = browser_context_factory
        self._browser_context: Optional[BrowserContext] = None
        self._playwright = None
        self._browser = None
        self._tabs: List[Tab] = []
        self._current_tab: Optional[Tab] = None

    # ------------------------------------------------------------------
    # tabs
    # ------------------------------------------------------------------
    def tabs(self) -> List[Tab]:
        return list(self._tabs)

    def current_tab(self) -> Optional[Tab]:
        return self._current_tab

    def current_tab_or_die(self) -> Tab:
        if self._current_tab is None:
            raise RuntimeError(NO_TAB_MESSAGE)
        return self._current_tab

    async def ensure_tab(self) -> Tab:
        if self._current_tab is None:
            await self.new_tab()
        return self.current_tab_or_die()

    async def new_tab(self) -> Tab:
        browser_context = await self._ensure_browser_context()
        page = await browser_context.new_page()
        tab = self._register_page(page)
        self._current_tab = tab
        return tab

    async def select_tab(self, index: int) -> Tab:
        tab = self._tab_at(index)
        await tab.page.bring_to_front()
        self._current_tab = tab
        return tab

    async def close_tab(self, index: Optional[int] = None) -> str:
        tab = self.current_tab_or_die() if index is None else self._tab_at(index)
        await tab.close()
        return await self.list_tabs_markdown()

    async def list_tabs_markdown(self) -> str:
        if not self._tabs:
            return "### Open tabs\nNo tabs open"
        lines = ["### Open tabs"]
        for position, tab in enumerate(self._tabs, start=1):
            current = " (current)" if tab is self._current_tab else ""
            lines.append(f"- {position}:{current} [{await tab.title()}] ({tab.page.url})")
        return "\n".join(lines)

    def _tab_at(self, index: int) -> Tab:
        if index < 1 or index > len(self._tabs):
            raise ValueError(f"Tab {index} not found")
        return self._tabs[index - 1]

    def _register_page(self, page: Page) -> Tab:
        for tab in self._tabs:
            if tab.page is page:
                return tab
        tab = Tab(self, page, self._on_tab_closed)
        self._tabs.append(tab)
        if self._current_tab is None:
            self._current_tab = tab
        return tab

    def _on_page_created(self, page: Page) -> None:
        self._register_page(page)

    def _on_tab_closed(self, tab: Tab) -> None:
        if tab not in self._tabs:
            return
        position = self._tabs.index(tab)
        self._tabs.remove(tab)
        if self._current_tab is tab:
            self._current_tab = self._tabs[min(position, len(self._tabs) - 1)] if self._tabs else None

    # ------------------------------------------------------------------
    # browser lifecycle
    # ------------------------------------------------------------------
    async def _ensure_browser_context(self) -> BrowserContext:
        if self._browser_context is None:
            if self._browser_context_factory is not None:
                browser_context = await self._browser_context_factory()
            else:
                browser_context = await self._launch_browser_context()
            browser_context.on("page", self._on_page_created)
            self._browser_context = browser_context
        return self._browser_context

    async def _launch_browser_context(self) -> BrowserContext:
        self._playwright = await async_playwright().start()
        chromium = self._playwright.chromium
        endpoint = self.config.cdp_endpoint
        if endpoint:
            if await wait_for_cdp(endpoint):
                try:
                    self._browser = await chromium.connect_over_cdp(endpoint)
                    contexts = self._browser.contexts
                    return contexts[0] if contexts else await self._browser.new_context()
                except Exception as exc:  # pragma: no cover - requires CDP target
                    log.warning("Failed to connect over CDP (%s), launching instead", exc)
            else:
                log.warning("CDP endpoint %s unavailable, launching a local browser", endpoint)
        self._browser = await chromium.launch(headless=self.config.headless)
        return await self._browser.new_context()

    async def close(self) -> None:
        browser_context = self._browser_context
        browser = self._browser
        playwright = self._playwright
        self._browser_context = None
        self._browser = None
        self._playwright = None
        self._tabs.clear()
        self._current_tab = None
        for closer in (
            getattr(browser_context, "close", None),
            getattr(browser, "close", None),
            getattr(playwright, "stop", None),
        ):
            if closer is None:
                continue
            try:
                await closer()
            except Exception as exc:
                log.debug("Browser shutdown step failed: %s", exc)

    # ------------------------------------------------------------------
    # tool dispatch
    # ------------------------------------------------------------------
    async def run_tool(self, tool: "Tool", arguments: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        """Validate, run and render one tool call."""

        name = tool.schema.name
        try:
            params = tool.schema.input_schema.model_validate(arguments or {})
        except ValidationError as exc:
            return _error_response(f"Invalid arguments for {name}: {format_validation_error(exc)}")

        try:
            result = await tool.handle(self, params)
            action_result = await self._run_action(result)
        except Exception as exc:
            log.warning("Tool %s failed: %s", name, exc)
            return _error_response(error_message(exc))

        content = list(action_result.content) if action_result is not None else []
        content.append(text_content(await self._render_trailer(result)))
        return {"content": content, "isError": False}

    async def _run_action(self, result: "ToolResult") -> Optional["ToolActionResult"]:
        tab = self._current_tab
        if tab is None or not (result.capture_snapshot or result.wait_for_network):
            return await result.action() if result.action is not None else None

        if result.wait_for_network:
            action_result = await wait_for_completion(
                tab,
                result.action,
                timeout_ms=self.config.completion_timeout_ms,
            )
        else:
            action_result = await result.action() if result.action is not None else None

        if result.capture_snapshot and self._current_tab is not None:
            await self._current_tab.capture_snapshot()
        return action_result

    async def _render_trailer(self, result: "ToolResult") -> str:
        lines = ["- Ran Playwright code:", "```python", *result.code, "```", ""]
        if len(self._tabs) > 1:
            lines.extend([await self.list_tabs_markdown(), ""])
        tab = self._current_tab
        if result.capture_snapshot and tab is not None and tab.has_snapshot():
            lines.append(tab.snapshot_or_die().text())
        return "\n".join(lines)

"""Utilities to let pages settle after tool actions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Awaitable, Callable, Optional, TypeVar

from playwright.async_api import Page

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from .context import Tab

log = logging.getLogger(__name__)

DEFAULT_STABILIZE_TIMEOUT = 2_000

T = TypeVar("T")

_DOM_IDLE_SCRIPT = """
    (timeoutMs) => new Promise(resolve => {
        const threshold = 300;
        let last = Date.now();
        const ob = new MutationObserver(() => (last = Date.now()));
        ob.observe(document, {subtree: true, childList: true, attributes: true});
        const start = Date.now();
        (function check() {
            if (Date.now() - last > threshold) {
                ob.disconnect();
                resolve(true);
                return;
            }
            if (Date.now() - start > timeoutMs) {
                ob.disconnect();
                resolve(false);
                return;
            }
            setTimeout(check, 50);
        })();
    })
"""


async def wait_dom_idle(page: Page, timeout_ms: int = DEFAULT_STABILIZE_TIMEOUT) -> None:
    """Wait until DOM mutations have been idle for a short threshold."""

    try:
        await page.evaluate(_DOM_IDLE_SCRIPT, timeout_ms)
    except Exception as exc:
        log.debug("DOM idle probe failed: %s", exc)
        await page.wait_for_timeout(100)


async def stabilize_page(page: Page, timeout: int = DEFAULT_STABILIZE_TIMEOUT) -> None:
    """Best-effort attempt to allow pages to finish loading and rendering."""

    try:
        await page.wait_for_load_state("networkidle", timeout=timeout)
        await wait_dom_idle(page, timeout_ms=timeout)
    except Exception as exc:
        log.debug("Page did not stabilise within %sms: %s", timeout, exc)
        await page.wait_for_timeout(min(500, max(50, timeout // 2)))


async def wait_for_completion(
    tab: "Tab",
    callback: Optional[Callable[[], Awaitable[T]]],
    *,
    timeout_ms: int = DEFAULT_STABILIZE_TIMEOUT,
) -> Optional[T]:
    """Run ``callback`` and then give the tab's page a chance to settle."""

    result: Optional[T] = None
    if callback is not None:
        result = await callback()
    if not tab.is_closed():
        await stabilize_page(tab.page, timeout=timeout_ms)
    return result

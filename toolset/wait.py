"""Wait tool."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, List

from .models import WaitForParams
from .tool import ToolResult, define_tool

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from runtime.context import Context

MAX_WAIT_SECONDS = 10.0


async def _wait_for(context: "Context", params: WaitForParams) -> ToolResult:
    code: List[str] = []

    if params.time is not None:
        seconds = min(MAX_WAIT_SECONDS, params.time)
        code.append(f"await asyncio.sleep({seconds})")
        await asyncio.sleep(seconds)

    if params.text is not None or params.text_gone is not None:
        tab = context.current_tab_or_die()
        timeout = context.config.action_timeout_ms
        if params.text_gone is not None:
            code.append(f"await page.get_by_text({params.text_gone!r}).first.wait_for(state='hidden')")
            await tab.page.get_by_text(params.text_gone).first.wait_for(state="hidden", timeout=timeout)
        if params.text is not None:
            code.append(f"await page.get_by_text({params.text!r}).first.wait_for(state='visible')")
            await tab.page.get_by_text(params.text).first.wait_for(state="visible", timeout=timeout)

    return ToolResult(code=code, capture_snapshot=True)


wait_for = define_tool(
    name="browser_wait_for",
    title="Wait for",
    description="Wait for text to appear or disappear or a specified time to pass",
    input_schema=WaitForParams,
    handle=_wait_for,
    type="readOnly",
)

tools = [wait_for]

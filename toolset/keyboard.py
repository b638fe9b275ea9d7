"""Keyboard tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .models import PressKeyParams
from .tool import ToolActionResult, ToolResult, define_tool

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from runtime.context import Context


async def _press_key(context: "Context", params: PressKeyParams) -> ToolResult:
    tab = context.current_tab_or_die()

    async def action() -> Optional[ToolActionResult]:
        await tab.page.keyboard.press(params.key)
        return None

    return ToolResult(
        code=[f"# Press {params.key}", f"await page.keyboard.press({params.key!r})"],
        action=action,
        capture_snapshot=True,
        wait_for_network=True,
    )


press_key = define_tool(
    name="browser_press_key",
    title="Press a key",
    description="Press a key on the keyboard",
    input_schema=PressKeyParams,
    handle=_press_key,
    type="destructive",
)

tools = [press_key]

"""Navigation tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import NavigateParams, NoParams
from .tool import ToolResult, define_tool

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from runtime.context import Context

NAVIGATE_TOOL_NAME = "browser_navigate"


async def _navigate(context: "Context", params: NavigateParams) -> ToolResult:
    tab = await context.ensure_tab()
    await tab.navigate(params.url)
    return ToolResult(
        code=[f"# Navigate to {params.url}", f"await page.goto({params.url!r})"],
        capture_snapshot=True,
    )


async def _go_back(context: "Context", params: NoParams) -> ToolResult:
    tab = context.current_tab_or_die()
    await tab.page.go_back()
    return ToolResult(code=["# Navigate back", "await page.go_back()"], capture_snapshot=True)


async def _go_forward(context: "Context", params: NoParams) -> ToolResult:
    tab = context.current_tab_or_die()
    await tab.page.go_forward()
    return ToolResult(code=["# Navigate forward", "await page.go_forward()"], capture_snapshot=True)


navigate = define_tool(
    name=NAVIGATE_TOOL_NAME,
    title="Navigate to a URL",
    description="Navigate to a URL",
    input_schema=NavigateParams,
    handle=_navigate,
    type="destructive",
)

go_back = define_tool(
    name="browser_navigate_back",
    title="Go back",
    description="Go back to the previous page",
    input_schema=NoParams,
    handle=_go_back,
    type="readOnly",
)

go_forward = define_tool(
    name="browser_navigate_forward",
    title="Go forward",
    description="Go forward to the next page",
    input_schema=NoParams,
    handle=_go_forward,
    type="readOnly",
)

tools = [navigate, go_back, go_forward]

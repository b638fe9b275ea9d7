"""Tab management tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

from .models import NoParams, TabCloseParams, TabNewParams, TabSelectParams
from .tool import ToolActionResult, ToolResult, define_tool, text_content

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from runtime.context import Context


async def _list_tabs(context: "Context", params: NoParams) -> ToolResult:
    await context.ensure_tab()

    async def action() -> Optional[ToolActionResult]:
        return ToolActionResult(content=[text_content(await context.list_tabs_markdown())])

    return ToolResult(code=["# <internal code to list tabs>"], action=action)


async def _new_tab(context: "Context", params: TabNewParams) -> ToolResult:
    tab = await context.new_tab()
    code: List[str] = ["# Open a new tab", "page = await context.new_page()"]
    if params.url:
        await tab.navigate(params.url)
        code.append(f"await page.goto({params.url!r})")
    return ToolResult(code=code, capture_snapshot=True)


async def _select_tab(context: "Context", params: TabSelectParams) -> ToolResult:
    await context.select_tab(params.index)
    return ToolResult(
        code=[f"# Select tab {params.index}", f"page = context.pages[{params.index - 1}]", "await page.bring_to_front()"],
        capture_snapshot=True,
    )


async def _close_tab(context: "Context", params: TabCloseParams) -> ToolResult:
    await context.close_tab(params.index)
    target = "current tab" if params.index is None else f"tab {params.index}"
    return ToolResult(code=[f"# Close {target}", "await page.close()"], capture_snapshot=True)


list_tabs = define_tool(
    name="browser_tab_list",
    title="List tabs",
    description="List browser tabs",
    input_schema=NoParams,
    handle=_list_tabs,
    type="readOnly",
)

new_tab = define_tool(
    name="browser_tab_new",
    title="Open a new tab",
    description="Open a new tab",
    input_schema=TabNewParams,
    handle=_new_tab,
    type="readOnly",
)

select_tab = define_tool(
    name="browser_tab_select",
    title="Select a tab",
    description="Select a tab by index",
    input_schema=TabSelectParams,
    handle=_select_tab,
    type="readOnly",
)

close_tab = define_tool(
    name="browser_tab_close",
    title="Close a tab",
    description="Close a tab",
    input_schema=TabCloseParams,
    handle=_close_tab,
    type="destructive",
)

tools = [list_tabs, new_tab, select_tab, close_tab]

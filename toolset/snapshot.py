"""Snapshot and element interaction tools."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from .models import ClickParams, HoverParams, NoParams, SelectOptionParams, TypeParams
from .tool import ToolActionResult, ToolResult, define_tool

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from runtime.context import Context


async def _snapshot(context: "Context", params: NoParams) -> ToolResult:
    await context.ensure_tab()
    return ToolResult(
        code=["# <internal code to capture accessibility snapshot>"],
        capture_snapshot=True,
    )


async def _click(context: "Context", params: ClickParams) -> ToolResult:
    tab = context.current_tab_or_die()
    locator = params.selector.to_locator(tab.page)
    target = params.selector.to_code()
    timeout = context.config.action_timeout_ms
    button_arg = "" if params.button == "left" else f"button={params.button!r}"
    method = "dblclick" if params.double_click else "click"
    verb = "Double click" if params.double_click else "Click"

    async def action() -> Optional[ToolActionResult]:
        if params.double_click:
            await locator.dblclick(button=params.button, timeout=timeout)
        else:
            await locator.click(button=params.button, timeout=timeout)
        return None

    return ToolResult(
        code=[f"# {verb} {params.element}", f"await {target}.{method}({button_arg})"],
        action=action,
        capture_snapshot=True,
        wait_for_network=True,
    )


async def _hover(context: "Context", params: HoverParams) -> ToolResult:
    tab = context.current_tab_or_die()
    locator = params.selector.to_locator(tab.page)
    timeout = context.config.action_timeout_ms

    async def action() -> Optional[ToolActionResult]:
        await locator.hover(timeout=timeout)
        return None

    return ToolResult(
        code=[f"# Hover over {params.element}", f"await {params.selector.to_code()}.hover()"],
        action=action,
        capture_snapshot=True,
        wait_for_network=True,
    )


async def _type(context: "Context", params: TypeParams) -> ToolResult:
    tab = context.current_tab_or_die()
    locator = params.selector.to_locator(tab.page)
    target = params.selector.to_code()
    timeout = context.config.action_timeout_ms

    code = [f"# Type {params.text!r} into {params.element}"]
    if params.slowly:
        code.append(f"await {target}.press_sequentially({params.text!r})")
    else:
        code.append(f"await {target}.fill({params.text!r})")
    if params.submit:
        code.append(f"await {target}.press('Enter')")

    async def action() -> Optional[ToolActionResult]:
        if params.slowly:
            await locator.press_sequentially(params.text, timeout=timeout)
        else:
            await locator.fill(params.text, timeout=timeout)
        if params.submit:
            await locator.press("Enter", timeout=timeout)
        return None

    return ToolResult(code=code, action=action, capture_snapshot=True, wait_for_network=True)


async def _select_option(context: "Context", params: SelectOptionParams) -> ToolResult:
    tab = context.current_tab_or_die()
    locator = params.selector.to_locator(tab.page)
    timeout = context.config.action_timeout_ms

    async def action() -> Optional[ToolActionResult]:
        await locator.select_option(params.values, timeout=timeout)
        return None

    return ToolResult(
        code=[
            f"# Select {', '.join(params.values)} in {params.element}",
            f"await {params.selector.to_code()}.select_option({params.values!r})",
        ],
        action=action,
        capture_snapshot=True,
        wait_for_network=True,
    )


snapshot = define_tool(
    name="browser_snapshot",
    title="Page snapshot",
    description="Capture accessibility snapshot of the current page, this is better than screenshot",
    input_schema=NoParams,
    handle=_snapshot,
    type="readOnly",
)

click = define_tool(
    name="browser_click",
    title="Click",
    description="Perform click on a web page",
    input_schema=ClickParams,
    handle=_click,
    type="destructive",
)

hover = define_tool(
    name="browser_hover",
    title="Hover mouse",
    description="Hover over element on page",
    input_schema=HoverParams,
    handle=_hover,
    type="readOnly",
)

type_text = define_tool(
    name="browser_type",
    title="Type text",
    description="Type text into editable element",
    input_schema=TypeParams,
    handle=_type,
    type="destructive",
)

select_option = define_tool(
    name="browser_select_option",
    title="Select option",
    description="Select an option in a dropdown",
    input_schema=SelectOptionParams,
    handle=_select_option,
    type="destructive",
)

tools = [snapshot, click, hover, type_text, select_option]

"""Individual browser tools dispatched through ``Context.run_tool``."""

from types import SimpleNamespace

import pytest

from toolset import wait as wait_module
from toolset.keyboard import press_key
from toolset.navigate import go_back, navigate
from toolset.snapshot import click, hover, select_option, snapshot, type_text
from toolset.tabs import close_tab, list_tabs, new_tab, select_tab
from toolset.wait import wait_for

URL = "https://example.com"


async def _open(context):
    await context.run_tool(navigate, {"url": URL})
    return context.current_tab_or_die().page


@pytest.mark.asyncio
async def test_navigate_reports_code_and_snapshot(context, browser_context):
    result = await context.run_tool(navigate, {"url": URL})

    assert result["isError"] is False
    text = result["content"][-1]["text"]
    assert "# Navigate to https://example.com" in text
    assert "await page.goto('https://example.com')" in text
    assert "- Page Title: Title of https://example.com" in text
    assert '- document "Title of https://example.com"' in text
    assert ("goto", URL) in browser_context.pages[0].events


@pytest.mark.asyncio
async def test_navigation_failure_is_an_error_result(context):
    result = await context.run_tool(navigate, {"url": "bad://host"})

    assert result["isError"] is True
    assert "net::ERR_ABORTED" in result["content"][0]["text"]


@pytest.mark.asyncio
async def test_invalid_arguments_are_reported(context):
    result = await context.run_tool(navigate, {})

    assert result["isError"] is True
    assert result["content"][0]["text"].startswith("Invalid arguments for browser_navigate: url:")


@pytest.mark.asyncio
async def test_interaction_without_tab_fails(context):
    result = await context.run_tool(click, {"element": "Buy", "selector": "#buy"})

    assert result["isError"] is True
    assert "No current snapshot available" in result["content"][0]["text"]


@pytest.mark.asyncio
async def test_snapshot_opens_a_tab(context, browser_context):
    result = await context.run_tool(snapshot, {})

    assert result["isError"] is False
    assert len(browser_context.pages) == 1
    assert "### Page state" in result["content"][-1]["text"]


@pytest.mark.asyncio
async def test_click_waits_for_completion_and_captures(context):
    page = await _open(context)
    page.events.clear()

    result = await context.run_tool(click, {"element": "Buy", "selector": {"role": "button", "text": "Buy"}})

    assert result["isError"] is False
    assert page.events[0] == ("click", "role(button, Buy)", "left")
    assert ("wait_for_load_state", "networkidle", 2000) in page.events
    assert "await page.get_by_role('button', name='Buy').click()" in result["content"][-1]["text"]


@pytest.mark.asyncio
async def test_double_right_click(context):
    page = await _open(context)

    result = await context.run_tool(
        click, {"element": "Row", "selector": "tr", "button": "right", "doubleClick": True}
    )

    assert ("dblclick", "locator(tr)", "right") in page.events
    assert "await page.locator('tr').dblclick(button='right')" in result["content"][-1]["text"]


@pytest.mark.asyncio
async def test_click_failure_is_an_error_result(context):
    page = await _open(context)
    page.fail_selectors.add("locator(#gone)")

    result = await context.run_tool(click, {"element": "Gone", "selector": "#gone"})

    assert result["isError"] is True
    assert result["content"][0]["text"] == "Timeout 10000ms exceeded waiting for locator(#gone)"


@pytest.mark.asyncio
async def test_type_fill_and_submit(context):
    page = await _open(context)

    result = await context.run_tool(
        type_text, {"element": "Search", "selector": {"aria_label": "Search"}, "text": "shoes", "submit": True}
    )

    assert ("fill", "label(Search)", "shoes") in page.events
    assert ("press", "label(Search)", "Enter") in page.events
    code = result["content"][-1]["text"]
    assert "await page.get_by_label('Search').fill('shoes')" in code
    assert "await page.get_by_label('Search').press('Enter')" in code


@pytest.mark.asyncio
async def test_type_slowly(context):
    page = await _open(context)

    await context.run_tool(type_text, {"element": "Name", "selector": "#name", "text": "ab", "slowly": True})

    assert ("press_sequentially", "locator(#name)", "ab") in page.events


@pytest.mark.asyncio
async def test_hover_and_select_option(context):
    page = await _open(context)

    await context.run_tool(hover, {"element": "Menu", "selector": {"test_id": "menu"}})
    await context.run_tool(select_option, {"element": "Size", "selector": "select", "values": ["M", "L"]})

    assert ("hover", "test_id(menu)") in page.events
    assert ("select_option", "locator(select)", ["M", "L"]) in page.events


@pytest.mark.asyncio
async def test_press_key(context):
    page = await _open(context)

    result = await context.run_tool(press_key, {"key": "ArrowDown"})

    assert ("keyboard.press", "ArrowDown") in page.events
    assert "await page.keyboard.press('ArrowDown')" in result["content"][-1]["text"]


@pytest.mark.asyncio
async def test_go_back(context):
    page = await _open(context)

    result = await context.run_tool(go_back, {})

    assert result["isError"] is False
    assert ("go_back",) in page.events


@pytest.mark.asyncio
async def test_wait_for_text(context):
    page = await _open(context)

    result = await context.run_tool(wait_for, {"text": "Done", "textGone": "Loading"})

    assert ("wait_for", "text(Loading).first", "hidden") in page.events
    assert ("wait_for", "text(Done).first", "visible") in page.events
    assert "get_by_text('Done').first.wait_for(state='visible')" in result["content"][-1]["text"]


@pytest.mark.asyncio
async def test_wait_for_time_is_capped(context, monkeypatch):
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    monkeypatch.setattr(wait_module, "asyncio", SimpleNamespace(sleep=fake_sleep))

    result = await context.run_tool(wait_for, {"time": 60})

    assert slept == [10.0]
    assert "await asyncio.sleep(10.0)" in result["content"][-1]["text"]


@pytest.mark.asyncio
async def test_tab_lifecycle(context, browser_context):
    await _open(context)

    opened = await context.run_tool(new_tab, {"url": f"{URL}/two"})
    assert opened["isError"] is False
    assert "- 2: (current) [Title of https://example.com/two]" in opened["content"][-1]["text"]

    listed = await context.run_tool(list_tabs, {})
    assert listed["content"][0]["text"].startswith("### Open tabs")

    await context.run_tool(select_tab, {"index": 1})
    assert context.current_tab_or_die().page is browser_context.pages[0]

    closed = await context.run_tool(close_tab, {"index": 2})
    assert closed["isError"] is False
    assert len(context.tabs()) == 1
    assert browser_context.pages[1].closed is True


@pytest.mark.asyncio
async def test_select_missing_tab(context):
    await _open(context)

    result = await context.run_tool(select_tab, {"index": 5})

    assert result["isError"] is True
    assert result["content"][0]["text"] == "Tab 5 not found"

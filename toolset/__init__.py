"""Browser tools and the batch executor that sequences them."""

from . import batch, keyboard, navigate, snapshot, tabs, wait
from .registry import CapabilityRegistry, registry
from .tool import Tool, ToolActionResult, ToolResult, ToolSchema, define_tool

snapshot_tools = [
    *navigate.tools,
    *snapshot.tools,
    *keyboard.tools,
    *wait.tools,
    *tabs.tools,
    *batch.tools,
]

__all__ = [
    "CapabilityRegistry",
    "Tool",
    "ToolActionResult",
    "ToolResult",
    "ToolSchema",
    "define_tool",
    "registry",
    "snapshot_tools",
]

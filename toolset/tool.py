"""Tool definitions shared by every browser capability."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, List, Literal, Optional, Type

from pydantic import BaseModel

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from runtime.context import Context

ToolType = Literal["readOnly", "destructive"]


def text_content(text: str) -> Dict[str, str]:
    return {"type": "text", "text": text}


@dataclass(slots=True)
class ToolActionResult:
    content: List[Dict[str, str]] = field(default_factory=list)


DeferredAction = Callable[[], Awaitable[Optional[ToolActionResult]]]


@dataclass(slots=True)
class ToolResult:
    """What a tool did: replayable code plus an optional deferred action."""

    code: List[str]
    action: Optional[DeferredAction] = None
    capture_snapshot: bool = False
    wait_for_network: bool = False


@dataclass(frozen=True, slots=True)
class ToolSchema:
    name: str
    title: str
    description: str
    input_schema: Type[BaseModel]
    type: ToolType = "readOnly"

    def to_metadata(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "title": self.title,
            "description": self.description,
            "type": self.type,
            "inputSchema": self.input_schema.model_json_schema(by_alias=True),
        }


Handler = Callable[["Context", Any], Awaitable[ToolResult]]


@dataclass(frozen=True, slots=True)
class Tool:
    schema: ToolSchema
    handle: Handler

    @property
    def name(self) -> str:
        return self.schema.name


def define_tool(
    *,
    name: str,
    title: str,
    description: str,
    input_schema: Type[BaseModel],
    handle: Handler,
    type: ToolType = "readOnly",
) -> Tool:
    return Tool(
        schema=ToolSchema(
            name=name,
            title=title,
            description=description,
            input_schema=input_schema,
            type=type,
        ),
        handle=handle,
    )

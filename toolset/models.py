"""Typed parameter models for the browser tools."""

from __future__ import annotations

from typing import Any, ClassVar, Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

SelectorPriority = Literal["test_id", "css", "role", "text", "aria_label", "xpath"]


class ToolParams(BaseModel):
    """Base class for tool parameters; unknown fields are rejected."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")


class NoParams(ToolParams):
    pass


class Selector(BaseModel):
    """Composite element selector resolved to a Playwright locator."""

    model_config = ConfigDict(extra="forbid")

    css: Optional[str] = None
    xpath: Optional[str] = None
    text: Optional[str] = None
    role: Optional[str] = None
    aria_label: Optional[str] = Field(default=None, alias="aria_label")
    test_id: Optional[str] = Field(default=None, alias="test_id")
    index: Optional[int] = None
    priority: Optional[List[SelectorPriority]] = None

    _DEFAULT_PRIORITY: ClassVar[Tuple[SelectorPriority, ...]] = (
        "test_id",
        "css",
        "role",
        "text",
        "aria_label",
        "xpath",
    )

    @model_validator(mode="before")
    @classmethod
    def _coerce_plain_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            return {"css": value}
        return value

    @model_validator(mode="after")
    def _require_strategy(self) -> "Selector":
        if all(getattr(self, name) is None for name in self._DEFAULT_PRIORITY):
            raise ValueError("selector needs at least one of css, xpath, text, role, aria_label or test_id")
        return self

    @field_validator("index")
    @classmethod
    def _validate_index(cls, value: Optional[int]) -> Optional[int]:
        if value is None:
            return value
        if value < 0:
            raise ValueError("index must be >= 0")
        return value

    @field_validator("priority")
    @classmethod
    def _validate_priority(
        cls, value: Optional[Sequence[SelectorPriority]]
    ) -> Optional[List[SelectorPriority]]:
        if value is None:
            return None
        ordered: List[SelectorPriority] = []
        for item in value:
            if item not in ordered:
                ordered.append(item)
        return ordered

    def effective_priority(self) -> Tuple[SelectorPriority, ...]:
        if self.priority:
            return tuple(self.priority)
        return self._DEFAULT_PRIORITY

    def _locator_call(self) -> Tuple[str, Tuple[Any, ...], Dict[str, Any]]:
        for strategy in self.effective_priority():
            value = getattr(self, strategy)
            if value is None:
                continue
            if strategy == "css":
                return "locator", (value,), {}
            if strategy == "xpath":
                return "locator", (f"xpath={value}",), {}
            if strategy == "role":
                kwargs = {"name": self.text} if self.text is not None else {}
                return "get_by_role", (value,), kwargs
            if strategy == "text":
                return "get_by_text", (value,), {}
            if strategy == "aria_label":
                return "get_by_label", (value,), {}
            if strategy == "test_id":
                return "get_by_test_id", (value,), {}
        # Priority lists may omit every populated strategy.
        raise ValueError("selector priority does not include any populated strategy")

    def to_locator(self, page: Any) -> Any:
        method, args, kwargs = self._locator_call()
        locator = getattr(page, method)(*args, **kwargs)
        if self.index is not None:
            locator = locator.nth(self.index)
        return locator

    def to_code(self) -> str:
        method, args, kwargs = self._locator_call()
        rendered = [repr(arg) for arg in args]
        rendered.extend(f"{key}={value!r}" for key, value in kwargs.items())
        code = f"page.{method}({', '.join(rendered)})"
        if self.index is not None:
            code += f".nth({self.index})"
        return code


class NavigateParams(ToolParams):
    url: str = Field(description="The URL to navigate to")


class ElementParams(ToolParams):
    element: str = Field(description="Human-readable element description used to obtain permission to interact with the element")
    selector: Selector = Field(
        alias="selector",
        validation_alias=AliasChoices("selector", "target"),
        description="How to locate the element on the page",
    )


class ClickParams(ElementParams):
    button: Literal["left", "right", "middle"] = "left"
    double_click: bool = Field(
        default=False,
        alias="doubleClick",
        validation_alias=AliasChoices("doubleClick", "double_click"),
    )


class HoverParams(ElementParams):
    pass


class TypeParams(ElementParams):
    text: str = Field(description="Text to type into the element")
    submit: bool = Field(default=False, description="Whether to press Enter after typing")
    slowly: bool = Field(default=False, description="Type one character at a time")


class SelectOptionParams(ElementParams):
    values: List[str] = Field(min_length=1, description="Values to select in the dropdown")


class PressKeyParams(ToolParams):
    key: str = Field(min_length=1, description="Name of the key to press or a character to generate, such as `ArrowLeft` or `a`")


class WaitForParams(ToolParams):
    time: Optional[float] = Field(default=None, ge=0, description="The time to wait in seconds")
    text: Optional[str] = Field(default=None, description="The text to wait for")
    text_gone: Optional[str] = Field(
        default=None,
        alias="textGone",
        validation_alias=AliasChoices("textGone", "text_gone"),
        description="The text to wait for to disappear",
    )

    @model_validator(mode="after")
    def _require_condition(self) -> "WaitForParams":
        if self.time is None and self.text is None and self.text_gone is None:
            raise ValueError("Either time, text or textGone must be provided")
        return self


class TabNewParams(ToolParams):
    url: Optional[str] = Field(default=None, description="The URL to navigate to in the new tab")


class TabSelectParams(ToolParams):
    index: int = Field(ge=1, description="The index of the tab to select (1-based)")


class TabCloseParams(ToolParams):
    index: Optional[int] = Field(default=None, ge=1, description="The index of the tab to close; closes the current tab if omitted")

"""Batch execution of browser tools with partial-failure semantics.

``browser_batch_execute`` runs an ordered list of tool calls against the shared
browser context.  Every step is attributed its own outcome; a failing step does
not abort the batch (unless ``continueOnError`` is false) and the tool itself
never reports an error status.  After the steps ran, the page is given time to
settle and a final snapshot is appended to the report.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError

from runtime.config import BrowserConfig
from runtime.structured_logging import StructuredLogger, prepare_log_paths

from .errors import (
    BatchError,
    CapabilityExecutionError,
    CapabilityNotFound,
    InvalidParameters,
    SettlingPhaseWarning,
    error_message,
    format_validation_error,
)
from .navigate import NAVIGATE_TOOL_NAME
from .registry import CapabilityRegistry, registry
from .tool import Tool, ToolActionResult, ToolResult, define_tool, text_content

if TYPE_CHECKING:  # pragma: no cover - import cycle guard
    from runtime.context import Context

log = logging.getLogger(__name__)

MAX_BATCH_OPERATIONS = 20
STEP_SKIPPED = "STEP_SKIPPED"


class BatchOperation(BaseModel):
    """One tool call inside a batch."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    tool_name: str = Field(
        alias="toolName",
        validation_alias=AliasChoices("toolName", "tool_name"),
        description='The schema name of the tool to execute (e.g. "browser_click", "browser_navigate", "browser_wait_for")',
    )
    params: Dict[str, Any] = Field(
        description="Tool-specific parameters as key-value pairs. Must match the tool's input schema.",
    )
    description: Optional[str] = Field(
        default=None,
        description="Optional human-readable description for this operation (for logging purposes)",
    )

    @property
    def label(self) -> str:
        return self.description or self.tool_name


class BatchExecuteParams(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    operations: List[BatchOperation] = Field(
        min_length=1,
        max_length=MAX_BATCH_OPERATIONS,
        description=f"Sequence of tool operations to execute (1-{MAX_BATCH_OPERATIONS} operations)",
    )
    continue_on_error: bool = Field(
        default=True,
        alias="continueOnError",
        validation_alias=AliasChoices("continueOnError", "continue_on_error"),
        description="Continue executing remaining operations if one fails (partial success mode)",
    )


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    tool_result: Optional[ToolResult] = None
    action_result: Optional[ToolActionResult] = None


@dataclass(frozen=True, slots=True)
class StepOutcome:
    """Result of one batch step, tagged with its position in the request."""

    index: int
    operation: BatchOperation
    success: bool
    error: Optional[str] = None
    error_code: Optional[str] = None
    tool_result: Optional[ToolResult] = None
    action_result: Optional[ToolActionResult] = None
    skipped: bool = False

    @property
    def label(self) -> str:
        return self.operation.label


@dataclass(frozen=True, slots=True)
class BatchOutcome:
    total: int
    success_count: int
    steps: Tuple[StepOutcome, ...]
    is_partial: bool

    @classmethod
    def from_steps(cls, steps: Sequence[StepOutcome]) -> "BatchOutcome":
        ordered = tuple(steps)
        success_count = sum(1 for step in ordered if step.success)
        return cls(
            total=len(ordered),
            success_count=success_count,
            steps=ordered,
            is_partial=0 < success_count < len(ordered),
        )

    def failures(self) -> List[StepOutcome]:
        return [step for step in self.steps if not step.success]

    def successes(self) -> List[StepOutcome]:
        return [step for step in self.steps if step.success]


class OperationExecutor:
    """Runs a single batch operation; failures are returned, never raised."""

    def __init__(self, context: "Context", capabilities: CapabilityRegistry) -> None:
        self.context = context
        self.capabilities = capabilities

    async def execute(self, operation: BatchOperation) -> ExecutionResult:
        try:
            tool = self._lookup(operation.tool_name)
            params = self._validate(tool, operation.params)
            tool_result = await self._invoke(tool, params)
            action_result = await self._run_deferred(tool_result)
        except BatchError as exc:
            log.warning("Batch step %s failed [%s]: %s", operation.tool_name, exc.code, exc.message)
            return ExecutionResult(success=False, error=exc.message, error_code=exc.code)
        except Exception as exc:
            message = error_message(exc)
            log.warning("Batch step %s failed: %s", operation.tool_name, message)
            return ExecutionResult(success=False, error=message, error_code=CapabilityExecutionError.code)
        return ExecutionResult(success=True, tool_result=tool_result, action_result=action_result)

    def _lookup(self, name: str) -> Tool:
        tool = self.capabilities.get(name)
        if tool is None:
            available = ", ".join(self.capabilities.names())
            raise CapabilityNotFound(f'Tool "{name}" not found in registry. Available tools: {available}')
        return tool

    def _validate(self, tool: Tool, params: Dict[str, Any]) -> BaseModel:
        try:
            return tool.schema.input_schema.model_validate(params)
        except ValidationError as exc:
            raise InvalidParameters(format_validation_error(exc), details={"tool": tool.name}) from exc

    async def _invoke(self, tool: Tool, params: BaseModel) -> ToolResult:
        try:
            return await tool.handle(self.context, params)
        except Exception as exc:
            raise CapabilityExecutionError(error_message(exc)) from exc

    async def _run_deferred(self, tool_result: ToolResult) -> Optional[ToolActionResult]:
        if tool_result.action is None:
            return None
        try:
            return await tool_result.action()
        except Exception as exc:
            raise CapabilityExecutionError(error_message(exc)) from exc


class BatchRunner:
    """Drives the executor over an ordered list of operations."""

    def __init__(self, executor: OperationExecutor, *, event_log: Optional[StructuredLogger] = None) -> None:
        self.executor = executor
        self.event_log = event_log

    async def run(self, operations: Sequence[BatchOperation], *, continue_on_error: bool = True) -> BatchOutcome:
        steps: List[StepOutcome] = []
        failed_at: Optional[int] = None
        for index, operation in enumerate(operations):
            if failed_at is not None:
                step = StepOutcome(
                    index=index,
                    operation=operation,
                    success=False,
                    error=f"Skipped: step {failed_at + 1} failed and continueOnError is false",
                    error_code=STEP_SKIPPED,
                    skipped=True,
                )
            else:
                result = await self.executor.execute(operation)
                step = StepOutcome(
                    index=index,
                    operation=operation,
                    success=result.success,
                    error=result.error,
                    error_code=result.error_code,
                    tool_result=result.tool_result,
                    action_result=result.action_result,
                )
                if not result.success and not continue_on_error:
                    failed_at = index
            steps.append(step)
            self._record(step)

        outcome = BatchOutcome.from_steps(steps)
        log.info("Batch finished: %d/%d operations succeeded", outcome.success_count, outcome.total)
        return outcome

    def _record(self, step: StepOutcome) -> None:
        if self.event_log is None:
            return
        try:
            self.event_log.log_step(
                index=step.index,
                tool_name=step.operation.tool_name,
                params=step.operation.params,
                success=step.success,
                error=step.error,
                error_code=step.error_code,
                description=step.operation.description,
            )
        except OSError as exc:
            log.warning("Batch event log disabled after write failure at step %d: %s", step.index + 1, exc)
            self.event_log.close()
            self.event_log = None


def format_batch_result(outcome: BatchOutcome, available_tools: Sequence[str]) -> str:
    """Render the batch outcome as a markdown report."""

    lines: List[str] = []
    failures = outcome.failures()
    successes = outcome.successes()

    if outcome.success_count == outcome.total:
        lines.append(f"✅ All {outcome.total} operations completed successfully")
    elif outcome.success_count > 0:
        lines.append(f"⚠️ Partial success: {outcome.success_count}/{outcome.total} operations completed")
        lines.append(f"\n**Successful operations:** {outcome.success_count}")
        lines.append(f"**Failed operations:** {len(failures)}")
    else:
        lines.append("❌ All operations failed")

    if failures:
        lines.append("\n**Error details:**")
        for step in failures:
            lines.append(f"- Step {step.index + 1} ({step.label}): {step.error}")

    if failures and successes:
        lines.append("\n**Successful steps:**")
        for step in successes:
            lines.append(f"- Step {step.index + 1} ({step.label}): ✅ Completed")

    if failures:
        lines.append("\n**Recommendation:** Use individual browser tools to retry failed operations manually.")

    lines.append(f"\n**Available tools:** {', '.join(sorted(available_tools))}")
    return "\n".join(lines)


def generate_batch_code(outcome: BatchOutcome) -> List[str]:
    """Concatenate each successful step's code; failed steps become comments."""

    code = [f"# Batch sequence execution: {outcome.success_count}/{outcome.total} completed"]
    for step in outcome.steps:
        if step.success and step.tool_result is not None:
            code.extend(step.tool_result.code)
        elif not step.success:
            code.append(f"# FAILED: {step.label} - {step.error}")
    return code


def contains_navigation(operations: Sequence[BatchOperation]) -> bool:
    return any(operation.tool_name == NAVIGATE_TOOL_NAME for operation in operations)


async def _wait_and_capture(
    context: "Context",
    operations: Sequence[BatchOperation],
    config: BrowserConfig,
) -> List[Dict[str, str]]:
    tab = context.current_tab_or_die()
    if contains_navigation(operations):
        log.info("Navigation detected. Waiting for network to be idle...")
        await tab.wait_for_network_idle(config.network_idle_timeout_ms)
        log.info("Network is idle.")
    else:
        log.info("Interaction detected. Applying a short wait for UI to settle...")
        await tab.wait_for_timeout(config.settle_delay_ms)

    log.info("Capturing final snapshot...")
    tab = context.current_tab_or_die()
    await tab.capture_snapshot()
    if tab.has_snapshot():
        return [text_content(tab.snapshot_or_die().text())]
    return []


async def settle_after_batch(
    context: "Context",
    operations: Sequence[BatchOperation],
    config: Optional[BrowserConfig] = None,
) -> List[Dict[str, str]]:
    """Wait for the page to settle and capture a final snapshot.

    Returns the content blocks to append to the batch report.  Failures are
    turned into a single warning block and never propagate.
    """

    try:
        return await _wait_and_capture(context, operations, config or context.config)
    except Exception as exc:
        warning = SettlingPhaseWarning(error_message(exc))
        log.warning("Settling phase failed [%s]: %s", warning.code, warning.message)
        return [
            text_content(
                f"\n⚠️ Warning: Failed during intelligent wait or snapshot capture: {warning.message}"
            )
        ]


def _open_event_log(config: BrowserConfig) -> Optional[StructuredLogger]:
    if config.log_root is None:
        return None
    run_id = f"batch-{uuid.uuid4().hex[:8]}"
    try:
        return StructuredLogger(run_id, prepare_log_paths(run_id, config.log_root))
    except OSError as exc:
        log.warning("Cannot open batch event log under %s: %s", config.log_root, exc)
        return None


async def _handle_batch(context: "Context", params: BatchExecuteParams) -> ToolResult:
    capabilities = registry
    executor = OperationExecutor(context, capabilities)
    event_log = _open_event_log(context.config)
    try:
        outcome = await BatchRunner(executor, event_log=event_log).run(
            params.operations,
            continue_on_error=params.continue_on_error,
        )
    finally:
        if event_log is not None:
            event_log.close()

    code = generate_batch_code(outcome)
    settled_content = await settle_after_batch(context, params.operations)

    async def action() -> Optional[ToolActionResult]:
        report = format_batch_result(outcome, capabilities.names())
        return ToolActionResult(content=[text_content(report), *settled_content])

    return ToolResult(code=code, action=action, capture_snapshot=False, wait_for_network=True)


batch_execute = define_tool(
    name="browser_batch_execute",
    title="Execute Tool Sequence",
    description=(
        "Execute a sequence of any available browser tools in a single call. "
        "Failed steps do not stop the sequence; the report lists every failure by step. "
        "The tool waits for the page to stabilize before capturing a final snapshot."
    ),
    input_schema=BatchExecuteParams,
    handle=_handle_batch,
    type="destructive",
)

tools = [batch_execute]

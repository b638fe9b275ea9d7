"""Error taxonomy for tool dispatch and batch execution."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import ValidationError


class BatchError(Exception):
    """Base class for failures attributed to a single batch step."""

    code = "BATCH_ERROR"

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class CapabilityNotFound(BatchError):
    code = "CAPABILITY_NOT_FOUND"


class InvalidParameters(BatchError):
    code = "INVALID_PARAMETERS"


class CapabilityExecutionError(BatchError):
    code = "CAPABILITY_EXECUTION_ERROR"


class SettlingPhaseWarning(BatchError):
    """Non-fatal failure while waiting for the page or capturing the final snapshot."""

    code = "SETTLING_PHASE_WARNING"


def error_message(exc: BaseException) -> str:
    """Return the message of ``exc``, falling back to its class name."""

    if isinstance(exc, BatchError):
        return exc.message
    text = str(exc)
    return text or exc.__class__.__name__


def format_validation_error(exc: ValidationError) -> str:
    """Render pydantic errors as ``field.path: message`` entries."""

    parts = []
    for entry in exc.errors():
        location = ".".join(str(item) for item in entry.get("loc", ())) or "(root)"
        parts.append(f"{location}: {entry.get('msg', 'invalid value')}")
    return "; ".join(parts) or str(exc)

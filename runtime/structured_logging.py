"""Structured logging utilities for batch runs."""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

log = logging.getLogger(__name__)


@dataclass(slots=True)
class LogPaths:
    base: Path
    events: Path


class StructuredLogger:
    """Writes one JSONL event per executed batch step."""

    def __init__(self, run_id: str, paths: LogPaths) -> None:
        self.run_id = run_id
        self.paths = paths
        self._events_file = paths.events.open("a", encoding="utf-8")

    def log_step(
        self,
        *,
        index: int,
        tool_name: str,
        params: Dict[str, Any],
        success: bool,
        error: Optional[str] = None,
        error_code: Optional[str] = None,
        description: Optional[str] = None,
    ) -> None:
        payload = {
            "ts": time.time(),
            "run_id": self.run_id,
            "step": index + 1,
            "tool": tool_name,
            "description": description,
            "params": params,
            "success": success,
            "error": error,
            "error_code": error_code,
        }
        self._events_file.write(json.dumps(payload, ensure_ascii=False, default=str) + "\n")
        self._events_file.flush()

    def close(self) -> None:
        try:
            self._events_file.close()
        except OSError as exc:
            log.debug("Closing event log for %s failed: %s", self.run_id, exc)


def prepare_log_paths(run_id: str, log_root: Path) -> LogPaths:
    base_dir = log_root / run_id
    base_dir.mkdir(parents=True, exist_ok=True)
    return LogPaths(base=base_dir, events=base_dir / "events.jsonl")

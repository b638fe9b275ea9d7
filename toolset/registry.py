"""Capability registry used by the batch executor.

The registry is built once, on first use, from an enumeration of tools and is
read-only afterwards.  Tools carrying the batch prefix are left out so a batch
can never dispatch to itself.
"""

from __future__ import annotations

import logging
import threading
from types import MappingProxyType
from typing import Callable, Iterable, List, Mapping, Optional

from .tool import Tool

log = logging.getLogger(__name__)

BATCH_TOOL_PREFIX = "browser_batch_"

ToolSource = Callable[[], Iterable[Tool]]


class CapabilityRegistry:
    """Lazily built, lock-protected mapping from tool name to :class:`Tool`."""

    def __init__(self, source: ToolSource, *, exclude_prefix: str = BATCH_TOOL_PREFIX) -> None:
        self._source = source
        self._exclude_prefix = exclude_prefix
        self._lock = threading.Lock()
        self._entries: Optional[Mapping[str, Tool]] = None

    @property
    def is_built(self) -> bool:
        return self._entries is not None

    def resolve(self) -> Mapping[str, Tool]:
        entries = self._entries
        if entries is not None:
            return entries
        with self._lock:
            if self._entries is None:
                self._entries = self._build()
            return self._entries

    def _build(self) -> Mapping[str, Tool]:
        entries = {}
        for tool in self._source():
            name = tool.schema.name
            if name.startswith(self._exclude_prefix):
                continue
            entries[name] = tool
        log.debug("Capability registry built with %d tools", len(entries))
        return MappingProxyType(entries)

    def get(self, name: str) -> Optional[Tool]:
        return self.resolve().get(name)

    def names(self) -> List[str]:
        return sorted(self.resolve())


def _load_snapshot_tools() -> Iterable[Tool]:
    # Imported here: the package imports the batch tool, which imports this module.
    from toolset import snapshot_tools

    return snapshot_tools


registry = CapabilityRegistry(_load_snapshot_tools)

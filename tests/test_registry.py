from __future__ import annotations

import threading
import time

import pytest
from pydantic import BaseModel

from toolset.registry import CapabilityRegistry, registry as default_registry
from toolset.tool import ToolResult, define_tool


class _Params(BaseModel):
    pass


async def _noop(context, params):  # pragma: no cover - never invoked here
    return ToolResult(code=[])


def _tool(name: str):
    return define_tool(name=name, title=name, description=name, input_schema=_Params, handle=_noop)


def test_resolve_builds_once_and_caches():
    calls = []

    def source():
        calls.append(1)
        return [_tool("browser_b"), _tool("browser_a")]

    capabilities = CapabilityRegistry(source)
    assert not capabilities.is_built

    first = capabilities.resolve()
    second = capabilities.resolve()

    assert first is second
    assert len(calls) == 1
    assert capabilities.names() == ["browser_a", "browser_b"]


def test_batch_tools_are_excluded():
    capabilities = CapabilityRegistry(
        lambda: [_tool("browser_navigate"), _tool("browser_batch_execute"), _tool("browser_batch_other")]
    )

    assert capabilities.names() == ["browser_navigate"]
    assert capabilities.get("browser_batch_execute") is None


def test_resolved_mapping_is_read_only():
    capabilities = CapabilityRegistry(lambda: [_tool("browser_navigate")])

    with pytest.raises(TypeError):
        capabilities.resolve()["browser_click"] = _tool("browser_click")  # type: ignore[index]


def test_concurrent_first_use_builds_once():
    calls = []

    def slow_source():
        calls.append(1)
        time.sleep(0.05)
        return [_tool("browser_navigate")]

    capabilities = CapabilityRegistry(slow_source)
    results = []

    def worker():
        results.append(capabilities.resolve())

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert len(calls) == 1
    assert len(results) == 8
    assert all(result is results[0] for result in results)


def test_source_failure_propagates_and_is_retried():
    attempts = []

    def flaky_source():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("enumeration failed")
        return [_tool("browser_snapshot")]

    capabilities = CapabilityRegistry(flaky_source)

    with pytest.raises(RuntimeError, match="enumeration failed"):
        capabilities.resolve()
    assert not capabilities.is_built

    assert capabilities.names() == ["browser_snapshot"]


def test_default_registry_lists_browser_tools_without_batch():
    names = default_registry.names()

    assert "browser_navigate" in names
    assert "browser_snapshot" in names
    assert "browser_tab_new" in names
    assert "browser_batch_execute" not in names
    assert names == sorted(names)

"""HTTP surface exposing the browser tools.

``GET /tools`` lists tool schemas and ``POST /tools/call`` runs one tool
against the process-wide browser :class:`~runtime.context.Context`.
"""

from __future__ import annotations

import argparse
import asyncio
import atexit
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import HTTPException

from toolset import snapshot_tools

from .config import load_config
from .context import Context

app = Flask(__name__)
logging.basicConfig(level=logging.INFO)
log = logging.getLogger("tools")

LOOP = asyncio.new_event_loop()

_context: Context | None = None
_TOOLS = {tool.schema.name: tool for tool in snapshot_tools}


def _run(coro):
    return LOOP.run_until_complete(coro)


def _get_context() -> Context:
    global _context
    if _context is None:
        _context = Context(load_config())
    return _context


@atexit.register
def _shutdown_context() -> None:  # pragma: no cover - shutdown path
    context = _context
    if context is None or LOOP.is_closed():
        return
    try:
        _run(context.close())
    except Exception as exc:
        log.debug("Browser context shutdown failed: %s", exc)


@app.errorhandler(Exception)
def handle_exception(error):  # pragma: no cover - catch-all handler
    if isinstance(error, HTTPException):
        return error
    correlation_id = str(uuid.uuid4())[:8]
    log.exception("[%s] Uncaught exception: %s", correlation_id, error)
    return jsonify(
        {
            "content": [{"type": "text", "text": f"[{correlation_id}] Internal failure - {error}"}],
            "isError": True,
            "correlation_id": correlation_id,
        }
    ), 500


@app.get("/healthz")
def health():
    return jsonify({"status": "ok", "tools": len(_TOOLS)})


@app.get("/tools")
def list_tools():
    return jsonify({"tools": [tool.schema.to_metadata() for tool in _TOOLS.values()]})


@app.post("/tools/call")
def call_tool():
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    name = str(data.get("name") or "").strip()
    if not name:
        return jsonify({"error": "tool name missing"}), 400
    tool = _TOOLS.get(name)
    if tool is None:
        return jsonify({"error": f'Tool "{name}" not found'}), 404
    arguments = data.get("arguments") or {}
    if not isinstance(arguments, dict):
        return jsonify({"error": "arguments must be an object"}), 400

    result = _run(_get_context().run_tool(tool, arguments))
    if result.get("isError"):
        log.info("Tool %s returned an error result", name)
    return jsonify(result)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Serve the browser tools over HTTP")
    parser.add_argument("--config", type=Path, default=None, help="Path to a TOML config file")
    parser.add_argument("--host", default=None)
    parser.add_argument("--port", type=int, default=None)
    args = parser.parse_args(argv)

    global _context
    config = load_config(args.config)
    _context = Context(config)
    app.run(host=args.host or config.host, port=args.port or config.port, threaded=False)


if __name__ == "__main__":  # pragma: no cover - manual entry point
    main()

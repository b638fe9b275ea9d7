"""Configuration loader for the browser tool runtime."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


ENV_PREFIX = "PWTOOLS_"

DEFAULTS: Dict[str, Any] = {
    "headless": True,
    "cdp_endpoint": None,
    "navigation_timeout_ms": 30000,
    "action_timeout_ms": 10000,
    "network_idle_timeout_ms": 10000,
    "settle_delay_ms": 300,
    "completion_timeout_ms": 2000,
    "log_root": None,
    "host": "127.0.0.1",
    "port": 7790,
}


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1", "yes", "on"}


def _as_optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(slots=True)
class BrowserConfig:
    headless: bool = DEFAULTS["headless"]
    cdp_endpoint: Optional[str] = DEFAULTS["cdp_endpoint"]
    navigation_timeout_ms: int = DEFAULTS["navigation_timeout_ms"]
    action_timeout_ms: int = DEFAULTS["action_timeout_ms"]
    network_idle_timeout_ms: int = DEFAULTS["network_idle_timeout_ms"]
    settle_delay_ms: int = DEFAULTS["settle_delay_ms"]
    completion_timeout_ms: int = DEFAULTS["completion_timeout_ms"]
    log_root: Optional[Path] = DEFAULTS["log_root"]
    host: str = DEFAULTS["host"]
    port: int = DEFAULTS["port"]

    @classmethod
    def from_mapping(cls, mapping: Dict[str, Any]) -> "BrowserConfig":
        data = dict(DEFAULTS)
        data.update(mapping)
        log_root = _as_optional_str(data.get("log_root"))
        return cls(
            headless=_as_bool(data["headless"]),
            cdp_endpoint=_as_optional_str(data["cdp_endpoint"]),
            navigation_timeout_ms=int(data["navigation_timeout_ms"]),
            action_timeout_ms=int(data["action_timeout_ms"]),
            network_idle_timeout_ms=int(data["network_idle_timeout_ms"]),
            settle_delay_ms=int(data["settle_delay_ms"]),
            completion_timeout_ms=int(data["completion_timeout_ms"]),
            log_root=Path(log_root) if log_root else None,
            host=str(data["host"]),
            port=int(data["port"]),
        )

    @classmethod
    def from_env(cls, environ: Mapping[str, str], *, base: Optional[Dict[str, Any]] = None) -> "BrowserConfig":
        """Build a config from `base` with `PWTOOLS_<FIELD>` variables taking precedence."""

        overrides = {
            key[len(ENV_PREFIX):].lower(): value
            for key, value in environ.items()
            if key.startswith(ENV_PREFIX)
        }
        return cls.from_mapping({**(base or {}), **overrides})


def _browser_table(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with path.open("rb") as fh:
        return tomllib.load(fh).get("browser", {})


def load_config(config_path: Path | None = None) -> BrowserConfig:
    """Defaults, then the `[browser]` table of config.toml, then PWTOOLS_* variables."""

    return BrowserConfig.from_env(os.environ, base=_browser_table(config_path or Path("config.toml")))

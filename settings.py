from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional


_NODESRV_ENV = "GRIDEYE_NODESRV"
_LOCAL_SERVER_ENV = "GRIDEYE_LOCAL_SERVER"
_BASE_DIR_ENV = "GRIDEYE_BASE_DIR"
_CHANNEL_ENV = "GRIDEYE_CHANNEL"
_NODE_NAME_ENV = "GRIDEYE_NODE_NAME"
_BACKOFF_ENV = "GRIDEYE_RECONNECT_BACKOFF"
_MAX_RECONNECTS_ENV = "GRIDEYE_MAX_RECONNECTS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_BASE_DIR = "default"


@dataclass(frozen=True)
class Settings:
    nodesrv: str
    local_server: Optional[str]
    base_dir: str
    channel: str
    node_name: str
    reconnect_backoff: float
    max_reconnects: Optional[int]
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_optional_env(name: str, default: Optional[str]) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or None


def _read_backoff(default: float) -> float:
    value = os.getenv(_BACKOFF_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _read_max_reconnects(default: Optional[int]) -> Optional[int]:
    value = os.getenv(_MAX_RECONNECTS_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


def resolve_base_dir(base_dir: str) -> Path:
    """Map the ``default`` placeholder to ``./store`` under the working directory."""
    if base_dir == DEFAULT_BASE_DIR:
        return Path.cwd() / "store"
    return Path(base_dir)


@lru_cache
def get_settings() -> Settings:
    return Settings(
        nodesrv=_read_str_env(_NODESRV_ENV, "http://127.0.0.1:9990"),
        local_server=_read_optional_env(_LOCAL_SERVER_ENV, None),
        base_dir=_read_str_env(_BASE_DIR_ENV, DEFAULT_BASE_DIR),
        channel=_read_str_env(_CHANNEL_ENV, "grideye"),
        node_name=_read_str_env(_NODE_NAME_ENV, "GridEyeStore"),
        reconnect_backoff=_read_backoff(5.0),
        max_reconnects=_read_max_reconnects(None),
        log_level=_read_log_level("INFO"),
    )

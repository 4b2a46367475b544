"""Framework-wide settings, optionally overridden from a JSON file."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

DEFAULT_CONFIG_PATH = "conf/zinx.json"

_UINT32_MAX = 0xFFFFFFFF

# JSON keys are matched case-insensitively against these names.
_JSON_KEYS = {
    "host": "host",
    "tcpport": "tcp_port",
    "name": "name",
    "version": "version",
    "maxconn": "max_conn",
    "maxpackagesize": "max_package_size",
    "workerpoolsize": "worker_pool_size",
    "maxworkertasklen": "max_worker_task_len",
}
_STRING_FIELDS = frozenset({"host", "name", "version"})
_UNSIGNED_FIELDS = frozenset({"max_package_size", "worker_pool_size", "max_worker_task_len"})


@dataclass
class GlobalConfig:
    """Server and framework parameters shared by all components."""

    host: str = "0.0.0.0"
    tcp_port: int = 8999
    name: str = "ZinxServerApp"
    version: str = "v1.8.0"
    max_conn: int = 1024
    max_package_size: int = 4096
    worker_pool_size: int = 10
    max_worker_task_len: int = 1024

    def reload(self, path: str | Path = DEFAULT_CONFIG_PATH) -> None:
        """Override settings from the JSON file at ``path``; a missing file is ignored."""
        file = Path(path)
        if not file.exists():
            return
        raw = json.loads(file.read_text(encoding="utf-8"))
        if raw is None:
            return
        if not isinstance(raw, dict):
            raise TypeError(f"configuration must be a JSON object, got {type(raw).__name__}")

        updates: dict[str, Any] = {}
        for key, value in raw.items():
            field_name = _JSON_KEYS.get(key.lower())
            if field_name is None or value is None:
                continue
            updates[field_name] = _checked(field_name, value)

        for field_name, value in updates.items():
            setattr(self, field_name, value)

    def copy(self) -> GlobalConfig:
        """Return an independent copy of these settings."""
        return replace(self)


def _checked(field_name: str, value: Any) -> Any:
    if field_name in _STRING_FIELDS:
        if not isinstance(value, str):
            raise TypeError(f"{field_name} must be a string, got {value!r}")
        return value
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{field_name} must be an integer, got {value!r}")
    if field_name in _UNSIGNED_FIELDS and not 0 <= value <= _UINT32_MAX:
        raise ValueError(f"{field_name} out of range: {value}")
    return value


def load_config(path: str | Path = DEFAULT_CONFIG_PATH) -> GlobalConfig:
    """Build the default configuration and apply the file at ``path`` if it exists."""
    config = GlobalConfig()
    config.reload(path)
    return config
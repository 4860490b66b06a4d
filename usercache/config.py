"""Configuration management for the user directory service."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_LOG_LEVEL = "info"

_LOG_LEVELS = {"critical", "error", "warning", "info", "debug"}
_KNOWN_KEYS = {"database_path", "host", "port", "log_level"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service."""

    database_path: Path
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = DEFAULT_LOG_LEVEL

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "Settings":
        """Create :class:`Settings` from raw dictionary data."""
        unknown = set(data.keys()) - _KNOWN_KEYS
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        raw_db_path = data.get("database_path")
        if raw_db_path:
            candidate = Path(str(raw_db_path)).expanduser()
            if not candidate.is_absolute() and base_path is not None:
                candidate = base_path / candidate
            database_path = candidate.resolve(strict=False)
        else:
            database_path = resolve_database_path(None)

        try:
            port = int(data.get("port", DEFAULT_PORT))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Invalid port: {data.get('port')!r}") from exc
        if not 0 < port < 65536:
            raise ValueError(f"Port must be between 1 and 65535, got {port}")

        log_level = str(data.get("log_level", DEFAULT_LOG_LEVEL)).strip().lower()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level: {log_level}")

        host = str(data.get("host", DEFAULT_HOST)).strip() or DEFAULT_HOST

        return Settings(database_path=database_path, host=host, port=port, log_level=log_level)


def _read_config_file(config_path: Path) -> Dict[str, object]:
    with config_path.open("r", encoding="utf-8") as handle:
        raw = yaml.safe_load(handle) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {config_path} must contain a mapping")
    return dict(raw)


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, object]:
    mapping = {
        "USERCACHE_DB_PATH": "database_path",
        "USERCACHE_HOST": "host",
        "USERCACHE_PORT": "port",
        "USERCACHE_LOG_LEVEL": "log_level",
    }
    return {key: environ[name] for name, key in mapping.items() if environ.get(name)}


def load_settings(
    config_path: Optional[Path] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: object,
) -> Settings:
    """Build settings from a YAML file, the environment and explicit overrides.

    Later sources win: file, then ``USERCACHE_*`` environment variables, then
    keyword overrides whose value is not ``None``.
    """
    env = os.environ if environ is None else environ

    if config_path is None and env.get("USERCACHE_CONFIG"):
        config_path = Path(env["USERCACHE_CONFIG"]).expanduser()

    data: Dict[str, object] = {}
    if config_path is not None:
        file_data = _read_config_file(config_path)
        raw_db_path = file_data.get("database_path")
        if raw_db_path:
            # Relative paths in the file are relative to the file itself.
            base_path = config_path.resolve(strict=False).parent
            file_data["database_path"] = base_path / Path(str(raw_db_path)).expanduser()
        data.update(file_data)

    data.update(_env_overrides(env))
    data.update({key: value for key, value in overrides.items() if value is not None})
    return Settings.from_dict(data)


__all__ = ["Settings", "load_settings", "DEFAULT_HOST", "DEFAULT_PORT", "DEFAULT_LOG_LEVEL"]

"""ProGuardian config defaults.

No side effects on import. Values can be overridden via PROGUARDIAN_* env vars.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

_PREFIX = "PROGUARDIAN_"


def _env(name: str, default: str) -> str:
    if not name.startswith(_PREFIX):
        raise ValueError(f"Only {_PREFIX}* env vars are allowed, got: {name}")
    return os.getenv(name, default)


def _env_bool(name: str, default: bool) -> bool:
    raw = _env(name, str(default))
    return raw.lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = _env(name, str(default))
    try:
        return int(raw, 0)
    except Exception:
        return default


def _env_float(name: str, default: float) -> float:
    raw = _env(name, str(default))
    try:
        return float(raw)
    except Exception:
        return default


def _env_size_bytes(name: str, default_bytes: int) -> int:
    """Parse a size with an optional unit suffix (b, kb, mb) and return bytes."""
    raw = _env(name, str(default_bytes)).strip().lower()
    try:
        if raw.isdigit():
            return int(raw)
        if raw.endswith("mb"):
            return int(float(raw[:-2]) * 1024 * 1024)
        if raw.endswith("kb"):
            return int(float(raw[:-2]) * 1024)
        if raw.endswith("b"):
            return int(raw[:-1])
        return int(float(raw))
    except Exception:
        return default_bytes


@dataclass(frozen=True)
class FileDefaults:
    max_read_bytes: int = _env_size_bytes("PROGUARDIAN_MAX_READ_SIZE", 10 * 1024 * 1024)
    # config-class files (context file, marker record)
    max_config_bytes: int = _env_size_bytes("PROGUARDIAN_MAX_CONFIG_SIZE", 5 * 1024 * 1024)
    file_mode: int = _env_int("PROGUARDIAN_FILE_MODE", 0o644)
    dir_mode: int = _env_int("PROGUARDIAN_DIR_MODE", 0o755)


@dataclass(frozen=True)
class UpdateDefaults:
    package_name: str = _env("PROGUARDIAN_PACKAGE_NAME", "proguardian")
    index_url: str = _env("PROGUARDIAN_INDEX_URL", "https://pypi.org/pypi")
    cache_file: str = _env("PROGUARDIAN_UPDATE_CACHE", ".proguardian-update-check.json")
    interval_sec: float = _env_float("PROGUARDIAN_UPDATE_INTERVAL_SEC", 24 * 60 * 60)
    timeout_sec: float = _env_float("PROGUARDIAN_UPDATE_TIMEOUT_SEC", 5.0)
    max_response_bytes: int = _env_int("PROGUARDIAN_UPDATE_MAX_BYTES", 100_000)


@dataclass(frozen=True)
class LoggingDefaults:
    log_dir: str = _env("PROGUARDIAN_LOG_DIR", "")
    level: str = _env("PROGUARDIAN_LOG_LEVEL", "info")
    console_format: str = _env("PROGUARDIAN_LOG_FORMAT", "text")  # text|json
    verbose: bool = _env_bool("PROGUARDIAN_VERBOSE", False)


FILES = FileDefaults()
UPDATE = UpdateDefaults()
LOGGING = LoggingDefaults()

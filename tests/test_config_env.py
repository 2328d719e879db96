from __future__ import annotations

import importlib
from pathlib import Path

import pytest


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("PROGUARDIAN_MAX_READ_SIZE", "2mb")
    monkeypatch.setenv("PROGUARDIAN_MAX_CONFIG_SIZE", "512kb")
    monkeypatch.setenv("PROGUARDIAN_FILE_MODE", "0o600")
    monkeypatch.setenv("PROGUARDIAN_UPDATE_TIMEOUT_SEC", "1.5")
    monkeypatch.setenv("PROGUARDIAN_LOG_LEVEL", "debug")
    # Reload module to pick env
    from proguardian.config import defaults as mod

    importlib.reload(mod)
    try:
        assert mod.FILES.max_read_bytes == 2 * 1024 * 1024
        assert mod.FILES.max_config_bytes == 512 * 1024
        assert mod.FILES.file_mode == 0o600
        assert mod.UPDATE.timeout_sec == 1.5
        assert mod.LOGGING.level == "debug"
    finally:
        monkeypatch.undo()
        importlib.reload(mod)


def test_defaults():
    from proguardian.config.defaults import FILES, UPDATE

    assert FILES.max_read_bytes == 10 * 1024 * 1024
    assert FILES.max_config_bytes == 5 * 1024 * 1024
    assert UPDATE.interval_sec == 24 * 60 * 60
    assert UPDATE.max_response_bytes == 100_000


def test_bad_values_fall_back(monkeypatch):
    monkeypatch.setenv("PROGUARDIAN_MAX_READ_SIZE", "lots")
    monkeypatch.setenv("PROGUARDIAN_DIR_MODE", "rwx")
    from proguardian.config import defaults as mod

    importlib.reload(mod)
    try:
        assert mod.FILES.max_read_bytes == 10 * 1024 * 1024
        assert mod.FILES.dir_mode == 0o755
    finally:
        monkeypatch.undo()
        importlib.reload(mod)


def test_only_prefixed_names_allowed():
    from proguardian.config.defaults import _env

    with pytest.raises(ValueError):
        _env("HOME", "x")


def test_templates_dir(monkeypatch, tmp_path: Path):
    from proguardian.config.paths import resolve_templates_dir

    monkeypatch.delenv("PROGUARDIAN_TEMPLATES_DIR", raising=False)
    bundled = resolve_templates_dir()
    assert (bundled / "CLAUDE.md").is_file()
    assert (bundled / "GEMINI.md").is_file()

    monkeypatch.setenv("PROGUARDIAN_TEMPLATES_DIR", str(tmp_path))
    assert resolve_templates_dir() == tmp_path.resolve()

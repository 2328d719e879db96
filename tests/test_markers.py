"""Tests for the .proguardian marker record."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from proguardian import __version__
from proguardian.errors import ValidationError
from proguardian.fs import SecureFileOps
from proguardian.markers import MARKER_FILENAME, MarkerRecord, load_marker, save_marker


def test_absent_marker(tmp_path: Path):
    assert load_marker(SecureFileOps(tmp_path)) is None


def test_save_and_load(tmp_path: Path):
    ops = SecureFileOps(tmp_path)
    when = datetime(2024, 5, 1, 12, 0, 0, 123456, tzinfo=timezone.utc)
    save_marker(ops, MarkerRecord(cliType="gemini", targetFile="GEMINI.md", enhanced=True, initialized=when))

    raw = json.loads((tmp_path / MARKER_FILENAME).read_text())
    assert raw == {
        "version": __version__,
        "initialized": "2024-05-01T12:00:00.123Z",
        "mode": "guardian",
        "cliType": "gemini",
        "targetFile": "GEMINI.md",
        "enhanced": True,
    }

    loaded = load_marker(ops)
    assert loaded is not None
    assert loaded.cli_type == "gemini"
    assert loaded.target_file == "GEMINI.md"
    assert loaded.initialized == when.replace(microsecond=123000)


def test_unknown_keys_ignored(tmp_path: Path):
    (tmp_path / MARKER_FILENAME).write_text(
        json.dumps({"cliType": "claude", "targetFile": "CLAUDE.md", "extra": 1, "initialized": "2024-01-01T00:00:00.000Z"})
    )
    loaded = load_marker(SecureFileOps(tmp_path))
    assert loaded is not None and loaded.cli_type == "claude"


@pytest.mark.parametrize(
    "content",
    [
        "[]",
        json.dumps({"cliType": "vim", "targetFile": "X.md"}),
        json.dumps({"targetFile": "CLAUDE.md"}),
        "not json",
    ],
)
def test_malformed_marker(tmp_path: Path, content: str):
    (tmp_path / MARKER_FILENAME).write_text(content)
    with pytest.raises(ValidationError):
        load_marker(SecureFileOps(tmp_path))

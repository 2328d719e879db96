# tests/conftest.py
# Keep the update check offline and give every test a logger over in-memory streams.

from __future__ import annotations

import io
from pathlib import Path

import pytest

from proguardian.logging.structured import StructuredLogger

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "proguardian" / "templates"


class CapturedLogger(StructuredLogger):
    """StructuredLogger writing to StringIO buffers, with helpers to read them back."""

    def __init__(self, component: str = "test") -> None:
        super().__init__(component, stream=io.StringIO(), err_stream=io.StringIO(), level="debug")

    @property
    def out(self) -> str:
        return self.stream.getvalue()  # type: ignore[attr-defined]

    @property
    def err(self) -> str:
        return self.err_stream.getvalue()  # type: ignore[attr-defined]

    @property
    def text(self) -> str:
        return self.out + self.err


@pytest.fixture(autouse=True)
def _no_update_check(monkeypatch):
    monkeypatch.setenv("PROGUARDIAN_NO_UPDATE_CHECK", "1")


@pytest.fixture()
def logger() -> CapturedLogger:
    return CapturedLogger()


@pytest.fixture()
def templates_dir() -> Path:
    return TEMPLATES_DIR


@pytest.fixture()
def project(tmp_path: Path, monkeypatch) -> Path:
    """An empty project directory that is also the current working directory."""
    root = tmp_path / "project"
    root.mkdir()
    monkeypatch.chdir(root)
    return root

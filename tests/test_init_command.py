"""Tests for ``proguardian init``."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from proguardian.commands.init import init_command, strip_guardian_section
from proguardian.fs import SecureFileOps
from proguardian.markers import GUARDIAN_MARKER, MARKER_FILENAME, PROTOCOL_HEADING, load_marker


def _run(project: Path, logger, templates_dir: Path, **options) -> int:
    options.setdefault("cli", "claude")
    return init_command({"base_dir": str(project), **options}, logger=logger, templates_dir=templates_dir)


class TestFreshProject:
    def test_force_creates_guardian_only_file(self, project: Path, logger, templates_dir: Path):
        assert _run(project, logger, templates_dir, force=True) == 0

        content = (project / "CLAUDE.md").read_text(encoding="utf-8")
        assert content.startswith(GUARDIAN_MARKER)
        assert PROTOCOL_HEADING in content

        record = json.loads((project / MARKER_FILENAME).read_text())
        assert record["cliType"] == "claude"
        assert record["targetFile"] == "CLAUDE.md"
        assert record["mode"] == "guardian"
        assert record["enhanced"] is False
        assert record["initialized"].endswith("Z")

    def test_without_force_only_prints_hints(self, project: Path, logger, templates_dir: Path):
        assert _run(project, logger, templates_dir) == 0
        assert not (project / "CLAUDE.md").exists()
        assert not (project / MARKER_FILENAME).exists()
        assert "No CLAUDE.md found" in logger.text
        assert "proguardian init --force" in logger.text

    def test_gemini_uses_gemini_file(self, project: Path, logger, templates_dir: Path):
        assert _run(project, logger, templates_dir, cli="gemini", force=True) == 0
        assert (project / "GEMINI.md").exists()
        marker = load_marker(SecureFileOps(project))
        assert marker is not None and marker.cli_type == "gemini"


class TestExistingFile:
    def test_appends_to_existing_content(self, project: Path, logger, templates_dir: Path):
        (project / "CLAUDE.md").write_text("# My Project\n\nBuild with make.", encoding="utf-8")
        assert _run(project, logger, templates_dir) == 0

        content = (project / "CLAUDE.md").read_text(encoding="utf-8")
        assert content.startswith("# My Project\n\nBuild with make.\n\n" + GUARDIAN_MARKER)
        assert PROTOCOL_HEADING in content
        marker = load_marker(SecureFileOps(project))
        assert marker is not None and marker.enhanced is True

    def test_already_active_without_force_writes_nothing(self, project: Path, logger, templates_dir: Path):
        original = f"# Notes\n\n{GUARDIAN_MARKER}\n\nold guardian text"
        target = project / "CLAUDE.md"
        target.write_text(original, encoding="utf-8")
        before = target.stat().st_mtime_ns

        assert _run(project, logger, templates_dir) == 0
        assert target.read_text(encoding="utf-8") == original
        assert target.stat().st_mtime_ns == before
        assert not (project / MARKER_FILENAME).exists()
        assert "already active" in logger.err

    def test_force_reinstalls_single_section(self, project: Path, logger, templates_dir: Path):
        target = project / "CLAUDE.md"
        target.write_text(f"# Notes\n\n{GUARDIAN_MARKER}\n\nold guardian text", encoding="utf-8")

        assert _run(project, logger, templates_dir, force=True) == 0
        content = target.read_text(encoding="utf-8")
        assert content.count(GUARDIAN_MARKER) == 1
        assert "old guardian text" not in content
        assert content.startswith("# Notes\n\n")

    def test_custom_path(self, project: Path, logger, templates_dir: Path):
        (project / "AGENTS.md").write_text("# agents", encoding="utf-8")
        assert _run(project, logger, templates_dir, path="AGENTS.md") == 0
        assert GUARDIAN_MARKER in (project / "AGENTS.md").read_text(encoding="utf-8")
        marker = load_marker(SecureFileOps(project))
        assert marker is not None and marker.target_file == "AGENTS.md"


class TestFailures:
    def test_traversal_in_custom_path(self, project: Path, logger, templates_dir: Path):
        assert _run(project, logger, templates_dir, path="../CLAUDE.md", force=True) == 1
        assert "Security violation" in logger.err
        assert not (project.parent / "CLAUDE.md").exists()

    def test_unknown_option(self, project: Path, logger, templates_dir: Path):
        assert _run(project, logger, templates_dir, bogus=True) == 1
        assert "Unknown options provided" in logger.err

    def test_no_cli_detected(self, project: Path, logger, templates_dir: Path):
        code = init_command(
            {"base_dir": str(project)},
            logger=logger,
            templates_dir=templates_dir,
            determine=lambda cli, log: None,
        )
        assert code == 1

    def test_missing_template(self, project: Path, logger, tmp_path: Path):
        empty = tmp_path / "no-templates"
        empty.mkdir()
        assert _run(project, logger, empty, force=True) == 1
        assert not (project / "CLAUDE.md").exists()


@pytest.mark.parametrize("dirname", ["app..v2", "$work", "R&D"])
class TestUnusualProjectNames:
    def test_force_initializes(self, tmp_path: Path, logger, templates_dir: Path, dirname: str):
        root = tmp_path / dirname
        root.mkdir()
        assert _run(root, logger, templates_dir, force=True) == 0
        assert (root / "CLAUDE.md").read_text(encoding="utf-8").startswith(GUARDIAN_MARKER)
        marker = load_marker(SecureFileOps(root))
        assert marker is not None and marker.target_file == "CLAUDE.md"
        assert _run(root, logger, templates_dir, force=True) == 0
        assert (root / "CLAUDE.md").read_text(encoding="utf-8").count(GUARDIAN_MARKER) == 1

    def test_appends_to_existing_file(self, tmp_path: Path, logger, templates_dir: Path, dirname: str):
        root = tmp_path / dirname
        root.mkdir()
        (root / "CLAUDE.md").write_text("# Project notes\n", encoding="utf-8")
        assert _run(root, logger, templates_dir, force=True) == 0
        content = (root / "CLAUDE.md").read_text(encoding="utf-8")
        assert content.startswith("# Project notes")
        assert GUARDIAN_MARKER in content


@pytest.mark.parametrize(
    "content,expected",
    [
        ("no marker here", "no marker here"),
        (f"keep\n\n{GUARDIAN_MARKER}\n\ndrop", "keep"),
        (f"{GUARDIAN_MARKER}\nall gone", ""),
    ],
)
def test_strip_guardian_section(content: str, expected: str):
    assert strip_guardian_section(content) == expected

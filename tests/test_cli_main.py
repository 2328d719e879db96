"""Tests for the ``proguardian`` command dispatcher and wrapper entry points."""

from __future__ import annotations

import threading
import time
from pathlib import Path

import pytest

from proguardian import __version__
from proguardian.cli import main as cli_main
from proguardian.markers import GUARDIAN_MARKER, MARKER_FILENAME
from proguardian.wrapper import entry


class TestMain:
    def test_no_command_prints_help(self, capsys, logger):
        assert cli_main.main([], logger=logger) == 0
        assert "usage: proguardian" in capsys.readouterr().out

    def test_version(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            cli_main.main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out

    @pytest.mark.parametrize("bad", ["init\n", "--path=a\rb", "check\x00"])
    def test_control_characters_rejected(self, logger, bad: str):
        assert cli_main.main([bad], logger=logger) == 1
        assert "Invalid command line arguments" in logger.err

    def test_init_force(self, project: Path, logger):
        assert cli_main.main(["init", "--force", "--cli", "claude"], logger=logger) == 0
        assert GUARDIAN_MARKER in (project / "CLAUDE.md").read_text(encoding="utf-8")
        assert (project / MARKER_FILENAME).exists()

    def test_init_path_traversal(self, project: Path, logger):
        assert cli_main.main(["init", "-f", "-c", "claude", "--path", "../x.md"], logger=logger) == 1
        assert not (project.parent / "x.md").exists()

    def test_check_dispatch(self, project: Path, logger, monkeypatch):
        received = {}

        def fake_check(options, logger):
            received.update(options)
            return 1

        monkeypatch.setattr(cli_main, "check_command", fake_check)
        assert cli_main.main(["check", "--fix", "-v"], logger=logger) == 1
        assert received == {"fix": True, "verbose": True}

    def test_install_wrapper_dispatch(self, logger, monkeypatch):
        received = {}

        def fake_install(options, logger):
            received.update(options)
            return 0

        monkeypatch.setattr(cli_main, "install_wrapper", fake_install)
        assert cli_main.main(["install-wrapper", "--cli", "gemini", "-f"], logger=logger) == 0
        assert received == {"cli": "gemini", "force": True, "verbose": False}

    def test_waits_for_update_notice_before_returning(self, logger, monkeypatch):
        finished = threading.Event()

        def slow_update_check(log):
            def work():
                time.sleep(0.2)
                finished.set()

            thread = threading.Thread(target=work, daemon=True)
            thread.start()
            return thread

        monkeypatch.setattr(cli_main, "check_for_updates_in_background", slow_update_check)
        monkeypatch.setattr(cli_main, "check_command", lambda options, logger: 0)
        assert cli_main.main(["check"], logger=logger) == 0
        assert finished.is_set()

    def test_disabled_update_check_does_not_block(self, logger, monkeypatch):
        monkeypatch.setattr(cli_main, "check_for_updates_in_background", lambda log: None)
        monkeypatch.setattr(cli_main, "check_command", lambda options, logger: 3)
        assert cli_main.main(["check"], logger=logger) == 3

    def test_invalid_cli_choice_exits(self, logger):
        with pytest.raises(SystemExit) as exc_info:
            cli_main.main(["init", "--cli", "vim"], logger=logger)
        assert exc_info.value.code == 2


class TestWrapperEntry:
    def test_unexpected_failure_is_contained(self, project: Path, monkeypatch, capsys):
        def explode(self, args):
            raise RuntimeError("kaboom at /secret/location")

        monkeypatch.setattr(entry.GuardianWrapper, "run", explode)
        assert entry.claude_main(["--help"]) == 1
        err = capsys.readouterr().err
        assert "Fatal error" in err
        assert "/secret/location" not in err

    def test_runs_real_binary_from_path(self, project: Path, tmp_path: Path, monkeypatch):
        import sys

        bin_dir = tmp_path / "bin"
        bin_dir.mkdir()
        real = bin_dir / "gemini-original"
        real.write_text(f"#!{sys.executable}\nimport sys\nsys.exit(len(sys.argv) - 1)\n", encoding="utf-8")
        real.chmod(0o755)
        monkeypatch.setenv("PATH", str(bin_dir))

        # unsupervised: two args forwarded unchanged
        assert entry.gemini_main(["a", "b"]) == 2

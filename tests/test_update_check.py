"""Tests for the background update check."""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest

from proguardian.config.defaults import UPDATE
from proguardian.update_check import (
    UpdateChecker,
    check_for_updates,
    check_for_updates_in_background,
    is_check_disabled,
    is_newer_version,
)


def _client(version: str = "9.9.9", status: int = 200, calls: list | None = None) -> httpx.Client:
    def handler(request: httpx.Request) -> httpx.Response:
        if calls is not None:
            calls.append(str(request.url))
        return httpx.Response(status, json={"info": {"version": version}})

    return httpx.Client(transport=httpx.MockTransport(handler))


def _cache(tmp_path: Path) -> dict:
    return json.loads((tmp_path / UPDATE.cache_file).read_text())


class TestVersions:
    @pytest.mark.parametrize(
        "current,latest,expected",
        [
            ("1.0.1", "1.0.2", True),
            ("1.0.1", "1.1.0", True),
            ("1.0.1", "2.0", True),
            ("1.0.1", "1.0.1", False),
            ("1.2.0", "1.1.9", False),
            ("v1.0.0", "v1.0.1", True),
            ("1.0.0", "garbage", False),
        ],
    )
    def test_is_newer_version(self, current: str, latest: str, expected: bool):
        assert is_newer_version(current, latest) is expected


class TestDisabled:
    @pytest.mark.parametrize("var", ["PROGUARDIAN_NO_UPDATE_CHECK", "NO_UPDATE_NOTIFIER", "CI", "CONTINUOUS_INTEGRATION"])
    def test_disable_vars(self, var: str):
        assert is_check_disabled({var: "true"})
        assert is_check_disabled({var: "1"})
        assert not is_check_disabled({var: "0"})

    def test_ci_skips_everything(self, monkeypatch, logger):
        monkeypatch.delenv("PROGUARDIAN_NO_UPDATE_CHECK", raising=False)
        monkeypatch.setenv("CI", "true")
        assert check_for_updates(logger) is None
        assert check_for_updates_in_background(logger) is None


class TestChecker:
    def test_notifies_about_newer_version(self, tmp_path: Path, logger):
        calls: list = []
        checker = UpdateChecker(logger, client=_client("2.0.0", calls=calls), cache_dir=str(tmp_path), current_version="1.0.1")
        assert checker.check(now=1000.0) == "2.0.0"
        assert "Update available! 1.0.1 → 2.0.0" in logger.err
        assert calls == [f"{UPDATE.index_url}/{UPDATE.package_name}/json"]

        cache = _cache(tmp_path)
        assert cache["latestVersion"] == "2.0.0"
        assert cache["currentVersion"] == "1.0.1"
        assert cache["notified"] == "2.0.0"
        assert cache["lastCheck"] == 1000.0

    def test_notifies_once_per_version(self, tmp_path: Path, logger):
        calls: list = []
        checker = UpdateChecker(logger, client=_client("2.0.0", calls=calls), cache_dir=str(tmp_path), current_version="1.0.1")
        checker.check(now=1000.0)
        assert checker.check(now=1000.0 + UPDATE.interval_sec + 1) is None
        assert len(calls) == 2
        assert logger.err.count("Update available") == 1

    def test_cache_within_interval_skips_network(self, tmp_path: Path, logger):
        calls: list = []
        checker = UpdateChecker(logger, client=_client("1.0.1", calls=calls), cache_dir=str(tmp_path), current_version="1.0.1")
        assert checker.check(now=1000.0) is None
        assert checker.check(now=1001.0) is None
        assert len(calls) == 1

    def test_cached_newer_version_notified_when_not_yet_shown(self, tmp_path: Path, logger):
        (tmp_path / UPDATE.cache_file).write_text(
            json.dumps({"lastCheck": 1000.0, "latestVersion": "3.0.0", "currentVersion": "1.0.1", "notified": None})
        )
        checker = UpdateChecker(logger, client=_client(calls=[]), cache_dir=str(tmp_path), current_version="1.0.1")
        assert checker.check(now=1001.0) == "3.0.0"
        assert _cache(tmp_path)["notified"] == "3.0.0"

    def test_http_error_is_swallowed(self, tmp_path: Path, logger):
        checker = UpdateChecker(logger, client=_client(status=503), cache_dir=str(tmp_path))
        assert checker.check(now=1000.0) is None
        assert not (tmp_path / UPDATE.cache_file).exists()

    def test_transport_failure_is_swallowed(self, tmp_path: Path, logger):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("offline", request=request)

        client = httpx.Client(transport=httpx.MockTransport(handler))
        assert UpdateChecker(logger, client=client, cache_dir=str(tmp_path)).check() is None

    def test_oversized_response_ignored(self, tmp_path: Path, logger):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"x" * (UPDATE.max_response_bytes + 1))

        client = httpx.Client(transport=httpx.MockTransport(handler))
        assert UpdateChecker(logger, client=client, cache_dir=str(tmp_path)).fetch_latest_version() is None

    def test_corrupt_cache_is_ignored(self, tmp_path: Path, logger):
        (tmp_path / UPDATE.cache_file).write_text("{oops")
        checker = UpdateChecker(logger, client=_client("1.0.1"), cache_dir=str(tmp_path), current_version="1.0.1")
        assert checker.check(now=5.0) is None
        assert _cache(tmp_path)["latestVersion"] == "1.0.1"


def test_background_thread(monkeypatch, logger):
    monkeypatch.delenv("PROGUARDIAN_NO_UPDATE_CHECK", raising=False)
    for var in ("CI", "CONTINUOUS_INTEGRATION", "NO_UPDATE_NOTIFIER"):
        monkeypatch.delenv(var, raising=False)
    seen = []
    monkeypatch.setattr("proguardian.update_check.check_for_updates", lambda log: seen.append(log))

    thread = check_for_updates_in_background(logger)
    assert thread is not None and thread.daemon
    thread.join(timeout=5)
    assert seen == [logger]

"""Background check for newer ProGuardian releases.

The check is best effort: every failure is swallowed so it can never break
the CLI. Results are cached in the temp directory and the index is queried
at most once per interval.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import time
from typing import Any, Dict, Optional

import httpx

from . import __version__
from .config.defaults import UPDATE
from .errors import GuardianError
from .fs.secure_io import SecureFileOps
from .logging.structured import StructuredLogger

logger = logging.getLogger(__name__)

_DISABLE_VARS = ("PROGUARDIAN_NO_UPDATE_CHECK", "NO_UPDATE_NOTIFIER", "CI", "CONTINUOUS_INTEGRATION")


def is_check_disabled(environ: Optional[Dict[str, str]] = None) -> bool:
    env = os.environ if environ is None else environ
    return any(env.get(name, "").strip().lower() in ("1", "true") for name in _DISABLE_VARS)


def is_newer_version(current: str, latest: str) -> bool:
    """True if ``latest`` is a higher major.minor.patch than ``current``."""
    try:
        cur = [int(p) for p in current.lstrip("v").split(".")[:3]]
        new = [int(p) for p in latest.lstrip("v").split(".")[:3]]
    except (AttributeError, ValueError):
        return False
    cur += [0] * (3 - len(cur))
    new += [0] * (3 - len(new))
    return new > cur


class UpdateChecker:
    """Fetch the latest published version and tell the user about it once.

    Args:
        logger: Where the notification is printed
        client: Optional ``httpx.Client`` (tests pass one with a MockTransport)
        cache_dir: Directory for the cache file (default: system temp dir)
        current_version: Installed version (default: package version)
    """

    def __init__(
        self,
        logger: StructuredLogger,
        *,
        client: Optional[httpx.Client] = None,
        cache_dir: Optional[str] = None,
        current_version: str = __version__,
    ) -> None:
        self.logger = logger
        self.client = client
        self.current_version = current_version
        self.cache = SecureFileOps(cache_dir or tempfile.gettempdir())

    def read_cache(self) -> Optional[Dict[str, Any]]:
        try:
            if self.cache.exists(UPDATE.cache_file):
                data = self.cache.read_json(UPDATE.cache_file, max_size=64 * 1024)
                return data if isinstance(data, dict) else None
        except GuardianError:
            pass
        return None

    def write_cache(self, data: Dict[str, Any]) -> None:
        try:
            self.cache.write_json(UPDATE.cache_file, data, mode=0o600)
        except GuardianError as exc:
            logger.debug("update cache not written: %s", exc.code)

    def fetch_latest_version(self) -> Optional[str]:
        url = f"{UPDATE.index_url.rstrip('/')}/{UPDATE.package_name}/json"
        client = self.client or httpx.Client(timeout=UPDATE.timeout_sec, follow_redirects=True)
        try:
            with client.stream("GET", url) as resp:
                if resp.status_code != 200:
                    return None
                body = b""
                for chunk in resp.iter_bytes():
                    body += chunk
                    if len(body) > UPDATE.max_response_bytes:
                        return None
            info = json.loads(body).get("info") or {}
            latest = info.get("version")
            return latest if isinstance(latest, str) else None
        except (httpx.HTTPError, ValueError, AttributeError):
            return None
        finally:
            if self.client is None:
                client.close()

    def notify(self, latest: str) -> None:
        self.logger.info()
        self.logger.warning(f"Update available! {self.current_version} → {latest}")
        self.logger.info(f"  Run pip install -U {UPDATE.package_name} to update")
        self.logger.info("  Disable this check with PROGUARDIAN_NO_UPDATE_CHECK=1")
        self.logger.info()

    def check(self, now: Optional[float] = None) -> Optional[str]:
        """Run one check; returns the version the user was notified about, if any."""
        now = time.time() if now is None else now
        cache = self.read_cache() or {}

        last = cache.get("lastCheck")
        if isinstance(last, (int, float)) and now - last < UPDATE.interval_sec:
            record = dict(cache)
            latest = record.get("latestVersion")
            if not isinstance(latest, str):
                return None
        else:
            latest = self.fetch_latest_version()
            if not latest:
                return None
            record = {
                "lastCheck": now,
                "latestVersion": latest,
                "currentVersion": self.current_version,
                "notified": cache.get("notified"),
            }
            self.write_cache(record)

        # Notify once per published version
        if is_newer_version(self.current_version, latest) and record.get("notified") != latest:
            self.notify(latest)
            record["notified"] = latest
            self.write_cache(record)
            return latest
        return None


def check_for_updates(logger: StructuredLogger, **kwargs: Any) -> Optional[str]:
    if is_check_disabled():
        return None
    try:
        return UpdateChecker(logger, **kwargs).check()
    except Exception as exc:  # never let the update check break the CLI
        logger.debug("update check failed", error=exc.__class__.__name__)
        return None


def check_for_updates_in_background(logger: StructuredLogger) -> Optional[threading.Thread]:
    """Start the update check on a daemon thread and return it."""
    if is_check_disabled():
        return None
    thread = threading.Thread(target=check_for_updates, args=(logger,), name="proguardian-update", daemon=True)
    thread.start()
    return thread


__all__ = [
    "UpdateChecker",
    "check_for_updates",
    "check_for_updates_in_background",
    "is_check_disabled",
    "is_newer_version",
]

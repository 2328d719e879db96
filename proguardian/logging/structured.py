"""Structured logging with a human console format and redaction."""

from __future__ import annotations

import json
import sys
import time
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, TextIO, Union

from .redaction import DataRedactor


class LogLevel(Enum):
    """Standard log levels, ordered by severity."""

    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, raw: Union[str, "LogLevel"]) -> "LogLevel":
        if isinstance(raw, LogLevel):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            return cls.INFO


_RANKS = {
    LogLevel.DEBUG: 10,
    LogLevel.INFO: 20,
    LogLevel.SUCCESS: 25,
    LogLevel.WARNING: 30,
    LogLevel.ERROR: 40,
    LogLevel.CRITICAL: 50,
}

_TEXT_PREFIX = {
    LogLevel.DEBUG: "  ",
    LogLevel.INFO: "",
    LogLevel.SUCCESS: "✓ ",
    LogLevel.WARNING: "⚠ ",
    LogLevel.ERROR: "✗ ",
    LogLevel.CRITICAL: "✗ ",
}


class StructuredLogger:
    """Explicitly constructed logger handed to every component.

    There is no module-level instance; tests build one over ``io.StringIO``
    streams and inspect what was written.
    """

    def __init__(
        self,
        component: str,
        *,
        stream: Optional[TextIO] = None,
        err_stream: Optional[TextIO] = None,
        output_file: Optional[Union[str, Path, TextIO]] = None,
        level: Union[str, LogLevel] = LogLevel.INFO,
        silent: bool = False,
        console_format: str = "text",
        redactor: Optional[DataRedactor] = None,
    ) -> None:
        """Initialize structured logger.

        Args:
            component: Component identifier (e.g., 'init', 'wrapper', 'check')
            stream: Console stream for debug/info/success (default: sys.stdout)
            err_stream: Console stream for warnings and errors (default: sys.stderr)
            output_file: Optional JSONL file path or handle receiving every record
            level: Minimum level written to the console
            silent: Suppress console output entirely
            console_format: ``"text"`` for human lines, ``"json"`` for one object per line
            redactor: Optional data redactor for context values
        """
        self.component = component
        self.start_time = time.time()
        self.redactor = redactor or DataRedactor()
        self.level = LogLevel.parse(level)
        self.silent = silent
        self.console_format = console_format if console_format in ("text", "json") else "text"
        self._stream = stream
        self._err_stream = err_stream

        self.log_file: Optional[TextIO] = None
        self._owns_log_file = False
        if output_file is not None:
            if isinstance(output_file, (str, Path)):
                log_path = Path(output_file)
                log_path.parent.mkdir(parents=True, exist_ok=True)
                self.log_file = open(log_path, "a", encoding="utf-8")
                self._owns_log_file = True
            else:
                self.log_file = output_file

    # Streams are looked up lazily so pytest's capsys sees our output.
    @property
    def stream(self) -> TextIO:
        return self._stream or sys.stdout

    @property
    def err_stream(self) -> TextIO:
        return self._err_stream or sys.stderr

    def _format_log_entry(self, level: LogLevel, message: str, **context: Any) -> Dict[str, Any]:
        safe_context = self.redactor.redact_dict(context)
        return {
            "timestamp": time.time(),
            "iso_timestamp": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime()) + "Z",
            "level": level.value,
            "component": self.component,
            "session_time": round(time.time() - self.start_time, 6),
            "message": message,
            **safe_context,
        }

    def _write_console(self, level: LogLevel, message: str, entry: Dict[str, Any]) -> None:
        if self.silent or level.rank < self.level.rank:
            return
        target = self.err_stream if level.rank >= LogLevel.WARNING.rank else self.stream
        if self.console_format == "json":
            print(json.dumps(entry, default=str, separators=(",", ":")), file=target, flush=True)
        else:
            print(f"{_TEXT_PREFIX[level]}{message}", file=target, flush=True)

    def _write_log(self, level: LogLevel, message: str, **context: Any) -> None:
        entry = self._format_log_entry(level, message, **context)
        self._write_console(level, message, entry)
        if self.log_file:
            self.log_file.write(json.dumps(entry, default=str, separators=(",", ":")) + "\n")
            self.log_file.flush()

    def debug(self, message: str, **context: Any) -> None:
        self._write_log(LogLevel.DEBUG, message, **context)

    def info(self, message: str = "", **context: Any) -> None:
        self._write_log(LogLevel.INFO, message, **context)

    def success(self, message: str, **context: Any) -> None:
        self._write_log(LogLevel.SUCCESS, message, **context)

    def warning(self, message: str, **context: Any) -> None:
        self._write_log(LogLevel.WARNING, message, **context)

    def error(self, message: str, **context: Any) -> None:
        self._write_log(LogLevel.ERROR, message, **context)

    def critical(self, message: str, **context: Any) -> None:
        self._write_log(LogLevel.CRITICAL, message, **context)

    def close(self) -> None:
        """Close the log file handle if this logger opened it."""
        if self.log_file and self._owns_log_file:
            self.log_file.close()
        self.log_file = None


def create_logger(
    component: str,
    log_dir: Optional[Union[str, Path]] = None,
    **kwargs: Any,
) -> StructuredLogger:
    """Factory function to create a logger with the environment's configuration.

    Args:
        component: Component identifier
        log_dir: Optional directory for JSONL logs (uses PROGUARDIAN_LOG_DIR if not provided)
        **kwargs: Additional arguments passed to StructuredLogger

    Returns:
        Configured StructuredLogger instance
    """
    from ..config.defaults import LOGGING

    if log_dir is None:
        log_dir = LOGGING.log_dir or None
    kwargs.setdefault("level", LOGGING.level)
    kwargs.setdefault("console_format", LOGGING.console_format)

    output_file = None
    if log_dir:
        output_file = Path(log_dir) / f"{component}.jsonl"

    return StructuredLogger(component, output_file=output_file, **kwargs)


__all__ = ["LogLevel", "StructuredLogger", "create_logger"]

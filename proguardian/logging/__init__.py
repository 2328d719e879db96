"""Structured logging and redaction for ProGuardian."""

from .redaction import DataRedactor, sanitize_error_message
from .structured import LogLevel, StructuredLogger, create_logger

__all__ = [
    "StructuredLogger",
    "LogLevel",
    "create_logger",
    "DataRedactor",
    "sanitize_error_message",
]

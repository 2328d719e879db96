"""Security-related utilities for ProGuardian."""

from .path_guard import is_within, sanitize_path, validate_safe_path
from .command_guard import escape_shell_arg, sanitize_argv, validate_argument, validate_command
from ._types import ValidatedPath  # re-export for convenience

__all__ = [
    "ValidatedPath",
    "escape_shell_arg",
    "is_within",
    "sanitize_argv",
    "sanitize_path",
    "validate_argument",
    "validate_command",
    "validate_safe_path",
]

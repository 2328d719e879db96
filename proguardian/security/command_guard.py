"""Command and argument sanitizer.

This is a fail-fast check for strings headed into a child's argv or into log
output. It is not how execution is made safe: the wrapper always spawns with
an explicit argument vector and ``shell=False``, so nothing here is ever
turned into a shell command line. ``escape_shell_arg`` renders a value for
humans to read and must not be used to build an executed command.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, List

from ..errors import CommandInjectionError, ValidationError

DANGEROUS_CHARS = frozenset("|;&$`><(){}[]")
LINE_BREAKS = frozenset("\r\n")

_SAFE_DISPLAY_RE = re.compile(r"^[A-Za-z0-9_.,@:/-]+$")


def _contains_unsafe(value: str) -> bool:
    return any(ch in DANGEROUS_CHARS or ch in LINE_BREAKS for ch in value)


def validate_command(command: Any) -> str:
    """Return ``command`` unchanged if it has no shell metacharacters.

    Raises:
        ValidationError: If ``command`` is empty or not a string
        CommandInjectionError: If it contains ``| ; & $ ` > < ( ) { } [ ]`` or CR/LF
    """
    if not isinstance(command, str) or not command:
        raise ValidationError("command", command, "Command must be a non-empty string")
    if _contains_unsafe(command):
        raise CommandInjectionError(command)
    return command


def validate_argument(arg: Any) -> str:
    """Same policy as validate_command for one argv element; empty strings pass."""
    if not isinstance(arg, str):
        raise ValidationError("argument", type(arg).__name__, "Argument must be a string")
    if _contains_unsafe(arg):
        raise CommandInjectionError(arg)
    return arg


def sanitize_argv(args: Iterable[Any]) -> List[str]:
    """Validate every argument; the whole vector is rejected on the first bad one."""
    return [validate_argument(arg) for arg in args]


def escape_shell_arg(arg: Any) -> str:
    """Quote ``arg`` for display in logs. Never execute the result."""
    if arg is None or arg == "":
        return "''"
    text = str(arg)
    if _SAFE_DISPLAY_RE.match(text):
        return text
    return "'" + text.replace("'", "'\"'\"'") + "'"


__all__ = [
    "DANGEROUS_CHARS",
    "escape_shell_arg",
    "sanitize_argv",
    "validate_argument",
    "validate_command",
]

"""Sensitive data redaction for error messages and structured logging."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Tuple, Union

_HEX = r"[0-9A-Fa-f]"

# Order matters: UUIDs and emails go before paths and numeric IDs so their
# pieces are not consumed by the broader patterns.
_DEFAULT_RULES: List[Tuple[Pattern[str], str]] = [
    (re.compile(rf"\b{_HEX}{{8}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{4}}-{_HEX}{{12}}\b"), "<uuid>"),
    (re.compile(r"\b[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}\b"), "<email>"),
    # Absolute POSIX, Windows drive, UNC and home-relative paths
    (
        re.compile(r"(?<![\w.<>-])(?:[A-Za-z]:[/\\]|[/\\]|~[/\\])[^\s'\"<>:;,()\[\]{}]*"),
        "<path>",
    ),
    (
        re.compile(
            rf"(?<![\w:])(?:(?:{_HEX}{{1,4}}:){{7}}{_HEX}{{1,4}}"
            rf"|(?:{_HEX}{{1,4}}:){{0,6}}{_HEX}{{0,4}}::(?:{_HEX}{{1,4}}:){{0,6}}{_HEX}{{0,4}})(?![\w:])"
        ),
        "<ip>",
    ),
    (re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b"), "<ip>"),
    # Tokens and API keys given as key=value / key: value
    (
        re.compile(
            r"\b(token|key|secret|password|api_key|credential)([\"']?\s*[=:]\s*[\"']?)"
            r"(?!<)[A-Za-z0-9_\-./+]{8,}[\"']?",
            re.IGNORECASE,
        ),
        r"\1\2<secret>",
    ),
    # Long hex/base64-looking strings that mix letters and digits
    (
        re.compile(r"(?<![\w+/=-])(?=[A-Za-z0-9+/_-]*\d)(?=[A-Za-z0-9+/_-]*[A-Za-z])[A-Za-z0-9+/_-]{24,}={0,2}"),
        "<token>",
    ),
    (re.compile(r"\b\d{4,}\b"), "<id>"),
]


class DataRedactor:
    """Redact sensitive information from messages and log data."""

    def __init__(self, custom_patterns: Optional[List[Pattern[str]]] = None) -> None:
        """Initialize redactor with standard and custom patterns.

        Args:
            custom_patterns: Additional regex patterns; matches become ``<redacted>``
        """
        self.rules: List[Tuple[Pattern[str], str]] = list(_DEFAULT_RULES)

        if custom_patterns:
            for pattern in custom_patterns:
                self.add_pattern(pattern)

        # Sensitive field names to redact entirely
        self.sensitive_fields = {
            "password", "token", "secret", "key", "auth", "credential",
            "email", "api_key", "access_token", "refresh_token", "auth_token",
        }

    def redact_string(self, text: str) -> str:
        """Redact sensitive information from a string.

        The result is a fixed point: redacting it again returns it unchanged.
        """
        result = text
        for pattern, replacement in self.rules:
            result = pattern.sub(replacement, result)
        return result

    def redact_path(self, path: Union[str, Path]) -> str:
        """Keep only the final component of a path."""
        name = Path(str(path)).name
        return name or "<path>"

    def redact_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively redact sensitive data from a dictionary."""
        result: Dict[str, Any] = {}

        for key, value in data.items():
            if key.lower() in self.sensitive_fields:
                result[key] = "<redacted>"
                continue

            if isinstance(value, dict):
                result[key] = self.redact_dict(value)
            elif isinstance(value, (list, tuple)):
                result[key] = [
                    self.redact_dict(item) if isinstance(item, dict)
                    else self.redact_string(item) if isinstance(item, str)
                    else item
                    for item in value
                ]
            elif isinstance(value, str):
                result[key] = self.redact_string(value)
            elif isinstance(value, Path):
                result[key] = self.redact_path(value)
            else:
                result[key] = value

        return result

    def add_pattern(self, pattern: Union[str, Pattern[str]], replacement: str = "<redacted>") -> None:
        """Add a custom redaction pattern, applied after the built-in ones."""
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        self.rules.append((pattern, replacement))

    def add_sensitive_field(self, field_name: str) -> None:
        self.sensitive_fields.add(field_name.lower())


_default_redactor = DataRedactor()


def sanitize_error_message(message: str) -> str:
    """Strip paths, emails, IPs, UUIDs, tokens and numeric IDs from ``message``."""
    return _default_redactor.redact_string(str(message))


__all__ = ["DataRedactor", "sanitize_error_message"]

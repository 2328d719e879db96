"""Path safety validator for ProGuardian.

Threat model and protections:
- Directory traversal: resolve the user path against a base directory and
  verify the normalized result is the base itself or a descendant of it,
  using a separator-terminated prefix so ``/basefoo`` never matches ``/base``.
- Encoded or smuggled traversal: independently scan the raw, unresolved input
  for a blacklist of suspicious tokens (``..``, leading ``./``, ``~``, shell
  metacharacters, backslash, NUL) and reject on any hit even when the prefix
  check would pass. The scan ignores the host's separator convention. An
  absolute input is scanned only below the base, and an existing
  ``ValidatedPath`` is only re-checked for confinement.
- Information exposure: failures raise ``PathTraversalError``/``ValidationError``
  whose messages never echo the attempted path.

Validation is purely lexical; nothing here touches the filesystem. Callers
re-check existence and permissions at use time.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Optional, Tuple, Union

from ..errors import PathTraversalError, ValidationError
from ._types import ValidatedPath

logger = logging.getLogger(__name__)

PathInput = Union[str, os.PathLike]

# Literal substrings rejected anywhere in the raw input.
SUSPICIOUS_TOKENS: Tuple[str, ...] = ("..", "~", "$", "`", "|", ";", "&", ">", "<", "\\", "\x00")
# Prefixes rejected at the start of the raw input.
SUSPICIOUS_PREFIXES: Tuple[str, ...] = ("./",)


def _normalize_base(base_dir: Optional[PathInput]) -> str:
    raw = os.fspath(base_dir) if base_dir is not None else os.getcwd()
    return os.path.normpath(os.path.abspath(raw))


def is_within(base: str, candidate: str) -> bool:
    """True if ``candidate`` equals ``base`` or lies beneath it."""
    if candidate == base:
        return True
    prefix = base if base.endswith(os.sep) else base + os.sep
    return candidate.startswith(prefix)


def has_suspicious_token(raw: str) -> bool:
    if raw.startswith(SUSPICIOUS_PREFIXES):
        return True
    return any(token in raw for token in SUSPICIOUS_TOKENS)


def _user_portion(raw: str, base: str) -> str:
    """The part of ``raw`` the caller supplied; an absolute path drops its base prefix."""
    if not os.path.isabs(raw):
        return raw
    if raw == base:
        return ""
    prefix = base if base.endswith(os.sep) else base + os.sep
    if raw.startswith(prefix):
        return raw[len(prefix):]
    return raw


def _revalidate(path: ValidatedPath, base_dir: Optional[PathInput]) -> ValidatedPath:
    # The raw input was scanned when the ValidatedPath was made; only confinement
    # to this base is left to prove.
    base = _normalize_base(base_dir)
    resolved = os.path.normpath(os.fspath(path))
    if not is_within(base, resolved):
        logger.debug("validated path lies outside this base directory")
        raise PathTraversalError(resolved)
    return ValidatedPath(Path(resolved), Path(base))


def validate_safe_path(raw_path: Union[PathInput, ValidatedPath], base_dir: Optional[PathInput] = None) -> ValidatedPath:
    """Resolve ``raw_path`` against ``base_dir`` and prove it stays inside.

    Args:
        raw_path: User-supplied path, relative to ``base_dir`` or absolute inside it
        base_dir: Directory the path must not escape (default: current directory)

    Returns:
        ValidatedPath wrapping the absolute normalized path

    Raises:
        ValidationError: If the input is empty or not path-like
        PathTraversalError: If the path escapes the base or contains a blacklisted token
    """
    if isinstance(raw_path, ValidatedPath):
        return _revalidate(raw_path, base_dir)
    if raw_path is None or raw_path == "":
        raise ValidationError("path", raw_path, "Path cannot be empty")
    try:
        raw = os.fspath(raw_path)
    except TypeError:
        raise ValidationError("path", raw_path, "Path must be a string or path-like object")
    if not isinstance(raw, str):
        raise ValidationError("path", raw_path, "Path must be a string or path-like object")
    if not raw:
        raise ValidationError("path", raw_path, "Path cannot be empty")

    base = _normalize_base(base_dir)
    resolved = os.path.normpath(os.path.join(base, raw))

    if not is_within(base, resolved):
        logger.debug("path escapes base directory")
        raise PathTraversalError(raw)

    if has_suspicious_token(_user_portion(raw, base)):
        logger.debug("path contains a blacklisted token")
        raise PathTraversalError(raw)

    return ValidatedPath(Path(resolved), Path(base))


def sanitize_path(input_path: str, base_dir: Optional[PathInput] = None) -> ValidatedPath:
    """Trim surrounding whitespace from a user path, then validate it."""
    if not isinstance(input_path, str) or not input_path:
        raise ValidationError("path", input_path, "Path must be a non-empty string")
    if "\x00" in input_path:
        raise PathTraversalError(input_path)
    return validate_safe_path(input_path.strip(), base_dir)


__all__ = [
    "SUSPICIOUS_TOKENS",
    "has_suspicious_token",
    "is_within",
    "sanitize_path",
    "validate_safe_path",
]

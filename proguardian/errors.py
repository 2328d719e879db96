"""Error taxonomy for ProGuardian.

Every failure raised by the security boundary is a :class:`GuardianError`
carrying one :class:`ErrorKind` from a closed set, so callers can branch on
``err.kind`` instead of walking an open class hierarchy. Messages are passed
through the redactor in the constructor; the raw details live in
``err.context`` and are never printed.
"""

from __future__ import annotations

import os
from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, Optional

from .logging.redaction import sanitize_error_message

if TYPE_CHECKING:  # pragma: no cover
    from .logging.structured import StructuredLogger


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    SECURITY = "security"
    PATH_TRAVERSAL = "path_traversal"
    COMMAND_INJECTION = "command_injection"
    PERMISSION = "permission"
    FILE_OPERATION = "file_operation"
    CLI_NOT_FOUND = "cli_not_found"

    @property
    def is_security(self) -> bool:
        return self in (ErrorKind.SECURITY, ErrorKind.PATH_TRAVERSAL, ErrorKind.COMMAND_INJECTION)


def _basename(file_path: Optional[Any]) -> str:
    if not file_path:
        return "file"
    return os.path.basename(os.fspath(file_path).rstrip("/\\")) or "file"


class GuardianError(Exception):
    """Base class for all typed ProGuardian failures."""

    kind: ErrorKind = ErrorKind.VALIDATION
    code: str = "GUARDIAN_ERROR"

    def __init__(self, message: str, *, context: Optional[Dict[str, Any]] = None) -> None:
        self.message = sanitize_error_message(message)
        self.context: Dict[str, Any] = dict(context or {})
        super().__init__(self.message)


class ValidationError(GuardianError):
    kind = ErrorKind.VALIDATION
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, value: Any, requirement: str) -> None:
        super().__init__(f"Invalid {field}: {requirement}", context={"value": value})
        self.field = field
        self.requirement = requirement


class SecurityError(GuardianError):
    kind = ErrorKind.SECURITY
    code = "SECURITY_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(message, context=details)

    @property
    def details(self) -> Dict[str, Any]:
        return self.context


class PathTraversalError(SecurityError):
    kind = ErrorKind.PATH_TRAVERSAL

    def __init__(self, attempted_path: Any) -> None:
        super().__init__(
            "Invalid path: Path traversal attempt detected",
            {"attempted_path": attempted_path},
        )


class CommandInjectionError(SecurityError):
    kind = ErrorKind.COMMAND_INJECTION

    def __init__(self, command: Any) -> None:
        super().__init__(
            "Invalid command: Potentially unsafe characters detected",
            {"command": command},
        )


class PermissionDenied(GuardianError):
    kind = ErrorKind.PERMISSION
    code = "PERMISSION_ERROR"

    def __init__(self, operation: str, file_path: Optional[Any] = None) -> None:
        super().__init__(
            f"Permission denied: Cannot {operation} {_basename(file_path)}",
            context={"path": file_path},
        )
        self.operation = operation


class FileOperationError(GuardianError):
    kind = ErrorKind.FILE_OPERATION
    code = "FILE_OPERATION_ERROR"

    def __init__(self, operation: str, file_path: Optional[Any] = None, details: Optional[str] = None) -> None:
        suffix = f": {details}" if details else ""
        super().__init__(
            f"File operation failed: Cannot {operation} {_basename(file_path)}{suffix}",
            context={"path": file_path, "details": details},
        )
        self.operation = operation


class CLINotFoundError(GuardianError):
    kind = ErrorKind.CLI_NOT_FOUND
    code = "CLI_NOT_FOUND"

    def __init__(self, cli_name: str) -> None:
        super().__init__(f"{cli_name} CLI not found. Please install it first.", context={"cli": cli_name})
        self.cli_name = cli_name


def format_error(error: Any, verbose: bool = False) -> str:
    """Render an error (or anything else) as a single display string."""
    if error is None:
        return "Unknown error"
    if isinstance(error, (str, int, float)):
        return str(error)

    if isinstance(error, GuardianError):
        result = f"[{error.code}] {error.message}"
    else:
        result = sanitize_error_message(str(error)) or "Unknown error"

    cause = error.__cause__ if isinstance(error, BaseException) else None
    if verbose and cause is not None:
        result += "\nCaused by: " + format_error(cause, verbose)
    return result


def handle_error(error: BaseException, logger: "StructuredLogger", verbose: bool = False) -> int:
    """Report ``error`` through ``logger`` and return the process exit code."""
    if isinstance(error, SecurityError):
        logger.error(f"Security violation: {error.message}", kind=error.kind.value)
    elif isinstance(error, ValidationError):
        logger.error(f"Validation failed: {error.message}")
    elif isinstance(error, PermissionDenied):
        logger.error(f"Permission denied: {error.message}")
    elif isinstance(error, GuardianError):
        logger.error(f"{error.code}: {error.message}")
    else:
        logger.error("An unexpected error occurred")
        if verbose:
            logger.error(format_error(error, verbose=True))
    return 1


__all__ = [
    "ErrorKind",
    "GuardianError",
    "ValidationError",
    "SecurityError",
    "PathTraversalError",
    "CommandInjectionError",
    "PermissionDenied",
    "FileOperationError",
    "CLINotFoundError",
    "format_error",
    "handle_error",
]

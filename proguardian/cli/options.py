"""Option schemas for the ProGuardian sub-commands."""

from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Type

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr
from pydantic import ValidationError as PydanticValidationError

from ..errors import ValidationError


class _Options(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    verbose: StrictBool = False


class InitOptions(_Options):
    force: StrictBool = False
    cli: Optional[Literal["claude", "gemini"]] = None
    base_dir: Optional[StrictStr] = Field(default=None, description="Project directory (default: cwd)")
    path: Optional[StrictStr] = Field(default=None, description="Custom context filename")


class CheckOptions(_Options):
    fix: StrictBool = False


class InstallWrapperOptions(_Options):
    force: StrictBool = False
    cli: Literal["claude", "gemini"] = "claude"


OPTION_SCHEMAS: Dict[str, Type[_Options]] = {
    "init": InitOptions,
    "check": CheckOptions,
    "install-wrapper": InstallWrapperOptions,
}


def validate_options(command: str, options: Dict[str, Any]) -> _Options:
    """Validate ``options`` for ``command`` and return the typed model."""
    schema = OPTION_SCHEMAS.get(command)
    if schema is None:
        raise ValidationError("command", command, "Unknown command")
    try:
        return schema.model_validate(options)
    except PydanticValidationError as exc:
        first = exc.errors()[0]
        field = ".".join(str(part) for part in first.get("loc", ())) or "options"
        if first.get("type") == "extra_forbidden":
            raise ValidationError("options", field, "Unknown options provided")
        raise ValidationError(field, options.get(field), first.get("msg", "invalid value"))


__all__ = [
    "CheckOptions",
    "InitOptions",
    "InstallWrapperOptions",
    "OPTION_SCHEMAS",
    "validate_options",
]

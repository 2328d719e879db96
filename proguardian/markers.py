"""Marker record persisted in ``.proguardian`` and the context-file markers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from . import __version__
from .config.defaults import FILES
from .errors import ValidationError
from .fs.secure_io import SecureFileOps

MARKER_FILENAME = ".proguardian"
# Start of the Guardian section inside CLAUDE.md / GEMINI.md
GUARDIAN_MARKER = "## 🛡️ GUARDIAN MODE ACTIVE"
# Heading carried by the bundled templates
PROTOCOL_HEADING = "GUARDIAN - Senior Developer Protocol"

CLIType = Literal["claude", "gemini"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MarkerRecord(BaseModel):
    """Configuration state written by ``init`` and read by ``check`` and the wrapper.

    The record is always written whole; it is never patched in place.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: str = Field(default=__version__, description="ProGuardian version that wrote the record")
    initialized: datetime = Field(default_factory=_utcnow, description="ISO-8601 creation time")
    mode: Literal["guardian"] = "guardian"
    cli_type: CLIType = Field(alias="cliType")
    target_file: str = Field(alias="targetFile")
    enhanced: bool = False

    def to_json_dict(self) -> Dict[str, Any]:
        data = self.model_dump(by_alias=True, mode="json")
        # Millisecond precision with a trailing Z, e.g. 2024-05-01T12:00:00.000Z
        data["initialized"] = (
            self.initialized.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.")
            + f"{self.initialized.microsecond // 1000:03d}Z"
        )
        return data


def load_marker(ops: SecureFileOps, filename: str = MARKER_FILENAME) -> Optional[MarkerRecord]:
    """Return the marker record, or None when the marker file is absent."""
    if not ops.exists(filename):
        return None
    raw = ops.read_json(filename, max_size=FILES.max_config_bytes)
    if not isinstance(raw, dict):
        raise ValidationError("marker", type(raw).__name__, "Marker record must be a JSON object")
    try:
        return MarkerRecord.model_validate(raw)
    except PydanticValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise ValidationError("marker", fields, f"Malformed marker record ({fields or 'unknown field'})")


def save_marker(ops: SecureFileOps, record: MarkerRecord, filename: str = MARKER_FILENAME) -> None:
    ops.write_json(filename, record.to_json_dict())


__all__ = [
    "GUARDIAN_MARKER",
    "MARKER_FILENAME",
    "PROTOCOL_HEADING",
    "MarkerRecord",
    "load_marker",
    "save_marker",
]

"""Configuration for ProGuardian."""

from .defaults import FILES, LOGGING, UPDATE
from .paths import resolve_templates_dir

__all__ = ["FILES", "LOGGING", "UPDATE", "resolve_templates_dir"]

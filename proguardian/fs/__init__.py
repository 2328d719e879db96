"""Secure filesystem access for ProGuardian."""

from .secure_io import DirEntryInfo, SecureFileOps

__all__ = ["DirEntryInfo", "SecureFileOps"]

"""Path utilities for bundled resources."""

from __future__ import annotations

import os
from pathlib import Path

_PACKAGE_ROOT = Path(__file__).resolve().parent.parent


def resolve_templates_dir() -> Path:
    """Return the directory holding the bundled context-file templates.

    Prefers `PROGUARDIAN_TEMPLATES_DIR` (handy for packaging and tests) and
    falls back to the ``templates`` directory shipped inside the package.
    """
    configured = os.getenv("PROGUARDIAN_TEMPLATES_DIR")
    if configured:
        return Path(configured).expanduser().resolve()
    return _PACKAGE_ROOT / "templates"


__all__ = ["resolve_templates_dir"]

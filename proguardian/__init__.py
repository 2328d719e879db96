"""ProGuardian: Guardian supervision for AI coding assistants."""

__version__ = "1.0.1"

__all__ = ["__version__"]

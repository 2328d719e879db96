"""Command-line interface for ProGuardian."""

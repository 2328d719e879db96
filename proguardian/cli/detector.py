"""Detection and selection of the AI assistant CLI to configure."""

from __future__ import annotations

import shutil
import sys
from dataclasses import dataclass
from typing import Any, Callable, Optional

from ..errors import ValidationError
from ..logging.structured import StructuredLogger

CLI_CLAUDE = "claude"
CLI_GEMINI = "gemini"
VALID_CLI_TYPES = (CLI_CLAUDE, CLI_GEMINI)

_TARGET_FILENAMES = {CLI_CLAUDE: "CLAUDE.md", CLI_GEMINI: "GEMINI.md"}
_INSTALL_HINTS = {
    CLI_CLAUDE: "npm install -g @anthropic/claude-code",
    CLI_GEMINI: "npm install -g @google/gemini-cli",
}
DISPLAY_NAMES = {CLI_CLAUDE: "Claude Code", CLI_GEMINI: "Gemini CLI"}


@dataclass(frozen=True)
class AvailableCLIs:
    claude: bool = False
    gemini: bool = False

    def __bool__(self) -> bool:
        return self.claude or self.gemini


def validate_cli_type(cli_type: Any) -> str:
    if not cli_type:
        raise ValidationError("cliType", cli_type, "CLI type cannot be empty")
    if cli_type not in VALID_CLI_TYPES:
        raise ValidationError("cliType", cli_type, f"Must be one of: {', '.join(VALID_CLI_TYPES)}")
    return cli_type


def get_target_filename(cli_type: str) -> str:
    """Context filename read by ``cli_type`` (``CLAUDE.md`` or ``GEMINI.md``)."""
    return _TARGET_FILENAMES[validate_cli_type(cli_type)]


def detect_cli(which: Callable[[str], Optional[str]] = shutil.which) -> AvailableCLIs:
    return AvailableCLIs(claude=which(CLI_CLAUDE) is not None, gemini=which(CLI_GEMINI) is not None)


def prompt_for_cli(
    available: AvailableCLIs,
    logger: StructuredLogger,
    *,
    input_fn: Callable[[str], str] = input,
    interactive: Optional[bool] = None,
) -> str:
    """Ask which CLI to configure when both are installed."""
    logger.warning("Multiple AI CLI tools detected.")
    logger.info("Which would you like to configure ProGuardian for?\n")

    choices = []
    if available.claude:
        logger.info("  1) Claude Code")
        choices.append(("1", CLI_CLAUDE))
    if available.gemini:
        logger.info("  2) Gemini CLI")
        choices.append(("2", CLI_GEMINI))

    default = choices[0][1]
    if interactive is None:
        interactive = sys.stdin.isatty()
    if not interactive:
        logger.info(f"Non-interactive mode detected. Defaulting to {default}...")
        return default

    try:
        answer = input_fn("\nPlease enter your choice (1 or 2): ").strip()
    except EOFError:
        answer = ""
    for choice, value in choices:
        if answer == choice:
            return value
    logger.info(f"Invalid choice. Defaulting to {default}...")
    return default


def determine_cli(
    cli: Optional[str],
    logger: StructuredLogger,
    *,
    which: Callable[[str], Optional[str]] = shutil.which,
    input_fn: Callable[[str], str] = input,
    interactive: Optional[bool] = None,
) -> Optional[str]:
    """Resolve the CLI type from an explicit option or by detection.

    Returns None, after telling the user why, when nothing usable is found.
    """
    if cli:
        try:
            return validate_cli_type(cli)
        except ValidationError:
            logger.error("Invalid CLI type")
            logger.warning(f"Valid options are: {', '.join(VALID_CLI_TYPES)}")
            return None

    available = detect_cli(which)
    if not available:
        logger.error("No AI CLI tools detected.")
        logger.warning("Please install one of the following:")
        for cli_type in VALID_CLI_TYPES:
            logger.info(f"  • {DISPLAY_NAMES[cli_type]}: {_INSTALL_HINTS[cli_type]}")
        logger.info("\nThen run proguardian init again.")
        return None

    if available.claude and not available.gemini:
        logger.success("Detected Claude Code CLI")
        return CLI_CLAUDE
    if available.gemini and not available.claude:
        logger.success("Detected Gemini CLI")
        return CLI_GEMINI

    return prompt_for_cli(available, logger, input_fn=input_fn, interactive=interactive)


def install_hint(cli_type: str) -> str:
    return _INSTALL_HINTS[validate_cli_type(cli_type)]


__all__ = [
    "AvailableCLIs",
    "CLI_CLAUDE",
    "CLI_GEMINI",
    "DISPLAY_NAMES",
    "VALID_CLI_TYPES",
    "detect_cli",
    "determine_cli",
    "get_target_filename",
    "install_hint",
    "prompt_for_cli",
    "validate_cli_type",
]

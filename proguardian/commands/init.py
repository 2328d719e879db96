"""``proguardian init``: add the Guardian section to a project's context file.

The context file and the marker record are written by two separate atomic
writes. A crash between them leaves the context file updated without a
marker; re-running ``init --force`` repairs that state.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from ..cli.detector import CLI_CLAUDE, determine_cli, get_target_filename
from ..cli.options import InitOptions, validate_options
from ..config.defaults import FILES
from ..config.paths import resolve_templates_dir
from ..errors import GuardianError, ValidationError, handle_error
from ..fs.secure_io import SecureFileOps
from ..logging.structured import StructuredLogger, create_logger
from ..markers import GUARDIAN_MARKER, MarkerRecord, save_marker


def _read_template(templates_dir: Path, filename: str) -> str:
    templates = SecureFileOps(templates_dir)
    if not templates.exists(filename):
        raise ValidationError("template", filename, "Template file not found")
    return templates.read_text(filename, max_size=FILES.max_config_bytes)


def strip_guardian_section(content: str) -> str:
    """Drop everything from the Guardian marker onward."""
    start = content.find(GUARDIAN_MARKER)
    if start == -1:
        return content
    return content[:start].strip()


def init_command(
    options: Union[InitOptions, Dict[str, Any], None] = None,
    *,
    logger: Optional[StructuredLogger] = None,
    determine: Callable[..., Optional[str]] = determine_cli,
    templates_dir: Optional[Path] = None,
) -> int:
    """Run the init flow and return the exit code."""
    log = logger or create_logger("init")
    verbose = False
    try:
        if not isinstance(options, InitOptions):
            options = validate_options("init", dict(options or {}))
        assert isinstance(options, InitOptions)
        verbose = options.verbose

        cli_type = determine(options.cli, log)
        if not cli_type:
            return 1

        target_filename = options.path or get_target_filename(cli_type)
        ops = SecureFileOps(options.base_dir, logger=log)
        target = ops.validate(target_filename)
        templates = templates_dir or resolve_templates_dir()
        template_name = get_target_filename(cli_type)

        existed = ops.exists(target)
        if existed:
            existing = ops.read_text(target, max_size=FILES.max_config_bytes)
            if GUARDIAN_MARKER in existing:
                log.warning(f"Guardian mode is already active in {target_filename}")
                if not options.force:
                    return 0
                log.warning("   Reinstalling Guardian section...")
                existing = strip_guardian_section(existing)

            guardian_content = _read_template(templates, template_name)
            ops.write_text(target, f"{existing}\n\n{GUARDIAN_MARKER}\n\n{guardian_content}")
            log.success(f"Added Guardian mode to existing {target_filename}")
        else:
            cli_command = "claude" if cli_type == CLI_CLAUDE else "gemini"
            log.warning(f"No {target_filename} found in this project.")
            log.info()
            log.info("Recommended approach:")
            log.info(f"  1. Run {cli_command} init to analyze your project")
            log.info("  2. Run proguardian init to add Guardian mode")
            log.info()
            log.info(f"Or use proguardian init --force to create Guardian-only {target_filename}")
            if not options.force:
                return 0

            guardian_content = _read_template(templates, template_name)
            ops.write_text(target, f"{GUARDIAN_MARKER}\n\n{guardian_content}")
            log.success(f"Created Guardian-only {target_filename}")

        record = MarkerRecord(cliType=cli_type, targetFile=target_filename, enhanced=existed)
        save_marker(ops, record)

        log.success("Guardian supervision active!")
        log.info()
        log.info("What happened:")
        log.info(f"  • Guardian instructions added to {target_filename}")
        log.info("  • Project knowledge preserved")
        log.info("  • Quality gates now enforced")
        log.info()
        log.info("Guardian is now protecting your codebase! 🛡️")
        return 0
    except GuardianError as exc:
        return handle_error(exc, log, verbose=verbose)


__all__ = ["init_command", "strip_guardian_section"]

"""``proguardian check``: report whether Guardian is set up in this project."""

from __future__ import annotations

import shutil
from typing import Any, Callable, Dict, Optional, Union

from ..cli.detector import CLI_CLAUDE, CLI_GEMINI, DISPLAY_NAMES, get_target_filename, install_hint
from ..cli.options import CheckOptions, validate_options
from ..config.defaults import FILES
from ..errors import GuardianError, format_error, handle_error
from ..fs.secure_io import SecureFileOps
from ..logging.structured import StructuredLogger, create_logger
from ..markers import MARKER_FILENAME, PROTOCOL_HEADING, load_marker


def check_command(
    options: Union[CheckOptions, Dict[str, Any], None] = None,
    *,
    logger: Optional[StructuredLogger] = None,
    base_dir: Optional[str] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> int:
    """Run the check flow; 0 when fully configured, 1 when setup is incomplete."""
    log = logger or create_logger("check")
    verbose = False
    try:
        if not isinstance(options, CheckOptions):
            options = validate_options("check", dict(options or {}))
        assert isinstance(options, CheckOptions)
        verbose = options.verbose

        log.info("🔍 Checking Guardian setup...\n")
        ops = SecureFileOps(base_dir, logger=log)
        all_good = True
        cli_type = CLI_CLAUDE
        target_filename = get_target_filename(cli_type)

        marker = None
        marker_present = ops.exists(MARKER_FILENAME)
        if marker_present:
            try:
                marker = load_marker(ops)
            except GuardianError as exc:
                log.warning(f"Could not read {MARKER_FILENAME} file")
                if verbose:
                    log.info(f"   Error: {format_error(exc)}")
            if marker is not None:
                cli_type = marker.cli_type
                target_filename = get_target_filename(cli_type)

        if ops.exists(target_filename):
            log.success(f"{target_filename} found")
            content = ops.read_text(target_filename, max_size=FILES.max_config_bytes)
            if PROTOCOL_HEADING in content:
                log.success("Guardian protocol detected")
            else:
                log.warning(f"{target_filename} exists but is not Guardian version")
                log.info("   Run: proguardian init --force")
                all_good = False
        else:
            log.error(f"{target_filename} not found")
            log.info("   Run: proguardian init")
            all_good = False

        if marker_present:
            log.success(f"{MARKER_FILENAME} configuration found")
            if marker is not None:
                log.info(f"   Configured for: {DISPLAY_NAMES[marker.cli_type]}")
        else:
            log.warning(f"{MARKER_FILENAME} marker missing")
            all_good = False

        log.info()
        log.info("Checking for AI assistants...")
        found = {}
        for candidate in (CLI_CLAUDE, CLI_GEMINI):
            found[candidate] = which(candidate) is not None
            if found[candidate]:
                log.success(f"{DISPLAY_NAMES[candidate]} CLI found")
            else:
                log.info(f"○ {DISPLAY_NAMES[candidate]} CLI not found")

        if not any(found.values()):
            log.info()
            log.warning("No AI assistant CLIs found")
            log.info("   Install with:")
            for candidate in (CLI_CLAUDE, CLI_GEMINI):
                log.info(f"   {install_hint(candidate)}")
            all_good = False

        log.info()
        if all_good:
            log.success("Guardian is fully configured and ready!")
            log.info()
            log.info("You can now use:")
            usable = [cli_type] if found.get(cli_type) else [c for c, ok in found.items() if ok]
            for name in usable:
                log.info(f"  • {name} - With Guardian supervision")
        else:
            log.warning("Guardian setup incomplete")
            log.info("   Follow the suggestions above to complete setup")

        if options.fix and not all_good:
            log.info()
            log.info("Attempting to fix issues...")
            if not ops.exists(target_filename):
                log.warning("Run: proguardian init")

        return 0 if all_good else 1
    except GuardianError as exc:
        return handle_error(exc, log, verbose=verbose)


__all__ = ["check_command"]

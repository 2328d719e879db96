"""``proguardian install-wrapper``: put the Guardian wrapper in front of a CLI.

The real executable is backed up next to itself as ``<tool>-original`` and
replaced by a small Python launcher that calls the wrapper entry point.
"""

from __future__ import annotations

import os
import shutil
import sys
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Union

from ..cli.detector import install_hint
from ..cli.options import InstallWrapperOptions, validate_options
from ..errors import GuardianError, PermissionDenied, handle_error
from ..fs.secure_io import SecureFileOps
from ..logging.structured import StructuredLogger, create_logger
from ..wrapper.supervisor import PROFILES

EXECUTABLE_MODE = 0o755
# Native CLI builds are far larger than the default read ceiling
BACKUP_MAX_BYTES = 512 * 1024 * 1024


def render_launcher(tool: str, python: Optional[str] = None) -> str:
    """Source of the launcher installed in place of ``tool``."""
    interpreter = python or sys.executable
    return (
        f"#!{interpreter}\n"
        f"# Guardian wrapper for {tool}; the real binary is {tool}-original\n"
        "import sys\n"
        f"from proguardian.wrapper.entry import {tool}_main\n"
        "\n"
        f"sys.exit({tool}_main())\n"
    )


def install_wrapper(
    options: Union[InstallWrapperOptions, Dict[str, Any], None] = None,
    *,
    logger: Optional[StructuredLogger] = None,
    which: Callable[[str], Optional[str]] = shutil.which,
    python: Optional[str] = None,
) -> int:
    """Install the wrapper and return the exit code."""
    log = logger or create_logger("install-wrapper")
    verbose = False
    tool_name = "claude"
    try:
        if not isinstance(options, InstallWrapperOptions):
            options = validate_options("install-wrapper", dict(options or {}))
        assert isinstance(options, InstallWrapperOptions)
        verbose = options.verbose
        profile = PROFILES[options.cli]
        tool_name = profile.tool_name

        log.info("Installing Guardian wrapper...\n")

        tool_path = which(tool_name)
        if tool_path is None:
            log.error(f"{profile.label} CLI not found")
            log.info(f"Please install {profile.label} CLI first:")
            log.info(f"  {install_hint(tool_name)}")
            return 1

        tool_file = Path(tool_path)
        tool_dir = tool_file.parent
        ops = SecureFileOps(tool_dir, logger=log)
        if not ops.check_permissions(tool_dir, os.W_OK):
            raise PermissionDenied("write to directory", tool_dir)

        backup = ops.validate(profile.real_binary)
        if os.path.lexists(backup):
            if not options.force:
                log.warning("Backup already exists. Use --force to overwrite.")
                return 0
        else:
            log.info(f"Backing up original {tool_name} to {backup.name}")
            if tool_file.is_symlink():
                # npm installs a link into its package; keep pointing at the same program
                os.symlink(tool_file.resolve(), backup)
            else:
                ops.copy(tool_file.name, backup, preserve_mode=True, max_size=BACKUP_MAX_BYTES)
                ops.chmod(backup, EXECUTABLE_MODE)

        log.info(f"Installing wrapper to {tool_file.name}")
        if tool_file.is_symlink():
            # Replace the link itself, not the file it points at
            tool_file.unlink()
        ops.write_text(tool_file.name, render_launcher(tool_name, python), mode=EXECUTABLE_MODE)

        log.success("Guardian wrapper installed!")
        log.info(f"  Original {tool_name} backed up to: {profile.real_binary}")
        log.info()
        log.info("Security note:")
        log.info("  The wrapper enforces Guardian mode when .proguardian exists")
        log.info('  Run "proguardian check" to verify your setup')
        return 0
    except PermissionDenied as exc:
        log.error(exc.message)
        log.info()
        log.warning("Try running with sudo:")
        log.info("  sudo proguardian install-wrapper")
        log.info()
        log.warning("Or use the alternative approach:")
        log.info("  Add this to your shell profile (~/.bashrc or ~/.zshrc):")
        log.info(f'  alias {tool_name}="proguardian-{tool_name}"')
        return 1
    except GuardianError as exc:
        return handle_error(exc, log, verbose=verbose)


__all__ = ["install_wrapper", "render_launcher"]

"""The ``proguardian`` command.

Usage:
  proguardian init [--force] [--cli claude|gemini] [--path FILE]
  proguardian check [--fix]
  proguardian install-wrapper [--cli claude|gemini] [--force]
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from .. import __version__
from ..commands.check import check_command
from ..commands.init import init_command
from ..commands.install_wrapper import install_wrapper
from ..config.defaults import UPDATE
from ..logging.structured import StructuredLogger, create_logger
from ..update_check import check_for_updates_in_background

_FORBIDDEN_ARG_CHARS = ("\n", "\r", "\x00")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="proguardian",
        description="Senior developer supervision for AI coding assistants",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    sub = parser.add_subparsers(dest="cmd")

    p_init = sub.add_parser("init", help="Add Guardian mode to this project's context file")
    p_init.add_argument("-f", "--force", action="store_true", help="Create or reinstall the Guardian section")
    p_init.add_argument("-c", "--cli", choices=("claude", "gemini"), help="AI assistant to configure")
    p_init.add_argument("--path", help="Custom context filename")
    p_init.add_argument("-v", "--verbose", action="store_true")

    p_check = sub.add_parser("check", help="Verify the Guardian setup")
    p_check.add_argument("--fix", action="store_true", help="Suggest fixes for any problems found")
    p_check.add_argument("-v", "--verbose", action="store_true")

    p_wrap = sub.add_parser("install-wrapper", help="Install the Guardian wrapper in front of an AI CLI")
    p_wrap.add_argument("--cli", choices=("claude", "gemini"), default="claude")
    p_wrap.add_argument("-f", "--force", action="store_true", help="Overwrite an existing backup")
    p_wrap.add_argument("-v", "--verbose", action="store_true")
    return parser


def has_unsafe_argument(argv: List[str]) -> bool:
    return any(ch in arg for arg in argv for ch in _FORBIDDEN_ARG_CHARS)


def main(argv: Optional[List[str]] = None, *, logger: Optional[StructuredLogger] = None) -> int:
    args_list = sys.argv[1:] if argv is None else list(argv)
    log = logger or create_logger("cli")
    if has_unsafe_argument(args_list):
        log.error("Invalid command line arguments detected")
        return 1

    parser = build_parser()
    args = parser.parse_args(args_list)
    if args.cmd is None:
        parser.print_help()
        return 0

    update_thread = check_for_updates_in_background(log)

    if args.cmd == "init":
        options = {"force": args.force, "verbose": args.verbose}
        if args.cli:
            options["cli"] = args.cli
        if args.path:
            options["path"] = args.path
        code = init_command(options, logger=log)
    elif args.cmd == "check":
        code = check_command({"fix": args.fix, "verbose": args.verbose}, logger=log)
    elif args.cmd == "install-wrapper":
        code = install_wrapper({"cli": args.cli, "force": args.force, "verbose": args.verbose}, logger=log)
    else:
        code = 2

    if update_thread is not None:
        # Daemon threads die with the interpreter; give the notice a bounded chance to print.
        update_thread.join(timeout=UPDATE.timeout_sec)
    return code


if __name__ == "__main__":
    raise SystemExit(main())

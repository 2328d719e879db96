"""Console entry points that stand in for the wrapped executables."""

from __future__ import annotations

import sys
from typing import List, Optional

from ..errors import format_error
from ..logging.structured import create_logger
from .supervisor import PROFILES, GuardianWrapper


def run_wrapper(tool: str, argv: Optional[List[str]] = None) -> int:
    profile = PROFILES[tool]
    args = sys.argv[1:] if argv is None else argv
    wrapper = GuardianWrapper(profile, logger=create_logger(f"wrapper.{tool}"))
    try:
        return wrapper.run(args)
    except Exception as exc:
        wrapper.logger.error(f"Fatal error: {format_error(exc)}")
        return 1


def claude_main(argv: Optional[List[str]] = None) -> int:
    return run_wrapper("claude", argv)


def gemini_main(argv: Optional[List[str]] = None) -> int:
    return run_wrapper("gemini", argv)


if __name__ == "__main__":
    sys.exit(claude_main())

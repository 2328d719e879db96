"""ProGuardian sub-commands."""

from .check import check_command
from .init import init_command
from .install_wrapper import install_wrapper

__all__ = ["check_command", "init_command", "install_wrapper"]

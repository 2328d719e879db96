"""Interception of AI-assistant executables."""

from .supervisor import (
    PROFILES,
    GuardianWrapper,
    ProcessOutcome,
    ProcessState,
    SupervisedProcess,
    WrapperProfile,
)

__all__ = [
    "PROFILES",
    "GuardianWrapper",
    "ProcessOutcome",
    "ProcessState",
    "SupervisedProcess",
    "WrapperProfile",
]

"""Process wrapper supervisor.

A ``GuardianWrapper`` stands in for an AI-assistant executable on ``PATH``
(``claude`` or ``gemini``). When the working directory carries a
``.proguardian`` marker it restores the context file if needed, appends a
``--context-file`` reference, and adds the Guardian environment variables
before delegating to the real binary (``<tool>-original``). Without the
marker it only sanitizes the arguments and forwards them unchanged.

Children are always spawned with an explicit argv and ``shell=False`` and
inherit the supervisor's stdio. Each ``SupervisedProcess`` passes through
exactly one terminal state::

    NOT_STARTED -> SPAWNING -> RUNNING -> EXITED | SIGNAL_EXITED
                            \\-> SPAWN_FAILED
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from ..config.paths import resolve_templates_dir
from ..errors import GuardianError, handle_error
from ..fs.secure_io import SecureFileOps
from ..logging.structured import StructuredLogger, create_logger
from ..markers import MARKER_FILENAME
from ..security.command_guard import escape_shell_arg, sanitize_argv

logger = logging.getLogger(__name__)

CONTEXT_FLAGS = ("--context-file", "-c")
SPAWN_FAILURE_EXIT = 1


class ProcessState(str, Enum):
    NOT_STARTED = "not_started"
    SPAWNING = "spawning"
    RUNNING = "running"
    EXITED = "exited"
    SIGNAL_EXITED = "signal_exited"
    SPAWN_FAILED = "spawn_failed"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = frozenset({ProcessState.EXITED, ProcessState.SIGNAL_EXITED, ProcessState.SPAWN_FAILED})


@dataclass(frozen=True)
class ProcessOutcome:
    """Terminal result of one supervised invocation."""

    state: ProcessState
    returncode: Optional[int] = None
    signal: Optional[int] = None
    error: Optional[str] = None
    not_found: bool = False

    @property
    def exit_code(self) -> int:
        if self.state is ProcessState.EXITED:
            return self.returncode if self.returncode is not None else 0
        if self.state is ProcessState.SIGNAL_EXITED:
            return 128 + (self.signal or 0)
        return SPAWN_FAILURE_EXIT


class SupervisedProcess:
    """Spawn one child with an explicit argv and wait for it to finish.

    Args:
        argv: Executable name followed by its arguments (already sanitized)
        env: Full environment for the child
        popen: Factory compatible with ``subprocess.Popen`` (injectable for tests)
        which: Resolver compatible with ``shutil.which``
    """

    def __init__(
        self,
        argv: Sequence[str],
        env: Mapping[str, str],
        *,
        popen: Callable[..., Any] = subprocess.Popen,
        which: Callable[..., Optional[str]] = shutil.which,
    ) -> None:
        if not argv:
            raise ValueError("argv must name an executable")
        self.argv: List[str] = list(argv)
        self.env: Dict[str, str] = dict(env)
        self._popen = popen
        self._which = which
        self.state = ProcessState.NOT_STARTED
        self.outcome: Optional[ProcessOutcome] = None
        self.pid: Optional[int] = None

    def _advance(self, state: ProcessState) -> None:
        if self.state.is_terminal:
            raise RuntimeError(f"process already finished ({self.state.value})")
        self.state = state

    def _finish(self, outcome: ProcessOutcome) -> ProcessOutcome:
        self._advance(outcome.state)
        self.outcome = outcome
        logger.debug("child finished state=%s code=%s", outcome.state.value, outcome.exit_code)
        return outcome

    def run(self) -> ProcessOutcome:
        """Spawn, block until the child ends, and return its terminal outcome."""
        if self.state is not ProcessState.NOT_STARTED:
            raise RuntimeError("SupervisedProcess.run() may only be called once")
        self._advance(ProcessState.SPAWNING)

        executable = self._which(self.argv[0], path=self.env.get("PATH", os.defpath))
        if executable is None:
            return self._finish(
                ProcessOutcome(ProcessState.SPAWN_FAILED, error=f"{self.argv[0]} not found", not_found=True)
            )

        try:
            proc = self._popen([executable, *self.argv[1:]], env=self.env, shell=False)
        except FileNotFoundError as exc:
            return self._finish(
                ProcessOutcome(ProcessState.SPAWN_FAILED, error=exc.strerror or str(exc), not_found=True)
            )
        except OSError as exc:
            return self._finish(ProcessOutcome(ProcessState.SPAWN_FAILED, error=exc.strerror or str(exc)))

        self.pid = getattr(proc, "pid", None)
        self._advance(ProcessState.RUNNING)
        while True:
            try:
                returncode = proc.wait()
                break
            except KeyboardInterrupt:
                # The child shares our terminal and got the same SIGINT; let it finish.
                continue

        if returncode is not None and returncode < 0:
            return self._finish(ProcessOutcome(ProcessState.SIGNAL_EXITED, returncode=returncode, signal=-returncode))
        return self._finish(ProcessOutcome(ProcessState.EXITED, returncode=returncode))


@dataclass(frozen=True)
class WrapperProfile:
    """The handful of constants that differ between wrapped tools."""

    tool_name: str
    context_filename: str
    env_prefix: str
    enforcement_text: str
    display_name: str = ""

    @property
    def real_binary(self) -> str:
        return f"{self.tool_name}-original"

    @property
    def mode_env(self) -> str:
        return f"{self.env_prefix}_GUARDIAN_MODE"

    @property
    def prepend_env(self) -> str:
        return f"{self.env_prefix}_SYSTEM_PROMPT_PREPEND"

    @property
    def label(self) -> str:
        return self.display_name or self.tool_name.capitalize()


_GEMINI_ENFORCEMENT = """⚠️ GUARDIAN PROTOCOL ACTIVE ⚠️

You MUST follow the Guardian Review-Gate Workflow:
1. ANALYZE request → CREATE plan → REVIEW plan (fix if needed)
2. IMPLEMENT only after plan passes → REVIEW code (fix if needed)
3. PLAN tests only after code passes → REVIEW test plan (fix if needed)
4. IMPLEMENT tests → RUN tests → REVIEW results
5. If tests fail: DIAGNOSE → PLAN fix → REVIEW → FIX → RE-TEST

CRITICAL: You cannot proceed to next step until current review passes
FORBIDDEN: Skipping reviews, proceeding with issues, placeholder code
REQUIRED: Show evidence of each review (checklist items checked)

Each review must check relevant items from GEMINI.md quality checklist."""

PROFILES: Dict[str, WrapperProfile] = {
    "claude": WrapperProfile(
        tool_name="claude",
        context_filename="CLAUDE.md",
        env_prefix="CLAUDE",
        enforcement_text="You must follow the instructions in CLAUDE.md",
        display_name="Claude",
    ),
    "gemini": WrapperProfile(
        tool_name="gemini",
        context_filename="GEMINI.md",
        env_prefix="GEMINI",
        enforcement_text=_GEMINI_ENFORCEMENT,
        display_name="Gemini",
    ),
}


def has_context_reference(args: Sequence[str], filename: str) -> bool:
    """True if ``args`` already contains ``<flag> <filename>`` for either flag spelling."""
    for i, arg in enumerate(args[:-1]):
        if arg in CONTEXT_FLAGS and args[i + 1] == filename:
            return True
    return False


def with_context_reference(args: Sequence[str], filename: str) -> List[str]:
    """Append ``--context-file <filename>`` unless it is already referenced."""
    out = list(args)
    if not has_context_reference(out, filename):
        out.extend([CONTEXT_FLAGS[0], filename])
    return out


@dataclass
class GuardianWrapper:
    """Intercept one tool invocation and delegate to the real binary.

    Args:
        profile: Which tool is being wrapped
        cwd: Project directory to inspect (default: current directory)
        logger: StructuredLogger for user-facing messages
        templates_dir: Where bundled context-file templates live
        environ: Parent environment to inherit (default: ``os.environ``)
        process_factory: Builds the SupervisedProcess (injectable for tests)
    """

    profile: WrapperProfile
    cwd: Optional[Path] = None
    logger: Optional[StructuredLogger] = None
    templates_dir: Optional[Path] = None
    environ: Optional[Mapping[str, str]] = None
    process_factory: Callable[..., SupervisedProcess] = SupervisedProcess
    last_process: Optional[SupervisedProcess] = field(default=None, init=False)

    def __post_init__(self) -> None:
        self.cwd = Path(self.cwd) if self.cwd is not None else Path.cwd()
        if self.logger is None:
            self.logger = create_logger(f"wrapper.{self.profile.tool_name}")
        if self.templates_dir is None:
            self.templates_dir = resolve_templates_dir()
        self.ops = SecureFileOps(self.cwd, logger=self.logger)

    def _log(self) -> StructuredLogger:
        assert self.logger is not None
        return self.logger

    def is_supervised(self) -> bool:
        return self.ops.exists(MARKER_FILENAME)

    def ensure_context_file(self) -> bool:
        """Restore the context file from the bundled template; True if it was restored."""
        name = self.profile.context_filename
        if self.ops.exists(name):
            return False
        self._log().warning(f"Restoring {name}...")
        self.ops.copy(name, name, source_base=self.templates_dir)
        return True

    def build_args(self, args: Sequence[Any], *, supervised: bool) -> List[str]:
        """Sanitize ``args``; in supervised mode also add the context-file reference."""
        safe = sanitize_argv(args)
        if not supervised:
            return safe
        return with_context_reference(safe, self.profile.context_filename)

    def build_env(self) -> Dict[str, str]:
        env = dict(os.environ if self.environ is None else self.environ)
        env[self.profile.mode_env] = "active"
        env[self.profile.prepend_env] = self.profile.enforcement_text
        return env

    def run(self, args: Sequence[Any]) -> int:
        """Run the wrapped tool and return the exit code for our own process."""
        log = self._log()
        try:
            supervised = self.is_supervised()
            if supervised:
                log.info("🛡️  Guardian mode active\n")
                self.ensure_context_file()
            try:
                forwarded = self.build_args(args, supervised=supervised)
            except GuardianError as exc:
                log.error("Invalid argument detected", kind=exc.kind.value)
                return 1
            env = self.build_env() if supervised else dict(os.environ if self.environ is None else self.environ)
        except GuardianError as exc:
            return handle_error(exc, log)

        log.debug(
            "launching " + " ".join(escape_shell_arg(a) for a in [self.profile.real_binary, *forwarded]),
            supervised=supervised,
        )
        process = self.process_factory([self.profile.real_binary, *forwarded], env)
        self.last_process = process
        outcome = process.run()

        if outcome.state is ProcessState.SPAWN_FAILED:
            if outcome.not_found:
                log.error(f"Error: {self.profile.real_binary} not found")
                if supervised:
                    log.warning("Run: proguardian install-wrapper")
                else:
                    log.warning(f"This wrapper requires the original {self.profile.label} CLI")
            else:
                log.error(f"Error launching {self.profile.label}: {outcome.error}")
        return outcome.exit_code


__all__ = [
    "CONTEXT_FLAGS",
    "GuardianWrapper",
    "PROFILES",
    "ProcessOutcome",
    "ProcessState",
    "SupervisedProcess",
    "WrapperProfile",
    "has_context_reference",
    "with_context_reference",
]

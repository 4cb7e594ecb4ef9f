#
# src/toolshim/invoker/protocols.py
#
"""
Defines protocols and data structures for external tool invocation.
"""

import asyncio
from collections.abc import Mapping, Sequence
from enum import Enum, auto
from pathlib import Path
from typing import Protocol, runtime_checkable

from attrs import define, field

NO_EXIT_CODE = -1


class InvocationOutcome(Enum):
    """Terminal classification of a single invocation."""

    SUCCESS = auto()
    TOOL_FAILURE = auto()  # Ran and exited non-zero.
    TOOL_NOT_FOUND = auto()  # Detected during resolution, nothing spawned.
    TIMED_OUT = auto()
    CANCELLED = auto()
    LAUNCH_ERROR = auto()  # The OS refused to start the process.


class InvocationState(Enum):
    """Lifecycle of one invocation, logged at every transition."""

    VALIDATING = auto()
    RESOLVING = auto()
    BUILDING = auto()
    LAUNCHING = auto()
    RUNNING = auto()
    COMPLETED = auto()
    NOT_FOUND = auto()
    TIMED_OUT = auto()
    CANCELLED = auto()
    LAUNCH_FAILED = auto()


TERMINAL_STATE_OUTCOMES = {
    InvocationState.NOT_FOUND: InvocationOutcome.TOOL_NOT_FOUND,
    InvocationState.TIMED_OUT: InvocationOutcome.TIMED_OUT,
    InvocationState.CANCELLED: InvocationOutcome.CANCELLED,
    InvocationState.LAUNCH_FAILED: InvocationOutcome.LAUNCH_ERROR,
}


def classify_exit_code(exit_code: int) -> InvocationOutcome:
    """Zero is success, anything else is a tool failure. Tool-specific codes are the caller's concern."""
    return InvocationOutcome.SUCCESS if exit_code == 0 else InvocationOutcome.TOOL_FAILURE


@define(frozen=True, slots=True)
class InvocationResult:
    """
    Structured, immutable result of exactly one invocation.
    """

    outcome: InvocationOutcome
    exit_code: int = NO_EXIT_CODE
    stdout: str = ""
    stderr: str = ""
    executable_path: Path | None = None
    arguments: tuple[str, ...] = field(factory=tuple, converter=tuple)
    pid: int | None = None
    duration: float = 0.0
    error: str | None = None
    stdout_truncated: bool = False
    stderr_truncated: bool = False

    @property
    def success(self) -> bool:
        return self.outcome is InvocationOutcome.SUCCESS


@runtime_checkable
class ProcessHandle(Protocol):
    """
    A started child process. Streams are read line by line by the invoker.
    """

    pid: int
    stdout: asyncio.StreamReader | None
    stderr: asyncio.StreamReader | None

    @property
    def returncode(self) -> int | None: ...

    async def wait(self) -> int:
        """Waits for the process to exit and returns its exit code."""
        ...

    def terminate(self) -> None:
        """Asks the process and its descendants to stop. No-op once exited."""
        ...

    def kill(self) -> None:
        """Forcibly stops the process and its descendants. No-op once exited."""
        ...


@runtime_checkable
class ProcessLauncher(Protocol):
    """
    Protocol for starting child processes.
    """

    async def start(
        self,
        executable_path: Path,
        arguments: Sequence[str],
        working_directory: Path | None,
        environment: Mapping[str, str],
    ) -> ProcessHandle:
        """
        Starts the executable with its stdout and stderr piped.

        Args:
            executable_path: The resolved path of the tool.
            arguments: Arguments following the executable, already materialized.
            working_directory: The directory to start in, or None to inherit.
            environment: The complete environment of the child.

        Returns:
            A ProcessHandle for the running child.

        Raises:
            ToolLaunchError: if the process could not be started. A plain
                OSError is treated the same way.
        """
        ...


@runtime_checkable
class OutputSink(Protocol):
    """
    Receives tool output line by line while the tool is still running.
    """

    def on_stdout(self, line: str) -> None: ...

    def on_stderr(self, line: str) -> None: ...


# 🔼⚙️

#
# src/toolshim/invoker/__init__.py
#
"""
External tool invocation sub-package for toolshim.
"""
from .arguments import build_argument_sequence, materialize_arguments
from .core import ToolInvoker
from .launcher import AsyncioProcessLauncher, get_launcher
from .protocols import (
    InvocationOutcome,
    InvocationResult,
    InvocationState,
    OutputSink,
    ProcessHandle,
    ProcessLauncher,
    classify_exit_code,
)
from .resolver import resolve_executable_path
from .sinks import CallbackSink, LoggingSink, NullSink

__all__ = [
    "AsyncioProcessLauncher",
    "CallbackSink",
    "InvocationOutcome",
    "InvocationResult",
    "InvocationState",
    "LoggingSink",
    "NullSink",
    "OutputSink",
    "ProcessHandle",
    "ProcessLauncher",
    "ToolInvoker",
    "build_argument_sequence",
    "classify_exit_code",
    "get_launcher",
    "materialize_arguments",
    "resolve_executable_path",
]

# 🔼⚙️

#
# src/toolshim/invoker/sinks.py
#
"""
OutputSink implementations for live tool output.
"""

from collections.abc import Callable

import structlog

from toolshim.invoker.protocols import OutputSink

log = structlog.get_logger("invoker.output")


class NullSink(OutputSink):
    """Discards streamed output. Captured output still lands in the result."""

    def on_stdout(self, line: str) -> None:
        pass

    def on_stderr(self, line: str) -> None:
        pass


class LoggingSink(OutputSink):
    """Forwards every line to structlog, stdout at INFO and stderr at WARNING."""

    def __init__(self, tool_name: str):
        self._log = log.bind(tool=tool_name)

    def on_stdout(self, line: str) -> None:
        self._log.info(line, stream="stdout")

    def on_stderr(self, line: str) -> None:
        self._log.warning(line, stream="stderr")


class CallbackSink(OutputSink):
    """Adapts a pair of plain callables to the OutputSink protocol."""

    def __init__(
        self,
        on_stdout: Callable[[str], None] | None = None,
        on_stderr: Callable[[str], None] | None = None,
    ):
        self._on_stdout = on_stdout
        self._on_stderr = on_stderr

    def on_stdout(self, line: str) -> None:
        if self._on_stdout is not None:
            self._on_stdout(line)

    def on_stderr(self, line: str) -> None:
        if self._on_stderr is not None:
            self._on_stderr(line)


# 🔼⚙️

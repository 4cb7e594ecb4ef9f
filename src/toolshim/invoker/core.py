#
# src/toolshim/invoker/core.py
#
"""
ToolInvoker: runs an external tool exactly once and reports what happened.
"""

import asyncio
import codecs
import os
import time
import uuid
from collections import deque
from collections.abc import Callable, Sequence
from contextlib import AbstractContextManager, ExitStack
from datetime import timedelta
from pathlib import Path

import structlog

from toolshim.config.models import DEFAULT_KILL_GRACE_PERIOD, ToolConfig
from toolshim.exceptions import ToolLaunchError, ToolNotFoundError
from toolshim.invoker import arguments as argument_builder
from toolshim.invoker import resolver
from toolshim.invoker.launcher import AsyncioProcessLauncher
from toolshim.invoker.protocols import (
    TERMINAL_STATE_OUTCOMES,
    InvocationOutcome,
    InvocationResult,
    InvocationState,
    OutputSink,
    ProcessHandle,
    ProcessLauncher,
    classify_exit_code,
)
from toolshim.invoker.sinks import NullSink
from toolshim.telemetry import StructLogger

log: StructLogger = structlog.get_logger("invoker.core")

READ_CHUNK_SIZE = 64 * 1024
MAX_LINE_LENGTH = 64 * 1024
DEFAULT_DRAIN_TIMEOUT = 2.0


class _StreamCollector:
    """
    Reads one output stream in chunks, hands complete lines to a sink callback
    and keeps at most ``limit`` characters of the stream's tail.
    """

    def __init__(
        self,
        stream: asyncio.StreamReader | None,
        emit: Callable[[str], None],
        capture: bool,
        limit: int,
        stream_log: StructLogger,
    ):
        self._stream = stream
        self._emit = emit
        self._capture = capture
        self._limit = limit
        self._log = stream_log
        self._parts: deque[str] = deque()
        self._size = 0
        self._sink_failed = False
        self.truncated = False

    @property
    def text(self) -> str:
        return "".join(self._parts)

    def _keep(self, text: str) -> None:
        if not self._capture or not text:
            return
        self._parts.append(text)
        self._size += len(text)
        while self._size > self._limit:
            excess = self._size - self._limit
            head = self._parts[0]
            if len(head) <= excess:
                self._parts.popleft()
                self._size -= len(head)
            else:
                self._parts[0] = head[excess:]
                self._size -= excess
            self.truncated = True

    def _forward(self, line: str) -> None:
        try:
            self._emit(line.removesuffix("\r"))
        except Exception:
            if not self._sink_failed:
                self._log.exception("Output sink raised, continuing invocation")
            self._sink_failed = True

    async def run(self) -> None:
        if self._stream is None:
            return
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        while True:
            chunk = await self._stream.read(READ_CHUNK_SIZE)
            if not chunk:
                break
            text = decoder.decode(chunk)
            self._keep(text)
            pending += text
            *lines, pending = pending.split("\n")
            for line in lines:
                self._forward(line)
            while len(pending) > MAX_LINE_LENGTH:
                self._forward(pending[:MAX_LINE_LENGTH])
                pending = pending[MAX_LINE_LENGTH:]
        tail = decoder.decode(b"", final=True)
        self._keep(tail)
        pending += tail
        if pending:
            self._forward(pending)


class ToolInvoker:
    """
    Turns a ToolConfig into exactly one subprocess execution and an
    InvocationResult.

    Only ConfigurationError is raised; every other outcome is returned. The
    invoker keeps no per-invocation state, so one instance may run several
    invocations concurrently.
    """

    def __init__(
        self,
        launcher: ProcessLauncher | None = None,
        sink: OutputSink | None = None,
        kill_grace_period: timedelta | float = DEFAULT_KILL_GRACE_PERIOD,
        drain_timeout: float = DEFAULT_DRAIN_TIMEOUT,
    ):
        self._launcher = launcher if launcher is not None else AsyncioProcessLauncher()
        self._sink = sink if sink is not None else NullSink()
        if isinstance(kill_grace_period, timedelta):
            kill_grace_period = kill_grace_period.total_seconds()
        self._kill_grace = kill_grace_period
        self._drain_timeout = drain_timeout
        log.debug(
            "ToolInvoker initialized",
            launcher=type(self._launcher).__name__,
            sink=type(self._sink).__name__,
        )

    # --- Individual steps ---
    def resolve_executable_path(
        self, config: ToolConfig, environment: dict[str, str] | None = None
    ) -> Path:
        return resolver.resolve_executable_path(config, environment)

    def build_argument_sequence(self, config: ToolConfig) -> tuple[str, ...]:
        return argument_builder.build_argument_sequence(config)

    def materialize_arguments(
        self, sequence: Sequence[str], config: ToolConfig
    ) -> AbstractContextManager[list[str]]:
        return argument_builder.materialize_arguments(sequence, config)

    @staticmethod
    def build_environment(config: ToolConfig) -> dict[str, str]:
        environment = dict(os.environ)
        environment.update(config.environment_overrides)
        return environment

    # --- Invocation ---
    def invoke_sync(self, config: ToolConfig, **kwargs) -> InvocationResult:
        """Runs :meth:`invoke` on a fresh event loop, for synchronous callers."""
        return asyncio.run(self.invoke(config, **kwargs))

    async def invoke(
        self,
        config: ToolConfig,
        *,
        cancel_event: asyncio.Event | None = None,
        sink: OutputSink | None = None,
    ) -> InvocationResult:
        """
        Validates, resolves, builds and runs the tool described by ``config``.

        Args:
            config: The tool configuration.
            cancel_event: Setting this event terminates the tool and yields a
                CANCELLED result. Setting it after the tool exited has no effect.
            sink: Receives output lines as they arrive. Defaults to the
                invoker's sink.

        Returns:
            The InvocationResult for this attempt.

        Raises:
            ConfigurationError: if ``config`` is invalid. Nothing is launched.
            asyncio.CancelledError: if the awaiting task is cancelled. The
                tool has been killed and the response file removed by then.
        """
        inv_log = log.bind(executable=config.executable_name, invocation_id=uuid.uuid4().hex[:8])
        started = time.monotonic()

        self._transition(inv_log, InvocationState.VALIDATING)
        config.validate()
        environment = self.build_environment(config)

        self._transition(inv_log, InvocationState.RESOLVING)
        try:
            executable_path = self.resolve_executable_path(config, environment)
        except ToolNotFoundError as e:
            return self._finish(
                inv_log, InvocationState.NOT_FOUND, started, error=str(e)
            )

        self._transition(inv_log, InvocationState.BUILDING, executable_path=str(executable_path))
        sequence = self.build_argument_sequence(config)

        with ExitStack() as stack:
            try:
                process_arguments = stack.enter_context(self.materialize_arguments(sequence, config))
            except OSError as e:
                return self._finish(
                    inv_log,
                    InvocationState.LAUNCH_FAILED,
                    started,
                    executable_path=executable_path,
                    arguments=sequence,
                    error=f"Cannot write response file: {e}",
                )

            if cancel_event is not None and cancel_event.is_set():
                return self._finish(
                    inv_log,
                    InvocationState.CANCELLED,
                    started,
                    executable_path=executable_path,
                    arguments=sequence,
                )

            return await self._launch_and_wait(
                inv_log,
                config,
                executable_path,
                sequence,
                process_arguments,
                environment,
                cancel_event,
                sink if sink is not None else self._sink,
                started,
            )

    async def _launch_and_wait(
        self,
        inv_log: StructLogger,
        config: ToolConfig,
        executable_path: Path,
        sequence: tuple[str, ...],
        process_arguments: list[str],
        environment: dict[str, str],
        cancel_event: asyncio.Event | None,
        sink: OutputSink,
        started: float,
    ) -> InvocationResult:
        self._transition(
            inv_log,
            InvocationState.LAUNCHING,
            command=argument_builder.format_command_line(executable_path, process_arguments),
            working_dir=str(config.working_directory) if config.working_directory else None,
        )
        try:
            handle = await self._launcher.start(
                executable_path, process_arguments, config.working_directory, environment
            )
        except (ToolLaunchError, OSError) as e:
            return self._finish(
                inv_log,
                InvocationState.LAUNCH_FAILED,
                started,
                executable_path=executable_path,
                arguments=sequence,
                error=str(e) if isinstance(e, ToolLaunchError) else f"{type(e).__name__}: {e}",
            )

        self._transition(inv_log, InvocationState.RUNNING, pid=handle.pid)
        collectors = (
            _StreamCollector(
                handle.stdout, sink.on_stdout, config.capture_output, config.capture_limit,
                inv_log.bind(stream="stdout"),
            ),
            _StreamCollector(
                handle.stderr, sink.on_stderr, config.capture_output, config.capture_limit,
                inv_log.bind(stream="stderr"),
            ),
        )
        readers = [asyncio.create_task(collector.run()) for collector in collectors]
        wait_task = asyncio.create_task(handle.wait())
        cancel_task = (
            asyncio.create_task(cancel_event.wait()) if cancel_event is not None else None
        )

        try:
            waiters = {wait_task} if cancel_task is None else {wait_task, cancel_task}
            done, _ = await asyncio.wait(
                waiters,
                timeout=config.timeout_seconds,
                return_when=asyncio.FIRST_COMPLETED,
            )
            if wait_task in done:
                state = InvocationState.COMPLETED
            elif cancel_task is not None and cancel_task in done:
                state = InvocationState.CANCELLED
            else:
                state = InvocationState.TIMED_OUT

            if state is not InvocationState.COMPLETED:
                inv_log.warning(
                    "Stopping tool",
                    reason=state.name.lower(),
                    timeout=config.timeout_seconds,
                    pid=handle.pid,
                )
                await self._stop(inv_log, handle, wait_task)

            exit_code = wait_task.result()
            await self._drain(inv_log, handle, readers)
        except asyncio.CancelledError:
            inv_log.warning("Invocation task cancelled, killing tool", pid=handle.pid)
            handle.kill()
            if not wait_task.done():
                await asyncio.wait({wait_task}, timeout=self._drain_timeout)
            wait_task.cancel()
            for reader in readers:
                reader.cancel()
            await asyncio.gather(wait_task, *readers, return_exceptions=True)
            raise
        finally:
            if cancel_task is not None:
                cancel_task.cancel()

        stdout, stderr = collectors
        return self._finish(
            inv_log,
            state,
            started,
            exit_code=exit_code,
            executable_path=executable_path,
            arguments=sequence,
            pid=handle.pid,
            stdout=stdout.text,
            stderr=stderr.text,
            stdout_truncated=stdout.truncated,
            stderr_truncated=stderr.truncated,
        )

    async def _stop(
        self, inv_log: StructLogger, handle: ProcessHandle, wait_task: asyncio.Task
    ) -> None:
        """Terminates the process tree, escalating to kill after the grace period."""
        handle.terminate()
        done, _ = await asyncio.wait({wait_task}, timeout=self._kill_grace)
        if not done:
            inv_log.warning(
                "Tool ignored terminate, killing", pid=handle.pid, grace_period=self._kill_grace
            )
            handle.kill()
            await wait_task
        # Descendants that ignored the terminate.
        handle.kill()

    async def _drain(
        self, inv_log: StructLogger, handle: ProcessHandle, readers: list[asyncio.Task]
    ) -> None:
        """Waits for both streams to reach EOF after the process exited."""
        _, pending = await asyncio.wait(readers, timeout=self._drain_timeout)
        if pending:
            inv_log.warning(
                "Output streams still open after exit, killing leftover descendants",
                pid=handle.pid,
            )
            handle.kill()
            _, pending = await asyncio.wait(pending, timeout=self._drain_timeout)
            for reader in pending:
                reader.cancel()
        for reader in readers:
            if reader.done() and not reader.cancelled() and reader.exception() is not None:
                inv_log.error(
                    "Output reader failed",
                    error=f"{type(reader.exception()).__name__}: {reader.exception()}",
                )

    # --- Bookkeeping ---
    @staticmethod
    def _transition(inv_log: StructLogger, state: InvocationState, **details) -> None:
        inv_log.debug("Invocation state changed", state=state.name, **details)

    def _finish(
        self,
        inv_log: StructLogger,
        state: InvocationState,
        started: float,
        exit_code: int | None = None,
        **fields,
    ) -> InvocationResult:
        self._transition(inv_log, state)
        if state is InvocationState.COMPLETED:
            outcome = classify_exit_code(exit_code)
        else:
            outcome = TERMINAL_STATE_OUTCOMES[state]
        if exit_code is not None:
            fields["exit_code"] = exit_code

        result = InvocationResult(outcome=outcome, duration=time.monotonic() - started, **fields)
        log_method = inv_log.info if outcome is InvocationOutcome.SUCCESS else inv_log.warning
        log_method(
            "Tool invocation finished",
            outcome=outcome.name,
            exit_code=result.exit_code,
            duration=round(result.duration, 3),
            error=result.error,
        )
        return result


# 🔼⚙️

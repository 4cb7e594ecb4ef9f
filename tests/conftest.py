#
# tests/conftest.py
#
"""
Shared fixtures: a scripted ProcessLauncher double and a resolvable tool.
"""

import asyncio
import stat
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from toolshim.config.models import ToolConfig
from toolshim.invoker.protocols import ProcessHandle, ProcessLauncher

FAKE_TOOL_NAME = "fake-tool"


class FakeProcessHandle(ProcessHandle):
    """
    A process that has already written its output. Unless ``run_forever`` is
    set it exits immediately with ``exit_code``; otherwise it runs until
    terminated or killed.
    """

    def __init__(
        self,
        pid: int = 4242,
        exit_code: int = 0,
        stdout: bytes = b"",
        stderr: bytes = b"",
        run_forever: bool = False,
        ignore_terminate: bool = False,
        ignore_kill: bool = False,
    ):
        self.pid = pid
        self.stdout = asyncio.StreamReader()
        self.stderr = asyncio.StreamReader()
        self.terminate_calls = 0
        self.kill_calls = 0
        self._ignore_terminate = ignore_terminate
        self._ignore_kill = ignore_kill
        self._returncode: int | None = None
        self._exited = asyncio.Event()
        if stdout:
            self.stdout.feed_data(stdout)
        if stderr:
            self.stderr.feed_data(stderr)
        if not run_forever:
            self.finish(exit_code)

    @property
    def returncode(self) -> int | None:
        return self._returncode

    def finish(self, exit_code: int) -> None:
        if self._returncode is not None:
            return
        self._returncode = exit_code
        self.stdout.feed_eof()
        self.stderr.feed_eof()
        self._exited.set()

    async def wait(self) -> int:
        await self._exited.wait()
        return self._returncode

    def terminate(self) -> None:
        self.terminate_calls += 1
        if not self._ignore_terminate:
            self.finish(-15)

    def kill(self) -> None:
        self.kill_calls += 1
        if not self._ignore_kill:
            self.finish(-9)


class FakeLauncher(ProcessLauncher):
    """
    Records every start() call and hands out FakeProcessHandles built from
    ``handle_options``. Response files referenced by the arguments are read at
    start time, while they still exist.
    """

    def __init__(self, start_error: Exception | None = None, **handle_options):
        self.start_error = start_error
        self.handle_options = handle_options
        self.calls: list[dict] = []
        self.handles: list[FakeProcessHandle] = []
        self.response_files: list[tuple[Path, list[str]]] = []

    async def start(
        self,
        executable_path: Path,
        arguments: Sequence[str],
        working_directory: Path | None,
        environment: Mapping[str, str],
    ) -> FakeProcessHandle:
        self.calls.append(
            {
                "executable_path": executable_path,
                "arguments": list(arguments),
                "working_directory": working_directory,
                "environment": dict(environment),
            }
        )
        for argument in arguments:
            if argument.startswith("@"):
                path = Path(argument[1:])
                self.response_files.append((path, path.read_text(encoding="utf-8").splitlines()))
        if self.start_error is not None:
            raise self.start_error
        handle = FakeProcessHandle(**self.handle_options)
        self.handles.append(handle)
        return handle


class RecordingSink:
    def __init__(self):
        self.stdout: list[str] = []
        self.stderr: list[str] = []

    def on_stdout(self, line: str) -> None:
        self.stdout.append(line)

    def on_stderr(self, line: str) -> None:
        self.stderr.append(line)


def make_executable(directory: Path, name: str, body: str = "") -> Path:
    path = directory / name
    path.write_text(body or "#!/bin/sh\nexit 0\n")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def tool_dir(tmp_path: Path) -> Path:
    """A directory holding an executable named FAKE_TOOL_NAME."""
    directory = tmp_path / "tools"
    directory.mkdir()
    make_executable(directory, FAKE_TOOL_NAME)
    return directory


@pytest.fixture
def fake_tool_config(tool_dir: Path) -> ToolConfig:
    return ToolConfig(executable_name=FAKE_TOOL_NAME, tool_path_override=tool_dir)


@pytest.fixture
def recording_sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def python_tool() -> dict:
    """ToolConfig fields that resolve to the running Python interpreter."""
    interpreter = Path(sys.executable)
    return {"executable_name": interpreter.name, "tool_path_override": interpreter.parent}

@pytest.fixture
def launcher_factory() -> type[FakeLauncher]:
    return FakeLauncher


@pytest.fixture
def make_tool():
    return make_executable

#
# src/toolshim/invoker/launcher.py
#
"""
The real ProcessLauncher, built on asyncio.subprocess.
"""

import asyncio
import os
import signal
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

import structlog

from toolshim.exceptions import ConfigurationError, ToolLaunchError
from toolshim.invoker.protocols import ProcessHandle, ProcessLauncher

log = structlog.get_logger("invoker.launcher")

IS_POSIX = os.name == "posix"


class SubprocessHandle(ProcessHandle):
    """
    Wraps an asyncio Process started in its own process group so the whole
    tree can be signalled.
    """

    def __init__(self, process: asyncio.subprocess.Process):
        self._process = process
        self.pid = process.pid
        self.stdout = process.stdout
        self.stderr = process.stderr

    @property
    def returncode(self) -> int | None:
        return self._process.returncode

    async def wait(self) -> int:
        return await self._process.wait()

    def terminate(self) -> None:
        self._signal_tree(signal.SIGTERM if IS_POSIX else None)

    def kill(self) -> None:
        self._signal_tree(signal.SIGKILL if IS_POSIX else None)

    def _signal_tree(self, sig: int | None) -> None:
        # The group can outlive its leader, so POSIX signals it even after exit.
        if IS_POSIX:
            try:
                os.killpg(self.pid, sig)
                return
            except ProcessLookupError:
                return
            except PermissionError as e:
                log.debug("Cannot signal process group, signalling leader only", pid=self.pid, error=str(e))
        if self._process.returncode is not None:
            return
        try:
            if sig is None or sig == getattr(signal, "SIGKILL", None):
                self._process.kill()
            else:
                self._process.send_signal(sig)
        except ProcessLookupError:
            pass


class AsyncioProcessLauncher(ProcessLauncher):
    """
    Implements the ProcessLauncher protocol with asyncio.create_subprocess_exec.
    """

    async def start(
        self,
        executable_path: Path,
        arguments: Sequence[str],
        working_directory: Path | None,
        environment: Mapping[str, str],
    ) -> SubprocessHandle:
        launch_log = log.bind(executable=str(executable_path), working_dir=str(working_directory))
        if IS_POSIX:
            group_kwargs = {"start_new_session": True}
        else:
            group_kwargs = {"creationflags": subprocess.CREATE_NEW_PROCESS_GROUP}

        try:
            process = await asyncio.create_subprocess_exec(
                str(executable_path),
                *arguments,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=working_directory,
                env=dict(environment),
                **group_kwargs,
            )
        except OSError as e:
            launch_log.error("Process failed to start", error=str(e))
            raise ToolLaunchError(
                f"Failed to start tool: {e.strerror or e}", executable=str(executable_path), details=e
            ) from e
        launch_log.debug("Process started", pid=process.pid)
        return SubprocessHandle(process)


LAUNCHER_MAP = {
    "asyncio": AsyncioProcessLauncher,
    "subprocess": AsyncioProcessLauncher,  # A generic alias
}


def get_launcher(launcher_name: str = "asyncio") -> ProcessLauncher:
    """
    Factory function to get an instance of a ProcessLauncher.
    """
    launcher_class = LAUNCHER_MAP.get(launcher_name.lower())

    if not launcher_class:
        log.error("Unsupported process launcher specified", launcher=launcher_name)
        raise ConfigurationError(
            f"Unsupported process launcher: '{launcher_name}'. "
            f"Available launchers: {list(LAUNCHER_MAP.keys())}"
        )

    log.debug("Instantiating process launcher", launcher=launcher_name)
    return launcher_class()


# 🔼⚙️

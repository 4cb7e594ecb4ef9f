#
# src/toolshim/invoker/arguments.py
#
"""
Turns a ToolConfig into the argument list handed to the launcher.

Order is positional arguments, then enabled boolean flags, then named
switches. Tools that parse greedily need their inputs ahead of the options.
"""

import os
import shlex
import tempfile
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import structlog

from toolshim.config.models import ToolConfig

log = structlog.get_logger("invoker.arguments")

SWITCH_PREFIX = "--"
SWITCH_SEPARATOR = "="
RESPONSE_FILE_SUFFIX = ".rsp"


def _is_blank(value: str | None) -> bool:
    return value is None or not value.strip()


def format_switch(name: str, value: str) -> str:
    """Formats a named switch as ``--name=value``. Leading dashes on the name are ignored."""
    return f"{SWITCH_PREFIX}{name.lstrip('-')}{SWITCH_SEPARATOR}{value}"


def build_argument_sequence(config: ToolConfig) -> tuple[str, ...]:
    """
    Builds the ordered argument sequence for a tool configuration.

    Blank switch values mean "not set": the switch is left out entirely
    rather than emitted with an empty value.
    """
    arguments: list[str] = list(config.positional_arguments)
    arguments.extend(flag for flag, enabled in config.boolean_flags.items() if enabled)
    arguments.extend(
        format_switch(name, value)
        for name, value in config.named_switches.items()
        if not _is_blank(value)
    )
    return tuple(arguments)


def write_response_file(arguments: Sequence[str]) -> Path:
    """Writes one argument per line, UTF-8, to a new uniquely named temporary file."""
    fd, name = tempfile.mkstemp(prefix="toolshim-", suffix=RESPONSE_FILE_SUFFIX)
    path = Path(name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            for argument in arguments:
                f.write(argument)
                f.write("\n")
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path


@contextmanager
def materialize_arguments(sequence: Sequence[str], config: ToolConfig) -> Iterator[list[str]]:
    """
    Yields the process arguments for ``sequence``.

    With ``use_response_file`` the arguments go to a temporary response file
    referenced by a single ``<prefix><path>`` argument; the file is removed
    when the block exits, however it exits.
    """
    if not config.use_response_file:
        yield list(sequence)
        return

    response_file = write_response_file(sequence)
    rsp_log = log.bind(response_file=str(response_file))
    rsp_log.debug("Response file written", argument_count=len(sequence))
    try:
        yield [f"{config.response_file_prefix}{response_file}"]
    finally:
        try:
            response_file.unlink(missing_ok=True)
            rsp_log.debug("Response file removed")
        except OSError as e:
            rsp_log.warning("Failed to remove response file", error=str(e))


def format_command_line(executable: Path | str, arguments: Sequence[str]) -> str:
    """Shell-quoted rendering of a command, for logs and messages only."""
    return shlex.join([str(executable), *arguments])


# 🔼⚙️

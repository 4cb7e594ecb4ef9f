#
# src/toolshim/presets/nunit3.py
#
"""
Preset for the NUnit3 console runner.
"""

from collections.abc import Iterable
from typing import Any

from toolshim.config.models import ToolConfig
from toolshim.exceptions import ConfigurationError

NUNIT3_EXECUTABLE = "nunit3-console.exe"
NUNIT3_X86_FLAG = "--x86"


def _text(value: Any) -> str | None:
    """TOML and CLI callers may pass numbers, e.g. ``agents = 4``."""
    return None if value is None else str(value)


def nunit3_config(
    assemblies: Iterable[str],
    *,
    result: str | None = None,
    force_x86: bool = False,
    framework: str | None = None,
    agents: int | str | None = None,
    where: str | None = None,
    executable_name: str = NUNIT3_EXECUTABLE,
    use_response_file: bool = True,
    **options: Any,
) -> ToolConfig:
    """
    Builds a ToolConfig for ``nunit3-console``.

    Args:
        assemblies: Test assemblies, passed first and in order.
        result: Value of ``--result``. It takes a file name plus options, so a
            format can ride along, e.g. ``out.xml;format=nunit2``.
        force_x86: Adds ``--x86`` to run tests in a 32-bit process.
        framework: Value of ``--framework``.
        agents: Value of ``--agents``, the number of assemblies run in parallel.
        where: Value of ``--where``, a test selection expression.
        executable_name: Console runner executable name.
        use_response_file: Pass the arguments through an ``@file`` response file.
        **options: Any other ToolConfig field (``tool_path_override``,
            ``timeout``, ``working_directory`` ...).

    Blank switch values are left out, so ``agents=""`` does not emit
    ``--agents=``.
    """
    if isinstance(assemblies, str):
        assemblies = [assemblies]
    assemblies = tuple(assemblies)
    if not assemblies:
        raise ConfigurationError("NUnit3 needs at least one test assembly")

    return ToolConfig(
        executable_name=executable_name,
        positional_arguments=assemblies,
        boolean_flags={NUNIT3_X86_FLAG: bool(force_x86)},
        named_switches={
            "agents": _text(agents),
            "framework": _text(framework),
            "result": _text(result),
            "where": _text(where),
        },
        use_response_file=use_response_file,
        **options,
    )


# 🔼⚙️

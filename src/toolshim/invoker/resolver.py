#
# src/toolshim/invoker/resolver.py
#
"""
Resolves a tool's executable name to a path before anything is spawned.
"""

import os
import shutil
from collections.abc import Mapping
from pathlib import Path

import structlog

from toolshim.config.models import ToolConfig
from toolshim.exceptions import ToolNotFoundError

log = structlog.get_logger("invoker.resolver")


def _is_executable_file(path: Path) -> bool:
    return path.is_file() and os.access(path, os.X_OK)


def _has_directory_part(name: str) -> bool:
    separators = {os.sep, os.altsep} - {None}
    return any(sep in name for sep in separators)


def resolve_executable_path(
    config: ToolConfig,
    environment: Mapping[str, str] | None = None,
) -> Path:
    """
    Finds the executable named by ``config``.

    With ``tool_path_override`` set the executable must live in that
    directory and no search path is consulted. A name containing a directory
    part is taken as a path. Otherwise the configured ``search_paths`` are
    searched first, then PATH from ``environment`` (default: ``os.environ``).

    Raises:
        ToolNotFoundError: if nothing matches.
    """
    name = config.executable_name
    resolve_log = log.bind(executable=name)

    if config.tool_path_override is not None:
        candidate = config.tool_path_override / name
        if _is_executable_file(candidate):
            resolve_log.debug("Resolved via tool path override", path=str(candidate))
            return candidate
        resolve_log.warning("Executable not found in tool path override", path=str(candidate))
        raise ToolNotFoundError(
            f"No executable file at '{candidate}'", executable=name
        )

    if _has_directory_part(name):
        candidate = Path(name)
        if _is_executable_file(candidate):
            resolve_log.debug("Resolved explicit path", path=str(candidate))
            return candidate
        raise ToolNotFoundError(f"No executable file at '{candidate}'", executable=name)

    if config.search_paths:
        found = shutil.which(name, path=os.pathsep.join(str(p) for p in config.search_paths))
        if found:
            resolve_log.debug("Resolved via configured search paths", path=found)
            return Path(found)

    env = os.environ if environment is None else environment
    found = shutil.which(name, path=env.get("PATH", os.defpath))
    if found:
        resolve_log.debug("Resolved via PATH", path=found)
        return Path(found)

    resolve_log.warning(
        "Executable not found",
        search_paths=[str(p) for p in config.search_paths],
    )
    raise ToolNotFoundError(
        "Executable not found in the configured search paths or PATH. Is it installed?",
        executable=name,
    )


# 🔼⚙️

#
# src/toolshim/config/loader.py
#
"""
Loads toolshim configuration from a TOML file into attrs models.
"""

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import structlog

from toolshim.config.models import GlobalConfig, ToolConfig, ToolshimConfig
from toolshim.exceptions import ConfigurationError

log = structlog.get_logger("config.loader")

ENV_LOG_LEVEL = "TOOLSHIM_LOG_LEVEL"

# TOML key -> ToolConfig field
TOOL_KEY_MAP = {
    "executable": "executable_name",
    "tool_path": "tool_path_override",
    "arguments": "positional_arguments",
    "switches": "named_switches",
    "flags": "boolean_flags",
    "response_file": "use_response_file",
    "response_file_prefix": "response_file_prefix",
    "working_dir": "working_directory",
    "env": "environment_overrides",
    "search_paths": "search_paths",
    "timeout": "timeout",
    "capture_output": "capture_output",
    "capture_limit": "capture_limit",
}
PATH_KEYS = ("tool_path", "working_dir")
GLOBAL_KEYS = ("log_level", "kill_grace_period")


def _resolve_relative(value: Any, base_dir: Path) -> Any:
    if isinstance(value, str) and value.strip():
        path = Path(value).expanduser()
        return path if path.is_absolute() else base_dir / path
    return value


def _build_tool(name: str, table: Mapping[str, Any], base_dir: Path) -> ToolConfig:
    tool_log = log.bind(tool=name)
    if not isinstance(table, Mapping):
        raise ConfigurationError(f"[tools.{name}] must be a table")

    options = dict(table)
    for key in PATH_KEYS:
        if key in options:
            options[key] = _resolve_relative(options[key], base_dir)
    if "search_paths" in options:
        search_paths = options["search_paths"]
        if isinstance(search_paths, str):
            search_paths = [search_paths]
        if not isinstance(search_paths, list):
            raise ConfigurationError(f"[tools.{name}] 'search_paths' must be a list of paths")
        options["search_paths"] = [_resolve_relative(p, base_dir) for p in search_paths]

    preset_name = options.pop("preset", None)
    try:
        if preset_name is not None:
            # Deferred: toolshim.presets imports toolshim.config.
            from toolshim.presets import get_preset

            tool_log.debug("Building tool from preset", preset=preset_name)
            preset_options = {TOOL_KEY_MAP.get(key, key): value for key, value in options.items()}
            return get_preset(preset_name)(**preset_options)

        unknown = sorted(set(options) - set(TOOL_KEY_MAP))
        if unknown:
            raise ConfigurationError(
                f"Unknown key(s) {unknown}. Valid keys: {sorted(TOOL_KEY_MAP)}"
            )
        if "executable" not in options:
            raise ConfigurationError("Missing required key 'executable'")
        return ToolConfig(**{TOOL_KEY_MAP[key]: value for key, value in options.items()})
    except ConfigurationError as e:
        tool_log.error("Invalid tool configuration", error=str(e))
        raise ConfigurationError(f"[tools.{name}] {e}") from e
    except (TypeError, ValueError) as e:
        tool_log.error("Invalid tool configuration", error=str(e))
        raise ConfigurationError(f"[tools.{name}] {e}") from e


def _build_global(table: Mapping[str, Any]) -> GlobalConfig:
    if not isinstance(table, Mapping):
        raise ConfigurationError("[global] must be a table")
    unknown = sorted(set(table) - set(GLOBAL_KEYS))
    if unknown:
        raise ConfigurationError(f"[global] Unknown key(s) {unknown}. Valid keys: {list(GLOBAL_KEYS)}")

    options = dict(table)
    env_level = os.environ.get(ENV_LOG_LEVEL)
    if env_level:
        log.debug("Log level overridden from environment", env_var=ENV_LOG_LEVEL, level=env_level)
        options["log_level"] = env_level
    try:
        return GlobalConfig(**options)
    except ConfigurationError as e:
        raise ConfigurationError(f"[global] {e}") from e


def load_config(config_path: Path) -> ToolshimConfig:
    """
    Loads and validates a toolshim TOML configuration file.

    Relative paths inside the file resolve against the file's own directory.

    Raises:
        ConfigurationError: if the file is missing, is not valid TOML, or any
            section fails validation.
    """
    config_path = Path(config_path)
    load_log = log.bind(config_path=str(config_path))
    load_log.debug("Loading configuration")

    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file not found: '{config_path}'") from None
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file '{config_path}': {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in '{config_path}': {e}") from e

    unknown_sections = sorted(set(data) - {"global", "tools"})
    if unknown_sections:
        raise ConfigurationError(f"Unknown top-level section(s) {unknown_sections} in '{config_path}'")

    base_dir = config_path.resolve().parent
    global_config = _build_global(data.get("global", {}))

    tools_table = data.get("tools", {})
    if not isinstance(tools_table, Mapping):
        raise ConfigurationError("[tools] must be a table of tool sections")
    tools = {name: _build_tool(name, table, base_dir) for name, table in tools_table.items()}

    load_log.info("Configuration loaded", tool_count=len(tools), tools=list(tools))
    return ToolshimConfig(tools=tools, global_config=global_config, config_file_path=config_path)


# 🔼⚙️

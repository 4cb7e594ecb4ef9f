#
# src/toolshim/config/models.py
#
"""
Attrs-based data models for toolshim configuration.

A ToolConfig is built once per invocation attempt and never mutated; its
validators run at construction so that an invalid configuration is reported
before anything is resolved or launched.
"""

import logging
from collections.abc import Iterable, Mapping
from datetime import timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any

import attrs
from attrs import define, field

from toolshim.exceptions import ConfigurationError

DEFAULT_CAPTURE_LIMIT = 1024 * 1024
DEFAULT_RESPONSE_FILE_PREFIX = "@"
DEFAULT_KILL_GRACE_PERIOD = timedelta(seconds=2)


# --- Converters ---
def _optional_path(value: str | Path | None) -> Path | None:
    """Empty strings count as 'not set', matching how build systems pass blanks."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return Path(value)


def _to_timedelta(value: timedelta | float | int | None) -> timedelta | None:
    """Accepts a timedelta or a number of seconds."""
    if value is None or isinstance(value, timedelta):
        return value
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ConfigurationError(
            f"Timeout must be a number of seconds or a timedelta, got {value!r}"
        )
    return timedelta(seconds=value)


def _str_tuple(values: Iterable[str]) -> tuple[str, ...]:
    if isinstance(values, str):
        return (values,)
    return tuple(values)


def _switch_mapping(values: Mapping[str, str | None] | None) -> Mapping[str, str | None]:
    return MappingProxyType(dict(values or {}))


def _flag_mapping(values: Mapping[str, bool] | Iterable[str] | None) -> Mapping[str, bool]:
    """A mapping of flag -> enabled, or a plain iterable of enabled flag names."""
    if values is None:
        return MappingProxyType({})
    if isinstance(values, str):
        return MappingProxyType({values: True})
    if isinstance(values, Mapping):
        return MappingProxyType({name: bool(enabled) for name, enabled in values.items()})
    return MappingProxyType({name: True for name in values})


def _env_mapping(values: Mapping[str, str] | None) -> Mapping[str, str]:
    return MappingProxyType(dict(values or {}))


def _path_tuple(values: Iterable[str | Path] | None) -> tuple[Path, ...]:
    if values is None:
        return ()
    if isinstance(values, str | Path):
        values = [values]
    return tuple(Path(value) for value in values)


# --- Validators ---
def _validate_executable_name(inst: Any, attr: Any, value: str) -> None:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(f"Field '{attr.name}' must be a non-empty string, got {value!r}")


def _validate_str_items(inst: Any, attr: Any, value: tuple[str, ...]) -> None:
    for item in value:
        if not isinstance(item, str):
            raise ConfigurationError(f"Field '{attr.name}' must only contain strings, got {item!r}")


def _validate_switches(inst: Any, attr: Any, value: Mapping[str, str | None]) -> None:
    for name, switch_value in value.items():
        if not isinstance(name, str) or not name.strip("-").strip():
            raise ConfigurationError(f"Invalid switch name {name!r} in '{attr.name}'")
        if switch_value is not None and not isinstance(switch_value, str):
            raise ConfigurationError(
                f"Switch '{name}' must have a string value or None, got {switch_value!r}"
            )


def _validate_flags(inst: Any, attr: Any, value: Mapping[str, bool]) -> None:
    for name in value:
        if not isinstance(name, str) or not name.strip():
            raise ConfigurationError(f"Invalid flag name {name!r} in '{attr.name}'")


def _validate_environment(inst: Any, attr: Any, value: Mapping[str, str]) -> None:
    for name, env_value in value.items():
        if not isinstance(name, str) or not name or "=" in name:
            raise ConfigurationError(f"Invalid environment variable name {name!r}")
        if not isinstance(env_value, str):
            raise ConfigurationError(
                f"Environment variable '{name}' must be a string, got {env_value!r}"
            )


def _validate_non_negative_timedelta(inst: Any, attr: Any, value: timedelta | None) -> None:
    if value is not None and value < timedelta(0):
        raise ConfigurationError(f"Field '{attr.name}' must not be negative, got {value}")


def _validate_positive_int(inst: Any, attr: Any, value: int) -> None:
    """Validator ensures integer is positive."""
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"Field '{attr.name}' must be positive integer, got {value}")


def _validate_log_level(inst: Any, attr: Any, value: str) -> None:
    """Validator for standard logging level names."""
    valid = logging.getLevelNamesMapping().keys()
    if not isinstance(value, str) or value.upper() not in valid:
        raise ConfigurationError(f"Invalid log_level '{value}'. Must be one of {list(valid)}.")


# --- Tool configuration ---
@define(frozen=True, slots=True)
class ToolConfig:
    """Everything needed to run an external tool exactly once."""

    executable_name: str = field(validator=_validate_executable_name)
    tool_path_override: Path | None = field(default=None, converter=_optional_path)
    positional_arguments: tuple[str, ...] = field(
        factory=tuple, converter=_str_tuple, validator=_validate_str_items
    )
    named_switches: Mapping[str, str | None] = field(
        factory=dict, converter=_switch_mapping, validator=_validate_switches
    )
    boolean_flags: Mapping[str, bool] = field(
        factory=dict, converter=_flag_mapping, validator=_validate_flags
    )
    use_response_file: bool = field(default=False)
    response_file_prefix: str = field(default=DEFAULT_RESPONSE_FILE_PREFIX)
    working_directory: Path | None = field(default=None, converter=_optional_path)
    environment_overrides: Mapping[str, str] = field(
        factory=dict, converter=_env_mapping, validator=_validate_environment
    )
    search_paths: tuple[Path, ...] = field(factory=tuple, converter=_path_tuple)
    timeout: timedelta | None = field(
        default=None, converter=_to_timedelta, validator=_validate_non_negative_timedelta
    )
    capture_output: bool = field(default=True)
    capture_limit: int = field(default=DEFAULT_CAPTURE_LIMIT, validator=_validate_positive_int)

    def __attrs_post_init__(self) -> None:
        self._check_response_file_arguments()

    def _check_response_file_arguments(self) -> None:
        if not self.use_response_file:
            return
        candidates = [
            *self.positional_arguments,
            *self.boolean_flags,
            *(value for value in self.named_switches.values() if value),
        ]
        for argument in candidates:
            if "\n" in argument or "\r" in argument:
                raise ConfigurationError(
                    f"Argument {argument!r} contains a line break and cannot be "
                    "written to a response file"
                )

    def validate(self) -> None:
        """Re-runs every field validator plus the cross-field checks."""
        attrs.validate(self)
        self._check_response_file_arguments()

    @property
    def timeout_seconds(self) -> float | None:
        return None if self.timeout is None else self.timeout.total_seconds()


# --- Global and root configuration ---
@define(frozen=True, slots=True)
class GlobalConfig:
    """Global default settings for toolshim."""

    log_level: str = field(default="INFO", validator=_validate_log_level)
    kill_grace_period: timedelta = field(
        default=DEFAULT_KILL_GRACE_PERIOD,
        converter=_to_timedelta,
        validator=_validate_non_negative_timedelta,
    )

    @property
    def numeric_log_level(self) -> int:
        return logging.getLevelNamesMapping()[self.log_level.upper()]


@define(frozen=True, slots=True)
class ToolshimConfig:
    """Root configuration object loaded from a toolshim TOML file."""

    tools: dict[str, ToolConfig] = field(factory=dict)
    global_config: GlobalConfig = field(factory=GlobalConfig, metadata={"toml_name": "global"})
    config_file_path: Path | None = field(default=None)

    def get_tool(self, name: str) -> ToolConfig:
        try:
            return self.tools[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown tool '{name}'. Configured tools: {sorted(self.tools)}"
            ) from None


# 🔼⚙️

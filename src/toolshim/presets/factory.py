#
# src/toolshim/presets/factory.py
#
"""
Factory for looking up ToolConfig presets by name.
"""

from collections.abc import Callable

import structlog

from toolshim.config.models import ToolConfig
from toolshim.exceptions import ConfigurationError
from toolshim.presets.nunit3 import nunit3_config

log = structlog.get_logger("presets.factory")

PRESET_MAP: dict[str, Callable[..., ToolConfig]] = {
    "nunit3": nunit3_config,
    "nunit3-console": nunit3_config,  # Alias matching the executable name
}


def get_preset(preset_name: str) -> Callable[..., ToolConfig]:
    """
    Returns the ToolConfig builder registered under ``preset_name``.
    """
    if not isinstance(preset_name, str):
        raise ConfigurationError(f"Preset name must be a string, got {preset_name!r}")
    builder = PRESET_MAP.get(preset_name.lower())

    if not builder:
        log.error("Unsupported preset specified", preset=preset_name)
        raise ConfigurationError(
            f"Unsupported preset: '{preset_name}'. "
            f"Available presets: {list(PRESET_MAP.keys())}"
        )

    log.debug("Using tool preset", preset=preset_name)
    return builder


# 🔼⚙️

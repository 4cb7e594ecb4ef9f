#
# src/toolshim/presets/__init__.py
#
"""
Ready-made ToolConfig builders for well-known tools.
"""
from .factory import PRESET_MAP, get_preset
from .nunit3 import NUNIT3_EXECUTABLE, nunit3_config

__all__ = [
    "NUNIT3_EXECUTABLE",
    "PRESET_MAP",
    "get_preset",
    "nunit3_config",
]

# 🔼⚙️

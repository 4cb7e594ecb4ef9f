#
# config/__init__.py
#
"""
Configuration handling sub-package for toolshim.

Exports the loading function and core configuration models.
"""

from .loader import load_config
from .models import GlobalConfig, ToolConfig, ToolshimConfig

__all__ = [
    "GlobalConfig",
    "ToolConfig",
    "ToolshimConfig",
    "load_config",
]

# 🔼⚙️

# src/toolshim/telemetry/__init__.py

"""
Logging setup and logger types for toolshim.
"""

from .logger import StructLogger, setup_logging

__all__ = ["StructLogger", "setup_logging"]

# 🔼⚙️

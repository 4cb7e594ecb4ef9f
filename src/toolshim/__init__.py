#
# src/toolshim/__init__.py
#
"""
toolshim: run external tools from structured configuration.
"""
from toolshim.config import ToolConfig, load_config
from toolshim.exceptions import ConfigurationError, ToolshimError
from toolshim.invoker import InvocationOutcome, InvocationResult, ToolInvoker

__all__ = [
    "ConfigurationError",
    "InvocationOutcome",
    "InvocationResult",
    "ToolConfig",
    "ToolInvoker",
    "ToolshimError",
    "load_config",
]

# 🔼⚙️

# src/toolshim/telemetry/logger/processors.py

"""
structlog processors shared by every toolshim renderer.
"""

import logging
from typing import Any

LOG_EMOJIS = {
    logging.DEBUG: "🐛",
    logging.INFO: "ℹ️",
    logging.WARNING: "⚠️",
    logging.ERROR: "❌",
    logging.CRITICAL: "💥",
}


def add_emoji_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Prefixes the event with an emoji for its level, or the one passed as ``emoji=``."""
    if "emoji" in event_dict:
        emoji = event_dict.pop("emoji")
    else:
        name = "ERROR" if method_name == "exception" else method_name.upper()
        level = logging.getLevelNamesMapping().get(name, logging.INFO)
        emoji = LOG_EMOJIS.get(level, "➡️")
    event = event_dict.get("event")
    if isinstance(event, str):
        event_dict["event"] = f"{emoji} {event}"
    return event_dict


def remove_extra_keys_processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Drops keys bound to None so optional details do not clutter every line."""
    for key in [key for key, value in event_dict.items() if value is None]:
        del event_dict[key]
    return event_dict


# 🔼⚙️

"""Core utilities for the rule store."""

from shortlink.app.core.config import Settings, settings
from shortlink.app.core.logging import get_logger, setup_logging

__all__ = [
    "Settings",
    "settings",
    "get_logger",
    "setup_logging",
]

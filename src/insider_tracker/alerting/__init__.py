"""Alert sinks and logging setup."""

from .discord import DiscordNotifier, build_embed
from .logger import AlertFormatter, AlertLogger, setup_app_logging

__all__ = [
    "AlertFormatter",
    "AlertLogger",
    "DiscordNotifier",
    "build_embed",
    "setup_app_logging",
]

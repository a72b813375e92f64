"""Configuration loading."""

from scaletrack.config.settings import (
    Settings,
    default_config_dir,
    get_settings,
    reload_settings,
)

__all__ = ["Settings", "default_config_dir", "get_settings", "reload_settings"]

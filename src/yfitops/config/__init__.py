"""Configuration module for Yfitops."""

from .settings import ApiSettings, QueueSettings, Settings, SpotifySettings, get_settings

__all__ = ["ApiSettings", "QueueSettings", "Settings", "SpotifySettings", "get_settings"]

"""Configuration module -- exports Settings and load_settings."""

from playlistgraph.config.loader import load_settings
from playlistgraph.config.settings import Settings

__all__ = ["Settings", "load_settings"]

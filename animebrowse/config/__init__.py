"""Configuration module -- exports Settings and load_config."""

from animebrowse.config.loader import load_config
from animebrowse.config.settings import Settings

__all__ = ["Settings", "load_config"]

"""Configuration module -- exports Settings, RetrievalConfig and load_config."""

from ragassist.config.loader import RetrievalConfig, load_config
from ragassist.config.settings import Settings

__all__ = ["RetrievalConfig", "Settings", "load_config"]

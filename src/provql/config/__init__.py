"""Client configuration module."""
from __future__ import annotations

from provql.config.settings import ConfigError, Settings, load_settings

__all__ = ["Settings", "load_settings", "ConfigError"]

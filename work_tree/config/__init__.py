"""Engine configuration."""

from .settings import DEFAULT_CONFIG_LOCATIONS, EngineSettings, get_settings

__all__ = ["DEFAULT_CONFIG_LOCATIONS", "EngineSettings", "get_settings"]

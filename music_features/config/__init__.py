"""Configuration management"""

from music_features.config.config_loader import Config, ConfigurationError, config

__all__ = ["Config", "ConfigurationError", "config"]

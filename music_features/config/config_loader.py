"""Configuration loader for the music feature analyzer"""

import yaml
from pathlib import Path
from typing import Any, Dict
import os


DEFAULT_CONFIG_PATH = Path(__file__).parent / "config.yaml"


class ConfigurationError(Exception):
    """Exception raised for missing or invalid configuration and model assets"""
    pass


class Config:
    """Configuration manager for the music feature analyzer"""

    def __init__(self, config_path: str = None):
        if config_path is None:
            config_path = os.getenv('MUSIC_FEATURES_CONFIG')
        if config_path is None:
            env = os.getenv('MUSIC_FEATURES_ENV', 'development')
            # Try environment-specific config first, fall back to default
            env_config = DEFAULT_CONFIG_PATH.with_name(f"config.{env}.yaml")
            if env_config.exists():
                config_path = str(env_config)
            else:
                config_path = str(DEFAULT_CONFIG_PATH)

        self.config_path = Path(config_path)
        self._config = self._load_config()

    @classmethod
    def from_dict(cls, values: Dict[str, Any]) -> "Config":
        """Build a config from an in-memory mapping layered over the defaults."""
        instance = cls(str(DEFAULT_CONFIG_PATH))
        instance._config = _deep_merge(instance._config, values)
        return instance

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file"""
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            return yaml.safe_load(f) or {}

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation

        Args:
            key: Configuration key in dot notation (e.g., 'rhythm.default_bpm')
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        keys = key.split('.')
        value = self._config

        for k in keys:
            if isinstance(value, dict):
                value = value.get(k)
            else:
                return default

        return value if value is not None else default

    def __getitem__(self, key: str) -> Any:
        """Allow dictionary-style access"""
        return self.get(key)

    def validate(self) -> None:
        """Validate configuration values

        Raises:
            ConfigurationError: If a value is out of range
        """
        sample_rate = self.get('audio.sample_rate', 16000)
        if sample_rate <= 0:
            raise ConfigurationError(f"Invalid sample_rate: {sample_rate}, must be positive")

        min_bpm = self.get('rhythm.min_bpm', 60.0)
        max_bpm = self.get('rhythm.max_bpm', 200.0)
        if not 0 < min_bpm < max_bpm:
            raise ConfigurationError(f"Invalid BPM range: [{min_bpm}, {max_bpm}]")

        for name, value in (self.get('classifier.thresholds', {}) or {}).items():
            if not 0 <= value <= 1:
                raise ConfigurationError(f"Invalid {name} threshold: {value}, must be in [0, 1]")

        floor = self.get('classifier.confidence_floor', 0.05)
        if not 0 <= floor <= 1:
            raise ConfigurationError(f"Invalid confidence_floor: {floor}, must be in [0, 1]")

        rolloff = self.get('spectral.rolloff_fraction', 0.85)
        if not 0 < rolloff <= 1:
            raise ConfigurationError(f"Invalid rolloff_fraction: {rolloff}, must be in (0, 1]")

        workers = self.get('batch.max_workers', 4)
        if workers < 1:
            raise ConfigurationError(f"Invalid max_workers: {workers}, must be at least 1")


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


# Global config instance
config = Config()

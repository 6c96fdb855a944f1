"""
Configuration System
====================

Centralized, validated configuration management with typed dataclasses.
"""

import os
import re
import logging
from dataclasses import dataclass, field, asdict
from pathlib import Path
from typing import Optional, Dict, Any, Union
import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class ProviderSettings:
    """Network settings for a single provider client."""

    timeout: float = 120.0
    base_url: Optional[str] = None
    max_retries: int = 2
    retry_delay: float = 2.0
    poll_interval: float = 10.0
    max_poll_seconds: float = 600.0

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if self.timeout <= 0:
            raise ConfigurationError(
                f"timeout must be positive, got {self.timeout}",
                config_key="providers.timeout",
            )
        if not 0 <= self.max_retries <= 10:
            raise ConfigurationError(
                f"max_retries must be 0-10, got {self.max_retries}",
                config_key="providers.max_retries",
            )
        if self.poll_interval < 0 or self.max_poll_seconds <= 0:
            raise ConfigurationError(
                "poll_interval must be >= 0 and max_poll_seconds positive",
                config_key="providers.poll_interval",
            )


@dataclass
class ModelDefaults:
    """Models used when a caller does not pick one."""

    text_model: str = "gemini-2.5-flash"
    image_model: str = "imagen-4.0-generate-001"
    video_model: str = "veo-2.0-generate-001"


@dataclass
class GenerationDefaults:
    """Default generation parameters applied by the facade."""

    temperature: float = 0.7
    max_tokens: int = 2000
    scene_duration: float = 4.0
    description_language: str = "English"

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Validate configuration values."""
        if not 0.0 <= self.temperature <= 2.0:
            raise ConfigurationError(
                f"temperature must be 0.0-2.0, got {self.temperature}",
                config_key="generation.temperature",
            )
        if self.max_tokens <= 0:
            raise ConfigurationError(
                f"max_tokens must be positive, got {self.max_tokens}",
                config_key="generation.max_tokens",
            )


@dataclass
class StorageConfig:
    """Local persistence settings."""

    db_path: str = "~/.creative-studio/projects.db"
    media_dir: str = "~/.creative-studio/media"
    key_store_path: str = "~/.creative-studio/keys.yaml"

    def resolve(self, name: str) -> Path:
        """Return one of the configured paths with ``~`` expanded."""
        return Path(getattr(self, name)).expanduser()


# =============================================================================
# Main Configuration Class
# =============================================================================


@dataclass
class Config:
    """
    Main configuration container with validation and loading.

    Provides a unified interface to all configuration settings with:
    - Type-safe access to configuration values
    - Per-provider network settings
    - Environment variable interpolation
    - Sensible defaults for all values
    """

    models: ModelDefaults = field(default_factory=ModelDefaults)
    generation: GenerationDefaults = field(default_factory=GenerationDefaults)
    storage: StorageConfig = field(default_factory=StorageConfig)
    providers: Dict[str, ProviderSettings] = field(default_factory=dict)

    # Raw config for provider-specific extensions
    _raw: Dict[str, Any] = field(default_factory=dict, repr=False)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "Config":
        """
        Load configuration from file with environment variable interpolation.

        Args:
            path: Path to a YAML config file, searched before the defaults

        Returns:
            Validated Config instance
        """
        search_paths = [
            Path("./config/studio.yaml"),
            Path("./studio.yaml"),
            Path.home() / ".creative-studio" / "config.yaml",
        ]

        if path:
            search_paths.insert(0, Path(path))

        config_data = {}

        for search_path in search_paths:
            if search_path.exists():
                logger.info(f"Loading config from: {search_path}")
                try:
                    with open(search_path, "r") as f:
                        config_data = yaml.safe_load(f) or {}
                    break
                except yaml.YAMLError as e:
                    raise ConfigurationError(
                        f"Invalid YAML in config file: {e}",
                        config_key=str(search_path),
                    )
        else:
            logger.info("No config file found, using defaults")

        config_data = cls._interpolate_env_vars(config_data)

        return cls.from_dict(config_data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary with validation."""
        try:
            providers = {
                name.lower(): ProviderSettings(**(settings or {}))
                for name, settings in (data.get("providers") or {}).items()
            }
            return cls(
                models=ModelDefaults(**data.get("models", {})),
                generation=GenerationDefaults(**data.get("generation", {})),
                storage=StorageConfig(**data.get("storage", {})),
                providers=providers,
                _raw=data,
            )
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @staticmethod
    def _interpolate_env_vars(data: Any) -> Any:
        """Recursively interpolate ${VAR} patterns with environment variables."""
        if isinstance(data, str):
            # Handle ${VAR} and ${VAR:-default} patterns
            pattern = r"\$\{([^}:]+)(?::-([^}]*))?\}"

            def replace(match):
                var_name = match.group(1)
                default = match.group(2) or ""
                return os.environ.get(var_name, default)

            return re.sub(pattern, replace, data)
        elif isinstance(data, dict):
            return {k: Config._interpolate_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [Config._interpolate_env_vars(item) for item in data]
        return data

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        result = {}
        for section in ["models", "generation", "storage"]:
            result[section] = asdict(getattr(self, section))
        result["providers"] = {name: asdict(s) for name, s in self.providers.items()}
        return result

    def get_provider_settings(self, provider: str) -> ProviderSettings:
        """Get network settings for a provider, falling back to defaults."""
        return self.providers.get(provider.lower()) or ProviderSettings()


# =============================================================================
# Convenience Functions
# =============================================================================


_global_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance (lazily loaded)."""
    global _global_config
    if _global_config is None:
        _global_config = Config.load()
    return _global_config


def set_config(config: Config) -> None:
    """Set the global configuration instance."""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """Reset global configuration to None (forces reload on next access)."""
    global _global_config
    _global_config = None

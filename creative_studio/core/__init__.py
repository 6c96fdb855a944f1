"""
Core Module
===========

Core utilities, configuration, credentials and exceptions for the studio.
"""

from .config import (
    Config,
    ProviderSettings,
    ModelDefaults,
    GenerationDefaults,
    StorageConfig,
    get_config,
    set_config,
    reset_config,
)
from .credentials import KeyStore, CredentialResolver
from .exceptions import (
    StudioError,
    ConfigurationError,
    ValidationError,
    ProviderError,
    AuthError,
    RateLimitError,
    ModelUnavailableError,
    UnsupportedCapabilityError,
    GenerationError,
    InsufficientKeyframesError,
    InvalidProjectFileError,
    is_quota_error,
)
from .security import redact_api_key

__all__ = [
    # Configuration
    "Config",
    "ProviderSettings",
    "ModelDefaults",
    "GenerationDefaults",
    "StorageConfig",
    "get_config",
    "set_config",
    "reset_config",
    # Credentials
    "KeyStore",
    "CredentialResolver",
    # Exceptions
    "StudioError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "AuthError",
    "RateLimitError",
    "ModelUnavailableError",
    "UnsupportedCapabilityError",
    "GenerationError",
    "InsufficientKeyframesError",
    "InvalidProjectFileError",
    "is_quota_error",
    # Security
    "redact_api_key",
]

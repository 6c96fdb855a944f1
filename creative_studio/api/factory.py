"""
Provider Factory
================

Factory for creating generation provider instances.
"""

import importlib
import logging
from typing import Optional, List, Dict, Type

from .base import BaseProvider

logger = logging.getLogger(__name__)

# Registry of available providers
_PROVIDERS: Dict[str, Type[BaseProvider]] = {}

# Provider key -> module that registers it
_PROVIDER_MODULES = {
    "openai": ".openai",
    "anthropic": ".anthropic",
    "xai": ".xai",
    "mistral": ".mistral",
    "google": ".google",
    "replicate": ".replicate",
}


def register_provider(name: str):
    """Decorator to register a provider class."""
    def decorator(cls: Type[BaseProvider]):
        _PROVIDERS[name.lower()] = cls
        return cls
    return decorator


def _load(name: str) -> None:
    module = _PROVIDER_MODULES.get(name)
    if module is None:
        raise ValueError(f"Unknown provider: {name}")
    importlib.import_module(module, package=__package__)


def get_provider_class(name: str) -> Type[BaseProvider]:
    """Return the registered class for a provider key, importing it on demand."""
    name_lower = name.lower()
    if name_lower not in _PROVIDERS:
        _load(name_lower)

    provider_class = _PROVIDERS.get(name_lower)
    if provider_class is None:
        raise ValueError(f"Provider '{name}' not registered")
    return provider_class


def get_provider(
    name: str,
    api_key: Optional[str] = None,
    **kwargs,
) -> BaseProvider:
    """
    Get a generation provider instance.

    Args:
        name: Provider name (e.g., 'openai', 'google', 'replicate')
        api_key: Optional API key (otherwise env var, then key store)
        **kwargs: Additional provider arguments (settings, key_store, ...)

    Returns:
        Provider instance

    Raises:
        ValueError: If provider name is not recognized
    """
    provider_class = get_provider_class(name)
    return provider_class(api_key=api_key, provider_key=name.lower(), **kwargs)


def list_providers() -> List[str]:
    """
    List all available provider names.

    Returns:
        List of provider names
    """
    for name in _PROVIDER_MODULES:
        if name not in _PROVIDERS:
            _load(name)

    return sorted(_PROVIDERS.keys())

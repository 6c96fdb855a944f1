"""
Credentials
===========

API key lookup for provider clients.

Keys are resolved in a fixed order: a key injected at runtime, then the
provider's environment variable, then the key the user saved locally.
"""

import os
import logging
from pathlib import Path
from typing import Optional, Dict, List, Union
import yaml

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class KeyStore:
    """
    Locally persisted, user-entered API keys.

    Stored as a flat YAML mapping of provider name to key.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Invalid YAML in key store: {e}",
                config_key=str(self.path),
            )
        if not isinstance(data, dict):
            raise ConfigurationError(
                "Key store must be a mapping of provider to key",
                config_key=str(self.path),
            )
        return {str(k).lower(): str(v) for k, v in data.items() if v}

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "w") as f:
            yaml.safe_dump(data, f, default_flow_style=False)

    def get(self, provider: str) -> Optional[str]:
        return self._read().get(provider.lower())

    def set(self, provider: str, key: str) -> None:
        data = self._read()
        data[provider.lower()] = key
        self._write(data)
        logger.info(f"Saved API key for {provider}")

    def delete(self, provider: str) -> None:
        data = self._read()
        if data.pop(provider.lower(), None) is not None:
            self._write(data)
            logger.info(f"Removed API key for {provider}")

    def providers(self) -> List[str]:
        return sorted(self._read().keys())


class CredentialResolver:
    """
    Resolves the API key for one provider.

    Args:
        provider: Provider key used in the key store (e.g. "openai")
        env_var: Environment variable holding the key
        explicit_key: Key injected at runtime, takes precedence
        key_store: Optional store of user-entered keys
    """

    def __init__(
        self,
        provider: str,
        env_var: str,
        explicit_key: Optional[str] = None,
        key_store: Optional[KeyStore] = None,
    ):
        self.provider = provider
        self.env_var = env_var
        self.explicit_key = explicit_key
        self.key_store = key_store

    def resolve(self) -> Optional[str]:
        """Return the first key found, or None."""
        if self.explicit_key:
            return self.explicit_key

        env_key = os.getenv(self.env_var)
        if env_key:
            return env_key

        if self.key_store is not None:
            stored = self.key_store.get(self.provider)
            if stored:
                logger.debug(f"Using stored API key for {self.provider}")
                return stored

        return None

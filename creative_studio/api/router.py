"""
Model Router
============

Maps a model identifier onto the provider client that serves it.

Routing is keyword based: the lower-cased identifier is checked against an
ordered rule table and the first rule with a matching keyword wins. Model
name fragments overlap across vendors, so rule order is the tie-break and
must be kept stable when extending the table.
"""

import logging
from typing import Optional, Dict, Tuple

from .base import BaseProvider, Capability
from .factory import get_provider
from ..core.config import Config, get_config
from ..core.credentials import KeyStore
from ..core.exceptions import UnsupportedCapabilityError

logger = logging.getLogger(__name__)


# (provider key, keywords), evaluated top to bottom
ROUTING_RULES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("openai", ("gpt", "dall-e", "o1")),
    ("anthropic", ("claude", "opus", "sonnet", "haiku")),
    ("xai", ("grok",)),
    ("mistral", ("mistral", "mixtral", "codestral")),
    ("google", ("gemini", "palm", "2.5", "2.0", "1.5", "imagen", "veo")),
    ("replicate", (
        "midjourney", "flux", "stable", "sdxl", "kandinsky", "realvis",
        "ideogram", "playground", "recraft", "luma", "dream-machine",
        "runway", "cogvideo", "animate", "zeroscope", "modelscope",
        "video-crafter", "llama", "qwen", "deepseek", "command",
    )),
)

DEFAULT_PROVIDER = "google"


def resolve_key(model: str) -> str:
    """Return the provider key for a model identifier."""
    model_lower = (model or "").lower()
    for provider_key, keywords in ROUTING_RULES:
        if any(keyword in model_lower for keyword in keywords):
            return provider_key
    return DEFAULT_PROVIDER


class ModelRouter:
    """
    Resolves model identifiers to provider clients.

    Clients are created on first use and cached per provider key. They share
    the router's configuration and key store.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        key_store: Optional[KeyStore] = None,
        **provider_kwargs,
    ):
        """
        Args:
            config: Studio configuration (defaults to the global config)
            key_store: Store of user-entered keys; built from config when omitted
            **provider_kwargs: Extra arguments for every client (e.g. ``transport``)
        """
        self.config = config or get_config()
        self.key_store = key_store or KeyStore(self.config.storage.resolve("key_store_path"))
        self._provider_kwargs = provider_kwargs
        self._clients: Dict[str, BaseProvider] = {}

    def resolve_key(self, model: str) -> str:
        return resolve_key(model)

    def get_client(self, provider_key: str) -> BaseProvider:
        """Return the cached client for a provider key, creating it if needed."""
        client = self._clients.get(provider_key)
        if client is None:
            client = get_provider(
                provider_key,
                settings=self.config.get_provider_settings(provider_key),
                key_store=self.key_store,
                media_dir=self.config.storage.resolve("media_dir"),
                **self._provider_kwargs,
            )
            self._clients[provider_key] = client
        return client

    def route(self, model: str, capability: Capability) -> BaseProvider:
        """
        Return the client that serves ``model`` for ``capability``.

        Raises:
            UnsupportedCapabilityError: If the selected provider lacks the capability
        """
        provider_key = resolve_key(model)
        logger.debug(f"Routing {capability.value} model '{model}' to {provider_key}")

        client = self.get_client(provider_key)
        if not client.supports(capability):
            raise UnsupportedCapabilityError(
                f"Model '{model}' routes to {client.provider_name}, "
                f"which does not support {capability.value} generation",
                model=model,
                capability=capability.value,
                provider=client.provider_name,
            )
        return client

    def route_text(self, model: str) -> BaseProvider:
        return self.route(model, Capability.TEXT)

    def route_image(self, model: str) -> BaseProvider:
        return self.route(model, Capability.IMAGE)

    def route_video(self, model: str) -> BaseProvider:
        return self.route(model, Capability.VIDEO)

    async def close(self) -> None:
        """Close every cached client."""
        for client in self._clients.values():
            await client.close()
        self._clients.clear()

"""
xAI Provider
============

Grok text models through xAI's OpenAI-compatible API.
"""

from .base import Capability
from .factory import register_provider
from .openai import OpenAIProvider


@register_provider("xai")
class XAIProvider(OpenAIProvider):
    """Grok chat models. Text only."""

    capabilities = frozenset({Capability.TEXT})

    TEXT_MODELS = {
        "grok-3": "grok-beta",
        "grok-2": "grok-beta",
        "grok-beta": "grok-beta",
    }
    DEFAULT_TEXT_MODEL = "grok-beta"

    IMAGE_MODELS = {}
    DEFAULT_IMAGE_MODEL = None

    @property
    def provider_name(self) -> str:
        return "xAI"

    @property
    def env_key_name(self) -> str:
        return "XAI_API_KEY"

    def _get_default_base_url(self) -> str:
        return "https://api.x.ai/v1"

    async def generate_image(self, request):
        raise self._unsupported(Capability.IMAGE, request.model)

"""
API Integration Layer
=====================

Unified access to text, image and video generation APIs.

Supported Providers:
- OpenAI (GPT, DALL-E)
- Anthropic (Claude)
- xAI (Grok)
- Mistral
- Google (Gemini, Imagen, Veo)
- Replicate (Flux, SDXL, Stable Video Diffusion)

Usage:
    from creative_studio.api import GenerationFacade

    facade = GenerationFacade()
    images = await facade.generate_image(
        prompt="A lighthouse at dawn",
        model="imagen-4.0-generate-001",
        aspect_ratio="16:9",
    )
"""

from .base import (
    BaseProvider,
    Capability,
    TextRequest,
    ImageRequest,
    VideoRequest,
    GenerationRequest,
    capability_of,
    nearest_size,
    nearest_aspect_ratio,
)
from .factory import get_provider, list_providers, register_provider
from .router import ModelRouter, ROUTING_RULES, DEFAULT_PROVIDER, resolve_key
from .facade import GenerationFacade

__all__ = [
    "BaseProvider",
    "Capability",
    "TextRequest",
    "ImageRequest",
    "VideoRequest",
    "GenerationRequest",
    "capability_of",
    "nearest_size",
    "nearest_aspect_ratio",
    "get_provider",
    "list_providers",
    "register_provider",
    "ModelRouter",
    "ROUTING_RULES",
    "DEFAULT_PROVIDER",
    "resolve_key",
    "GenerationFacade",
]

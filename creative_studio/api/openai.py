"""
OpenAI Provider
===============

GPT chat models for text and DALL-E for images.

Features:
- Chat completions with optional image inputs
- o1 reasoning models (no temperature, ``max_completion_tokens``)
- DALL-E sizes snapped to the nearest supported bucket
"""

import logging
from typing import List, Dict, Any

from .base import (
    BaseProvider,
    Capability,
    ImageRequest,
    TextRequest,
    nearest_size,
)
from .factory import register_provider
from ..utils.media import to_data_uri

logger = logging.getLogger(__name__)

DALLE3_SIZES = ["1024x1024", "1792x1024", "1024x1792"]


@register_provider("openai")
class OpenAIProvider(BaseProvider):
    """
    OpenAI text and image provider.

    Display names that have no public API model yet are mapped onto the
    closest available one.
    """

    capabilities = frozenset({Capability.TEXT, Capability.IMAGE})

    TEXT_MODELS = {
        "gpt-5": "gpt-4o",
        "gpt-5-turbo": "gpt-4o",
        "o1-pro": "o1-preview",
        "o1-preview": "o1-preview",
        "o1-mini": "o1-mini",
        "gpt-4o": "gpt-4o",
        "gpt-4o-mini": "gpt-4o-mini",
    }
    DEFAULT_TEXT_MODEL = "gpt-4o"

    IMAGE_MODELS = {
        "dall-e-4-hd": "dall-e-3",
        "dall-e-4": "dall-e-3",
        "dall-e-3": "dall-e-3",
        "dall-e-3-hd": "dall-e-3",
        "dall-e-2": "dall-e-2",
    }
    DEFAULT_IMAGE_MODEL = "dall-e-3"

    @property
    def provider_name(self) -> str:
        return "OpenAI"

    @property
    def env_key_name(self) -> str:
        return "OPENAI_API_KEY"

    def _get_default_base_url(self) -> str:
        return "https://api.openai.com/v1"

    # -------------------------------------------------------------------------
    # Text
    # -------------------------------------------------------------------------

    def _build_messages(self, request: TextRequest) -> List[Dict[str, Any]]:
        if not request.images:
            return [{"role": "user", "content": request.prompt}]

        content: List[Dict[str, Any]] = [{"type": "text", "text": request.prompt}]
        for image in request.images:
            content.append({"type": "image_url", "image_url": {"url": image}})
        return [{"role": "user", "content": content}]

    def _build_chat_payload(self, model: str, request: TextRequest) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "model": model,
            "messages": self._build_messages(request),
        }
        if model.startswith("o1"):
            # Reasoning models reject temperature and max_tokens
            payload["max_completion_tokens"] = request.max_tokens
        else:
            payload["temperature"] = request.temperature
            payload["max_tokens"] = request.max_tokens
        return payload

    async def generate_text(self, request: TextRequest) -> str:
        model = self.resolve_model(request.model, Capability.TEXT)
        payload = self._build_chat_payload(model, request)

        logger.info(f"Generating text with {model} via {self.provider_name}")
        response = await self._request("POST", f"{self.base_url}/chat/completions", json=payload)

        data = self._json(response)
        choices = data.get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

    # -------------------------------------------------------------------------
    # Images
    # -------------------------------------------------------------------------

    def map_image_size(self, request: ImageRequest, model: str) -> str:
        """Map requested dimensions onto a size DALL-E accepts."""
        if model == "dall-e-2":
            if request.width and request.width <= 256:
                return "256x256"
            if request.width and request.width <= 512:
                return "512x512"
            return "1024x1024"
        return nearest_size(request.ratio, DALLE3_SIZES)

    async def generate_image(self, request: ImageRequest) -> List[str]:
        model = self.resolve_model(request.model, Capability.IMAGE)
        size = self.map_image_size(request, model)

        # DALL-E 3 only accepts n=1
        batches = [1] * request.count if model == "dall-e-3" else [request.count]

        images: List[str] = []
        for n in batches:
            payload: Dict[str, Any] = {
                "model": model,
                "prompt": request.prompt,
                "n": n,
                "size": size,
                "response_format": "b64_json",
            }
            if model == "dall-e-3":
                payload["quality"] = "hd"
                payload["style"] = "natural"

            logger.info(f"Generating image with {model} ({size}) via {self.provider_name}")
            response = await self._request("POST", f"{self.base_url}/images/generations", json=payload)

            for item in self._json(response).get("data") or []:
                if not isinstance(item, dict):
                    continue
                if item.get("b64_json"):
                    images.append(to_data_uri(item.get("b64_json"), "image/png"))
                elif item.get("url"):
                    images.append(await self._as_data_uri(item.get("url")))

        return images

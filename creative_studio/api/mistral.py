"""
Mistral Provider
================

Mistral and Mixtral chat models. Text only.
"""

import logging
from typing import List, Dict, Any, Union

from .base import BaseProvider, Capability, TextRequest
from .factory import register_provider

logger = logging.getLogger(__name__)


@register_provider("mistral")
class MistralProvider(BaseProvider):
    """Mistral chat completions provider."""

    capabilities = frozenset({Capability.TEXT})

    TEXT_MODELS = {
        "mistral-large-2": "mistral-large-latest",
        "mistral-large": "mistral-large-latest",
        "mistral-medium": "mistral-medium-latest",
        "mistral-small": "mistral-small-latest",
        "mistral-nemo": "open-mistral-nemo",
        "mixtral-8x7b": "open-mixtral-8x7b",
        "mixtral-8x22b": "open-mixtral-8x22b",
        "codestral": "codestral-latest",
        "mistral-7b": "open-mistral-7b",
        "mistral-tiny": "mistral-tiny",
    }
    DEFAULT_TEXT_MODEL = "mistral-large-latest"

    @property
    def provider_name(self) -> str:
        return "Mistral"

    @property
    def env_key_name(self) -> str:
        return "MISTRAL_API_KEY"

    def _get_default_base_url(self) -> str:
        return "https://api.mistral.ai/v1"

    def _build_content(self, request: TextRequest) -> Union[str, List[Dict[str, Any]]]:
        if not request.images:
            return request.prompt
        content: List[Dict[str, Any]] = [{"type": "text", "text": request.prompt}]
        content.extend({"type": "image_url", "image_url": image} for image in request.images)
        return content

    async def generate_text(self, request: TextRequest) -> str:
        model = self.resolve_model(request.model, Capability.TEXT)
        payload: Dict[str, Any] = {
            "model": model,
            "messages": [{"role": "user", "content": self._build_content(request)}],
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        }

        logger.info(f"Generating text with {model} via {self.provider_name}")
        response = await self._request("POST", f"{self.base_url}/chat/completions", json=payload)

        choices = self._json(response).get("choices") or []
        if not choices:
            return ""
        return (choices[0].get("message") or {}).get("content") or ""

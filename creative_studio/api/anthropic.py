"""
Anthropic Provider
==================

Claude models through the Messages API. Text only.
"""

import logging
from typing import List, Dict, Any

from .base import BaseProvider, Capability, TextRequest
from .factory import register_provider
from ..utils.media import parse_data_uri, data_uri_payload

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


@register_provider("anthropic")
class AnthropicProvider(BaseProvider):
    """Claude text provider."""

    capabilities = frozenset({Capability.TEXT})

    TEXT_MODELS = {
        "claude-opus-4.1": "claude-opus-4-1-20250805",
        "claude-sonnet-4.0": "claude-sonnet-4-20250514",
        "claude-3.7-sonnet": "claude-3-7-sonnet-20250219",
        "claude-3.5-sonnet": "claude-3-5-sonnet-20241022",
        "claude-3.5-haiku": "claude-3-5-haiku-20241022",
        "claude-3-opus": "claude-3-opus-20240229",
        "claude-3-sonnet": "claude-3-sonnet-20240229",
        "claude-3-haiku": "claude-3-haiku-20240307",
    }
    DEFAULT_TEXT_MODEL = "claude-3-5-sonnet-20241022"

    @property
    def provider_name(self) -> str:
        return "Anthropic"

    @property
    def env_key_name(self) -> str:
        return "ANTHROPIC_API_KEY"

    def _get_default_base_url(self) -> str:
        return "https://api.anthropic.com/v1"

    def _get_headers(self) -> Dict[str, str]:
        """Anthropic uses its own key header instead of Bearer auth."""
        return {
            "x-api-key": self.api_key or "",
            "anthropic-version": ANTHROPIC_VERSION,
            "Content-Type": "application/json",
        }

    def _build_content(self, request: TextRequest) -> List[Dict[str, Any]]:
        content: List[Dict[str, Any]] = []
        for image in request.images:
            mime, _ = parse_data_uri(image)
            content.append({
                "type": "image",
                "source": {"type": "base64", "media_type": mime, "data": data_uri_payload(image)},
            })
        content.append({"type": "text", "text": request.prompt})
        return content

    async def generate_text(self, request: TextRequest) -> str:
        model = self.resolve_model(request.model, Capability.TEXT)
        payload = {
            "model": model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": [{"role": "user", "content": self._build_content(request)}],
        }

        logger.info(f"Generating text with {model} via {self.provider_name}")
        response = await self._request("POST", f"{self.base_url}/messages", json=payload)

        blocks = self._json(response).get("content") or []
        return "".join(block.get("text", "") for block in blocks if block.get("type") == "text")

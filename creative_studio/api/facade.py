"""
Generation Facade
=================

Single entry point for text, image and video generation.

The facade builds typed requests, fills in configured defaults, routes to
the right provider and delegates. Provider errors pass through unchanged
so callers can tell configuration problems from transient failures.
"""

import logging
from typing import Optional, List

from .base import BaseProvider, Capability, TextRequest, ImageRequest, VideoRequest
from .router import ModelRouter
from ..core.config import Config
from ..core.credentials import KeyStore
from ..core.exceptions import AuthError

logger = logging.getLogger(__name__)


class GenerationFacade:
    """
    Routes generation calls to provider clients.

    Holds no state besides the router's client cache.

    Example:
        facade = GenerationFacade()
        text = await facade.generate_text("Write a haiku", model="gemini-2.5-flash")
        images = await facade.generate_image("A lighthouse", model="flux-dev", aspect_ratio="16:9")
    """

    def __init__(
        self,
        router: Optional[ModelRouter] = None,
        config: Optional[Config] = None,
        key_store: Optional[KeyStore] = None,
    ):
        self.router = router or ModelRouter(config=config, key_store=key_store)
        self.config = self.router.config

    def _configured(self, model: str, capability: Capability) -> BaseProvider:
        client = self.router.route(model, capability)
        if not client.is_configured():
            raise AuthError(
                f"{client.provider_name} API key not configured. "
                f"Please configure your {client.provider_name} API key in settings "
                f"or set {client.env_key_name}.",
                provider=client.provider_name,
            )
        return client

    async def generate_text(
        self,
        prompt: str,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        images: Optional[List[str]] = None,
        json_output: bool = False,
    ) -> str:
        """
        Generate text with the given model.

        Args:
            prompt: Text prompt
            model: Model identifier (defaults to the configured text model)
            temperature: Sampling temperature, 0.0-2.0
            max_tokens: Maximum tokens in the reply
            images: Data URIs sent alongside the prompt
            json_output: Ask for a JSON reply where supported

        Returns:
            The model's reply
        """
        defaults = self.config.generation
        request = TextRequest(
            prompt=prompt,
            model=model or self.config.models.text_model,
            temperature=defaults.temperature if temperature is None else temperature,
            max_tokens=max_tokens or defaults.max_tokens,
            images=list(images or []),
            json_output=json_output,
        )
        client = self._configured(request.model, Capability.TEXT)
        return await client.generate_text(request)

    async def generate_image(
        self,
        prompt: str,
        model: Optional[str] = None,
        width: Optional[int] = None,
        height: Optional[int] = None,
        aspect_ratio: Optional[str] = None,
        count: int = 1,
    ) -> List[str]:
        """
        Generate images with the given model.

        Returns:
            Data URIs, one per generated image
        """
        request = ImageRequest(
            prompt=prompt,
            model=model or self.config.models.image_model,
            width=width,
            height=height,
            aspect_ratio=aspect_ratio,
            count=count,
        )
        client = self._configured(request.model, Capability.IMAGE)
        return await client.generate_image(request)

    async def generate_video(
        self,
        prompt: str,
        model: Optional[str] = None,
        duration: Optional[float] = None,
        image: Optional[str] = None,
    ) -> str:
        """
        Generate a video, optionally seeded with a first frame.

        Returns:
            A URL or a local file path
        """
        request = VideoRequest(
            prompt=prompt,
            model=model or self.config.models.video_model,
            duration=duration or self.config.generation.scene_duration,
            image=image,
        )
        client = self._configured(request.model, Capability.VIDEO)
        return await client.generate_video(request)

    async def close(self) -> None:
        await self.router.close()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

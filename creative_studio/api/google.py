"""
Google Provider
===============

Direct integration with the Gemini API:
- Gemini models for text (with image inputs and JSON output)
- Imagen for images
- Veo for image-to-video, polled as a long-running operation

The Gemini API is the default route for unrecognized model names.
"""

import logging
from typing import Optional, List, Dict, Any

import httpx

from .base import (
    BaseProvider,
    Capability,
    ImageRequest,
    TextRequest,
    VideoRequest,
    nearest_aspect_ratio,
)
from .factory import register_provider
from ..core.exceptions import AuthError, GenerationError, ProviderError
from ..core.security import redact_api_key
from ..utils.media import parse_data_uri, data_uri_payload, to_data_uri

logger = logging.getLogger(__name__)

IMAGEN_ASPECT_RATIOS = ["1:1", "3:4", "4:3", "9:16", "16:9"]

# Veo 2 clip length bounds, in seconds
VEO_MIN_DURATION = 5
VEO_MAX_DURATION = 8


@register_provider("google")
class GoogleProvider(BaseProvider):
    """
    Google Gemini API provider.

    Authenticates with the ``x-goog-api-key`` header, so keys never end up
    in request URLs or logs.
    """

    capabilities = frozenset({Capability.TEXT, Capability.IMAGE, Capability.VIDEO})

    TEXT_MODELS = {
        "gemini-2.5-pro": "gemini-2.5-pro",
        "gemini-2.5-flash": "gemini-2.5-flash",
        "gemini-2.5-flash-lite": "gemini-2.5-flash-lite",
        "gemini-2.0-flash": "gemini-2.0-flash",
        "gemini-2.0-flash-lite": "gemini-2.0-flash-lite",
        "gemini-1.5-pro": "gemini-1.5-pro",
        "gemini-1.5-flash": "gemini-1.5-flash",
        "gemini-2.0-flash-exp": "gemini-2.0-flash-exp",
        "gemini-exp-1206": "gemini-exp-1206",
        "gemini-pro": "gemini-pro",
    }
    DEFAULT_TEXT_MODEL = "gemini-2.5-flash"

    IMAGE_MODELS = {
        "imagen-4.0-generate-001": "imagen-4.0-generate-001",
        "imagen-4.0-ultra-generate-001": "imagen-4.0-ultra-generate-001",
        "imagen-4.0-fast-generate-001": "imagen-4.0-fast-generate-001",
        "imagen-3.0-generate-002": "imagen-3.0-generate-002",
        "imagen-4": "imagen-4.0-generate-001",
        "imagen-3": "imagen-3.0-generate-002",
    }
    DEFAULT_IMAGE_MODEL = "imagen-4.0-generate-001"

    VIDEO_MODELS = {
        "veo-2.0-generate-001": "veo-2.0-generate-001",
        "veo-3.0-generate-001": "veo-3.0-generate-001",
        "veo-3.0-fast-generate-001": "veo-3.0-fast-generate-001",
        "veo-3.1-generate-preview": "veo-3.1-generate-preview",
        "veo-2": "veo-2.0-generate-001",
        "veo-3": "veo-3.0-generate-001",
    }
    DEFAULT_VIDEO_MODEL = "veo-2.0-generate-001"

    @property
    def provider_name(self) -> str:
        return "Google"

    @property
    def env_key_name(self) -> str:
        return "GOOGLE_API_KEY"

    def _get_default_base_url(self) -> str:
        return "https://generativelanguage.googleapis.com/v1beta"

    def _get_headers(self) -> Dict[str, str]:
        return {
            "x-goog-api-key": self.api_key or "",
            "Content-Type": "application/json",
        }

    def _raise_for_status(self, response: httpx.Response, model: Optional[str] = None) -> None:
        # Gemini reports a bad key as 400 INVALID_ARGUMENT
        if response.status_code == 400 and "API_KEY_INVALID" in (response.text or ""):
            raise AuthError(
                "Invalid or missing Google API key. Please check your API key in settings.",
                provider=self.provider_name,
                status_code=400,
                response_body=redact_api_key(response.text),
            )
        super()._raise_for_status(response, model)

    # -------------------------------------------------------------------------
    # Text (Gemini)
    # -------------------------------------------------------------------------

    def _build_text_payload(self, request: TextRequest) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = [{"text": request.prompt}]
        for image in request.images:
            mime, _ = parse_data_uri(image)
            parts.append({"inline_data": {"mime_type": mime, "data": data_uri_payload(image)}})

        generation_config: Dict[str, Any] = {
            "temperature": request.temperature,
            "maxOutputTokens": request.max_tokens,
        }
        if request.json_output:
            generation_config["responseMimeType"] = "application/json"

        return {
            "contents": [{"role": "user", "parts": parts}],
            "generationConfig": generation_config,
        }

    async def generate_text(self, request: TextRequest) -> str:
        model = self.resolve_model(request.model, Capability.TEXT)
        payload = self._build_text_payload(request)

        logger.info(f"Generating text with {model} via {self.provider_name}")
        response = await self._request(
            "POST", f"{self.base_url}/models/{model}:generateContent", json=payload
        )

        candidates = self._json(response).get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts)

    # -------------------------------------------------------------------------
    # Images (Imagen)
    # -------------------------------------------------------------------------

    async def generate_image(self, request: ImageRequest) -> List[str]:
        model = self.resolve_model(request.model, Capability.IMAGE)
        aspect_ratio = nearest_aspect_ratio(request.ratio, IMAGEN_ASPECT_RATIOS)
        payload = {
            "instances": [{"prompt": request.prompt}],
            "parameters": {
                "sampleCount": request.count,
                "aspectRatio": aspect_ratio,
                "outputOptions": {"mimeType": "image/jpeg"},
            },
        }

        logger.info(f"Generating image with {model} ({aspect_ratio}) via {self.provider_name}")
        response = await self._request("POST", f"{self.base_url}/models/{model}:predict", json=payload)

        images = []
        for prediction in self._json(response).get("predictions") or []:
            if not isinstance(prediction, dict):
                continue
            data = prediction.get("bytesBase64Encoded")
            if data:
                images.append(to_data_uri(data, prediction.get("mimeType") or "image/jpeg"))

        if not images:
            raise ProviderError(
                "Image generation failed, no images returned.",
                provider=self.provider_name,
            )
        return images

    # -------------------------------------------------------------------------
    # Video (Veo)
    # -------------------------------------------------------------------------

    def _build_video_payload(self, request: VideoRequest) -> Dict[str, Any]:
        instance: Dict[str, Any] = {"prompt": request.prompt}
        if request.image:
            mime, _ = parse_data_uri(request.image)
            instance["image"] = {
                "bytesBase64Encoded": data_uri_payload(request.image),
                "mimeType": mime,
            }

        parameters: Dict[str, Any] = {"sampleCount": 1}
        if request.duration:
            parameters["durationSeconds"] = int(
                min(max(round(request.duration), VEO_MIN_DURATION), VEO_MAX_DURATION)
            )

        return {"instances": [instance], "parameters": parameters}

    async def generate_video(self, request: VideoRequest) -> str:
        """Generate a clip and download it into the media directory."""
        model = self.resolve_model(request.model, Capability.VIDEO)
        payload = self._build_video_payload(request)

        logger.info(f"Generating video with {model} via {self.provider_name}")
        response = await self._request(
            "POST", f"{self.base_url}/models/{model}:predictLongRunning", json=payload
        )

        operation_name = self._json(response).get("name")
        if not operation_name:
            raise ProviderError("No operation ID in response", provider=self.provider_name)

        operation = await self.wait_for_completion(
            lambda: self._poll_operation(operation_name),
            operation=f"Veo operation {operation_name}",
        )

        if operation.get("error"):
            raise ProviderError(
                f"Google AI API error: {operation['error'].get('message', 'Unknown error')}",
                provider=self.provider_name,
            )

        uri = self._extract_video_uri(operation.get("response") or {})
        if not uri:
            raise GenerationError(
                "Video generation completed, but no download link was found.",
                stage="video",
                prompt=request.prompt,
            )

        return await self._download_video(uri)

    async def _poll_operation(self, operation_name: str) -> Optional[Dict[str, Any]]:
        response = await self._request("GET", f"{self.base_url}/{operation_name}")
        data = self._json(response)
        return data if data.get("done") else None

    @staticmethod
    def _extract_video_uri(response: Dict[str, Any]) -> Optional[str]:
        samples = (response.get("generateVideoResponse") or {}).get("generatedSamples")
        if samples is None:
            samples = response.get("generatedVideos") or []
        for sample in samples:
            uri = (sample.get("video") or {}).get("uri")
            if uri:
                return uri
        return None

"""
Base Provider
=============

Abstract base class and normalized request types for all generative AI
providers (text, image and video).

Every concrete client wraps one vendor's HTTP API and exposes the same
three coroutines. Vendor failures are translated into the studio's error
taxonomy here, so callers never see raw HTTP status codes.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, List, Dict, Any, Union, Sequence, Tuple, Awaitable, Callable, FrozenSet

import httpx

from ..core.config import ProviderSettings, get_config
from ..core.credentials import CredentialResolver, KeyStore
from ..core.exceptions import (
    AuthError,
    ModelUnavailableError,
    ProviderError,
    RateLimitError,
    TimeoutError,
    UnsupportedCapabilityError,
    ValidationError,
)
from ..core.security import redact_api_key
from ..utils.media import MIME_EXTENSIONS, fetch_as_data_uri, get_mime_type, is_data_uri, save_bytes

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================


DEFAULT_RETRY_MULTIPLIER = 2.0

# Statuses worth retrying inside a single call. 429 is deliberately absent:
# throttling is reported to the caller, which records it per panel.
RETRYABLE_STATUS_CODES = {502, 503, 504}

# Aspect ratios offered in the UI, as (width, height)
ASPECT_RATIOS: Dict[str, Tuple[int, int]] = {
    "16:9": (16, 9),
    "9:16": (9, 16),
    "1:1": (1, 1),
    "3:4": (3, 4),
    "4:3": (4, 3),
}


# =============================================================================
# Request Types
# =============================================================================


class Capability(Enum):
    """What kind of artifact a request produces."""

    TEXT = "text"
    IMAGE = "image"
    VIDEO = "video"


@dataclass
class TextRequest:
    """Request parameters for text generation."""

    prompt: str
    model: str
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    # Data URIs sent alongside the prompt (multimodal models)
    images: List[str] = field(default_factory=list)

    # Ask the vendor for a JSON body where it supports that
    json_output: bool = False

    def __post_init__(self):
        if self.temperature is not None and not 0.0 <= self.temperature <= 2.0:
            raise ValidationError(
                f"temperature must be 0.0-2.0, got {self.temperature}",
                field="temperature",
                value=self.temperature,
            )
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise ValidationError(
                f"max_tokens must be positive, got {self.max_tokens}",
                field="max_tokens",
                value=self.max_tokens,
            )


@dataclass
class ImageRequest:
    """Request parameters for image generation."""

    prompt: str
    model: str
    width: Optional[int] = None
    height: Optional[int] = None
    aspect_ratio: Optional[str] = None
    count: int = 1

    def __post_init__(self):
        if self.count < 1:
            raise ValidationError("count must be at least 1", field="count", value=self.count)
        if self.aspect_ratio is not None and self.aspect_ratio not in ASPECT_RATIOS:
            raise ValidationError(
                f"Unsupported aspect ratio: {self.aspect_ratio}",
                field="aspect_ratio",
                value=self.aspect_ratio,
            )

    @property
    def ratio(self) -> float:
        """Target width/height ratio, from explicit dimensions or the aspect ratio."""
        if self.width and self.height:
            return self.width / self.height
        if self.aspect_ratio:
            w, h = ASPECT_RATIOS[self.aspect_ratio]
            return w / h
        return 1.0


@dataclass
class VideoRequest:
    """Request parameters for video generation."""

    prompt: str
    model: str
    duration: Optional[float] = None  # seconds

    # Optional first frame as a data URI
    image: Optional[str] = None

    def __post_init__(self):
        if self.image is not None and not is_data_uri(self.image):
            raise ValidationError("Video seed image must be a data URI", field="image")


GenerationRequest = Union[TextRequest, ImageRequest, VideoRequest]


def capability_of(request: GenerationRequest) -> Capability:
    """Return the capability a request needs."""
    if isinstance(request, TextRequest):
        return Capability.TEXT
    if isinstance(request, ImageRequest):
        return Capability.IMAGE
    if isinstance(request, VideoRequest):
        return Capability.VIDEO
    raise ValidationError(f"Unknown request type: {type(request).__name__}")


# =============================================================================
# Size Helpers
# =============================================================================


def _size_ratio(size: str) -> float:
    w, h = (int(part) for part in size.lower().split("x"))
    return w / h


def nearest_size(ratio: float, sizes: Sequence[str]) -> str:
    """Pick the "WxH" bucket whose ratio is closest to ``ratio``."""
    return min(sizes, key=lambda size: abs(_size_ratio(size) - ratio))


def nearest_aspect_ratio(ratio: float, choices: Sequence[str]) -> str:
    """Pick the "W:H" aspect ratio closest to ``ratio``."""
    def distance(choice: str) -> float:
        w, h = ASPECT_RATIOS.get(choice) or tuple(int(p) for p in choice.split(":"))
        return abs(w / h - ratio)

    return min(choices, key=distance)


# =============================================================================
# Base Provider Class
# =============================================================================


class BaseProvider(ABC):
    """
    Abstract base class for generation providers.

    Subclasses declare their capabilities and alias tables and implement
    the ``generate_*`` coroutines they support. The base class owns
    credential lookup, the HTTP client, retries and error translation.
    """

    capabilities: FrozenSet[Capability] = frozenset()

    # Display name -> vendor API model id
    TEXT_MODELS: Dict[str, str] = {}
    IMAGE_MODELS: Dict[str, str] = {}
    VIDEO_MODELS: Dict[str, str] = {}

    DEFAULT_TEXT_MODEL: Optional[str] = None
    DEFAULT_IMAGE_MODEL: Optional[str] = None
    DEFAULT_VIDEO_MODEL: Optional[str] = None

    def __init__(
        self,
        api_key: Optional[str] = None,
        settings: Optional[ProviderSettings] = None,
        key_store: Optional[KeyStore] = None,
        media_dir: Optional[Union[str, Path]] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        provider_key: Optional[str] = None,
    ):
        """
        Initialize the provider.

        Args:
            api_key: Key injected at runtime (otherwise env var, then key store)
            settings: Network settings; defaults come from the global config
            key_store: Store of user-entered keys
            media_dir: Where downloaded media is written
            transport: Custom httpx transport (used by tests)
            provider_key: Registry key, used for key-store lookups
        """
        config = None
        if settings is None or media_dir is None:
            config = get_config()

        self.provider_key = provider_key or self.provider_name.lower()
        self.settings = settings or config.get_provider_settings(self.provider_key)
        self.base_url = (self.settings.base_url or self._get_default_base_url()).rstrip("/")
        self.timeout = self.settings.timeout
        self.max_retries = self.settings.max_retries
        self.media_dir = Path(media_dir).expanduser() if media_dir else config.storage.resolve("media_dir")

        self.credentials = CredentialResolver(
            provider=self.provider_key,
            env_var=self.env_key_name,
            explicit_key=api_key,
            key_store=key_store,
        )
        self._api_key: Optional[str] = None
        self._resolved = False

        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._client_lock = asyncio.Lock()

        self.refresh_credentials()

    # -------------------------------------------------------------------------
    # Provider Identity
    # -------------------------------------------------------------------------

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Return the provider name."""
        pass

    @property
    @abstractmethod
    def env_key_name(self) -> str:
        """Return the environment variable name for the API key."""
        pass

    @abstractmethod
    def _get_default_base_url(self) -> str:
        """Return the default base URL for this provider."""
        pass

    # -------------------------------------------------------------------------
    # Credentials
    # -------------------------------------------------------------------------

    def refresh_credentials(self) -> Optional[str]:
        """Re-run credential resolution and return the key found, if any."""
        key = self.credentials.resolve()
        self._api_key = key
        self._resolved = key is not None
        if not key:
            logger.debug(
                f"No API key found for {self.provider_name}. "
                f"Set {self.env_key_name} or save a key in the key store."
            )
        return key

    @property
    def api_key(self) -> Optional[str]:
        """The resolved key. Resolution is retried while none is known."""
        if not self._resolved:
            self.refresh_credentials()
        return self._api_key

    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _ensure_api_key(self) -> str:
        key = self.api_key
        if not key:
            raise AuthError(
                f"{self.provider_name} API key not configured. "
                f"Set {self.env_key_name} or add your key in settings.",
                provider=self.provider_name,
            )
        return key

    # -------------------------------------------------------------------------
    # Capabilities And Models
    # -------------------------------------------------------------------------

    def supports(self, capability: Capability) -> bool:
        return capability in self.capabilities

    def resolve_model(self, alias: Optional[str], capability: Capability) -> str:
        """
        Translate a display model name into the vendor's API model id.

        Unknown names fall back to the vendor default instead of failing, so
        a stale model catalog does not break generation.
        """
        table, default = {
            Capability.TEXT: (self.TEXT_MODELS, self.DEFAULT_TEXT_MODEL),
            Capability.IMAGE: (self.IMAGE_MODELS, self.DEFAULT_IMAGE_MODEL),
            Capability.VIDEO: (self.VIDEO_MODELS, self.DEFAULT_VIDEO_MODEL),
        }[capability]

        if alias and alias in table:
            return table[alias]

        logger.warning(
            f"{self.provider_name}: unknown {capability.value} model '{alias}', "
            f"falling back to '{default}'"
        )
        return default

    def _unsupported(self, capability: Capability, model: str) -> UnsupportedCapabilityError:
        return UnsupportedCapabilityError(
            f"{self.provider_name} does not support {capability.value} generation",
            model=model,
            capability=capability.value,
            provider=self.provider_name,
        )

    # -------------------------------------------------------------------------
    # Generation Interface
    # -------------------------------------------------------------------------

    async def generate_text(self, request: TextRequest) -> str:
        """Generate text. Returns the model's reply."""
        raise self._unsupported(Capability.TEXT, request.model)

    async def generate_image(self, request: ImageRequest) -> List[str]:
        """Generate images. Returns data URIs."""
        raise self._unsupported(Capability.IMAGE, request.model)

    async def generate_video(self, request: VideoRequest) -> str:
        """Generate a video. Returns a URL or a local file path."""
        raise self._unsupported(Capability.VIDEO, request.model)

    # -------------------------------------------------------------------------
    # HTTP Helpers
    # -------------------------------------------------------------------------

    def _get_headers(self) -> Dict[str, str]:
        """Get default headers for requests."""
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client."""
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout),
                    transport=self._transport,
                )
            return self._client

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        """
        Send an HTTP request with retries on transient failures.

        Auth headers are built per request so a key entered mid-session is
        used right away. Non-success responses are translated by
        ``_raise_for_status``.
        """
        self._ensure_api_key()
        client = await self._get_client()
        headers = {**self._get_headers(), **kwargs.pop("headers", {})}
        kwargs["headers"] = headers
        last_error: Optional[Exception] = None

        for attempt in range(self.max_retries + 1):
            if attempt > 0:
                delay = self.settings.retry_delay * (DEFAULT_RETRY_MULTIPLIER ** (attempt - 1))
                logger.info(f"{self.provider_name}: retry {attempt}/{self.max_retries} after {delay:.1f}s")
                await asyncio.sleep(delay)

            try:
                response = await client.request(method, url, **kwargs)
            except httpx.TimeoutException as e:
                last_error = TimeoutError(
                    f"{self.provider_name} request timed out",
                    operation=f"{method} {redact_api_key(url)}",
                    timeout_seconds=self.timeout,
                )
                logger.warning(f"{self.provider_name}: timeout ({e.__class__.__name__})")
                continue
            except httpx.TransportError as e:
                last_error = ProviderError(
                    f"{self.provider_name} connection error: {redact_api_key(str(e))}",
                    provider=self.provider_name,
                    recoverable=True,
                )
                logger.warning(f"{self.provider_name}: transport error: {redact_api_key(str(e))}")
                continue

            if response.status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries:
                logger.warning(f"{self.provider_name}: HTTP {response.status_code}, retrying")
                continue

            self._raise_for_status(response)
            return response

        raise last_error

    def _raise_for_status(self, response: httpx.Response, model: Optional[str] = None) -> None:
        """Map a non-success HTTP response onto the error taxonomy."""
        if response.is_success:
            return

        status = response.status_code
        body = redact_api_key(response.text or "")
        vendor_message = self._extract_error(response) or body[:200]

        logger.error(f"{self.provider_name} API error {status}: {vendor_message}")

        if status in (401, 403):
            raise AuthError(
                f"Invalid or missing {self.provider_name} API key. Please check your API key in settings.",
                provider=self.provider_name,
                status_code=status,
                response_body=body,
            )
        if status == 429:
            retry_after = response.headers.get("retry-after")
            raise RateLimitError(
                f"{self.provider_name} rate limit reached (429). Please try again later.",
                retry_after=int(retry_after) if retry_after and retry_after.isdigit() else None,
                provider=self.provider_name,
                response_body=body,
            )
        if status == 404:
            raise ModelUnavailableError(
                f"{self.provider_name} model not available: {vendor_message}",
                model=model,
                provider=self.provider_name,
                response_body=body,
            )
        raise ProviderError(
            f"{self.provider_name} API error: {vendor_message}",
            provider=self.provider_name,
            status_code=status,
            response_body=body,
        )

    def _extract_error(self, response: httpx.Response) -> Optional[str]:
        """Extract the vendor's error message from a JSON error body."""
        try:
            data = response.json()
        except ValueError:
            return None
        if not isinstance(data, dict):
            return None
        error = data.get("error") or data.get("detail") or data.get("message")
        if isinstance(error, dict):
            return error.get("message") or error.get("type")
        return str(error) if error else None

    def _json(self, response: httpx.Response) -> Dict[str, Any]:
        """Decode a successful response body that must be a JSON object."""
        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            body = redact_api_key(response.text or "")
            logger.error(f"{self.provider_name} returned an unreadable response: {body[:200]}")
            raise ProviderError(
                f"{self.provider_name} returned an unreadable response",
                provider=self.provider_name,
                status_code=response.status_code,
                response_body=body,
            )
        return data

    async def wait_for_completion(
        self,
        poll: Callable[[], Awaitable[Optional[Dict[str, Any]]]],
        operation: str,
    ) -> Dict[str, Any]:
        """
        Poll a long-running job until ``poll`` returns a final payload.

        Args:
            poll: Coroutine returning the final payload, or None while running
            operation: Label used in logs and timeout errors

        Returns:
            The final payload
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        max_wait = self.settings.max_poll_seconds

        while True:
            result = await poll()
            if result is not None:
                return result

            elapsed = loop.time() - start_time
            if elapsed >= max_wait:
                raise TimeoutError(
                    f"{operation} timed out after {max_wait} seconds",
                    operation=operation,
                    timeout_seconds=max_wait,
                )

            logger.debug(f"{operation} still running, waiting...")
            await asyncio.sleep(self.settings.poll_interval)

    async def _as_data_uri(self, value: str) -> str:
        """Normalize an image result (URL or data URI) to a data URI."""
        if is_data_uri(value):
            return value
        client = await self._get_client()
        try:
            return await fetch_as_data_uri(value, client)
        except httpx.HTTPError as e:
            raise ProviderError(
                f"Failed to download {self.provider_name} output: {redact_api_key(str(e))}",
                provider=self.provider_name,
            )

    async def _download_video(self, uri: str) -> str:
        """Save a vendor-hosted clip into the media directory and return its path."""
        response = await self._request("GET", uri, follow_redirects=True)
        mime = response.headers.get("content-type", "").split(";")[0].strip()
        extension = MIME_EXTENSIONS.get(mime) or MIME_EXTENSIONS.get(get_mime_type(httpx.URL(uri).path), ".mp4")
        path = await save_bytes(response.content, self.media_dir, extension)
        logger.info(f"Video downloaded to: {path}")
        return path

    # -------------------------------------------------------------------------
    # Context Manager Protocol
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """Close the HTTP client."""
        async with self._client_lock:
            if self._client:
                await self._client.aclose()
                self._client = None

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

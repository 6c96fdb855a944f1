"""
Pytest configuration and shared fixtures for Creative Studio tests.
"""

import asyncio
import shutil
import tempfile
from pathlib import Path
from typing import Any, Dict, List, Optional

import httpx
import pytest

from creative_studio.api import get_provider
from creative_studio.core.config import Config, ProviderSettings, StorageConfig, reset_config, set_config
from creative_studio.core.credentials import KeyStore
from creative_studio.utils.media import to_data_uri


API_KEY_ENV_VARS = [
    "OPENAI_API_KEY",
    "ANTHROPIC_API_KEY",
    "XAI_API_KEY",
    "MISTRAL_API_KEY",
    "GOOGLE_API_KEY",
    "REPLICATE_API_TOKEN",
]

# No retry back-off or poll sleeps in tests
FAST_SETTINGS = dict(max_retries=0, retry_delay=0.0, poll_interval=0.0, max_poll_seconds=5.0)


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    path = tempfile.mkdtemp()
    yield Path(path)
    shutil.rmtree(path, ignore_errors=True)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Remove real provider keys so tests never reach a live API."""
    for name in API_KEY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    reset_config()


@pytest.fixture
def studio_config(temp_dir):
    """Config with all storage under the temp directory and fast network settings."""
    config = Config(
        storage=StorageConfig(
            db_path=str(temp_dir / "projects.db"),
            media_dir=str(temp_dir / "media"),
            key_store_path=str(temp_dir / "keys.yaml"),
        ),
        providers={
            name: ProviderSettings(**FAST_SETTINGS)
            for name in ("openai", "anthropic", "xai", "mistral", "google", "replicate")
        },
    )
    set_config(config)
    return config


@pytest.fixture
def key_store(studio_config):
    return KeyStore(studio_config.storage.key_store_path)


# =============================================================================
# HTTP Helpers
# =============================================================================


def make_provider(name: str, handler, media_dir: Path, api_key: Optional[str] = "test-key", **settings):
    """Build a provider whose HTTP traffic is served by ``handler``."""
    return get_provider(
        name,
        api_key=api_key,
        settings=ProviderSettings(**{**FAST_SETTINGS, **settings}),
        media_dir=media_dir,
        transport=httpx.MockTransport(handler),
    )


class RecordingHandler:
    """
    MockTransport handler that replays queued responses and records requests.

    Each queued item is an ``httpx.Response`` or a callable taking the request.
    """

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        response = self.responses.pop(0)
        if callable(response):
            return response(request)
        return response


# =============================================================================
# Fake Facade
# =============================================================================


def image_uri(tag: str) -> str:
    """A small but valid image data URI."""
    return to_data_uri(tag.encode(), "image/png")


class FakeFacade:
    """
    Scripted stand-in for GenerationFacade.

    Text replies and image/video results are consumed in call order. An
    exception in a script is raised instead of returned. Image calls record
    ("start", n) and ("end", n) events so tests can check call ordering.
    """

    def __init__(
        self,
        text_replies: Optional[List[Any]] = None,
        image_results: Optional[List[Any]] = None,
        video_results: Optional[List[Any]] = None,
    ):
        self.text_replies = list(text_replies or [])
        self.image_results = list(image_results or [])
        self.video_results = list(video_results or [])

        self.text_calls: List[Dict[str, Any]] = []
        self.image_calls: List[Dict[str, Any]] = []
        self.video_calls: List[Dict[str, Any]] = []
        self.events: List[tuple] = []

        self._in_flight = 0
        self.max_in_flight = 0

    @staticmethod
    def _next(script: List[Any], default: Any) -> Any:
        result = script.pop(0) if script else default
        if isinstance(result, BaseException):
            raise result
        return result

    async def generate_text(self, prompt, model=None, **kwargs):
        self.text_calls.append({"prompt": prompt, "model": model, **kwargs})
        return self._next(self.text_replies, "")

    async def generate_image(self, prompt, model=None, **kwargs):
        call = len(self.image_calls)
        self.image_calls.append({"prompt": prompt, "model": model, **kwargs})
        self.events.append(("start", call))
        self._in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self._in_flight)
        try:
            await asyncio.sleep(0)
            result = self._next(self.image_results, image_uri(f"image-{call}"))
            return [result] if isinstance(result, str) else result
        finally:
            self._in_flight -= 1
            self.events.append(("end", call))

    async def generate_video(self, prompt, model=None, **kwargs):
        call = len(self.video_calls)
        self.video_calls.append({"prompt": prompt, "model": model, **kwargs})
        return self._next(self.video_results, f"/tmp/video-{call}.mp4")


@pytest.fixture
def fake_facade():
    return FakeFacade()

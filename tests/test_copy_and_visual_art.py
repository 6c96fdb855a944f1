"""
Tests for CopyWriter and VisualArtGenerator
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import image_uri
from creative_studio.core.exceptions import GenerationError, RateLimitError, ValidationError
from creative_studio.workflow import (
    CopyWriter,
    DescriptionConfig,
    MediaArtSourceImage,
    VisualArtGenerator,
    VisualArtState,
)
from creative_studio.workflow.models import Tone, VisualArtConfig, VisualArtEffect


@pytest.fixture
def mock_facade():
    """Facade with mocked generation coroutines."""
    facade = MagicMock()
    facade.generate_text = AsyncMock(return_value="  Brew better mornings.  ")
    facade.generate_video = AsyncMock(return_value="/media/art.mp4")
    return facade


class TestCopyWriter:
    """Tests for CopyWriter."""

    @pytest.mark.asyncio
    async def test_generate(self, mock_facade):
        """Test the brief is sent to the configured text model."""
        config = DescriptionConfig(
            product_name="Aurora Kettle",
            key_features="gooseneck spout, 60s boil",
            target_audience="coffee lovers",
            tone=Tone.LUXURIOUS,
            language="German",
            text_model="claude-3.5-sonnet",
        )

        text = await CopyWriter(mock_facade).generate(config)

        assert text == "Brew better mornings."
        prompt = mock_facade.generate_text.call_args.args[0]
        assert "Aurora Kettle" in prompt
        assert "luxurious" in prompt
        assert "German" in prompt
        assert mock_facade.generate_text.call_args.kwargs["model"] == "claude-3.5-sonnet"

    @pytest.mark.asyncio
    async def test_requires_product_name(self, mock_facade):
        """Test an empty brief is rejected before calling the model."""
        with pytest.raises(ValidationError):
            await CopyWriter(mock_facade).generate(DescriptionConfig(product_name="  "))

        mock_facade.generate_text.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_reply(self, mock_facade):
        """Test an empty model reply is an error."""
        mock_facade.generate_text.return_value = ""

        with pytest.raises(GenerationError):
            await CopyWriter(mock_facade).generate(DescriptionConfig(product_name="Kettle"))

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, mock_facade):
        """Test provider errors reach the caller."""
        mock_facade.generate_text.side_effect = RateLimitError("429")

        with pytest.raises(RateLimitError):
            await CopyWriter(mock_facade).generate(DescriptionConfig(product_name="Kettle"))


class TestVisualArtGenerator:
    """Tests for VisualArtGenerator."""

    @pytest.mark.asyncio
    async def test_generate(self, mock_facade):
        """Test the clip is rendered with the effect and seed image."""
        seed = image_uri("seed")
        state = VisualArtState(
            input_text="HELLO",
            source_image=MediaArtSourceImage(url=seed),
            config=VisualArtConfig(effect=VisualArtEffect.KALEIDOSCOPE, video_model="veo-3", duration=6.0),
        )

        result = await VisualArtGenerator(mock_facade).generate(state)

        call = mock_facade.generate_video.call_args
        assert result.result_video_url == "/media/art.mp4"
        assert result.error is None
        assert result.is_loading is False
        assert "HELLO" in call.args[0]
        assert "kaleidoscope" in call.args[0]
        assert call.kwargs == {"model": "veo-3", "duration": 6.0, "image": seed}

    @pytest.mark.asyncio
    async def test_requires_text(self, mock_facade):
        """Test empty input is reported on the state."""
        state = await VisualArtGenerator(mock_facade).generate(VisualArtState(input_text=" "))

        assert state.error == "Input text is required"
        mock_facade.generate_video.assert_not_called()

    @pytest.mark.asyncio
    async def test_failure_is_reported_on_state(self, mock_facade):
        """Test a failed render sets the error and clears the loading flag."""
        mock_facade.generate_video.side_effect = RateLimitError("Veo quota exceeded")

        state = await VisualArtGenerator(mock_facade).generate(VisualArtState(input_text="HELLO"))

        assert state.error == "Veo quota exceeded"
        assert state.result_video_url is None
        assert state.is_loading is False

    @pytest.mark.asyncio
    async def test_remote_source_is_not_used_as_seed(self, mock_facade):
        """Test only data URIs are passed as seed images."""
        state = VisualArtState(
            input_text="HELLO",
            source_image=MediaArtSourceImage(url="https://museum.example/art.jpg"),
        )

        await VisualArtGenerator(mock_facade).generate(state)

        assert mock_facade.generate_video.call_args.kwargs["image"] is None

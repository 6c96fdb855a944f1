"""
Tests for Keyframe Sequencer Module
"""

import json
import logging

import httpx
import pytest

from conftest import FakeFacade, image_uri
from creative_studio.core.exceptions import InsufficientKeyframesError, ProviderError, RateLimitError, ValidationError
from creative_studio.workflow import (
    QUOTA_ERROR,
    FailureKind,
    KeyframeSequencer,
    MediaArtSourceImage,
    MediaArtStyle,
    PanelState,
    StoryboardConfig,
    resample_keyframes,
)
from creative_studio.workflow.models import MEDIA_ART_DEFAULT_PARAMS

STYLE = MediaArtStyle.DIGITAL_NATURE
PARAMS = MEDIA_ART_DEFAULT_PARAMS[STYLE]


def keyframes_json(count: int) -> str:
    return json.dumps([{"description": f"k{i}"} for i in range(count)])


@pytest.fixture
def config():
    return StoryboardConfig(scene_count=4, text_model="gemini-2.5-flash", image_model="imagen-4")


@pytest.fixture
def source():
    return MediaArtSourceImage(url=image_uri("painting"), title="Starry Night", type="painting")


class TestResampleKeyframes:
    """Tests for keyframe list resampling."""

    def test_exact_count_is_unchanged(self):
        """Test a list of the right length is returned as is."""
        assert resample_keyframes(["a", "b", "c"], 3) == ["a", "b", "c"]

    def test_shrink_keeps_ends(self):
        """Test shrinking keeps the first and last prompts in order."""
        prompts = [f"k{i}" for i in range(7)]

        result = resample_keyframes(prompts, 5)

        assert len(result) == 5
        assert result[0] == "k0"
        assert result[-1] == "k6"
        assert result == sorted(result, key=prompts.index)

    def test_stretch_repeats_entries(self):
        """Test stretching a short list reaches the requested length."""
        assert resample_keyframes(["a", "b"], 5) == ["a", "a", "b", "b", "b"]


class TestKeyframeSequencer:
    """Tests for KeyframeSequencer."""

    @pytest.mark.asyncio
    async def test_sequence_request(self, config, source):
        """Test the text model gets the source image and asks for S + 1 prompts."""
        facade = FakeFacade(text_replies=[keyframes_json(5)])
        sequencer = KeyframeSequencer(facade)

        prompts = await sequencer.generate_sequence(source, STYLE, PARAMS, config)

        call = facade.text_calls[0]
        assert prompts == ["k0", "k1", "k2", "k3", "k4"]
        assert call["images"] == [source.url]
        assert call["json_output"] is True
        assert "exactly 5 keyframe" in call["prompt"]
        assert "Starry Night" in call["prompt"]

    @pytest.mark.asyncio
    async def test_transition_panels(self, config, source):
        """Test five keyframes become four transition panels sharing frames."""
        facade = FakeFacade(text_replies=[keyframes_json(5)])
        sequencer = KeyframeSequencer(facade)

        panels = await sequencer.run(source, STYLE, PARAMS, config)

        assert len(panels) == 4
        assert len(facade.image_calls) == 5
        assert [call["prompt"] for call in facade.image_calls] == ["k0", "k1", "k2", "k3", "k4"]
        for i, panel in enumerate(panels):
            assert panel.description == f"k{i + 1}"
            assert panel.image_url == image_uri(f"image-{i}")
            assert panel.end_image_url == image_uri(f"image-{i + 1}")
            assert panel.image_state == PanelState.LOADED

    @pytest.mark.asyncio
    async def test_keyframes_render_sequentially(self, config, source):
        """Test keyframe image calls never overlap."""
        facade = FakeFacade(text_replies=[keyframes_json(5)])
        sequencer = KeyframeSequencer(facade)

        await sequencer.run(source, STYLE, PARAMS, config)

        assert facade.max_in_flight == 1
        assert facade.events[::2] == [("start", i) for i in range(5)]

    @pytest.mark.asyncio
    async def test_extra_prompts_are_resampled(self, config, source):
        """Test a longer reply is resampled to S + 1 prompts."""
        facade = FakeFacade(text_replies=[keyframes_json(8)])
        sequencer = KeyframeSequencer(facade)

        prompts = await sequencer.generate_sequence(source, STYLE, PARAMS, config)

        assert len(prompts) == 5
        assert prompts[0] == "k0"
        assert prompts[-1] == "k7"

    @pytest.mark.asyncio
    async def test_short_reply_is_stretched_with_warning(self, config, source, caplog):
        """Test a two-prompt reply is stretched and the repetition is logged as a warning."""
        facade = FakeFacade(text_replies=[keyframes_json(2)])
        sequencer = KeyframeSequencer(facade)

        with caplog.at_level(logging.WARNING, logger="creative_studio.workflow.keyframes"):
            prompts = await sequencer.generate_sequence(source, STYLE, PARAMS, config)

        assert prompts == ["k0", "k0", "k1", "k1", "k1"]
        assert "repeating prompts" in caplog.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", [keyframes_json(1), "[]", "no json here"])
    async def test_insufficient_keyframes(self, config, source, reply):
        """Test fewer than two prompts is an error."""
        facade = FakeFacade(text_replies=[reply])
        sequencer = KeyframeSequencer(facade)

        with pytest.raises(InsufficientKeyframesError):
            await sequencer.run(source, STYLE, PARAMS, config)

        assert facade.image_calls == []

    @pytest.mark.asyncio
    async def test_shared_frame_failure(self, config, source):
        """Test a failed keyframe marks both panels that share it."""
        facade = FakeFacade(
            text_replies=[keyframes_json(5)],
            image_results=[image_uri("0"), image_uri("1"), RateLimitError("quota"), image_uri("3"), image_uri("4")],
        )
        sequencer = KeyframeSequencer(facade)

        panels = await sequencer.run(source, STYLE, PARAMS, config)

        assert panels[1].end_image_url == QUOTA_ERROR
        assert panels[2].image_url == QUOTA_ERROR
        assert panels[1].image_failure == FailureKind.QUOTA
        assert panels[2].image_state == PanelState.FAILED
        assert panels[0].image_state == PanelState.LOADED
        assert panels[3].image_state == PanelState.LOADED

    @pytest.mark.asyncio
    async def test_regenerate_image(self, config, source):
        """Test regenerating a panel's end frame updates the next panel's start frame."""
        facade = FakeFacade(text_replies=[keyframes_json(5)])
        sequencer = KeyframeSequencer(facade)
        await sequencer.run(source, STYLE, PARAMS, config)

        panel = await sequencer.regenerate_image(1)

        assert facade.image_calls[-1]["prompt"] == "k2"
        assert panel.end_image_url == image_uri("image-5")
        assert sequencer.panels[2].image_url == image_uri("image-5")
        assert sequencer.panels[0].end_image_url == image_uri("image-1")

    @pytest.mark.asyncio
    async def test_regenerate_requires_render(self):
        """Test regenerating before a render is rejected."""
        sequencer = KeyframeSequencer(FakeFacade())

        with pytest.raises(ValidationError):
            await sequencer.regenerate_image(0)

    @pytest.mark.asyncio
    async def test_remote_source_is_fetched(self, config):
        """Test a remote source image is downloaded into a data URI."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=b"jpeg", headers={"content-type": "image/jpeg"})

        facade = FakeFacade(text_replies=[keyframes_json(5)])
        sequencer = KeyframeSequencer(facade, transport=httpx.MockTransport(handler))

        await sequencer.generate_sequence("https://museum.example/art.jpg", STYLE, PARAMS, config)

        assert facade.text_calls[0]["images"] == ["data:image/jpeg;base64,anBlZw=="]

    @pytest.mark.asyncio
    async def test_remote_source_failure(self, config):
        """Test a failed download is reported as a provider error."""
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404)

        sequencer = KeyframeSequencer(FakeFacade(), transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderError):
            await sequencer.generate_sequence("https://museum.example/missing.jpg", STYLE, PARAMS, config)

    @pytest.mark.asyncio
    async def test_local_file_source(self, config, temp_dir):
        """Test a local file is read into a data URI."""
        path = temp_dir / "photo.png"
        path.write_bytes(b"png")
        facade = FakeFacade(text_replies=[keyframes_json(5)])
        sequencer = KeyframeSequencer(facade)

        await sequencer.generate_sequence(str(path), STYLE, PARAMS, config)

        assert facade.text_calls[0]["images"] == ["data:image/png;base64,cG5n"]

    @pytest.mark.asyncio
    async def test_invalid_source(self, config):
        """Test a source that is neither a URI, URL nor file is rejected."""
        sequencer = KeyframeSequencer(FakeFacade())

        with pytest.raises(ValidationError):
            await sequencer.generate_sequence("not/a/real/file.png", STYLE, PARAMS, config)

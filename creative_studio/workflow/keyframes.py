"""
Keyframe Sequencer
==================

Media-art sequences: a source image is reinterpreted through a style as
``scene_count + 1`` keyframes running from near-abstract to photorealistic.
Consecutive keyframes form transition panels (start frame, end frame).
"""

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import httpx

from .models import MediaArtSourceImage, MediaArtStyle, Panel, StoryboardConfig, coerce_enum
from .parsing import extract_descriptions, safe_json_parse
from .prompts import keyframe_sequence_prompt
from .storyboard import OnUpdate, render_image, render_images_sequentially
from ..core.exceptions import InsufficientKeyframesError, ProviderError, ValidationError
from ..core.security import redact_api_key
from ..utils.media import fetch_as_data_uri, file_to_data_uri, is_data_uri, is_remote_url

logger = logging.getLogger(__name__)

MIN_KEYFRAMES = 2

SOURCE_FETCH_TIMEOUT = 30.0


def resample_keyframes(prompts: List[str], count: int) -> List[str]:
    """
    Stretch or shrink an ordered prompt list to ``count`` entries.

    Both ends are kept and intermediate entries are picked evenly, so the
    abstract-to-realistic order survives.
    """
    if len(prompts) == count:
        return list(prompts)
    last = len(prompts) - 1
    steps = count - 1
    return [prompts[int(j * last / steps + 0.5)] for j in range(count)]


class KeyframeSequencer:
    """
    Builds and renders keyframe transition sequences.

    Rendering follows the storyboard pipeline: one image call at a time, in
    keyframe order, with failures recorded per panel.
    """

    def __init__(
        self,
        facade,
        on_update: Optional[OnUpdate] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.facade = facade
        self.on_update = on_update
        self._transport = transport

        self.prompts: List[str] = []
        self.panels: List[Panel] = []
        self.config: Optional[StoryboardConfig] = None

    async def _source_data_uri(self, source: Union[MediaArtSourceImage, str]) -> str:
        url = source.url if isinstance(source, MediaArtSourceImage) else source
        if is_data_uri(url):
            return url
        if is_remote_url(url):
            try:
                async with httpx.AsyncClient(timeout=SOURCE_FETCH_TIMEOUT, transport=self._transport) as client:
                    return await fetch_as_data_uri(url, client)
            except httpx.HTTPError as e:
                raise ProviderError(f"Failed to fetch image from URL: {redact_api_key(str(e))}")
        if url and Path(url).expanduser().exists():
            return file_to_data_uri(Path(url).expanduser())
        raise ValidationError("Source image must be a data URI, URL or existing file", field="source_image")

    async def generate_sequence(
        self,
        source_image: Union[MediaArtSourceImage, str],
        style: MediaArtStyle,
        style_params: Dict[str, Any],
        config: StoryboardConfig,
    ) -> List[str]:
        """
        Ask the text model for exactly ``scene_count + 1`` keyframe prompts.

        Raises:
            InsufficientKeyframesError: If fewer than two prompts come back
        """
        style = coerce_enum(MediaArtStyle, style)
        count = config.scene_count + 1
        image = await self._source_data_uri(source_image)
        title = source_image.title if isinstance(source_image, MediaArtSourceImage) else ""

        reply = await self.facade.generate_text(
            keyframe_sequence_prompt(title, style, style_params, count, config.description_language),
            model=config.text_model,
            images=[image],
            json_output=True,
        )

        prompts = extract_descriptions(safe_json_parse(reply)) or []
        if len(prompts) < MIN_KEYFRAMES:
            raise InsufficientKeyframesError(
                f"Expected {count} keyframe prompts, got {len(prompts)} usable",
                received=len(prompts),
            )

        if len(prompts) < count:
            logger.warning(
                f"Only {len(prompts)} keyframe prompts for {count} keyframes, repeating prompts; "
                f"some transitions will start and end on the same frame"
            )
        elif len(prompts) > count:
            logger.info(f"Resampling {len(prompts)} keyframe prompts to {count}")
        self.prompts = resample_keyframes(prompts, count)
        return self.prompts

    async def render(self, prompts: List[str], config: StoryboardConfig) -> List[Panel]:
        """
        Render keyframes in order into ``len(prompts) - 1`` transition panels.

        Panel ``i`` starts on keyframe ``i`` and ends on keyframe ``i + 1``.
        """
        if len(prompts) < MIN_KEYFRAMES:
            raise InsufficientKeyframesError(
                "At least two keyframes are needed for a transition",
                received=len(prompts),
            )

        self.prompts = list(prompts)
        self.config = config
        panels = [Panel(description=prompt, is_loading_image=True) for prompt in prompts[1:]]
        self.panels = panels
        if self.on_update:
            self.on_update(list(panels))

        def apply_keyframe(panels: List[Panel], keyframe: int, result: str) -> None:
            if keyframe > 0:
                panels[keyframe - 1] = replace(
                    panels[keyframe - 1], end_image_url=result, is_loading_image=False
                )
            if keyframe < len(panels):
                panels[keyframe] = replace(panels[keyframe], image_url=result)

        await render_images_sequentially(
            self.facade,
            panels,
            prompts,
            model=config.image_model,
            aspect_ratio=config.aspect_ratio.value,
            on_update=self.on_update,
            apply=apply_keyframe,
        )
        return panels

    async def run(
        self,
        source_image: Union[MediaArtSourceImage, str],
        style: MediaArtStyle,
        style_params: Dict[str, Any],
        config: StoryboardConfig,
    ) -> List[Panel]:
        """Generate the keyframe prompts and render them."""
        prompts = await self.generate_sequence(source_image, style, style_params, config)
        return await self.render(prompts, config)

    async def regenerate_image(self, index: int) -> Panel:
        """
        Re-render the end keyframe of transition ``index``.

        The next transition starts on the same keyframe, so its start frame
        is updated too.
        """
        if self.config is None or not 0 <= index < len(self.panels):
            raise ValidationError(f"No keyframe panel at index {index}", field="index", value=index)

        config = self.config
        panels = self.panels
        panels[index] = replace(panels[index], end_image_url=None, is_loading_image=True)
        if self.on_update:
            self.on_update(list(panels))

        result = await render_image(
            self.facade, self.prompts[index + 1], config.image_model, config.aspect_ratio.value
        )
        panels[index] = replace(panels[index], end_image_url=result, is_loading_image=False)
        if index + 1 < len(panels):
            panels[index + 1] = replace(panels[index + 1], image_url=result)

        if self.on_update:
            self.on_update(list(panels))
        return panels[index]

"""
Storyboard Pipeline
===================

Turns a story idea into an ordered list of panels: one text call for the
scene descriptions, then one image call per panel.

Image and video calls for the panels of a run are issued strictly in index
order. Call ``i + 1`` starts only after call ``i`` has settled, which keeps
provider rate limits attributable to a single panel and gives observers
genuine incremental progress. A failed panel is marked and the run moves on.
"""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Callable, List, Optional, Sequence

import httpx

from .models import (
    DEFAULT_SCENE_DURATION,
    IMAGE_ERROR,
    QUOTA_ERROR,
    VIDEO_ERROR,
    Panel,
    StoryboardConfig,
)
from .parsing import extract_descriptions, safe_json_parse
from .prompts import (
    EXPANSION_SHOTS,
    panel_image_prompt,
    scene_expansion_prompt,
    storyboard_prompt,
    video_prompt,
)
from ..core.exceptions import GenerationError, StudioError, ValidationError, is_quota_error
from ..utils.media import parse_data_uri, to_data_uri

logger = logging.getLogger(__name__)

OnUpdate = Callable[[List[Panel]], None]
ApplyResult = Callable[[List[Panel], int, str], None]

# Failures downgraded to a per-panel marker instead of aborting the run
PANEL_ERRORS = (StudioError, httpx.HTTPError)


class PipelineState(Enum):
    """Run-level state of a storyboard pipeline."""

    IDLE = "idle"
    GENERATING_TEXT = "generating_text"
    GENERATING_IMAGES = "generating_images"
    DONE = "done"
    FAILED = "failed"


@dataclass
class SceneExpansion:
    """Three shots proposed to replace one scene, awaiting confirmation."""

    index: int
    original_description: str
    panels: List[Panel] = field(default_factory=list)


# =============================================================================
# Sequential Rendering
# =============================================================================


def failure_marker(error: BaseException) -> str:
    return QUOTA_ERROR if is_quota_error(error) else IMAGE_ERROR


async def render_image(facade, prompt: str, model: str, aspect_ratio: Optional[str] = None) -> str:
    """
    Render one image.

    Returns the first image as a data URI, or a failure marker. Provider and
    network errors never escape.
    """
    try:
        images = await facade.generate_image(prompt, model=model, aspect_ratio=aspect_ratio)
        if not images:
            raise GenerationError("Image generation failed, no images returned.", stage="image", prompt=prompt)
        return images[0]
    except PANEL_ERRORS as e:
        marker = failure_marker(e)
        logger.warning(f"Image generation failed ({marker}): {e}")
        return marker


def set_panel_image(panels: List[Panel], index: int, result: str) -> None:
    panels[index] = replace(panels[index], image_url=result, is_loading_image=False)


async def render_images_sequentially(
    facade,
    panels: List[Panel],
    prompts: Sequence[str],
    model: str,
    aspect_ratio: Optional[str] = None,
    on_update: Optional[OnUpdate] = None,
    apply: ApplyResult = set_panel_image,
) -> List[Panel]:
    """
    Render one image per prompt, in order, into ``panels``.

    After each prompt settles, ``apply(panels, index, result)`` stores the
    result and ``on_update`` receives a copy of the list.
    """
    for index, prompt in enumerate(prompts):
        result = await render_image(facade, prompt, model, aspect_ratio)
        apply(panels, index, result)
        if on_update:
            on_update(list(panels))
    return panels


# =============================================================================
# Pipeline
# =============================================================================


class StoryboardPipeline:
    """
    Storyboard generation with per-panel image and video stages.

    The pipeline is the only writer of its panel list. Every mutation is
    followed by ``on_update`` with a shallow copy of the list. There is no
    lock: overlapping operations on the same pipeline are the caller's
    concern, and a run superseded by a newer ``generate`` keeps writing to
    the list it started with.

    Example:
        pipeline = StoryboardPipeline(facade, on_update=print)
        panels = await pipeline.generate("a cat video", StoryboardConfig(scene_count=3))
    """

    def __init__(
        self,
        facade,
        on_update: Optional[OnUpdate] = None,
        scene_duration: float = DEFAULT_SCENE_DURATION,
    ):
        """
        Args:
            facade: GenerationFacade (or anything with the same coroutines)
            on_update: Called with a copy of the panel list after each step
            scene_duration: Duration given to new panels, in seconds
        """
        self.facade = facade
        self.on_update = on_update
        self.scene_duration = scene_duration

        self.state = PipelineState.IDLE
        self.panels: List[Panel] = []
        self.config: Optional[StoryboardConfig] = None
        self.idea = ""

    def _publish(self, panels: Optional[List[Panel]] = None) -> None:
        if self.on_update:
            self.on_update(list(self.panels if panels is None else panels))

    def _require_config(self) -> StoryboardConfig:
        if self.config is None:
            raise ValidationError("No storyboard has been generated yet")
        return self.config

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.panels):
            raise ValidationError(
                f"Panel index {index} out of range (0-{len(self.panels) - 1})",
                field="index",
                value=index,
            )

    def _image_prompt(self, description: str, config: StoryboardConfig) -> str:
        return panel_image_prompt(description, config.visual_style, config.characters)

    async def _descriptions(self, prompt: str, model: str, what: str) -> List[str]:
        reply = await self.facade.generate_text(prompt, model=model, json_output=True)
        descriptions = extract_descriptions(safe_json_parse(reply))
        if not descriptions:
            raise GenerationError(f"Failed to generate a valid {what}.", stage=what)
        return descriptions

    # -------------------------------------------------------------------------
    # Full Run
    # -------------------------------------------------------------------------

    async def generate(self, idea: str, config: StoryboardConfig) -> List[Panel]:
        """
        Generate scene descriptions and render one image per scene.

        Text stage errors set the state to FAILED and propagate. Image
        failures are recorded on the panel and the run continues.
        """
        self.idea = idea
        self.config = config
        self.panels = []
        self.state = PipelineState.GENERATING_TEXT
        self._publish()

        try:
            descriptions = await self._descriptions(
                storyboard_prompt(idea, config), config.text_model, "storyboard structure"
            )
        except Exception:
            self.state = PipelineState.FAILED
            raise

        if len(descriptions) > config.scene_count:
            logger.info(f"Text model returned {len(descriptions)} scenes, keeping {config.scene_count}")
        descriptions = descriptions[:config.scene_count]

        panels = [
            Panel(description=d, is_loading_image=True, scene_duration=self.scene_duration)
            for d in descriptions
        ]
        self.panels = panels
        self.state = PipelineState.GENERATING_IMAGES
        self._publish(panels)

        await render_images_sequentially(
            self.facade,
            panels,
            [self._image_prompt(p.description, config) for p in panels],
            model=config.image_model,
            aspect_ratio=config.aspect_ratio.value,
            on_update=self.on_update,
        )

        self.state = PipelineState.DONE
        logger.info(f"Storyboard complete: {len(panels)} panels")
        return panels

    # -------------------------------------------------------------------------
    # Single-Panel Operations
    # -------------------------------------------------------------------------

    async def regenerate_image(self, index: int) -> Panel:
        """Re-render one panel's image, leaving the others untouched."""
        config = self._require_config()
        self._check_index(index)
        panels = self.panels

        panels[index] = replace(panels[index], image_url=None, is_loading_image=True)
        self._publish(panels)

        result = await render_image(
            self.facade,
            self._image_prompt(panels[index].description, config),
            config.image_model,
            config.aspect_ratio.value,
        )
        set_panel_image(panels, index, result)
        self._publish(panels)
        return panels[index]

    async def regenerate_video(self, index: int) -> Panel:
        """
        Render a clip for one panel, seeded with its image.

        Raises:
            ValidationError: If the panel has no rendered image
        """
        config = self._require_config()
        self._check_index(index)
        panels = self.panels
        panel = panels[index]

        if not panel.has_real_image:
            raise ValidationError(
                f"Panel {index} has no rendered image to animate",
                field="image_url",
            )

        mime, data = parse_data_uri(panel.image_url)
        seed_image = to_data_uri(data, mime)

        panels[index] = replace(panel, video_url=None, is_loading_video=True, video_error=None)
        self._publish(panels)

        try:
            video_url = await self.facade.generate_video(
                video_prompt(panel.description),
                model=config.video_model,
                duration=panel.scene_duration,
                image=seed_image,
            )
            panels[index] = replace(panels[index], video_url=video_url, is_loading_video=False)
        except PANEL_ERRORS as e:
            logger.warning(f"Video generation failed for panel {index}: {e}")
            panels[index] = replace(
                panels[index],
                video_url=VIDEO_ERROR,
                video_error=getattr(e, "message", None) or str(e),
                is_loading_video=False,
            )

        self._publish(panels)
        return panels[index]

    async def render_videos(self) -> List[Panel]:
        """Render clips for every panel that has an image, one at a time."""
        for index in range(len(self.panels)):
            if self.panels[index].has_real_image:
                await self.regenerate_video(index)
        return self.panels

    def set_scene_duration(self, index: int, seconds: float) -> None:
        self._check_index(index)
        if seconds <= 0:
            raise ValidationError("Scene duration must be positive", field="scene_duration", value=seconds)
        self.panels[index] = replace(self.panels[index], scene_duration=seconds)
        self._publish()

    def delete_panel(self, index: int) -> None:
        self._check_index(index)
        del self.panels[index]
        self._publish()

    # -------------------------------------------------------------------------
    # Scene Expansion
    # -------------------------------------------------------------------------

    async def expand_scene(
        self,
        description: str,
        index: int,
        on_update: Optional[OnUpdate] = None,
    ) -> SceneExpansion:
        """
        Break one scene into three shots and render them.

        The main panel list is not modified; pass the result to
        ``apply_expansion`` to splice it in.
        """
        config = self._require_config()
        self._check_index(index)

        descriptions = await self._descriptions(
            scene_expansion_prompt(description, config.description_language),
            config.text_model,
            "detailed storyboard",
        )
        if len(descriptions) < EXPANSION_SHOTS:
            raise GenerationError(
                f"Expected {EXPANSION_SHOTS} shots, got {len(descriptions)}.",
                stage="detailed storyboard",
                prompt=description,
            )
        panels = [Panel(description=d, is_loading_image=True) for d in descriptions[:EXPANSION_SHOTS]]
        expansion = SceneExpansion(index=index, original_description=description, panels=panels)
        if on_update:
            on_update(list(panels))

        await render_images_sequentially(
            self.facade,
            panels,
            [self._image_prompt(p.description, config) for p in panels],
            model=config.image_model,
            aspect_ratio=config.aspect_ratio.value,
            on_update=on_update,
        )
        return expansion

    def apply_expansion(self, expansion: SceneExpansion) -> List[Panel]:
        """Replace the expanded scene with its shots."""
        self._check_index(expansion.index)
        shots = [
            replace(p, is_loading_image=False, scene_duration=self.scene_duration)
            for p in expansion.panels
        ]
        self.panels[expansion.index:expansion.index + 1] = shots
        self._publish()
        return self.panels

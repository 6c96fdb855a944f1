"""
Visual Art Generator
====================

Short motion-graphics clips built around a line of text.
"""

import logging

import httpx

from .models import VisualArtState
from .prompts import visual_art_prompt
from ..core.exceptions import StudioError
from ..utils.media import is_data_uri

logger = logging.getLogger(__name__)


class VisualArtGenerator:
    """
    Renders a text-effect video into a ``VisualArtState``.

    Failures are reported on ``state.error`` rather than raised.
    """

    def __init__(self, facade):
        self.facade = facade

    async def generate(self, state: VisualArtState) -> VisualArtState:
        state.result_video_url = None
        state.error = None

        if not state.input_text.strip():
            state.error = "Input text is required"
            return state

        config = state.config
        seed_image = None
        if state.source_image and is_data_uri(state.source_image.url):
            seed_image = state.source_image.url

        state.is_loading = True
        try:
            state.result_video_url = await self.facade.generate_video(
                visual_art_prompt(state.input_text, config.effect, config.style),
                model=config.video_model,
                duration=config.duration,
                image=seed_image,
            )
            logger.info(f"Visual art video ready: {state.result_video_url}")
        except (StudioError, httpx.HTTPError) as e:
            logger.warning(f"Visual art generation failed: {e}")
            state.error = getattr(e, "message", None) or str(e)
        finally:
            state.is_loading = False

        return state

"""
Copywriter
==========

Product marketing copy from a short brief.
"""

import logging

from .models import DescriptionConfig
from .prompts import description_prompt
from ..core.exceptions import GenerationError, ValidationError

logger = logging.getLogger(__name__)


class CopyWriter:
    """Writes product descriptions with the configured text model."""

    def __init__(self, facade):
        self.facade = facade

    async def generate(self, config: DescriptionConfig) -> str:
        if not config.product_name.strip():
            raise ValidationError("Product name is required", field="product_name")

        logger.info(f"Writing product description for '{config.product_name}'")
        text = await self.facade.generate_text(description_prompt(config), model=config.text_model)

        text = (text or "").strip()
        if not text:
            raise GenerationError("The text model returned an empty description", stage="description")
        return text

"""
Prompt Builders
===============

Text prompts sent to the generation models by the pipelines.
"""

from typing import Any, Dict, Optional, Sequence

from .models import (
    CharacterReference,
    DescriptionConfig,
    MediaArtStyle,
    StoryboardConfig,
    VisualArtEffect,
    VisualStyle,
)

# Abstraction level of the first keyframe, as a percentage range
KEYFRAME_START_ABSTRACTION = "80-90%"

EXPANSION_SHOTS = 3


def description_prompt(config: DescriptionConfig) -> str:
    """Prompt for product marketing copy."""
    return f"""Generate a compelling product description.
    - Product Name: {config.product_name}
    - Key Features: {config.key_features}
    - Target Audience: {config.target_audience}
    - Tone: {config.tone.value}
    - Language: {config.language}

    The description should be concise, engaging, and highlight the key benefits for the target audience. Do not include a title or header."""


def storyboard_prompt(idea: str, config: StoryboardConfig) -> str:
    """Prompt asking for exactly ``config.scene_count`` scene descriptions."""
    characters = ""
    if config.characters:
        listed = "\n".join(f"    - {c.name} ({c.role}): {c.prompt_fragment()}" for c in config.characters)
        characters = (
            "\n    7.  Keep these characters visually consistent and refer to them by name:\n"
            f"{listed}"
        )

    return f"""Create a storyboard for a short video based on this idea: "{idea}".

    **Instructions:**
    1.  Generate exactly {config.scene_count} scenes.
    2.  The overall mood should be {config.mood.value}.
    3.  The visual style should be {config.visual_style.value}.
    4.  The total video length is approximately {config.video_length.value}, so pace the scenes accordingly.
    5.  The output language for the descriptions must be {config.description_language}.
    6.  For each scene, provide a detailed, visually rich description suitable for an AI image generation model. Describe the camera angle, subject, setting, action, and atmosphere.{characters}

    Return the result as a JSON array of objects with "scene" (number) and "description" (string) fields."""


def scene_expansion_prompt(original_scene: str, language: str) -> str:
    """Prompt that breaks one scene into three sequential shots."""
    return f"""Take the following single storyboard scene and expand it into {EXPANSION_SHOTS} more detailed, sequential shots. Maintain the core idea of the original scene but break it down into a mini-sequence (e.g., establishing shot, medium shot, close-up).

    **Original Scene:** "{original_scene}"

    **Instructions:**
    1.  Create exactly {EXPANSION_SHOTS} new, detailed scene descriptions.
    2.  The descriptions should logically follow each other.
    3.  Make each new description highly visual and suitable for an AI image generator.
    4.  The output language for the descriptions must be {language}.

    Return the result as a JSON array of objects with a "description" field."""


def panel_image_prompt(
    description: str,
    visual_style: VisualStyle,
    characters: Sequence[CharacterReference] = (),
) -> str:
    """
    Image prompt for one panel.

    Consistency text is added for every character named in the description.
    """
    style = "photorealistic, cinematic" if visual_style == VisualStyle.PHOTOREALISTIC else visual_style.value
    parts = [description]

    lowered = description.lower()
    for character in characters:
        if character.name and character.name.lower() in lowered:
            parts.append(character.prompt_fragment())

    parts.append(f"{style} style, high detail")
    return ", ".join(parts)


def media_art_style_instruction(style: MediaArtStyle, params: Dict[str, Any]) -> str:
    """Style description for a media-art style and its parameters."""
    p = params
    if style == MediaArtStyle.DATA_COMPOSITION:
        return (
            "The style is 'Data Composition', inspired by Ryoji Ikeda. It must feature dense, flowing data "
            "visualizations, glitch effects, and stark digital patterns. "
            f"Parameters: Data Density={p.get('dataDensity')}%, Glitch Intensity={p.get('glitchIntensity')}%, "
            f"Color Palette={p.get('colorPalette')}."
        )
    if style == MediaArtStyle.DIGITAL_NATURE:
        return (
            "The style is 'Digital Nature', inspired by teamLab. It must feature interactive particle systems "
            "that form natural elements. The scene should feel alive and responsive. "
            f"Parameters: Particle System={p.get('particleSystem')}, Interactivity Level={p.get('interactivity')}%, "
            f"Bloom Effect={p.get('bloomEffect')}%."
        )
    if style == MediaArtStyle.AI_DATA_SCULPTURE:
        return (
            "The style is 'AI Data Sculpture', inspired by Refik Anadol. It must be a fluid, organic, and complex "
            "data visualization that resembles a living sculpture. "
            f"Parameters: Fluidity={p.get('fluidity')}%, Color Scheme={p.get('colorScheme')}, "
            f"Structural Complexity={p.get('complexity')}%."
        )
    if style == MediaArtStyle.LIGHT_AND_SPACE:
        return (
            "The style is 'Light and Space', inspired by NONOTAK Studio. It must use geometric, structural "
            "patterns of light like beams, grids, and strobes to define the space. The mood is minimalist and "
            f"intense. Parameters: Light Pattern={p.get('pattern')}, Speed={p.get('speed')}%, Color={p.get('color')}."
        )
    if style == MediaArtStyle.KINETIC_MIRRORS:
        return (
            "The style is 'Kinetic Mirrors'. It should depict the original image as if reflected and fractured "
            "across a field of moving, robotic mirrors. "
            f"Parameters: Fragmentation={p.get('fragmentation')}%, Motion Speed={p.get('motionSpeed')}%, "
            f"Reflection Type={p.get('reflection')}."
        )
    if style == MediaArtStyle.GENERATIVE_BOTANY:
        return (
            "The style is 'Generative Botany'. It must show surreal, algorithmically-grown plants and flowers "
            "overgrowing the original image's subject. "
            f"Parameters: Growth Speed={p.get('growthSpeed')}%, Plant Type={p.get('plantType')}, "
            f"Density={p.get('density')}%."
        )
    if style == MediaArtStyle.QUANTUM_PHANTASM:
        return (
            "The style is 'Quantum Phantasm'. It must visualize the image as an unstable, shimmering field of "
            "quantum particles, constantly phasing in and out of existence. "
            f"Parameters: Particle Size={p.get('particleSize')}%, Shimmer Speed={p.get('shimmerSpeed')}%, "
            f"Color Palette={p.get('colorPalette')}."
        )
    if style == MediaArtStyle.ARCHITECTURAL_PROJECTION:
        return (
            "The style is 'Architectural Projection'. The image's content should be deconstructed and "
            "projection-mapped onto complex geometric structures, creating a sense of fragmented, volumetric "
            f"light. Parameters: Deconstruction={p.get('deconstruction')}%, Light Source={p.get('lightSource')}, "
            f"Texture={p.get('texture')}."
        )
    return ""


def keyframe_sequence_prompt(
    title: str,
    style: MediaArtStyle,
    params: Dict[str, Any],
    keyframe_count: int,
    language: str,
) -> str:
    """
    Prompt for an ordered keyframe list running from stylized abstraction
    to a faithful photorealistic rendering of the source image.
    """
    label = f" ({title})" if title else ""
    last = keyframe_count - 1
    return f"""Analyze the provided image{label}. Describe a gradual visual transformation of it as an ordered list of exactly {keyframe_count} keyframe image prompts.

    **Style Instructions:**
    {media_art_style_instruction(style, params)}

    **Transformation Instructions:**
    1.  Keyframe 1 is a near-abstract stylization of the image, about {KEYFRAME_START_ABSTRACTION} abstraction, with the style dominating and the original subject barely recognizable.
    2.  Keyframe {keyframe_count} is a faithful, photorealistic description of the original image with the stylization completely absent.
    3.  Keyframes 2 to {last} interpolate steadily between these two poles: each one is less abstract and more realistic than the one before it.
    4.  Keep the composition, subject placement, and camera framing consistent across all keyframes so consecutive frames can cross-fade.
    5.  Each prompt must be highly visual and self-contained, suitable for an AI image generation model.
    6.  The prompts must be written in {language}.

    Return the result as a JSON array of exactly {keyframe_count} objects with a "description" field, ordered from most abstract to most realistic."""


def visual_art_prompt(text: str, effect: VisualArtEffect, style: Optional[str] = None) -> str:
    """Prompt for a text-driven motion graphics clip."""
    style_line = style or "Abstract, high-energy, and suitable for a short social media clip."
    return f"""Create a dynamic, visually striking motion graphics video.
    - Text: "{text}"
    - Visual Effect: {effect.value}
    - Style: {style_line}
    The text should be the central focus, animated with the chosen effect. The background should be complementary and dynamic."""


def video_prompt(description: str, duration: Optional[float] = None) -> str:
    """Prompt used to animate a rendered panel."""
    if duration:
        return f"{description}. Smooth cinematic motion, about {duration:g} seconds."
    return description



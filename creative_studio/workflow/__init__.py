"""
Workflow Module
===============

Generation pipelines built on the generation facade:
storyboards, keyframe sequences, product copy and visual art.
"""

from .models import (
    AppMode,
    Tone,
    AspectRatio,
    VisualStyle,
    VideoLength,
    Mood,
    MediaArtStyle,
    VisualArtEffect,
    PanelState,
    FailureKind,
    IMAGE_ERROR,
    QUOTA_ERROR,
    VIDEO_ERROR,
    Panel,
    CharacterReference,
    StoryboardConfig,
    DescriptionConfig,
    MediaArtSourceImage,
    MediaArtState,
    VisualArtConfig,
    VisualArtState,
    Project,
)
from .parsing import safe_json_parse, extract_descriptions
from .storyboard import (
    StoryboardPipeline,
    PipelineState,
    SceneExpansion,
    render_images_sequentially,
)
from .keyframes import KeyframeSequencer, resample_keyframes
from .copywriter import CopyWriter
from .visual_art import VisualArtGenerator

__all__ = [
    # Models
    "AppMode",
    "Tone",
    "AspectRatio",
    "VisualStyle",
    "VideoLength",
    "Mood",
    "MediaArtStyle",
    "VisualArtEffect",
    "PanelState",
    "FailureKind",
    "IMAGE_ERROR",
    "QUOTA_ERROR",
    "VIDEO_ERROR",
    "Panel",
    "CharacterReference",
    "StoryboardConfig",
    "DescriptionConfig",
    "MediaArtSourceImage",
    "MediaArtState",
    "VisualArtConfig",
    "VisualArtState",
    "Project",
    # Parsing
    "safe_json_parse",
    "extract_descriptions",
    # Pipelines
    "StoryboardPipeline",
    "PipelineState",
    "SceneExpansion",
    "render_images_sequentially",
    "KeyframeSequencer",
    "resample_keyframes",
    "CopyWriter",
    "VisualArtGenerator",
]

"""
Creative Studio
===============

Multi-provider generative AI studio: product copy, storyboards with
per-scene images and clips, and media-art keyframe sequences.

Features:
- One facade over OpenAI, Anthropic, xAI, Mistral, Google and Replicate
- Keyword routing from model name to provider
- Storyboards rendered panel by panel with per-panel failure markers
- Abstract-to-realistic keyframe transitions from a source image
- Project storage and portable project files

Quick Start:
    from creative_studio import GenerationFacade, StoryboardPipeline, StoryboardConfig

    facade = GenerationFacade()
    pipeline = StoryboardPipeline(facade, on_update=lambda panels: print(len(panels)))
    panels = await pipeline.generate(
        "a cat exploring a neon city at night",
        StoryboardConfig(scene_count=4),
    )
"""

__version__ = "0.1.0"
__author__ = "Creative Studio"

# =============================================================================
# Core Utilities
# =============================================================================

from .core.config import Config, get_config, set_config
from .core.credentials import KeyStore
from .core.exceptions import (
    StudioError,
    ConfigurationError,
    ValidationError,
    ProviderError,
    AuthError,
    RateLimitError,
    ModelUnavailableError,
    UnsupportedCapabilityError,
    GenerationError,
    InsufficientKeyframesError,
    InvalidProjectFileError,
)

# =============================================================================
# Generation API
# =============================================================================

from .api import GenerationFacade, ModelRouter, get_provider, list_providers

# =============================================================================
# Workflows
# =============================================================================

from .workflow import (
    StoryboardPipeline,
    KeyframeSequencer,
    CopyWriter,
    VisualArtGenerator,
    StoryboardConfig,
    DescriptionConfig,
    Panel,
    Project,
)
from .utils.storage import ProjectStore
from .utils.project_io import export_project, import_project

# =============================================================================
# Public API
# =============================================================================

__all__ = [
    # Version
    "__version__",

    # Core
    "Config",
    "get_config",
    "set_config",
    "KeyStore",

    # Exceptions
    "StudioError",
    "ConfigurationError",
    "ValidationError",
    "ProviderError",
    "AuthError",
    "RateLimitError",
    "ModelUnavailableError",
    "UnsupportedCapabilityError",
    "GenerationError",
    "InsufficientKeyframesError",
    "InvalidProjectFileError",

    # Generation
    "GenerationFacade",
    "ModelRouter",
    "get_provider",
    "list_providers",

    # Workflows
    "StoryboardPipeline",
    "KeyframeSequencer",
    "CopyWriter",
    "VisualArtGenerator",
    "StoryboardConfig",
    "DescriptionConfig",
    "Panel",
    "Project",

    # Storage
    "ProjectStore",
    "export_project",
    "import_project",
]

"""
Studio Models
=============

Data models shared by the generation pipelines and project storage:
panels, run configuration, per-mode state and the project aggregate.
"""

import time
import uuid
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, List, Dict, Any, Type, TypeVar

from ..core.exceptions import ValidationError
from ..utils.media import is_data_uri

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Enum)


# =============================================================================
# Enums
# =============================================================================


class AppMode(Enum):
    """Studio working mode."""

    DESCRIPTION = "DESCRIPTION"
    STORYBOARD = "STORYBOARD"
    MEDIA_ART = "MEDIA_ART"
    VISUAL_ART = "VISUAL_ART"
    CHARACTER = "CHARACTER"


class Tone(Enum):
    PROFESSIONAL = "professional"
    FRIENDLY = "friendly"
    HUMOROUS = "humorous"
    LUXURIOUS = "luxurious"


class AspectRatio(Enum):
    LANDSCAPE = "16:9"
    PORTRAIT = "9:16"
    SQUARE = "1:1"
    VERTICAL = "3:4"
    CLASSIC = "4:3"


class VisualStyle(Enum):
    PHOTOREALISTIC = "photorealistic"
    CINEMATIC = "cinematic"
    ANIME = "anime"
    WATERCOLOR = "watercolor"
    CLAYMATION = "claymation"
    PIXEL_ART = "pixel art"


class VideoLength(Enum):
    SHORT = "short"
    MEDIUM = "medium"
    LONG = "long"


class Mood(Enum):
    FAST_PACED = "fast-paced and energetic"
    EMOTIONAL = "slow and emotional"
    MYSTERIOUS = "mysterious and suspenseful"
    COMEDIC = "comedic and lighthearted"
    EPIC = "epic and grandiose"


class MediaArtStyle(Enum):
    DATA_COMPOSITION = "data_composition"
    DIGITAL_NATURE = "digital_nature"
    AI_DATA_SCULPTURE = "ai_data_sculpture"
    LIGHT_AND_SPACE = "light_and_space"
    KINETIC_MIRRORS = "kinetic_mirrors"
    GENERATIVE_BOTANY = "generative_botany"
    QUANTUM_PHANTASM = "quantum_phantasm"
    ARCHITECTURAL_PROJECTION = "architectural_projection"


class VisualArtEffect(Enum):
    GLITCH = "glitch art"
    KALEIDOSCOPE = "kaleidoscope"
    LIQUID_CHROMATIC = "liquid chromatic aberration"
    PIXEL_SORT = "pixel sorting"
    ASCII_STORM = "ascii storm"


class PanelState(Enum):
    """Progress of a single panel's image stage."""

    PENDING = "pending"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


class FailureKind(Enum):
    """Why a panel stage failed."""

    QUOTA = "quota"
    GENERIC = "generic"


# Panel failure markers stored in place of media
IMAGE_ERROR = "error"
QUOTA_ERROR = "quota_error"
VIDEO_ERROR = "error"

DEFAULT_SCENE_DURATION = 4.0

MIN_SCENES = 2
MAX_SCENES = 10

MEDIA_ART_DEFAULT_PARAMS: Dict[MediaArtStyle, Dict[str, Any]] = {
    MediaArtStyle.DATA_COMPOSITION: {"dataDensity": 50, "glitchIntensity": 20, "colorPalette": "binary"},
    MediaArtStyle.DIGITAL_NATURE: {"particleSystem": "flowers", "interactivity": 40, "bloomEffect": 60},
    MediaArtStyle.AI_DATA_SCULPTURE: {"fluidity": 70, "colorScheme": "nebula", "complexity": 50},
    MediaArtStyle.LIGHT_AND_SPACE: {"pattern": "grids", "speed": 60, "color": "electric_blue"},
    MediaArtStyle.KINETIC_MIRRORS: {"fragmentation": 40, "motionSpeed": 50, "reflection": "prismatic"},
    MediaArtStyle.GENERATIVE_BOTANY: {"growthSpeed": 50, "plantType": "alien_flora", "density": 60},
    MediaArtStyle.QUANTUM_PHANTASM: {"particleSize": 30, "shimmerSpeed": 70, "colorPalette": "iridescent"},
    MediaArtStyle.ARCHITECTURAL_PROJECTION: {"deconstruction": 60, "lightSource": "volumetric", "texture": "holographic"},
}


def coerce_enum(enum_cls: Type[E], value: Any, default: Optional[E] = None) -> E:
    """Turn an enum member or its value into a member of ``enum_cls``."""
    if value is None:
        if default is None:
            raise ValidationError(f"{enum_cls.__name__} is required", field=enum_cls.__name__)
        return default
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise ValidationError(
            f"Unknown {enum_cls.__name__}: {value}",
            field=enum_cls.__name__,
            value=value,
        )


def clamp_scene_count(count: int) -> int:
    return max(MIN_SCENES, min(MAX_SCENES, int(count)))


# =============================================================================
# Panels
# =============================================================================


@dataclass
class Panel:
    """
    One storyboard or keyframe unit.

    ``image_url`` holds a data URI once rendered, or one of the failure
    markers. Keyframe transition panels also carry ``end_image_url``.
    """

    description: str = ""
    image_url: Optional[str] = None
    end_image_url: Optional[str] = None
    is_loading_image: bool = False
    video_url: Optional[str] = None
    is_loading_video: bool = False
    video_error: Optional[str] = None
    scene_duration: float = DEFAULT_SCENE_DURATION

    @property
    def image_state(self) -> PanelState:
        if self.is_loading_image:
            return PanelState.LOADING
        if self.image_failure is not None:
            return PanelState.FAILED
        if self.image_url:
            return PanelState.LOADED
        return PanelState.PENDING

    @property
    def image_failure(self) -> Optional[FailureKind]:
        """Failure of either frame; throttling wins over a generic error."""
        frames = (self.image_url, self.end_image_url)
        if QUOTA_ERROR in frames:
            return FailureKind.QUOTA
        if IMAGE_ERROR in frames:
            return FailureKind.GENERIC
        return None

    @property
    def has_real_image(self) -> bool:
        """Whether the panel holds rendered image bytes usable as video input."""
        return bool(self.image_url) and is_data_uri(self.image_url) and self.image_url.startswith("data:image")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "image_url": self.image_url,
            "end_image_url": self.end_image_url,
            "is_loading_image": self.is_loading_image,
            "video_url": self.video_url,
            "is_loading_video": self.is_loading_video,
            "video_error": self.video_error,
            "scene_duration": self.scene_duration,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Panel":
        return cls(
            description=data.get("description") or "",
            image_url=data.get("image_url"),
            end_image_url=data.get("end_image_url"),
            is_loading_image=bool(data.get("is_loading_image", False)),
            video_url=data.get("video_url"),
            is_loading_video=bool(data.get("is_loading_video", False)),
            video_error=data.get("video_error"),
            scene_duration=float(data.get("scene_duration") or DEFAULT_SCENE_DURATION),
        )


# =============================================================================
# Configuration Bundles
# =============================================================================


@dataclass
class CharacterReference:
    """A recurring character whose look must stay consistent across panels."""

    id: str = field(default_factory=lambda: str(uuid.uuid4())[:8])
    name: str = ""
    role: str = "protagonist"  # protagonist, supporting or extra
    physical_description: str = ""
    clothing_description: str = ""
    consistency_prompt: Optional[str] = None

    def prompt_fragment(self) -> str:
        """Text appended to image prompts featuring this character."""
        if self.consistency_prompt:
            return self.consistency_prompt
        parts = [self.name]
        if self.physical_description:
            parts.append(self.physical_description)
        if self.clothing_description:
            parts.append(f"wearing {self.clothing_description}")
        return ", ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "role": self.role,
            "physical_description": self.physical_description,
            "clothing_description": self.clothing_description,
            "consistency_prompt": self.consistency_prompt,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CharacterReference":
        return cls(
            id=data.get("id") or str(uuid.uuid4())[:8],
            name=data.get("name", ""),
            role=data.get("role", "protagonist"),
            physical_description=data.get("physical_description", ""),
            clothing_description=data.get("clothing_description", ""),
            consistency_prompt=data.get("consistency_prompt"),
        )


@dataclass
class StoryboardConfig:
    """
    Settings for one storyboard run.

    ``scene_count`` is clamped to 2-10 on construction.
    """

    scene_count: int = 4
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE
    visual_style: VisualStyle = VisualStyle.CINEMATIC
    video_length: VideoLength = VideoLength.SHORT
    mood: Mood = Mood.EPIC
    description_language: str = "English"
    text_model: str = "gemini-2.5-flash"
    image_model: str = "imagen-4.0-generate-001"
    video_model: str = "veo-2.0-generate-001"
    characters: List[CharacterReference] = field(default_factory=list)

    def __post_init__(self):
        requested = self.scene_count
        self.scene_count = clamp_scene_count(requested)
        if self.scene_count != requested:
            logger.debug(f"scene_count {requested} clamped to {self.scene_count}")

        self.aspect_ratio = coerce_enum(AspectRatio, self.aspect_ratio)
        self.visual_style = coerce_enum(VisualStyle, self.visual_style)
        self.video_length = coerce_enum(VideoLength, self.video_length)
        self.mood = coerce_enum(Mood, self.mood)
        self.characters = [
            c if isinstance(c, CharacterReference) else CharacterReference.from_dict(c)
            for c in self.characters
        ]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scene_count": self.scene_count,
            "aspect_ratio": self.aspect_ratio.value,
            "visual_style": self.visual_style.value,
            "video_length": self.video_length.value,
            "mood": self.mood.value,
            "description_language": self.description_language,
            "text_model": self.text_model,
            "image_model": self.image_model,
            "video_model": self.video_model,
            "characters": [c.to_dict() for c in self.characters],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StoryboardConfig":
        defaults = cls()
        return cls(
            scene_count=data.get("scene_count", defaults.scene_count),
            aspect_ratio=data.get("aspect_ratio", defaults.aspect_ratio),
            visual_style=data.get("visual_style", defaults.visual_style),
            video_length=data.get("video_length", defaults.video_length),
            mood=data.get("mood", defaults.mood),
            description_language=data.get("description_language", defaults.description_language),
            text_model=data.get("text_model", defaults.text_model),
            image_model=data.get("image_model", defaults.image_model),
            video_model=data.get("video_model", defaults.video_model),
            characters=list(data.get("characters") or []),
        )


@dataclass
class DescriptionConfig:
    """Inputs for product copywriting."""

    product_name: str = ""
    key_features: str = ""
    target_audience: str = ""
    tone: Tone = Tone.FRIENDLY
    language: str = "English"
    text_model: str = "gemini-2.5-flash"

    def __post_init__(self):
        self.tone = coerce_enum(Tone, self.tone)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "product_name": self.product_name,
            "key_features": self.key_features,
            "target_audience": self.target_audience,
            "tone": self.tone.value,
            "language": self.language,
            "text_model": self.text_model,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DescriptionConfig":
        defaults = cls()
        return cls(
            product_name=data.get("product_name", ""),
            key_features=data.get("key_features", ""),
            target_audience=data.get("target_audience", ""),
            tone=data.get("tone", defaults.tone),
            language=data.get("language", defaults.language),
            text_model=data.get("text_model", defaults.text_model),
        )


# =============================================================================
# Media Art And Visual Art
# =============================================================================


@dataclass
class MediaArtSourceImage:
    """Image a keyframe sequence is derived from."""

    url: str  # data URI or remote URL
    title: str = ""
    type: str = "upload"  # upload or painting
    artist: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "url": self.url, "title": self.title, "artist": self.artist}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MediaArtSourceImage":
        return cls(
            url=data.get("url", ""),
            title=data.get("title", ""),
            type=data.get("type", "upload"),
            artist=data.get("artist"),
        )


@dataclass
class MediaArtState:
    source_image: Optional[MediaArtSourceImage] = None
    style: MediaArtStyle = MediaArtStyle.DATA_COMPOSITION
    style_params: Dict[str, Any] = field(default_factory=dict)
    panels: List[Panel] = field(default_factory=list)
    config: StoryboardConfig = field(default_factory=StoryboardConfig)

    def __post_init__(self):
        self.style = coerce_enum(MediaArtStyle, self.style)
        if not self.style_params:
            self.style_params = dict(MEDIA_ART_DEFAULT_PARAMS[self.style])

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source_image": self.source_image.to_dict() if self.source_image else None,
            "style": self.style.value,
            "style_params": dict(self.style_params),
            "panels": [p.to_dict() for p in self.panels],
            "config": self.config.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MediaArtState":
        source = data.get("source_image")
        return cls(
            source_image=MediaArtSourceImage.from_dict(source) if source else None,
            style=data.get("style", MediaArtStyle.DATA_COMPOSITION),
            style_params=dict(data.get("style_params") or {}),
            panels=[Panel.from_dict(p) for p in data.get("panels") or []],
            config=StoryboardConfig.from_dict(data.get("config") or {}),
        )


@dataclass
class VisualArtConfig:
    effect: VisualArtEffect = VisualArtEffect.GLITCH
    text_model: str = "gemini-2.5-flash"
    image_model: str = "imagen-4.0-generate-001"
    video_model: str = "veo-2.0-generate-001"
    temperature: float = 0.7
    quality: str = "standard"  # standard, hd or ultra
    output_format: str = "video"  # video, image or gif
    duration: float = 5.0
    style: str = ""
    aspect_ratio: AspectRatio = AspectRatio.LANDSCAPE

    def __post_init__(self):
        self.effect = coerce_enum(VisualArtEffect, self.effect)
        self.aspect_ratio = coerce_enum(AspectRatio, self.aspect_ratio)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "effect": self.effect.value,
            "text_model": self.text_model,
            "image_model": self.image_model,
            "video_model": self.video_model,
            "temperature": self.temperature,
            "quality": self.quality,
            "output_format": self.output_format,
            "duration": self.duration,
            "style": self.style,
            "aspect_ratio": self.aspect_ratio.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VisualArtConfig":
        defaults = cls()
        return cls(**{
            key: data.get(key, getattr(defaults, key))
            for key in defaults.to_dict()
        })


@dataclass
class VisualArtState:
    input_text: str = ""
    source_image: Optional[MediaArtSourceImage] = None
    config: VisualArtConfig = field(default_factory=VisualArtConfig)
    result_video_url: Optional[str] = None
    is_loading: bool = False
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "input_text": self.input_text,
            "source_image": self.source_image.to_dict() if self.source_image else None,
            "config": self.config.to_dict(),
            "result_video_url": self.result_video_url,
            "is_loading": self.is_loading,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "VisualArtState":
        source = data.get("source_image")
        return cls(
            input_text=data.get("input_text", ""),
            source_image=MediaArtSourceImage.from_dict(source) if source else None,
            config=VisualArtConfig.from_dict(data.get("config") or {}),
            result_video_url=data.get("result_video_url"),
            is_loading=bool(data.get("is_loading", False)),
            error=data.get("error"),
        )


# =============================================================================
# Project
# =============================================================================


@dataclass
class Project:
    """
    Saved snapshot of the studio, stored and retrieved as a whole record.
    """

    id: str
    timestamp: int  # milliseconds since epoch
    mode: AppMode = AppMode.STORYBOARD
    title: str = ""
    description_config: DescriptionConfig = field(default_factory=DescriptionConfig)
    description: str = ""
    storyboard_config: StoryboardConfig = field(default_factory=StoryboardConfig)
    story_idea: str = ""
    storyboard_panels: List[Panel] = field(default_factory=list)
    media_art_state: MediaArtState = field(default_factory=MediaArtState)
    visual_art_state: VisualArtState = field(default_factory=VisualArtState)

    def __post_init__(self):
        self.mode = coerce_enum(AppMode, self.mode)

    @classmethod
    def create(cls, mode: AppMode = AppMode.STORYBOARD, **kwargs) -> "Project":
        """Create a project with a fresh id and the current timestamp."""
        return cls(
            id=str(uuid.uuid4()),
            timestamp=int(time.time() * 1000),
            mode=mode,
            **kwargs,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "mode": self.mode.value,
            "title": self.title,
            "description_config": self.description_config.to_dict(),
            "description": self.description,
            "storyboard_config": self.storyboard_config.to_dict(),
            "story_idea": self.story_idea,
            "storyboard_panels": [p.to_dict() for p in self.storyboard_panels],
            "media_art_state": self.media_art_state.to_dict(),
            "visual_art_state": self.visual_art_state.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        """Build a project, using initial state for any missing section."""
        return cls(
            id=data.get("id") or str(uuid.uuid4()),
            timestamp=int(data.get("timestamp") or time.time() * 1000),
            mode=data.get("mode", AppMode.STORYBOARD),
            title=data.get("title", ""),
            description_config=DescriptionConfig.from_dict(data.get("description_config") or {}),
            description=data.get("description", ""),
            storyboard_config=StoryboardConfig.from_dict(data.get("storyboard_config") or {}),
            story_idea=data.get("story_idea", ""),
            storyboard_panels=[Panel.from_dict(p) for p in data.get("storyboard_panels") or []],
            media_art_state=MediaArtState.from_dict(data.get("media_art_state") or {}),
            visual_art_state=VisualArtState.from_dict(data.get("visual_art_state") or {}),
        )

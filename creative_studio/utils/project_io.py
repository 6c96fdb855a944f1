"""
Project Import/Export
=====================

Portable JSON project files.

Exported files carry a ``version`` and a ``mode``. Local video files are
embedded as data URIs so a project can move between machines; on import
they are written back into the media directory.
"""

import copy
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Union

import aiofiles

from .media import get_mime_type, is_data_uri, is_remote_url, save_data_uri, to_data_uri
from ..core.exceptions import InvalidProjectFileError, StudioError
from ..workflow.models import VIDEO_ERROR, Project

logger = logging.getLogger(__name__)

PROJECT_FILE_VERSION = "1.0"

REQUIRED_FIELDS = ("version", "mode")


def _panel_dicts(data: Dict[str, Any]) -> Iterator[Dict[str, Any]]:
    yield from data.get("storyboard_panels") or []
    yield from (data.get("media_art_state") or {}).get("panels") or []


def _local_video(url: Optional[str]) -> Optional[Path]:
    if not url or url == VIDEO_ERROR or is_data_uri(url) or is_remote_url(url):
        return None
    path = Path(url).expanduser()
    return path if path.is_file() else None


async def _read_as_data_uri(path: Path) -> str:
    async with aiofiles.open(path, "rb") as f:
        return to_data_uri(await f.read(), get_mime_type(path))


async def export_project(
    project: Project,
    path: Optional[Union[str, Path]] = None,
    embed_media: bool = True,
) -> Dict[str, Any]:
    """
    Serialize a project.

    Args:
        project: Project to export
        path: Where to write the JSON file (optional)
        embed_media: Embed local video files as ``video_data`` data URIs

    Returns:
        The exported dictionary
    """
    data = project.to_dict()
    data["version"] = PROJECT_FILE_VERSION

    if embed_media:
        for panel in _panel_dicts(data):
            video = _local_video(panel.get("video_url"))
            if video:
                panel["video_data"] = await _read_as_data_uri(video)

        visual = data.get("visual_art_state") or {}
        video = _local_video(visual.get("result_video_url"))
        if video:
            visual["result_video_data"] = await _read_as_data_uri(video)

    if path:
        path = Path(path).expanduser()
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "w") as f:
            await f.write(json.dumps(data, indent=2))
        logger.info(f"Exported project {project.id} to {path}")

    return data


async def _load_source(source: Union[str, Path, Dict[str, Any]]) -> Any:
    if isinstance(source, dict):
        return source

    if isinstance(source, str) and source.lstrip().startswith(("{", "[")):
        text = source
    else:
        path = Path(source).expanduser()
        if not path.is_file():
            raise InvalidProjectFileError(reason=f"file not found: {path}")
        async with aiofiles.open(path, "r") as f:
            text = await f.read()

    try:
        return json.loads(text)
    except ValueError as e:
        raise InvalidProjectFileError(reason=f"unreadable JSON: {e}")


async def import_project(
    source: Union[str, Path, Dict[str, Any]],
    media_dir: Union[str, Path],
) -> Project:
    """
    Load a project file.

    Args:
        source: File path, JSON text, or an already parsed dictionary
        media_dir: Where embedded videos are written back to disk

    Raises:
        InvalidProjectFileError: If the file is unreadable or lacks
            ``version`` or ``mode``
    """
    data = copy.deepcopy(await _load_source(source))
    if not isinstance(data, dict):
        raise InvalidProjectFileError(reason="top level is not an object")

    missing = [name for name in REQUIRED_FIELDS if not data.get(name)]
    if missing:
        raise InvalidProjectFileError(reason=f"missing {', '.join(missing)}")

    try:
        for panel in _panel_dicts(data):
            embedded = panel.pop("video_data", None)
            if embedded:
                panel["video_url"] = await save_data_uri(embedded, media_dir)

        visual = data.get("visual_art_state") or {}
        embedded = visual.pop("result_video_data", None)
        if embedded:
            visual["result_video_url"] = await save_data_uri(embedded, media_dir)

        project = Project.from_dict(data)
    except (StudioError, TypeError, ValueError, AttributeError) as e:
        raise InvalidProjectFileError(reason=str(e))

    logger.info(f"Imported project {project.id} ({project.mode.value})")
    return project

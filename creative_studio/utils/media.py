"""
Media Utilities
===============

Helpers for moving image and video payloads between data URIs, files and
remote URLs.
"""

import base64
import binascii
import logging
import re
import uuid
from pathlib import Path
from typing import Tuple, Union

import aiofiles
import httpx

from ..core.exceptions import ValidationError

logger = logging.getLogger(__name__)

_DATA_URI_RE = re.compile(r"^data:(?P<mime>[\w.+\-]+/[\w.+\-]+)?(?P<params>(;[^;,]*)*?);base64,(?P<data>.*)$", re.DOTALL)

MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "video/quicktime": ".mov",
}


def get_mime_type(path: Union[str, Path]) -> str:
    """Get MIME type from file extension."""
    ext = Path(path).suffix.lower()
    for mime, known_ext in MIME_EXTENSIONS.items():
        if known_ext == ext:
            return mime
    if ext == ".jpeg":
        return "image/jpeg"
    return "application/octet-stream"


def is_data_uri(value: str) -> bool:
    return isinstance(value, str) and value.startswith("data:")


def is_remote_url(value: str) -> bool:
    return isinstance(value, str) and value.startswith(("http://", "https://"))


def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """
    Split a base64 data URI into its MIME type and raw bytes.

    Raises:
        ValidationError: If the value is not a base64 data URI
    """
    match = _DATA_URI_RE.match(uri or "")
    if not match:
        raise ValidationError(
            "Not a base64 data URI",
            field="data_uri",
            value=(uri or "")[:40],
        )
    mime = match.group("mime") or "application/octet-stream"
    try:
        data = base64.b64decode(match.group("data"), validate=False)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(f"Malformed base64 payload: {e}", field="data_uri")
    return mime, data


def data_uri_payload(uri: str) -> str:
    """Return the base64 part of a data URI, unchanged."""
    parse_data_uri(uri)
    return uri.split(",", 1)[1]


def to_data_uri(data: Union[bytes, str], mime_type: str = "image/jpeg") -> str:
    """
    Build a data URI.

    Args:
        data: Raw bytes, or a string that is already base64 encoded
        mime_type: MIME type of the payload
    """
    if isinstance(data, bytes):
        data = base64.b64encode(data).decode("utf-8")
    return f"data:{mime_type};base64,{data}"


def file_to_data_uri(path: Union[str, Path]) -> str:
    """Read a local file into a data URI."""
    path = Path(path)
    if not path.exists():
        raise ValidationError(f"File not found: {path}", field="path", value=str(path))
    with open(path, "rb") as f:
        return to_data_uri(f.read(), get_mime_type(path))


async def save_bytes(data: bytes, output_dir: Union[str, Path], extension: str) -> str:
    """Write bytes to a uniquely named file and return its path."""
    output_dir = Path(output_dir).expanduser()
    output_dir.mkdir(parents=True, exist_ok=True)
    output_path = output_dir / f"{uuid.uuid4().hex}{extension}"

    async with aiofiles.open(output_path, "wb") as f:
        await f.write(data)

    logger.debug(f"Saved {len(data)} bytes to {output_path}")
    return str(output_path)


async def save_data_uri(uri: str, output_dir: Union[str, Path]) -> str:
    """Materialize a data URI as a file, returning the new path."""
    mime, data = parse_data_uri(uri)
    return await save_bytes(data, output_dir, MIME_EXTENSIONS.get(mime, ".bin"))


async def fetch_as_data_uri(url: str, client: httpx.AsyncClient) -> str:
    """Download a remote resource and return it as a data URI."""
    response = await client.get(url)
    response.raise_for_status()
    mime = response.headers.get("content-type", "image/jpeg").split(";")[0].strip()
    return to_data_uri(response.content, mime or "image/jpeg")

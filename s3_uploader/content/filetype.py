"""
File type detection from content, not file names.

Used by the Codec to pick a backend for the actual image type and by the
gateway to set the object's Content-Type.
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

# Image types the pipeline knows about
JPEG = "jpeg"
PNG = "png"
GIF = "gif"
WEBP = "webp"
BMP = "bmp"
TIFF = "tiff"

IMAGE_MIME_TYPES = {
    JPEG: "image/jpeg",
    PNG: "image/png",
    GIF: "image/gif",
    WEBP: "image/webp",
    BMP: "image/bmp",
    TIFF: "image/tiff",
}

HEADER_BYTES = 16


def _image_type_from_header(head: bytes) -> Optional[str]:
    if head.startswith(b"\xff\xd8\xff"):
        return JPEG
    if head.startswith(b"\x89PNG\r\n\x1a\n"):
        return PNG
    if head[:6] in (b"GIF87a", b"GIF89a"):
        return GIF
    if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
        return WEBP
    if head.startswith(b"BM"):
        return BMP
    if head[:4] in (b"II*\x00", b"MM\x00*"):
        return TIFF
    return None


def _read_header(path: Path) -> bytes:
    with path.open("rb") as f:
        return f.read(HEADER_BYTES)


def detect_image_type(path: Path) -> Optional[str]:
    """
    Return the image type of a file by its magic bytes.

    Returns None for unreadable files and anything that is not a known
    raster image (including text files misnamed with an image extension).
    """
    try:
        head = _read_header(path)
    except OSError as e:
        logger.debug(f"Cannot read {path}: {e}")
        return None
    return _image_type_from_header(head)


def sniff_content_type(path: Path, fallback: Optional[str] = None) -> str:
    """
    Determine a file's MIME type.

    Order: content sniffing, caller-supplied fallback, extension guess,
    then application/octet-stream.
    """
    try:
        head = _read_header(path)
    except OSError:
        head = b""

    image_type = _image_type_from_header(head)
    if image_type:
        return IMAGE_MIME_TYPES[image_type]
    if head.startswith(b"%PDF-"):
        return "application/pdf"

    if fallback:
        return fallback

    guessed, _ = mimetypes.guess_type(path.name)
    return guessed or "application/octet-stream"

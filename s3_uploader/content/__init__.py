"""
Content Module — File type detection and WebP conversion.
"""

from .codec import (
    Codec,
    CodecBackend,
    ImageMagickBackend,
    PillowBackend,
    WEBP_QUALITY,
    default_backends,
)
from .filetype import detect_image_type, sniff_content_type

__all__ = [
    "Codec",
    "CodecBackend",
    "ImageMagickBackend",
    "PillowBackend",
    "WEBP_QUALITY",
    "default_backends",
    "detect_image_type",
    "sniff_content_type",
]

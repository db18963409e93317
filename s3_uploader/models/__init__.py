"""
Models — Attachment records and pipeline outcomes.
"""

from .attachment import Attachment, AttachmentMetadata, SizeVariant
from .outcome import ConversionResult, ErrorDetails, UploadOutcome

__all__ = [
    "Attachment",
    "AttachmentMetadata",
    "SizeVariant",
    "ConversionResult",
    "ErrorDetails",
    "UploadOutcome",
]

"""
Attachment Models — Pydantic schemas for host-managed media records.

The host owns these records. The pipeline only reads them and rewrites
`file` / `sizes` after conversion.
"""

from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class SizeVariant(BaseModel):
    """A derived, resized copy of an original image."""

    file: str
    width: Optional[int] = None
    height: Optional[int] = None
    mime_type: Optional[str] = None


class AttachmentMetadata(BaseModel):
    """Generated metadata for an attachment (the "draft metadata" payload)."""

    model_config = ConfigDict(extra="allow")

    # Relative storage key under the media root
    file: str
    width: Optional[int] = None
    height: Optional[int] = None
    sizes: Dict[str, SizeVariant] = Field(default_factory=dict)


class Attachment(BaseModel):
    """One uploaded media file plus its variants."""

    id: int
    file: str
    mime_type: str = "application/octet-stream"
    title: str = ""
    created_at_iso: Optional[str] = None
    metadata: Optional[AttachmentMetadata] = None

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

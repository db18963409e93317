"""
Outcome Models — Results of conversion and upload steps.

Every upload call produces an UploadOutcome, regardless of success or
failure. Outcomes are never persisted; they are logged and returned to the
caller so tests and the admin surface can inspect them.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field


@dataclass
class ConversionResult:
    """Outcome of one Codec.convert() call. Lives for one ingestion only."""

    source: Path
    path: Optional[Path] = None
    backend: Optional[str] = None
    reason: Optional[str] = None

    @property
    def converted(self) -> bool:
        return self.path is not None

    @classmethod
    def done(cls, source: Path, path: Path, backend: str) -> "ConversionResult":
        return cls(source=source, path=path, backend=backend)

    @classmethod
    def not_convertible(cls, source: Path, reason: str) -> "ConversionResult":
        return cls(source=source, reason=reason)


class ErrorDetails(BaseModel):
    """Details about an upload error."""

    code: str
    message: str


class UploadOutcome(BaseModel):
    """
    Result of a gateway upload.

    `local_removed` reports whether the local copy is gone afterwards; it is
    attempted for both ok and failed uploads.
    """

    status: Literal["ok", "skipped", "failed"]
    object_key: str
    local_path: str
    content_type: Optional[str] = None
    etag: Optional[str] = None
    local_removed: bool = False
    reason: Optional[str] = None
    ts_iso: str = Field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )
    error: Optional[ErrorDetails] = None

    @property
    def succeeded(self) -> bool:
        return self.status == "ok"

    @classmethod
    def ok(
        cls,
        object_key: str,
        local_path: Path,
        content_type: str,
        etag: Optional[str] = None,
    ) -> "UploadOutcome":
        """Create a successful outcome."""
        return cls(
            status="ok",
            object_key=object_key,
            local_path=str(local_path),
            content_type=content_type,
            etag=etag,
        )

    @classmethod
    def skipped(cls, object_key: str, local_path: Path, reason: str) -> "UploadOutcome":
        """Create a skipped outcome (nothing to upload)."""
        return cls(
            status="skipped",
            object_key=object_key,
            local_path=str(local_path),
            reason=reason,
        )

    @classmethod
    def failed(
        cls,
        object_key: str,
        local_path: Path,
        content_type: Optional[str],
        error_code: str,
        error_message: str,
    ) -> "UploadOutcome":
        """Create a failed outcome."""
        return cls(
            status="failed",
            object_key=object_key,
            local_path=str(local_path),
            content_type=content_type,
            error=ErrorDetails(code=error_code, message=error_message),
        )

"""
Errors — Exception types raised inside the ingestion pipeline.

Most of these never leave the component that raises them:

- ConversionUnsupported / ConversionBackendFailure are caught by the Codec
  and turned into a "not converted" result.
- UploadTransportFailure is caught by the gateway and recorded in the
  UploadOutcome.
- LocalFileMissing is treated as "already handled".
- CredentialsMissing stops plugin activation and is surfaced once.

## Usage

    from s3_uploader.errors import CredentialsMissing

    try:
        config.require_credentials()
    except CredentialsMissing as e:
        print(f"Not activating: {e}")
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional


class S3UploaderError(Exception):
    """Base class for all pipeline errors."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConversionUnsupported(S3UploaderError):
    """The file is not an image type any backend can convert."""

    def __init__(
        self,
        path: Path,
        image_type: Optional[str] = None,
        reason: str = "unsupported_type",
    ):
        self.path = path
        self.image_type = image_type
        self.reason = reason
        super().__init__(
            f"Cannot convert {path.name} (type={image_type or 'unknown'})",
            details={"path": str(path), "image_type": image_type, "reason": reason},
        )


class ConversionBackendFailure(S3UploaderError):
    """A backend reported an error while decoding or encoding."""

    def __init__(self, backend: str, message: str):
        self.backend = backend
        super().__init__(f"[{backend}] {message}", details={"backend": backend})


class UploadTransportFailure(S3UploaderError):
    """The put-object call failed (network or remote service error)."""

    def __init__(self, object_key: str, message: str, code: Optional[str] = None):
        self.object_key = object_key
        self.code = code
        super().__init__(
            f"Upload of {object_key} failed: {message}",
            details={"object_key": object_key, "code": code},
        )


class LocalFileMissing(S3UploaderError):
    """The local file is gone, usually because it was already uploaded."""

    def __init__(self, path: Path):
        self.path = path
        super().__init__(f"Local file not found: {path}", details={"path": str(path)})


class CredentialsMissing(S3UploaderError):
    """Object-store credentials are absent; the plugin must not activate."""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(
            f"Environment variables {' and/or '.join(missing)} are missing",
            details={"missing": missing},
        )


class ConfigurationError(S3UploaderError):
    """Raised when configuration is present but invalid."""
    pass

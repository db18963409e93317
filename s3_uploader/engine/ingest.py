"""
Ingestion Orchestrator — Convert, upload, and repoint one attachment.

Two entry points, one per host event:

- on_metadata_generated(metadata, attachment_id)   images
    1. resolve the original's local path
    2. try WebP conversion
         converted → repoint attachment at the .webp, delete original,
                     clear size variants
         otherwise → keep the original key
    3. upload whichever file is now current (local copy removed after)
    4. return the metadata for the host to persist

- on_attachment_created(attachment_id)             every attachment
    upload the file if it is still on disk; images already handled by the
    metadata path are gone by now, so this is a no-op for them.

No per-file error ever escapes to the host: failures are logged and the
host gets back whatever metadata is available. There is no rollback of
metadata changes that were already applied.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from ..content.codec import Codec
from ..errors import LocalFileMissing
from ..host.base import AttachmentHost
from ..models.attachment import AttachmentMetadata, SizeVariant
from ..models.outcome import ConversionResult, UploadOutcome
from ..storage.gateway import ObjectStoreGateway

logger = logging.getLogger(__name__)


def relative_key(path: Path, basedir: Path) -> str:
    """
    Object key for a local file: its path under the media root.

    POSIX separators, no leading slash. A path outside the media root falls
    back to plain prefix stripping.
    """
    path = Path(path)
    basedir = Path(basedir)
    try:
        return path.relative_to(basedir).as_posix()
    except ValueError:
        pass
    try:
        return path.resolve().relative_to(basedir.resolve()).as_posix()
    except ValueError:
        return path.as_posix().replace(basedir.as_posix(), "", 1).lstrip("/")


class IngestionOrchestrator:
    """Per-attachment state machine: convert → upload → repoint."""

    def __init__(
        self,
        host: AttachmentHost,
        gateway: ObjectStoreGateway,
        codec: Codec,
    ):
        self.host = host
        self.gateway = gateway
        self.codec = codec

    def _basedir(self) -> Path:
        return self.host.upload_dir().basedir

    # ── Images ───────────────────────────────────────────────────

    def on_metadata_generated(self, metadata: AttachmentMetadata, attachment_id: int) -> AttachmentMetadata:
        """Convert and upload an image; return the (possibly mutated) metadata."""
        log_extra = {"attachment_id": attachment_id}
        try:
            original = self.host.get_attached_file(attachment_id)
            attachment = self.host.get_attachment(attachment_id)
        except KeyError as e:
            logger.error(f"Cannot ingest attachment {attachment_id}: {e}", extra=log_extra)
            return metadata

        content_type = attachment.mime_type
        try:
            result = self.codec.convert(original)
            if result.converted:
                content_type = "image/webp"
                self._adopt_conversion(metadata, attachment_id, result)
        except Exception as e:
            logger.exception(f"Conversion step failed for attachment {attachment_id}: {e}", extra=log_extra)

        try:
            self.upload_relative(metadata.file, content_type, attachment_id)
        except Exception as e:
            logger.exception(f"Upload step failed for attachment {attachment_id}: {e}", extra=log_extra)

        return metadata

    def _adopt_conversion(
        self,
        metadata: AttachmentMetadata,
        attachment_id: int,
        result: ConversionResult,
    ) -> None:
        """Replace the original with the converted file in host state."""
        original = result.source
        new_key = relative_key(result.path, self._basedir())
        log_extra = {"attachment_id": attachment_id, "object_key": new_key}

        # Metadata first: the upload step reads metadata.file
        variants = list(metadata.sizes.values())
        metadata.file = new_key
        metadata.sizes = {}

        try:
            self.host.update_attached_file(attachment_id, new_key)
            logger.info(f"Attachment {attachment_id} now points at {new_key}", extra=log_extra)
        except Exception as e:
            logger.error(f"Could not repoint attachment {attachment_id} at {new_key}: {e}", extra=log_extra)

        self._discard_local(original, attachment_id)
        self._discard_size_variants(variants, original, attachment_id)

    def _discard_size_variants(self, variants: List[SizeVariant], original: Path, attachment_id: int) -> None:
        """Remove the local resized copies; none survive conversion."""
        for variant in variants:
            variant_path = original.parent / variant.file
            if variant_path != original:
                self._discard_local(variant_path, attachment_id)

    def _discard_local(self, path: Path, attachment_id: int) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(
                f"Could not remove {path}: {e}",
                extra={"attachment_id": attachment_id},
            )

    # ── Any attachment ───────────────────────────────────────────

    def on_attachment_created(self, attachment_id: int) -> Optional[UploadOutcome]:
        """Upload a plain attachment still on disk. Returns None if there was nothing to do."""
        log_extra = {"attachment_id": attachment_id}
        try:
            path = self.host.get_attached_file(attachment_id)
            if not path.exists():
                raise LocalFileMissing(path)
            attachment = self.host.get_attachment(attachment_id)
            key = relative_key(path, self._basedir())
            return self.gateway.upload(path, key, attachment.mime_type)
        except LocalFileMissing as e:
            logger.debug(f"Attachment {attachment_id} already handled: {e}", extra=log_extra)
            return None
        except Exception as e:
            logger.exception(f"Upload failed for attachment {attachment_id}: {e}", extra=log_extra)
            return None

    # ── Shared ───────────────────────────────────────────────────

    def upload_relative(
        self,
        relative: str,
        content_type: Optional[str] = None,
        attachment_id: Optional[int] = None,
    ) -> UploadOutcome:
        """Upload `<media root>/<relative>` under the key `relative`."""
        outcome = self.gateway.upload(self._basedir() / relative, relative, content_type)
        if outcome.status == "failed":
            logger.warning(
                f"Attachment {attachment_id}: {relative} not uploaded "
                f"({outcome.error.code if outcome.error else 'unknown'}), local copy "
                f"{'removed' if outcome.local_removed else 'kept'}",
                extra={"attachment_id": attachment_id, "object_key": relative},
            )
        return outcome

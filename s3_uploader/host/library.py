"""
Local Media Library — A small JSON-backed attachment host.

Stores attachment records in `attachments.json` and media files under a
single media root. Inserting an attachment fires the same lifecycle the
S3 uploader hooks into:

1. record created and persisted
2. images: size variants generated, then the
   `generate_attachment_metadata` filter runs and its result is stored
3. `add_attachment` action for every attachment

Read paths (`get_attachment_url`, `prepare_attachment_for_js`) run their
filters on every call; nothing is cached.

## Usage

    library = LocalMediaLibrary(Path("uploads"), "https://site.example/uploads", hooks)
    path = library.store_upload("photo.jpg", data)
    attachment = library.insert_attachment(path)
"""

from __future__ import annotations

import json
import logging
import mimetypes
import re
from datetime import datetime, timezone
from pathlib import Path
from threading import RLock
from typing import Any, Dict, List, Optional

from ..content.filetype import sniff_content_type
from ..models.attachment import Attachment, AttachmentMetadata, SizeVariant
from .base import AttachmentHost, UploadDir
from .hooks import (
    ADD_ATTACHMENT,
    GENERATE_ATTACHMENT_METADATA,
    GET_ATTACHMENT_URL,
    PREPARE_ATTACHMENT_FOR_JS,
    HookRegistry,
)

logger = logging.getLogger(__name__)

STORE_VERSION = 1
STORE_NAME = "attachments.json"

# name → (max width, max height, crop)
IMAGE_SIZES = {
    "thumbnail": (150, 150, True),
    "medium": (300, 300, False),
    "large": (1024, 1024, False),
}

# Raster types the library generates size variants for
RESIZABLE_MIME_TYPES = {"image/jpeg", "image/png", "image/gif", "image/webp"}

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def sanitize_filename(name: str) -> str:
    """Keep a safe basename: no directories, no spaces or odd characters."""
    base = Path(name).name.strip()
    base = _UNSAFE_CHARS.sub("-", base).strip("-.")
    return base or "upload"


class LocalMediaLibrary(AttachmentHost):
    """JSON-file attachment store with lifecycle hooks."""

    def __init__(
        self,
        basedir: Path,
        baseurl: str,
        hooks: Optional[HookRegistry] = None,
        store_path: Optional[Path] = None,
        generate_sizes: bool = True,
    ):
        self.basedir = Path(basedir)
        self.baseurl = baseurl.rstrip("/")
        self.hooks = hooks or HookRegistry()
        self.store_path = store_path or self.basedir / STORE_NAME
        self.generate_sizes = generate_sizes
        self._lock = RLock()
        self._records: Dict[int, Attachment] = {}
        self._load()

    # ── Persistence ──────────────────────────────────────────────

    def _load(self) -> None:
        if not self.store_path.exists():
            return
        try:
            data = json.loads(self.store_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Failed to load attachment store {self.store_path}: {e}")
            return

        for item in data.get("attachments", []):
            try:
                attachment = Attachment(**item)
            except Exception as e:
                logger.warning(f"Skipping malformed attachment '{item.get('id', 'unknown')}': {e}")
                continue
            self._records[attachment.id] = attachment
        logger.debug(f"Loaded {len(self._records)} attachments from {self.store_path}")

    def save(self) -> None:
        """Write the store atomically (temp file, then rename)."""
        with self._lock:
            self.store_path.parent.mkdir(parents=True, exist_ok=True)
            data = {
                "version": STORE_VERSION,
                "attachments": [a.model_dump() for a in self._records.values()],
            }
            temp_path = self.store_path.with_suffix(".tmp")
            temp_path.write_text(
                json.dumps(data, indent=2, ensure_ascii=False) + "\n",
                encoding="utf-8",
            )
            temp_path.replace(self.store_path)

    # ── AttachmentHost ───────────────────────────────────────────

    def upload_dir(self) -> UploadDir:
        return UploadDir(basedir=self.basedir, baseurl=self.baseurl)

    def get_attachment(self, attachment_id: int) -> Attachment:
        try:
            return self._records[int(attachment_id)]
        except (KeyError, ValueError):
            raise KeyError(f"Unknown attachment: {attachment_id}")

    def list_attachments(self) -> List[Attachment]:
        return sorted(self._records.values(), key=lambda a: a.id)

    def get_attached_file(self, attachment_id: int) -> Path:
        return self.basedir / self.get_attachment(attachment_id).file

    def update_attached_file(self, attachment_id: int, relative: str) -> None:
        with self._lock:
            attachment = self.get_attachment(attachment_id)
            attachment.file = relative
            guessed = mimetypes.guess_type(relative)[0] or attachment.mime_type
            attachment.mime_type = sniff_content_type(self.basedir / relative, fallback=guessed)
            self.save()

    def get_attachment_url(self, attachment_id: int) -> str:
        attachment = self.get_attachment(attachment_id)
        url = f"{self.baseurl}/{attachment.file}"
        return self.hooks.apply_filters(GET_ATTACHMENT_URL, url, attachment.id)

    # ── Metadata ─────────────────────────────────────────────────

    def get_attachment_metadata(self, attachment_id: int) -> Optional[AttachmentMetadata]:
        return self.get_attachment(attachment_id).metadata

    def update_attachment_metadata(self, attachment_id: int, metadata: AttachmentMetadata) -> None:
        with self._lock:
            self.get_attachment(attachment_id).metadata = metadata
            self.save()

    def generate_attachment_metadata(self, attachment_id: int) -> AttachmentMetadata:
        """
        Build draft metadata for an image: dimensions plus size variants.

        Variants are written next to the original, only for sizes smaller
        than the original.
        """
        attachment = self.get_attachment(attachment_id)
        metadata = AttachmentMetadata(file=attachment.file)
        if not self.generate_sizes or attachment.mime_type not in RESIZABLE_MIME_TYPES:
            return metadata

        from PIL import Image

        original = self.basedir / attachment.file
        try:
            with Image.open(original) as img:
                metadata.width, metadata.height = img.size
                for name, (max_w, max_h, crop) in IMAGE_SIZES.items():
                    variant = _make_variant(img, original, max_w, max_h, crop)
                    if variant is not None:
                        variant.mime_type = attachment.mime_type
                        metadata.sizes[name] = variant
        except OSError as e:
            logger.warning(f"Could not generate sizes for attachment {attachment_id}: {e}")

        return metadata

    # ── Client representation ────────────────────────────────────

    def prepare_attachment_for_js(self, attachment_id: int) -> Dict[str, Any]:
        """Media-picker representation, run through its filter."""
        attachment = self.get_attachment(attachment_id)
        metadata = attachment.metadata
        url = self.get_attachment_url(attachment.id)
        mime_type = attachment.mime_type
        kind, _, subtype = mime_type.partition("/")

        response: Dict[str, Any] = {
            "id": attachment.id,
            "title": attachment.title,
            "filename": Path(attachment.file).name,
            "url": url,
            "mime": mime_type,
            "type": kind,
            "subtype": subtype,
            "date": attachment.created_at_iso,
        }

        if metadata is not None and attachment.is_image:
            folder = str(Path(attachment.file).parent)
            base = self.baseurl if folder == "." else f"{self.baseurl}/{folder}"
            sizes = {
                name: {
                    "url": f"{base}/{variant.file}",
                    "width": variant.width,
                    "height": variant.height,
                }
                for name, variant in metadata.sizes.items()
            }
            sizes["full"] = {"url": url, "width": metadata.width, "height": metadata.height}
            response["sizes"] = sizes
            response["width"] = metadata.width
            response["height"] = metadata.height

        return self.hooks.apply_filters(PREPARE_ATTACHMENT_FOR_JS, response, attachment, metadata)

    # ── Lifecycle ────────────────────────────────────────────────

    def store_upload(self, filename: str, data: bytes, subdir: Optional[str] = None) -> Path:
        """
        Write uploaded bytes under the media root (YYYY/MM by default).

        Existing files are never overwritten; a numeric suffix is added.
        """
        if subdir is None:
            subdir = datetime.now(timezone.utc).strftime("%Y/%m")
        target_dir = self.basedir / subdir
        target_dir.mkdir(parents=True, exist_ok=True)

        name = sanitize_filename(filename)
        target = target_dir / name
        counter = 1
        while target.exists():
            target = target_dir / f"{Path(name).stem}-{counter}{Path(name).suffix}"
            counter += 1

        target.write_bytes(data)
        return target

    def insert_attachment(
        self,
        local_path: Path,
        mime_type: Optional[str] = None,
        title: Optional[str] = None,
    ) -> Attachment:
        """
        Register a file that already sits under the media root.

        Fires the metadata filter (images) and the add_attachment action.
        """
        local_path = Path(local_path)
        try:
            relative = local_path.resolve().relative_to(self.basedir.resolve()).as_posix()
        except ValueError:
            raise ValueError(f"{local_path} is not inside media root {self.basedir}")

        mime_type = mime_type or sniff_content_type(local_path)

        with self._lock:
            attachment_id = max(self._records, default=0) + 1
            attachment = Attachment(
                id=attachment_id,
                file=relative,
                mime_type=mime_type,
                title=title or local_path.stem,
                created_at_iso=datetime.now(timezone.utc).isoformat(),
            )
            self._records[attachment_id] = attachment
            self.save()
        logger.info(f"Inserted attachment {attachment_id}: {relative} ({mime_type})")

        if attachment.is_image:
            draft = self.generate_attachment_metadata(attachment_id)
            metadata = self.hooks.apply_filters(GENERATE_ATTACHMENT_METADATA, draft, attachment_id)
            self.update_attachment_metadata(attachment_id, metadata)

        self.hooks.do_action(ADD_ATTACHMENT, attachment_id)
        return self.get_attachment(attachment_id)


def _make_variant(img, original: Path, max_w: int, max_h: int, crop: bool) -> Optional[SizeVariant]:
    """Write one resized copy of `img` next to `original`, or None if not needed."""
    from PIL import ImageOps

    width, height = img.size
    if width <= max_w and height <= max_h:
        return None

    if crop:
        resized = ImageOps.fit(img, (max_w, max_h))
    else:
        resized = img.copy()
        resized.thumbnail((max_w, max_h))

    new_w, new_h = resized.size
    name = f"{original.stem}-{new_w}x{new_h}{original.suffix}"
    target = original.with_name(name)
    save_kwargs = {}
    if img.format:
        save_kwargs["format"] = img.format
    if img.format == "JPEG" and resized.mode not in ("RGB", "L"):
        resized = resized.convert("RGB")
    resized.save(target, **save_kwargs)
    return SizeVariant(file=name, width=new_w, height=new_h)

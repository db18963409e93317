"""
Host Interface — What the pipeline needs from the content-management host.

The orchestrator and plugin only talk to the host through this interface,
so any media library (the bundled LocalMediaLibrary, a test fake, or a
bridge to another CMS) can drive the pipeline.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from ..models.attachment import Attachment


@dataclass(frozen=True)
class UploadDir:
    """The media root on disk and the URL it is served from."""

    basedir: Path
    baseurl: str


class AttachmentHost(ABC):
    """
    Abstract attachment store.

    Implementations persist attachment records; the pipeline only reads
    them and rewrites the stored relative path.
    """

    @abstractmethod
    def upload_dir(self) -> UploadDir:
        """Media base directory and base URL."""
        pass

    @abstractmethod
    def get_attachment(self, attachment_id: int) -> Attachment:
        """Look up an attachment. Raises KeyError if unknown."""
        pass

    @abstractmethod
    def get_attached_file(self, attachment_id: int) -> Path:
        """Absolute local path of the attachment's current file."""
        pass

    @abstractmethod
    def update_attached_file(self, attachment_id: int, relative: str) -> None:
        """Point the attachment at a new relative storage key."""
        pass

    @abstractmethod
    def get_attachment_url(self, attachment_id: int) -> str:
        """Public URL of the attachment, after URL filters."""
        pass

"""
Host Module — Attachment host interface, hook registry, local media library.
"""

from .base import AttachmentHost, UploadDir
from .hooks import HookRegistry
from .library import LocalMediaLibrary

__all__ = ["AttachmentHost", "UploadDir", "HookRegistry", "LocalMediaLibrary"]

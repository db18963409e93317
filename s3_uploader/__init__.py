"""
S3 Uploader — WebP conversion and S3 offload for a media library.

Images are converted to WebP on ingest, every attachment is pushed to an
S3 bucket and removed locally, and attachment URLs are rewritten to point
at the bucket.

## Usage

    from s3_uploader import HookRegistry, LocalMediaLibrary, activate

    hooks = HookRegistry()
    library = LocalMediaLibrary(Path("uploads"), "https://site.example/uploads", hooks)
    activate(hooks, library)
"""

from .host import HookRegistry, LocalMediaLibrary
from .plugin import S3UploaderPlugin, activate

__version__ = "0.1.0"

__all__ = ["HookRegistry", "LocalMediaLibrary", "S3UploaderPlugin", "activate", "__version__"]

"""
Plugin — Wire the uploader into a host's hook registry.

Activation either registers the full pipeline or, when credentials are
missing, a single administrator notice and nothing else.

## Usage

    hooks = HookRegistry()
    library = LocalMediaLibrary(media_root, base_url, hooks)
    plugin = activate(hooks, library, plugin_dir=Path(__file__).parent)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config.loader import UploaderConfig, load_config
from .content.codec import Codec
from .engine.ingest import IngestionOrchestrator
from .engine.rewrite import UrlRewriter
from .errors import CredentialsMissing
from .host.base import AttachmentHost
from .host.hooks import (
    ADD_ATTACHMENT,
    ADMIN_NOTICES,
    GENERATE_ATTACHMENT_METADATA,
    GET_ATTACHMENT_URL,
    PREPARE_ATTACHMENT_FOR_JS,
    HookRegistry,
)
from .models.attachment import Attachment, AttachmentMetadata
from .observability.metrics import MetricsRegistry
from .storage.gateway import ObjectStoreGateway, build_s3_client

logger = logging.getLogger(__name__)

PLUGIN_NAME = "S3 Uploader WebP"

METADATA_PRIORITY = 99
URL_PRIORITY = 99
CLIENT_PRIORITY = 10
ADD_ATTACHMENT_PRIORITY = 20


class S3UploaderPlugin:
    """Translates host hook payloads into orchestrator and rewriter calls."""

    def __init__(
        self,
        host: AttachmentHost,
        orchestrator: IngestionOrchestrator,
        rewriter: UrlRewriter,
    ):
        self.host = host
        self.orchestrator = orchestrator
        self.rewriter = rewriter

    def register(self, hooks: HookRegistry) -> None:
        hooks.add_filter(GENERATE_ATTACHMENT_METADATA, self.process_and_upload, METADATA_PRIORITY)
        hooks.add_filter(GET_ATTACHMENT_URL, self.rewrite_attachment_url, URL_PRIORITY)
        hooks.add_filter(PREPARE_ATTACHMENT_FOR_JS, self.force_original_in_library, CLIENT_PRIORITY)
        hooks.add_action(ADD_ATTACHMENT, self.upload_any_attachment, ADD_ATTACHMENT_PRIORITY)
        logger.info(f"{PLUGIN_NAME} active, uploading to {self.orchestrator.gateway.bucket}")

    # ── Hook callbacks ───────────────────────────────────────────

    def process_and_upload(self, metadata: AttachmentMetadata, attachment_id: int) -> AttachmentMetadata:
        return self.orchestrator.on_metadata_generated(metadata, attachment_id)

    def rewrite_attachment_url(self, url: str, attachment_id: int) -> str:
        return self.rewriter.rewrite(url)

    def force_original_in_library(
        self,
        response: Dict[str, Any],
        attachment: Attachment,
        metadata: Optional[AttachmentMetadata],
    ) -> Dict[str, Any]:
        # Runs through the URL filter, so this is already the remote URL
        original_url = self.host.get_attachment_url(attachment.id)
        return self.rewriter.prepare_for_client(response, original_url)

    def upload_any_attachment(self, attachment_id: int) -> None:
        self.orchestrator.on_attachment_created(attachment_id)


def missing_credentials_notice(error: CredentialsMissing) -> Dict[str, str]:
    return {"level": "error", "message": f"{PLUGIN_NAME}: {error.message}."}


def activate(
    hooks: HookRegistry,
    host: AttachmentHost,
    config: Optional[UploaderConfig] = None,
    s3_client=None,
    plugin_dir: Optional[Path] = None,
    site_root: Optional[Path] = None,
    codec: Optional[Codec] = None,
    metrics: Optional[MetricsRegistry] = None,
) -> Optional[S3UploaderPlugin]:
    """
    Build the pipeline and register its hooks.

    Returns None (with one notice registered) when credentials are missing.
    The S3 client is built here once unless one is passed in.
    """
    if config is None:
        config = load_config(plugin_dir=plugin_dir, site_root=site_root)

    try:
        config.require_credentials()
    except CredentialsMissing as e:
        logger.warning(f"{PLUGIN_NAME} not activated: {e}")
        notice = missing_credentials_notice(e)

        def add_notice(notices: List[Dict[str, str]]) -> List[Dict[str, str]]:
            return notices + [notice]

        hooks.add_filter(ADMIN_NOTICES, add_notice)
        return None

    client = s3_client or build_s3_client(config)
    gateway = ObjectStoreGateway(client, config.bucket, metrics=metrics)
    codec = codec or Codec(quality=config.webp_quality, metrics=metrics)
    orchestrator = IngestionOrchestrator(host, gateway, codec)
    rewriter = UrlRewriter(host.upload_dir().baseurl, gateway.base_url)

    plugin = S3UploaderPlugin(host, orchestrator, rewriter)
    plugin.register(hooks)
    return plugin


def admin_notices(hooks: HookRegistry) -> List[Dict[str, str]]:
    """Collect every notice registered for administrators."""
    return hooks.apply_filters(ADMIN_NOTICES, [])

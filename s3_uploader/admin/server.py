"""
Local Admin Server — Flask app over a media library.

Uploads go through the same attachment lifecycle as any other insert, so
an active uploader converts, pushes and rewrites them. Intended for local
use; it has no authentication.
"""

from __future__ import annotations

import logging
import time
from typing import Optional

from flask import Flask, jsonify, request

from ..config.loader import UploaderConfig
from ..host.library import LocalMediaLibrary
from ..plugin import S3UploaderPlugin
from .routes_core import core_bp
from .routes_media import MAX_UPLOAD_BYTES, media_bp

logger = logging.getLogger(__name__)


def create_app(
    library: LocalMediaLibrary,
    plugin: Optional[S3UploaderPlugin] = None,
    config: Optional[UploaderConfig] = None,
) -> Flask:
    """Create the Flask application."""
    app = Flask(__name__)

    app.config["MEDIA_LIBRARY"] = library
    app.config["UPLOADER_PLUGIN"] = plugin
    app.config["UPLOADER_CONFIG"] = config
    # Leave room for multipart overhead above the per-file limit
    app.config["MAX_CONTENT_LENGTH"] = MAX_UPLOAD_BYTES + 1024 * 1024

    # ── Register Blueprints ───────────────────────────────────────
    app.register_blueprint(core_bp)                              # /api/health, /api/notices, /metrics
    app.register_blueprint(media_bp, url_prefix="/api/media")    # /api/media/*

    # ── Error Handlers ────────────────────────────────────────────

    @app.errorhandler(413)
    def request_entity_too_large(e):
        max_mb = app.config.get("MAX_CONTENT_LENGTH", 0) / (1024 * 1024)
        return jsonify({"error": f"File too large (max {max_mb:.0f} MB)"}), 413

    @app.errorhandler(500)
    def internal_server_error(e):
        logger.error(f"Unhandled 500 on {request.method} {request.path}: {e}")
        return jsonify({"error": f"Internal server error: {e}"}), 500

    # ── Request Logging ───────────────────────────────────────────

    @app.before_request
    def log_request_start():
        request._start_time = time.time()

    @app.after_request
    def log_request_end(response):
        duration_ms = 0
        if hasattr(request, "_start_time"):
            duration_ms = int((time.time() - request._start_time) * 1000)
        if request.path.startswith("/api/"):
            log_fn = logger.debug if request.path == "/api/health" else logger.info
            log_fn(f"{request.method} {request.path} → {response.status_code} ({duration_ms}ms)")
        return response

    logger.info(
        f"Admin server initialized (media_root={library.basedir}, "
        f"uploader={'active' if plugin is not None else 'inactive'})"
    )
    return app


def run_server(
    app: Flask,
    host: str = "127.0.0.1",
    port: int = 5050,
    debug: bool = False,
) -> None:
    """Run the admin server (blocking)."""
    url = f"http://{host}:{port}"
    print(f"  Media admin running at {url}  (Ctrl+C to stop, local use only)")
    app.run(host=host, port=port, debug=debug, use_reloader=False)

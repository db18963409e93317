"""
Admin API — Health, notices and metrics.

Blueprint: core_bp
Routes:
    GET /api/health     # Pipeline status and configuration check
    GET /api/notices    # Administrator notices (e.g. missing credentials)
    GET /metrics        # Prometheus text exposition
"""

from __future__ import annotations

import logging

from flask import Blueprint, Response, current_app, jsonify

from ..config.validator import ConfigValidator
from ..observability.metrics import metrics
from ..plugin import admin_notices

core_bp = Blueprint("core", __name__)

logger = logging.getLogger(__name__)


@core_bp.route("/api/health")
def api_health():
    plugin = current_app.config.get("UPLOADER_PLUGIN")
    config = current_app.config.get("UPLOADER_CONFIG")
    env = config.to_env_dict() if config is not None else None
    results = ConfigValidator(env=env).validate_all()
    return jsonify({
        "status": "active" if plugin is not None else "inactive",
        "bucket": plugin.orchestrator.gateway.bucket if plugin is not None else None,
        "components": {name: status.to_dict() for name, status in results.items()},
    })


@core_bp.route("/api/notices")
def api_notices():
    library = current_app.config["MEDIA_LIBRARY"]
    return jsonify({"notices": admin_notices(library.hooks)})


@core_bp.route("/metrics")
def prometheus_metrics():
    return Response(metrics.export_prometheus(), mimetype="text/plain; version=0.0.4")

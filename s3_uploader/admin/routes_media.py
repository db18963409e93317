"""
Admin API — Media library endpoints.

Blueprint: media_bp
Prefix: /api/media
Routes:
    GET    /api/media                  # List attachments (client representation)
    POST   /api/media/upload           # Upload a file and insert it as an attachment
    GET    /api/media/<id>             # Client representation of one attachment
    GET    /api/media/<id>/url         # Attachment URL (rewritten when active)
"""

from __future__ import annotations

import logging

from flask import Blueprint, current_app, jsonify, request

media_bp = Blueprint("media", __name__)

logger = logging.getLogger(__name__)

# Maximum upload size: 50 MB
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


def _library():
    return current_app.config["MEDIA_LIBRARY"]


@media_bp.route("", methods=["GET"])
def list_media():
    library = _library()
    items = [library.prepare_attachment_for_js(a.id) for a in library.list_attachments()]
    return jsonify({"attachments": items, "count": len(items)})


@media_bp.route("/<int:attachment_id>", methods=["GET"])
def get_media(attachment_id: int):
    try:
        return jsonify(_library().prepare_attachment_for_js(attachment_id))
    except KeyError:
        return jsonify({"error": f"Attachment {attachment_id} not found"}), 404


@media_bp.route("/<int:attachment_id>/url", methods=["GET"])
def get_media_url(attachment_id: int):
    try:
        url = _library().get_attachment_url(attachment_id)
    except KeyError:
        return jsonify({"error": f"Attachment {attachment_id} not found"}), 404
    return jsonify({"id": attachment_id, "url": url})


@media_bp.route("/upload", methods=["POST"])
def upload_media():
    """
    Store an uploaded file and run it through the attachment lifecycle.

    Accepts multipart/form-data:
        file: The file to upload (required)
        title: Optional attachment title
    """
    if "file" not in request.files:
        return jsonify({"error": "No file provided"}), 400

    file = request.files["file"]
    if not file.filename:
        return jsonify({"error": "Empty filename"}), 400

    file_data = file.read()
    if not file_data:
        return jsonify({"error": "Empty file"}), 400

    if len(file_data) > MAX_UPLOAD_BYTES:
        size_mb = len(file_data) / (1024 * 1024)
        max_mb = MAX_UPLOAD_BYTES / (1024 * 1024)
        return jsonify({
            "error": f"File too large: {size_mb:.1f} MB (max {max_mb:.0f} MB)"
        }), 413

    library = _library()
    path = library.store_upload(file.filename, file_data)
    attachment = library.insert_attachment(
        path,
        title=request.form.get("title") or None,
    )

    logger.info(
        f"Media uploaded: {attachment.id} ({file.filename}, {len(file_data):,} bytes)",
        extra={"attachment_id": attachment.id},
    )

    return jsonify({
        "success": True,
        **library.prepare_attachment_for_js(attachment.id),
    }), 201

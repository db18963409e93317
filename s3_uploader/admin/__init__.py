"""
Local Admin Server — HTTP surface over the media library.

Usage:
    s3-uploader serve --media-root uploads --base-url http://localhost:5050/uploads

Features:
    - Upload files into the library (converted and pushed when active)
    - Read attachment URLs and client representations
    - Administrator notices, health and Prometheus metrics
"""

from .server import create_app, run_server

__all__ = ["create_app", "run_server"]

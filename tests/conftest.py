"""
Shared fixtures for pipeline tests.

Provides a moto-backed S3 bucket, a fresh metrics registry, a media root
with an image factory, and a LocalMediaLibrary wired to a hook registry.
"""

from __future__ import annotations

from pathlib import Path

import boto3
import pytest
from moto import mock_aws

from s3_uploader.host.hooks import HookRegistry
from s3_uploader.host.library import LocalMediaLibrary
from s3_uploader.observability.metrics import MetricsRegistry
from s3_uploader.storage.gateway import ObjectStoreGateway

BUCKET = "test-media-bucket"
BASE_URL = "https://site.example/wp-content/uploads"


@pytest.fixture
def aws_env(monkeypatch):
    """Fake credentials so boto3 never reaches for real ones."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_BUCKET", BUCKET)
    monkeypatch.delenv("S3_UPLOADER_CONFIG", raising=False)


@pytest.fixture
def s3_client(aws_env):
    """boto3 S3 client against moto, with the test bucket created."""
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def registry():
    """Isolated metrics registry."""
    return MetricsRegistry()


@pytest.fixture
def gateway(s3_client, registry):
    return ObjectStoreGateway(s3_client, BUCKET, metrics=registry)


@pytest.fixture
def media_root(tmp_path: Path) -> Path:
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def make_image(media_root: Path):
    """Write a Pillow-generated image under the media root."""
    from PIL import Image

    def _make(relative: str, size=(400, 300), fmt="JPEG", mode="RGB", color=(200, 30, 30)) -> Path:
        path = media_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        Image.new(mode, size, color).save(path, format=fmt)
        return path

    return _make


@pytest.fixture
def hooks():
    return HookRegistry()


@pytest.fixture
def library(media_root: Path, hooks: HookRegistry) -> LocalMediaLibrary:
    return LocalMediaLibrary(media_root, BASE_URL, hooks)


@pytest.fixture
def bucket_keys(s3_client):
    """Callable returning the keys currently stored in the test bucket."""

    def _keys():
        resp = s3_client.list_objects_v2(Bucket=BUCKET)
        return sorted(obj["Key"] for obj in resp.get("Contents", []))

    return _keys

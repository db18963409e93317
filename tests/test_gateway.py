"""
Tests for the object-store gateway (storage/gateway.py).

Uses moto's in-memory S3 so put_object goes through a real boto3 client.
"""

from __future__ import annotations

from unittest import mock

import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from s3_uploader.config.loader import UploaderConfig
from s3_uploader.storage.gateway import (
    ObjectStoreGateway,
    bucket_base_url,
    build_s3_client,
)


class TestPublicUrl:
    def test_bucket_base_url(self):
        assert bucket_base_url("mybucket") == "https://mybucket.s3.amazonaws.com"

    def test_public_url_strips_leading_slash(self):
        gw = ObjectStoreGateway(mock.MagicMock(), "mybucket")
        assert gw.public_url("/2024/a.webp") == "https://mybucket.s3.amazonaws.com/2024/a.webp"
        assert gw.public_url("2024/a.webp") == "https://mybucket.s3.amazonaws.com/2024/a.webp"


class TestUpload:
    def test_upload_ok_removes_local(self, gateway, s3_client, media_root, registry):
        path = media_root / "2024" / "doc.pdf"
        path.parent.mkdir(parents=True)
        path.write_bytes(b"%PDF-1.4\nhello")

        outcome = gateway.upload(path, "2024/doc.pdf", "application/pdf")

        assert outcome.status == "ok"
        assert outcome.succeeded
        assert outcome.local_removed is True
        assert outcome.etag
        assert not path.exists()

        obj = s3_client.get_object(Bucket=gateway.bucket, Key="2024/doc.pdf")
        assert obj["Body"].read() == b"%PDF-1.4\nhello"
        assert obj["ContentType"] == "application/pdf"
        assert registry.counter("uploads_total").get({"status": "ok"}) == 1
        assert registry.histogram("upload_duration_seconds").count() == 1

    def test_content_type_sniffed_from_bytes(self, gateway, s3_client, make_image):
        path = make_image("2024/misnamed.jpg", fmt="PNG")

        outcome = gateway.upload(path, "2024/misnamed.jpg", "image/jpeg")

        assert outcome.content_type == "image/png"
        obj = s3_client.head_object(Bucket=gateway.bucket, Key="2024/misnamed.jpg")
        assert obj["ContentType"] == "image/png"

    def test_missing_file_is_skipped(self, gateway, media_root, bucket_keys, registry):
        outcome = gateway.upload(media_root / "gone.jpg", "gone.jpg")

        assert outcome.status == "skipped"
        assert outcome.reason == "local_file_missing"
        assert bucket_keys() == []
        assert registry.counter("uploads_total").get({"status": "skipped"}) == 1

    def test_missing_bucket_fails_but_deletes_local(self, s3_client, media_root, registry):
        gw = ObjectStoreGateway(s3_client, "no-such-bucket", metrics=registry)
        path = media_root / "a.txt"
        path.write_text("hello")

        outcome = gw.upload(path, "a.txt")

        assert outcome.status == "failed"
        assert outcome.error.code == "upload_transport_failure"
        assert outcome.local_removed is True
        assert not path.exists()
        assert registry.counter("uploads_total").get({"status": "failed"}) == 1

    def test_client_error_recorded(self, media_root, registry):
        client = mock.MagicMock()
        client.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject"
        )
        gw = ObjectStoreGateway(client, "bucket", metrics=registry)
        path = media_root / "a.bin"
        path.write_bytes(b"\x00\x01")

        outcome = gw.upload(path, "a.bin")

        assert outcome.status == "failed"
        assert "AccessDenied" in outcome.error.message
        assert not path.exists()

    def test_network_error_recorded(self, media_root, registry):
        client = mock.MagicMock()
        client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.example")
        gw = ObjectStoreGateway(client, "bucket", metrics=registry)
        path = media_root / "a.bin"
        path.write_bytes(b"\x00")

        outcome = gw.upload(path, "a.bin")

        assert outcome.status == "failed"
        assert outcome.local_removed is True

    def test_local_delete_failure_reported(self, gateway, media_root, registry):
        path = media_root / "a.txt"
        path.write_text("hello")

        with mock.patch("pathlib.Path.unlink", side_effect=PermissionError("read-only")):
            outcome = gateway.upload(path, "a.txt")

        assert outcome.status == "ok"
        assert outcome.local_removed is False
        assert path.exists()
        assert registry.counter("local_deletes_failed_total").total() == 1


class TestBuildClient:
    def test_client_uses_config(self, s3_client):
        config = UploaderConfig(
            access_key="testing",
            secret_key="testing",
            region="eu-west-1",
            connect_timeout=3,
            read_timeout=7,
        )
        client = build_s3_client(config)

        assert client.meta.region_name == "eu-west-1"
        assert client.meta.config.connect_timeout == 3
        assert client.meta.config.read_timeout == 7

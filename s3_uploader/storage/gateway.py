"""
Object Store Gateway — Push local files to the S3 bucket.

One upload is one unit of work:
1. put_object (single blocking call, no retries)
2. remove the local copy, whether or not the upload succeeded

Disk space wins over retry-ability: a failed upload still loses the local
file. Failures are logged and returned in the UploadOutcome, never raised.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config.loader import UploaderConfig
from ..content.filetype import sniff_content_type
from ..errors import UploadTransportFailure
from ..models.outcome import UploadOutcome
from ..observability.metrics import MetricsRegistry, metrics as default_metrics

try:
    from mypy_boto3_s3 import S3Client
except ImportError:
    ...

logger = logging.getLogger(__name__)


def build_s3_client(config: UploaderConfig) -> "S3Client":
    """Create the boto3 S3 client once, from loaded configuration."""
    s3_cfg = Config(
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
        retries={"max_attempts": 0, "mode": "standard"},  # no retries
    )
    return boto3.client(
        "s3",
        region_name=config.region,
        endpoint_url=config.endpoint_url,
        aws_access_key_id=config.access_key,
        aws_secret_access_key=config.secret_key,
        config=s3_cfg,
    )


def bucket_base_url(bucket: str) -> str:
    return f"https://{bucket}.s3.amazonaws.com"


class ObjectStoreGateway:
    """Wraps put-object and public-URL construction for one bucket."""

    def __init__(
        self,
        client: "S3Client",
        bucket: str,
        metrics: Optional[MetricsRegistry] = None,
    ):
        self.client = client
        self.bucket = bucket
        self.metrics = metrics or default_metrics

    @property
    def base_url(self) -> str:
        return bucket_base_url(self.bucket)

    def public_url(self, object_key: str) -> str:
        """Public URL of an object. Pure; no network call."""
        return f"{self.base_url}/{object_key.lstrip('/')}"

    def upload(
        self,
        local_path,
        object_key: str,
        content_type: Optional[str] = None,
    ) -> UploadOutcome:
        """
        Upload `local_path` as `object_key`, then delete the local file.

        A missing local file is a no-op that returns a skipped outcome.
        """
        path = Path(local_path)
        if not path.is_file():
            logger.debug(
                f"Skipping upload of {object_key}: {path} not found",
                extra={"object_key": object_key},
            )
            self.metrics.increment("uploads_total", labels={"status": "skipped"})
            return UploadOutcome.skipped(object_key, path, reason="local_file_missing")

        content_type = sniff_content_type(path, fallback=content_type)

        try:
            etag = self._put(path, object_key, content_type)
            outcome = UploadOutcome.ok(object_key, path, content_type, etag=etag)
            logger.info(
                f"Uploaded {path.name} → s3://{self.bucket}/{object_key} ({content_type})",
                extra={"object_key": object_key, "status": "ok"},
            )
        except UploadTransportFailure as e:
            logger.error(f"S3 upload error: {e}", extra={"object_key": object_key, "status": "failed"})
            outcome = UploadOutcome.failed(
                object_key, path, content_type,
                error_code="upload_transport_failure",
                error_message=e.message,
            )

        self.metrics.increment("uploads_total", labels={"status": outcome.status})
        outcome.local_removed = self._remove_local(path)
        return outcome

    def _put(self, path: Path, object_key: str, content_type: str) -> Optional[str]:
        """Single blocking put_object. Wraps transport errors."""
        started = time.monotonic()
        try:
            with path.open("rb") as body:
                resp = self.client.put_object(
                    Bucket=self.bucket,
                    Key=object_key,
                    Body=body,
                    ContentType=content_type,
                )
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code")
            raise UploadTransportFailure(object_key, str(e), code=code) from e
        except (BotoCoreError, OSError) as e:
            raise UploadTransportFailure(object_key, str(e)) from e
        finally:
            self.metrics.timing("upload_duration_seconds", time.monotonic() - started)

        etag = resp.get("ETag")
        return etag.strip('"') if isinstance(etag, str) else None

    def _remove_local(self, path: Path) -> bool:
        """Delete the local copy to free disk space. Failures are only logged."""
        try:
            path.unlink()
            return True
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.warning(f"Could not remove local file {path}: {e}")
            self.metrics.increment("local_deletes_failed_total")
            return False

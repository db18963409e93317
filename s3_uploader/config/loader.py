"""
Config Loader — Load object-store configuration from .env and environment.

Supports two modes:
1. Master JSON key: Single S3_UPLOADER_CONFIG env var with all settings
2. Individual keys: AWS_ACCESS_KEY_ID, AWS_SECRET_ACCESS_KEY, ... (fallback)

A `.env` file is looked up in the plugin directory first and, if absent
there, in the site root. Values already present in the process
environment always win over the file.

## Usage

    from s3_uploader.config.loader import load_config

    config = load_config(plugin_dir=Path(__file__).parent, site_root=root)
    if config.has_credentials():
        ...
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv

from ..errors import ConfigurationError, CredentialsMissing

logger = logging.getLogger(__name__)

MASTER_ENV_VAR = "S3_UPLOADER_CONFIG"

DEFAULT_REGION = "us-east-1"
DEFAULT_BUCKET = "backend-audiorama-media"
DEFAULT_WEBP_QUALITY = 80
DEFAULT_CONNECT_TIMEOUT = 10
DEFAULT_READ_TIMEOUT = 60


@dataclass(frozen=True)
class UploaderConfig:
    """Everything needed to build the object-store client and codec."""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = DEFAULT_REGION
    bucket: str = DEFAULT_BUCKET
    endpoint_url: Optional[str] = None
    webp_quality: int = DEFAULT_WEBP_QUALITY
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    read_timeout: int = DEFAULT_READ_TIMEOUT

    def has_credentials(self) -> bool:
        return bool(self.access_key) and bool(self.secret_key)

    def missing_credentials(self) -> List[str]:
        missing = []
        if not self.access_key:
            missing.append("AWS_ACCESS_KEY_ID")
        if not self.secret_key:
            missing.append("AWS_SECRET_ACCESS_KEY")
        return missing

    def require_credentials(self) -> None:
        """Raise CredentialsMissing if either key is absent."""
        missing = self.missing_credentials()
        if missing:
            raise CredentialsMissing(missing)

    def to_env_dict(self) -> Dict[str, str]:
        """Convert to environment variable format (unset values omitted)."""
        mapping = {
            "AWS_ACCESS_KEY_ID": self.access_key,
            "AWS_SECRET_ACCESS_KEY": self.secret_key,
            "AWS_REGION": self.region,
            "AWS_BUCKET": self.bucket,
            "AWS_ENDPOINT_URL": self.endpoint_url,
            "WEBP_QUALITY": str(self.webp_quality),
        }
        return {k: v for k, v in mapping.items() if v}


def load_env_file(plugin_dir: Optional[Path] = None, site_root: Optional[Path] = None) -> Optional[Path]:
    """
    Load the first `.env` found: plugin directory, then site root.

    Returns the path that was loaded, or None.
    """
    for directory in (plugin_dir, site_root):
        if directory is None:
            continue
        env_file = Path(directory) / ".env"
        if env_file.exists():
            load_dotenv(env_file, override=False)
            logger.debug(f"Loaded environment from {env_file}")
            return env_file
    return None


def load_config(
    plugin_dir: Optional[Path] = None,
    site_root: Optional[Path] = None,
) -> UploaderConfig:
    """
    Load configuration from .env, master key and individual env vars.

    Priority:
    1. S3_UPLOADER_CONFIG (master JSON)
    2. Individual environment variables
    3. Defaults (region, bucket, quality, timeouts)
    """
    load_env_file(plugin_dir, site_root)

    config = UploaderConfig()

    master_config = os.environ.get(MASTER_ENV_VAR)
    if master_config:
        try:
            config = _parse_master_config(json.loads(master_config))
            logger.info(f"Loaded configuration from {MASTER_ENV_VAR}")
        except json.JSONDecodeError as e:
            logger.error(f"Invalid {MASTER_ENV_VAR} JSON: {e}")
        except ConfigurationError as e:
            logger.error(f"Failed to parse {MASTER_ENV_VAR}: {e}")

    return _load_individual_vars(config)


def _parse_master_config(data: Dict[str, Any]) -> UploaderConfig:
    """Parse master config JSON. Accepts snake_case or env-style keys."""
    if not isinstance(data, dict):
        raise ConfigurationError(f"{MASTER_ENV_VAR} must be a JSON object")

    def pick(name: str, env_name: str) -> Optional[Any]:
        return data.get(name) or data.get(env_name)

    return UploaderConfig(
        access_key=pick("access_key", "AWS_ACCESS_KEY_ID"),
        secret_key=pick("secret_key", "AWS_SECRET_ACCESS_KEY"),
        region=pick("region", "AWS_REGION") or DEFAULT_REGION,
        bucket=pick("bucket", "AWS_BUCKET") or DEFAULT_BUCKET,
        endpoint_url=pick("endpoint_url", "AWS_ENDPOINT_URL"),
        webp_quality=_as_int(pick("webp_quality", "WEBP_QUALITY"), DEFAULT_WEBP_QUALITY, "webp_quality"),
    )


def _load_individual_vars(existing: UploaderConfig) -> UploaderConfig:
    """Fill values the master config left unset from individual env vars."""
    env = os.environ
    return replace(
        existing,
        access_key=existing.access_key or env.get("AWS_ACCESS_KEY_ID") or None,
        secret_key=existing.secret_key or env.get("AWS_SECRET_ACCESS_KEY") or None,
        region=(
            existing.region if existing.region != DEFAULT_REGION
            else env.get("AWS_REGION") or DEFAULT_REGION
        ),
        bucket=(
            existing.bucket if existing.bucket != DEFAULT_BUCKET
            else env.get("AWS_BUCKET") or DEFAULT_BUCKET
        ),
        endpoint_url=existing.endpoint_url or env.get("AWS_ENDPOINT_URL") or None,
        webp_quality=(
            existing.webp_quality if existing.webp_quality != DEFAULT_WEBP_QUALITY
            else _as_int(env.get("WEBP_QUALITY"), DEFAULT_WEBP_QUALITY, "WEBP_QUALITY")
        ),
        connect_timeout=_as_int(env.get("S3_CONNECT_TIMEOUT"), existing.connect_timeout, "S3_CONNECT_TIMEOUT"),
        read_timeout=_as_int(env.get("S3_READ_TIMEOUT"), existing.read_timeout, "S3_READ_TIMEOUT"),
    )


def _as_int(value: Optional[Any], default: int, name: str) -> int:
    if value in (None, ""):
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring non-integer {name}={value!r}, using {default}")
        return default


def generate_master_config_template() -> str:
    """Generate a template for S3_UPLOADER_CONFIG."""
    template = {
        "access_key": "AKIAxxxxx",
        "secret_key": "xxxxx",
        "region": DEFAULT_REGION,
        "bucket": DEFAULT_BUCKET,
        "webp_quality": DEFAULT_WEBP_QUALITY,
    }
    return json.dumps(template, indent=2)

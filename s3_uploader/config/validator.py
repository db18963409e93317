"""
Configuration Validator — Check object-store and codec configuration.

Validates that required environment variables are present and reports
which image backends are usable on this host, before the plugin is
activated.

## Usage

    from s3_uploader.config.validator import ConfigValidator

    validator = ConfigValidator()
    for name, status in validator.validate_all().items():
        if not status.configured:
            print(f"{name}: Missing {status.missing}")
            print(f"  → {status.guidance}")
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

logger = logging.getLogger(__name__)


@dataclass
class ConfigStatus:
    """Status of a configuration check."""

    component: str
    configured: bool
    missing: List[str] = field(default_factory=list)
    present: List[str] = field(default_factory=list)
    guidance: Optional[str] = None
    mode: str = "unknown"  # "enabled", "disabled"

    def to_dict(self) -> Dict:
        """Convert to dictionary for logging."""
        return {
            "component": self.component,
            "configured": self.configured,
            "mode": self.mode,
            "missing": self.missing,
            "present": self.present,
            "guidance": self.guidance,
        }


COMPONENT_REQUIREMENTS = {
    "s3": {
        "required": ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"],
        "optional": ["AWS_REGION", "AWS_BUCKET", "AWS_ENDPOINT_URL"],
        "guidance": (
            "Set AWS_ACCESS_KEY_ID and AWS_SECRET_ACCESS_KEY in .env "
            "(plugin folder or site root) or in S3_UPLOADER_CONFIG"
        ),
    },
    "codec": {
        "required": [],
        "optional": ["WEBP_QUALITY"],
        "guidance": "Install Pillow with WebP support, or ImageMagick (magick/convert on PATH)",
    },
}


class ConfigValidator:
    """
    Validate object-store and codec configuration.

    Checks environment variables and provides guidance for missing config.
    """

    def __init__(self, env: Optional[Dict[str, str]] = None):
        self.requirements = COMPONENT_REQUIREMENTS
        self._env = env

    def _get(self, var: str) -> Optional[str]:
        env = self._env if self._env is not None else os.environ
        return env.get(var)

    def validate_component(self, name: str) -> ConfigStatus:
        """Check whether one component is properly configured."""
        if name not in self.requirements:
            return ConfigStatus(
                component=name,
                configured=False,
                mode="unknown",
                guidance=f"Unknown component: {name}",
            )

        reqs = self.requirements[name]
        missing = [var for var in reqs["required"] if not self._get(var)]
        present = [
            var for var in reqs["required"] + reqs["optional"] if self._get(var)
        ]

        if name == "codec":
            return self._validate_codec(present, reqs["guidance"])

        if missing:
            return ConfigStatus(
                component=name,
                configured=False,
                missing=missing,
                present=present,
                mode="disabled",
                guidance=reqs["guidance"],
            )

        return ConfigStatus(component=name, configured=True, present=present, mode="enabled")

    def _validate_codec(self, present: List[str], guidance: str) -> ConfigStatus:
        from ..content.codec import default_backends

        available = [b.name for b in default_backends() if b.is_available()]
        if not available:
            return ConfigStatus(
                component="codec",
                configured=False,
                present=present,
                mode="disabled",
                guidance=guidance,
            )
        return ConfigStatus(
            component="codec",
            configured=True,
            present=present + [f"backend:{name}" for name in available],
            mode="enabled",
        )

    def validate_all(self) -> Dict[str, ConfigStatus]:
        """Validate all known components."""
        return {name: self.validate_component(name) for name in self.requirements}

    def log_status(self) -> None:
        """Log configuration status for all components."""
        for name, status in self.validate_all().items():
            if status.configured:
                logger.info(f"✓ {name}: configured ({status.mode})")
            else:
                logger.warning(
                    f"✗ {name}: not configured"
                    + (f" (missing: {', '.join(status.missing)})" if status.missing else "")
                )

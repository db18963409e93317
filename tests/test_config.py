"""
Tests for configuration loading and validation (config/).
"""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest

from s3_uploader.config.loader import (
    DEFAULT_BUCKET,
    DEFAULT_REGION,
    MASTER_ENV_VAR,
    UploaderConfig,
    generate_master_config_template,
    load_config,
    load_env_file,
)
from s3_uploader.config.validator import ConfigStatus, ConfigValidator
from s3_uploader.errors import CredentialsMissing

CONFIG_VARS = (
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_REGION",
    "AWS_BUCKET",
    "AWS_ENDPOINT_URL",
    "WEBP_QUALITY",
    "S3_CONNECT_TIMEOUT",
    "S3_READ_TIMEOUT",
    MASTER_ENV_VAR,
)


@pytest.fixture
def clean_env(monkeypatch):
    # patch.dict also undoes whatever load_dotenv writes
    with patch.dict(os.environ):
        for var in CONFIG_VARS:
            monkeypatch.delenv(var, raising=False)
        yield monkeypatch


class TestUploaderConfig:
    def test_defaults(self):
        config = UploaderConfig()
        assert config.region == "us-east-1"
        assert config.bucket == "backend-audiorama-media"
        assert config.webp_quality == 80
        assert not config.has_credentials()

    def test_missing_credentials(self):
        assert UploaderConfig(access_key="a").missing_credentials() == ["AWS_SECRET_ACCESS_KEY"]
        with pytest.raises(CredentialsMissing) as exc:
            UploaderConfig().require_credentials()
        assert exc.value.missing == ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"]
        assert "and/or" in str(exc.value)

    def test_to_env_dict_omits_unset(self):
        env = UploaderConfig(access_key="a", secret_key="b").to_env_dict()
        assert env["AWS_ACCESS_KEY_ID"] == "a"
        assert "AWS_ENDPOINT_URL" not in env


class TestLoadConfig:
    def test_defaults_without_env(self, clean_env):
        config = load_config()
        assert config.access_key is None
        assert config.region == DEFAULT_REGION
        assert config.bucket == DEFAULT_BUCKET

    def test_individual_vars(self, clean_env):
        clean_env.setenv("AWS_ACCESS_KEY_ID", "key")
        clean_env.setenv("AWS_SECRET_ACCESS_KEY", "secret")
        clean_env.setenv("AWS_REGION", "eu-central-1")
        clean_env.setenv("AWS_BUCKET", "media")
        clean_env.setenv("WEBP_QUALITY", "70")
        clean_env.setenv("S3_READ_TIMEOUT", "5")

        config = load_config()

        assert config.has_credentials()
        assert config.region == "eu-central-1"
        assert config.bucket == "media"
        assert config.webp_quality == 70
        assert config.read_timeout == 5

    def test_bad_integer_falls_back(self, clean_env):
        clean_env.setenv("WEBP_QUALITY", "high")
        assert load_config().webp_quality == 80

    def test_master_config(self, clean_env):
        clean_env.setenv(MASTER_ENV_VAR, json.dumps({
            "access_key": "mk",
            "secret_key": "ms",
            "bucket": "from-master",
        }))
        clean_env.setenv("AWS_BUCKET", "from-env")

        config = load_config()

        assert config.access_key == "mk"
        assert config.bucket == "from-master"

    def test_master_config_gaps_filled_from_env(self, clean_env):
        clean_env.setenv(MASTER_ENV_VAR, json.dumps({"AWS_ACCESS_KEY_ID": "mk"}))
        clean_env.setenv("AWS_SECRET_ACCESS_KEY", "env-secret")

        config = load_config()

        assert config.access_key == "mk"
        assert config.secret_key == "env-secret"

    def test_invalid_master_json_ignored(self, clean_env):
        clean_env.setenv(MASTER_ENV_VAR, "{not json")
        clean_env.setenv("AWS_ACCESS_KEY_ID", "key")
        assert load_config().access_key == "key"

    def test_template_is_valid_json(self):
        data = json.loads(generate_master_config_template())
        assert data["bucket"] == DEFAULT_BUCKET


class TestEnvFile:
    def test_plugin_dir_wins_over_site_root(self, clean_env, tmp_path):
        plugin_dir = tmp_path / "plugin"
        site_root = tmp_path / "site"
        plugin_dir.mkdir()
        site_root.mkdir()
        (plugin_dir / ".env").write_text("AWS_BUCKET=plugin-bucket\n")
        (site_root / ".env").write_text("AWS_BUCKET=site-bucket\n")

        loaded = load_env_file(plugin_dir, site_root)

        assert loaded == plugin_dir / ".env"
        assert load_config().bucket == "plugin-bucket"

    def test_site_root_used_when_plugin_has_none(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("AWS_REGION=ap-south-1\n")

        config = load_config(plugin_dir=tmp_path / "missing", site_root=tmp_path)

        assert config.region == "ap-south-1"

    def test_process_env_wins(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text("AWS_BUCKET=file-bucket\n")
        clean_env.setenv("AWS_BUCKET", "env-bucket")

        assert load_config(site_root=tmp_path).bucket == "env-bucket"

    def test_no_env_file(self, tmp_path):
        assert load_env_file(tmp_path / "a", tmp_path / "b") is None


class TestConfigValidator:
    def test_s3_missing(self):
        status = ConfigValidator(env={}).validate_component("s3")
        assert status.configured is False
        assert status.missing == ["AWS_ACCESS_KEY_ID", "AWS_SECRET_ACCESS_KEY"]
        assert status.guidance

    def test_s3_configured(self):
        env = {"AWS_ACCESS_KEY_ID": "a", "AWS_SECRET_ACCESS_KEY": "b", "AWS_BUCKET": "x"}
        status = ConfigValidator(env=env).validate_component("s3")
        assert status.configured is True
        assert "AWS_BUCKET" in status.present

    def test_codec_reports_backends(self):
        with patch("s3_uploader.content.codec.PillowBackend.is_available", return_value=True), \
             patch("s3_uploader.content.codec.ImageMagickBackend.is_available", return_value=False):
            status = ConfigValidator(env={}).validate_component("codec")
        assert status.configured is True
        assert "backend:pillow" in status.present

    def test_codec_without_backends(self):
        with patch("s3_uploader.content.codec.PillowBackend.is_available", return_value=False), \
             patch("s3_uploader.content.codec.ImageMagickBackend.is_available", return_value=False):
            status = ConfigValidator(env={}).validate_component("codec")
        assert status.configured is False
        assert status.mode == "disabled"

    def test_unknown_component(self):
        assert ConfigValidator(env={}).validate_component("ftp").mode == "unknown"

    def test_status_to_dict(self):
        status = ConfigStatus(component="s3", configured=False, missing=["AWS_ACCESS_KEY_ID"], mode="disabled")
        data = status.to_dict()
        assert data["component"] == "s3"
        assert data["missing"] == ["AWS_ACCESS_KEY_ID"]

"""
S3 Uploader — CLI Entry Point

Usage:
    s3-uploader check-config
    s3-uploader generate-config [--output FILE]
    s3-uploader ingest PATH [--mime-type TYPE]
    s3-uploader rewrite-url URL
    s3-uploader serve [--port N]
"""

from __future__ import annotations

# Load .env from the working directory FIRST, before anything reads env vars
from pathlib import Path
from dotenv import load_dotenv

_env_file = Path.cwd() / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

import click

from .cli.config import check_config, generate_config
from .cli.media import ingest, rewrite_url, serve
from .logging_config import setup_logging

DEFAULT_MEDIA_ROOT = "uploads"
DEFAULT_BASE_URL = "http://127.0.0.1:5050/uploads"


@click.group()
@click.option(
    "--media-root",
    envvar="MEDIA_ROOT",
    default=DEFAULT_MEDIA_ROOT,
    type=click.Path(file_okay=False, path_type=Path),
    help="Local media root (attachments.json lives here)",
)
@click.option(
    "--base-url",
    envvar="MEDIA_BASE_URL",
    default=DEFAULT_BASE_URL,
    help="Public URL of the media root",
)
@click.option("--log-level", envvar="LOG_LEVEL", default=None, help="DEBUG, INFO, WARNING, ...")
@click.pass_context
def cli(ctx: click.Context, media_root: Path, base_url: str, log_level: str) -> None:
    """S3 Uploader — WebP conversion and S3 offload for a media library."""
    setup_logging(level=log_level)
    ctx.ensure_object(dict)
    ctx.obj["root"] = Path.cwd()
    ctx.obj["media_root"] = media_root
    ctx.obj["base_url"] = base_url


cli.add_command(check_config)
cli.add_command(generate_config)
cli.add_command(ingest)
cli.add_command(rewrite_url)
cli.add_command(serve)


if __name__ == "__main__":
    cli()

"""
CLI media commands — run files through the pipeline by hand.

Usage:
    s3-uploader ingest PATH [--mime-type TYPE] [--title TITLE]
    s3-uploader rewrite-url URL
    s3-uploader serve [--host HOST] [--port PORT]
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click

from ..host.hooks import HookRegistry
from ..host.library import LocalMediaLibrary


def build_library(ctx: click.Context):
    """Library wired to an activated plugin (or None when credentials are missing)."""
    from ..config.loader import load_config
    from ..plugin import activate

    media_root: Path = ctx.obj["media_root"]
    config = load_config(plugin_dir=ctx.obj["root"], site_root=media_root.parent)

    hooks = HookRegistry()
    library = LocalMediaLibrary(media_root, ctx.obj["base_url"], hooks)
    plugin = activate(hooks, library, config=config)
    return library, plugin, config


@click.command("ingest")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option("--mime-type", default=None, help="Override the detected MIME type")
@click.option("--title", default=None, help="Attachment title (default: file stem)")
@click.pass_context
def ingest(ctx: click.Context, path: Path, mime_type: Optional[str], title: Optional[str]) -> None:
    """
    Insert one file as an attachment and print the result.

    Files outside the media root are copied in first (under YYYY/MM).
    """
    library, plugin, _ = build_library(ctx)
    if plugin is None:
        click.secho("⚠️  Uploader inactive: credentials missing, file stays local", fg="yellow")

    media_root = library.basedir.resolve()
    if media_root not in path.resolve().parents:
        path = library.store_upload(path.name, path.read_bytes())

    attachment = library.insert_attachment(path, mime_type=mime_type, title=title)
    local = library.get_attached_file(attachment.id)

    click.echo(json.dumps(library.prepare_attachment_for_js(attachment.id), indent=2))
    click.echo(f"\nlocal copy: {'kept' if local.exists() else 'removed'} ({local})")


@click.command("rewrite-url")
@click.argument("url")
@click.pass_context
def rewrite_url(ctx: click.Context, url: str) -> None:
    """Show what a local attachment URL becomes. No credentials needed."""
    from ..config.loader import load_config
    from ..engine.rewrite import UrlRewriter
    from ..storage.gateway import bucket_base_url

    config = load_config(plugin_dir=ctx.obj["root"], site_root=ctx.obj["media_root"].parent)
    rewriter = UrlRewriter(ctx.obj["base_url"], bucket_base_url(config.bucket))
    click.echo(rewriter.rewrite(url))


@click.command("serve")
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", type=int, default=5050, help="Port (default: 5050)")
@click.option("--debug", is_flag=True, help="Enable Flask debug mode")
@click.pass_context
def serve(ctx: click.Context, host: str, port: int, debug: bool) -> None:
    """Run the local media admin server."""
    from ..admin.server import create_app, run_server

    library, plugin, config = build_library(ctx)
    if plugin is None:
        click.secho("⚠️  Uploader inactive: see /api/notices", fg="yellow", err=True)

    app = create_app(library, plugin, config)
    try:
        run_server(app, host=host, port=port, debug=debug)
    except OSError as e:
        click.secho(f"❌ Could not start server: {e}", fg="red", err=True)
        sys.exit(1)

"""
CLI config commands — object-store configuration checking and generation.

Usage:
    s3-uploader check-config
    s3-uploader generate-config [--output FILE]
"""

from __future__ import annotations

import sys

import click


@click.command("check-config")
@click.pass_context
def check_config(ctx: click.Context) -> None:
    """Check object-store credentials and WebP backends."""
    from ..config.loader import load_config
    from ..config.validator import ConfigValidator

    config = load_config(plugin_dir=ctx.obj["root"], site_root=ctx.obj["media_root"].parent)
    results = ConfigValidator(env=config.to_env_dict()).validate_all()

    click.echo("\n📋 S3 Uploader Configuration Status\n")

    not_configured = []
    for name, status in sorted(results.items()):
        if status.configured:
            click.secho(f"  ✓ {name}", fg="green", nl=False)
            click.echo(f" — {', '.join(status.present) or status.mode}")
        else:
            not_configured.append((name, status))
            click.secho(f"  ✗ {name}", fg="red", nl=False)
            if status.missing:
                click.echo(f" — missing: {', '.join(status.missing)}")
            else:
                click.echo(" — not configured")

    click.echo()
    click.echo(f"  bucket: {config.bucket}  region: {config.region}")

    if not_configured:
        click.echo("\n📖 Setup Guide:\n")
        for name, status in not_configured:
            if status.guidance:
                click.echo(f"  {name}:")
                click.echo(f"    → {status.guidance}")
        sys.exit(1)


@click.command("generate-config")
@click.option("--output", "-o", help="Output file (default: stdout)")
def generate_config(output: str) -> None:
    """
    Generate an S3_UPLOADER_CONFIG template.

    One JSON value that carries every setting, as an alternative to the
    individual AWS_* variables.
    """
    from ..config.loader import MASTER_ENV_VAR, generate_master_config_template

    template = generate_master_config_template()

    if output:
        with open(output, "w") as f:
            f.write(template + "\n")
        click.secho(f"✅ Template written to {output}", fg="green")
        click.echo(f"Fill in the credentials and export it as {MASTER_ENV_VAR}.")
    else:
        click.echo(template)

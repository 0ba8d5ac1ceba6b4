"""
terrable — CLI entrypoint.

Usage:
    terrable use -t 1.5.0
    terrable use -t 1.5.0 --force --hash <sha256>
    terrable list
    terrable current
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING

import click

from terrable import __version__
from terrable.core.errors import TerrableError
from terrable.core.models.settings import Settings
from terrable.core.models.target import SUPPORTED_ARCHES, SUPPORTED_PLATFORMS
from terrable.core.observability.logging_config import DEFAULT_LEVEL, setup_logging

if TYPE_CHECKING:
    from terrable.core.services.cache_store import CacheStore


@click.group()
@click.version_option(version=__version__, prog_name="terrable")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose (debug) logging.")
@click.option("--quiet", "-q", is_flag=True, help="Only log warnings and errors.")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Path to a terrable YAML config (default: $TERRABLE_CONFIG or ~/.terrable.yml).",
)
@click.option(
    "--root",
    type=click.Path(file_okay=False),
    default=None,
    help="terrable home directory (default: ~/terrable).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    config_path: str | None,
    root: str | None,
) -> None:
    """terrable — download, verify and switch terraform versions."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = Path(config_path) if config_path else None
    ctx.obj["root"] = Path(root) if root else None

    # ── Logging setup (once, at process start) ──────────────────
    if verbose:
        level = "DEBUG"
    elif quiet:
        level = "WARNING"
    else:
        level = os.environ.get("TERRABLE_LOG_LEVEL", DEFAULT_LEVEL)

    setup_logging(
        level=level,
        log_file=os.environ.get("TERRABLE_LOG_FILE"),
        log_file_level=os.environ.get("TERRABLE_LOG_FILE_LEVEL"),
    )


def _load_settings(ctx: click.Context) -> Settings:
    """Resolve settings from --config/--root, exiting 1 on a bad config."""
    from terrable.core.config.loader import load_settings

    try:
        return load_settings(ctx.obj.get("config_path"), root=ctx.obj.get("root"))
    except TerrableError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)


def _store(settings: Settings) -> CacheStore:
    from terrable.core.services.cache_store import CacheStore

    return CacheStore(settings.root)


# ── Use ─────────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--target", "-t", "version",
    required=True,
    help="The target version of terraform you want to swap to.",
)
@click.option(
    "--force", "-f",
    is_flag=True,
    help="Fetch the version from the web even if it exists in the cache.",
)
@click.option(
    "--hash", "-h", "expected_hash",
    default=None,
    help="SHA-256 the downloaded archive must match.",
)
@click.option(
    "--platform", "platform_name",
    type=click.Choice(SUPPORTED_PLATFORMS),
    default=None,
    help="Override the detected operating system.",
)
@click.option(
    "--arch",
    type=click.Choice(SUPPORTED_ARCHES),
    default=None,
    help="Override the detected CPU architecture.",
)
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def use(
    ctx: click.Context,
    version: str,
    force: bool,
    expected_hash: str | None,
    platform_name: str | None,
    arch: str | None,
    as_json: bool,
) -> None:
    """Make VERSION the active terraform, downloading it if needed.

    Examples:

        terrable use -t 1.5.0

        terrable use -t 1.5.0 --force

        terrable use -t 1.5.0 --hash ad0c696c870c8525357b5127680cd79c0bdf58179af9acd091d43b1d6482da4a
    """
    from terrable.core.host import detect_host
    from terrable.core.use_cases.acquire import AcquireRequest, acquire_and_activate

    settings = _load_settings(ctx)

    try:
        platform_name, arch = detect_host(platform_name, arch)
    except TerrableError as e:
        if as_json:
            click.echo(json.dumps({"ok": False, **e.to_dict()}, indent=2))
        else:
            click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    request = AcquireRequest(
        version=version,
        platform=platform_name,
        arch=arch,
        force=force,
        expected_hash=expected_hash,
    )
    result = acquire_and_activate(request, settings=settings)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if not result.ok:
        click.secho(f"❌ Could not activate {settings.product} {version}", fg="red", err=True)
        sys.exit(1)

    origin = "from cache" if result.source == "cache" else "downloaded"
    click.secho(f"✅ {settings.product} {version} is active ({origin})", fg="green")
    click.echo(f"   → {result.active_path}")


# ── List / current ──────────────────────────────────────────────


@cli.command("list")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def list_versions(ctx: click.Context, as_json: bool) -> None:
    """List cached versions."""
    from terrable.core.persistence.active_state import active_state_path, load_active

    settings = _load_settings(ctx)
    store = _store(settings)
    versions = store.list_versions(settings.product)
    record = load_active(active_state_path(settings.root))
    active = record.version if record else None

    if as_json:
        click.echo(json.dumps({"versions": versions, "active": active}, indent=2))
        return

    if not versions:
        click.echo("No cached versions.")
        click.secho("   💡 Fetch one: terrable use -t <version>", fg="yellow")
        return

    click.secho(f"📦 Cached versions ({len(versions)}):", fg="cyan", bold=True)
    for v in versions:
        if v == active:
            click.secho(f"   * {v}", fg="green", nl=False)
            click.echo("  (active)")
        else:
            click.echo(f"     {v}")


@cli.command()
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def current(ctx: click.Context, as_json: bool) -> None:
    """Show the active version."""
    from terrable.core.persistence.active_state import active_state_path, load_active

    settings = _load_settings(ctx)
    record = load_active(active_state_path(settings.root))

    if as_json:
        click.echo(json.dumps(record.model_dump(mode="json") if record else {"active": None}, indent=2))
        sys.exit(0 if record else 1)

    if record is None:
        click.secho("No active version recorded.", fg="yellow")
        sys.exit(1)

    click.secho(f"{settings.product} {record.version}", fg="green", bold=True)
    click.echo(f"   Platform:  {record.platform}/{record.arch}")
    click.echo(f"   Activated: {record.activated_at} ({record.source or '?'})")
    if record.sha256:
        click.echo(f"   SHA-256:   {record.sha256}")


# ── Housekeeping ────────────────────────────────────────────────


@cli.command()
@click.argument("version")
@click.pass_context
def remove(ctx: click.Context, version: str) -> None:
    """Delete VERSION from the cache (the active binary is kept)."""
    settings = _load_settings(ctx)
    try:
        removed = _store(settings).remove(settings.product, version)
    except TerrableError as e:
        click.secho(f"❌ {e}", fg="red", err=True)
        sys.exit(1)

    if not removed:
        click.secho(f"❌ Version {version} is not cached", fg="red", err=True)
        sys.exit(1)
    click.secho(f"🗑️  Removed {settings.product} {version} from the cache", fg="green")


@cli.command()
@click.pass_context
def clean(ctx: click.Context) -> None:
    """Empty the staging directory left by interrupted runs."""
    settings = _load_settings(ctx)
    _store(settings).cleanup_temp()
    click.secho("🧹 Staging directory cleaned", fg="green")


if __name__ == "__main__":
    cli()

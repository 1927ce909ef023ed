"""CLI interface for fileshelf.

Command-line tool for running the file server and managing custom paths.
"""

import logging
import sys
from pathlib import Path

import click

from fileshelf.config import Config
from fileshelf.core.aliases import AliasStore
from fileshelf.core.paths import PathResolver
from fileshelf.core.state import StateDirectory
from fileshelf.errors import FileshelfError
from fileshelf.logger import setup_logging

_CONFIG_OPTION = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file (default: auto-discover fileshelf.toml)",
)


@click.group()
def cli() -> None:
    """fileshelf - share files, short links and a clipboard over HTTP."""


@click.group()
def alias() -> None:
    """Custom path management commands."""


cli.add_command(alias)


@cli.command()
@_CONFIG_OPTION
@click.option(
    "--root",
    "-d",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory to serve (overrides config)",
)
@click.option("--host", default=None, help="Host to bind to (overrides config)")
@click.option(
    "--port",
    "-p",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option("--user", default=None, help="Username for basic authentication")
@click.option("--password", default=None, help="Password for basic authentication")
@click.option(
    "--read-only/--read-write",
    default=None,
    help="Disable uploads and deletes (overrides config)",
)
@click.option(
    "--disable-hidden-files/--allow-hidden-files",
    default=None,
    help="Never show hidden files, even when toggled (overrides config)",
)
@click.option(
    "--tls-cert",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="TLS certificate file",
)
@click.option(
    "--tls-key",
    type=click.Path(exists=True, path_type=Path, dir_okay=False),
    default=None,
    help="TLS private key file",
)
@click.option(
    "--quiet/--no-quiet",
    "-q",
    default=None,
    help="Disable access log (overrides config)",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def serve(
    config_path: Path | None,
    root: Path | None,
    host: str | None,
    port: int | None,
    user: str | None,
    password: str | None,
    read_only: bool | None,
    disable_hidden_files: bool | None,
    tls_cert: Path | None,
    tls_key: Path | None,
    quiet: bool | None,
    verbose: bool,
) -> None:
    """Start the file server."""
    from fileshelf.server import run_server

    try:
        config = Config.load(config_path).with_overrides(
            host=host,
            port=port,
            root=root,
            quiet=quiet,
            username=user,
            password=password,
            read_only=read_only,
            disable_hidden_files=disable_hidden_files,
            tls_cert=tls_cert,
            tls_key=tls_key,
        )
    except (OSError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

    setup_logging(logging.DEBUG if verbose else logging.INFO)

    scheme = "https" if config.server.tls_cert else "http"
    click.echo(f"Starting server on {scheme}://{config.server.host}:{config.server.port}")
    click.echo(f"Storage root: {config.storage.root}")
    click.echo(f"State directory: {config.storage.state_dir}")
    if config.auth.enabled:
        click.echo("Authentication: basic")
    if config.auth.read_only:
        click.echo("Mode: read-only")

    try:
        run_server(config)
    except FileshelfError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


@alias.command("list")
@_CONFIG_OPTION
def list_aliases(config_path: Path | None) -> None:
    """List custom paths."""
    store, _ = _open_store(config_path)
    aliases = store.aliases()
    if not aliases:
        click.echo("No custom paths.")
        return
    for item in aliases:
        click.echo(f"/{item.custom_path} -> {item.original_path} ({item.created_at:%Y-%m-%d %H:%M})")


@alias.command("add")
@click.argument("custom_path")
@click.argument("original_path")
@_CONFIG_OPTION
def add_alias(custom_path: str, original_path: str, config_path: Path | None) -> None:
    """Bind CUSTOM_PATH to ORIGINAL_PATH (relative to the storage root)."""
    store, resolver = _open_store(config_path)
    try:
        target = resolver.resolve(original_path)
        created = store.create(custom_path, target)
    except FileshelfError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    click.echo(click.style(f"Created /{created.custom_path} -> {created.original_path}", fg="green"))


@alias.command("remove")
@click.argument("custom_path")
@_CONFIG_OPTION
def remove_alias(custom_path: str, config_path: Path | None) -> None:
    """Remove CUSTOM_PATH. Removing an unknown name succeeds."""
    store, _ = _open_store(config_path)
    try:
        removed = store.delete(custom_path)
    except FileshelfError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)
    if removed:
        click.echo(f"Removed /{custom_path}")
    else:
        click.echo(f"/{custom_path} was not bound")


def _load_config(config_path: Path | None) -> Config:
    try:
        return Config.load(config_path)
    except (OSError, ValueError) as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)


def _open_store(config_path: Path | None) -> tuple[AliasStore, PathResolver]:
    config = _load_config(config_path)
    resolver = PathResolver(config.storage.root, reserved=(config.storage.state_dir,))
    try:
        return AliasStore(StateDirectory(config.storage.state_dir), resolver), resolver
    except FileshelfError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        sys.exit(1)

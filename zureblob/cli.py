"""
zureblob Command-Line Interface

Work with one Azure Blob Storage container from the shell: list, read,
write, copy, delete, inspect, issue signed URLs, and manage container
access.

Author: zureblob Contributors
Date: 2026-10-18
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Optional

import click
import httpx

from zureblob import __version__
from zureblob.blob.models import PublicAccessLevel
from zureblob.core.config_manager import ConfigManager, StorageConfig
from zureblob.core.logging_config import setup_logging
from zureblob.exceptions import ZureBlobError
from zureblob.filesystem import BlobFilesystem

logger = logging.getLogger(__name__)


@contextmanager
def _handle_errors(action: str):
    """Turn library and transport errors into a message and exit status 1."""
    try:
        yield
    except ZureBlobError as e:
        click.echo(f"[ERROR] Failed to {action}: {e}", err=True)
        sys.exit(1)
    except httpx.HTTPError as e:
        click.echo(f"[ERROR] Failed to {action}: {e}", err=True)
        sys.exit(1)


def _filesystem(ctx: click.Context) -> BlobFilesystem:
    """Build (once per invocation) the adapter from the loaded configuration."""
    if "filesystem" not in ctx.obj:
        with _handle_errors("load configuration"):
            config = ConfigManager().load(
                config_file=ctx.obj.get("config_file"),
                cli_overrides=ctx.obj.get("overrides") or None,
            )
        _configure_logging(config, ctx.obj.get("log_level"))
        logger.debug(f"Using container {config.container} on account {config.account_name}")
        ctx.obj["filesystem"] = BlobFilesystem.from_config(
            config, http_client=ctx.obj.get("http_client")
        )
    return ctx.obj["filesystem"]


def _configure_logging(config: StorageConfig, level: Optional[str]) -> None:
    """Apply the logging section of the configuration; --log-level wins when given."""
    setup_logging(
        level=level or config.logging.level.value,
        format_type=config.logging.format,
        log_file=config.logging.file,
        rotation_size=config.logging.rotation_size,
        rotation_count=config.logging.rotation_count,
        module_levels=config.logging.module_levels,
    )


@click.group()
@click.version_option(version=__version__, prog_name="zureblob")
@click.option(
    "--config",
    "-c",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to configuration file (YAML or JSON)",
)
@click.option("--container", help="Container to operate on (overrides configuration)")
@click.option(
    "--log-level",
    default=None,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    help="Logging level (default: logging.level from configuration)",
)
@click.pass_context
def cli(ctx, config_file: Optional[Path], container: Optional[str], log_level: Optional[str]):
    """
    zureblob - Azure Blob Storage from the command line

    Credentials come from the configuration file or the
    AZURE_STORAGE_ACCOUNT_NAME / AZURE_STORAGE_ACCOUNT_KEY /
    AZURE_STORAGE_CONTAINER environment variables.
    """
    ctx.ensure_object(dict)
    # Until the configuration is loaded only warnings are shown
    setup_logging(log_level or "WARNING")

    ctx.obj["config_file"] = str(config_file) if config_file else None
    ctx.obj["overrides"] = {"container": container} if container else {}
    ctx.obj["log_level"] = log_level.upper() if log_level else None


@cli.command("ls")
@click.argument("path", default="")
@click.option("--deep", "-r", is_flag=True, help="List every blob, not one level")
@click.pass_context
def ls(ctx, path: str, deep: bool):
    """
    List files and virtual directories.

    Examples:
        zureblob ls
        zureblob ls images/ --deep
    """
    fs = _filesystem(ctx)
    with _handle_errors("list contents"):
        for entry in fs.list_contents(path, deep):
            if entry.is_dir:
                click.echo(f"{'DIR':>12}  {'':19}  {entry.path}/")
            else:
                modified = entry.last_modified.strftime("%Y-%m-%d %H:%M:%S") if entry.last_modified else ""
                click.echo(f"{entry.file_size:>12}  {modified:19}  {entry.path}")


@cli.command("cat")
@click.argument("path")
@click.pass_context
def cat(ctx, path: str):
    """Write a blob's contents to stdout."""
    fs = _filesystem(ctx)
    with _handle_errors(f"read '{path}'"):
        data = fs.read(path)
    click.echo(data, nl=False)


@cli.command("put")
@click.argument("path")
@click.argument("source", type=click.File("rb"), default="-")
@click.option("--content-type", help="Content type (guessed from the name by default)")
@click.pass_context
def put(ctx, path: str, source, content_type: Optional[str]):
    """
    Upload SOURCE (a file, or stdin) to PATH.

    Examples:
        zureblob put reports/q1.pdf ./q1.pdf
        echo hello | zureblob put notes/hello.txt
    """
    fs = _filesystem(ctx)
    with _handle_errors(f"write '{path}'"):
        fs.write_stream(path, source, content_type)
    click.echo(f"[OK] Uploaded {path}")


@cli.command("rm")
@click.argument("path")
@click.option("--recursive", "-r", is_flag=True, help="Delete every blob under PATH")
@click.pass_context
def rm(ctx, path: str, recursive: bool):
    """Delete a blob, or a virtual directory with --recursive."""
    fs = _filesystem(ctx)
    with _handle_errors(f"delete '{path}'"):
        if recursive:
            count = fs.delete_directory(path)
            click.echo(f"[OK] Deleted {count} blob(s) under {path}")
        else:
            fs.delete(path)
            click.echo(f"[OK] Deleted {path}")


@cli.command("cp")
@click.argument("source")
@click.argument("destination")
@click.pass_context
def cp(ctx, source: str, destination: str):
    """Copy a blob within the container."""
    fs = _filesystem(ctx)
    with _handle_errors(f"copy '{source}'"):
        fs.copy(source, destination)
    click.echo(f"[OK] Copied {source} -> {destination}")


@cli.command("mv")
@click.argument("source")
@click.argument("destination")
@click.pass_context
def mv(ctx, source: str, destination: str):
    """Move a blob (copy, then delete the source)."""
    fs = _filesystem(ctx)
    with _handle_errors(f"move '{source}'"):
        fs.move(source, destination)
    click.echo(f"[OK] Moved {source} -> {destination}")


@cli.command("stat")
@click.argument("path")
@click.pass_context
def stat(ctx, path: str):
    """Show blob properties."""
    fs = _filesystem(ctx)
    with _handle_errors(f"stat '{path}'"):
        properties = fs.client.get_blob_properties(path)

    click.echo(f"Path:          {path}")
    click.echo(f"Size:          {properties.content_length}")
    click.echo(f"Content-Type:  {properties.content_type}")
    click.echo(f"Last-Modified: {properties.last_modified.isoformat()}")
    click.echo(f"ETag:          {properties.etag}")


@cli.command("sign")
@click.argument("path")
@click.option(
    "--expires-in",
    type=int,
    help="Lifetime in seconds (default: sas.default_expiry)",
)
@click.option("--permissions", "-p", help="Permission letters, e.g. r, rw, rwd")
@click.pass_context
def sign(ctx, path: str, expires_in: Optional[int], permissions: Optional[str]):
    """
    Print a signed (SAS) URL for a blob.

    Examples:
        zureblob sign reports/q1.pdf
        zureblob sign uploads/new.bin --permissions cw --expires-in 600
    """
    fs = _filesystem(ctx)
    expiration = None
    if expires_in is not None:
        expiration = datetime.now(timezone.utc) + timedelta(seconds=expires_in)

    try:
        url = fs.temporary_url(path, expiration, permissions)
    except ValueError as e:
        click.echo(f"[ERROR] Failed to sign '{path}': {e}", err=True)
        sys.exit(1)
    click.echo(url)


@cli.command("access")
@click.option(
    "--set",
    "new_level",
    type=click.Choice([level.value for level in PublicAccessLevel]),
    help="Change the container's public access level",
)
@click.pass_context
def access(ctx, new_level: Optional[str]):
    """Show or change the container's public access level."""
    fs = _filesystem(ctx)
    with _handle_errors("update container access" if new_level else "read container access"):
        if new_level:
            fs.access_cache.set(PublicAccessLevel(new_level))
        level = fs.access_cache.get()
    click.echo(f"{fs.client.container}: {level.value}")


def main():
    """Main entry point for the CLI."""
    cli(obj={})


if __name__ == "__main__":
    main()

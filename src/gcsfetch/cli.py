"""
gcsfetch CLI.

Usage:
    gcsfetch mode gs://my-bucket/models/v3/
    gcsfetch get gs://my-bucket/models/v3/ ./models
    gcsfetch get https://www.googleapis.com/storage/v1/my-bucket/a.txt ./a.txt --mode file
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gcsfetch.exceptions import GCSFetchError

console = Console()
err_console = Console(stderr=True)


def _make_service(**overrides):
    """Build an async fetch service from settings plus CLI overrides."""
    from gcsfetch.services.fetch import AsyncFetchService

    service = AsyncFetchService()
    service.configure(**overrides)
    return service


def _fail(error: GCSFetchError) -> None:
    err_console.print(f"[red]Error:[/red] {escape(str(error))}")
    raise SystemExit(1)


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Log level (default: GCSFETCH_LOG_LEVEL or INFO)",
)
@click.version_option(package_name="gcsfetch")
@click.pass_context
def main(ctx: click.Context, log_level: str | None) -> None:
    """gcsfetch - fetch files and directories from Google Cloud Storage."""
    from gcsfetch.logging import setup_logging

    ctx.ensure_object(dict)
    setup_logging(level=log_level)


# =============================================================================
# Mode Command
# =============================================================================


@main.command()
@click.argument("url")
@click.option(
    "--timeout",
    "-t",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Deadline in seconds",
)
@click.pass_context
def mode(ctx: click.Context, url: str, timeout: float | None) -> None:
    """Print whether URL is fetched as a file or a directory."""
    service = _make_service(timeout=timeout)
    try:
        detected = asyncio.run(service.detect_mode(url))
    except GCSFetchError as e:
        _fail(e)
    console.print(detected.value)


# =============================================================================
# Get Command
# =============================================================================


@main.command()
@click.argument("url")
@click.argument("dest", type=click.Path(path_type=Path))
@click.option(
    "--mode",
    "-m",
    "mode_",
    type=click.Choice(["auto", "file", "dir"]),
    default="auto",
    help="Transfer mode (default: detect)",
)
@click.option(
    "--timeout",
    "-t",
    type=click.FloatRange(min=0, min_open=True),
    default=None,
    help="Deadline in seconds",
)
@click.option(
    "--workers",
    "-w",
    type=click.IntRange(1, 32),
    default=None,
    help="Parallel transfers in directory mode",
)
@click.option("--chunk-size", type=click.IntRange(min=1), default=None, help="Copy chunk size in bytes")
@click.option("--no-atomic", is_flag=True, help="Write directly to the destination file")
@click.pass_context
def get(
    ctx: click.Context,
    url: str,
    dest: Path,
    mode_: str,
    timeout: float | None,
    workers: int | None,
    chunk_size: int | None,
    no_atomic: bool,
) -> None:
    """Fetch URL to DEST.

    DEST is the output file in file mode and the root directory in
    directory mode. An existing directory destination is replaced.

    Examples:

        gcsfetch get gs://my-bucket/report.csv ./report.csv

        gcsfetch get gs://my-bucket/models/v3/ ./models --workers 4
    """
    from gcsfetch.models.objects import TransferMode

    service = _make_service(
        timeout=timeout,
        max_workers=workers,
        chunk_size=chunk_size,
        atomic_writes=False if no_atomic else None,
    )
    forced = {
        "auto": None,
        "file": TransferMode.FILE,
        "dir": TransferMode.DIRECTORY,
    }[mode_]

    try:
        result = asyncio.run(service.fetch(url, dest, mode=forced))
    except GCSFetchError as e:
        _fail(e)
    except KeyboardInterrupt:
        err_console.print("[yellow]Interrupted[/yellow]")
        raise SystemExit(130)

    table = Table(show_header=False, box=None)
    table.add_column("Field", style="dim")
    table.add_column("Value")
    table.add_row("Mode", result.mode.value)
    table.add_row("Path", str(result.local_path))
    table.add_row("Objects", str(result.objects_count))
    table.add_row("Size", f"{result.size:,} bytes")
    table.add_row("Time", f"{result.elapsed:.1f}s @ {result.speed_mbps:.1f} MB/s")
    console.print(table)


if __name__ == "__main__":
    main()

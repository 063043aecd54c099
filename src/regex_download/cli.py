"""Command-line entry point: `regexdownload [OPTIONS] URL...`."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

import typer

from regex_download.core.config import (
    PROGRAM_NAME,
    RunSettings,
    find_config_file,
    load_config,
)
from regex_download.core.errors import ConfigFileError
from regex_download.core.pipeline import run_pipeline

logger = logging.getLogger("regex_download.cli")

app = typer.Typer(add_completion=False)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )


@app.command()
def download(
    urls: List[str] = typer.Argument(..., help="Seed page URLs to scan for assets"),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output"
    ),
    keep: bool = typer.Option(
        False,
        "--keep",
        "-k",
        help="Keep each fetched page as <section>-<nanoseconds>.html",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help=(
            f"Configuration file (default: ${PROGRAM_NAME.upper()}_CONFIG, "
            f"./.{PROGRAM_NAME}.conf, /opt/local/etc/{PROGRAM_NAME}.conf, "
            f"/etc/{PROGRAM_NAME}.conf)"
        ),
    ),
    jobs: Optional[int] = typer.Option(
        None,
        "--jobs",
        "-j",
        min=1,
        help="Maximum concurrent tasks per phase (default: one per URL)",
    ),
    timeout: float = typer.Option(30.0, "--timeout", help="HTTP timeout in seconds"),
    output_dir: Path = typer.Option(
        Path("."), "--output-dir", "-o", help="Directory for downloaded files"
    ),
) -> None:
    """Fetch pages, extract asset URLs with per-site regexes and download them."""
    _configure_logging(verbose)
    settings = RunSettings(
        keep_snapshot=keep,
        verbose=verbose,
        max_workers=jobs,
        timeout=timeout,
        output_dir=output_dir,
    )

    config_path = config or find_config_file()
    if config_path is None:
        typer.echo("Error: Configuration file not found.", err=True)
        raise typer.Exit(code=1)
    if settings.verbose:
        typer.echo(f"Using configuration file: {config_path}")

    try:
        site_config = load_config(config_path)
    except ConfigFileError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)
    logger.debug("Loaded %d section(s) from %s", len(site_config.sections), config_path)

    try:
        settings.output_dir.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        typer.echo(f"Error: could not create {settings.output_dir}: {exc}", err=True)
        raise typer.Exit(code=1)

    report = run_pipeline(
        urls,
        site_config,
        keep_snapshot=settings.keep_snapshot,
        verbose=settings.verbose,
        max_workers=settings.max_workers,
        output_dir=settings.output_dir,
        timeout=settings.timeout,
    )
    if report.exit_code:
        raise typer.Exit(code=report.exit_code)


def main() -> None:
    app()


if __name__ == "__main__":
    main()

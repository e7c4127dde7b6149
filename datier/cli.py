#!/usr/bin/env python3


import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.markup import escape

from .errors import DirectoryError
from .rename_files import RenameReport, rename_directory
from .types import CliOptions, RenameOptions

console = Console()
error_console = Console(stderr=True)


def print_report(report: RenameReport, *, options: CliOptions) -> None:
    """Print the actions taken, the per-file errors and a summary."""
    verb = "Would rename" if report.dry_run else "Renamed"
    for entry in report.renamed:
        console.print(f"{verb} {escape(str(entry.source))} → {escape(entry.target.name)}", soft_wrap=True)
    if options.log_actions:
        for entry in report.unchanged:
            console.print(f"[dim]{escape(str(entry.source))} unchanged[/dim]", soft_wrap=True)

    for error in report.skipped:
        error_console.print(
            f"[yellow]{escape(str(error.path))} skipped ({escape(error.reason)})[/yellow]", soft_wrap=True
        )

    style = "green" if report.ok else "red"
    console.print(f"\n[{style}]{report.summary()}[/{style}]")


@click.command()
@click.argument("path", type=click.Path(path_type=Path))
@click.option("-n", "--dry-run", is_flag=True, help="Show changes without renaming")
@click.option(
    "-d",
    "--deep",
    is_flag=True,
    help="Also search sub-directories for files, and move them into PATH",
)
@click.option(
    "-l",
    "--log",
    "log_actions",
    is_flag=True,
    help="Log each file inspected, and the action taken on it",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], case_sensitive=False),
    default="WARNING",
    help="Set the logging level (default: WARNING)",
)
@click.version_option(package_name="datier", prog_name="datier")
def main(
    path: Path,
    dry_run: bool,
    deep: bool,
    log_actions: bool,
    log_level: str,
) -> None:
    """Rename JPG and CR2 images in PATH after the date they were taken.

    Files are named yyyy_mm_dd-nnnn, numbered in order of capture time within
    each day.
    """
    # Set up logging
    level = getattr(logging, log_level.upper())
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    # When not in debug mode, only show our own debug messages
    if level != logging.DEBUG:
        for logger_name in logging.root.manager.loggerDict:
            if not logger_name.startswith("datier"):
                logging.getLogger(logger_name).setLevel(logging.WARNING)
        # exifread warns about every malformed tag it meets
        logging.getLogger("exifread").setLevel(logging.ERROR)

    options = CliOptions(
        log_actions=log_actions,
        rename_options=RenameOptions(deep=deep, dry_run=dry_run),
    )

    try:
        report = rename_directory(path, options=options.rename_options, show_progress=True)
    except DirectoryError as e:
        raise click.ClickException(str(e)) from e

    print_report(report, options=options)
    if not report.ok:
        sys.exit(1)


if __name__ == "__main__":
    main()

"""CLI entry point for secshell-tui. Uses Click for argument parsing."""

from __future__ import annotations

import logging
import sys

import click

from secshell.tui.config import load_settings
from secshell.tui.errors import FileError, SessionError

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"]),
    default="warning",
    help="Logging level (default: warning)",
)
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write log records to this file instead of stderr",
)
@click.pass_context
def main(ctx, log_level, log_file):
    """Page through text or edit a file in the terminal."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        filename=log_file,
    )
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


def _fail(message: str) -> None:
    click.echo(message, err=True)
    sys.exit(1)


@main.command("more")
@click.argument("files", nargs=-1)
@click.option("--wrap/--no-wrap", default=None, help="Start with word wrap on or off")
def more(files, wrap):
    """Page FILES one after another, or standard input when none are given.

    Inside the pager: / searches, n/N jump between matches, c clears the
    search, w toggles wrapping, h shows help and q quits.
    """
    from secshell.tui.pager import run_more

    settings = load_settings()
    if wrap is not None:
        settings.wrap_text = wrap
    try:
        run_more(list(files), settings=settings)
    except (FileError, SessionError, OSError) as exc:
        _fail(f"more: {exc}")


@main.command("edit")
@click.argument("file", required=False)
def edit(file):
    """Edit FILE, creating it on first save."""
    from secshell.tui.editor import run_edit

    settings = load_settings()
    try:
        run_edit(file, settings=settings)
    except (FileError, SessionError, OSError) as exc:
        _fail(f"edit: {exc}")

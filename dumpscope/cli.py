"""Parse a minidump and print its decoded streams."""

from __future__ import annotations

import sys
from pathlib import Path
from typing import List, Optional

import typer
from redlog import Level, field, get_logger, set_level

from .core.config import ParserConfig
from .core.errors import MinidumpError
from .report import render_report, render_summary
from .snapshot.minidump import MinidumpSnapshot


CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])
APP_NAME = "dumpscope"
app = typer.Typer(
    name=APP_NAME,
    help=f"{APP_NAME}: decode a windows minidump",
    context_settings=CONTEXT_SETTINGS,
    pretty_exceptions_short=True,
    pretty_exceptions_show_locals=False,
)


def configure_logging(verbosity: int) -> None:
    level = Level(min(Level.INFO + verbosity, Level.ANNOYING))
    set_level(level)


@app.command()
def report(
    dump_file: Path = typer.Argument(..., help="Path to the .dmp file"),
    summary: bool = typer.Option(
        False, "--summary", "-s", help="Print a short overview instead of the report"
    ),
    strict: bool = typer.Option(
        False, "--strict", help="Fail if any known stream is malformed"
    ),
    verbose: int = typer.Option(
        0, "--verbose", "-v", count=True, help="Increase log verbosity"
    ),
) -> None:
    """Decode a minidump and print the stream report."""

    configure_logging(verbose)
    log = get_logger("dumpscope.cli")

    dump_path = dump_file.expanduser()
    if not dump_path.is_file():
        log.err("dump file not found", field("path", str(dump_path)))
        raise typer.Exit(1)

    try:
        snapshot = MinidumpSnapshot.load(str(dump_path), ParserConfig(strict=strict))
    except MinidumpError as exc:
        log.err(
            "failed to parse minidump",
            field("path", str(dump_path)),
            field("error", str(exc)),
        )
        raise typer.Exit(1)

    output = render_summary(snapshot) if summary else render_report(snapshot)
    typer.echo(output, nl=False)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return its exit status instead of exiting."""
    try:
        app(args=argv, prog_name=APP_NAME)
    except SystemExit as exc:
        # usage errors exit with 2, every failure maps to 1
        return 0 if exc.code in (None, 0) else 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

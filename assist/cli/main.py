#!/usr/bin/env python3
"""
assist-run CLI - Voice assistant pipeline runs

Main entrypoint for the assist-run command-line tool.
"""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ..logging_config import setup_logging
from .commands import debug, events, pipelines, replay, run

app = typer.Typer(
    name="assist-run",
    help="Voice assistant pipeline run tracker",
    add_completion=False,
)

console = Console()

app.add_typer(events.app, name="events", help="Recorded event files")
app.add_typer(pipelines.app, name="pipelines", help="Pipeline management")
app.add_typer(debug.app, name="debug", help="Recorded runs on the server")

app.command("replay")(replay.replay_command)
app.command("run")(run.run_command)


@app.callback()
def configure(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Log level (default: $ASSIST_LOG_LEVEL)"),
    log_format: Optional[str] = typer.Option(None, "--log-format", help="json or text (default: $ASSIST_LOG_FORMAT)"),
):
    """Configure logging before any command runs."""
    setup_logging(level=log_level, log_format=log_format)


@app.command()
def version():
    """Show version information."""
    from .. import __version__

    table = Table(show_header=False, box=None)
    table.add_row("[bold]assist-run[/bold]", f"v{__version__}")
    table.add_row("Run request", "assist_pipeline/run")

    console.print(table)


def main():
    """Main entrypoint."""
    app()


if __name__ == "__main__":
    main()

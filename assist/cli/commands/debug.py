"""
Debug-log commands: list, get
"""

import asyncio
import json
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from ...api import PipelineRunListing, get_pipeline_run, list_pipeline_runs
from ...core.errors import AssistError
from ...replay import ReplayResult
from ..connection import build_transport
from ..render import render_snapshot

app = typer.Typer()
console = Console()


def _fail(json_output: bool, e: Exception) -> None:
    if json_output:
        print(json.dumps({"error": str(e)}))
    else:
        console.print(f"[red]Error:[/red] {e}")
    raise typer.Exit(2)


@app.command("list")
def list_runs(
    pipeline_id: str = typer.Argument(..., help="Pipeline id"),
    url: Optional[str] = typer.Option(None, "--url", help="WebSocket API URL (default: $ASSIST_URL)"),
    token: Optional[str] = typer.Option(None, "--token", help="Access token (default: $ASSIST_TOKEN)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List recorded runs of a pipeline.
    """

    async def _fetch() -> List[PipelineRunListing]:
        async with build_transport(url, token) as transport:
            return await list_pipeline_runs(transport, pipeline_id)

    try:
        runs = asyncio.run(_fetch())
    except (AssistError, OSError) as e:
        _fail(json_output, e)

    if json_output:
        print(json.dumps({"pipeline_runs": [r.model_dump() for r in runs]}, indent=2))
        raise typer.Exit(0)

    table = Table(title=f"Recorded runs: {pipeline_id}")
    table.add_column("Run Id", style="cyan")
    table.add_column("Timestamp", style="dim")
    for r in runs:
        table.add_row(r.pipeline_run_id, r.timestamp)
    console.print(table)
    raise typer.Exit(0)


@app.command("get")
def get_run(
    pipeline_id: str = typer.Argument(..., help="Pipeline id"),
    run_id: str = typer.Argument(..., help="Recorded run id"),
    show_events: bool = typer.Option(False, "--show-events", "-e", help="Show folded events"),
    url: Optional[str] = typer.Option(None, "--url", help="WebSocket API URL (default: $ASSIST_URL)"),
    token: Optional[str] = typer.Option(None, "--token", help="Access token (default: $ASSIST_TOKEN)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Fetch a recorded run and show its folded snapshot.
    """

    async def _fetch() -> ReplayResult:
        async with build_transport(url, token) as transport:
            return await get_pipeline_run(transport, pipeline_id, run_id)

    try:
        result = asyncio.run(_fetch())
    except (AssistError, OSError) as e:
        _fail(json_output, e)

    if json_output:
        snapshot = result.snapshot.to_dict() if result.snapshot is not None else None
        print(json.dumps({"snapshot": snapshot, "anomalies": [str(a) for a in result.anomalies]}, indent=2))
        raise typer.Exit(0)

    render_snapshot(console, result.snapshot, show_events=show_events)
    for anomaly in result.anomalies:
        console.print(f"[yellow]Anomaly:[/yellow] {anomaly}")
    raise typer.Exit(0)

"""
Replay command: fold a recorded event file and show the resulting snapshot
"""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...core.errors import MalformedEventError
from ...replay import compute_snapshot_hash, load_events, replay as replay_events
from ..render import render_snapshot

console = Console()


def replay_command(
    log_path: str = typer.Argument(..., help="JSON, JSONL or debug-dump file of run events"),
    until: Optional[int] = typer.Option(None, "--until", "-u", help="Replay until event index (inclusive)"),
    show_events: bool = typer.Option(False, "--show-events", "-e", help="Show folded events"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Replay recorded run events and show the folded snapshot.

    Examples:
        assist-run replay run.jsonl
        assist-run replay run.json --until 3
        assist-run replay run.json --json
    """
    try:
        events = load_events(log_path)
        result = replay_events(events, to_seq=until)
        snapshot_hash = compute_snapshot_hash(result.snapshot)
    except FileNotFoundError:
        if json_output:
            print(json.dumps({"error": "Event file not found", "path": log_path}))
        else:
            console.print(f"[red]Error: Event file not found:[/red] {log_path}")
        raise typer.Exit(2)
    except MalformedEventError as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if json_output:
        output = {
            "success": True,
            "events_replayed": result.applied,
            "snapshot_hash": snapshot_hash,
            "anomalies": [str(a) for a in result.anomalies],
            "snapshot": result.snapshot.to_dict() if result.snapshot is not None else None,
        }
        print(json.dumps(output, indent=2))
        raise typer.Exit(0)

    console.print(f"[green]✓ Replayed {result.applied} events[/green]")
    console.print(f"  Snapshot hash: [yellow]{snapshot_hash}[/yellow]")
    render_snapshot(console, result.snapshot, show_events=show_events)

    if result.anomalies:
        table = Table(title="Sequencing Anomalies")
        table.add_column("Event Type", style="yellow")
        table.add_column("Detail", style="red")
        for anomaly in result.anomalies:
            table.add_row(getattr(anomaly.event, "type", "N/A"), str(anomaly))
        console.print(table)

    raise typer.Exit(0)

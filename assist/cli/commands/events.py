"""
Event file commands: inspect
"""

import json
from typing import Optional

import typer
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from ...core.errors import MalformedEventError
from ...replay import load_events

app = typer.Typer()
console = Console()


@app.command()
def inspect(
    log_path: str = typer.Argument(..., help="JSON, JSONL or debug-dump file of run events"),
    event_type: Optional[str] = typer.Option(None, "--event-type", "-t", help="Filter by event type"),
    show_data: bool = typer.Option(False, "--data", "-d", help="Show full event data"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    Inspect recorded run events.

    Examples:
        assist-run events inspect run.jsonl
        assist-run events inspect run.jsonl --event-type stt-end --data
    """
    try:
        events = load_events(log_path)
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

    indexed = list(enumerate(events))
    if event_type:
        indexed = [(seq, ev) for seq, ev in indexed if ev.type == event_type]

    if json_output:
        records = []
        for seq, ev in indexed:
            rec = {"seq": seq, **ev.to_dict()}
            if not show_data:
                rec["data"] = "<hidden>"
            records.append(rec)
        print(json.dumps({"events": records, "count": len(records)}, indent=2))
        raise typer.Exit(0)

    if not indexed:
        console.print("[yellow]No events match the filters[/yellow]")
        raise typer.Exit(0)

    table = Table(title=f"Events: {log_path}")
    table.add_column("Seq", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Timestamp", style="dim")
    for seq, ev in indexed:
        table.add_row(str(seq), ev.type, ev.timestamp or "N/A")
    console.print(table)

    if show_data:
        for seq, ev in indexed:
            console.print(f"\n[bold cyan]Event {seq}[/bold cyan] [green]{ev.type}[/green]")
            console.print(Syntax(json.dumps(dict(ev.data), indent=2), "json", theme="monokai"))

    console.print(f"\n[bold]Total events:[/bold] {len(indexed)}")
    raise typer.Exit(0)

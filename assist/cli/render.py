"""
Rich rendering of run snapshots.
"""

import json
from typing import Optional

from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from ..core.run import RunSnapshot, Stage

STAGE_STYLES = {
    Stage.READY: "cyan",
    Stage.STT: "yellow",
    Stage.INTENT: "yellow",
    Stage.TTS: "yellow",
    Stage.DONE: "green",
    Stage.ERROR: "red",
}


def stage_table(snapshot: RunSnapshot) -> Table:
    table = Table(title="Stages")
    table.add_column("Stage", style="green")
    table.add_column("Engine", style="yellow")
    table.add_column("Done", justify="center")
    table.add_column("Output", style="dim")

    for name, output_key in (("stt", "stt_output"), ("intent", "intent_output"), ("tts", "tts_output")):
        record = snapshot.stage_record(name)
        if record is None:
            table.add_row(name, "-", "-", "")
            continue
        output = record.get(output_key)
        table.add_row(
            name,
            str(record.get("engine", "N/A")),
            "[green]yes[/green]" if record.done else "[yellow]no[/yellow]",
            json.dumps(output)[:60] if output is not None else "",
        )
    return table


def render_snapshot(console: Console, snapshot: Optional[RunSnapshot], show_events: bool = False) -> None:
    if snapshot is None:
        console.print("[yellow]No run-start event seen, no snapshot[/yellow]")
        return

    style = STAGE_STYLES[snapshot.stage]
    console.print(f"  Stage: [{style}]{snapshot.stage.value}[/{style}]")
    console.print(f"  Pipeline: [cyan]{snapshot.run.get('pipeline', 'N/A')}[/cyan]")
    console.print(f"  Language: {snapshot.run.get('language', 'N/A')}")
    console.print(f"  Events: {len(snapshot.events)}")
    if snapshot.error is not None:
        console.print(
            f"  Error: [red]{snapshot.error.get('code', 'N/A')}[/red] {snapshot.error.get('message', '')}"
        )
    console.print(stage_table(snapshot))

    if show_events:
        console.print("\n[bold]Events:[/bold]")
        syntax = Syntax(
            json.dumps([e.to_dict() for e in snapshot.events], indent=2),
            "json",
            theme="monokai",
            line_numbers=False,
        )
        console.print(syntax)

"""
Pipeline commands: list
"""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from ...api import PipelineList, fetch_pipelines
from ...core.errors import AssistError
from ..connection import build_transport

app = typer.Typer()
console = Console()


@app.command("list")
def list_pipelines(
    url: Optional[str] = typer.Option(None, "--url", help="WebSocket API URL (default: $ASSIST_URL)"),
    token: Optional[str] = typer.Option(None, "--token", help="Access token (default: $ASSIST_TOKEN)"),
    json_output: bool = typer.Option(False, "--json", help="Output as JSON"),
):
    """
    List configured pipelines and the preferred one.
    """

    async def _fetch() -> PipelineList:
        async with build_transport(url, token) as transport:
            return await fetch_pipelines(transport)

    try:
        listing = asyncio.run(_fetch())
    except (AssistError, OSError) as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if json_output:
        print(json.dumps(listing.model_dump(), indent=2))
        raise typer.Exit(0)

    table = Table(title="Pipelines")
    table.add_column("Id", style="cyan")
    table.add_column("Name", style="green")
    table.add_column("Language")
    table.add_column("STT", style="yellow")
    table.add_column("Conversation", style="yellow")
    table.add_column("TTS", style="yellow")
    for p in listing.pipelines:
        name = f"{p.name} [bold](preferred)[/bold]" if p.id == listing.preferred_pipeline else p.name
        table.add_row(p.id, name, p.language, p.stt_engine or "-", p.conversation_engine, p.tts_engine or "-")
    console.print(table)
    raise typer.Exit(0)

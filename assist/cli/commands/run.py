"""
Run command: start a live text pipeline run and follow its snapshots
"""

import asyncio
import json
from typing import Optional

import typer
from rich.console import Console

from ...config import Settings
from ...core.errors import AssistError
from ...core.options import text_run
from ...core.run import RunSnapshot, Stage
from ...metrics import start_metrics_server
from ...orchestrator import wait_for_run
from ..connection import build_transport
from ..render import render_snapshot

console = Console()


def run_command(
    text: str = typer.Argument(..., help="Text sent to the intent stage"),
    end_stage: str = typer.Option("intent", "--end-stage", help="Last stage to run (intent or tts)"),
    pipeline: Optional[str] = typer.Option(None, "--pipeline", "-p", help="Pipeline id (default: preferred)"),
    conversation_id: Optional[str] = typer.Option(None, "--conversation", "-c", help="Conversation id"),
    timeout: float = typer.Option(30.0, "--timeout", help="Seconds to wait for the run to finish"),
    url: Optional[str] = typer.Option(None, "--url", help="WebSocket API URL (default: $ASSIST_URL)"),
    token: Optional[str] = typer.Option(None, "--token", help="Access token (default: $ASSIST_TOKEN)"),
    json_output: bool = typer.Option(False, "--json", help="Output final snapshot as JSON"),
):
    """
    Start a text run and print each stage as it progresses.

    Examples:
        assist-run run "turn on the kitchen lights"
        assist-run run "what time is it" --end-stage tts --json
    """
    settings = Settings.from_env()
    start_metrics_server(settings.metrics_enabled, settings.metrics_port)

    def on_snapshot(snapshot: RunSnapshot) -> None:
        if not json_output:
            last = snapshot.events[-1]
            console.print(f"[dim]{last.timestamp}[/dim] [green]{last.type}[/green] -> stage {snapshot.stage.value}")

    async def _run() -> RunSnapshot:
        options = text_run(
            text, end_stage=end_stage, pipeline=pipeline, conversation_id=conversation_id
        )
        async with build_transport(url, token) as transport:
            return await wait_for_run(transport, options, on_snapshot=on_snapshot, timeout=timeout)

    try:
        snapshot = asyncio.run(_run())
    except asyncio.TimeoutError:
        if json_output:
            print(json.dumps({"error": f"Run did not finish within {timeout}s"}))
        else:
            console.print(f"[red]Error:[/red] run did not finish within {timeout}s")
        raise typer.Exit(2)
    except (AssistError, OSError) as e:
        if json_output:
            print(json.dumps({"error": str(e)}))
        else:
            console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(2)

    if json_output:
        print(json.dumps(snapshot.to_dict(), indent=2))
    else:
        render_snapshot(console, snapshot)

    raise typer.Exit(1 if snapshot.stage is Stage.ERROR else 0)

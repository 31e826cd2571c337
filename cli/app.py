from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import typer

from cli.client import ApiClient
from cli.config import CLIConfig, load_config
from cli.render import render_alerts, render_state


@dataclass
class CLIState:
    config: CLIConfig
    client: ApiClient


app = typer.Typer(
    help="Utilities for interacting with the server room alert monitor.",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def _get_state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=1, message="CLI state is uninitialized.")
    return state


@app.callback()
def main(
    ctx: typer.Context,
    base_url: Optional[str] = typer.Option(
        None,
        "--base-url",
        "-b",
        help="Monitor API base URL (defaults to API_BASE_URL env or http://localhost:8000).",
    ),
    timeout: Optional[float] = typer.Option(
        None,
        "--timeout",
        help="Seconds to wait for each API request.",
    ),
) -> None:
    """Entry point for the CLI."""
    config = load_config(base_url=base_url, timeout=timeout)
    client = ApiClient(config)
    ctx.obj = CLIState(config=config, client=client)
    ctx.call_on_close(client.close)


@app.command("alerts")
def alerts_command(
    ctx: typer.Context,
    device_id: Optional[str] = typer.Option(
        None,
        "--device",
        "-d",
        help="Device to list alerts for (defaults to the monitored device).",
    ),
) -> None:
    """List recorded alerts."""
    state = _get_state(ctx)
    render_alerts(state.client.list_alerts(device_id))


@app.command("state")
def state_command(ctx: typer.Context) -> None:
    """Show the monitor's emergency and scheduled report state."""
    state = _get_state(ctx)
    render_state(state.client.get_state())


@app.command("check")
def check_command(ctx: typer.Context) -> None:
    """Run one alert check now and print how far it got."""
    state = _get_state(ctx)
    outcome = state.client.run_check()
    color = typer.colors.RED if outcome == "failed" else typer.colors.GREEN
    typer.secho(f"Check finished. outcome={outcome}", fg=color)


@app.command("test-notification")
def test_notification_command(ctx: typer.Context) -> None:
    """Send a test message through the configured notification channel."""
    state = _get_state(ctx)
    message = state.client.send_test_notification()
    typer.secho(message or "Test notification sent.", fg=typer.colors.GREEN)

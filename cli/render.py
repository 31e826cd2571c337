from __future__ import annotations

from typing import Any, Dict, Iterable, List

import typer


def echo_heading(text: str) -> None:
    typer.secho(text, bold=True)


def echo_key_values(pairs: Iterable[tuple[str, Any]]) -> None:
    for key, value in pairs:
        typer.echo(f"{key}: {value}")


def render_alerts(alerts: List[Dict[str, Any]]) -> None:
    echo_heading("Alerts")
    if not alerts:
        typer.echo("No alerts recorded.")
        return

    for alert in alerts:
        severity = alert.get("severity")
        color = typer.colors.RED if severity == "critical" else typer.colors.YELLOW
        typer.secho(
            f"  - [{severity}] {alert.get('timestamp')} {alert.get('type')}="
            f"{alert.get('value')} ({alert.get('threshold')}): {alert.get('message')}",
            fg=color,
        )


def render_state(payload: Dict[str, Any]) -> None:
    echo_heading("Monitor")
    echo_key_values(
        [
            ("device_id", payload.get("device_id")),
            ("running", payload.get("running")),
        ]
    )

    emergency = payload.get("emergency") or {}
    typer.echo()
    echo_heading("Emergency")
    echo_key_values(
        [
            ("is_active", emergency.get("is_active")),
            ("sent_count", emergency.get("sent_count")),
            ("last_sent_time", emergency.get("last_sent_time")),
            ("last_alert_state", emergency.get("last_alert_state")),
        ]
    )

    sent_today = payload.get("sent_today") or []
    typer.echo()
    echo_heading("Scheduled Reports")
    typer.echo(f"last_reset_date: {payload.get('last_reset_date')}")
    if sent_today:
        typer.echo("sent_today:")
        for slot in sent_today:
            typer.echo(f"  - {slot}")
    else:
        typer.echo("No reports sent today.")

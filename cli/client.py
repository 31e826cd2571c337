from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import typer

from cli.config import CLIConfig


class ApiClient:
    """Minimal HTTP client for the alert monitor service."""

    def __init__(self, config: CLIConfig) -> None:
        self._config = config
        self._client = httpx.Client(base_url=config.base_url, timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def list_alerts(self, device_id: Optional[str] = None) -> List[Dict[str, Any]]:
        params = {"device_id": device_id} if device_id else None
        payload = self._request("GET", "/alerts", params=params)
        if not isinstance(payload, list):
            raise typer.BadParameter("Unexpected response payload when listing alerts.")
        return payload

    def get_state(self) -> Dict[str, Any]:
        return self._request("GET", "/monitor/state")

    def run_check(self) -> str:
        payload = self._request("POST", "/monitor/check")
        outcome = payload.get("outcome") if isinstance(payload, dict) else None
        if not isinstance(outcome, str):
            raise typer.BadParameter("Unexpected response payload when running a check.")
        return outcome

    def send_test_notification(self) -> str:
        payload = self._request("POST", "/notifications/test")
        return str(payload.get("message", ""))

    def _request(self, method: str, url: str, params: Optional[Dict[str, str]] = None) -> Any:
        try:
            response = self._client.request(method, url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            self._handle_http_error(exc)
        except httpx.TransportError as exc:
            typer.secho(
                f"Could not reach {self._config.base_url}: {exc}",
                fg=typer.colors.RED,
                err=True,
            )
            raise typer.Exit(code=1) from exc
        return response.json()

    @staticmethod
    def _handle_http_error(exc: httpx.HTTPStatusError) -> None:
        detail: str | None = None
        try:
            data = exc.response.json()
            detail = data.get("detail")
        except Exception:  # noqa: BLE001 - best effort parsing
            detail = exc.response.text.strip()
        message = (
            f"Request failed with status {exc.response.status_code}: {detail or 'no detail provided.'}"
        )
        typer.secho(message, fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)

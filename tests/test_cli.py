from __future__ import annotations

from typing import Any, Dict, List, Optional

import httpx
import pytest
from typer.testing import CliRunner

from cli.app import app
from cli.client import ApiClient
from cli.config import load_config


class StubClient:
    def __init__(self, config) -> None:
        self.config = config
        self.alert_requests: List[Optional[str]] = []
        self.alerts: List[Dict[str, Any]] = [
            {
                "id": 17,
                "device_id": "ESP-SERVER-01",
                "type": "temperature",
                "severity": "critical",
                "message": "Temperature exceeded maximum threshold",
                "value": 30.0,
                "threshold": "18-27",
                "acknowledged": False,
                "timestamp": "2024-06-01T12:00:00Z",
            }
        ]
        self.state_payload: Dict[str, Any] = {
            "device_id": "ESP-SERVER-01",
            "running": True,
            "emergency": {
                "is_active": True,
                "sent_count": 2,
                "last_sent_time": "2024-06-01T12:15:00Z",
                "last_alert_state": True,
            },
            "last_reset_date": "2024-06-01",
            "sent_today": ["08:00"],
        }
        self.outcome = "evaluated"
        self.closed = False

    def list_alerts(self, device_id: Optional[str] = None) -> List[Dict[str, Any]]:
        self.alert_requests.append(device_id)
        return self.alerts

    def get_state(self) -> Dict[str, Any]:
        return self.state_payload

    def run_check(self) -> str:
        return self.outcome

    def send_test_notification(self) -> str:
        return "Test alert sent successfully"

    def close(self) -> None:
        self.closed = True


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def stub(monkeypatch) -> StubClient:
    stub = StubClient(config=None)

    def factory(config):
        stub.config = config
        return stub

    monkeypatch.setattr("cli.app.ApiClient", factory)
    return stub


def test_alerts_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["alerts", "--device", "ESP-2"])

    assert result.exit_code == 0
    assert "Alerts" in result.stdout
    assert "[critical]" in result.stdout
    assert "temperature=30.0 (18-27)" in result.stdout
    assert stub.alert_requests == ["ESP-2"]
    assert stub.closed is True


def test_alerts_command_without_alerts(runner: CliRunner, stub: StubClient) -> None:
    stub.alerts = []

    result = runner.invoke(app, ["alerts"])

    assert result.exit_code == 0
    assert "No alerts recorded." in result.stdout
    assert stub.alert_requests == [None]


def test_state_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["state"])

    assert result.exit_code == 0
    assert "sent_count: 2" in result.stdout
    assert "  - 08:00" in result.stdout


def test_check_command_uses_base_url_option(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["--base-url", "http://monitor:9000/", "check"])

    assert result.exit_code == 0
    assert "outcome=evaluated" in result.stdout
    assert stub.config.base_url == "http://monitor:9000"


def test_test_notification_command(runner: CliRunner, stub: StubClient) -> None:
    result = runner.invoke(app, ["test-notification"])

    assert result.exit_code == 0
    assert "Test alert sent successfully" in result.stdout


def test_load_config_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://env-host:8080/")
    monkeypatch.setenv("CLI_TIMEOUT", "not-a-number")

    config = load_config()

    assert config.base_url == "http://env-host:8080"
    assert config.timeout == 30.0


def test_api_client_reports_http_errors(runner: CliRunner, monkeypatch) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502, json={"detail": "Failed to send test alert."})

    original = httpx.Client

    def client_factory(*args, **kwargs):
        kwargs["transport"] = httpx.MockTransport(handler)
        return original(*args, **kwargs)

    monkeypatch.setattr("cli.client.httpx.Client", client_factory)

    result = runner.invoke(app, ["test-notification"])

    assert result.exit_code == 1
    assert "Request failed with status 502: Failed to send test alert." in result.output


def test_api_client_parses_alert_list() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/alerts"
        assert request.url.params["device_id"] == "ESP-2"
        return httpx.Response(200, json=[{"id": 1}])

    client = ApiClient(load_config(base_url="http://testserver"))
    client._client = httpx.Client(
        base_url="http://testserver", transport=httpx.MockTransport(handler)
    )

    try:
        assert client.list_alerts("ESP-2") == [{"id": 1}]
    finally:
        client.close()

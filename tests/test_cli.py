# tests/test_cli.py
"""
Unit tests for the kubetune Command-Line Interface (CLI).
"""

import json

import pytest
import respx
from httpx import Response
from typer.testing import CliRunner

from kubetune import __version__
from kubetune.cli import app

runner = CliRunner()

QUERY_URL = "https://api.datadoghq.com/api/v1/query"
T1 = 1714557600000
T2 = T1 + 300_000

WINDOW_ARGS = ["--from", "2024-05-01T10:00:00Z", "--to", "2024-05-01T12:00:00Z"]

# Metric expression prefix -> value served at every timestamp
CANNED_VALUES = {
    "sum:kubernetes.cpu.usage.total": 50e9,
    "sum:kubernetes_state.node.cpu_allocatable.total": 100.0,
    "sum:kubernetes.cpu.requests": 80.0,
    "sum:kubernetes.memory.usage": 40.0,
    "sum:kubernetes_state.node.memory_allocatable": 100.0,
    "sum:kubernetes.memory.requests": 50.0,
    "sum:kubernetes_state.node.count": 3.0,
    "max:kubernetes_state.hpa.current_replicas": 10.0,
    "max:kubernetes_state.hpa.desired_replicas": 10.0,
    "max:kubernetes_state.hpa.max_replicas": 10.0,
    "min:kubernetes_state.hpa.min_replicas": 2.0,
    "sum:kubernetes_state.pod.status_phase": 0.0,
    "max:kubernetes_state.deployment.replicas_unavailable": 0.0,
    "max:kubernetes_state.deployment.replicas_desired": 10.0,
}


@pytest.fixture
def datadog(datadog_payload):
    """Mocks the Datadog query endpoint, answering each query from CANNED_VALUES."""

    def respond(request):
        query = request.url.params["query"]
        for prefix, value in CANNED_VALUES.items():
            if query.startswith(prefix + "{"):
                return Response(200, json=datadog_payload([(T1, value), (T2, value)]))
        return Response(200, json=datadog_payload())

    with respx.mock(assert_all_called=False) as mock:
        route = mock.get(QUERY_URL).mock(side_effect=respond)
        yield route


def test_version_command():
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert f"kubetune version: {__version__}" in result.output


def test_version_flag():
    result = runner.invoke(app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_audit_cluster_only(datadog):
    result = runner.invoke(app, ["audit", "--cluster", "prod", *WINDOW_ARGS])

    assert result.exit_code == 0, result.output
    assert "Cost audit (" in result.output
    assert "savings_opportunities:" in result.output
    assert "Moderate CPU waste" in result.output
    # Six cluster queries plus the node count
    assert datadog.call_count == 7


def test_audit_with_deployment_writes_export(datadog, tmp_path):
    out = tmp_path / "audit.json"

    result = runner.invoke(
        app,
        ["audit", "--cluster", "prod", "--deployment", "api", *WINDOW_ARGS, "--out", str(out), "--pretty"],
    )

    assert result.exit_code == 0, result.output
    assert "Saved detailed output to" in result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["mode"] == "audit"
    assert data["window"]["hours"] == 2.0
    assert data["scope"]["hpa"] == "api"
    assert data["metrics"]["cluster_cpu_waste_pct"]["avg"] == pytest.approx(30.0)
    assert "hpa_current_replicas" in data["queries"]
    assert data["raw"]["cluster_node_count"][0] == ["2024-05-01T10:00:00.000Z", 3.0]
    assert datadog.call_count == 15


def test_incident_run(datadog, tmp_path):
    out = tmp_path / "incident.json"

    result = runner.invoke(
        app,
        ["incident", "--cluster", "prod", "--namespace", "web", "--deployment", "api", *WINDOW_ARGS, "--out", str(out)],
    )

    assert result.exit_code == 0, result.output
    assert "Incident metrics (" in result.output
    assert "recommended_step_order:" in result.output
    assert "capacity_peak:" in result.output
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["capacityPlanning"]["peakRequestedPct"] == pytest.approx(80.0)
    assert data["capacityPlanning"]["requiredAllocatableFor80Pct"] == pytest.approx(100.0)
    assert [rec["step"] for rec in data["recommendations"]] == [1, 2, 3, 4, 5]
    # HPA sat at its ceiling of 10 replicas
    assert data["recommendations"][4]["changed"] is True


def test_missing_cluster_exits_with_error(datadog):
    result = runner.invoke(app, ["audit", *WINDOW_ARGS])

    assert result.exit_code == 1
    assert "Missing required --cluster argument." in result.output
    assert not datadog.called


def test_incident_requires_deployment(datadog):
    result = runner.invoke(app, ["incident", "--cluster", "prod", *WINDOW_ARGS])

    assert result.exit_code == 1
    assert "Incident mode requires --deployment" in result.output
    assert not datadog.called


def test_missing_credentials_exit_before_any_request(datadog, monkeypatch):
    monkeypatch.delenv("DD_API_KEY", raising=False)

    result = runner.invoke(app, ["audit", "--cluster", "prod", *WINDOW_ARGS])

    assert result.exit_code == 1
    assert "Missing DD_API_KEY or DD_APP_KEY environment variables." in result.output
    assert not datadog.called


def test_invalid_window_exits_with_error(datadog):
    result = runner.invoke(app, ["audit", "--cluster", "prod", "--window", "2w"])

    assert result.exit_code == 1
    assert "Invalid --window value: 2w" in result.output
    assert not datadog.called


def test_provider_failure_exits_with_error(tmp_path):
    out = tmp_path / "never.json"
    with respx.mock:
        respx.get(QUERY_URL).mock(return_value=Response(500, text="internal error"))

        result = runner.invoke(app, ["audit", "--cluster", "prod", *WINDOW_ARGS, "--out", str(out)])

    assert result.exit_code == 1
    assert "failed (500)" in result.output
    assert not out.exists()


def test_incident_uses_configured_default_deployment(datadog, monkeypatch):
    monkeypatch.setenv("INCIDENT_DEFAULT_DEPLOYMENT", "checkout")

    result = runner.invoke(app, ["incident", "--cluster", "prod", *WINDOW_ARGS])

    assert result.exit_code == 0, result.output
    queries = [call.request.url.params["query"] for call in datadog.calls]
    assert any("kube_deployment:checkout" in query for query in queries)


def test_window_before_year_one_exits_with_error(datadog):
    result = runner.invoke(app, ["audit", "--cluster", "prod", "--to", "2024-05-01T12:00:00Z", "--window", "1000000d"])

    assert result.exit_code == 1
    assert "Invalid --window value: 1000000d" in result.output
    assert "Unexpected error" not in result.output
    assert not datadog.called


def test_unreadable_secret_file_exits_with_error(datadog, mocker):
    mocker.patch(
        "kubetune.core.config.Config._get_secret",
        side_effect=PermissionError("Secret file '/etc/kubetune/secrets/DD_API_KEY' cannot be read"),
    )

    result = runner.invoke(app, ["audit", "--cluster", "prod", *WINDOW_ARGS])

    assert result.exit_code == 1
    assert "Failed to load configuration: Secret file" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert not datadog.called


def test_invalid_capacity_targets_exit_with_error(datadog, monkeypatch):
    monkeypatch.setenv("CAPACITY_TARGETS", "0.8,0.8")

    result = runner.invoke(app, ["incident", "--cluster", "prod", "--deployment", "api", *WINDOW_ARGS])

    assert result.exit_code == 1
    assert "duplicate targets" in result.output
    assert not datadog.called

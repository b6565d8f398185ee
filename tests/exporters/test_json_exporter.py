# tests/exporters/test_json_exporter.py
import json
from datetime import datetime, timezone

import pytest

from kubetune.exporters.json_exporter import JSONExporter
from kubetune.models.metrics import (
    AnalysisMode,
    AnalysisResult,
    Recommendation,
    RecommendationType,
    Scope,
    SeriesStats,
    TimeWindow,
)

T1 = 1714557600000


def make_result(mode=AnalysisMode.AUDIT):
    return AnalysisResult(
        mode=mode,
        window=TimeWindow(
            start=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
            end=datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc),
        ),
        scope=Scope(cluster="prod", deployment="api"),
        metrics={
            "cluster_cpu_used_pct": SeriesStats(samples=1, min=50.0, avg=50.0, max=50.0, last=50.0),
            "pending_pods": None,
        },
        queries={"cluster_node_count": "sum:kubernetes_state.node.count{kube_cluster_name:prod}"},
        raw={"cluster_node_count": {T1: 3.0}},
        derived={"cluster_cpu_used_pct": {T1: 50.0}},
        recommendations=[
            Recommendation(step=1, type=RecommendationType.NO_ACTION, description="nothing", changed=False)
        ],
    )


@pytest.mark.asyncio
async def test_json_exporter_empty_data(tmp_path):
    exporter = JSONExporter()
    out = tmp_path / "kubetune-analysis.json"
    await exporter.export({}, str(out))
    assert out.exists()
    assert json.loads(out.read_text(encoding="utf-8")) == {}


@pytest.mark.asyncio
async def test_json_exporter_compact_by_default(tmp_path):
    exporter = JSONExporter()
    out = tmp_path / "audit.json"

    await exporter.export(make_result().to_export(), str(out))

    text = out.read_text(encoding="utf-8")
    assert "\n" not in text
    assert '"mode":"audit"' in text


@pytest.mark.asyncio
async def test_json_exporter_pretty(tmp_path):
    exporter = JSONExporter(pretty=True)
    out = tmp_path / "audit.json"

    await exporter.export(make_result().to_export(), str(out))

    text = out.read_text(encoding="utf-8")
    assert text.startswith('{\n  "mode": "audit"')


@pytest.mark.asyncio
async def test_json_exporter_creates_parent_directories(tmp_path):
    out = tmp_path / "reports" / "nested" / "incident.json"

    written = await JSONExporter().export(make_result(AnalysisMode.INCIDENT).to_export(), str(out))

    assert written == str(out)
    content = json.loads(out.read_text(encoding="utf-8"))
    assert content["mode"] == "incident"
    # Incident exports always carry the capacity section, even when no plan exists
    assert content["capacityPlanning"] is None


@pytest.mark.asyncio
async def test_export_document_shape(tmp_path):
    out = tmp_path / "audit.json"
    await JSONExporter().export(make_result().to_export(), str(out))

    content = json.loads(out.read_text(encoding="utf-8"))

    assert list(content) == ["mode", "window", "scope", "metrics", "recommendations", "queries", "raw", "derived"]
    assert content["window"]["from"] == "2024-05-01T10:00:00.000Z"
    assert content["window"]["minutes"] == 30.0
    assert content["scope"] == {
        "cluster": "prod",
        "namespace": "default",
        "deployment": "api",
        "hpa": "api",
        "site": "datadoghq.com",
    }
    assert content["metrics"]["pending_pods"] is None
    assert content["metrics"]["cluster_cpu_used_pct"]["last"] == 50.0
    assert content["raw"]["cluster_node_count"] == [["2024-05-01T10:00:00.000Z", 3.0]]
    assert content["recommendations"] == [
        {"step": 1, "type": "NO_ACTION", "description": "nothing", "changed": False}
    ]

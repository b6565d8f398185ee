# tests/collectors/test_datadog_collector.py
"""
Unit tests for the DatadogCollector using pytest-asyncio and respx.
"""

import asyncio
from datetime import datetime, timezone

import httpx
import pytest
import respx
from httpx import Response

from kubetune.collectors.datadog_collector import DatadogCollector
from kubetune.core.config import Config
from kubetune.core.exceptions import MissingCredentialsError, ProviderQueryError
from kubetune.models.metrics import MetricQuery, TimeWindow

QUERY_URL = "https://api.datadoghq.com/api/v1/query"

T1 = 1714557600000
T2 = T1 + 300_000

WINDOW = TimeWindow(
    start=datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc),
    end=datetime(2024, 5, 1, 10, 30, 0, 999000, tzinfo=timezone.utc),
)


def make_catalog(*names):
    return {name: MetricQuery(name=name, query=f"sum:{name}{{kube_cluster_name:prod}}") for name in names}


@pytest.fixture
def collector():
    return DatadogCollector(Config())


@pytest.mark.asyncio
@respx.mock
async def test_collect_sums_tagged_series(collector, datadog_payload):
    route = respx.get(QUERY_URL).mock(
        return_value=Response(200, json=datadog_payload([(T1, 1.0), (T2, 2.0)], [(T1, 10.0), (T2, None)]))
    )

    results = await collector.collect(make_catalog("cluster_mem_usage_bytes"), WINDOW)

    assert results == {"cluster_mem_usage_bytes": {T1: 11.0, T2: 2.0}}
    assert route.call_count == 1


@pytest.mark.asyncio
@respx.mock
async def test_collect_sends_credentials_and_epoch_second_bounds(collector, datadog_payload):
    route = respx.get(QUERY_URL).mock(return_value=Response(200, json=datadog_payload()))

    await collector.collect(make_catalog("cluster_node_count"), WINDOW)

    request = route.calls.last.request
    assert request.headers["DD-API-KEY"] == "test-api-key"
    assert request.headers["DD-APPLICATION-KEY"] == "test-app-key"
    assert request.url.params["from"] == "1714557600"
    # Fractional seconds are floored
    assert request.url.params["to"] == "1714559400"
    assert request.url.params["query"] == "sum:cluster_node_count{kube_cluster_name:prod}"


@pytest.mark.asyncio
@respx.mock
async def test_collect_runs_one_request_per_catalog_entry(collector, datadog_payload):
    def respond(request):
        if request.url.params["query"].startswith("sum:a{"):
            return Response(200, json=datadog_payload([(T1, 1.0)]))
        return Response(200, json=datadog_payload([(T1, 2.0)]))

    route = respx.get(QUERY_URL).mock(side_effect=respond)

    results = await collector.collect(make_catalog("a", "b"), WINDOW)

    assert route.call_count == 2
    assert results == {"a": {T1: 1.0}, "b": {T1: 2.0}}


@pytest.mark.asyncio
@respx.mock
async def test_query_without_series_yields_empty_series(collector):
    respx.get(QUERY_URL).mock(return_value=Response(200, json={"status": "ok", "series": []}))

    results = await collector.collect(make_catalog("pending_pods"), WINDOW)

    assert results == {"pending_pods": {}}


@pytest.mark.asyncio
@respx.mock
async def test_non_success_status_raises_provider_error(collector, datadog_payload):
    def respond(request):
        if "hpa_max_replicas" in request.url.params["query"]:
            return Response(403, text='{"errors": ["Forbidden"]}')
        return Response(200, json=datadog_payload([(T1, 1.0)]))

    respx.get(QUERY_URL).mock(side_effect=respond)

    with pytest.raises(ProviderQueryError) as excinfo:
        await collector.collect(make_catalog("cluster_node_count", "hpa_max_replicas"), WINDOW)

    assert excinfo.value.name == "hpa_max_replicas"
    assert excinfo.value.status == 403
    assert "Forbidden" in excinfo.value.body
    assert "hpa_max_replicas" in str(excinfo.value)


@pytest.mark.asyncio
@respx.mock
async def test_first_failure_cancels_pending_queries(collector, datadog_payload):
    slow_query_cancelled = asyncio.Event()

    async def respond(request):
        if "slow_metric" in request.url.params["query"]:
            try:
                await asyncio.sleep(10)
            except asyncio.CancelledError:
                slow_query_cancelled.set()
                raise
            return Response(200, json=datadog_payload([(T1, 1.0)]))
        # Let the slow query reach its sleep before failing
        await asyncio.sleep(0.05)
        return Response(500, text="internal error")

    respx.get(QUERY_URL).mock(side_effect=respond)

    with pytest.raises(ProviderQueryError) as excinfo:
        await asyncio.wait_for(collector.collect(make_catalog("slow_metric", "failing_metric"), WINDOW), timeout=5)

    assert excinfo.value.name == "failing_metric"
    assert excinfo.value.status == 500
    assert slow_query_cancelled.is_set()


@pytest.mark.asyncio
@respx.mock
async def test_transport_error_raises_provider_error(collector):
    respx.get(QUERY_URL).mock(side_effect=httpx.ConnectError("connection refused"))

    with pytest.raises(ProviderQueryError) as excinfo:
        await collector.collect(make_catalog("cluster_node_count"), WINDOW)

    assert excinfo.value.status is None
    assert "no response" in str(excinfo.value)


@pytest.mark.asyncio
@respx.mock
async def test_invalid_json_raises_provider_error(collector):
    respx.get(QUERY_URL).mock(return_value=Response(200, text="<html>maintenance</html>"))

    with pytest.raises(ProviderQueryError, match="not valid JSON"):
        await collector.collect(make_catalog("cluster_node_count"), WINDOW)


@pytest.mark.asyncio
@respx.mock(assert_all_called=False)
async def test_missing_credentials_fail_before_any_request(monkeypatch):
    monkeypatch.delenv("DD_APP_KEY", raising=False)
    route = respx.get(QUERY_URL).mock(return_value=Response(200, json={"series": []}))
    collector = DatadogCollector(Config())

    with pytest.raises(MissingCredentialsError):
        await collector.collect(make_catalog("cluster_node_count"), WINDOW)

    assert not route.called


@pytest.mark.asyncio
@respx.mock
async def test_site_override_changes_host(datadog_payload):
    route = respx.get("https://api.datadoghq.eu/api/v1/query").mock(
        return_value=Response(200, json=datadog_payload([(T1, 5.0)]))
    )
    collector = DatadogCollector(Config(), site="datadoghq.eu")

    results = await collector.collect(make_catalog("cluster_node_count"), WINDOW)

    assert route.called
    assert results["cluster_node_count"] == {T1: 5.0}


def test_site_falls_back_to_environment(monkeypatch):
    monkeypatch.setenv("DD_SITE", "us5.datadoghq.com")

    collector = DatadogCollector(Config())

    assert collector.query_url == "https://api.us5.datadoghq.com/api/v1/query"


def test_site_defaults_to_us1():
    assert DatadogCollector(Config()).query_url == QUERY_URL

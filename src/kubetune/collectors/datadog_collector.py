# src/kubetune/collectors/datadog_collector.py
"""
DatadogCollector runs a catalog of metric queries against the Datadog v1
query API concurrently and returns one aligned series per logical name.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import httpx

from ..core.config import Config
from ..core.exceptions import ProviderQueryError
from ..core.series import AlignedSeries, aggregate_series_by_timestamp
from ..models.metrics import MetricQuery, TimeWindow
from ..utils.date_utils import to_epoch_seconds
from ..utils.http_client import get_async_http_client
from .base_collector import BaseCollector

logger = logging.getLogger(__name__)


class DatadogCollector(BaseCollector):
    """
    Scatter/gather client for the Datadog timeseries query endpoint.

    Every catalog entry becomes one task; the run waits for all of them and
    the first failure cancels the rest and propagates. There are no retries.
    """

    def __init__(self, settings: Config, site: Optional[str] = None, timeout: Optional[float] = None):
        """
        Initializes the collector from an explicit configuration instance.

        :param settings: the run's Config, carrying the Datadog keys.
        :param site: Datadog site override (e.g. 'datadoghq.eu'); falls back
                     to DD_SITE then 'datadoghq.com'.
        :param timeout: per-request timeout in seconds; falls back to the
                        configured connect/read timeouts.
        """
        self.settings = settings
        self.site = settings.resolve_site(site)
        self.api_key = settings.DD_API_KEY
        self.app_key = settings.DD_APP_KEY
        self.timeout = timeout

    @property
    def query_url(self) -> str:
        return f"https://api.{self.site}/api/v1/query"

    def _headers(self) -> Dict[str, str]:
        return {
            "DD-API-KEY": self.api_key,
            "DD-APPLICATION-KEY": self.app_key,
        }

    async def query(self, client: httpx.AsyncClient, name: str, query: str, window: TimeWindow) -> List[Dict[str, Any]]:
        """
        Runs one query and returns the raw list of tagged series.

        Raises:
            ProviderQueryError: on a transport error, a non-success status,
                or a body that is not JSON.
        """
        params = {
            "from": str(to_epoch_seconds(window.start)),
            "to": str(to_epoch_seconds(window.end)),
            "query": query,
        }
        try:
            response = await client.get(self.query_url, params=params, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error("Request for '%s' to %s failed: %s", name, self.query_url, exc)
            raise ProviderQueryError(name, None, str(exc) or exc.__class__.__name__, query=query) from exc

        if not response.is_success:
            logger.error("Datadog returned %d for '%s'", response.status_code, name)
            raise ProviderQueryError(name, response.status_code, response.text, query=query)

        try:
            payload = response.json()
        except ValueError as exc:
            logger.debug("Raw response content for '%s': %s", name, response.text[:500])
            raise ProviderQueryError(
                name, response.status_code, "Response body is not valid JSON.", query=query
            ) from exc

        series = (payload or {}).get("series") or []
        logger.debug("Query '%s' returned %d tagged series", name, len(series))
        return series

    async def _fetch(self, client: httpx.AsyncClient, metric: MetricQuery, window: TimeWindow) -> AlignedSeries:
        series = await self.query(client, metric.name, metric.query, window)
        points = aggregate_series_by_timestamp(series)
        if not points:
            logger.info("No data returned for '%s'", metric.name)
        return points

    async def collect(self, catalog: Dict[str, MetricQuery], window: TimeWindow) -> Dict[str, AlignedSeries]:
        """
        Dispatches all catalog queries concurrently and gathers the results.

        Returns:
            A mapping of logical name -> aligned series. A query that matched
            no series yields an empty series, not an error.

        Raises:
            MissingCredentialsError: if either Datadog key is missing.
            ProviderQueryError: as soon as any single query fails.
        """
        self.settings.require_credentials()
        logger.info("Querying Datadog (%s) for %d metrics", self.site, len(catalog))

        async with get_async_http_client(
            connect_timeout=self.timeout,
            read_timeout=self.timeout,
            settings=self.settings,
        ) as client:
            names = list(catalog.keys())
            tasks = [asyncio.create_task(self._fetch(client, catalog[name], window)) for name in names]
            try:
                results = await asyncio.gather(*tasks)
            except BaseException:
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)
                raise

        logger.info("Collected %d series from Datadog", len(results))
        return dict(zip(names, results))

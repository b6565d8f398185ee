# src/kubetune/core/processor.py
import logging
from typing import Dict, Iterable, List, Optional

from ..collectors.base_collector import BaseCollector
from ..models.metrics import AnalysisMode, AnalysisResult, Scope, SeriesStats, TimeWindow
from . import catalog as names
from .catalog import build_query_catalog
from .recommender import Recommender
from .series import NANOCORES_PER_CORE, AlignedSeries, diff_series, ratio_series, scale_series
from .stats import build_capacity_plan, summarize

logger = logging.getLogger(__name__)

# Derived series names
CLUSTER_CPU_USED_PCT = "cluster_cpu_used_pct"
CLUSTER_CPU_REQUESTED_PCT = "cluster_cpu_requested_pct"
CLUSTER_CPU_WASTE_PCT = "cluster_cpu_waste_pct"
CLUSTER_MEM_USED_PCT = "cluster_mem_used_pct"
CLUSTER_MEM_REQUESTED_PCT = "cluster_mem_requested_pct"
CLUSTER_MEM_WASTE_PCT = "cluster_mem_waste_pct"
DEPLOYMENT_CPU_USED_VS_REQUESTS_PCT = "deployment_cpu_used_vs_requests_pct"
DEPLOYMENT_MEM_USED_VS_REQUESTS_PCT = "deployment_mem_used_vs_requests_pct"
DEPLOYMENT_UNAVAILABLE_PCT = "deployment_unavailable_pct"


def derive_series(raw: Dict[str, AlignedSeries], mode: AnalysisMode, has_deployment: bool) -> Dict[str, AlignedSeries]:
    """
    Computes the utilization and waste percentages from the raw series.

    CPU usage arrives in nanocores and is converted to cores before being
    compared with allocatable/requested cores. Waste is requested% - used%.
    """

    def get(name: str) -> AlignedSeries:
        return raw.get(name) or {}

    cluster_cpu_usage_cores = scale_series(get(names.CLUSTER_CPU_USAGE_NANO), NANOCORES_PER_CORE)
    cpu_used = ratio_series(cluster_cpu_usage_cores, get(names.CLUSTER_CPU_ALLOCATABLE_CORES), 100)
    cpu_requested = ratio_series(get(names.CLUSTER_CPU_REQUESTS_CORES), get(names.CLUSTER_CPU_ALLOCATABLE_CORES), 100)
    mem_used = ratio_series(get(names.CLUSTER_MEM_USAGE_BYTES), get(names.CLUSTER_MEM_ALLOCATABLE_BYTES), 100)
    mem_requested = ratio_series(get(names.CLUSTER_MEM_REQUESTS_BYTES), get(names.CLUSTER_MEM_ALLOCATABLE_BYTES), 100)

    derived = {
        CLUSTER_CPU_USED_PCT: cpu_used,
        CLUSTER_CPU_REQUESTED_PCT: cpu_requested,
        CLUSTER_CPU_WASTE_PCT: diff_series(cpu_requested, cpu_used),
        CLUSTER_MEM_USED_PCT: mem_used,
        CLUSTER_MEM_REQUESTED_PCT: mem_requested,
        CLUSTER_MEM_WASTE_PCT: diff_series(mem_requested, mem_used),
    }

    if has_deployment:
        deployment_cpu_usage_cores = scale_series(get(names.DEPLOYMENT_CPU_USAGE_NANO), NANOCORES_PER_CORE)
        derived[DEPLOYMENT_CPU_USED_VS_REQUESTS_PCT] = ratio_series(
            deployment_cpu_usage_cores, get(names.DEPLOYMENT_CPU_REQUESTS_CORES), 100
        )
        derived[DEPLOYMENT_MEM_USED_VS_REQUESTS_PCT] = ratio_series(
            get(names.DEPLOYMENT_MEM_USAGE_BYTES), get(names.DEPLOYMENT_MEM_REQUESTS_BYTES), 100
        )

    if mode == AnalysisMode.INCIDENT:
        derived[DEPLOYMENT_UNAVAILABLE_PCT] = ratio_series(
            get(names.DEPLOYMENT_REPLICAS_UNAVAILABLE), get(names.DEPLOYMENT_REPLICAS_DESIRED), 100
        )

    return derived


def reported_metrics(mode: AnalysisMode, has_deployment: bool) -> List[str]:
    """The ordered metric names that end up in AnalysisResult.metrics."""
    metric_names = [
        CLUSTER_CPU_USED_PCT,
        CLUSTER_CPU_REQUESTED_PCT,
        CLUSTER_CPU_WASTE_PCT,
        CLUSTER_MEM_USED_PCT,
        CLUSTER_MEM_REQUESTED_PCT,
        CLUSTER_MEM_WASTE_PCT,
    ]
    if mode == AnalysisMode.AUDIT:
        metric_names.append(names.CLUSTER_NODE_COUNT)
    if has_deployment:
        metric_names += [DEPLOYMENT_CPU_USED_VS_REQUESTS_PCT, DEPLOYMENT_MEM_USED_VS_REQUESTS_PCT]
    if mode == AnalysisMode.INCIDENT:
        metric_names += [DEPLOYMENT_UNAVAILABLE_PCT, names.PENDING_PODS]
    if has_deployment:
        metric_names += [
            names.HPA_CURRENT_REPLICAS,
            names.HPA_DESIRED_REPLICAS,
            names.HPA_MIN_REPLICAS,
            names.HPA_MAX_REPLICAS,
        ]
    return metric_names


def summarize_metrics(
    raw: Dict[str, AlignedSeries], derived: Dict[str, AlignedSeries], metric_names: Iterable[str]
) -> Dict[str, Optional[SeriesStats]]:
    """Summarizes each named series, looking in derived series first."""
    metrics: Dict[str, Optional[SeriesStats]] = {}
    for name in metric_names:
        series = derived.get(name)
        if series is None:
            series = raw.get(name) or {}
        metrics[name] = summarize(series)
        if metrics[name] is None:
            logger.debug("No finite samples for '%s'", name)
    return metrics


class AnalysisProcessor:
    """Runs one analysis: catalog, gather, derive, summarize, recommend."""

    def __init__(
        self,
        collector: BaseCollector,
        recommender: Optional[Recommender] = None,
        capacity_targets: Iterable[float] = (0.8, 0.7),
    ):
        self.collector = collector
        self.recommender = recommender or Recommender()
        self.capacity_targets = tuple(capacity_targets)

    async def run(self, scope: Scope, mode: AnalysisMode, window: TimeWindow) -> AnalysisResult:
        """Executes the pipeline and returns the assembled AnalysisResult."""
        logger.info("Starting %s analysis for %s", mode.value, scope.describe())
        catalog = build_query_catalog(scope, mode)
        raw = await self.collector.collect(catalog, window)
        return self.analyze(scope, mode, window, {name: q.query for name, q in catalog.items()}, raw)

    def analyze(
        self,
        scope: Scope,
        mode: AnalysisMode,
        window: TimeWindow,
        queries: Dict[str, str],
        raw: Dict[str, AlignedSeries],
    ) -> AnalysisResult:
        """The pure part of the pipeline, from raw series to result."""
        has_deployment = bool(scope.deployment)
        derived = derive_series(raw, mode, has_deployment)
        metrics = summarize_metrics(raw, derived, reported_metrics(mode, has_deployment))

        capacity_plan = None
        if mode == AnalysisMode.INCIDENT:
            capacity_plan = build_capacity_plan(
                raw.get(names.CLUSTER_CPU_REQUESTS_CORES) or {},
                raw.get(names.CLUSTER_CPU_ALLOCATABLE_CORES) or {},
                targets=self.capacity_targets,
                multiplier=100,
            )

        result = AnalysisResult(
            mode=mode,
            window=window,
            scope=scope,
            metrics=metrics,
            capacity_plan=capacity_plan,
            queries=queries,
            raw=raw,
            derived=derived,
        )
        result.recommendations = self.recommender.generate(result)
        logger.info("Analysis produced %d recommendation(s)", len(result.recommendations))
        return result

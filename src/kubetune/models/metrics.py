# src/kubetune/models/metrics.py
"""
This module defines the Pydantic data models for everything computed within
kubetune: the analysed time window and scope, per-metric statistics, the
incident capacity plan and the recommendations. These models are the single
source of truth for the data passed between the processor, the recommender,
the console reporter and the JSON exporter.

Raw and derived series are not models: they are plain ``Dict[int, float]``
mappings from epoch milliseconds to value (see ``kubetune.core.series``).
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..core.series import AlignedSeries, series_to_iso_points
from ..utils.date_utils import ensure_utc, to_iso_z


class AnalysisMode(str, Enum):
    """The two supported analysis modes."""

    AUDIT = "audit"
    INCIDENT = "incident"


class TimeWindow(BaseModel):
    """A resolved [start, end) analysis window in UTC."""

    model_config = ConfigDict(frozen=True)

    start: datetime = Field(..., description="Inclusive window start (UTC).")
    end: datetime = Field(..., description="Exclusive window end (UTC).")

    @model_validator(mode="after")
    def _check_order(self) -> "TimeWindow":
        if ensure_utc(self.start) >= ensure_utc(self.end):
            raise ValueError("window start must be before window end")
        return self

    @property
    def duration_seconds(self) -> float:
        return (self.end - self.start).total_seconds()

    @property
    def hours(self) -> float:
        return round(self.duration_seconds / 3600, 2)

    @property
    def minutes(self) -> float:
        return round(self.duration_seconds / 60, 2)

    def to_export(self) -> Dict[str, Any]:
        return {
            "from": to_iso_z(self.start),
            "to": to_iso_z(self.end),
            "hours": self.hours,
            "minutes": self.minutes,
        }


class Scope(BaseModel):
    """The Kubernetes objects a run is scoped to."""

    cluster: str = Field(..., description="Value of the kube_cluster_name tag.")
    namespace: str = Field("default", description="Kubernetes namespace.")
    deployment: Optional[str] = Field(None, description="Deployment to deep-dive.")
    hpa: Optional[str] = Field(None, description="HPA name; defaults to the deployment name.")
    site: str = Field("datadoghq.com", description="Datadog site the queries were sent to.")

    @model_validator(mode="after")
    def _default_hpa(self) -> "Scope":
        if self.hpa is None and self.deployment:
            self.hpa = self.deployment
        return self

    def describe(self) -> str:
        if self.deployment:
            return (
                f"cluster={self.cluster} namespace={self.namespace} "
                f"deployment={self.deployment} hpa={self.hpa}"
            )
        return f"cluster={self.cluster}"


class MetricQuery(BaseModel):
    """A logical metric name bound to an opaque Datadog query expression."""

    model_config = ConfigDict(frozen=True)

    name: str
    query: str


class SeriesStats(BaseModel):
    """Summary statistics of one aligned series."""

    model_config = ConfigDict(frozen=True)

    samples: int
    min: float
    avg: float
    max: float
    last: float


class PeakRatio(BaseModel):
    """The instant where numerator/denominator peaked."""

    timestamp: int = Field(..., description="Epoch milliseconds of the peak sample.")
    ratio: float
    numerator: float
    denominator: float


class CapacityTarget(BaseModel):
    """Allocatable capacity needed so that the observed peak sits at `target`."""

    target: float = Field(..., description="Target requested/allocatable ratio, e.g. 0.8.")
    required_denominator: float
    scale_factor: float


class CapacityPlan(BaseModel):
    """
    Peak-based capacity plan for the cluster CPU requests/allocatable ratio.
    """

    peak_timestamp: datetime
    peak_ratio: float = Field(..., description="Peak requested percentage of allocatable.")
    peak_numerator: float = Field(..., description="Requested cores at the peak.")
    peak_denominator: float = Field(..., description="Allocatable cores at the peak.")
    targets: Dict[str, CapacityTarget] = Field(default_factory=dict)

    def required_denominator(self, target: float) -> float:
        return self.peak_numerator / target

    def scale_factor(self, target: float) -> float:
        return self.required_denominator(target) / self.peak_denominator

    def to_export(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "peakTimestamp": to_iso_z(self.peak_timestamp),
            "peakRequestedPct": self.peak_ratio,
            "peakRequestedCores": self.peak_numerator,
            "allocatableAtPeakCores": self.peak_denominator,
        }
        for key, target in self.targets.items():
            data[f"requiredAllocatableFor{key}Pct"] = target.required_denominator
            data[f"scaleFactorFor{key}Pct"] = target.scale_factor
        return data


class RecommendationType(str, Enum):
    """Enumeration of possible recommendation types."""

    REDUCE_CPU_REQUESTS = "REDUCE_CPU_REQUESTS"
    REVIEW_CPU_REQUESTS = "REVIEW_CPU_REQUESTS"
    REDUCE_MEMORY_REQUESTS = "REDUCE_MEMORY_REQUESTS"
    SHRINK_DEPLOYMENT_CPU = "SHRINK_DEPLOYMENT_CPU"
    SHRINK_DEPLOYMENT_MEMORY = "SHRINK_DEPLOYMENT_MEMORY"
    REPLICAS_CONSTANT = "REPLICAS_CONSTANT"
    NO_ACTION = "NO_ACTION"
    MEMORY_TARGET = "MEMORY_TARGET"
    CPU_TARGET = "CPU_TARGET"
    SCALE_UP_POLICY = "SCALE_UP_POLICY"
    BASELINE_REPLICAS = "BASELINE_REPLICAS"
    MAX_REPLICAS = "MAX_REPLICAS"


class Recommendation(BaseModel):
    """Represents a single numbered tuning or savings suggestion."""

    step: int = Field(..., description="1-based position in the ordered list.")
    type: RecommendationType = Field(..., description="The category of the recommendation.")
    description: str = Field(..., description="A human-readable description of the recommendation.")
    changed: bool = Field(True, description="False when the step advises keeping the setting unchanged.")


class AnalysisResult(BaseModel):
    """
    The terminal artifact of a run: window, scope, statistics per logical
    metric and (incident mode) the capacity plan, plus the series they were
    computed from.
    """

    mode: AnalysisMode
    window: TimeWindow
    scope: Scope
    metrics: Dict[str, Optional[SeriesStats]] = Field(default_factory=dict)
    capacity_plan: Optional[CapacityPlan] = None
    queries: Dict[str, str] = Field(default_factory=dict)
    raw: Dict[str, AlignedSeries] = Field(default_factory=dict)
    derived: Dict[str, AlignedSeries] = Field(default_factory=dict)
    recommendations: List[Recommendation] = Field(default_factory=list)

    def to_export(self) -> Dict[str, Any]:
        """Builds the JSON-serializable export document."""
        output: Dict[str, Any] = {
            "mode": self.mode.value,
            "window": self.window.to_export(),
            "scope": self.scope.model_dump(exclude_none=True),
            "metrics": {
                name: (stats.model_dump() if stats is not None else None) for name, stats in self.metrics.items()
            },
        }
        if self.mode == AnalysisMode.INCIDENT:
            output["capacityPlanning"] = self.capacity_plan.to_export() if self.capacity_plan else None
        output["recommendations"] = [rec.model_dump(mode="json") for rec in self.recommendations]
        output["queries"] = dict(self.queries)
        output["raw"] = {name: series_to_iso_points(series) for name, series in self.raw.items()}
        output["derived"] = {name: series_to_iso_points(series) for name, series in self.derived.items()}
        return output

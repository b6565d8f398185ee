# src/kubetune/models/thresholds.py
"""
Pydantic models holding the Recommender thresholds. Values are informative
tuning hints, not hard limits.
"""

from pydantic import BaseModel, Field


class AuditThresholds(BaseModel):
    """Thresholds for the cluster-wide cost audit rules."""

    cpu_waste_high_pct: float = Field(30.0, description="Avg CPU waste above which requests should shrink broadly.")
    cpu_waste_moderate_pct: float = Field(
        15.0, description="Avg CPU waste above which top requesters deserve review."
    )
    mem_waste_high_pct: float = Field(25.0, description="Avg memory waste above which memory requests should shrink.")
    deployment_cpu_low_pct: float = Field(
        50.0, description="Avg deployment CPU usage vs requests below which to shrink."
    )
    deployment_mem_low_pct: float = Field(
        50.0, description="Avg deployment memory usage vs requests below which to shrink."
    )
    replica_range: float = Field(
        0.0, description="HPA current-replica spread (max - min) at or below which replicas are constant."
    )


class IncidentThresholds(BaseModel):
    """Thresholds for the five-step incident tuning order."""

    memory_peak_pct: float = Field(
        100.0, description="Peak deployment memory usage vs requests that lowers the memory target."
    )
    cpu_peak_pct: float = Field(85.0, description="Peak deployment CPU usage vs requests that lowers the CPU target.")
    unavailable_peak_pct: float = Field(
        5.0, description="Peak unavailable replica percentage that calls for scale-up tuning."
    )
    replica_gap: float = Field(0.0, description="Desired minus current replicas above which the HPA lagged demand.")
    pending_pods: float = Field(0.0, description="Peak pending pods above which the replica baseline should rise.")

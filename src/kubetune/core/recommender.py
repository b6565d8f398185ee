# src/kubetune/core/recommender.py

import logging
from typing import Dict, List, Optional

from ..models.metrics import (
    AnalysisMode,
    AnalysisResult,
    Recommendation,
    RecommendationType,
    SeriesStats,
)
from ..models.thresholds import AuditThresholds, IncidentThresholds
from ..utils.formatting import format_number

LOG = logging.getLogger(__name__)

Metrics = Dict[str, Optional[SeriesStats]]

AUDIT_NOTE = "validate changes on a single workload and re-run the audit before applying broadly."
INCIDENT_NOTE = "keep limits.memory as-is unless OOMKills or near-limit usage are observed."


class Recommender:
    """
    Evaluates summarized metrics against fixed thresholds and produces an
    ordered, numbered list of tuning suggestions.

    Rules are independent: none short-circuits another, and a metric whose
    statistics are absent never fires a rule.
    """

    def __init__(
        self,
        audit_thresholds: Optional[AuditThresholds] = None,
        incident_thresholds: Optional[IncidentThresholds] = None,
    ):
        self.audit_thresholds = audit_thresholds or AuditThresholds()
        self.incident_thresholds = incident_thresholds or IncidentThresholds()
        LOG.debug(
            "Recommender initialized with thresholds: audit=%s incident=%s",
            self.audit_thresholds,
            self.incident_thresholds,
        )

    def generate(self, result: AnalysisResult) -> List[Recommendation]:
        """Dispatches to the rule set of the result's mode."""
        if result.mode == AnalysisMode.INCIDENT:
            return self.generate_incident_recommendations(result.metrics)
        return self.generate_audit_recommendations(result.metrics)

    def generate_audit_recommendations(self, metrics: Metrics) -> List[Recommendation]:
        """Savings opportunities for a cluster-wide cost audit."""
        t = self.audit_thresholds
        found = []

        cpu_waste = metrics.get("cluster_cpu_waste_pct")
        mem_waste = metrics.get("cluster_mem_waste_pct")
        deploy_cpu = metrics.get("deployment_cpu_used_vs_requests_pct")
        deploy_mem = metrics.get("deployment_mem_used_vs_requests_pct")
        hpa_current = metrics.get("hpa_current_replicas")

        # The two CPU waste brackets are exclusive: > high, else > moderate.
        if cpu_waste and cpu_waste.avg > t.cpu_waste_high_pct:
            found.append(
                (
                    RecommendationType.REDUCE_CPU_REQUESTS,
                    f"Cluster CPU waste averages {format_number(cpu_waste.avg)}%. "
                    "Reduce CPU requests across workloads.",
                )
            )
        elif cpu_waste and cpu_waste.avg > t.cpu_waste_moderate_pct:
            found.append(
                (
                    RecommendationType.REVIEW_CPU_REQUESTS,
                    f"Moderate CPU waste (avg {format_number(cpu_waste.avg)}%). "
                    "Review top CPU-requesting deployments.",
                )
            )

        if mem_waste and mem_waste.avg > t.mem_waste_high_pct:
            found.append(
                (
                    RecommendationType.REDUCE_MEMORY_REQUESTS,
                    f"Cluster memory waste averages {format_number(mem_waste.avg)}%. "
                    "Reduce memory requests (watch for OOMKills).",
                )
            )

        if deploy_cpu and deploy_cpu.avg < t.deployment_cpu_low_pct:
            found.append(
                (
                    RecommendationType.SHRINK_DEPLOYMENT_CPU,
                    f"Deployment CPU usage averages {format_number(deploy_cpu.avg)}% of requests. "
                    "CPU requests can be reduced.",
                )
            )

        if deploy_mem and deploy_mem.avg < t.deployment_mem_low_pct:
            found.append(
                (
                    RecommendationType.SHRINK_DEPLOYMENT_MEMORY,
                    f"Deployment memory usage averages {format_number(deploy_mem.avg)}% of requests. "
                    "Consider lowering memory requests.",
                )
            )

        if hpa_current and (hpa_current.max - hpa_current.min) <= t.replica_range:
            found.append(
                (
                    RecommendationType.REPLICAS_CONSTANT,
                    f"HPA replicas constant at {format_number(hpa_current.avg, 0)}. "
                    "Consider reducing minReplicas if load permits.",
                )
            )

        if not found:
            LOG.info("No audit rule fired for this window.")
            return [
                Recommendation(
                    step=1,
                    type=RecommendationType.NO_ACTION,
                    description="No obvious savings detected. Cluster appears well-tuned for this window.",
                    changed=False,
                )
            ]

        return [
            Recommendation(step=step, type=rec_type, description=description)
            for step, (rec_type, description) in enumerate(found, start=1)
        ]

    def generate_incident_recommendations(self, metrics: Metrics) -> List[Recommendation]:
        """
        The fixed five-step incident order: memory target, CPU target,
        scale-up policy, baseline replica count, maximum replica count.
        Each step either advises a change or reports it as unchanged.
        """
        t = self.incident_thresholds
        mem = metrics.get("deployment_mem_used_vs_requests_pct")
        cpu = metrics.get("deployment_cpu_used_vs_requests_pct")
        unavailable = metrics.get("deployment_unavailable_pct")
        pending = metrics.get("pending_pods")
        hpa_current = metrics.get("hpa_current_replicas")
        hpa_desired = metrics.get("hpa_desired_replicas")
        hpa_max = metrics.get("hpa_max_replicas")

        hpa_gap = hpa_desired.max - hpa_current.max if hpa_desired and hpa_current else None

        steps = []

        if mem and mem.max > t.memory_peak_pct:
            steps.append(
                (
                    RecommendationType.MEMORY_TARGET,
                    True,
                    f"Lower HPA memory target first (for example 90 -> 80); "
                    f"memory peaked at {format_number(mem.max)}% of requests.",
                )
            )
        else:
            steps.append(
                (
                    RecommendationType.MEMORY_TARGET,
                    False,
                    "Keep memory target unchanged (memory pressure is not the primary signal).",
                )
            )

        if cpu and cpu.max > t.cpu_peak_pct:
            steps.append(
                (
                    RecommendationType.CPU_TARGET,
                    True,
                    f"Lower HPA CPU target second (for example 70 -> 65); "
                    f"CPU peaked at {format_number(cpu.max)}% of requests.",
                )
            )
        else:
            steps.append(
                (
                    RecommendationType.CPU_TARGET,
                    False,
                    "Keep CPU target unchanged unless future windows show sustained CPU pressure.",
                )
            )

        unstable = (unavailable is not None and unavailable.max > t.unavailable_peak_pct) or (
            hpa_gap is not None and hpa_gap > t.replica_gap
        )
        if unstable:
            steps.append(
                (
                    RecommendationType.SCALE_UP_POLICY,
                    True,
                    "If instability remains, tune scaleUp policies (add Pods + Percent policy).",
                )
            )
        else:
            steps.append(
                (
                    RecommendationType.SCALE_UP_POLICY,
                    False,
                    "ScaleUp policy can stay unchanged while stability remains good.",
                )
            )

        if pending and pending.max > t.pending_pods:
            steps.append(
                (
                    RecommendationType.BASELINE_REPLICAS,
                    True,
                    f"Increase replicaCount baseline: burst cold-start is visible "
                    f"({format_number(pending.max, 0)} pending pods at peak).",
                )
            )
        else:
            steps.append(
                (
                    RecommendationType.BASELINE_REPLICAS,
                    False,
                    "Keep replicaCount baseline unchanged; no burst cold-start is visible.",
                )
            )

        if hpa_current and hpa_max and hpa_current.max >= hpa_max.max:
            steps.append(
                (
                    RecommendationType.MAX_REPLICAS,
                    True,
                    f"Increase maxReplicaCount last (HPA reached its ceiling of {format_number(hpa_max.max, 0)}), "
                    "and only with enough node autoscaler headroom.",
                )
            )
        else:
            steps.append(
                (
                    RecommendationType.MAX_REPLICAS,
                    False,
                    "Keep maxReplicaCount unchanged; the HPA stayed below its ceiling.",
                )
            )

        return [
            Recommendation(step=step, type=rec_type, description=description, changed=changed)
            for step, (rec_type, changed, description) in enumerate(steps, start=1)
        ]

# src/kubetune/core/catalog.py
"""
Builds the named Datadog query set for a scope and analysis mode.

The mapping is a pure function of (scope, mode). Query expressions are
opaque to the rest of the pipeline; downstream code only relies on the
logical names defined here.
"""

from typing import Dict

from ..models.metrics import AnalysisMode, MetricQuery, Scope
from .exceptions import MissingScopeError

# Logical metric names
CLUSTER_CPU_USAGE_NANO = "cluster_cpu_usage_nano"
CLUSTER_CPU_ALLOCATABLE_CORES = "cluster_cpu_allocatable_cores"
CLUSTER_CPU_REQUESTS_CORES = "cluster_cpu_requests_cores"
CLUSTER_MEM_USAGE_BYTES = "cluster_mem_usage_bytes"
CLUSTER_MEM_ALLOCATABLE_BYTES = "cluster_mem_allocatable_bytes"
CLUSTER_MEM_REQUESTS_BYTES = "cluster_mem_requests_bytes"
CLUSTER_NODE_COUNT = "cluster_node_count"

DEPLOYMENT_CPU_USAGE_NANO = "deployment_cpu_usage_nano"
DEPLOYMENT_CPU_REQUESTS_CORES = "deployment_cpu_requests_cores"
DEPLOYMENT_MEM_USAGE_BYTES = "deployment_mem_usage_bytes"
DEPLOYMENT_MEM_REQUESTS_BYTES = "deployment_mem_requests_bytes"
HPA_CURRENT_REPLICAS = "hpa_current_replicas"
HPA_DESIRED_REPLICAS = "hpa_desired_replicas"
HPA_MAX_REPLICAS = "hpa_max_replicas"
HPA_MIN_REPLICAS = "hpa_min_replicas"

PENDING_PODS = "pending_pods"
DEPLOYMENT_REPLICAS_UNAVAILABLE = "deployment_replicas_unavailable"
DEPLOYMENT_REPLICAS_DESIRED = "deployment_replicas_desired"


def _cluster_tags(scope: Scope) -> str:
    return f"kube_cluster_name:{scope.cluster}"


def _namespace_tags(scope: Scope) -> str:
    return f"{_cluster_tags(scope)},kube_namespace:{scope.namespace}"


def _deployment_tags(scope: Scope) -> str:
    return f"{_namespace_tags(scope)},kube_deployment:{scope.deployment}"


def _hpa_tags(scope: Scope) -> str:
    return f"{_namespace_tags(scope)},horizontalpodautoscaler:{scope.hpa or scope.deployment}"


def build_query_catalog(scope: Scope, mode: AnalysisMode) -> Dict[str, MetricQuery]:
    """
    Returns the logical-name -> MetricQuery mapping for one run.

    Cluster CPU and memory usage/allocatable/requests are always included.
    A deployment adds deployment usage/requests and HPA replica counts.
    Audit mode adds the node count; incident mode adds pending pods and
    deployment unavailable/desired replicas, and requires a deployment.

    Raises:
        MissingScopeError: if the cluster is missing, or incident mode has
            no deployment.
    """
    if not scope.cluster:
        raise MissingScopeError("Missing required --cluster argument.")
    if mode == AnalysisMode.INCIDENT and not scope.deployment:
        raise MissingScopeError("Incident mode requires --deployment (or INCIDENT_DEFAULT_DEPLOYMENT).")

    cluster = _cluster_tags(scope)
    queries: Dict[str, str] = {
        CLUSTER_CPU_USAGE_NANO: f"sum:kubernetes.cpu.usage.total{{{cluster}}}.rollup(avg,300)",
        CLUSTER_CPU_ALLOCATABLE_CORES: f"sum:kubernetes_state.node.cpu_allocatable.total{{{cluster}}}",
        CLUSTER_CPU_REQUESTS_CORES: f"sum:kubernetes.cpu.requests{{{cluster}}}",
        CLUSTER_MEM_USAGE_BYTES: f"sum:kubernetes.memory.usage{{{cluster}}}",
        CLUSTER_MEM_ALLOCATABLE_BYTES: f"sum:kubernetes_state.node.memory_allocatable{{{cluster}}}",
        CLUSTER_MEM_REQUESTS_BYTES: f"sum:kubernetes.memory.requests{{{cluster}}}",
    }

    if mode == AnalysisMode.AUDIT:
        queries[CLUSTER_NODE_COUNT] = f"sum:kubernetes_state.node.count{{{cluster}}}"

    if scope.deployment:
        deploy = _deployment_tags(scope)
        hpa = _hpa_tags(scope)
        queries.update(
            {
                DEPLOYMENT_CPU_USAGE_NANO: f"sum:kubernetes.cpu.usage.total{{{deploy}}}.rollup(avg,300)",
                DEPLOYMENT_CPU_REQUESTS_CORES: f"sum:kubernetes.cpu.requests{{{deploy}}}",
                DEPLOYMENT_MEM_USAGE_BYTES: f"sum:kubernetes.memory.usage{{{deploy}}}",
                DEPLOYMENT_MEM_REQUESTS_BYTES: f"sum:kubernetes.memory.requests{{{deploy}}}",
                HPA_CURRENT_REPLICAS: f"max:kubernetes_state.hpa.current_replicas{{{hpa}}}",
                HPA_DESIRED_REPLICAS: f"max:kubernetes_state.hpa.desired_replicas{{{hpa}}}",
                HPA_MAX_REPLICAS: f"max:kubernetes_state.hpa.max_replicas{{{hpa}}}",
                HPA_MIN_REPLICAS: f"min:kubernetes_state.hpa.min_replicas{{{hpa}}}",
            }
        )

    if mode == AnalysisMode.INCIDENT:
        namespace = _namespace_tags(scope)
        deploy = _deployment_tags(scope)
        queries.update(
            {
                PENDING_PODS: f"sum:kubernetes_state.pod.status_phase{{{namespace},phase:pending}}",
                DEPLOYMENT_REPLICAS_UNAVAILABLE: f"max:kubernetes_state.deployment.replicas_unavailable{{{deploy}}}",
                DEPLOYMENT_REPLICAS_DESIRED: f"max:kubernetes_state.deployment.replicas_desired{{{deploy}}}",
            }
        )

    return {name: MetricQuery(name=name, query=query) for name, query in queries.items()}

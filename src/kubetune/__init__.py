# src/kubetune/__init__.py
"""
kubetune: Datadog-driven capacity and HPA tuning analysis for Kubernetes.
"""

__version__ = "0.1.0"

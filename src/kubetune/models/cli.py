# src/kubetune/models/cli.py
"""
Data models for kubetune CLI command options using Typer.
This allows for clean dependency injection of parameters.
"""

from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from ..core.exceptions import MissingScopeError
from .metrics import AnalysisMode, Scope


class ScopeOptions:
    """Dependency-injectable model for the Kubernetes scope options."""

    def __init__(
        self,
        cluster: Annotated[
            Optional[str],
            typer.Option("--cluster", help="Kubernetes cluster name (kube_cluster_name tag). Required."),
        ] = None,
        namespace: Annotated[
            str,
            typer.Option("--namespace", help="Kubernetes namespace."),
        ] = "default",
        deployment: Annotated[
            Optional[str],
            typer.Option("--deployment", help="Deployment to deep-dive."),
        ] = None,
        hpa: Annotated[
            Optional[str],
            typer.Option("--hpa", help="HPA name (default: the deployment name)."),
        ] = None,
        site: Annotated[
            Optional[str],
            typer.Option("--site", help="Datadog site (default: $DD_SITE or datadoghq.com)."),
        ] = None,
    ):
        self.cluster = cluster
        self.namespace = namespace
        self.deployment = deployment
        self.hpa = hpa
        self.site = site

    def to_scope(self, mode: AnalysisMode, site: str, default_deployment: Optional[str] = None) -> Scope:
        """
        Validates the options and builds the Scope for a run.

        Raises:
            MissingScopeError: if --cluster is missing, or incident mode has
                no deployment and no configured default.
        """
        cluster = (self.cluster or "").strip()
        if not cluster:
            raise MissingScopeError("Missing required --cluster argument.")

        deployment = self.deployment
        if mode == AnalysisMode.INCIDENT and not deployment:
            deployment = default_deployment
            if not deployment:
                raise MissingScopeError(
                    "Incident mode requires --deployment (or the INCIDENT_DEFAULT_DEPLOYMENT setting)."
                )

        return Scope(
            cluster=cluster,
            namespace=self.namespace or "default",
            deployment=deployment or None,
            hpa=self.hpa or None,
            site=site,
        )


class WindowOptions:
    """Dependency-injectable model for the time bound options."""

    def __init__(
        self,
        start: Annotated[
            Optional[str],
            typer.Option("--from", help="Window start time (ISO-8601)."),
        ] = None,
        end: Annotated[
            Optional[str],
            typer.Option("--to", help="Window end time (ISO-8601, default: now)."),
        ] = None,
        window: Annotated[
            Optional[str],
            typer.Option("--window", help="Lookback from --to, e.g. '30m', '24h', '7d'."),
        ] = None,
    ):
        self.start = start
        self.end = end
        self.window = window


class OutputOptions:
    """Dependency-injectable model for output/export options."""

    def __init__(
        self,
        out: Annotated[
            Optional[Path],
            typer.Option(
                "--out",
                help="Write the full JSON output to this file.",
                exists=False,
                dir_okay=False,
                writable=True,
            ),
        ] = None,
        pretty: Annotated[bool, typer.Option("--pretty", help="Pretty-print JSON output.")] = False,
    ):
        self.out = out
        self.pretty = pretty

    @property
    def is_enabled(self) -> bool:
        """Checks if file output is enabled."""
        return self.out is not None

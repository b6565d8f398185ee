# src/kubetune/cli/audit.py
"""
Implements the `audit` command: a wide-window, cluster-wide waste audit.
"""

import logging
from pathlib import Path
from typing import Optional

import typer
from typing_extensions import Annotated

from ..models.cli import OutputOptions, ScopeOptions, WindowOptions
from ..models.metrics import AnalysisMode
from .utils import run_analysis

logger = logging.getLogger(__name__)

app = typer.Typer(help="Discover Kubernetes cost-saving opportunities from Datadog metrics.", add_completion=False)


@app.callback(invoke_without_command=True)
def audit(
    ctx: typer.Context,
    cluster: Annotated[Optional[str], typer.Option("--cluster", help="Kubernetes cluster name (required).")] = None,
    namespace: Annotated[str, typer.Option("--namespace", help="Kubernetes namespace.")] = "default",
    deployment: Annotated[
        Optional[str], typer.Option("--deployment", help="Deployment to deep-dive (omit for cluster-only).")
    ] = None,
    hpa: Annotated[Optional[str], typer.Option("--hpa", help="HPA name (default: <deployment>).")] = None,
    start: Annotated[Optional[str], typer.Option("--from", help="Window start time (ISO-8601).")] = None,
    end: Annotated[Optional[str], typer.Option("--to", help="Window end time (ISO-8601, default: now).")] = None,
    window: Annotated[
        Optional[str],
        typer.Option("--window", help="Lookback from --to (default: 24h). Supported suffixes: m, h, d."),
    ] = None,
    site: Annotated[
        Optional[str], typer.Option("--site", help="Datadog site (default: $DD_SITE or datadoghq.com).")
    ] = None,
    out: Annotated[
        Optional[Path],
        typer.Option("--out", help="Write full JSON output to file.", dir_okay=False, writable=True),
    ] = None,
    pretty: Annotated[bool, typer.Option("--pretty", help="Pretty-print JSON output.")] = False,
    timeout: Annotated[
        Optional[float], typer.Option("--timeout", help="Per-request timeout in seconds.", min=0.1)
    ] = None,
):
    """
    Gather Datadog metrics to discover Kubernetes cost-saving opportunities.

    Requires DD_API_KEY and DD_APP_KEY in the environment.
    """
    if ctx.invoked_subcommand is not None:
        return

    logger.info("Starting cost audit...")
    run_analysis(
        AnalysisMode.AUDIT,
        ScopeOptions(cluster=cluster, namespace=namespace, deployment=deployment, hpa=hpa, site=site),
        WindowOptions(start=start, end=end, window=window),
        OutputOptions(out=out, pretty=pretty),
        timeout=timeout,
    )

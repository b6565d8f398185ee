# src/kubetune/cli/incident.py
"""
Implements the `incident` command: a narrow-window capacity and stability review.
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

app = typer.Typer(help="Analyse an incident window for HPA tuning and capacity planning.", add_completion=False)


@app.callback(invoke_without_command=True)
def incident(
    ctx: typer.Context,
    cluster: Annotated[Optional[str], typer.Option("--cluster", help="Kubernetes cluster name (required).")] = None,
    namespace: Annotated[str, typer.Option("--namespace", help="Kubernetes namespace.")] = "default",
    deployment: Annotated[
        Optional[str],
        typer.Option("--deployment", help="Deployment under investigation (default: $INCIDENT_DEFAULT_DEPLOYMENT)."),
    ] = None,
    hpa: Annotated[Optional[str], typer.Option("--hpa", help="HPA name (default: <deployment>).")] = None,
    start: Annotated[Optional[str], typer.Option("--from", help="Window start time (ISO-8601).")] = None,
    end: Annotated[Optional[str], typer.Option("--to", help="Window end time (ISO-8601, default: now).")] = None,
    window: Annotated[
        Optional[str],
        typer.Option("--window", help="Lookback from --to (default: 30m). Supported suffixes: m, h, d."),
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
    Gather Datadog metrics around an incident and suggest an HPA tuning order.

    Requires DD_API_KEY and DD_APP_KEY in the environment.
    """
    if ctx.invoked_subcommand is not None:
        return

    logger.info("Starting incident analysis...")
    run_analysis(
        AnalysisMode.INCIDENT,
        ScopeOptions(cluster=cluster, namespace=namespace, deployment=deployment, hpa=hpa, site=site),
        WindowOptions(start=start, end=end, window=window),
        OutputOptions(out=out, pretty=pretty),
        timeout=timeout,
    )

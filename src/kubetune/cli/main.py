# src/kubetune/cli/main.py
"""
This module is the main entry point for the kubetune CLI.

It aggregates the analysis commands (audit, incident) from the submodules.
"""

import logging

import typer

from ..core.config import config
from . import audit, incident

# --- Setup Logger ---
logging.basicConfig(
    level=config.LOG_LEVEL.upper(),
    format="%(asctime)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


app = typer.Typer(
    name="kubetune",
    help="Analyse Datadog Kubernetes metrics to tune requests, HPAs and cluster capacity.",
    add_completion=False,
)


def version_callback(value: bool):
    """
    Prints the version of kubetune.
    """
    if value:
        from .. import __version__

        typer.echo(f"kubetune version: {__version__}")
        raise typer.Exit()


@app.command()
def version():
    """
    Show the version of kubetune.
    """
    from .. import __version__

    typer.echo(f"kubetune version: {__version__}")


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    """
    kubetune CLI main entry point.
    """
    pass


# Register command sub-apps
app.add_typer(audit.app, name="audit")
app.add_typer(incident.app, name="incident")


if __name__ == "__main__":
    app()

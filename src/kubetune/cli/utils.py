# src/kubetune/cli/utils.py
import asyncio
import logging
import sys
import traceback
from typing import Optional

import typer

from ..collectors.datadog_collector import DatadogCollector
from ..core.config import Config
from ..core.exceptions import KubeTuneError
from ..core.processor import AnalysisProcessor
from ..core.recommender import Recommender
from ..core.window import resolve_time_window
from ..exporters.json_exporter import JSONExporter
from ..models.cli import OutputOptions, ScopeOptions, WindowOptions
from ..models.metrics import AnalysisMode, AnalysisResult
from ..reporters.console_reporter import ConsoleReporter

logger = logging.getLogger(__name__)


def default_window_for(mode: AnalysisMode, settings: Config) -> str:
    if mode == AnalysisMode.INCIDENT:
        return settings.INCIDENT_DEFAULT_WINDOW
    return settings.AUDIT_DEFAULT_WINDOW


async def handle_export(result: AnalysisResult, output_options: OutputOptions) -> str:
    """Writes the full analysis document to the requested file."""
    exporter = JSONExporter(pretty=output_options.pretty)
    written_path = await exporter.export(result.to_export(), str(output_options.out))
    logger.info(f"Successfully exported analysis to {written_path}")
    return written_path


def run_analysis(
    mode: AnalysisMode,
    scope_options: ScopeOptions,
    window_options: WindowOptions,
    output_options: OutputOptions,
    timeout: Optional[float] = None,
) -> AnalysisResult:
    """
    Validates inputs, runs the analysis, prints the report and writes the
    optional export.

    Credentials, scope and window are all checked before any request is
    sent. Any failure prints a single-line message on stderr and exits 1.
    """
    try:
        settings = Config()
        settings.validate_instance()
    except (OSError, ValueError) as e:
        logger.error("Failed to load configuration: %s", e)
        print(f"Failed to load configuration: {e}", file=sys.stderr)
        raise typer.Exit(code=1)

    async def _run_async() -> AnalysisResult:
        settings.require_credentials()
        site = settings.resolve_site(scope_options.site)
        scope = scope_options.to_scope(mode, site=site, default_deployment=settings.INCIDENT_DEFAULT_DEPLOYMENT)
        window = resolve_time_window(
            start=window_options.start,
            end=window_options.end,
            window=window_options.window,
            default_window=default_window_for(mode, settings),
        )

        collector = DatadogCollector(settings, site=site, timeout=timeout)
        processor = AnalysisProcessor(
            collector,
            recommender=Recommender(),
            capacity_targets=settings.capacity_targets,
        )
        try:
            result = await processor.run(scope, mode, window)
        finally:
            await collector.close()

        ConsoleReporter().report(result)

        if output_options.is_enabled:
            written_path = await handle_export(result, output_options)
            print(f"\nSaved detailed output to {written_path}")
        return result

    try:
        return asyncio.run(_run_async())
    except KubeTuneError as e:
        logger.error("%s analysis failed: %s", mode.value, e)
        print(str(e), file=sys.stderr)
        raise typer.Exit(code=1)
    except OSError as e:
        logger.error(f"Failed to write analysis output: {e}")
        print(f"Failed to write analysis output: {e}", file=sys.stderr)
        raise typer.Exit(code=1)
    except Exception as e:
        logger.error(f"An unexpected error occurred: {e}")
        logger.debug(traceback.format_exc())
        print(f"Unexpected error: {e}", file=sys.stderr)
        raise typer.Exit(code=1)

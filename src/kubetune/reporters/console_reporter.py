# src/kubetune/reporters/console_reporter.py
"""
A reporter that displays an analysis result in the console.
"""

import logging
from typing import Dict, List, Optional

from rich.console import Console
from rich.table import Table

from ..core.recommender import AUDIT_NOTE, INCIDENT_NOTE
from ..models.metrics import AnalysisMode, AnalysisResult, CapacityPlan, Recommendation, SeriesStats
from ..utils.date_utils import to_iso_z
from ..utils.formatting import format_number
from .base_reporter import BaseReporter

logger = logging.getLogger(__name__)

# Metrics rendered with a percent suffix
PERCENT_SUFFIX = "_pct"


class ConsoleReporter(BaseReporter):
    """
    Renders an AnalysisResult to the console using the 'rich' library.
    """

    def __init__(self):
        self.console = Console()

    def report(self, result: AnalysisResult):
        """
        Prints the window header, the metrics table, the capacity plan
        (incident mode) and the numbered recommendations.
        """
        window = result.window
        if result.mode == AnalysisMode.INCIDENT:
            title = f"Incident metrics ({to_iso_z(window.start)} -> {to_iso_z(window.end)}, {window.minutes}m)"
        else:
            title = f"Cost audit ({to_iso_z(window.start)} -> {to_iso_z(window.end)}, {window.hours}h)"
        self.console.print(title, style="bold")
        self.console.print(f"scope: {result.scope.describe()} site={result.scope.site}")

        self.report_metrics(result.metrics)

        if result.mode == AnalysisMode.INCIDENT:
            self.report_capacity_plan(result.capacity_plan)

        self.report_recommendations(result.recommendations, mode=result.mode)

    def report_metrics(self, metrics: Dict[str, Optional[SeriesStats]]):
        table = Table(
            title="Metrics",
            header_style="bold magenta",
        )
        table.add_column("Metric", style="cyan")
        table.add_column("Avg", justify="right")
        table.add_column("Min", justify="right")
        table.add_column("Max", justify="right")
        table.add_column("Last", justify="right")
        table.add_column("Samples", style="dim", justify="right")

        for name, stats in metrics.items():
            if stats is None:
                table.add_row(name, "n/a", "n/a", "n/a", "n/a", "0")
                continue
            unit = "%" if name.endswith(PERCENT_SUFFIX) else ""
            table.add_row(
                name,
                f"{format_number(stats.avg)}{unit}",
                f"{format_number(stats.min)}{unit}",
                f"{format_number(stats.max)}{unit}",
                f"{format_number(stats.last)}{unit}",
                str(stats.samples),
            )

        self.console.print(table)

    def report_capacity_plan(self, plan: Optional[CapacityPlan]):
        if plan is None:
            self.console.print("capacity_peak: n/a", style="yellow")
            return

        self.console.print(
            f"capacity_peak: requested={format_number(plan.peak_numerator)} cores "
            f"allocatable={format_number(plan.peak_denominator)} cores "
            f"requested_pct={format_number(plan.peak_ratio)}% "
            f"at {to_iso_z(plan.peak_timestamp)}"
        )

        table = Table(title="Capacity targets", header_style="bold magenta")
        table.add_column("Target", style="cyan")
        table.add_column("Required allocatable (cores)", justify="right")
        table.add_column("Scale factor", justify="right")
        for key, target in plan.targets.items():
            table.add_row(
                f"{key}%",
                format_number(target.required_denominator),
                f"{format_number(target.scale_factor)}x",
            )
        self.console.print(table)

    def report_recommendations(self, recommendations: List[Recommendation], mode: AnalysisMode = AnalysisMode.AUDIT):
        """
        Displays the numbered recommendations followed by the mode's note.
        """
        heading = "recommended_step_order:" if mode == AnalysisMode.INCIDENT else "savings_opportunities:"
        self.console.print(f"\n{heading}", style="bold")

        if not recommendations:
            self.console.print("  No recommendations to display.", style="green")

        for rec in recommendations:
            style = "bold yellow" if rec.changed else "green"
            self.console.print(f"  {rec.step}) {rec.description}", style=style, highlight=False)

        note = INCIDENT_NOTE if mode == AnalysisMode.INCIDENT else AUDIT_NOTE
        label = "memory_limit_note" if mode == AnalysisMode.INCIDENT else "note"
        self.console.print(f"\n{label}: {note}", style="dim")

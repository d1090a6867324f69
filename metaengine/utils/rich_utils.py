"""
Rich console rendering of analysis reports.

A module-level Console is shared by default; pass your own (for example
``Console(record=True)``) to capture output.
"""

from typing import Optional

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from metaengine.models import MetaAnalysisReport

console = Console()


def build_study_table(report: MetaAnalysisReport) -> Table:
    """Per-study forest rows plus the pooled estimate as the last row."""
    table = Table(title="Study estimates", show_lines=False)
    table.add_column("Study", style="cyan")
    table.add_column("Effect", justify="right")
    table.add_column("95% CI", justify="right")
    table.add_column("Weight %", justify="right")
    for row in report.study_estimates:
        lower, upper = row.confidence_interval
        table.add_row(
            row.study.name,
            f"{row.study.effect_size:.3f}",
            f"[{lower:.3f}, {upper:.3f}]",
            f"{row.weight_percent:.1f}",
        )
    pooled = report.pooled
    table.add_row(
        f"[bold]Pooled ({pooled.model.value})[/bold]",
        f"[bold]{pooled.pooled_effect:.3f}[/bold]",
        f"[{pooled.ci_lower:.3f}, {pooled.ci_upper:.3f}]",
        "100.0",
    )
    return table


def render_report(report: MetaAnalysisReport, target: Optional[Console] = None) -> None:
    """
    Print a report as a study table followed by a summary panel.

    Args:
        report: Completed analysis report
        target: Console to print to (module console if None)
    """
    target = target or console
    target.print(build_study_table(report))
    border_style = "yellow" if report.warnings else "blue"
    target.print(Panel(report.to_summary_text(), title="Meta-analysis summary", border_style=border_style))

"""
Console summary of a run.
"""

from typing import Iterable, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from ..core.models import PlanActionStep, TestResult


def format_step(step: PlanActionStep) -> str:
    fields = dict(step.action.wire_fields())
    fields["planningThoughtAboutTheActionIWillTake"] = step.thought
    return ", ".join(f"{key}: {value}" for key, value in fields.items())


def print_test_results(results: Iterable[TestResult], console: Optional[Console] = None) -> None:
    """Print every spec with its status mark and the actions it took."""
    console = console or Console()
    results = list(results)

    console.print()
    console.print("[bold]Test Summary:[/bold]")
    for index, result in enumerate(results, 1):
        mark = "[green]✔[/green]" if result.passed else "[red]✘[/red]"
        console.print(f"{mark} {index}. {escape(result.spec)}")
        for inner, step in enumerate(result.actions, 1):
            console.print(f"  {index}.{inner}) {escape(format_step(step))}")
        if result.reason and not result.passed:
            console.print(f"  [dim]Reason: {escape(result.reason)}[/dim]")

    table = Table(show_header=True, header_style="bold")
    table.add_column("Specs")
    table.add_column("Passed", style="green")
    table.add_column("Failed", style="red")
    table.add_column("Input tokens")
    table.add_column("Output tokens")
    passed = sum(1 for r in results if r.passed)
    table.add_row(
        str(len(results)),
        str(passed),
        str(len(results) - passed),
        str(sum(r.total_input_tokens for r in results)),
        str(sum(r.total_output_tokens for r in results)),
    )
    console.print(table)

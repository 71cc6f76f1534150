"""Rich table builders for each command."""

from __future__ import annotations

from rich.panel import Panel
from rich.table import Table

from kausality.models.drift import DriftResult, ParentState
from kausality.output.themes import styled_phase, styled_verdict


def parent_state_panel(state: ParentState) -> Panel:
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Parent", str(state.ref))
    table.add_row("Generation", str(state.generation))
    table.add_row(
        "Observed Gen",
        str(state.observed_generation) if state.has_observed_generation else "[dim]unset[/dim]",
    )
    table.add_row("Controller", state.controller_manager or "[dim]unknown[/dim]")
    table.add_row("Controllers", ", ".join(state.controllers) or "[dim]none[/dim]")
    table.add_row("Phase Annot.", state.phase_from_annotation or "[dim]none[/dim]")
    if state.deletion_timestamp:
        table.add_row("Deleting", f"[magenta]{state.deletion_timestamp}[/magenta]")

    return Panel(table, title=f"[bold]{state.ref.kind} {state.ref.name}[/bold]", expand=False)


def conditions_table(state: ParentState) -> Table:
    table = Table(title="Conditions", expand=True)
    table.add_column("Type", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Reason", style="dim")
    table.add_column("Message", max_width=60)

    for c in state.conditions:
        color = "green" if c.status == "True" else "red" if c.status == "False" else "yellow"
        table.add_row(c.type, f"[{color}]{c.status}[/{color}]", c.reason, c.message)
    return table


def drift_result_table(result: DriftResult, title: str) -> Table:
    table = Table(title=title, show_header=False, expand=False, padding=(0, 2))
    table.add_column("Key", style="bold cyan", no_wrap=True)
    table.add_column("Value")

    table.add_row("Verdict", styled_verdict(result.allowed, result.drift_detected))
    table.add_row("Reason", result.reason)
    table.add_row("Parent", str(result.parent_ref) if result.parent_ref else "[dim]none[/dim]")
    table.add_row("Phase", styled_phase(result.lifecycle_phase))
    return table

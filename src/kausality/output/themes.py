"""Lifecycle phase and verdict color maps."""

from kausality.models import LifecyclePhase

PHASE_COLORS: dict[LifecyclePhase, str] = {
    LifecyclePhase.INITIALIZING: "yellow",
    LifecyclePhase.INITIALIZED: "green",
    LifecyclePhase.DELETING: "magenta",
}


def styled_phase(phase: LifecyclePhase | None) -> str:
    if phase is None:
        return "[dim]-[/dim]"
    color = PHASE_COLORS.get(phase, "white")
    return f"[{color}]{phase.value}[/{color}]"


def styled_verdict(allowed: bool, drift_detected: bool) -> str:
    if not allowed:
        return "[red bold]denied[/red bold]"
    if drift_detected:
        return "[yellow]drift (allowed)[/yellow]"
    return "[green]allowed[/green]"

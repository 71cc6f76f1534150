"""Table / JSON / YAML output dispatch."""

from __future__ import annotations

import json

import yaml
from rich.console import Console

from kausality.models.drift import DriftResult, ParentState, parent_state_to_dict

console = Console()


def output_parent_state(state: ParentState, fmt: str) -> None:
    if fmt == "json":
        console.print_json(json.dumps(parent_state_to_dict(state), indent=2))
    elif fmt == "yaml":
        console.print(yaml.dump(parent_state_to_dict(state), default_flow_style=False))
    else:
        from kausality.output.tables import conditions_table, parent_state_panel
        console.print(parent_state_panel(state))
        if state.conditions:
            console.print(conditions_table(state))


def output_drift_result(result: DriftResult, fmt: str, title: str = "Drift Decision") -> None:
    data = result.to_dict()
    if result.parent_state is not None:
        data["parentState"] = parent_state_to_dict(result.parent_state)
    if fmt == "json":
        console.print_json(json.dumps(data, indent=2))
    elif fmt == "yaml":
        console.print(yaml.dump(data, default_flow_style=False))
    else:
        from kausality.output.tables import drift_result_table
        console.print(drift_result_table(result, title))

"""kausality drift <apiVersion> <kind> <name> - Evaluate a mutation for drift."""

from __future__ import annotations

from typing import Optional

import typer

from kausality.cli.options import ContextOption, NamespaceOption, OutputOption
from kausality.core.detector import Detector
from kausality.core.k8s_client import K8sClient
from kausality.core.tracker import parse_updater_hashes
from kausality.models.admission import AdmissionContext, Operation
from kausality.output.formatters import output_drift_result

# Options may follow the positional arguments
app = typer.Typer(context_settings={"allow_interspersed_args": True})


@app.callback(invoke_without_command=True)
def drift(
    api_version: str = typer.Argument(help="apiVersion of the child object"),
    kind: str = typer.Argument(help="Kind of the child object"),
    name: str = typer.Argument(help="Name of the child object"),
    output: str = OutputOption,
    namespace: Optional[str] = NamespaceOption,
    context: Optional[str] = ContextOption,
    field_manager: str = typer.Option("", "--field-manager", help="Field manager of the hypothetical write"),
    user: str = typer.Option("", "--user", help="Attribute the write to this user via updater fingerprints"),
    uid: str = typer.Option("", "--uid", help="UID of the writer, used when --user is empty"),
) -> None:
    """Decide whether a write to the object now would be an expected change or drift."""
    request = AdmissionContext(
        operation=Operation.UPDATE,
        username=user,
        uid=uid,
        field_manager=field_manager,
    )

    k8s = K8sClient(context=context)
    child = k8s.get_object(api_version, kind, name, namespace or "")
    if child is None:
        typer.echo(f"{kind} '{name}' not found.", err=True)
        raise typer.Exit(code=1)

    detector = Detector(k8s)
    if request.actor:
        result = detector.detect_with_username(child, request.actor, parse_updater_hashes(child))
    elif request.field_manager:
        result = detector.detect_with_field_manager(child, request.field_manager)
    else:
        result = detector.detect(child)

    output_drift_result(result, output, title=f"Drift Decision: {kind}/{name}")

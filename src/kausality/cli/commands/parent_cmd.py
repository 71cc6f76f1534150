"""kausality parent <apiVersion> <kind> <name> - Show the controlling parent."""

from __future__ import annotations

from typing import Optional

import typer

from kausality.cli.options import ContextOption, NamespaceOption, OutputOption
from kausality.core.k8s_client import K8sClient
from kausality.core.resolver import ParentResolver, ResolutionError
from kausality.output.formatters import output_parent_state

# Options may follow the positional arguments
app = typer.Typer(context_settings={"allow_interspersed_args": True})


@app.callback(invoke_without_command=True)
def parent(
    api_version: str = typer.Argument(help="apiVersion of the child object"),
    kind: str = typer.Argument(help="Kind of the child object"),
    name: str = typer.Argument(help="Name of the child object"),
    output: str = OutputOption,
    namespace: Optional[str] = NamespaceOption,
    context: Optional[str] = ContextOption,
) -> None:
    """Resolve the controller owner of an object and show its normalized state."""
    k8s = K8sClient(context=context)
    child = k8s.get_object(api_version, kind, name, namespace or "")
    if child is None:
        typer.echo(f"{kind} '{name}' not found.", err=True)
        raise typer.Exit(code=1)

    try:
        state = ParentResolver(k8s).resolve_parent(child)
    except ResolutionError as e:
        typer.echo(f"Failed to resolve parent: {e}", err=True)
        raise typer.Exit(code=1)

    if state is None:
        typer.echo(f"{kind} '{name}' has no controller owner reference.")
        return
    output_parent_state(state, output)

"""Shared CLI options."""

from __future__ import annotations

import typer

OutputOption = typer.Option("table", "--output", "-o", help="Output format: table, json, yaml")
NamespaceOption = typer.Option(None, "--namespace", "-n", help="Namespace of the child object (omit for cluster-scoped)")
ContextOption = typer.Option(None, "--context", help="Kubernetes context name")

"""Root Typer application, mounts sub-commands."""

from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

app = typer.Typer(
    name="kausality",
    help="Kausality - Attribute changes to controllers and detect drift.",
    no_args_is_help=True,
)


@app.callback()
def _configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _register_commands() -> None:
    from kausality.cli.commands.hash_cmd import app as hash_app
    from kausality.cli.commands.parent_cmd import app as parent_app
    from kausality.cli.commands.drift_cmd import app as drift_app

    app.add_typer(hash_app, name="hash", help="Print the fingerprint of an actor identity")
    app.add_typer(parent_app, name="parent", help="Show the controlling parent of an object")
    app.add_typer(drift_app, name="drift", help="Evaluate a mutation of an object for drift")


_register_commands()


def main() -> None:
    app()

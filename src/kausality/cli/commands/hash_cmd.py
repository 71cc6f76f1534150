"""kausality hash <identity> - Print an actor fingerprint."""

from __future__ import annotations

import typer

from kausality.utils.hashes import hash_username, user_identifier

app = typer.Typer()


@app.callback(invoke_without_command=True)
def hash_identity(
    username: str = typer.Argument("", help="Username of the actor"),
    uid: str = typer.Option("", "--uid", help="UID, used when the username is empty"),
) -> None:
    """Print the 5-character fingerprint stored in kausality annotations."""
    identity = user_identifier(username, uid)
    if not identity:
        typer.echo("A username or --uid is required.", err=True)
        raise typer.Exit(code=1)
    typer.echo(hash_username(identity))

"""
gitcollab CLI - repository commands.

Connect the workspace to a remote repository and manage its access token.
"""

from __future__ import annotations

import typer

from gitcollab.cli.common import console, finish, get_session
from gitcollab.cli.errors import ExitCode, print_error

app = typer.Typer(
    name="repo",
    help="Connect the workspace to a repository",
    no_args_is_help=True,
)

token_app = typer.Typer(
    name="token",
    help="Manage the stored access token",
    no_args_is_help=True,
)
app.add_typer(token_app, name="token")


@app.command()
def clone(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Repository URL"),
    token: str | None = typer.Option(
        None,
        "--token",
        help="Access token (not needed for public repositories)",
        envvar="GITCOLLAB_TOKEN",
    ),
    overwrite: bool = typer.Option(
        False,
        "--overwrite",
        help="Delete existing workspace content before cloning",
    ),
) -> None:
    """
    Clone a repository into the workspace and enter read-only mode.

    Examples:
        gitcollab repo clone https://github.com/owner/notes
        gitcollab repo clone git@github.com:owner/notes.git --token ghp_xxx --overwrite
    """
    session = get_session(ctx)
    finish(session.setup.clone(url, token, overwrite=overwrite))


@app.command()
def init(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="URL of an empty remote repository"),
    token: str | None = typer.Option(
        None,
        "--token",
        help="Access token (not needed for public repositories)",
        envvar="GITCOLLAB_TOKEN",
    ),
) -> None:
    """
    Turn the workspace into a repository and push it to an empty remote.
    """
    session = get_session(ctx)
    finish(session.setup.initialize(url, token))


@app.command()
def disconnect(ctx: typer.Context) -> None:
    """
    Forget the connected repository and its token. Files are kept.
    """
    session = get_session(ctx)
    finish(session.setup.disconnect())


def _target_url(ctx: typer.Context, url: str | None) -> str:
    session = get_session(ctx)
    target = url or session.settings.repository_url
    if not target:
        print_error(
            "No repository URL",
            reason="No repository is connected and no URL was given",
            solution="gitcollab repo token set <url>",
        )
        raise typer.Exit(ExitCode.USER_ERROR)
    return target


@token_app.command(name="set")
def set_token(
    ctx: typer.Context,
    url: str | None = typer.Argument(None, help="Repository URL (defaults to the connected one)"),
    token: str = typer.Option(
        ...,
        "--token",
        prompt=True,
        hide_input=True,
        help="Access token",
    ),
) -> None:
    """
    Store the access token for a repository.
    """
    target = _target_url(ctx, url)
    get_session(ctx).credentials.set(target, token.strip())
    console.print(f"[green]Token stored for {target}[/green]")


@token_app.command(name="remove")
def remove_token(
    ctx: typer.Context,
    url: str | None = typer.Argument(None, help="Repository URL (defaults to the connected one)"),
) -> None:
    """
    Remove the stored access token for a repository.
    """
    target = _target_url(ctx, url)
    if get_session(ctx).credentials.remove(target):
        console.print(f"[green]Token removed for {target}[/green]")
    else:
        console.print(f"[dim]No token stored for {target}[/dim]")

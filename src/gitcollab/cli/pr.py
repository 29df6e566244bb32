"""
gitcollab CLI - pull request commands.

List, create, merge and close pull requests for the connected repository.
"""

from __future__ import annotations

import typer
from rich.table import Table

from gitcollab.cli.common import (
    console,
    finish,
    get_session,
    print_notices,
    resolve_pending,
)
from gitcollab.cli.errors import ExitCode, print_error
from gitcollab.core.github.models import Mergeable, MergeMethod
from gitcollab.core.mode.models import TransitionResult, TransitionStatus

app = typer.Typer(
    name="pr",
    help="Create and manage pull requests",
    no_args_is_help=True,
)

_MERGEABLE = {
    Mergeable.CLEAN: "[green]yes[/green]",
    Mergeable.CONFLICTING: "[red]conflicts[/red]",
    Mergeable.UNKNOWN: "[dim]unknown[/dim]",
}


@app.command(name="list")
def list_prs(ctx: typer.Context) -> None:
    """
    List open pull requests.
    """
    session = get_session(ctx)
    result = session.pull_requests.list_open()
    if not result.success:
        print_error("Could not fetch pull requests", reason=result.error)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if not result.pull_requests:
        console.print("[dim]No open pull requests.[/dim]")
        return

    table = Table(title="Open pull requests")
    table.add_column("#", justify="right")
    table.add_column("Title")
    table.add_column("Branch")
    table.add_column("Author", style="dim")
    table.add_column("Mergeable")
    for pr in result.pull_requests:
        table.add_row(
            str(pr.number),
            pr.title,
            f"{pr.head} → {pr.base}",
            pr.author,
            _MERGEABLE[pr.merge_state],
        )
    console.print(table)


@app.command()
def create(
    ctx: typer.Context,
    title: str = typer.Option(..., "--title", "-t", help="Pull request title"),
    body: str = typer.Option("", "--body", "-b", help="Pull request description"),
    branch: str | None = typer.Option(
        None,
        "--branch",
        help="Head branch (defaults to the current working branch)",
    ),
    token: str | None = typer.Option(
        None,
        "--token",
        help="Access token (stored for the repository if none is stored yet)",
        envvar="GITCOLLAB_TOKEN",
    ),
) -> None:
    """
    Open a pull request into the main branch.

    Examples:
        gitcollab pr create -t "Add chapter 4"
        gitcollab pr create --branch feature/x -t "Fix typos" -b "Details"
    """
    session = get_session(ctx)
    head = branch or session.settings.last_working_branch or session.settings.current_branch
    result = session.pull_requests.create(head, title, body, token=token)
    print_notices(result.notices)
    if not result.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


@app.command()
def merge(
    ctx: typer.Context,
    number: int = typer.Argument(..., help="Pull request number"),
    method: MergeMethod = typer.Option(
        MergeMethod.MERGE,
        "--method",
        help="Merge method",
        case_sensitive=False,
    ),
) -> None:
    """
    Merge a pull request and update the local main branch.

    Examples:
        gitcollab pr merge 42
        gitcollab pr merge 42 --method squash
    """
    session = get_session(ctx)
    result = session.pull_requests.merge(number, method)
    print_notices(result.notices)
    if not result.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    if result.pending is not None:
        suspended = TransitionResult(status=TransitionStatus.NEEDS_INPUT, pending=result.pending)
        saved = resolve_pending(session, suspended)
        print_notices(saved.notices)
        if session.settings.is_read_only_mode:
            finish(session.setup.pull_latest())


@app.command()
def close(
    ctx: typer.Context,
    number: int = typer.Argument(..., help="Pull request number"),
) -> None:
    """
    Close a pull request without merging.
    """
    session = get_session(ctx)
    result = session.pull_requests.close(number)
    print_notices(result.notices)
    if not result.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)

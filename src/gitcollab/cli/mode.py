"""
gitcollab CLI - mode and branch commands.

status, edit, readonly, switch, branch, validate, check and pull.
"""

from __future__ import annotations

import typer
from rich.table import Table

from gitcollab.cli.common import (
    console,
    finish,
    get_session,
    print_notice,
    print_notices,
    resolve_pending,
)
from gitcollab.cli.errors import ExitCode, print_not_connected_error
from gitcollab.core.mode.models import BranchMode


def status(ctx: typer.Context) -> None:
    """
    Show the current mode and branch configuration.
    """
    session = get_session(ctx)
    state = session.state

    mode = (
        "[cyan]read-only[/cyan]"
        if state.mode == BranchMode.READ_ONLY_ON_MAIN
        else "[green]editing[/green]"
    )
    table = Table(show_header=False, box=None)
    table.add_column("Key", style="dim")
    table.add_column("Value")
    table.add_row("Repository", session.settings.repository_url or "(none)")
    table.add_row("Connected", "yes" if state.is_repository_connected else "no")
    table.add_row("Mode", mode)
    table.add_row("Current branch", state.current_branch)
    table.add_row("Main branch", state.main_branch)
    table.add_row("Last working branch", state.last_working_branch or "-")
    table.add_row("Branches", ", ".join(state.available_branches))
    console.print(table)

    if not state.is_consistent:
        console.print("[yellow]Mode and branch disagree. Run `gitcollab validate`.[/yellow]")


def edit(
    ctx: typer.Context,
    branch: str | None = typer.Argument(
        None,
        help="Working branch to edit on (prompted when omitted)",
    ),
    new: str | None = typer.Option(
        None,
        "--new",
        "-n",
        help="Create this branch from HEAD and edit on it",
    ),
) -> None:
    """
    Enter edit mode on a working branch.

    Examples:
        gitcollab edit feature/notes
        gitcollab edit --new feature/chapter-4
        gitcollab edit                 # choose from known branches
    """
    session = get_session(ctx)
    if not session.settings.is_repository_connected:
        print_not_connected_error()
        raise typer.Exit(ExitCode.USER_ERROR)

    if new:
        result = session.start_new_branch(new)
    else:
        result = session.machine.enter_edit_mode(branch)
    finish(resolve_pending(session, result))


def readonly(
    ctx: typer.Context,
    no_save_check: bool = typer.Option(
        False,
        "--no-save-check",
        help="Switch to main without asking about uncommitted changes",
    ),
) -> None:
    """
    Return to read-only mode on the main branch.

    With uncommitted changes you are asked to save them as a draft or push
    them first.
    """
    session = get_session(ctx)
    result = session.machine.enter_read_only_mode(with_save_check=not no_save_check)
    finish(resolve_pending(session, result))


def switch(
    ctx: typer.Context,
    branch: str = typer.Argument(..., help="Branch to check out"),
) -> None:
    """
    Check out another branch allowed in the current mode.
    """
    session = get_session(ctx)
    finish(session.machine.switch_to_branch(branch))


def branch(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name of the new branch"),
) -> None:
    """
    Create a branch from HEAD without changing mode.
    """
    session = get_session(ctx)
    finish(session.machine.create_new_branch(name))


def validate(ctx: typer.Context) -> None:
    """
    Reconcile the mode with the branch actually checked out.
    """
    session = get_session(ctx)
    result = session.machine.validate_and_enforce_branch_rules()
    if result.success and not result.notices:
        console.print("[green]Mode and branch are consistent.[/green]")
    finish(result)


def check(
    ctx: typer.Context,
    remote: bool = typer.Option(
        False,
        "--remote",
        help="Also fetch and report updates available from the remote",
    ),
) -> None:
    """
    Run the startup checks (repository present, uncommitted changes, branch rules).
    """
    session = get_session(ctx)
    result = session.setup.startup_checks()
    print_notices(result.notices)

    if remote and session.settings.is_repository_connected:
        thread = session.setup.start_remote_update_check(print_notice)
        thread.join()

    if not result.success:
        raise typer.Exit(ExitCode.GENERAL_ERROR)


def pull(ctx: typer.Context) -> None:
    """
    Pull the latest main branch (read-only mode only).
    """
    session = get_session(ctx)
    finish(session.setup.pull_latest())

"""
Helpers shared by the gitcollab CLI commands.

Builds the session for the selected workspace, renders notices and turns
results into exit codes. Also drives two-phase transitions: when a result
needs input, the user is prompted and the transition is resumed.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.prompt import Prompt

from gitcollab.cli.errors import ExitCode, print_corrupt_state_error
from gitcollab.core.config.store import SettingsStoreError
from gitcollab.core.mode.models import (
    InputKind,
    Notice,
    NoticeLevel,
    PendingTransition,
    TransitionResult,
    TransitionStatus,
)
from gitcollab.core.publish.models import (
    PublishResult,
    PublishStatus,
    SaveAction,
    SaveDecision,
)
from gitcollab.core.services.session import CollabSession

console = Console()

_STYLES = {
    NoticeLevel.SUCCESS: "green",
    NoticeLevel.WARNING: "yellow",
    NoticeLevel.ERROR: "red",
}


def get_session(ctx: typer.Context) -> CollabSession:
    """Build the session for the workspace selected on the command line."""
    obj = ctx.obj or {}
    project_dir: Path | None = obj.get("project_dir")
    try:
        return CollabSession.from_project_dir(project_dir)
    except SettingsStoreError as e:
        print_corrupt_state_error(str(e))
        raise typer.Exit(ExitCode.GENERAL_ERROR) from e


def print_notice(notice: Notice) -> None:
    """Display a notice with styling for its level."""
    style = _STYLES.get(notice.level)
    if style:
        console.print(f"[{style}]{notice.message}[/{style}]")
    else:
        console.print(notice.message)


def print_notices(notices: list[Notice]) -> None:
    """Display notices in order."""
    for notice in notices:
        print_notice(notice)


def exit_code_for(result: TransitionResult | PublishResult) -> ExitCode:
    """Map a result to the process exit code."""
    if isinstance(result, PublishResult):
        if result.success:
            return ExitCode.SUCCESS
        if result.status == PublishStatus.REJECTED:
            return ExitCode.USER_ERROR
        return ExitCode.GENERAL_ERROR

    if result.status in (TransitionStatus.APPLIED, TransitionStatus.ABANDONED):
        return ExitCode.SUCCESS
    if result.status == TransitionStatus.REJECTED:
        return ExitCode.USER_ERROR
    return ExitCode.GENERAL_ERROR


def finish(result: TransitionResult | PublishResult) -> None:
    """Print a result's notices and exit with a non-zero code on failure."""
    print_notices(result.notices)
    if isinstance(result, PublishResult) and result.offer_pull_request:
        console.print(
            f"[cyan]→ Open a pull request:[/cyan] gitcollab pr create --branch {result.branch}"
        )
    if isinstance(result, TransitionResult) and result.status == TransitionStatus.ABANDONED:
        console.print("[dim]Cancelled, nothing changed.[/dim]")
    code = exit_code_for(result)
    if code != ExitCode.SUCCESS:
        raise typer.Exit(code)


def _ask_branch(session: CollabSession, pending: PendingTransition) -> str | None:
    if pending.options:
        console.print("Working branches: " + ", ".join(pending.options))
    default = session.settings.last_working_branch or None
    answer = Prompt.ask("Branch to edit on (empty to cancel)", default=default, console=console)
    return answer.strip() if answer else None


def _ask_save(pending: PendingTransition) -> SaveDecision | None:
    console.print(f"[yellow]Uncommitted changes on '{pending.branch}':[/yellow]")
    for line in pending.options:
        console.print(f"  {line}")
    choice = Prompt.ask(
        "Save changes",
        choices=["draft", "push", "cancel"],
        default="cancel",
        console=console,
    )
    if choice == "cancel":
        return None
    message = Prompt.ask("Commit message", default="", console=console).strip()
    if not message:
        return None
    return SaveDecision(action=SaveAction(choice), message=message)


def resolve_pending(
    session: CollabSession,
    result: TransitionResult | PublishResult,
) -> TransitionResult | PublishResult:
    """
    Prompt for the input a transition needs and resume it, until done.

    An empty answer abandons the transition.
    """
    while isinstance(result, TransitionResult) and result.needs_input and result.pending:
        print_notices(result.notices)
        pending = result.pending
        answer: str | SaveDecision | None
        if pending.kind == InputKind.BRANCH_SELECTION:
            answer = _ask_branch(session, pending)
        else:
            answer = _ask_save(pending)
        result = session.resume(pending, answer)
    return result


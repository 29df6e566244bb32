"""
gitcollab CLI - save command.
"""

from __future__ import annotations

import typer

from gitcollab.cli.common import finish, get_session
from gitcollab.cli.errors import ExitCode, print_error


def save(
    ctx: typer.Context,
    message: str = typer.Option(
        ...,
        "--message",
        "-m",
        help="Commit message",
    ),
    draft: bool = typer.Option(
        False,
        "--draft",
        help="Commit locally only (default)",
    ),
    push: bool = typer.Option(
        False,
        "--push",
        help="Commit and push to the remote",
    ),
    create_pr: bool = typer.Option(
        False,
        "--pr",
        help="After the first push of a branch, open a pull request titled with the message",
    ),
) -> None:
    """
    Save changes on the working branch and return to read-only mode.

    Examples:
        gitcollab save -m "wip"                 # draft commit
        gitcollab save -m "Add chapter" --push  # commit and push
        gitcollab save -m "Add chapter" --push --pr
    """
    if draft and push:
        print_error("Choose either --draft or --push, not both")
        raise typer.Exit(ExitCode.USER_ERROR)

    session = get_session(ctx)
    if push:
        result = session.publisher.save_and_push(message)
    else:
        result = session.publisher.save_as_draft(message)

    if create_pr and result.offer_pull_request:
        created = session.pull_requests.create(result.branch, result.commit_message)
        result.notices.extend(created.notices)
        result.offer_pull_request = not created.success
    finish(result)

"""
Standardized error handling and exit codes for the gitcollab CLI.
"""

from enum import IntEnum

from rich.console import Console

console = Console()


class ExitCode(IntEnum):
    """Standard exit codes for gitcollab operations."""

    SUCCESS = 0
    """Operation completed successfully."""

    GENERAL_ERROR = 1
    """Git, network or other operational failure."""

    USER_ERROR = 2
    """Rejected request or invalid input (actionable by user)."""

    SIGINT = 130
    """Terminated by SIGINT (Ctrl+C) - Unix standard."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "No repository connected",
        ...     solution="gitcollab repo clone <url>",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}")

    if reason:
        console.print(f"[dim]{reason}[/dim]")

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}")


def print_not_connected_error() -> None:
    """Print error when the workspace has no connected repository."""
    print_error(
        "No repository connected",
        reason="This folder is not linked to a remote repository yet",
        solution="gitcollab repo clone <url>  # or gitcollab repo init <url>",
    )


def print_corrupt_state_error(reason: str) -> None:
    """Print error when the persisted settings record cannot be read."""
    print_error(
        "Workspace settings are unreadable",
        reason=reason,
        solution="Fix or remove .gitcollab/state.json, then reconnect the repository",
    )

"""
gitcollab CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys
from pathlib import Path

import typer
from rich.console import Console

from gitcollab import __version__
from gitcollab.cli import mode, pr, repo, save
from gitcollab.core.config.env import load_layered_env

# Help panel names for command grouping
PANEL_MODE = "Modes and Branches"
PANEL_PUBLISH = "Save and Publish"
PANEL_REPO = "Repository"

app = typer.Typer(
    name="gitcollab",
    help="Read-only main branch, edits on working branches, pull requests to publish",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool) -> None:
    """Configure logging for the command run."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
    directory: Path | None = typer.Option(
        None,
        "--dir",
        "-C",
        help="Workspace directory (defaults to the current directory)",
        file_okay=False,
    ),
) -> None:
    """
    gitcollab keeps a workspace in sync with a GitHub repository.

    The main branch is read-only; edit on a working branch, save or push,
    and publish through pull requests.
    """
    setup_logging(debug)

    project_dir = directory.resolve() if directory else None
    load_layered_env(project_dir=project_dir)

    ctx.obj = {"debug": debug, "project_dir": project_dir}


# =============================================================================
# Modes and Branches
# =============================================================================

app.command(name="status", rich_help_panel=PANEL_MODE)(mode.status)
app.command(name="edit", rich_help_panel=PANEL_MODE)(mode.edit)
app.command(name="readonly", rich_help_panel=PANEL_MODE)(mode.readonly)
app.command(name="switch", rich_help_panel=PANEL_MODE)(mode.switch)
app.command(name="branch", rich_help_panel=PANEL_MODE)(mode.branch)
app.command(name="validate", rich_help_panel=PANEL_MODE)(mode.validate)
app.command(name="check", rich_help_panel=PANEL_MODE)(mode.check)


# =============================================================================
# Save and Publish
# =============================================================================

app.command(name="save", rich_help_panel=PANEL_PUBLISH)(save.save)
app.command(name="pull", rich_help_panel=PANEL_PUBLISH)(mode.pull)
app.add_typer(pr.app, name="pr", rich_help_panel=PANEL_PUBLISH)


# =============================================================================
# Repository
# =============================================================================

app.add_typer(repo.app, name="repo", rich_help_panel=PANEL_REPO)


@app.command(rich_help_panel=PANEL_REPO)
def version() -> None:
    """Show gitcollab version and exit."""
    console.print(f"gitcollab version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]

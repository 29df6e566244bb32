"""
Layered `.env` loading for the CLI.

Tokens (GITCOLLAB_TOKEN) and GITCOLLAB_* overrides may live in `.env` files.
Layers, lowest first: the user file (~/.config/gitcollab/.env), then the
workspace's `.env` and `.env.local`. Variables exported in the shell are
never replaced.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

logger = logging.getLogger(__name__)


def user_env_file() -> Path:
    """Location of the user-level `.env` file (XDG aware)."""
    config_home = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(config_home) / "gitcollab" / ".env"


def project_env_files(project_dir: Path) -> list[Path]:
    """Workspace `.env` files, in increasing precedence."""
    return [project_dir / ".env", project_dir / ".env.local"]


def read_env_file(path: Path) -> dict[str, str]:
    """Parse one `.env` file, skipping keys without a value."""
    if not path.is_file():
        return {}
    return {str(k): str(v) for k, v in dotenv_values(path).items() if k and v is not None}


def collect_env(files: Iterable[Path]) -> dict[str, str]:
    """Merge `.env` files; later files win."""
    merged: dict[str, str] = {}
    for path in files:
        values = read_env_file(Path(path))
        if values:
            logger.debug("Read %d variable(s) from %s", len(values), path)
        merged.update(values)
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    project_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Export `.env` values into os.environ without touching shell variables.

    Args:
        project_dir: Workspace root (defaults to cwd)
        user_env_paths: Override for the user-level files
        project_env_paths: Override for the workspace files

    Returns:
        The variables that were set
    """
    project_dir = project_dir or Path.cwd()
    user_files = [user_env_file()] if user_env_paths is None else list(user_env_paths)
    project_files = (
        project_env_files(project_dir) if project_env_paths is None else list(project_env_paths)
    )

    layered = collect_env([*user_files, *project_files])
    applied = {k: v for k, v in layered.items() if k not in os.environ}
    os.environ.update(applied)
    return applied

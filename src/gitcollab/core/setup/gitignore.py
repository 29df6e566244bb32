"""
.gitignore management for connected workspaces.

The settings record holds access tokens, so its directory must never be
committed.
"""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

GITIGNORE_HEADER = "# gitcollab"

OS_ENTRIES = [".DS_Store", "Thumbs.db"]
TEMP_ENTRIES = [".temp-clone-*/", "*.tmp"]


def default_entries(state_dir: str) -> list[str]:
    """Entries written to a new .gitignore."""
    return [_dir_entry(state_dir), *OS_ENTRIES, *TEMP_ENTRIES]


def _dir_entry(state_dir: str) -> str:
    return state_dir.strip("/") + "/"


def ensure_gitignore(directory: Path, state_dir: str = ".gitcollab") -> bool:
    """
    Make sure `directory/.gitignore` ignores the state directory.

    Creates the file with default entries when missing, otherwise appends
    the state directory entry if it is not there yet.

    Args:
        directory: Working tree root
        state_dir: Workspace-relative state directory

    Returns:
        True if the file was created or changed
    """
    path = directory / ".gitignore"
    entry = _dir_entry(state_dir)

    if not path.exists():
        lines = [GITIGNORE_HEADER, *default_entries(state_dir)]
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        logger.info("Created %s", path)
        return True

    content = path.read_text(encoding="utf-8")
    existing = {line.strip() for line in content.splitlines()}
    if entry in existing or entry.rstrip("/") in existing:
        return False

    if content and not content.endswith("\n"):
        content += "\n"
    content += f"{GITIGNORE_HEADER}\n{entry}\n"
    path.write_text(content, encoding="utf-8")
    logger.info("Added %s to %s", entry, path)
    return True

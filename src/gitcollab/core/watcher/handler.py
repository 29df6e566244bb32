"""
New-file handler.

In read-only mode the workspace must not gain files the user created by
hand. The host reports created files here; files that are neither ignored
nor tracked are removed, unless a bulk git mutation is running, in which case
the file came from git. Anything under `.git` belongs to git and is left
alone.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gitcollab.core.config.models import CollabSettings
from gitcollab.core.git.guard import BulkMutationGuard
from gitcollab.core.mode.models import Notice, NoticeLevel
from gitcollab.core.ports import RepositoryPort

logger = logging.getLogger(__name__)


class NewFileHandler:
    """Removes user-created files while the workspace is read-only."""

    def __init__(
        self,
        repository: RepositoryPort,
        settings: CollabSettings,
        guard: BulkMutationGuard,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self.guard = guard

    def _relative(self, path: Path | str) -> Path:
        path = Path(path)
        if path.is_absolute():
            return path.relative_to(self.repository.working_dir)
        return path

    def on_file_created(self, path: Path | str) -> Notice | None:
        """
        Handle a host-reported file creation.

        Args:
            path: Created file, absolute or relative to the working tree

        Returns:
            A notice if the file was removed, otherwise None
        """
        if not self.settings.is_repository_connected or not self.settings.is_read_only_mode:
            return None
        if self.guard.is_active:
            logger.debug("Bulk git mutation active, keeping %s", path)
            return None

        try:
            relative = self._relative(path)
        except ValueError:
            logger.debug("%s is outside the working tree", path)
            return None
        if relative.parts[:1] == (".git",):
            return None

        name = relative.as_posix()
        if self.repository.is_ignored(name) or self.repository.is_tracked(name):
            return None

        full_path = self.repository.working_dir / relative
        if not full_path.is_file():
            return None

        full_path.unlink()
        logger.info("Removed %s created in read-only mode", name)
        return Notice(
            f"'{name}' was removed: files cannot be created in read-only mode. "
            "Enter edit mode first.",
            NoticeLevel.WARNING,
        )

"""
Settings store for reading/writing the persisted workspace record.

The record is a single flat JSON document, read whole at startup and
rewritten whole (atomically) on every mutation.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from gitcollab.core.config.models import CollabSettings

logger = logging.getLogger(__name__)


class SettingsStoreError(Exception):
    """Error from settings store operations."""

    pass


class SettingsStore:
    """
    JSON file store for CollabSettings.

    Example:
        >>> store = SettingsStore(Path(".gitcollab/state.json"))
        >>> settings = store.load()
        >>> settings.current_branch = "feature/x"
        >>> store.save(settings)
    """

    def __init__(self, file_path: Path) -> None:
        """
        Initialize SettingsStore.

        Args:
            file_path: Location of the JSON record
        """
        self._file_path = file_path

    @property
    def file_path(self) -> Path:
        """Get the path to the settings file."""
        return self._file_path

    def file_exists(self) -> bool:
        """Check if the settings file exists."""
        return self._file_path.exists()

    def load(self) -> CollabSettings:
        """
        Read the record.

        A missing or unreadable file yields defaults (no repository
        connected). A file that exists but does not parse is an error, so
        that stored tokens are never silently overwritten.

        Raises:
            SettingsStoreError: If the file content is invalid
        """
        if not self._file_path.exists():
            return CollabSettings()

        try:
            content = self._file_path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot read settings at %s: %s", self._file_path, e)
            return CollabSettings()

        try:
            return CollabSettings.model_validate(json.loads(content))
        except json.JSONDecodeError as e:
            raise SettingsStoreError(f"Failed to parse {self._file_path}: {e}") from e
        except ValidationError as e:
            raise SettingsStoreError(f"Invalid settings in {self._file_path}: {e}") from e

    def save(self, settings: CollabSettings) -> None:
        """Write the whole record atomically."""
        self._file_path.parent.mkdir(parents=True, exist_ok=True)

        fd, temp_path = tempfile.mkstemp(
            dir=self._file_path.parent,
            prefix=".state_",
            suffix=".json.tmp",
        )

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(settings.model_dump_json(indent=2))
                f.write("\n")

            os.replace(temp_path, self._file_path)

        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

        logger.debug("Saved settings to %s", self._file_path)

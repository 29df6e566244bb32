"""
Per-repository access token store.

Tokens live in the persisted settings record, keyed by the normalized
repository URL so that `https://github.com/o/r.git`, `github.com/o/r` and
`git@github.com:o/r` all share one entry.
"""

from __future__ import annotations

import logging

from gitcollab.core.config.models import CollabSettings
from gitcollab.core.github.models import RepoInfo
from gitcollab.core.ports import ConfigStorePort

logger = logging.getLogger(__name__)


class CredentialError(Exception):
    """A token is required but none is available."""

    pass


def normalize_repository_url(url: str) -> str:
    """
    Normalize a repository URL for credential lookups.

    Args:
        url: Any spelling of a remote URL

    Returns:
        `https://<host>/<owner>/<repo>` for parseable URLs, otherwise the
        input stripped of whitespace, a trailing slash and a `.git` suffix
    """
    repo = RepoInfo.from_remote_url(url)
    if repo is not None:
        return repo.canonical_url

    normalized = url.strip().rstrip("/")
    if normalized.endswith(".git"):
        normalized = normalized[: -len(".git")]
    return normalized


class CredentialStore:
    """
    Maps normalized repository URLs to access tokens.

    Every lookup and write goes through `normalize_repository_url`.

    Example:
        >>> creds = CredentialStore(settings, store)
        >>> creds.set("https://github.com/owner/repo.git", "ghp_abc")
        >>> creds.get("github.com/owner/repo")
        'ghp_abc'
    """

    def __init__(self, settings: CollabSettings, store: ConfigStorePort) -> None:
        """
        Initialize CredentialStore.

        Args:
            settings: Shared settings record holding the token mapping
            store: Store used to persist the record after each change
        """
        self.settings = settings
        self.store = store

    def get(self, repository_url: str) -> str | None:
        """Look up the token for a repository."""
        if not repository_url:
            return None
        return self.settings.repository_tokens.get(normalize_repository_url(repository_url))

    def require(self, repository_url: str) -> str:
        """
        Look up the token for a repository, failing if there is none.

        Raises:
            CredentialError: If no token is stored
        """
        token = self.get(repository_url)
        if not token:
            raise CredentialError(
                "GitHub token required for this repository. "
                "Store one with `gitcollab repo token set`."
            )
        return token

    def set(self, repository_url: str, token: str) -> None:
        """Store (or overwrite) the token for a repository and persist."""
        key = normalize_repository_url(repository_url)
        self.settings.repository_tokens[key] = token
        self.store.save(self.settings)
        logger.info("Stored token for %s", key)

    def remove(self, repository_url: str) -> bool:
        """
        Forget the token for a repository and persist.

        Returns:
            True if a token was removed
        """
        key = normalize_repository_url(repository_url)
        if key not in self.settings.repository_tokens:
            return False
        del self.settings.repository_tokens[key]
        self.store.save(self.settings)
        logger.info("Removed token for %s", key)
        return True

    def migrate(self) -> bool:
        """
        Re-key stored tokens through the normalizer.

        Entries whose keys were stored under another spelling are moved to
        the normalized key; the record is persisted only if something moved.

        Returns:
            True if any key changed
        """
        migrated: dict[str, str] = {}
        changed = False
        for url, token in self.settings.repository_tokens.items():
            key = normalize_repository_url(url)
            if key != url:
                changed = True
            migrated[key] = token

        if changed:
            self.settings.repository_tokens = migrated
            self.store.save(self.settings)
            logger.info("Migrated %d stored token(s) to normalized URLs", len(migrated))
        return changed

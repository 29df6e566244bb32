"""
GitHub data models for gitcollab.

Defines Pydantic models for repository identity (the one place remote URLs
are parsed) and pull requests read from the REST API.
"""

from __future__ import annotations

import re
from enum import Enum

from pydantic import BaseModel, Field, computed_field

# scp-like ssh form: git@github.com:owner/repo.git
_SCP_URL = re.compile(r"^(?:[^@/\s]+@)?([^:/\s]+):(?!//)([^/\s]+)/([^/\s]+?)(?:\.git)?/?$")

# URL form with optional scheme, credentials and port:
# https://github.com/owner/repo.git, ssh://git@host:22/owner/repo, github.com/owner/repo
_URL = re.compile(
    r"^(?:[a-zA-Z][a-zA-Z0-9+.-]*://)?(?:[^@/\s]+@)?"
    r"([^/:\s]+)(?::\d+)?/([^/\s]+)/([^/\s]+?)(?:\.git)?/?$"
)


class RepoInfo(BaseModel):
    """
    Repository identity: host, owner and name.

    Parsed from any common spelling of a remote URL so that credentials and
    API endpoints resolve the same repository the same way.

    Example:
        >>> RepoInfo.from_remote_url("git@github.com:user/repo.git")
        RepoInfo(host='github.com', owner='user', repo='repo')
        >>> RepoInfo.from_remote_url("github.com/user/repo").canonical_url
        'https://github.com/user/repo'
    """

    host: str = Field(default="github.com", description="Hosting provider host name")
    owner: str = Field(..., description="Repository owner (user or organization)")
    repo: str = Field(..., description="Repository name")

    @computed_field
    @property
    def full_name(self) -> str:
        """Full repository name (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    @computed_field
    @property
    def canonical_url(self) -> str:
        """
        Normalized https URL without credentials or `.git` suffix.

        GitHub names are case-insensitive, so owner and repo are lowercased there.
        """
        if self.is_github:
            return f"https://{self.host}/{self.owner.lower()}/{self.repo.lower()}"
        return f"https://{self.host}/{self.owner}/{self.repo}"

    @property
    def is_github(self) -> bool:
        """Whether this repository lives on github.com."""
        return self.host == "github.com"

    @property
    def api_path(self) -> str:
        """REST API path prefix for this repository."""
        return f"repos/{self.owner}/{self.repo}"

    def authenticated_url(self, token: str | None) -> str:
        """
        Clone/push URL with the token embedded for https authentication.

        Args:
            token: Access token (None or empty gives the plain https URL)
        """
        if not token:
            return f"https://{self.host}/{self.owner}/{self.repo}.git"
        return f"https://{token}@{self.host}/{self.owner}/{self.repo}.git"

    @classmethod
    def from_remote_url(cls, remote_url: str) -> RepoInfo | None:
        """
        Parse repository info from a git remote URL.

        Handles formats:
        - git@github.com:user/repo.git
        - ssh://git@github.com/user/repo
        - https://github.com/user/repo.git
        - https://token@github.com/user/repo/
        - github.com/user/repo

        Args:
            remote_url: Git remote URL

        Returns:
            RepoInfo or None if the URL has no host/owner/repo shape
        """
        if not remote_url:
            return None

        url = remote_url.strip()
        match = None
        if "://" not in url:
            match = _SCP_URL.match(url)
        if match is None:
            match = _URL.match(url)
        if match is None:
            return None

        host = match.group(1).lower()
        if host.startswith("www."):
            host = host[len("www.") :]
        if "." not in host and host != "localhost":
            return None

        return cls(host=host, owner=match.group(2), repo=match.group(3))


class Mergeable(str, Enum):
    """Conflict status of a pull request as reported by the remote."""

    CLEAN = "clean"
    CONFLICTING = "conflicting"
    UNKNOWN = "unknown"


class MergeMethod(str, Enum):
    """Merge strategies accepted by the merge endpoint."""

    MERGE = "merge"
    SQUASH = "squash"
    REBASE = "rebase"


class RepositoryVisibility(str, Enum):
    """Visibility of a repository on the remote."""

    PUBLIC = "public"
    PRIVATE = "private"
    UNKNOWN = "unknown"


class PullRequest(BaseModel):
    """
    A pull request.

    Read from the REST API on demand and never persisted.
    """

    number: int = Field(..., description="Pull request number")
    title: str = Field(default="", description="Pull request title")
    body: str = Field(default="", description="Pull request body (markdown)")
    head: str = Field(default="", description="Head (source) branch")
    base: str = Field(default="", description="Base (target) branch")
    author: str = Field(default="", description="Author login")
    mergeable: bool | None = Field(
        default=None,
        description="True/False once the remote has computed it, None before",
    )
    html_url: str = Field(default="", description="Web URL for the pull request")

    @computed_field
    @property
    def merge_state(self) -> Mergeable:
        """Mergeable tri-state for display."""
        if self.mergeable is True:
            return Mergeable.CLEAN
        if self.mergeable is False:
            return Mergeable.CONFLICTING
        return Mergeable.UNKNOWN

    @classmethod
    def from_api(cls, data: dict[str, object]) -> PullRequest:
        """
        Create PullRequest from a REST API pull request object.

        Args:
            data: JSON object from `/repos/{owner}/{repo}/pulls`

        Returns:
            PullRequest instance
        """
        head = data.get("head")
        base = data.get("base")
        user = data.get("user")
        mergeable = data.get("mergeable")
        number = data.get("number", 0)

        return cls(
            number=int(number) if isinstance(number, (int, float)) else 0,
            title=str(data.get("title") or ""),
            body=str(data.get("body") or ""),
            head=str(head.get("ref", "")) if isinstance(head, dict) else "",
            base=str(base.get("ref", "")) if isinstance(base, dict) else "",
            author=str(user.get("login", "")) if isinstance(user, dict) else "",
            mergeable=mergeable if isinstance(mergeable, bool) else None,
            html_url=str(data.get("html_url") or ""),
        )

"""
Interfaces the core depends on.

The branch-mode machine and the workflows above it receive these as
constructor arguments. GitRepository, GitHubClient, CredentialStore and
SettingsStore are the production implementations; tests pass fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from gitcollab.core.config.models import CollabSettings
from gitcollab.core.github.models import (
    MergeMethod,
    PullRequest,
    RepoInfo,
    RepositoryVisibility,
)


class RepositoryPort(Protocol):
    """Git operations on the working tree."""

    working_dir: Path

    def is_repository(self) -> bool: ...

    def current_branch(self) -> str: ...

    def status_porcelain(self) -> list[str]: ...

    def has_uncommitted_changes(self) -> bool: ...

    def behind_count(self, branch: str) -> int: ...

    def list_branches(self, *, all_refs: bool = False, remote_only: bool = False) -> list[str]: ...

    def remote_branch_exists(self, branch: str) -> bool: ...

    def remote_default_branch(self) -> str | None: ...

    def is_ignored(self, path: str) -> bool: ...

    def is_tracked(self, path: str) -> bool: ...

    def checkout(self, branch: str, *, create: bool = False) -> None: ...

    def commit_all(self, message: str) -> None: ...

    def fetch(self) -> None: ...

    def pull(self, branch: str) -> None: ...

    def push(self, branch: str, *, set_upstream: bool = False) -> None: ...

    def rename_current_branch(self, name: str) -> None: ...

    def delete_branch(self, name: str) -> None: ...

    def init(self) -> None: ...

    def clone(self, url: str, destination: Path) -> None: ...

    def set_user(self, name: str | None = None, email: str | None = None) -> None: ...

    def add_remote(self, url: str) -> None: ...


class RemotePort(Protocol):
    """Hosting provider REST operations for one repository."""

    def create_pull_request(self, head: str, base: str, title: str, body: str) -> PullRequest: ...

    def list_pull_requests(self) -> list[PullRequest]: ...

    def merge_pull_request(self, number: int, method: MergeMethod = MergeMethod.MERGE) -> None: ...

    def close_pull_request(self, number: int) -> None: ...

    def get_visibility(self) -> RepositoryVisibility: ...


RemoteFactory = Callable[[RepoInfo, "str | None"], RemotePort]
"""Builds a RemotePort for a repository and an optional token."""


class CredentialPort(Protocol):
    """Token lookup keyed by repository URL."""

    def get(self, repository_url: str) -> str | None: ...

    def set(self, repository_url: str, token: str) -> None: ...

    def remove(self, repository_url: str) -> bool: ...


class ConfigStorePort(Protocol):
    """Whole-record persistence for the workspace settings."""

    def load(self) -> CollabSettings: ...

    def save(self, settings: CollabSettings) -> None: ...

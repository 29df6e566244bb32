"""
Pytest configuration and shared fixtures.

Provides real git repositories (a bare "remote" plus working clones) for
adapter and end-to-end tests, and in-memory fakes of the ports for state
machine tests.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from gitcollab.core.config.models import CollabSettings
from gitcollab.core.git.guard import BulkMutationGuard
from gitcollab.core.git.repository import GitError
from gitcollab.core.github.client import GitHubClientError
from gitcollab.core.github.models import (
    MergeMethod,
    PullRequest,
    RepoInfo,
    RepositoryVisibility,
)
from gitcollab.core.mode.machine import BranchModeMachine

# ==============================================================================
# Git helpers
# ==============================================================================


def run_git(cwd: Path, *args: str) -> str:
    """Run a git command for test setup and return stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def commit_file(repo: Path, name: str, content: str, message: str) -> None:
    """Write a file and commit it."""
    (repo / name).write_text(content)
    run_git(repo, "add", name)
    run_git(repo, "commit", "-m", message)


@pytest.fixture(autouse=True)
def git_identity(monkeypatch: pytest.MonkeyPatch) -> None:
    """Give every git commit made during tests an author."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")


@pytest.fixture
def remote_repo(tmp_path: Path) -> Path:
    """
    Create a bare repository with one commit on `main`.

    Acts as `origin` for working clones.
    """
    remote = tmp_path / "remote.git"
    run_git(tmp_path, "init", "--bare", str(remote))
    run_git(remote, "symbolic-ref", "HEAD", "refs/heads/main")

    seed = tmp_path / "seed"
    run_git(tmp_path, "clone", str(remote), str(seed))
    run_git(seed, "symbolic-ref", "HEAD", "refs/heads/main")
    commit_file(seed, "README.md", "# Notes\n", "Initial commit")
    run_git(seed, "push", "origin", "main")
    return remote


@pytest.fixture
def workspace(tmp_path: Path, remote_repo: Path) -> Path:
    """A working clone of `remote_repo`, on `main`."""
    work = tmp_path / "work"
    run_git(tmp_path, "clone", str(remote_repo), str(work))
    return work


@pytest.fixture
def other_clone(tmp_path: Path, remote_repo: Path) -> Path:
    """A second clone, used to push commits the workspace does not have."""
    other = tmp_path / "other"
    run_git(tmp_path, "clone", str(remote_repo), str(other))
    return other


# ==============================================================================
# Port fakes
# ==============================================================================


class FakeRepository:
    """In-memory RepositoryPort recording every call."""

    def __init__(self, working_dir: Path | None = None, branch: str = "main") -> None:
        self.working_dir = working_dir or Path("/workspace")
        self.branch = branch
        self.local_branches = [branch]
        self.remote_branches: set[str] = {"main"}
        self.changes: list[str] = []
        self.commits: list[str] = []
        self.behind = 0
        self.ignored: set[str] = set()
        self.tracked: set[str] = set()
        self.default_branch: str | None = "main"
        self.has_git = True
        self.calls: list[tuple[str, ...]] = []
        self.failures: dict[str, GitError] = {}

    def fail_on(self, name: str, message: str = "fatal: simulated failure") -> None:
        self.failures[name] = GitError(message, command=["git", name], stderr=message)

    @property
    def call_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    def _call(self, name: str, *args: str) -> None:
        self.calls.append((name, *args))
        if name in self.failures:
            raise self.failures[name]

    def is_repository(self) -> bool:
        return self.has_git

    def current_branch(self) -> str:
        self._call("current_branch")
        return self.branch

    def status_porcelain(self) -> list[str]:
        self._call("status_porcelain")
        return list(self.changes)

    def has_uncommitted_changes(self) -> bool:
        return bool(self.status_porcelain())

    def behind_count(self, branch: str) -> int:
        self._call("behind_count", branch)
        return self.behind

    def list_branches(self, *, all_refs: bool = False, remote_only: bool = False) -> list[str]:
        self._call("list_branches")
        if remote_only:
            return [f"origin/{b}" for b in sorted(self.remote_branches)]
        return list(self.local_branches)

    def remote_branch_exists(self, branch: str) -> bool:
        self.calls.append(("remote_branch_exists", branch))
        return branch in self.remote_branches

    def remote_default_branch(self) -> str | None:
        self._call("remote_default_branch")
        return self.default_branch

    def is_ignored(self, path: str) -> bool:
        return path in self.ignored

    def is_tracked(self, path: str) -> bool:
        return path in self.tracked

    def checkout(self, branch: str, *, create: bool = False) -> None:
        self._call("checkout", branch)
        if create:
            if branch in self.local_branches:
                raise GitError(f"fatal: a branch named '{branch}' already exists")
            self.local_branches.append(branch)
        elif branch not in self.local_branches:
            self.local_branches.append(branch)
        self.branch = branch

    def commit_all(self, message: str) -> None:
        self._call("commit_all", message)
        if not self.changes:
            raise GitError("nothing to commit, working tree clean")
        self.changes = []
        self.commits.append(message)

    def fetch(self) -> None:
        self._call("fetch")

    def pull(self, branch: str) -> None:
        self._call("pull", branch)
        self.behind = 0

    def push(self, branch: str, *, set_upstream: bool = False) -> None:
        self._call("push", branch)
        self.remote_branches.add(branch)

    def rename_current_branch(self, name: str) -> None:
        self._call("rename_current_branch", name)
        self.local_branches = [name if b == self.branch else b for b in self.local_branches]
        self.branch = name

    def delete_branch(self, name: str) -> None:
        self._call("delete_branch", name)
        if name not in self.local_branches:
            raise GitError(f"error: branch '{name}' not found")
        self.local_branches.remove(name)

    def init(self) -> None:
        self._call("init")

    def clone(self, url: str, destination: Path) -> None:
        self._call("clone", url)

    def set_user(self, name: str | None = None, email: str | None = None) -> None:
        self._call("set_user")

    def add_remote(self, url: str) -> None:
        self._call("add_remote", url)


class MemoryStore:
    """In-memory ConfigStorePort keeping a copy of the last saved record."""

    def __init__(self) -> None:
        self.saved: CollabSettings | None = None
        self.save_count = 0

    def load(self) -> CollabSettings:
        if self.saved is None:
            return CollabSettings()
        return self.saved.model_copy(deep=True)

    def save(self, settings: CollabSettings) -> None:
        self.saved = settings.model_copy(deep=True)
        self.save_count += 1


class FakeRemote:
    """In-memory RemotePort."""

    def __init__(self) -> None:
        self.pull_requests: list[PullRequest] = []
        self.calls: list[tuple[object, ...]] = []
        self.error: GitHubClientError | None = None
        self.visibility = RepositoryVisibility.PUBLIC
        self.next_number = 42

    def _call(self, *call: object) -> None:
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def create_pull_request(self, head: str, base: str, title: str, body: str) -> PullRequest:
        self._call("create", head, base, title, body)
        pr = PullRequest(
            number=self.next_number,
            title=title,
            body=body,
            head=head,
            base=base,
            author="octocat",
            html_url=f"https://github.com/owner/repo/pull/{self.next_number}",
        )
        self.pull_requests.append(pr)
        return pr

    def list_pull_requests(self) -> list[PullRequest]:
        self._call("list")
        return list(self.pull_requests)

    def merge_pull_request(self, number: int, method: MergeMethod = MergeMethod.MERGE) -> None:
        self._call("merge", number, method)

    def close_pull_request(self, number: int) -> None:
        self._call("close", number)

    def get_visibility(self) -> RepositoryVisibility:
        self.calls.append(("visibility",))
        return self.visibility


class RemoteFactoryRecorder:
    """RemoteFactory returning one FakeRemote and recording the tokens used."""

    def __init__(self, remote: FakeRemote) -> None:
        self.remote = remote
        self.requests: list[tuple[RepoInfo, str | None]] = []

    def __call__(self, repo: RepoInfo, token: str | None) -> FakeRemote:
        self.requests.append((repo, token))
        return self.remote


# ==============================================================================
# Fixtures
# ==============================================================================


@pytest.fixture
def fake_repo() -> FakeRepository:
    """A fake repository on `main` with no changes."""
    return FakeRepository()


@pytest.fixture
def memory_store() -> MemoryStore:
    """An in-memory settings store."""
    return MemoryStore()


@pytest.fixture
def connected_settings() -> CollabSettings:
    """Settings for a connected repository in read-only mode on main."""
    return CollabSettings(
        is_repository_connected=True,
        repository_url="https://github.com/owner/repo",
        main_branch="main",
        current_branch="main",
        is_read_only_mode=True,
        available_branches=["main"],
    )


@pytest.fixture
def guard() -> BulkMutationGuard:
    """A fresh bulk mutation guard."""
    return BulkMutationGuard()


@pytest.fixture
def machine(
    fake_repo: FakeRepository,
    connected_settings: CollabSettings,
    memory_store: MemoryStore,
    guard: BulkMutationGuard,
) -> BranchModeMachine:
    """A state machine over the fake repository and in-memory store."""
    return BranchModeMachine(fake_repo, connected_settings, memory_store, guard)


@pytest.fixture
def fake_remote() -> FakeRemote:
    """A fake remote API."""
    return FakeRemote()


@pytest.fixture
def remote_factory(fake_remote: FakeRemote) -> RemoteFactoryRecorder:
    """A remote factory handing out `fake_remote`."""
    return RemoteFactoryRecorder(fake_remote)

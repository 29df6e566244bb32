"""
Tests for the repository setup service.

Tests cover:
- Clone and init against local bare repositories
- Token resolution via the visibility query
- Default branch detection and master migration
- Pulling main, startup checks and the background remote check
- Disconnect
"""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import commit_file, run_git
from gitcollab.core.config.models import CollabSettings
from gitcollab.core.credentials import CredentialError, CredentialStore
from gitcollab.core.git import BulkMutationGuard, GitRepository
from gitcollab.core.github.models import RepositoryVisibility
from gitcollab.core.mode import BranchModeMachine, NoticeLevel, TransitionStatus
from gitcollab.core.setup import SetupService


def build_setup(repository, settings, store, remote_factory, guard=None) -> SetupService:
    guard = guard or BulkMutationGuard()
    machine = BranchModeMachine(repository, settings, store, guard)
    credentials = CredentialStore(settings, store)
    return SetupService(
        repository,
        settings,
        store,
        machine,
        credentials,
        remote_factory,
        guard,
        remote_check_delay=0,
        sleep=lambda _: None,
    )


@pytest.fixture
def fake_setup(fake_repo, connected_settings, memory_store, remote_factory, guard) -> SetupService:
    return build_setup(fake_repo, connected_settings, memory_store, remote_factory, guard)


class TestClone:
    """Tests for clone against a local bare repository."""

    def test_clone_into_empty_workspace(
        self, tmp_path: Path, remote_repo: Path, memory_store, remote_factory
    ) -> None:
        """Files land in the workspace and read-only mode is enabled."""
        vault = tmp_path / "vault"
        vault.mkdir()
        settings = CollabSettings()
        setup = build_setup(GitRepository(vault), settings, memory_store, remote_factory)

        result = setup.clone(str(remote_repo))

        assert result.success, result.notices
        assert (vault / "README.md").read_text() == "# Notes\n"
        assert (vault / ".git").is_dir()
        assert ".gitcollab/" in (vault / ".gitignore").read_text()
        assert not list(vault.glob(".temp-clone-*"))
        assert settings.is_repository_connected is True
        assert settings.is_read_only_mode is True
        assert settings.main_branch == "main"
        assert settings.current_branch == "main"
        assert settings.repository_url == str(remote_repo)
        assert memory_store.saved is not None
        assert memory_store.saved.is_repository_connected is True

    def test_refuses_non_empty_workspace(
        self, tmp_path: Path, remote_repo: Path, memory_store, remote_factory
    ) -> None:
        """Existing content is only replaced with overwrite."""
        vault = tmp_path / "vault"
        vault.mkdir()
        (vault / "mine.md").write_text("keep me")
        settings = CollabSettings()
        setup = build_setup(GitRepository(vault), settings, memory_store, remote_factory)

        result = setup.clone(str(remote_repo))

        assert result.status == TransitionStatus.REJECTED
        assert (vault / "mine.md").exists()
        assert settings.is_repository_connected is False

    def test_overwrite_keeps_state_dir(
        self, tmp_path: Path, remote_repo: Path, memory_store, remote_factory
    ) -> None:
        """Overwrite removes user files but not the state directory."""
        vault = tmp_path / "vault"
        (vault / ".gitcollab").mkdir(parents=True)
        (vault / ".gitcollab" / "state.json").write_text("{}")
        (vault / "mine.md").write_text("old")
        setup = build_setup(GitRepository(vault), CollabSettings(), memory_store, remote_factory)

        result = setup.clone(str(remote_repo), overwrite=True)

        assert result.success
        assert not (vault / "mine.md").exists()
        assert (vault / ".gitcollab" / "state.json").exists()
        assert (vault / "README.md").exists()

    def test_clone_failure_cleans_up(
        self, tmp_path: Path, memory_store, remote_factory
    ) -> None:
        """A failing clone reports the error and leaves no temp directory."""
        vault = tmp_path / "vault"
        vault.mkdir()
        settings = CollabSettings()
        setup = build_setup(GitRepository(vault), settings, memory_store, remote_factory)

        result = setup.clone(str(tmp_path / "no-such-remote.git"))

        assert result.status == TransitionStatus.FAILED
        assert not list(vault.glob(".temp-clone-*"))
        assert settings.is_repository_connected is False
        assert setup.guard.is_active is False

    def test_private_repository_needs_token(
        self, fake_setup, fake_remote, fake_repo
    ) -> None:
        """Without a token a private repository is refused before cloning."""
        fake_setup.settings.reset_repository()
        fake_setup.credentials.remove("https://github.com/owner/private")
        fake_remote.visibility = RepositoryVisibility.PRIVATE

        result = fake_setup.clone("https://github.com/owner/private")

        assert result.status == TransitionStatus.REJECTED
        assert "token" in result.notices[0].message.lower()
        assert "clone" not in fake_repo.call_names


class TestResolveToken:
    """Tests for token resolution."""

    def test_explicit_token_wins(self, fake_setup, fake_remote) -> None:
        assert fake_setup.resolve_token("https://github.com/o/r", "ghp_x") == "ghp_x"
        assert fake_remote.calls == []

    def test_stored_token(self, fake_setup) -> None:
        fake_setup.credentials.set("github.com/o/r", "ghp_stored")

        assert fake_setup.resolve_token("git@github.com:o/r.git") == "ghp_stored"

    def test_public_needs_no_token(self, fake_setup, fake_remote, remote_factory) -> None:
        fake_remote.visibility = RepositoryVisibility.PUBLIC

        assert fake_setup.resolve_token("https://github.com/o/r") is None
        assert remote_factory.requests[-1][1] is None

    def test_unknown_visibility_requires_token(self, fake_setup, fake_remote) -> None:
        """A private word in the URL is irrelevant; only the query counts."""
        fake_remote.visibility = RepositoryVisibility.UNKNOWN

        with pytest.raises(CredentialError):
            fake_setup.resolve_token("https://github.com/o/public-notes")

    def test_local_path_needs_no_token(self, fake_setup, fake_remote) -> None:
        assert fake_setup.resolve_token("/srv/git/notes.git") is None
        assert fake_remote.calls == []

    def test_authenticated_remote_url(self) -> None:
        url = SetupService.remote_url("git@github.com:o/r.git", "ghp_x")

        assert url == "https://ghp_x@github.com/o/r.git"


class TestInitialize:
    """Tests for initialize."""

    def test_initialize_pushes_main(self, tmp_path: Path, memory_store, remote_factory) -> None:
        """Existing files are committed on main and pushed."""
        remote = tmp_path / "empty.git"
        run_git(tmp_path, "init", "--bare", str(remote))
        vault = tmp_path / "vault"
        vault.mkdir()
        (vault / "note.md").write_text("first\n")
        settings = CollabSettings()
        setup = build_setup(GitRepository(vault), settings, memory_store, remote_factory)

        result = setup.initialize(str(remote))

        assert result.success, result.notices
        assert "main" in run_git(remote, "branch", "--list", "main")
        assert run_git(vault, "branch", "--show-current") == "main"
        assert ".gitcollab/" in (vault / ".gitignore").read_text()
        assert settings.is_repository_connected is True
        assert settings.is_read_only_mode is True
        assert settings.available_branches == ["main"]

    def test_failed_initialize_can_be_retried(
        self, tmp_path: Path, memory_store, remote_factory
    ) -> None:
        """A failed push leaves no .git behind, so a second attempt succeeds."""
        remote = tmp_path / "empty.git"
        run_git(tmp_path, "init", "--bare", str(remote))
        vault = tmp_path / "vault"
        vault.mkdir()
        (vault / "note.md").write_text("first\n")
        settings = CollabSettings()
        setup = build_setup(GitRepository(vault), settings, memory_store, remote_factory)

        failed = setup.initialize(str(tmp_path / "missing.git"))

        assert failed.status == TransitionStatus.FAILED
        assert not (vault / ".git").exists()
        assert (vault / "note.md").exists()
        assert settings.is_repository_connected is False

        result = setup.initialize(str(remote))

        assert result.success, result.notices
        assert "main" in run_git(remote, "branch", "--list", "main")
        assert settings.repository_url == str(remote)

    def test_rejects_existing_repository(
        self, workspace: Path, memory_store, remote_factory
    ) -> None:
        setup = build_setup(
            GitRepository(workspace), CollabSettings(), memory_store, remote_factory
        )

        result = setup.initialize("https://github.com/o/r")

        assert result.status == TransitionStatus.REJECTED


class TestBranches:
    """Tests for default-branch detection and the branch list."""

    def test_master_is_migrated(self, fake_setup, fake_repo) -> None:
        fake_repo.branch = "master"
        fake_repo.local_branches = ["master"]

        main = fake_setup.detect_default_branch()

        assert main == "main"
        assert fake_repo.branch == "main"
        assert "master" not in fake_repo.local_branches
        assert fake_setup.settings.main_branch == "main"

    def test_remote_head_used(self, fake_setup, fake_repo) -> None:
        fake_repo.branch = "trunk"
        fake_repo.local_branches = ["trunk"]
        fake_repo.default_branch = "trunk"

        assert fake_setup.detect_default_branch() == "trunk"

    def test_falls_back_to_remote_branches(self, fake_setup, fake_repo) -> None:
        fake_repo.branch = "feature/x"
        fake_repo.default_branch = None
        fake_repo.remote_branches = {"master"}

        assert fake_setup.detect_default_branch() == "master"

    def test_refresh_excludes_master(self, fake_setup, fake_repo) -> None:
        fake_repo.local_branches = ["feature/a", "main", "master"]

        branches = fake_setup.refresh_available_branches()

        assert branches == ["feature/a", "main"]


class TestPullLatest:
    """Tests for pull_latest."""

    def test_pulls_main(
        self, workspace: Path, other_clone: Path, connected_settings, memory_store, remote_factory
    ) -> None:
        commit_file(other_clone, "merged.md", "merged\n", "Merged work")
        run_git(other_clone, "push", "origin", "main")
        setup = build_setup(
            GitRepository(workspace), connected_settings, memory_store, remote_factory
        )

        result = setup.pull_latest()

        assert result.success, result.notices
        assert (workspace / "merged.md").exists()
        assert setup.guard.is_active is False

    def test_rejected_in_edit_mode(self, fake_setup, fake_repo) -> None:
        fake_setup.settings.is_read_only_mode = False

        result = fake_setup.pull_latest()

        assert result.status == TransitionStatus.REJECTED
        assert "pull" not in fake_repo.call_names

    def test_pull_runs_under_guard(self, fake_setup, fake_repo) -> None:
        seen: list[bool] = []
        original = fake_repo.pull

        def pull(branch: str) -> None:
            seen.append(fake_setup.guard.is_active)
            original(branch)

        fake_repo.pull = pull

        fake_setup.pull_latest()

        assert seen == [True]
        assert fake_setup.guard.is_active is False

    def test_pull_failure(self, fake_setup, fake_repo) -> None:
        fake_repo.fail_on("pull", "fatal: unable to access remote")

        result = fake_setup.pull_latest()

        assert result.status == TransitionStatus.FAILED
        assert fake_setup.guard.is_active is False


class TestStartup:
    """Tests for startup checks and the background remote check."""

    def test_missing_git_disconnects(self, fake_setup, fake_repo, memory_store) -> None:
        fake_repo.has_git = False

        result = fake_setup.startup_checks()

        assert fake_setup.settings.is_repository_connected is False
        assert memory_store.saved is not None
        assert memory_store.saved.is_repository_connected is False
        assert result.notices[0].level == NoticeLevel.WARNING

    def test_uncommitted_changes_warned(self, fake_setup, fake_repo) -> None:
        fake_repo.changes = ["?? draft.md"]

        result = fake_setup.startup_checks()

        assert any("uncommitted" in n.message for n in result.notices)

    def test_runs_validator(self, fake_setup, fake_repo) -> None:
        fake_repo.branch = "feature/x"

        fake_setup.startup_checks()

        assert fake_repo.branch == "main"

    def test_disconnected_noop(self, fake_setup, fake_repo) -> None:
        fake_setup.settings.is_repository_connected = False

        result = fake_setup.startup_checks()

        assert result.notices == []
        assert fake_repo.calls == []

    def test_remote_update_notice(self, fake_setup, fake_repo, memory_store) -> None:
        fake_repo.behind = 3
        notices = []
        saves = memory_store.save_count

        thread = fake_setup.start_remote_update_check(notices.append)
        thread.join(timeout=5)

        assert [n.message for n in notices] == ["3 update(s) available from the remote"]
        assert memory_store.save_count == saves

    def test_remote_check_skipped_during_bulk_mutation(self, fake_setup, fake_repo) -> None:
        fake_repo.behind = 3
        notices = []

        with fake_setup.guard.bulk_mutation("pull"):
            thread = fake_setup.start_remote_update_check(notices.append)
            thread.join(timeout=5)

        assert notices == []
        assert "fetch" not in fake_repo.call_names

    def test_remote_check_failure_is_silent(self, fake_setup, fake_repo) -> None:
        fake_repo.fail_on("fetch")
        notices = []

        thread = fake_setup.start_remote_update_check(notices.append)
        thread.join(timeout=5)

        assert notices == []


class TestDisconnect:
    """Tests for disconnect."""

    def test_disconnect_resets_and_forgets_token(self, fake_setup) -> None:
        fake_setup.credentials.set("https://github.com/owner/repo", "ghp_x")
        fake_setup.settings.is_read_only_mode = False
        fake_setup.settings.current_branch = "feature/x"

        result = fake_setup.disconnect()

        assert result.success
        settings = fake_setup.settings
        assert settings.is_repository_connected is False
        assert settings.repository_url == ""
        assert settings.current_branch == "main"
        assert settings.is_read_only_mode is True
        assert settings.repository_tokens == {}

"""
Repository setup service.

Connects a workspace to a remote repository (clone or init), runs the
startup checks, detects the default branch and keeps the branch list and
.gitignore in shape. The background remote-update check lives here too.
"""

from __future__ import annotations

import logging
import secrets
import shutil
import threading
import time
from collections.abc import Callable
from pathlib import Path

from gitcollab.core.config.models import DEFAULT_MAIN_BRANCH, CollabSettings
from gitcollab.core.credentials.store import CredentialError
from gitcollab.core.git.guard import BulkMutationGuard
from gitcollab.core.git.repository import GitError
from gitcollab.core.github.models import RepoInfo, RepositoryVisibility
from gitcollab.core.mode.machine import BranchModeMachine
from gitcollab.core.mode.models import (
    Notice,
    NoticeLevel,
    TransitionResult,
    TransitionStatus,
)
from gitcollab.core.ports import (
    ConfigStorePort,
    CredentialPort,
    RemoteFactory,
    RepositoryPort,
)
from gitcollab.core.setup.gitignore import ensure_gitignore

logger = logging.getLogger(__name__)

LEGACY_MAIN_BRANCH = "master"
INITIAL_COMMIT_MESSAGE = "Initial commit"


def _result(
    status: TransitionStatus, message: str, level: NoticeLevel, error: str | None = None
) -> TransitionResult:
    result = TransitionResult(status=status, error=error)
    result.notify(message, level)
    return result


def _applied(message: str) -> TransitionResult:
    return _result(TransitionStatus.APPLIED, message, NoticeLevel.SUCCESS)


def _rejected(message: str) -> TransitionResult:
    return _result(TransitionStatus.REJECTED, message, NoticeLevel.WARNING, error=message)


def _failed(message: str, error: Exception) -> TransitionResult:
    return _result(
        TransitionStatus.FAILED, f"{message}: {error}", NoticeLevel.ERROR, error=str(error)
    )


class SetupService:
    """
    Clone, init, disconnect and startup checks for one workspace.

    Example:
        >>> setup = SetupService(repo, settings, store, machine, creds, GitHubClient)
        >>> setup.clone("https://github.com/owner/notes", token="ghp_abc").success
        True
    """

    def __init__(
        self,
        repository: RepositoryPort,
        settings: CollabSettings,
        store: ConfigStorePort,
        machine: BranchModeMachine,
        credentials: CredentialPort,
        remote_factory: RemoteFactory,
        guard: BulkMutationGuard | None = None,
        *,
        state_dir: str = ".gitcollab",
        remote_check_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize SetupService.

        Args:
            repository: Git operations on the working tree
            settings: Shared settings record
            store: Persists the record
            machine: Branch-mode machine, for validation after setup
            credentials: Token lookup by repository URL
            remote_factory: Builds an API client (visibility queries)
            guard: Bulk mutation guard, defaults to the machine's
            state_dir: Workspace-relative state directory, kept on clone
            remote_check_delay: Delay before the background remote check
            sleep: Sleep function, replaceable in tests
        """
        self.repository = repository
        self.settings = settings
        self.store = store
        self.machine = machine
        self.credentials = credentials
        self.remote_factory = remote_factory
        self.guard = guard or machine.guard
        self.state_dir = state_dir.strip("/")
        self.remote_check_delay = remote_check_delay
        self._sleep = sleep

    @property
    def working_dir(self) -> Path:
        """Root of the working tree."""
        return self.repository.working_dir

    # ------------------------------------------------------------------
    # Tokens and URLs
    # ------------------------------------------------------------------

    def resolve_token(self, url: str, token: str | None = None) -> str | None:
        """
        Pick the token to use for `url`.

        Order: explicit token, stored token, none for a public repository.
        URLs that are not host/owner/repo shaped (local paths) need no token.

        Raises:
            CredentialError: If a token is needed and none is available
        """
        repo = RepoInfo.from_remote_url(url)
        if repo is None:
            return token or None
        if token:
            return token
        stored = self.credentials.get(url)
        if stored:
            return stored

        visibility = self.remote_factory(repo, None).get_visibility()
        if visibility == RepositoryVisibility.PUBLIC:
            logger.debug("%s is public, no token needed", repo.full_name)
            return None
        raise CredentialError(
            f"A GitHub token is required for {repo.full_name} "
            f"(visibility: {visibility.value}). Pass --token or run `gitcollab repo token set`."
        )

    @staticmethod
    def remote_url(url: str, token: str | None) -> str:
        """URL handed to git: authenticated https for hosted repositories."""
        repo = RepoInfo.from_remote_url(url)
        if repo is None:
            return url
        return repo.authenticated_url(token)

    def _connect(self, url: str, token: str | None) -> None:
        self.settings.repository_url = url
        self.settings.is_repository_connected = True
        self.settings.is_read_only_mode = True
        self.settings.current_branch = self.settings.main_branch
        self.settings.last_working_branch = ""
        if token and self.credentials.get(url) != token:
            self.credentials.set(url, token)
        self.store.save(self.settings)

    # ------------------------------------------------------------------
    # Clone / init / disconnect
    # ------------------------------------------------------------------

    def clone(
        self, url: str, token: str | None = None, *, overwrite: bool = False
    ) -> TransitionResult:
        """
        Replace the workspace content with a clone of `url`.

        Args:
            url: Repository URL (stored without credentials)
            token: Access token; looked up or skipped for public repositories
            overwrite: Allow deleting existing workspace content

        Returns:
            TransitionResult
        """
        url = url.strip()
        if not url:
            return _rejected("Repository URL cannot be empty.")
        try:
            token = self.resolve_token(url, token)
        except CredentialError as e:
            return _result(TransitionStatus.REJECTED, str(e), NoticeLevel.ERROR, error=str(e))

        workdir = self.working_dir
        workdir.mkdir(parents=True, exist_ok=True)
        existing = [p for p in workdir.iterdir() if p.name != self.state_dir]
        if existing and not overwrite:
            return _rejected(f"{workdir} is not empty. Use --overwrite to replace its content.")

        temp_dir = workdir / f".temp-clone-{secrets.token_hex(4)}"
        with self.guard.bulk_mutation("clone"):
            try:
                for path in existing:
                    _remove(path)
                self.repository.clone(self.remote_url(url, token), temp_dir)
                for path in temp_dir.iterdir():
                    shutil.move(str(path), str(workdir / path.name))
            except (GitError, OSError) as e:
                logger.warning("Clone of %s failed: %s", url, e)
                return _failed("Failed to clone repository", e)
            finally:
                if temp_dir.exists():
                    shutil.rmtree(temp_dir)

        ensure_gitignore(workdir, self.state_dir)
        try:
            self.repository.set_user(self.settings.user_name, self.settings.user_email)
        except GitError as e:
            logger.warning("Could not set commit identity: %s", e)

        self.detect_default_branch()
        self._connect(url, token)
        logger.info("Cloned %s into %s", url, workdir)

        result = _applied("Repository cloned. Read-only mode enabled.")
        result.extend(self.machine.validate_and_enforce_branch_rules())
        return result

    def initialize(self, url: str, token: str | None = None) -> TransitionResult:
        """
        Turn the workspace into a repository and publish it to `url`.

        Creates `main`, commits the current content and pushes it.

        Args:
            url: Empty remote repository URL
            token: Access token; looked up or skipped for public repositories

        Returns:
            TransitionResult
        """
        url = url.strip()
        if not url:
            return _rejected("Repository URL cannot be empty.")
        if self.repository.is_repository():
            return _rejected(
                "This folder is already a git repository. Clone or connect it instead."
            )
        try:
            token = self.resolve_token(url, token)
        except CredentialError as e:
            return _result(TransitionStatus.REJECTED, str(e), NoticeLevel.ERROR, error=str(e))

        self.working_dir.mkdir(parents=True, exist_ok=True)
        try:
            self.repository.init()
            self.repository.set_user(self.settings.user_name, self.settings.user_email)
            ensure_gitignore(self.working_dir, self.state_dir)
            self.repository.commit_all(INITIAL_COMMIT_MESSAGE)
            self.repository.rename_current_branch(DEFAULT_MAIN_BRANCH)
            try:
                self.repository.delete_branch(LEGACY_MAIN_BRANCH)
            except GitError as e:
                logger.debug("No %s branch to delete: %s", LEGACY_MAIN_BRANCH, e)
            self.repository.add_remote(self.remote_url(url, token))
            self.repository.push(DEFAULT_MAIN_BRANCH, set_upstream=True)
        except (GitError, OSError) as e:
            logger.warning("Initializing repository for %s failed: %s", url, e)
            self._discard_git_dir()
            return _failed("Failed to initialize repository", e)

        self.settings.main_branch = DEFAULT_MAIN_BRANCH
        self.settings.available_branches = [DEFAULT_MAIN_BRANCH]
        self._connect(url, token)
        logger.info("Initialized repository for %s", url)
        return _applied("Repository initialized and pushed. Read-only mode enabled.")

    def _discard_git_dir(self) -> None:
        # initialize only runs on a folder without .git, so this one is ours
        git_dir = self.working_dir / ".git"
        if git_dir.is_dir():
            shutil.rmtree(git_dir)
            logger.info("Removed partially initialized repository at %s", git_dir)

    def disconnect(self) -> TransitionResult:
        """Forget the repository and its token. Files and .git are left alone."""
        url = self.settings.repository_url
        if url:
            self.credentials.remove(url)
        self.settings.reset_repository()
        self.store.save(self.settings)
        logger.info("Disconnected from %s", url or "(no repository)")
        return _applied("Repository disconnected.")

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def detect_default_branch(self) -> str:
        """
        Work out the main branch and record it.

        A checked-out `master` is migrated to `main`. Otherwise the remote's
        HEAD branch wins, then `main`/`master` among the remote branches,
        then `main`.

        Returns:
            The main branch name
        """
        try:
            current = self.repository.current_branch()
        except GitError as e:
            logger.debug("Could not read current branch: %s", e)
            current = ""

        if current == LEGACY_MAIN_BRANCH:
            main = self._migrate_master()
        else:
            main = self._remote_head()

        self.settings.main_branch = main
        self.refresh_available_branches()
        return main

    def _migrate_master(self) -> str:
        try:
            self.repository.checkout(DEFAULT_MAIN_BRANCH, create=True)
        except GitError as e:
            logger.warning(
                "Could not migrate %s to %s: %s", LEGACY_MAIN_BRANCH, DEFAULT_MAIN_BRANCH, e
            )
            return LEGACY_MAIN_BRANCH
        try:
            self.repository.delete_branch(LEGACY_MAIN_BRANCH)
        except GitError as e:
            logger.debug("Could not delete %s: %s", LEGACY_MAIN_BRANCH, e)
        logger.info("Migrated %s to %s", LEGACY_MAIN_BRANCH, DEFAULT_MAIN_BRANCH)
        return DEFAULT_MAIN_BRANCH

    def _remote_head(self) -> str:
        try:
            head = self.repository.remote_default_branch()
        except GitError as e:
            logger.debug("remote show failed: %s", e)
            head = None
        if head:
            return head

        try:
            remote_branches = self.repository.list_branches(remote_only=True)
        except GitError as e:
            logger.debug("Listing remote branches failed: %s", e)
            remote_branches = []
        names = {b.split("/", 1)[1] for b in remote_branches if "/" in b}
        if DEFAULT_MAIN_BRANCH in names:
            return DEFAULT_MAIN_BRANCH
        if LEGACY_MAIN_BRANCH in names:
            return LEGACY_MAIN_BRANCH
        return DEFAULT_MAIN_BRANCH

    def refresh_available_branches(self) -> list[str]:
        """Record the local branches (excluding `master`) and persist."""
        try:
            branches = self.repository.list_branches()
        except GitError as e:
            logger.warning("Could not list branches: %s", e)
            return list(self.settings.available_branches)

        names = [b for b in branches if b != LEGACY_MAIN_BRANCH]
        if self.settings.main_branch not in names:
            names.insert(0, self.settings.main_branch)
        self.settings.available_branches = names
        self.store.save(self.settings)
        return list(self.settings.available_branches)

    def pull_latest(self) -> TransitionResult:
        """
        Update the local main branch from the remote.

        Only allowed in read-only mode.
        """
        if not self.settings.is_repository_connected:
            return _rejected("No repository connected.")
        if not self.settings.is_read_only_mode:
            return _rejected("Pulling is only available in read-only mode.")

        main = self.settings.main_branch
        try:
            with self.guard.bulk_mutation(f"pull {main}"):
                self.repository.checkout(main)
                self.repository.pull(main)
        except GitError as e:
            logger.warning("Pull of %s failed: %s", main, e)
            return _failed("Failed to pull latest changes", e)

        self.settings.current_branch = main
        self.store.save(self.settings)
        logger.info("Pulled latest %s", main)
        result = _applied(f"Pulled latest changes from '{main}'")
        result.extend(self.machine.validate_and_enforce_branch_rules())
        return result

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def startup_checks(self, on_notice: Callable[[Notice], None] | None = None) -> TransitionResult:
        """
        Reconcile state when the workspace is opened.

        Args:
            on_notice: Receives the background remote-update notice; the
                check is not started without it

        Returns:
            TransitionResult with any warnings and corrections
        """
        result = TransitionResult(status=TransitionStatus.APPLIED)
        if not self.settings.is_repository_connected:
            return result

        if not self.repository.is_repository():
            logger.warning("%s has no .git directory, disconnecting", self.working_dir)
            self.settings.is_repository_connected = False
            self.store.save(self.settings)
            result.notify(
                "Repository not found in this folder. Clone or initialize it again.",
                NoticeLevel.WARNING,
            )
            return result

        try:
            if self.repository.has_uncommitted_changes():
                result.notify("You have uncommitted changes.", NoticeLevel.WARNING)
        except GitError as e:
            logger.debug("Status check failed: %s", e)

        result.extend(self.machine.validate_and_enforce_branch_rules())

        if on_notice is not None:
            self.start_remote_update_check(on_notice)
        return result

    def start_remote_update_check(self, on_notice: Callable[[Notice], None]) -> threading.Thread:
        """
        Check for remote updates in a daemon thread.

        After `remote_check_delay` seconds this fetches and counts the
        commits the current branch is behind. Skipped while a bulk mutation
        runs. Never changes settings; failures are only logged.

        Returns:
            The started thread
        """
        branch = self.settings.current_branch

        def _check() -> None:
            self._sleep(self.remote_check_delay)
            if self.guard.is_active:
                logger.debug("Bulk git mutation active, skipping remote update check")
                return
            try:
                self.repository.fetch()
                behind = self.repository.behind_count(branch)
            except GitError as e:
                logger.debug("Remote update check failed: %s", e)
                return
            except Exception:
                logger.exception("Remote update check crashed")
                return
            if behind > 0:
                on_notice(Notice(f"{behind} update(s) available from the remote", NoticeLevel.INFO))

        thread = threading.Thread(target=_check, name="gitcollab-remote-check", daemon=True)
        thread.start()
        return thread


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
    else:
        path.unlink()

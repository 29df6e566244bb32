"""
CollabSession: one object wiring every component for a workspace.

Interfaces (the CLI, or any other host) talk to the session rather than to
the individual components. It also completes two-phase transitions: a
result with a pending transition is resumed with the user's answer, or
dropped by resuming with no answer.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from pathlib import Path

from gitcollab.core.config.loader import load_config
from gitcollab.core.config.models import GitCollabConfig
from gitcollab.core.config.store import SettingsStore
from gitcollab.core.credentials.store import CredentialStore
from gitcollab.core.git.guard import BulkMutationGuard
from gitcollab.core.git.repository import GitRepository
from gitcollab.core.github.client import GitHubClient
from gitcollab.core.github.models import RepoInfo
from gitcollab.core.mode.machine import BranchModeMachine
from gitcollab.core.mode.models import (
    InputKind,
    ModeState,
    PendingTransition,
    TransitionResult,
    TransitionStatus,
)
from gitcollab.core.ports import RemoteFactory, RemotePort
from gitcollab.core.pr.service import PullRequestManager
from gitcollab.core.publish.models import PublishResult, SaveDecision
from gitcollab.core.publish.workflow import PublishWorkflow
from gitcollab.core.setup.service import SetupService
from gitcollab.core.watcher.handler import NewFileHandler

logger = logging.getLogger(__name__)


def github_factory(config: GitCollabConfig) -> RemoteFactory:
    """Remote factory building GitHubClient instances from configuration."""

    def _factory(repo: RepoInfo, token: str | None) -> RemotePort:
        return GitHubClient(
            repo,
            token,
            api_url=config.github.api_url,
            timeout=config.github.timeout,
        )

    return _factory


class CollabSession:
    """
    All components for one workspace, sharing one settings record and guard.

    Example:
        >>> session = CollabSession.from_project_dir(Path("~/notes").expanduser())
        >>> result = session.toggle_mode()
        >>> if result.needs_input:
        ...     result = session.resume(result.pending, "feature/x")
    """

    def __init__(
        self,
        project_dir: Path,
        config: GitCollabConfig,
        store: SettingsStore,
        repository: GitRepository,
        remote_factory: RemoteFactory,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.project_dir = project_dir
        self.config = config
        self.store = store
        self.repository = repository
        self.settings = store.load()
        self.guard = BulkMutationGuard()

        self.credentials = CredentialStore(self.settings, store)
        self.credentials.migrate()

        self.machine = BranchModeMachine(repository, self.settings, store, self.guard)
        self.publisher = PublishWorkflow(repository, self.settings, self.machine, self.guard)
        self.setup = SetupService(
            repository,
            self.settings,
            store,
            self.machine,
            self.credentials,
            remote_factory,
            self.guard,
            state_dir=Path(config.sync.state_file).parts[0],
            remote_check_delay=config.sync.remote_check_delay,
            sleep=sleep,
        )
        self.pull_requests = PullRequestManager(
            self.settings,
            self.credentials,
            remote_factory,
            self.machine,
            self.setup.pull_latest,
            post_merge_delay=config.sync.post_merge_delay,
            sleep=sleep,
        )
        self.watcher = NewFileHandler(repository, self.settings, self.guard)

    @classmethod
    def from_project_dir(
        cls,
        project_dir: Path | None = None,
        *,
        config: GitCollabConfig | None = None,
        remote_factory: RemoteFactory | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> CollabSession:
        """
        Build a session for a workspace directory.

        Args:
            project_dir: Workspace root (defaults to cwd)
            config: Tool configuration (defaults to the layered config)
            remote_factory: API client factory (defaults to GitHubClient)
            sleep: Sleep function for post-merge and background delays

        Raises:
            SettingsStoreError: If the persisted record is corrupt
        """
        project_dir = (project_dir or Path.cwd()).resolve()
        config = config or load_config(project_dir)
        store = SettingsStore(project_dir / config.sync.state_file)
        repository = GitRepository(
            project_dir,
            remote=config.git.remote,
            timeout=config.git.timeout,
        )
        return cls(
            project_dir,
            config,
            store,
            repository,
            remote_factory or github_factory(config),
            sleep=sleep,
        )

    @property
    def state(self) -> ModeState:
        """Current mode and branch fields."""
        return self.machine.state

    def toggle_mode(self) -> TransitionResult:
        """Switch to the other mode; both directions may ask for input."""
        if self.settings.is_read_only_mode:
            return self.machine.enter_edit_mode()
        return self.machine.enter_read_only_mode(with_save_check=True)

    def start_new_branch(self, name: str) -> TransitionResult:
        """Create a working branch and start editing on it."""
        created = self.machine.create_new_branch(name)
        if not created.success:
            return created
        result = self.machine.enter_edit_mode(name)
        result.notices[:0] = created.notices
        return result

    def resume(
        self,
        pending: PendingTransition,
        answer: str | SaveDecision | None,
    ) -> TransitionResult | PublishResult:
        """
        Complete a suspended transition.

        Args:
            pending: The transition returned with NEEDS_INPUT
            answer: A branch name for a branch selection, a SaveDecision for
                a save decision, or None when the user abandoned the prompt

        Returns:
            TransitionResult, or PublishResult for a save decision

        Raises:
            TypeError: If the answer does not fit the pending kind
        """
        if answer is None or answer == "":
            logger.info("Pending %s abandoned", pending.kind.value)
            return TransitionResult(status=TransitionStatus.ABANDONED)

        if pending.kind == InputKind.BRANCH_SELECTION:
            if not isinstance(answer, str):
                raise TypeError("A branch selection must be answered with a branch name")
            return self.machine.enter_edit_mode(answer)

        if not isinstance(answer, SaveDecision):
            raise TypeError("A save decision must be answered with a SaveDecision")
        return self.publisher.apply(answer)

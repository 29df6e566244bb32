"""
Branch-mode state machine.

The workspace is either read-only on the main branch or editing on a working
branch. Every transition combines repository calls with policy checks so that
the declared mode and the checked-out branch never disagree:

    is_read_only_mode  <=>  current_branch == main_branch

Policy violations are rejected before any git command runs. Git failures
abort the transition and leave the mode flag as it was. The validator
reconciles drift caused by git activity outside this process.
"""

from __future__ import annotations

import logging

from gitcollab.core.config.models import DEFAULT_MAIN_BRANCH, CollabSettings
from gitcollab.core.git.guard import BulkMutationGuard
from gitcollab.core.git.repository import GitError
from gitcollab.core.mode.models import (
    InputKind,
    ModeState,
    NoticeLevel,
    PendingTransition,
    TransitionResult,
    TransitionStatus,
)
from gitcollab.core.ports import ConfigStorePort, RepositoryPort

logger = logging.getLogger(__name__)


def _rejected(message: str) -> TransitionResult:
    result = TransitionResult(status=TransitionStatus.REJECTED, error=message)
    result.notify(message, NoticeLevel.WARNING)
    return result


def _failed(message: str, error: Exception) -> TransitionResult:
    result = TransitionResult(status=TransitionStatus.FAILED, error=str(error))
    result.notify(f"{message}: {error}", NoticeLevel.ERROR)
    return result


class BranchModeMachine:
    """
    Owns the mode and branch fields of the settings record.

    Example:
        >>> machine = BranchModeMachine(GitRepository(path), settings, store)
        >>> result = machine.enter_edit_mode("feature/x")
        >>> result.success, machine.state.current_branch
        (True, 'feature/x')
    """

    def __init__(
        self,
        repository: RepositoryPort,
        settings: CollabSettings,
        store: ConfigStorePort,
        guard: BulkMutationGuard | None = None,
    ) -> None:
        """
        Initialize BranchModeMachine.

        Args:
            repository: Git operations on the working tree
            settings: Shared settings record (mutated in place)
            store: Persists the record after each mutation
            guard: Bulk mutation guard shared with the new-file handler
        """
        self.repository = repository
        self.settings = settings
        self.store = store
        self.guard = guard or BulkMutationGuard()

    @property
    def state(self) -> ModeState:
        """Current mode and branch fields."""
        return ModeState.from_settings(self.settings)

    def _persist(self) -> None:
        self.store.save(self.settings)

    def _checkout(self, branch: str, *, create: bool = False) -> None:
        with self.guard.bulk_mutation(f"checkout {branch}"):
            self.repository.checkout(branch, create=create)

    def enter_edit_mode(self, branch: str | None = None) -> TransitionResult:
        """
        Leave read-only mode and start editing on a working branch.

        With no branch, nothing changes and the result asks for a branch
        selection; call again with the chosen branch to complete.

        Args:
            branch: Working branch to edit on

        Returns:
            TransitionResult; NEEDS_INPUT when no branch was given
        """
        if not self.settings.is_repository_connected:
            return _rejected("No repository connected. Clone or initialize one first.")

        main = self.settings.main_branch
        if branch is None:
            options = tuple(b for b in self.settings.available_branches if b != main)
            return TransitionResult(
                status=TransitionStatus.NEEDS_INPUT,
                pending=PendingTransition(
                    kind=InputKind.BRANCH_SELECTION,
                    options=options,
                    branch=self.settings.current_branch,
                ),
            )

        branch = branch.strip()
        if not branch:
            return _rejected("Branch name cannot be empty.")
        if branch == main:
            return _rejected(
                f"Cannot edit on the '{main}' branch. Choose or create a working branch."
            )

        try:
            self._checkout(branch)
        except GitError as e:
            logger.warning("Checkout of %s failed: %s", branch, e)
            return _failed(f"Failed to switch to branch '{branch}'", e)

        self.settings.current_branch = branch
        self.settings.last_working_branch = branch
        self.settings.is_read_only_mode = False
        self.settings.add_branch(branch)
        self._persist()
        logger.info("Edit mode enabled on %s", branch)

        result = TransitionResult(status=TransitionStatus.APPLIED)
        result.notify(f"Edit mode enabled on branch '{branch}'", NoticeLevel.SUCCESS)
        result.extend(self.validate_and_enforce_branch_rules())
        return result

    def enter_read_only_mode(self, with_save_check: bool = True) -> TransitionResult:
        """
        Return to read-only mode on the main branch.

        Args:
            with_save_check: Ask for a save decision first when the working
                tree has uncommitted changes

        Returns:
            TransitionResult; NEEDS_INPUT with the changed files as options
            when a save decision is required
        """
        if (
            with_save_check
            and self.settings.is_repository_connected
            and not self.settings.is_read_only_mode
        ):
            try:
                changes = self.repository.status_porcelain()
            except GitError as e:
                return _failed("Could not read the working tree status", e)
            if changes:
                logger.info(
                    "Uncommitted changes on %s, save decision required",
                    self.settings.current_branch,
                )
                return TransitionResult(
                    status=TransitionStatus.NEEDS_INPUT,
                    pending=PendingTransition(
                        kind=InputKind.SAVE_DECISION,
                        options=tuple(changes),
                        branch=self.settings.current_branch,
                    ),
                )

        return self.force_enable_read_only_mode()

    def force_enable_read_only_mode(self) -> TransitionResult:
        """
        Check out the main branch and enable read-only mode, without a save check.

        On checkout failure the mode flag keeps its prior value.
        """
        if not self.settings.is_repository_connected:
            self.settings.is_read_only_mode = True
            self._persist()
            result = TransitionResult(status=TransitionStatus.APPLIED)
            result.notify("Read-only mode enabled", NoticeLevel.SUCCESS)
            return result

        main = self.settings.main_branch
        try:
            self._checkout(main)
        except GitError as e:
            logger.warning("Checkout of %s failed, keeping current mode: %s", main, e)
            result = _failed(f"Failed to switch to '{main}'", e)
            result.extend(self.validate_and_enforce_branch_rules())
            return result

        self.settings.current_branch = main
        self.settings.is_read_only_mode = True
        self._persist()
        logger.info("Read-only mode enabled on %s", main)

        result = TransitionResult(status=TransitionStatus.APPLIED)
        result.notify(f"Read-only mode enabled on '{main}'", NoticeLevel.SUCCESS)
        result.extend(self.validate_and_enforce_branch_rules())
        return result

    def switch_to_branch(self, name: str) -> TransitionResult:
        """
        Check out another branch allowed by the current mode.

        Read-only mode allows only the main branch; edit mode allows any
        branch except main.
        """
        if not self.settings.is_repository_connected:
            return _rejected("No repository connected. Clone or initialize one first.")

        name = name.strip()
        main = self.settings.main_branch
        if not name:
            return _rejected("Branch name cannot be empty.")
        if self.settings.is_read_only_mode and name != main:
            return _rejected(
                f"Read-only mode only allows the '{main}' branch. "
                f"Enter edit mode to work on '{name}'."
            )
        if not self.settings.is_read_only_mode and name == main:
            return _rejected(
                f"Cannot switch to '{main}' in edit mode. Enable read-only mode instead."
            )

        try:
            self._checkout(name)
        except GitError as e:
            return _failed(f"Failed to switch to branch '{name}'", e)

        self.settings.current_branch = name
        if not self.settings.is_read_only_mode:
            self.settings.last_working_branch = name
        self.settings.add_branch(name)
        self._persist()
        logger.info("Switched to %s", name)

        result = TransitionResult(status=TransitionStatus.APPLIED)
        result.notify(f"Switched to branch '{name}'", NoticeLevel.SUCCESS)
        result.extend(self.validate_and_enforce_branch_rules())
        return result

    def create_new_branch(self, name: str) -> TransitionResult:
        """
        Create a branch from HEAD and record it.

        The declared mode is not changed: in read-only mode the validator
        returns the working tree to main afterwards.
        """
        if not self.settings.is_repository_connected:
            return _rejected("No repository connected. Clone or initialize one first.")

        name = name.strip()
        if not name:
            return _rejected("Branch name cannot be empty.")
        if name == self.settings.main_branch:
            return _rejected(f"'{name}' is the main branch.")

        try:
            self._checkout(name, create=True)
        except GitError as e:
            return _failed(f"Failed to create branch '{name}'", e)

        self.settings.add_branch(name)
        self._persist()
        logger.info("Created branch %s", name)

        result = TransitionResult(status=TransitionStatus.APPLIED)
        result.notify(f"Created branch '{name}'", NoticeLevel.SUCCESS)
        result.extend(self.validate_and_enforce_branch_rules())
        return result

    def validate_and_enforce_branch_rules(self) -> TransitionResult:
        """
        Reconcile the settings with the branch actually checked out.

        Runs after every transition and at startup. Idempotent. Never
        touches uncommitted file content.

        Returns:
            TransitionResult with a notice for each correction made
        """
        result = TransitionResult(status=TransitionStatus.APPLIED)
        if not self.settings.is_repository_connected:
            return result

        try:
            actual = self.repository.current_branch()
        except GitError as e:
            logger.warning("Could not determine the current branch: %s", e)
            return _failed("Could not determine the current branch", e)

        changed = False
        if actual == DEFAULT_MAIN_BRANCH and self.settings.main_branch != DEFAULT_MAIN_BRANCH:
            logger.info(
                "Correcting main branch from %s to %s", self.settings.main_branch, actual
            )
            self.settings.main_branch = DEFAULT_MAIN_BRANCH
            changed = True

        main = self.settings.main_branch

        if self.settings.is_read_only_mode and actual != main:
            logger.info("Read-only mode on %r, checking out %s", actual, main)
            try:
                self._checkout(main)
            except GitError as e:
                if actual:
                    # Checkout impossible: repair the flag side instead
                    self.settings.is_read_only_mode = False
                    self.settings.current_branch = actual
                    self.settings.last_working_branch = actual
                    self.settings.add_branch(actual)
                    self._persist()
                    logger.warning("Could not return to %s, edit mode on %s: %s", main, actual, e)
                    return _failed(
                        f"Could not return to '{main}', edit mode enabled on '{actual}'", e
                    )
                if changed:
                    self._persist()
                return _failed(f"Could not return to '{main}'", e)
            self.settings.current_branch = main
            result.notify(f"Read-only mode: switched back to '{main}'")
            changed = True
        elif not self.settings.is_read_only_mode and actual == main:
            logger.warning("Edit mode on %s is not allowed, enabling read-only mode", main)
            self.settings.is_read_only_mode = True
            self.settings.current_branch = main
            result.notify(
                f"Editing on '{main}' is not allowed. Switched to read-only mode.",
                NoticeLevel.WARNING,
            )
            changed = True
        elif not actual:
            result.notify(
                "HEAD is detached. Check out a working branch to keep editing.",
                NoticeLevel.WARNING,
            )
        elif self.settings.current_branch != actual:
            logger.info("Syncing current branch %s -> %s", self.settings.current_branch, actual)
            self.settings.current_branch = actual
            self.settings.add_branch(actual)
            changed = True

        if changed:
            self._persist()
        return result

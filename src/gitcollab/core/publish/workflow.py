"""
Save/publish workflow.

Turns "save my work" into one action: commit, optionally push with a
fetch-and-pull safety step, then return to read-only mode on main.
"""

from __future__ import annotations

import logging

from gitcollab.core.config.models import CollabSettings
from gitcollab.core.git.guard import BulkMutationGuard
from gitcollab.core.git.repository import GitError
from gitcollab.core.mode.machine import BranchModeMachine
from gitcollab.core.mode.models import NoticeLevel
from gitcollab.core.ports import RepositoryPort
from gitcollab.core.publish.models import (
    PublishResult,
    PublishStatus,
    SaveAction,
    SaveDecision,
)

logger = logging.getLogger(__name__)


class PublishWorkflow:
    """
    Commits and publishes work from a working branch.

    Both actions refuse to run on the main branch, checked against the
    branch git reports rather than the stored setting.

    Example:
        >>> workflow = PublishWorkflow(repo, settings, machine)
        >>> result = workflow.save_and_push("Add chapter 3")
        >>> result.status, result.offer_pull_request
        (<PublishStatus.PUSHED: 'pushed'>, True)
    """

    def __init__(
        self,
        repository: RepositoryPort,
        settings: CollabSettings,
        machine: BranchModeMachine,
        guard: BulkMutationGuard | None = None,
    ) -> None:
        """
        Initialize PublishWorkflow.

        Args:
            repository: Git operations on the working tree
            settings: Shared settings record
            machine: Used for the final return to read-only mode
            guard: Bulk mutation guard, defaults to the machine's
        """
        self.repository = repository
        self.settings = settings
        self.machine = machine
        self.guard = guard or machine.guard

    def apply(self, decision: SaveDecision) -> PublishResult:
        """Run the action chosen in a save decision."""
        if decision.action == SaveAction.PUSH:
            return self.save_and_push(decision.message)
        return self.save_as_draft(decision.message)

    def _check_branch(self, message: str) -> PublishResult | str:
        """Return the branch to save on, or a rejection."""
        if not message.strip():
            return self._rejected("Commit message cannot be empty.")
        if not self.settings.is_repository_connected:
            return self._rejected("No repository connected.")

        main = self.settings.main_branch
        try:
            branch = self.repository.current_branch()
        except GitError as e:
            return self._rejected(f"Could not determine the current branch: {e}")

        if not branch:
            return self._rejected("HEAD is detached. Check out a working branch first.")
        if branch == main or self.settings.current_branch == main:
            return self._rejected(
                f"Cannot save changes on '{main}'. Switch to a working branch first."
            )
        return branch

    @staticmethod
    def _rejected(message: str) -> PublishResult:
        result = PublishResult(status=PublishStatus.REJECTED)
        result.notify(message, NoticeLevel.WARNING)
        return result

    def _commit(self, branch: str, message: str) -> PublishResult | None:
        """Commit all changes; returns a failure result or None."""
        try:
            if not self.repository.has_uncommitted_changes():
                logger.info("Nothing to commit on %s", branch)
                return None
            self.repository.commit_all(message.strip())
        except GitError as e:
            logger.warning("Commit on %s failed: %s", branch, e)
            result = PublishResult(status=PublishStatus.COMMIT_FAILED, branch=branch)
            result.notify(f"Failed to commit changes: {e}", NoticeLevel.ERROR)
            return result
        logger.info("Committed changes on %s", branch)
        return None

    def _finish_read_only(self, result: PublishResult) -> PublishResult:
        transition = self.machine.force_enable_read_only_mode()
        result.notices.extend(transition.notices)
        result.read_only = transition.success
        return result

    def save_as_draft(self, message: str) -> PublishResult:
        """
        Commit locally, then return to read-only mode.

        Args:
            message: Commit message

        Returns:
            PublishResult with status SAVED on success
        """
        checked = self._check_branch(message)
        if isinstance(checked, PublishResult):
            return checked
        branch = checked

        failure = self._commit(branch, message)
        if failure is not None:
            return failure

        result = PublishResult(
            status=PublishStatus.SAVED, branch=branch, commit_message=message.strip()
        )
        result.notify(f"Changes saved as draft on '{branch}'", NoticeLevel.SUCCESS)
        return self._finish_read_only(result)

    def save_and_push(self, message: str) -> PublishResult:
        """
        Commit, bring the branch up to date with the remote, push.

        If the remote branch has commits the local one lacks they are pulled
        first; if that pull fails nothing is pushed and the result is a
        CONFLICT. A successful first push of a branch sets
        `offer_pull_request`.

        Args:
            message: Commit message

        Returns:
            PublishResult with status PUSHED on success
        """
        checked = self._check_branch(message)
        if isinstance(checked, PublishResult):
            return checked
        branch = checked

        failure = self._commit(branch, message)
        if failure is not None:
            return failure

        # Must be asked before pushing
        is_new_branch = not self.repository.remote_branch_exists(branch)

        conflict = self._sync_with_remote(branch)
        if conflict is not None:
            return conflict

        try:
            self.repository.push(branch, set_upstream=is_new_branch)
        except GitError as e:
            logger.warning("Push of %s failed: %s", branch, e)
            result = PublishResult(
                status=PublishStatus.PUSH_FAILED, branch=branch, commit_message=message.strip()
            )
            result.notify(
                f"Changes were committed but the push failed: {e}", NoticeLevel.ERROR
            )
            return result

        logger.info("Pushed %s (new branch: %s)", branch, is_new_branch)
        result = PublishResult(
            status=PublishStatus.PUSHED,
            branch=branch,
            offer_pull_request=is_new_branch,
            commit_message=message.strip(),
        )
        result.notify(f"Changes pushed to '{branch}'", NoticeLevel.SUCCESS)
        return self._finish_read_only(result)

    def _sync_with_remote(self, branch: str) -> PublishResult | None:
        """Pull when behind the remote branch; returns a CONFLICT result on failure."""
        try:
            self.repository.fetch()
        except GitError as e:
            logger.debug("Fetch before push failed, continuing: %s", e)

        try:
            behind = self.repository.behind_count(branch)
        except GitError as e:
            # No remote-tracking branch yet
            logger.debug("Could not count commits behind for %s: %s", branch, e)
            behind = 0

        if behind <= 0:
            return None

        logger.info("%s is %d commit(s) behind the remote, pulling first", branch, behind)
        try:
            with self.guard.bulk_mutation(f"pull {branch}"):
                self.repository.pull(branch)
        except GitError as e:
            logger.warning("Pull before push of %s failed: %s", branch, e)
            result = PublishResult(status=PublishStatus.CONFLICT, branch=branch)
            result.notify(
                f"'{branch}' is behind the remote and pulling failed, probably a conflict. "
                f"Resolve it and save again. Nothing was pushed. ({e})",
                NoticeLevel.ERROR,
            )
            return result
        return None

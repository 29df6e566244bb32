"""
Pull-request lifecycle manager.

Create, list, merge and close pull requests through the remote API. A
successful merge is followed by a return to read-only mode and a pull of the
main branch, so the local main reflects what was just merged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

from gitcollab.core.config.models import CollabSettings
from gitcollab.core.credentials.store import CredentialError
from gitcollab.core.github.client import GitHubClientError
from gitcollab.core.github.models import MergeMethod, PullRequest, RepoInfo
from gitcollab.core.mode.machine import BranchModeMachine
from gitcollab.core.mode.models import (
    Notice,
    NoticeLevel,
    PendingTransition,
    TransitionResult,
)
from gitcollab.core.ports import CredentialPort, RemoteFactory, RemotePort

logger = logging.getLogger(__name__)


class PullRequestError(Exception):
    """The repository cannot be addressed through the remote API."""

    pass


@dataclass
class PRResult:
    """Result of a create or close operation."""

    success: bool
    number: int | None = None
    url: str = ""
    title: str = ""
    error: str | None = None
    notices: list[Notice] = field(default_factory=list)


@dataclass
class PRListResult:
    """Open pull requests, or the reason they could not be fetched."""

    success: bool
    pull_requests: list[PullRequest] = field(default_factory=list)
    error: str | None = None


@dataclass
class MergeResult:
    """
    Result of a merge and the local sync that follows it.

    `success` reflects the merge only. A failed or suspended sync shows up
    in `read_only`, `pulled`, `pending` and the notices.
    """

    success: bool
    pr_number: int
    method: str
    read_only: bool = False
    pulled: bool = False
    pending: PendingTransition | None = None
    error: str | None = None
    notices: list[Notice] = field(default_factory=list)


class PullRequestManager:
    """
    Pull-request operations for the connected repository.

    Example:
        >>> manager = PullRequestManager(settings, creds, GitHubClient, machine, setup.pull_latest)
        >>> result = manager.merge(42, MergeMethod.SQUASH)
        >>> result.success, result.pulled
        (True, True)
    """

    def __init__(
        self,
        settings: CollabSettings,
        credentials: CredentialPort,
        remote_factory: RemoteFactory,
        machine: BranchModeMachine,
        pull_latest: Callable[[], TransitionResult],
        *,
        post_merge_delay: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize PullRequestManager.

        Args:
            settings: Shared settings record
            credentials: Token lookup by repository URL
            remote_factory: Builds an API client for a repository and token
            machine: Used for the post-merge return to read-only mode
            pull_latest: Pulls the main branch after a merge
            post_merge_delay: Seconds to let the remote finalize a merge
            sleep: Sleep function, replaceable in tests
        """
        self.settings = settings
        self.credentials = credentials
        self.remote_factory = remote_factory
        self.machine = machine
        self.pull_latest = pull_latest
        self.post_merge_delay = post_merge_delay
        self._sleep = sleep

    def _repo(self) -> RepoInfo:
        if not self.settings.is_repository_connected or not self.settings.repository_url:
            raise PullRequestError("No repository connected.")
        repo = RepoInfo.from_remote_url(self.settings.repository_url)
        if repo is None:
            raise PullRequestError(
                f"Could not determine owner/repo from '{self.settings.repository_url}'"
            )
        return repo

    def _remote(self, token: str | None = None) -> RemotePort:
        repo = self._repo()
        token = token or self.credentials.get(self.settings.repository_url)
        if not token:
            raise CredentialError(
                "GitHub token required for this repository. "
                "Store one with `gitcollab repo token set`."
            )
        return self.remote_factory(repo, token)

    def create(
        self,
        branch: str,
        title: str,
        body: str = "",
        token: str | None = None,
    ) -> PRResult:
        """
        Open a pull request from a working branch into the main branch.

        Args:
            branch: Head branch
            title: Pull request title
            body: Pull request description
            token: Token to use instead of the stored one; stored for the
                repository when none is stored yet

        Returns:
            PRResult with the assigned number, or the remote error message
        """
        main = self.settings.main_branch
        if not title.strip():
            return self._failed_pr("Pull request title cannot be empty.")
        if not branch or branch == main:
            return self._failed_pr(f"Cannot open a pull request from '{main}' into itself.")

        try:
            remote = self._remote(token)
            pr = remote.create_pull_request(branch, main, title.strip(), body)
        except (PullRequestError, CredentialError, GitHubClientError) as e:
            logger.warning("Creating pull request for %s failed: %s", branch, e)
            return self._failed_pr(f"Failed to create pull request: {e}", error=str(e))

        if token and not self.credentials.get(self.settings.repository_url):
            self.credentials.set(self.settings.repository_url, token)

        logger.info("Created pull request #%d for %s", pr.number, branch)
        result = PRResult(success=True, number=pr.number, url=pr.html_url, title=pr.title)
        result.notices.append(
            Notice(f"Pull request #{pr.number} created: {pr.html_url}", NoticeLevel.SUCCESS)
        )
        return result

    @staticmethod
    def _failed_pr(message: str, error: str | None = None) -> PRResult:
        return PRResult(
            success=False,
            error=error or message,
            notices=[Notice(message, NoticeLevel.ERROR)],
        )

    def list_open(self) -> PRListResult:
        """Fetch the open pull requests."""
        try:
            pull_requests = self._remote().list_pull_requests()
        except (PullRequestError, CredentialError, GitHubClientError) as e:
            logger.warning("Listing pull requests failed: %s", e)
            return PRListResult(success=False, error=str(e))
        return PRListResult(success=True, pull_requests=pull_requests)

    def merge(self, number: int, method: MergeMethod = MergeMethod.MERGE) -> MergeResult:
        """
        Merge a pull request, then sync the local main branch.

        After a successful merge this waits `post_merge_delay` seconds, enters
        read-only mode with a save check and pulls main. If the save check
        needs a decision the pull is skipped and the pending transition is
        returned. Sync failures never undo the merge.

        Args:
            number: Pull request number
            method: Merge method

        Returns:
            MergeResult
        """
        result = MergeResult(success=False, pr_number=number, method=method.value)
        try:
            self._remote().merge_pull_request(number, method)
        except (PullRequestError, CredentialError, GitHubClientError) as e:
            logger.warning("Merging pull request #%d failed: %s", number, e)
            result.error = str(e)
            result.notices.append(Notice(f"Failed to merge pull request: {e}", NoticeLevel.ERROR))
            return result

        logger.info("Merged pull request #%d (%s)", number, method.value)
        result.success = True
        result.notices.append(Notice(f"Pull request #{number} merged", NoticeLevel.SUCCESS))

        if self.post_merge_delay > 0:
            self._sleep(self.post_merge_delay)

        transition = self.machine.enter_read_only_mode(with_save_check=True)
        result.notices.extend(transition.notices)
        if transition.needs_input:
            result.pending = transition.pending
            result.notices.append(
                Notice(
                    "Save or discard your local changes, then pull the main branch.",
                    NoticeLevel.WARNING,
                )
            )
            return result
        if not transition.success:
            result.notices.append(self._sync_warning(transition.error))
            return result

        result.read_only = True
        pulled = self.pull_latest()
        result.notices.extend(pulled.notices)
        if pulled.success:
            result.pulled = True
        else:
            result.notices.append(self._sync_warning(pulled.error))
        return result

    @staticmethod
    def _sync_warning(error: str | None) -> Notice:
        message = "Merge completed, but there was an issue updating the local main branch"
        if error:
            message = f"{message}: {error}"
        return Notice(message, NoticeLevel.WARNING)

    def close(self, number: int) -> PRResult:
        """Close a pull request without merging. No local effect."""
        try:
            self._remote().close_pull_request(number)
        except (PullRequestError, CredentialError, GitHubClientError) as e:
            logger.warning("Closing pull request #%d failed: %s", number, e)
            return self._failed_pr(f"Failed to close pull request: {e}", error=str(e))

        logger.info("Closed pull request #%d", number)
        result = PRResult(success=True, number=number)
        result.notices.append(Notice(f"Pull request #{number} closed", NoticeLevel.SUCCESS))
        return result

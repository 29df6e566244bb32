"""
GitHub REST client for gitcollab.

Covers the pull-request lifecycle (create, list, merge, close) and the
repository visibility lookup. Requests are made with httpx; nothing is
retried automatically, every retry is a fresh user action.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from gitcollab.core.github.models import (
    MergeMethod,
    PullRequest,
    RepoInfo,
    RepositoryVisibility,
)

logger = logging.getLogger(__name__)


class GitHubClientError(Exception):
    """Error from GitHub client operations."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubClient:
    """
    Client for the GitHub REST API.

    Example:
        >>> repo = RepoInfo.from_remote_url("https://github.com/user/notes")
        >>> client = GitHubClient(repo, token="ghp_...")
        >>> pr = client.create_pull_request("feature/x", "main", "Title", "Body")
        >>> print(pr.number)
    """

    DEFAULT_API_URL = "https://api.github.com"

    def __init__(
        self,
        repo: RepoInfo,
        token: str | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Initialize GitHubClient.

        Args:
            repo: Repository information
            token: Access token (required for everything except visibility)
            api_url: REST API base URL
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.repo = repo
        self.token = token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self, authenticated: bool) -> dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if authenticated:
            if not self.token:
                raise GitHubClientError("GitHub token required")
            headers["Authorization"] = f"token {self.token}"
        return headers

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract the remote-provided error message, verbatim when present."""
        try:
            data = response.json()
        except ValueError:
            data = None
        if isinstance(data, dict) and data.get("message"):
            return str(data["message"])
        return f"HTTP {response.status_code}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
        authenticated: bool = True,
    ) -> httpx.Response:
        """
        Issue one API request.

        Raises:
            GitHubClientError: On transport failure or any non-2xx response
        """
        headers = self._headers(authenticated)
        url = f"{self.api_url}/{path.lstrip('/')}"
        logger.debug("GitHub API %s %s", method, url)

        try:
            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.request(
                    method,
                    url,
                    headers=headers,
                    json=json_body,
                    params=params,
                )
        except httpx.TimeoutException as e:
            raise GitHubClientError(f"Request timed out after {self.timeout}s: {e}") from e
        except httpx.RequestError as e:
            raise GitHubClientError(f"Network error: {e}") from e

        if not response.is_success:
            message = self._error_message(response)
            logger.debug("GitHub API %s %s failed: %s", method, url, message)
            raise GitHubClientError(message, status_code=response.status_code)

        return response

    @staticmethod
    def _json_object(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as e:
            raise GitHubClientError(f"Failed to parse GitHub API response: {e}") from e
        if not isinstance(data, dict):
            raise GitHubClientError("Unexpected GitHub API response")
        return data

    def create_pull_request(self, head: str, base: str, title: str, body: str) -> PullRequest:
        """
        Open a pull request.

        Args:
            head: Source branch
            base: Target branch
            title: Pull request title
            body: Pull request description

        Returns:
            The created PullRequest (with its assigned number)
        """
        response = self._request(
            "POST",
            f"{self.repo.api_path}/pulls",
            json_body={"title": title, "body": body, "head": head, "base": base},
        )
        return PullRequest.from_api(self._json_object(response))

    def list_pull_requests(self) -> list[PullRequest]:
        """
        Fetch open pull requests.

        Returns:
            Open pull requests in the order the API returns them
        """
        response = self._request(
            "GET",
            f"{self.repo.api_path}/pulls",
            params={"state": "open"},
        )
        try:
            data = response.json()
        except ValueError as e:
            raise GitHubClientError(f"Failed to parse GitHub API response: {e}") from e
        if not isinstance(data, list):
            raise GitHubClientError("Unexpected GitHub API response")
        return [PullRequest.from_api(item) for item in data if isinstance(item, dict)]

    def merge_pull_request(self, number: int, method: MergeMethod = MergeMethod.MERGE) -> None:
        """
        Merge a pull request.

        Args:
            number: Pull request number
            method: Merge strategy
        """
        self._request(
            "PUT",
            f"{self.repo.api_path}/pulls/{number}/merge",
            json_body={"merge_method": MergeMethod(method).value},
        )

    def close_pull_request(self, number: int) -> None:
        """
        Close a pull request without merging.

        Args:
            number: Pull request number
        """
        self._request(
            "PATCH",
            f"{self.repo.api_path}/pulls/{number}",
            json_body={"state": "closed"},
        )

    def get_visibility(self) -> RepositoryVisibility:
        """
        Ask the remote whether the repository is public.

        Uses the token when one is set. A 404 means the repository is either
        private or missing; both need a token, so it reports PRIVATE.

        Returns:
            RepositoryVisibility (UNKNOWN when the remote cannot be asked)
        """
        try:
            response = self._request(
                "GET",
                self.repo.api_path,
                authenticated=bool(self.token),
            )
            data = self._json_object(response)
        except GitHubClientError as e:
            if e.status_code == 404:
                return RepositoryVisibility.PRIVATE
            logger.debug("Visibility lookup failed for %s: %s", self.repo.full_name, e)
            return RepositoryVisibility.UNKNOWN

        if data.get("private") is True or data.get("visibility") in ("private", "internal"):
            return RepositoryVisibility.PRIVATE
        if data.get("private") is False:
            return RepositoryVisibility.PUBLIC
        return RepositoryVisibility.UNKNOWN

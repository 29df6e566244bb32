"""
Tests for the GitHub models and REST client.

The client is exercised through httpx.MockTransport; no request leaves the
process.
"""

from __future__ import annotations

import json

import httpx
import pytest

from gitcollab.core.github.client import GitHubClient, GitHubClientError
from gitcollab.core.github.models import (
    Mergeable,
    MergeMethod,
    PullRequest,
    RepoInfo,
    RepositoryVisibility,
)


class TestRepoInfo:
    """Tests for RepoInfo parsing."""

    @pytest.mark.parametrize(
        "url",
        [
            "git@github.com:owner/repo.git",
            "git@github.com:owner/repo",
            "https://github.com/owner/repo.git",
            "https://github.com/owner/repo/",
            "https://ghp_abc@github.com/owner/repo.git",
            "ssh://git@github.com/owner/repo",
            "github.com/owner/repo",
            "https://www.github.com/owner/repo",
        ],
    )
    def test_spellings_resolve_to_same_repo(self, url: str) -> None:
        repo = RepoInfo.from_remote_url(url)

        assert repo is not None
        assert repo.host == "github.com"
        assert repo.full_name == "owner/repo"
        assert repo.canonical_url == "https://github.com/owner/repo"

    def test_other_host(self) -> None:
        repo = RepoInfo.from_remote_url("https://git.example.org:8443/team/notes.git")

        assert repo is not None
        assert repo.host == "git.example.org"
        assert repo.is_github is False

    @pytest.mark.parametrize("url", ["", "/srv/git/notes.git", "./notes", "not a url"])
    def test_unparseable(self, url: str) -> None:
        assert RepoInfo.from_remote_url(url) is None

    def test_authenticated_url(self) -> None:
        repo = RepoInfo(owner="owner", repo="repo")

        assert repo.authenticated_url("ghp_x") == "https://ghp_x@github.com/owner/repo.git"
        assert repo.authenticated_url(None) == "https://github.com/owner/repo.git"
        assert repo.api_path == "repos/owner/repo"


class TestPullRequestModel:
    """Tests for PullRequest.from_api."""

    def test_from_api(self) -> None:
        pr = PullRequest.from_api(
            {
                "number": 12,
                "title": "Add notes",
                "body": None,
                "head": {"ref": "feature/x"},
                "base": {"ref": "main"},
                "user": {"login": "octocat"},
                "mergeable": True,
                "html_url": "https://github.com/owner/repo/pull/12",
            }
        )

        assert pr.number == 12
        assert pr.body == ""
        assert pr.head == "feature/x"
        assert pr.base == "main"
        assert pr.author == "octocat"
        assert pr.merge_state == Mergeable.CLEAN

    def test_mergeable_not_computed(self) -> None:
        pr = PullRequest.from_api({"number": 3, "mergeable": None})

        assert pr.mergeable is None
        assert pr.merge_state == Mergeable.UNKNOWN


def make_client(handler, token: str | None = "ghp_test") -> GitHubClient:
    return GitHubClient(
        RepoInfo(owner="owner", repo="repo"),
        token,
        transport=httpx.MockTransport(handler),
    )


class TestGitHubClient:
    """Tests for the REST calls."""

    def test_create_pull_request(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                201,
                json={
                    "number": 42,
                    "title": "Add notes",
                    "head": {"ref": "feature/x"},
                    "base": {"ref": "main"},
                    "html_url": "https://github.com/owner/repo/pull/42",
                },
            )

        pr = make_client(handler).create_pull_request("feature/x", "main", "Add notes", "Body")

        assert pr.number == 42
        request = seen[0]
        assert request.method == "POST"
        assert request.url.path == "/repos/owner/repo/pulls"
        assert request.headers["Authorization"] == "token ghp_test"
        assert request.headers["Accept"] == "application/vnd.github+json"
        assert json.loads(request.content) == {
            "title": "Add notes",
            "body": "Body",
            "head": "feature/x",
            "base": "main",
        }

    def test_error_message_verbatim(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                422, json={"message": "A pull request already exists for owner:feature/x."}
            )

        with pytest.raises(GitHubClientError) as exc_info:
            make_client(handler).create_pull_request("feature/x", "main", "t", "")

        assert str(exc_info.value) == "A pull request already exists for owner:feature/x."
        assert exc_info.value.status_code == 422

    def test_error_without_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(GitHubClientError, match="HTTP 502"):
            make_client(handler).list_pull_requests()

    def test_network_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(GitHubClientError, match="Network error"):
            make_client(handler).list_pull_requests()

    def test_token_required(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise AssertionError("no request expected")

        with pytest.raises(GitHubClientError, match="token required"):
            make_client(handler, token=None).list_pull_requests()

    def test_list_open(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["state"] == "open"
            return httpx.Response(
                200, json=[{"number": 1, "mergeable": False}, {"number": 2}]
            )

        prs = make_client(handler).list_pull_requests()

        assert [pr.number for pr in prs] == [1, 2]
        assert prs[0].merge_state == Mergeable.CONFLICTING

    def test_merge_method(self) -> None:
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PUT"
            assert request.url.path == "/repos/owner/repo/pulls/7/merge"
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"merged": True})

        make_client(handler).merge_pull_request(7, MergeMethod.SQUASH)

        assert bodies == [{"merge_method": "squash"}]

    def test_close(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PATCH"
            assert json.loads(request.content) == {"state": "closed"}
            return httpx.Response(200, json={"number": 7, "state": "closed"})

        make_client(handler).close_pull_request(7)


class TestVisibility:
    """Tests for get_visibility."""

    def test_public_without_token(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert "Authorization" not in request.headers
            return httpx.Response(200, json={"private": False, "visibility": "public"})

        assert make_client(handler, token=None).get_visibility() == RepositoryVisibility.PUBLIC

    def test_private(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"private": True})

        assert make_client(handler).get_visibility() == RepositoryVisibility.PRIVATE

    def test_not_found_is_private(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(404, json={"message": "Not Found"})

        assert make_client(handler, token=None).get_visibility() == RepositoryVisibility.PRIVATE

    def test_failure_is_unknown(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(403, json={"message": "API rate limit exceeded"})

        assert make_client(handler, token=None).get_visibility() == RepositoryVisibility.UNKNOWN

"""
GitHub integration module.

Provides the REST client for pull-request lifecycle calls and the models for
repository identity and pull requests.
"""

from gitcollab.core.github.client import GitHubClient, GitHubClientError
from gitcollab.core.github.models import (
    Mergeable,
    MergeMethod,
    PullRequest,
    RepoInfo,
    RepositoryVisibility,
)

__all__ = [
    "GitHubClient",
    "GitHubClientError",
    "MergeMethod",
    "Mergeable",
    "PullRequest",
    "RepoInfo",
    "RepositoryVisibility",
]

"""
Pull-request lifecycle: create, list, merge, close.
"""

from gitcollab.core.pr.service import (
    MergeResult,
    PRListResult,
    PRResult,
    PullRequestError,
    PullRequestManager,
)

__all__ = [
    "MergeResult",
    "PRListResult",
    "PRResult",
    "PullRequestError",
    "PullRequestManager",
]

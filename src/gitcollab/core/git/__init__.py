"""
Git adapter module.

Provides the subprocess-backed repository adapter and the guard that marks
bulk working-tree mutations.
"""

from gitcollab.core.git.guard import BulkMutationGuard
from gitcollab.core.git.repository import GitError, GitRepository

__all__ = [
    "BulkMutationGuard",
    "GitError",
    "GitRepository",
]

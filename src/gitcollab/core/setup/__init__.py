"""
Repository setup: clone, init, startup checks, default branch detection.
"""

from gitcollab.core.setup.gitignore import ensure_gitignore
from gitcollab.core.setup.service import SetupService

__all__ = [
    "SetupService",
    "ensure_gitignore",
]

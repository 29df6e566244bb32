"""
gitcollab - branch-mode git collaboration

Keeps a workspace synchronized with a GitHub repository: read-only on the
main branch, edits only on working branches, publishing through pull requests.
"""

__version__ = "0.1.0"

# Re-export core models for convenience
from gitcollab.core.config.models import CollabSettings, GitCollabConfig
from gitcollab.core.mode.models import ModeState, Notice, TransitionResult

__all__ = [
    "CollabSettings",
    "GitCollabConfig",
    "ModeState",
    "Notice",
    "TransitionResult",
    "__version__",
]

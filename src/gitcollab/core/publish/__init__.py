"""
Save/publish workflow: commit, push, return to read-only mode.
"""

from gitcollab.core.publish.models import (
    PublishResult,
    PublishStatus,
    SaveAction,
    SaveDecision,
)
from gitcollab.core.publish.workflow import PublishWorkflow

__all__ = [
    "PublishResult",
    "PublishStatus",
    "PublishWorkflow",
    "SaveAction",
    "SaveDecision",
]

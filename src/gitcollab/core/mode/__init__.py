"""
Branch-mode state machine.

Read-only on the main branch, or editing on a working branch.
"""

from gitcollab.core.mode.machine import BranchModeMachine
from gitcollab.core.mode.models import (
    BranchMode,
    InputKind,
    ModeState,
    Notice,
    NoticeLevel,
    PendingTransition,
    TransitionResult,
    TransitionStatus,
)

__all__ = [
    "BranchMode",
    "BranchModeMachine",
    "InputKind",
    "ModeState",
    "Notice",
    "NoticeLevel",
    "PendingTransition",
    "TransitionResult",
    "TransitionStatus",
]

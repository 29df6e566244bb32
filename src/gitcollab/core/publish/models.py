"""
Models for the save/publish workflow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from gitcollab.core.mode.models import Notice, NoticeLevel


class SaveAction(str, Enum):
    """What to do with uncommitted changes."""

    DRAFT = "draft"  # commit locally
    PUSH = "push"  # commit and push


@dataclass(frozen=True)
class SaveDecision:
    """The user's answer to a save prompt."""

    action: SaveAction
    message: str


class PublishStatus(str, Enum):
    """Outcome of a save action."""

    SAVED = "saved"
    PUSHED = "pushed"
    REJECTED = "rejected"
    COMMIT_FAILED = "commit_failed"
    CONFLICT = "conflict"
    PUSH_FAILED = "push_failed"


@dataclass
class PublishResult:
    """
    Result of a save-as-draft or save-and-push action.

    Attributes:
        status: What happened
        branch: Branch the changes were saved on
        notices: Messages for the user
        offer_pull_request: True after the first push of a branch
        read_only: Whether the workspace ended up in read-only mode
        commit_message: Message used for the commit, the default PR title
    """

    status: PublishStatus
    branch: str = ""
    notices: list[Notice] = field(default_factory=list)
    offer_pull_request: bool = False
    read_only: bool = False
    commit_message: str = ""

    @property
    def success(self) -> bool:
        """True when the changes were saved (and pushed, if requested)."""
        return self.status in (PublishStatus.SAVED, PublishStatus.PUSHED)

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        """Append a notice."""
        self.notices.append(Notice(message, level))

"""
Models for the branch-mode machine.

Describes the two modes, the notices shown to the user, and the result of a
transition, including the two-phase "needs input" outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from gitcollab.core.config.models import CollabSettings


class BranchMode(str, Enum):
    """The two states of the machine."""

    READ_ONLY_ON_MAIN = "read_only_on_main"
    EDITING_ON_BRANCH = "editing_on_branch"


class NoticeLevel(str, Enum):
    """Severity of a user-visible notice."""

    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Notice:
    """A human-readable message for the UI layer."""

    message: str
    level: NoticeLevel = NoticeLevel.INFO


class TransitionStatus(str, Enum):
    """Outcome of a transition request."""

    APPLIED = "applied"
    NEEDS_INPUT = "needs_input"
    REJECTED = "rejected"  # policy violation, nothing was run
    FAILED = "failed"  # git or remote failure
    ABANDONED = "abandoned"  # the user dropped a pending transition


class InputKind(str, Enum):
    """What a suspended transition is waiting for."""

    BRANCH_SELECTION = "branch_selection"
    SAVE_DECISION = "save_decision"


@dataclass(frozen=True)
class PendingTransition:
    """
    A transition suspended until the user supplies input.

    Attributes:
        kind: What the caller must ask for
        options: Choices to present (branch names, or changed files for a
            save decision)
        branch: Branch the transition was requested from
    """

    kind: InputKind
    options: tuple[str, ...] = ()
    branch: str = ""


@dataclass
class TransitionResult:
    """Result of a branch-mode transition."""

    status: TransitionStatus
    notices: list[Notice] = field(default_factory=list)
    pending: PendingTransition | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        """True only when the transition was applied."""
        return self.status == TransitionStatus.APPLIED

    @property
    def needs_input(self) -> bool:
        """True when the caller must collect input and resume."""
        return self.status == TransitionStatus.NEEDS_INPUT

    def notify(self, message: str, level: NoticeLevel = NoticeLevel.INFO) -> None:
        """Append a notice."""
        self.notices.append(Notice(message, level))

    def extend(self, other: TransitionResult) -> None:
        """Append another result's notices (e.g. the validator's)."""
        self.notices.extend(other.notices)


@dataclass(frozen=True)
class ModeState:
    """
    Read-only view of the mode and branch fields.

    Not stored on its own: derived from the settings record on demand.
    """

    is_read_only_mode: bool
    current_branch: str
    main_branch: str
    last_working_branch: str
    available_branches: tuple[str, ...]
    is_repository_connected: bool

    @classmethod
    def from_settings(cls, settings: CollabSettings) -> ModeState:
        """Build the view from the settings record."""
        return cls(
            is_read_only_mode=settings.is_read_only_mode,
            current_branch=settings.current_branch,
            main_branch=settings.main_branch,
            last_working_branch=settings.last_working_branch,
            available_branches=tuple(settings.available_branches),
            is_repository_connected=settings.is_repository_connected,
        )

    @property
    def mode(self) -> BranchMode:
        """The machine state this view corresponds to."""
        if self.is_read_only_mode:
            return BranchMode.READ_ONLY_ON_MAIN
        return BranchMode.EDITING_ON_BRANCH

    @property
    def is_consistent(self) -> bool:
        """
        Whether the mode/branch coupling holds.

        Read-only mode iff the current branch is the main branch. Without a
        connected repository the branch fields are advisory and any state is
        consistent.
        """
        if not self.is_repository_connected:
            return True
        return self.is_read_only_mode == (self.current_branch == self.main_branch)

"""Outcome and state models for guarded operations"""
from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Optional

from git_assistant.exceptions import GitAssistantError, PartialSuccessError
from git_assistant.models.repository import RepositoryStatus


class OutcomeKind(Enum):
    """Terminal result of a guarded operation or command."""
    COMPLETED = "completed"
    COMPLETED_WITH_MANUAL_RECOVERY = "manual-recovery"
    ABORTED = "aborted"
    FAILED = "failed"


class OutcomeReason(Enum):
    """Why an operation was aborted or needs manual recovery."""
    USER_CANCELLED = "user_cancelled"
    PRECONDITION_FAILED = "precondition_failed"
    OPERATION_IN_PROGRESS = "operation_in_progress"
    STASH_FAILED = "stash_failed"
    STASH_PENDING = "stash_pending"
    STASH_POP_CONFLICT = "stash_pop_conflict"
    MERGE_CONFLICT = "merge_conflict"
    NOTHING_TO_PUSH = "nothing_to_push"
    UNCOMMITTED_CHANGES = "uncommitted_changes"
    ALREADY_ON_BRANCH = "already_on_branch"
    INVALID_TARGET = "invalid_target"
    MANUAL_EDIT = "manual_edit"
    PUSH_FAILED = "push_failed"


@dataclass(frozen=True)
class GuardedOperationOutcome:
    """Tagged result of a guarded mutation.

    Never reduce this to a boolean: a stash may already have changed the
    working copy even when the operation as a whole failed, which is what
    ``stash_created`` records.
    """
    kind: OutcomeKind
    operation: str
    reason: Optional[OutcomeReason] = None
    error: Optional[Exception] = None
    stash_created: bool = False
    next_action: Optional[str] = None
    detail: Optional[str] = None

    @classmethod
    def completed(cls, operation: str, detail: Optional[str] = None,
                  stash_created: bool = False) -> "GuardedOperationOutcome":
        return cls(OutcomeKind.COMPLETED, operation, detail=detail, stash_created=stash_created)

    @classmethod
    def manual_recovery(cls, operation: str, reason: OutcomeReason, next_action: str,
                        detail: Optional[str] = None, error: Optional[Exception] = None,
                        stash_created: bool = False) -> "GuardedOperationOutcome":
        return cls(
            OutcomeKind.COMPLETED_WITH_MANUAL_RECOVERY,
            operation,
            reason=reason,
            error=error,
            stash_created=stash_created,
            next_action=next_action,
            detail=detail,
        )

    @classmethod
    def aborted(cls, operation: str, reason: OutcomeReason, detail: Optional[str] = None,
                next_action: Optional[str] = None) -> "GuardedOperationOutcome":
        return cls(OutcomeKind.ABORTED, operation, reason=reason, detail=detail,
                   next_action=next_action)

    @classmethod
    def failed(cls, operation: str, error: Exception,
               stash_created: bool = False) -> "GuardedOperationOutcome":
        return cls(OutcomeKind.FAILED, operation, error=error, stash_created=stash_created)

    @property
    def succeeded(self) -> bool:
        """True when the primary step ran, even if manual work remains."""
        return self.kind in (OutcomeKind.COMPLETED, OutcomeKind.COMPLETED_WITH_MANUAL_RECOVERY)

    @property
    def needs_manual_recovery(self) -> bool:
        return self.kind == OutcomeKind.COMPLETED_WITH_MANUAL_RECOVERY

    @property
    def had_side_effect(self) -> bool:
        """True when the working copy may differ from before the operation."""
        return self.succeeded or self.stash_created

    def raise_for_outcome(self) -> None:
        """Raise if the outcome is not a clean completion or a deliberate abort."""
        if self.kind == OutcomeKind.FAILED:
            if self.error is not None:
                raise self.error
            raise GitAssistantError(f"'{self.operation}' failed")
        if self.kind == OutcomeKind.COMPLETED_WITH_MANUAL_RECOVERY:
            raise PartialSuccessError(self.operation, self.reason.value, self.next_action)


class GuardState(Enum):
    """States of the stash guard around a pull or checkout."""
    IDLE = "idle"
    STATUS_CHECKED = "status_checked"
    STATUS_FAILED = "status_failed"
    CANCELLED = "cancelled"
    STASHING = "stashing"
    STASHED = "stashed"
    STASH_FAILED = "stash_failed"
    RUNNING = "running"
    PRIMARY_FAILED = "primary_failed"
    PRIMARY_OK = "primary_ok"
    RESTORE_PENDING = "restore_pending"
    RESTORED = "restored"
    RESTORE_CONFLICT = "restore_conflict"
    DONE = "done"


TRANSITIONS: Dict[GuardState, FrozenSet[GuardState]] = {
    GuardState.IDLE: frozenset({GuardState.STATUS_CHECKED, GuardState.STATUS_FAILED}),
    GuardState.STATUS_CHECKED: frozenset({GuardState.CANCELLED, GuardState.STASHING, GuardState.RUNNING}),
    GuardState.STASHING: frozenset({GuardState.STASHED, GuardState.STASH_FAILED, GuardState.RUNNING}),
    GuardState.STASHED: frozenset({GuardState.RUNNING}),
    GuardState.RUNNING: frozenset({GuardState.PRIMARY_OK, GuardState.PRIMARY_FAILED}),
    GuardState.PRIMARY_OK: frozenset({GuardState.RESTORE_PENDING, GuardState.DONE}),
    GuardState.RESTORE_PENDING: frozenset({GuardState.RESTORED, GuardState.RESTORE_CONFLICT}),
}

TERMINAL_STATES: FrozenSet[GuardState] = frozenset({
    GuardState.STATUS_FAILED,
    GuardState.CANCELLED,
    GuardState.STASH_FAILED,
    GuardState.PRIMARY_FAILED,
    GuardState.RESTORED,
    GuardState.RESTORE_CONFLICT,
    GuardState.DONE,
})


@dataclass
class StashGuardState:
    """Per-invocation record of one guarded operation.

    Owned by exactly one orchestrator call and never shared.
    """
    operation: str
    state: GuardState = GuardState.IDLE
    has_stash: bool = False
    error: Optional[Exception] = None
    status: Optional[RepositoryStatus] = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, new_state: GuardState) -> None:
        """Move to ``new_state``; only transitions in TRANSITIONS are legal."""
        allowed = TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise RuntimeError(
                f"Illegal guard transition for '{self.operation}': "
                f"{self.state.value} -> {new_state.value}"
            )
        self.state = new_state

"""Data models for git-assistant."""
from git_assistant.models.conflict import ConflictRegion, ResolutionResult, ResolutionStrategy
from git_assistant.models.history import CommandHistoryItem
from git_assistant.models.operation import (
    GuardedOperationOutcome,
    GuardState,
    OutcomeKind,
    OutcomeReason,
    StashGuardState,
)
from git_assistant.models.repository import (
    BranchSet,
    CommitInfo,
    DiffFile,
    DiffSummary,
    FileStatus,
    LogResult,
    RemoteInfo,
    RepositoryStatus,
    StashEntry,
)

__all__ = [
    "BranchSet",
    "CommandHistoryItem",
    "CommitInfo",
    "ConflictRegion",
    "DiffFile",
    "DiffSummary",
    "FileStatus",
    "GuardState",
    "GuardedOperationOutcome",
    "LogResult",
    "OutcomeKind",
    "OutcomeReason",
    "RemoteInfo",
    "RepositoryStatus",
    "ResolutionResult",
    "ResolutionStrategy",
    "StashEntry",
    "StashGuardState",
]

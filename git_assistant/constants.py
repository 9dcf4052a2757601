"""Shared constants for git-assistant."""

from dataclasses import dataclass
from typing import Dict, List


@dataclass
class CommandDefinition:
    """A user-facing command and the repository state it needs."""

    key: str
    name: str
    description: str
    category: str
    requires: str = "commits"  # none, repository, commits, conflicts


COMMANDS: List[CommandDefinition] = [
    CommandDefinition("init", "Initialize repository", "Create a git repository in the current folder", "init", "none"),
    CommandDefinition("clone", "Clone repository", "Clone a remote git repository", "init", "none"),
    CommandDefinition("add-remote", "Add remote", "Register a remote repository URL", "setup", "repository"),
    CommandDefinition("initial-commit", "Initial commit", "Stage everything and create the first commit", "setup", "repository"),
    CommandDefinition("push", "Quick push", "Push the current branch to its remote", "sync"),
    CommandDefinition("pull", "Quick pull", "Pull the latest changes, stashing local work if asked", "sync"),
    CommandDefinition("create-branch", "Create branch", "Create a new branch", "branch"),
    CommandDefinition("switch", "Switch branch", "Check out another branch, stashing local work if asked", "branch"),
    CommandDefinition("merge", "Merge branch", "Merge another branch into the current one", "branch"),
    CommandDefinition("delete-branch", "Delete branch", "Delete a local branch", "branch"),
    CommandDefinition("resolve", "Resolve conflicts", "Resolve merge conflicts in a file", "conflict", "conflicts"),
    CommandDefinition("mark-resolved", "Mark resolved", "Stage a file whose conflicts are resolved", "conflict", "conflicts"),
    CommandDefinition("refresh", "Refresh", "Reload every view", "view", "repository"),
]

COMMANDS_BY_KEY: Dict[str, CommandDefinition] = {command.key: command for command in COMMANDS}


def command_name(key: str) -> str:
    """Human-readable name for a command key."""
    definition = COMMANDS_BY_KEY.get(key)
    return definition.name if definition else key


# Choices offered when a guarded operation finds uncommitted work
CHOICE_STASH = "Stash and continue"
CHOICE_PROCEED = "Continue without stashing"
CHOICE_CANCEL = "Cancel"
GUARD_CHOICES = [CHOICE_STASH, CHOICE_PROCEED, CHOICE_CANCEL]

# Choices offered by branch creation
CHOICE_CREATE_AND_SWITCH = "Create and switch"
CHOICE_CREATE_ONLY = "Create only"

# Conflict markers, all exactly seven characters
MARKER_START = "<<<<<<<"
MARKER_BASE = "|||||||"
MARKER_SEPARATOR = "======="
MARKER_END = ">>>>>>>"

# Remote branches appear in branch listings under this prefix
REMOTE_BRANCH_PREFIX = "remotes/"

# Fallback used when git gives no structured conflict signal
MERGE_CONFLICT_TEXT = "CONFLICT"

# Reason shown when git killed a command after the timeout
GIT_TIMEOUT_TEXT = "did not complete in"

# Severity names understood by both prompt implementations
SEVERITY_INFO = "information"
SEVERITY_WARNING = "warning"
SEVERITY_ERROR = "error"

# Display symbols
SYMBOL_CURRENT_BRANCH = " *"
SYMBOL_AHEAD = "↑"
SYMBOL_BEHIND = "↓"
SYMBOL_SUCCESS = "✓"
SYMBOL_FAILURE = "✗"

# Rich styles per file state in status listings
FILE_STATE_STYLES = {
    "conflicted": "bold red",
    "staged": "green",
    "modified": "yellow",
    "created": "green",
    "deleted": "red",
    "renamed": "cyan",
    "untracked": "dim",
}

# Rich styles per outcome kind value
OUTCOME_STYLES = {
    "completed": "green",
    "manual-recovery": "yellow",
    "aborted": "dim",
    "failed": "red",
}

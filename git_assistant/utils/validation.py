"""Input validators shared by the command layer and the prompts.

Each validator returns an error message, or None when the value is acceptable,
so it can be handed straight to ``Prompter.input_text``.
"""

import re
from typing import Optional

BRANCH_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9/_-]+$")
REMOTE_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")


def validate_branch_name(value: str) -> Optional[str]:
    """Check a new branch name."""
    if not value or not value.strip():
        return "Branch name cannot be empty"
    if not BRANCH_NAME_PATTERN.match(value):
        return "Branch name can only contain letters, numbers, /, _ and -"
    if value.startswith("/") or value.endswith("/") or "//" in value:
        return "Branch name cannot start or end with / or contain //"
    return None


def validate_remote_name(value: str) -> Optional[str]:
    """Check a remote name such as 'origin'."""
    if not value or not value.strip():
        return "Remote name cannot be empty"
    if not REMOTE_NAME_PATTERN.match(value):
        return "Remote name can only contain letters, numbers, _ and -"
    return None


def validate_remote_url(value: str) -> Optional[str]:
    """Accept http(s) and scp-style (git@host:path) remote URLs."""
    if not value or not value.strip():
        return "Repository URL cannot be empty"
    if "http" not in value and "git@" not in value:
        return "Please enter a valid Git repository URL"
    return None


def validate_commit_message(value: str) -> Optional[str]:
    if not value or not value.strip():
        return "Commit message cannot be empty"
    return None


def validate_clone_url(value: str) -> Optional[str]:
    """Looser than remote URLs: local paths to bare *.git repositories are fine too."""
    if not value or not value.strip():
        return "Repository URL cannot be empty"
    if "git" not in value and "http" not in value:
        return "Please enter a valid Git repository URL"
    return None

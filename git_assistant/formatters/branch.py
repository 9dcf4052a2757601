"""Branch name and sync formatting utilities."""

from typing import Optional

from rich.markup import escape

from git_assistant.constants import REMOTE_BRANCH_PREFIX, SYMBOL_AHEAD, SYMBOL_BEHIND, SYMBOL_CURRENT_BRANCH
from git_assistant.models.repository import RepositoryStatus


def format_branch_name(name: str, is_current: bool = False) -> str:
    """
    Format a branch name with the current branch indicator.

    Args:
        name: Branch name as listed in a BranchSet
        is_current: Whether this is the current branch

    Returns:
        Formatted branch name; remote branches are dimmed
    """
    name = escape(name)
    if name.startswith(REMOTE_BRANCH_PREFIX):
        return f"[dim]{name[len(REMOTE_BRANCH_PREFIX):]}[/dim]"
    if is_current:
        return f"[bold]{name}{SYMBOL_CURRENT_BRANCH}[/bold]"
    return name


def format_sync(status: RepositoryStatus) -> str:
    """Ahead/behind summary such as '↑2 ↓1', or a note when there is no upstream."""
    if status.tracking is None:
        return "no upstream"
    parts = []
    if status.ahead:
        parts.append(f"{SYMBOL_AHEAD}{status.ahead}")
    if status.behind:
        parts.append(f"{SYMBOL_BEHIND}{status.behind}")
    return " ".join(parts) if parts else "up to date"


def format_current_branch(current: Optional[str]) -> str:
    return current if current is not None else "(detached HEAD)"

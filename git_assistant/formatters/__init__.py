"""Formatting utilities for git-assistant.

This package provides formatting functions shared by the CLI tables and the
TUI panels, organized into logical modules:
- date: Date and time formatting
- branch: Branch name and sync formatting
- status: Working copy status and outcome formatting
"""

from .date import format_date

from .branch import (
    format_branch_name,
    format_current_branch,
    format_sync,
)

from .status import (
    format_file_state,
    format_outcome,
    status_rows,
)

__all__ = [
    # Date
    "format_date",
    # Branch
    "format_branch_name",
    "format_current_branch",
    "format_sync",
    # Status
    "format_file_state",
    "format_outcome",
    "status_rows",
]

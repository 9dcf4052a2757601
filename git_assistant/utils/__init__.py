"""Utility functions for git-assistant.

This package provides utility modules:
- validation: validators for branch names, remotes and commit messages
"""

from .validation import (
    validate_clone_url,
    validate_branch_name,
    validate_commit_message,
    validate_remote_name,
    validate_remote_url,
)

__all__ = [
    "validate_clone_url",
    "validate_branch_name",
    "validate_commit_message",
    "validate_remote_name",
    "validate_remote_url",
]

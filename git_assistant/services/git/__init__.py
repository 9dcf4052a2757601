"""Git-related services for git-assistant."""

from .client import RepositoryClient

__all__ = [
    "RepositoryClient",
]

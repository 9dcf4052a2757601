"""Configuration handling for git-assistant"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """Configuration for git-assistant with validation."""

    # Confirmation prompts
    confirm_push: bool = True
    confirm_merge: bool = True

    # Repository defaults
    remote_name: str = "origin"
    default_branch: str = "main"
    stash_message: str = "git-assistant auto-stash"

    # Seconds before a git subprocess is killed
    git_timeout: float = 60

    # Command history
    history_limit: int = 50
    history_path: Optional[str] = None

    # Output modes
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_remote_name()
        self._validate_default_branch()
        self._validate_stash_message()
        self._validate_git_timeout()
        self._validate_history_limit()

    def _validate_remote_name(self):
        """Validate remote_name is not empty."""
        if not self.remote_name or not self.remote_name.strip():
            raise ValueError("remote_name cannot be empty")
        self.remote_name = self.remote_name.strip()

    def _validate_default_branch(self):
        """Validate default_branch is not empty."""
        if not self.default_branch or not self.default_branch.strip():
            raise ValueError("default_branch cannot be empty")
        self.default_branch = self.default_branch.strip()

    def _validate_stash_message(self):
        """Validate stash_message is not empty."""
        if not self.stash_message or not self.stash_message.strip():
            raise ValueError("stash_message cannot be empty")

    def _validate_git_timeout(self):
        """Validate git_timeout is positive."""
        if self.git_timeout <= 0:
            raise ValueError(f"git_timeout must be positive, got {self.git_timeout}")

    def _validate_history_limit(self):
        """Validate history_limit is positive."""
        if self.history_limit <= 0:
            raise ValueError(f"history_limit must be positive, got {self.history_limit}")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "confirm_push": self.confirm_push,
            "confirm_merge": self.confirm_merge,
            "remote_name": self.remote_name,
            "default_branch": self.default_branch,
            "stash_message": self.stash_message,
            "git_timeout": self.git_timeout,
            "history_limit": self.history_limit,
            "history_path": self.history_path,
            "verbose": self.verbose,
            "debug": self.debug,
        }

    def get(self, key: str, default=None):
        """Get config value by key so services accept either a Config or a dict."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {
            "confirm_push",
            "confirm_merge",
            "remote_name",
            "default_branch",
            "stash_message",
            "git_timeout",
            "history_limit",
            "history_path",
            "verbose",
            "debug",
        }

        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)

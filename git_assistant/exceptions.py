"""Custom exceptions for git-assistant"""

from typing import Optional


class GitAssistantError(Exception):
    """Base exception for all git-assistant errors."""
    pass


class RepositoryError(GitAssistantError):
    """Exception raised by the repository client for any failed git request."""

    def __init__(self, operation: str, message: Optional[str] = None, branch: Optional[str] = None):
        self.operation = operation
        self.branch = branch
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if branch:
            error_msg += f" for branch '{branch}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class NotARepositoryError(RepositoryError):
    """Exception raised when the working directory is not a git repository."""

    def __init__(self, operation: str, path: str):
        self.path = path
        super().__init__(operation, message=f"'{path}' is not a git repository")


class ExternalToolError(RepositoryError):
    """Exception raised when git itself reported an error.

    The diagnostic text from git is kept verbatim in ``message`` since it is
    usually the most actionable detail for the user.
    """

    def __init__(
        self,
        operation: str,
        message: Optional[str] = None,
        branch: Optional[str] = None,
        status: Optional[int] = None,
        conflict: bool = False,
    ):
        self.status = status
        # True when git left unmerged paths behind (merge or stash pop conflict)
        self.conflict = conflict
        super().__init__(operation, message, branch)


class RepositoryTimeoutError(RepositoryError):
    """Exception raised when a git command exceeded the configured timeout."""

    def __init__(self, operation: str, timeout: float):
        self.timeout = timeout
        super().__init__(operation, message=f"timed out after {timeout}s")


class InvalidArgumentError(RepositoryError):
    """Exception raised when a request is rejected before git is invoked."""
    pass


class PreconditionFailedError(GitAssistantError):
    """Exception raised when a command cannot run in the current repository state."""
    pass


class UserCancelledError(GitAssistantError):
    """Exception raised when the user dismisses a prompt mid-command."""

    def __init__(self, prompt: Optional[str] = None):
        self.prompt = prompt
        super().__init__("Cancelled by user" + (f" at '{prompt}'" if prompt else ""))


class PartialSuccessError(GitAssistantError):
    """Exception raised when an operation finished but left manual work behind."""

    def __init__(self, operation: str, reason: str, next_action: Optional[str] = None):
        self.operation = operation
        self.reason = reason
        self.next_action = next_action

        error_msg = f"'{operation}' needs manual recovery ({reason})"
        if next_action:
            error_msg += f": {next_action}"

        super().__init__(error_msg)


class ConflictParseError(GitAssistantError):
    """Exception raised when conflict markers are malformed."""

    def __init__(self, message: str, line: Optional[int] = None):
        self.line = line
        self.message = message
        super().__init__(f"line {line}: {message}" if line is not None else message)


class NoConflictMarkersFound(ConflictParseError):
    """Raised when a file presented as conflicted contains no conflict regions."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        target = f"'{path}'" if path else "document"
        super().__init__(f"No conflict markers found in {target}")

"""Repository state models returned by the repository client"""
from dataclasses import dataclass, field
from typing import List, Optional

from git_assistant.constants import REMOTE_BRANCH_PREFIX


@dataclass
class FileStatus:
    """Porcelain status codes for one path."""
    path: str
    index: str
    working_dir: str


@dataclass
class RepositoryStatus:
    """Snapshot of the working copy.

    ``modified``, ``created`` and ``deleted`` are disjoint. ``staged`` and
    ``conflicted`` are independent of them: staging and conflicts are
    separate axes.
    """
    current: Optional[str] = None  # None = detached HEAD
    tracking: Optional[str] = None
    ahead: int = 0
    behind: int = 0
    modified: List[str] = field(default_factory=list)
    created: List[str] = field(default_factory=list)
    deleted: List[str] = field(default_factory=list)
    renamed: List[str] = field(default_factory=list)
    conflicted: List[str] = field(default_factory=list)
    staged: List[str] = field(default_factory=list)
    not_added: List[str] = field(default_factory=list)  # untracked
    files: List[FileStatus] = field(default_factory=list)

    @property
    def is_detached(self) -> bool:
        return self.current is None

    @property
    def has_uncommitted_changes(self) -> bool:
        """True when modified or new files would be put at risk by a pull or checkout."""
        return bool(self.modified or self.created or self.not_added)

    @property
    def has_changes(self) -> bool:
        return bool(
            self.modified
            or self.created
            or self.deleted
            or self.renamed
            or self.conflicted
            or self.not_added
        )

    @property
    def is_clean(self) -> bool:
        """Nothing to add; always False while conflicts are unresolved."""
        return not self.has_changes


@dataclass
class BranchSet:
    """Local and remote branch names, local first."""
    current: Optional[str]
    all: List[str] = field(default_factory=list)

    def __post_init__(self):
        if self.current is not None and self.current not in self.all:
            # An unborn branch has no ref yet but is still the current branch
            self.all.insert(0, self.current)

    @property
    def local(self) -> List[str]:
        return [name for name in self.all if not name.startswith(REMOTE_BRANCH_PREFIX)]

    @property
    def remote(self) -> List[str]:
        return [name for name in self.all if name.startswith(REMOTE_BRANCH_PREFIX)]

    def others(self) -> List[str]:
        """Every branch except the current one."""
        return [name for name in self.all if name != self.current]


@dataclass
class CommitInfo:
    """One entry from git log."""
    hash: str
    date: str
    message: str
    author_name: str
    author_email: str
    body: str = ""
    refs: Optional[str] = None

    @property
    def short_hash(self) -> str:
        return self.hash[:7]


@dataclass
class LogResult:
    all: List[CommitInfo] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.all)

    @property
    def latest(self) -> Optional[CommitInfo]:
        return self.all[0] if self.all else None


@dataclass
class RemoteInfo:
    name: str
    fetch_url: str = ""
    push_url: str = ""


@dataclass
class DiffFile:
    file: str
    insertions: int
    deletions: int
    binary: bool = False

    @property
    def changes(self) -> int:
        return self.insertions + self.deletions


@dataclass
class DiffSummary:
    files: List[DiffFile] = field(default_factory=list)

    @property
    def insertions(self) -> int:
        return sum(f.insertions for f in self.files)

    @property
    def deletions(self) -> int:
        return sum(f.deletions for f in self.files)

    @property
    def changed(self) -> int:
        return len(self.files)


@dataclass
class StashEntry:
    index: int
    message: str
    date: str

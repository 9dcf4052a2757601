"""Parsers for git's machine-readable output.

Only structural parsing lives here; nothing interprets what the state means.
"""

import re
from typing import List, Optional

from git_assistant.constants import REMOTE_BRANCH_PREFIX
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

# Field and record separators used in --format strings
FIELD_SEP = "\x1f"
RECORD_SEP = "\x1e"

LOG_FORMAT = "%H%x1f%aI%x1f%s%x1f%an%x1f%ae%x1f%b%x1f%D%x1e"
STASH_FORMAT = "%gd%x1f%ci%x1f%gs"

# Both-sides status codes that mean an unmerged path
CONFLICT_CODES = {"DD", "AU", "UD", "UA", "DU", "AA", "UU"}

_AHEAD_RE = re.compile(r"ahead (\d+)")
_BEHIND_RE = re.compile(r"behind (\d+)")
_STASH_INDEX_RE = re.compile(r"stash@\{(\d+)\}")


def _parse_branch_header(header: str, status: RepositoryStatus) -> None:
    """Fill current/tracking/ahead/behind from a '## ...' header line."""
    text = header[3:].strip()

    for prefix in ("No commits yet on ", "Initial commit on "):
        if text.startswith(prefix):
            status.current = text[len(prefix):].strip()
            return

    if text.startswith("HEAD (no branch)"):
        status.current = None
        return

    counts = ""
    if " [" in text and text.endswith("]"):
        text, counts = text.split(" [", 1)
        counts = counts[:-1]

    if "..." in text:
        status.current, status.tracking = text.split("...", 1)
    else:
        status.current = text

    ahead = _AHEAD_RE.search(counts)
    behind = _BEHIND_RE.search(counts)
    status.ahead = int(ahead.group(1)) if ahead else 0
    status.behind = int(behind.group(1)) if behind else 0


def _unquote(path: str) -> str:
    # Paths with unusual characters are quoted; the client disables octal escapes
    if len(path) >= 2 and path.startswith('"') and path.endswith('"'):
        return path[1:-1].replace('\\"', '"').replace("\\\\", "\\")
    return path


def parse_status(output: str) -> RepositoryStatus:
    """Parse ``git status --porcelain -b`` (v1) output."""
    status = RepositoryStatus()

    for line in output.splitlines():
        if not line:
            continue
        if line.startswith("## "):
            _parse_branch_header(line, status)
            continue
        if len(line) < 4:
            continue

        index, working_dir = line[0], line[1]
        path = line[3:]
        if " -> " in path:
            path = path.split(" -> ", 1)[1]
        path = _unquote(path)
        code = index + working_dir

        if code == "!!":
            continue

        status.files.append(FileStatus(path=path, index=index, working_dir=working_dir))

        if code == "??":
            status.not_added.append(path)
            continue

        if code in CONFLICT_CODES:
            status.conflicted.append(path)
            continue

        if index in "MADRCT":
            status.staged.append(path)

        # modified/created/deleted stay disjoint
        if index == "A":
            status.created.append(path)
        elif index == "D" or working_dir == "D":
            status.deleted.append(path)
        elif index == "R":
            status.renamed.append(path)
            if working_dir == "M":
                status.modified.append(path)
        elif index in "MCT" or working_dir in "MT":
            status.modified.append(path)

    return status


def parse_branches(output: str, current: Optional[str]) -> BranchSet:
    """Parse ``git branch -a --format=%(refname)``."""
    local: List[str] = []
    remote: List[str] = []

    for line in output.splitlines():
        ref = line.strip()
        if not ref:
            continue
        if ref.startswith("refs/heads/"):
            name = ref[len("refs/heads/"):]
            if name not in local:
                local.append(name)
        elif ref.startswith("refs/remotes/"):
            name = ref[len("refs/remotes/"):]
            # origin/HEAD is a symbolic pointer, not a branch
            if name.endswith("/HEAD"):
                continue
            name = REMOTE_BRANCH_PREFIX + name
            if name not in remote:
                remote.append(name)

    return BranchSet(current=current, all=local + remote)


def parse_log(output: str) -> LogResult:
    """Parse ``git log`` output produced with LOG_FORMAT."""
    commits = []
    for record in output.split(RECORD_SEP):
        record = record.strip("\n")
        if not record.strip():
            continue
        fields = record.split(FIELD_SEP)
        if len(fields) < 7:
            fields += [""] * (7 - len(fields))
        commit_hash, date, message, author_name, author_email, body, refs = fields[:7]
        commits.append(CommitInfo(
            hash=commit_hash.strip(),
            date=date,
            message=message,
            author_name=author_name,
            author_email=author_email,
            body=body.strip(),
            refs=refs.strip() or None,
        ))
    return LogResult(all=commits)


def parse_numstat(output: str) -> DiffSummary:
    """Parse ``git diff --numstat``; binary files report '-' for both counts."""
    files = []
    for line in output.splitlines():
        parts = line.split("\t", 2)
        if len(parts) != 3:
            continue
        added, deleted, path = parts
        binary = added == "-" and deleted == "-"
        files.append(DiffFile(
            file=path,
            insertions=0 if binary else int(added),
            deletions=0 if binary else int(deleted),
            binary=binary,
        ))
    return DiffSummary(files=files)


def parse_stash_list(output: str) -> List[StashEntry]:
    """Parse ``git stash list`` output produced with STASH_FORMAT."""
    entries = []
    for line in output.splitlines():
        fields = line.split(FIELD_SEP)
        if len(fields) != 3:
            continue
        match = _STASH_INDEX_RE.search(fields[0])
        if not match:
            continue
        entries.append(StashEntry(index=int(match.group(1)), date=fields[1], message=fields[2]))
    return entries


def parse_remotes(output: str) -> List[RemoteInfo]:
    """Parse ``git remote -v``; each remote has a fetch and a push line."""
    remotes = {}
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        name, url = parts[0], parts[1]
        kind = parts[2] if len(parts) > 2 else "(fetch)"
        remote = remotes.setdefault(name, RemoteInfo(name=name))
        if kind == "(push)":
            remote.push_url = url
        else:
            remote.fetch_url = url
    return list(remotes.values())

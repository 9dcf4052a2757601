"""Async repository client over GitPython"""

import asyncio
import os
from typing import List, Optional, Sequence, Union, TYPE_CHECKING

import git

from git_assistant.constants import GIT_TIMEOUT_TEXT, MERGE_CONFLICT_TEXT, REMOTE_BRANCH_PREFIX
from git_assistant.exceptions import (
    ExternalToolError,
    InvalidArgumentError,
    NotARepositoryError,
    RepositoryError,
    RepositoryTimeoutError,
)
from git_assistant.logging_config import get_logger
from git_assistant.models.repository import (
    BranchSet,
    DiffSummary,
    LogResult,
    RemoteInfo,
    RepositoryStatus,
    StashEntry,
)
from git_assistant.services.git import parsing
from git_assistant.utils.validation import validate_remote_name

if TYPE_CHECKING:
    from git_assistant.config import Config

logger = get_logger(__name__)

# Never let git wait for credentials on a terminal nobody is watching
GIT_ENV = {"GIT_TERMINAL_PROMPT": "0"}


def _clean_output(value: Union[str, bytes, None]) -> str:
    """Recover git's raw text from GitCommandError's formatted stderr/stdout."""
    if not value:
        return ""
    if isinstance(value, bytes):
        value = value.decode("utf-8", "replace")
    for prefix in ("\n  stderr: '", "\n  stdout: '"):
        if value.startswith(prefix):
            value = value[len(prefix):]
            if value.endswith("'"):
                value = value[:-1]
            break
    return value.strip()


class RepositoryClient:
    """Primitive git operations against one working copy.

    Every public operation is a coroutine; the blocking GitPython call runs in
    a worker thread. Failures are raised as RepositoryError subclasses, never
    as GitPython exceptions.
    """

    def __init__(self, repo_path: str, config: Union["Config", dict]):
        """Initialize the client.

        Args:
            repo_path: Path to the working copy (need not exist yet for init/clone)
            config: Configuration dictionary or Config object
        """
        self.repo_path = os.path.abspath(repo_path)
        self.config = config
        self.timeout = config.get("git_timeout", 60)
        self.remote_name = config.get("remote_name", "origin")

        logger.debug(f"Repository client initialized for {self.repo_path}")

    def _get_repo(self, operation: str) -> git.Repo:
        """Open a fresh git.Repo for this call.

        GitPython repos are cheap to open, and a fresh instance per call keeps
        worker threads from sharing one.
        """
        try:
            return git.Repo(self.repo_path, search_parent_directories=True)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            raise NotARepositoryError(operation, self.repo_path) from None

    def _translate(self, operation: str, error: Exception, branch: Optional[str] = None) -> RepositoryError:
        """Map a GitPython exception onto the RepositoryError family."""
        if isinstance(error, git.exc.GitCommandNotFound):
            return ExternalToolError(operation, f"git executable not found: {error}", branch)

        stderr = _clean_output(getattr(error, "stderr", None))
        stdout = _clean_output(getattr(error, "stdout", None))

        if GIT_TIMEOUT_TEXT in stderr:
            return RepositoryTimeoutError(operation, self.timeout)
        if "not a git repository" in stderr.lower():
            return NotARepositoryError(operation, self.repo_path)

        status = getattr(error, "status", None)
        message = stderr or stdout or str(error)
        return ExternalToolError(
            operation,
            message,
            branch,
            status=status if isinstance(status, int) else None,
        )

    def _git(
        self,
        operation: str,
        *args: str,
        repo: Optional[git.Repo] = None,
        branch: Optional[str] = None,
        cwd: Optional[str] = None,
    ) -> str:
        """Run one git command and return its stdout (trailing newline removed)."""
        command = ["git", "-c", "core.quotepath=false", *args]
        logger.debug(f"[{operation}] {' '.join(command)}")
        runner = repo.git if repo is not None else git.Git(cwd or self.repo_path)
        try:
            return runner.execute(command, kill_after_timeout=self.timeout, env=GIT_ENV)
        except git.exc.CommandError as e:
            error = self._translate(operation, e, branch)
            logger.debug(f"[{operation}] failed: {error}")
            raise error from e

    async def _call(self, func, *args, **kwargs):
        return await asyncio.to_thread(func, *args, **kwargs)

    @staticmethod
    def _require(operation: str, value: Optional[str], what: str) -> str:
        if value is None or not str(value).strip():
            raise InvalidArgumentError(operation, f"{what} cannot be empty")
        return str(value).strip()

    def _unmerged_paths(self, repo: git.Repo) -> List[str]:
        try:
            output = self._git("get_conflicts", "diff", "--name-only", "--diff-filter=U", repo=repo)
        except RepositoryError:
            return []
        return [line for line in output.splitlines() if line.strip()]

    def _stash_ref(self, repo: git.Repo) -> Optional[str]:
        try:
            return self._git("stash", "rev-parse", "-q", "--verify", "refs/stash", repo=repo) or None
        except ExternalToolError:
            # exit 1 without output means there is no stash
            return None

    # Queries

    async def is_repository(self) -> bool:
        def _check():
            try:
                self._get_repo("is_repository")
                return True
            except NotARepositoryError:
                return False
        return await self._call(_check)

    async def get_root(self) -> str:
        """Top-level directory of the working copy."""
        def _root():
            repo = self._get_repo("get_root")
            return repo.working_tree_dir or self.repo_path
        return await self._call(_root)

    async def get_status(self) -> RepositoryStatus:
        def _status():
            repo = self._get_repo("get_status")
            output = self._git("get_status", "status", "--porcelain", "-b", "--untracked-files=all", repo=repo)
            return parsing.parse_status(output)
        return await self._call(_status)

    async def get_branches(self) -> BranchSet:
        def _branches():
            repo = self._get_repo("get_branches")
            current = None if repo.head.is_detached else repo.active_branch.name
            output = self._git("get_branches", "branch", "-a", "--format=%(refname)", repo=repo)
            return parsing.parse_branches(output, current)
        return await self._call(_branches)

    async def get_log(self, limit: int = 50) -> LogResult:
        def _log():
            repo = self._get_repo("get_log")
            if not repo.head.is_valid():
                # Unborn branch: no history yet
                return LogResult()
            output = self._git(
                "get_log", "log", f"--max-count={int(limit)}", f"--format={parsing.LOG_FORMAT}", repo=repo
            )
            return parsing.parse_log(output)
        return await self._call(_log)

    async def get_diff_summary(self, staged: bool = False) -> DiffSummary:
        def _diff():
            repo = self._get_repo("get_diff_summary")
            args = ["diff", "--numstat"]
            if staged:
                args.append("--cached")
            return parsing.parse_numstat(self._git("get_diff_summary", *args, repo=repo))
        return await self._call(_diff)

    async def get_conflicts(self) -> List[str]:
        """Paths git currently reports as unmerged."""
        def _conflicts():
            repo = self._get_repo("get_conflicts")
            output = self._git("get_conflicts", "diff", "--name-only", "--diff-filter=U", repo=repo)
            return [line for line in output.splitlines() if line.strip()]
        return await self._call(_conflicts)

    async def stash_list(self) -> List[StashEntry]:
        def _list():
            repo = self._get_repo("stash_list")
            output = self._git("stash_list", "stash", "list", f"--format={parsing.STASH_FORMAT}", repo=repo)
            return parsing.parse_stash_list(output)
        return await self._call(_list)

    async def get_remotes(self) -> List[RemoteInfo]:
        def _remotes():
            repo = self._get_repo("get_remotes")
            return parsing.parse_remotes(self._git("get_remotes", "remote", "-v", repo=repo))
        return await self._call(_remotes)

    # Stash

    async def stash(self, message: Optional[str] = None) -> bool:
        """Stash tracked and untracked changes.

        Returns:
            True if a stash entry was created (git creates none on a clean tree)
        """
        stash_message = message or self.config.get("stash_message", "git-assistant auto-stash")

        def _stash():
            repo = self._get_repo("stash")
            before = self._stash_ref(repo)
            self._git("stash", "stash", "push", "--include-untracked", "-m", stash_message, repo=repo)
            created = self._stash_ref(repo) != before
            logger.debug(f"Stash created: {created}")
            return created
        return await self._call(_stash)

    async def stash_pop(self) -> None:
        def _pop():
            repo = self._get_repo("stash_pop")
            try:
                self._git("stash_pop", "stash", "pop", repo=repo)
            except ExternalToolError as e:
                e.conflict = bool(self._unmerged_paths(repo))
                raise
        await self._call(_pop)

    # Branches

    async def checkout(self, name: str) -> None:
        """Check out a branch; a remotes/<remote>/<branch> name gets a tracking local branch."""
        name = self._require("checkout", name, "Branch name")

        def _checkout():
            repo = self._get_repo("checkout")
            if name.startswith(REMOTE_BRANCH_PREFIX):
                remote_ref = name[len(REMOTE_BRANCH_PREFIX):]
                local_name = remote_ref.split("/", 1)[1] if "/" in remote_ref else remote_ref
                if local_name in [head.name for head in repo.heads]:
                    self._git("checkout", "checkout", local_name, repo=repo, branch=local_name)
                else:
                    self._git("checkout", "checkout", "--track", remote_ref, repo=repo, branch=local_name)
                return
            self._git("checkout", "checkout", name, repo=repo, branch=name)
        await self._call(_checkout)

    async def create_branch(self, name: str, checkout: bool = False) -> None:
        name = self._require("create_branch", name, "Branch name")

        def _create():
            repo = self._get_repo("create_branch")
            if checkout:
                self._git("create_branch", "checkout", "-b", name, repo=repo, branch=name)
            else:
                self._git("create_branch", "branch", name, repo=repo, branch=name)
        await self._call(_create)

    async def delete_branch(self, name: str, force: bool = False) -> None:
        name = self._require("delete_branch", name, "Branch name")

        def _delete():
            repo = self._get_repo("delete_branch")
            self._git("delete_branch", "branch", "-D" if force else "-d", name, repo=repo, branch=name)
        await self._call(_delete)

    async def rename_current_branch(self, name: str) -> None:
        name = self._require("rename_current_branch", name, "Branch name")

        def _rename():
            repo = self._get_repo("rename_current_branch")
            self._git("rename_current_branch", "branch", "-M", name, repo=repo, branch=name)
        await self._call(_rename)

    # Index and commits

    async def add(self, paths: Sequence[str]) -> None:
        if not paths:
            raise InvalidArgumentError("add", "No paths given")
        path_list = [str(path) for path in paths]

        def _add():
            repo = self._get_repo("add")
            self._git("add", "add", "--", *path_list, repo=repo)
        await self._call(_add)

    async def add_all(self) -> None:
        def _add_all():
            repo = self._get_repo("add_all")
            self._git("add_all", "add", "-A", repo=repo)
        await self._call(_add_all)

    async def commit(self, message: str) -> str:
        """Create a commit from the index and return its hash."""
        if message is None or not message.strip():
            raise InvalidArgumentError("commit", "Commit message cannot be empty")

        def _commit():
            repo = self._get_repo("commit")
            self._git("commit", "commit", "-m", message, repo=repo)
            return self._git("commit", "rev-parse", "HEAD", repo=repo)
        return await self._call(_commit)

    # Remote sync

    async def push(self) -> None:
        def _push():
            repo = self._get_repo("push")
            self._git("push", "push", repo=repo)
        await self._call(_push)

    async def push_set_upstream(self, remote: Optional[str] = None, branch: Optional[str] = None) -> None:
        """Push a branch and record the remote branch as its upstream."""
        remote = remote or self.remote_name

        def _push():
            repo = self._get_repo("push_set_upstream")
            target = branch
            if target is None:
                if repo.head.is_detached:
                    raise InvalidArgumentError("push_set_upstream", "HEAD is detached")
                target = repo.active_branch.name
            self._git("push_set_upstream", "push", "--set-upstream", remote, target, repo=repo, branch=target)
        await self._call(_push)

    async def pull(self) -> None:
        def _pull():
            repo = self._get_repo("pull")
            self._git("pull", "pull", "--no-edit", repo=repo)
        await self._call(_pull)

    async def merge(self, branch: str) -> None:
        """Merge ``branch`` into the current branch.

        A failure that leaves unmerged paths is raised with ``conflict=True``.
        """
        branch = self._require("merge", branch, "Branch name")

        def _merge():
            repo = self._get_repo("merge")
            try:
                self._git("merge", "merge", "--no-edit", branch, repo=repo, branch=branch)
            except ExternalToolError as e:
                if self._unmerged_paths(repo):
                    e.conflict = True
                elif e.message and MERGE_CONFLICT_TEXT in e.message:
                    logger.debug("No unmerged paths reported; classifying by error text")
                    e.conflict = True
                raise
        await self._call(_merge)

    async def add_remote(self, name: str, url: str) -> None:
        error = validate_remote_name(name)
        if error:
            raise InvalidArgumentError("add_remote", error)
        url = self._require("add_remote", url, "Remote URL")

        def _add():
            repo = self._get_repo("add_remote")
            self._git("add_remote", "remote", "add", name, url, repo=repo)
        await self._call(_add)

    async def remove_remote(self, name: str) -> None:
        name = self._require("remove_remote", name, "Remote name")

        def _remove():
            repo = self._get_repo("remove_remote")
            self._git("remove_remote", "remote", "remove", name, repo=repo)
        await self._call(_remove)

    # Repository creation

    async def init_repository(self, initial_branch: Optional[str] = None) -> None:
        def _init():
            os.makedirs(self.repo_path, exist_ok=True)
            args = ["init"]
            if initial_branch:
                args.append(f"--initial-branch={initial_branch}")
            self._git("init_repository", *args, cwd=self.repo_path)
        await self._call(_init)

    async def clone(self, url: str, target: str) -> str:
        """Clone ``url`` into ``target`` and return the absolute target path."""
        url = self._require("clone", url, "Repository URL")
        target = os.path.abspath(self._require("clone", target, "Target directory"))

        def _clone():
            parent = os.path.dirname(target) or "."
            os.makedirs(parent, exist_ok=True)
            self._git("clone", "clone", "--", url, target, cwd=parent)
            return target
        return await self._call(_clone)

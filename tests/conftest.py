"""Pytest fixtures for git-assistant tests"""
import asyncio
import tempfile
from pathlib import Path

import git
import pytest

from git_assistant.config import Config
from git_assistant.models.repository import BranchSet, CommitInfo, LogResult, RemoteInfo, RepositoryStatus
from git_assistant.services.notification_bus import ChangeNotificationBus


def configure_user(repo: git.Repo) -> None:
    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")
        writer.set_value("pull", "rebase", "false")
        writer.set_value("commit", "gpgsign", "false")


def commit_file(repo: git.Repo, name: str, content: str, message: str) -> None:
    """Write a file in the working tree and commit it."""
    path = Path(repo.working_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    repo.index.add([name])
    repo.index.commit(message)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_config():
    """Create a configuration dictionary with prompts for push and merge disabled."""
    return {
        "verbose": False,
        "debug": False,
        "confirm_push": False,
        "confirm_merge": False,
        "remote_name": "origin",
        "default_branch": "main",
        "git_timeout": 30,
    }


@pytest.fixture
def config(mock_config):
    return Config.from_dict(mock_config)


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with one commit on main."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)
    configure_user(repo)

    commit_file(repo, "README.md", "# Test Repository\n", "Initial commit")
    repo.git.branch("-M", "main")

    yield repo

    repo.close()


@pytest.fixture
def remote_pair(temp_dir, git_repo):
    """A bare remote with two clones: ``local`` (under test) and ``other`` (a collaborator).

    Returns:
        Tuple of (local, other) git.Repo objects, both tracking origin/main
    """
    bare_path = temp_dir / "remote.git"
    bare = git.Repo.init(bare_path, bare=True)
    bare.git.symbolic_ref("HEAD", "refs/heads/main")

    git_repo.create_remote("origin", str(bare_path))
    git_repo.git.push("--set-upstream", "origin", "main")

    local = git.Repo.clone_from(str(bare_path), temp_dir / "local")
    other = git.Repo.clone_from(str(bare_path), temp_dir / "other")
    configure_user(local)
    configure_user(other)

    yield local, other

    local.close()
    other.close()
    bare.close()


class FakeRepositoryClient:
    """In-memory stand-in for RepositoryClient.

    Records every call by name, raises the exception registered in
    ``failures`` for an operation, and blocks an operation on the
    asyncio.Event registered in ``gates`` until it is set.
    """

    def __init__(self, status=None, branches=None):
        self.status = status or RepositoryStatus(current="main", tracking="origin/main")
        self.branches = branches or BranchSet(current="main", all=["main", "feature", "remotes/origin/main"])
        self.log = LogResult(all=[CommitInfo("a" * 40, "2024-01-01T00:00:00+00:00", "Initial", "Test", "t@e.com")])
        self.remotes = []
        self.conflicts = []
        self.root = "/fake/repo"
        self.repository = True
        self.stash_created = True
        self.calls = []
        self.call_args = []
        self.failures = {}
        self.gates = {}

    async def _op(self, name, *args):
        self.calls.append(name)
        self.call_args.append((name,) + args)
        gate = self.gates.get(name)
        if gate is not None:
            await gate.wait()
        error = self.failures.get(name)
        if error is not None:
            raise error

    async def is_repository(self):
        await self._op("is_repository")
        return self.repository

    async def get_root(self):
        await self._op("get_root")
        return self.root

    async def get_status(self):
        await self._op("get_status")
        return self.status

    async def get_branches(self):
        await self._op("get_branches")
        return self.branches

    async def get_log(self, limit=50):
        await self._op("get_log", limit)
        return self.log

    async def get_conflicts(self):
        await self._op("get_conflicts")
        return list(self.conflicts)

    async def get_remotes(self):
        await self._op("get_remotes")
        return list(self.remotes)

    async def stash(self, message=None):
        await self._op("stash", message)
        return self.stash_created

    async def stash_pop(self):
        await self._op("stash_pop")

    async def pull(self):
        await self._op("pull")

    async def push(self):
        await self._op("push")

    async def push_set_upstream(self, remote=None, branch=None):
        await self._op("push_set_upstream", remote, branch)

    async def checkout(self, name):
        await self._op("checkout", name)

    async def merge(self, branch):
        await self._op("merge", branch)

    async def create_branch(self, name, checkout=False):
        await self._op("create_branch", name, checkout)

    async def delete_branch(self, name, force=False):
        await self._op("delete_branch", name, force)

    async def rename_current_branch(self, name):
        await self._op("rename_current_branch", name)

    async def add(self, paths):
        await self._op("add", list(paths))

    async def add_all(self):
        await self._op("add_all")

    async def commit(self, message):
        await self._op("commit", message)
        return "b" * 40

    async def add_remote(self, name, url):
        await self._op("add_remote", name, url)
        self.remotes.append(RemoteInfo(name=name, fetch_url=url, push_url=url))

    async def remove_remote(self, name):
        await self._op("remove_remote", name)
        self.remotes = [remote for remote in self.remotes if remote.name != name]

    async def init_repository(self, initial_branch=None):
        await self._op("init_repository", initial_branch)

    async def clone(self, url, target):
        await self._op("clone", url, target)
        return target


class ScriptedPrompter:
    """Prompter that answers from pre-set lists and records what was asked."""

    def __init__(self, choices=(), confirms=(), inputs=()):
        self.choices = list(choices)
        self.confirms = list(confirms)
        self.inputs = list(inputs)
        self.asked = []
        self.notifications = []

    async def choose(self, message, options):
        self.asked.append(("choose", message, list(options)))
        return self.choices.pop(0) if self.choices else None

    async def confirm(self, message):
        self.asked.append(("confirm", message))
        return self.confirms.pop(0) if self.confirms else False

    async def input_text(self, prompt, validator=None, default=None):
        self.asked.append(("input", prompt, default))
        return self.inputs.pop(0) if self.inputs else None

    async def notify(self, message, severity="information"):
        self.notifications.append((severity, message))

    def severities(self):
        return [severity for severity, _ in self.notifications]


@pytest.fixture
def fake_client():
    return FakeRepositoryClient()


@pytest.fixture
def make_prompter():
    """Factory for scripted prompters."""
    return ScriptedPrompter


@pytest.fixture
def bus():
    return ChangeNotificationBus()


@pytest.fixture
def publish_counter(bus):
    """Subscribes a counter to the bus; ``counter['count']`` is the number of publishes."""
    counter = {"count": 0}

    def on_publish():
        counter["count"] += 1

    bus.subscribe(on_publish)
    return counter


def run(coro):
    """Drive a coroutine to completion from a synchronous test."""
    return asyncio.run(coro)

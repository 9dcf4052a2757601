"""Integration tests for guarded operations against real repositories"""
from pathlib import Path

import git
import pytest

from conftest import commit_file, run
from git_assistant.constants import CHOICE_STASH
from git_assistant.core import GitAssistant
from git_assistant.models.conflict import ResolutionStrategy
from git_assistant.models.operation import OutcomeKind, OutcomeReason
from git_assistant.services.history_service import HistoryStore


@pytest.fixture
def assistant_for(config, temp_dir, make_prompter):
    """Build a GitAssistant for a repo with a scripted prompter."""
    def factory(repo, **answers):
        prompter = make_prompter(**answers)
        history = HistoryStore(temp_dir / "history.json")
        return GitAssistant(repo.working_dir, config, prompter, history=history), prompter
    return factory


class TestGuardedPullIntegration:
    """Pull with local work in progress"""

    def test_stash_pull_restore(self, remote_pair, assistant_for):
        local, other = remote_pair
        commit_file(other, "theirs.txt", "theirs\n", "Their change")
        other.git.push()
        (Path(local.working_dir) / "README.md").write_text("# Test Repository\nlocal edit\n")
        assistant, prompter = assistant_for(local, choices=[CHOICE_STASH])

        outcome = run(assistant.quick_pull())

        assert outcome.kind == OutcomeKind.COMPLETED
        assert outcome.stash_created
        assert (Path(local.working_dir) / "theirs.txt").exists()
        assert "local edit" in (Path(local.working_dir) / "README.md").read_text()
        assert local.git.stash("list") == ""

    def test_pop_conflict_leaves_stash_for_manual_recovery(self, remote_pair, assistant_for):
        local, other = remote_pair
        commit_file(other, "README.md", "their version\n", "Their README")
        other.git.push()
        (Path(local.working_dir) / "README.md").write_text("my version\n")
        assistant, prompter = assistant_for(local, choices=[CHOICE_STASH])

        outcome = run(assistant.quick_pull())

        assert outcome.kind == OutcomeKind.COMPLETED_WITH_MANUAL_RECOVERY
        assert outcome.reason == OutcomeReason.STASH_POP_CONFLICT
        assert "resolve" in outcome.next_action
        assert local.git.stash("list") != ""
        assert prompter.severities() == ["warning"]

    def test_pull_failure_keeps_stash(self, remote_pair, assistant_for):
        local, _ = remote_pair
        local.git.remote("set-url", "origin", str(Path(local.working_dir).parent / "missing.git"))
        (Path(local.working_dir) / "README.md").write_text("work in progress\n")
        assistant, _ = assistant_for(local, choices=[CHOICE_STASH])

        outcome = run(assistant.quick_pull())

        assert outcome.kind == OutcomeKind.COMPLETED_WITH_MANUAL_RECOVERY
        assert outcome.reason == OutcomeReason.STASH_PENDING
        # The working copy is clean and the work is in the stash
        assert not local.is_dirty()
        assert local.git.stash("list") != ""


class TestSwitchIntegration:
    """Checkout with local work in progress"""

    def test_switch_carries_changes(self, git_repo, assistant_for):
        git_repo.git.branch("feature")
        (Path(git_repo.working_dir) / "notes.txt").write_text("draft\n")
        assistant, _ = assistant_for(git_repo, choices=[CHOICE_STASH])

        outcome = run(assistant.switch_branch("feature"))

        assert outcome.kind == OutcomeKind.COMPLETED
        assert git_repo.active_branch.name == "feature"
        assert (Path(git_repo.working_dir) / "notes.txt").read_text() == "draft\n"


class TestMergeAndResolve:
    """A merge conflict taken through resolve and mark-resolved"""

    def test_conflict_lifecycle(self, git_repo, assistant_for):
        git_repo.git.checkout("-b", "feature")
        commit_file(git_repo, "README.md", "feature line\n", "Feature")
        git_repo.git.checkout("main")
        commit_file(git_repo, "README.md", "main line\n", "Main")
        assistant, _ = assistant_for(git_repo)

        merged = run(assistant.merge_branch("feature"))
        assert merged.reason == OutcomeReason.MERGE_CONFLICT
        assert run(assistant.client.get_conflicts()) == ["README.md"]

        resolved = run(assistant.resolve_conflicts("README.md", ResolutionStrategy.BOTH))
        assert resolved.kind == OutcomeKind.COMPLETED
        assert (Path(git_repo.working_dir) / "README.md").read_text() == "main line\nfeature line\n"

        # Markers are gone but git still reports the path until it is staged
        status = run(assistant.client.get_status())
        assert status.conflicted == ["README.md"]
        assert not status.is_clean

        marked = run(assistant.mark_resolved("README.md"))
        assert marked.kind == OutcomeKind.COMPLETED
        assert run(assistant.client.get_conflicts()) == []


class TestSetupIntegration:
    """Creating a repository from scratch"""

    def test_init_and_initial_commit(self, temp_dir, config, make_prompter):
        project = temp_dir / "project"
        project.mkdir()
        (project / "main.py").write_text("print('hello')\n")
        prompter = make_prompter(confirms=[True])
        assistant = GitAssistant(str(project), config, prompter)

        initialized = run(assistant.init_repository(follow_up=False))
        assert initialized.kind == OutcomeKind.COMPLETED
        assert run(assistant.client.get_status()).current == "main"

        with git.Repo(project).config_writer() as writer:
            writer.set_value("user", "name", "Test User")
            writer.set_value("user", "email", "test@example.com")
            writer.set_value("commit", "gpgsign", "false")

        committed = run(assistant.initial_commit("First commit"))

        assert committed.kind == OutcomeKind.COMPLETED
        log = run(assistant.client.get_log())
        assert log.total == 1
        assert log.latest.message == "First commit"


class TestOutsideRepository:
    """Guarded commands in a directory that is not a repository"""

    @pytest.mark.parametrize("command", ["quick_pull", "quick_push", "switch_branch", "merge_branch"])
    def test_guarded_command_is_a_precondition_failure(self, temp_dir, config, make_prompter, command):
        plain = temp_dir / "plain"
        plain.mkdir()
        prompter = make_prompter()
        assistant = GitAssistant(str(plain), config, prompter)

        outcome = run(getattr(assistant, command)())

        assert outcome.kind == OutcomeKind.ABORTED
        assert outcome.reason == OutcomeReason.PRECONDITION_FAILED
        assert "is not a git repository" in outcome.detail
        assert prompter.severities() == ["warning"]

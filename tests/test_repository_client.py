"""Tests for RepositoryClient against real git repositories"""
from pathlib import Path

import git
import pytest

from conftest import commit_file, run
from git_assistant.exceptions import (
    ExternalToolError,
    InvalidArgumentError,
    NotARepositoryError,
    RepositoryTimeoutError,
)
from git_assistant.services.git.client import RepositoryClient, _clean_output


@pytest.fixture
def client(git_repo, mock_config):
    return RepositoryClient(git_repo.working_dir, mock_config)


def make_conflicting_branch(repo: git.Repo) -> None:
    """Create 'feature' and 'main' commits that both change README.md."""
    repo.git.checkout("-b", "feature")
    commit_file(repo, "README.md", "feature line\n", "Feature change")
    repo.git.checkout("main")
    commit_file(repo, "README.md", "main line\n", "Main change")


class TestQueries:
    """Tests for read-only client operations"""

    def test_is_repository(self, client, temp_dir, mock_config):
        assert run(client.is_repository())
        assert not run(RepositoryClient(str(temp_dir), mock_config).is_repository())

    def test_get_root_from_subdirectory(self, git_repo, mock_config):
        subdir = Path(git_repo.working_dir) / "sub"
        subdir.mkdir()
        client = RepositoryClient(str(subdir), mock_config)

        assert Path(run(client.get_root())).resolve() == Path(git_repo.working_dir).resolve()

    def test_clean_status(self, client):
        status = run(client.get_status())

        assert status.current == "main"
        assert status.is_clean

    def test_status_reports_changes(self, client, git_repo):
        root = Path(git_repo.working_dir)
        (root / "README.md").write_text("changed\n")
        (root / "new_dir").mkdir()
        (root / "new_dir" / "new.txt").write_text("new\n")

        status = run(client.get_status())

        assert status.modified == ["README.md"]
        assert status.not_added == ["new_dir/new.txt"]
        assert status.has_uncommitted_changes

    def test_branches_include_current(self, client, git_repo):
        git_repo.git.branch("feature")

        branches = run(client.get_branches())

        assert branches.current == "main"
        assert branches.local == ["feature", "main"]
        assert branches.remote == []

    def test_detached_head(self, client, git_repo):
        git_repo.git.checkout("--detach")

        status = run(client.get_status())
        branches = run(client.get_branches())

        assert status.current is None
        assert branches.current is None
        assert "main" in branches.others()

    def test_remote_branches(self, mock_config, remote_pair):
        local, _ = remote_pair
        client = RepositoryClient(local.working_dir, mock_config)

        branches = run(client.get_branches())
        status = run(client.get_status())

        assert branches.remote == ["remotes/origin/main"]
        assert status.tracking == "origin/main"

    def test_log(self, client, git_repo):
        commit_file(git_repo, "a.txt", "a\n", "Add a")

        log = run(client.get_log(limit=10))

        assert log.total == 2
        assert log.latest.message == "Add a"
        assert log.latest.author_name == "Test User"

    def test_log_limit(self, client, git_repo):
        commit_file(git_repo, "a.txt", "a\n", "Add a")

        assert run(client.get_log(limit=1)).total == 1

    def test_log_of_unborn_branch_is_empty(self, temp_dir, mock_config):
        repo = git.Repo.init(temp_dir / "empty")
        client = RepositoryClient(repo.working_dir, mock_config)

        assert run(client.get_log()).total == 0
        repo.close()

    def test_diff_summary(self, client, git_repo):
        (Path(git_repo.working_dir) / "README.md").write_text("# Test Repository\nmore\n")

        summary = run(client.get_diff_summary())

        assert summary.changed == 1
        assert summary.insertions == 1

    def test_not_a_repository(self, temp_dir, mock_config):
        client = RepositoryClient(str(temp_dir), mock_config)

        with pytest.raises(NotARepositoryError):
            run(client.get_status())

    def test_remotes(self, client):
        run(client.add_remote("upstream", "https://example.com/repo.git"))

        remotes = run(client.get_remotes())

        assert [remote.name for remote in remotes] == ["upstream"]
        assert remotes[0].fetch_url == "https://example.com/repo.git"

        run(client.remove_remote("upstream"))
        assert run(client.get_remotes()) == []


class TestStash:
    """Tests for stash and stash pop"""

    def test_stash_and_pop_round_trip(self, client, git_repo):
        root = Path(git_repo.working_dir)
        (root / "README.md").write_text("work in progress\n")
        (root / "untracked.txt").write_text("new\n")

        assert run(client.stash("test stash")) is True
        assert run(client.get_status()).is_clean
        assert len(run(client.stash_list())) == 1

        run(client.stash_pop())

        status = run(client.get_status())
        assert status.modified == ["README.md"]
        assert status.not_added == ["untracked.txt"]
        assert run(client.stash_list()) == []

    def test_stash_on_clean_tree_creates_nothing(self, client):
        assert run(client.stash()) is False
        assert run(client.stash_list()) == []

    def test_pop_conflict_is_flagged(self, client, git_repo):
        root = Path(git_repo.working_dir)
        (root / "README.md").write_text("stashed version\n")
        run(client.stash())
        commit_file(git_repo, "README.md", "committed version\n", "Conflicting change")

        with pytest.raises(ExternalToolError) as exc_info:
            run(client.stash_pop())

        assert exc_info.value.conflict
        assert run(client.get_conflicts()) == ["README.md"]
        # git keeps the entry when the pop conflicts
        assert len(run(client.stash_list())) == 1


class TestBranchOperations:
    """Tests for checkout, create, delete and merge"""

    def test_create_and_checkout(self, client):
        run(client.create_branch("feature/one", checkout=True))

        assert run(client.get_status()).current == "feature/one"

        run(client.checkout("main"))
        assert run(client.get_status()).current == "main"

    def test_create_without_checkout(self, client):
        run(client.create_branch("feature"))

        branches = run(client.get_branches())
        assert branches.current == "main"
        assert "feature" in branches.local

    def test_checkout_remote_branch_creates_tracking_branch(self, mock_config, remote_pair):
        local, other = remote_pair
        other.git.checkout("-b", "shared")
        commit_file(other, "shared.txt", "shared\n", "Shared work")
        other.git.push("--set-upstream", "origin", "shared")
        local.git.fetch()
        client = RepositoryClient(local.working_dir, mock_config)

        run(client.checkout("remotes/origin/shared"))

        status = run(client.get_status())
        assert status.current == "shared"
        assert status.tracking == "origin/shared"

    def test_checkout_unknown_branch(self, client):
        with pytest.raises(ExternalToolError) as exc_info:
            run(client.checkout("does-not-exist"))

        assert exc_info.value.branch == "does-not-exist"
        assert "does-not-exist" in str(exc_info.value)

    def test_delete_unmerged_branch_needs_force(self, client, git_repo):
        git_repo.git.checkout("-b", "feature")
        commit_file(git_repo, "f.txt", "f\n", "Feature")
        git_repo.git.checkout("main")

        with pytest.raises(ExternalToolError) as exc_info:
            run(client.delete_branch("feature"))
        assert "not fully merged" in exc_info.value.message

        run(client.delete_branch("feature", force=True))
        assert "feature" not in run(client.get_branches()).all

    def test_rename_current_branch(self, client):
        run(client.rename_current_branch("trunk"))

        assert run(client.get_status()).current == "trunk"

    def test_merge_fast_forward(self, client, git_repo):
        git_repo.git.checkout("-b", "feature")
        commit_file(git_repo, "f.txt", "f\n", "Feature")
        git_repo.git.checkout("main")

        run(client.merge("feature"))

        assert run(client.get_log()).latest.message == "Feature"

    def test_merge_conflict_is_flagged(self, client, git_repo):
        make_conflicting_branch(git_repo)

        with pytest.raises(ExternalToolError) as exc_info:
            run(client.merge("feature"))

        assert exc_info.value.conflict
        assert run(client.get_status()).conflicted == ["README.md"]

    def test_merge_unknown_branch_is_not_a_conflict(self, client):
        with pytest.raises(ExternalToolError) as exc_info:
            run(client.merge("nope"))

        assert not exc_info.value.conflict


class TestIndexAndCommits:
    """Tests for add and commit"""

    def test_add_and_commit(self, client, git_repo):
        (Path(git_repo.working_dir) / "new.txt").write_text("new\n")

        run(client.add(["new.txt"]))
        assert run(client.get_status()).created == ["new.txt"]

        commit_hash = run(client.commit("Add new file"))

        assert commit_hash == git_repo.head.commit.hexsha
        assert run(client.get_status()).is_clean

    def test_add_all(self, client, git_repo):
        root = Path(git_repo.working_dir)
        (root / "a.txt").write_text("a\n")
        (root / "README.md").unlink()

        run(client.add_all())

        status = run(client.get_status())
        assert status.created == ["a.txt"]
        assert status.deleted == ["README.md"]

    def test_empty_arguments_are_rejected(self, client):
        with pytest.raises(InvalidArgumentError):
            run(client.add([]))
        with pytest.raises(InvalidArgumentError):
            run(client.commit("   "))
        with pytest.raises(InvalidArgumentError):
            run(client.checkout(""))

    def test_invalid_remote_name(self, client):
        with pytest.raises(InvalidArgumentError):
            run(client.add_remote("bad name", "https://example.com/repo.git"))


class TestRemoteSync:
    """Tests for push and pull against a bare remote"""

    def test_pull_fetches_new_commits(self, mock_config, remote_pair):
        local, other = remote_pair
        commit_file(other, "theirs.txt", "theirs\n", "Their change")
        other.git.push()
        client = RepositoryClient(local.working_dir, mock_config)

        run(client.pull())

        assert (Path(local.working_dir) / "theirs.txt").exists()

    def test_push_set_upstream(self, mock_config, remote_pair):
        local, _ = remote_pair
        local.git.checkout("-b", "topic")
        commit_file(local, "topic.txt", "topic\n", "Topic")
        client = RepositoryClient(local.working_dir, mock_config)

        run(client.push_set_upstream())

        assert run(client.get_status()).tracking == "origin/topic"

    def test_rejected_push_surfaces_git_message(self, mock_config, remote_pair):
        local, other = remote_pair
        commit_file(other, "theirs.txt", "theirs\n", "Their change")
        other.git.push()
        commit_file(local, "mine.txt", "mine\n", "My change")
        client = RepositoryClient(local.working_dir, mock_config)

        with pytest.raises(ExternalToolError) as exc_info:
            run(client.push())

        assert "rejected" in exc_info.value.message


class TestRepositoryCreation:
    """Tests for init and clone"""

    def test_init_with_initial_branch(self, temp_dir, mock_config):
        target = temp_dir / "fresh"
        client = RepositoryClient(str(target), mock_config)

        run(client.init_repository(initial_branch="main"))

        assert run(client.is_repository())
        assert run(client.get_status()).current == "main"

    def test_clone(self, temp_dir, mock_config, remote_pair):
        target = temp_dir / "cloned"
        client = RepositoryClient(str(target), mock_config)

        result = run(client.clone(str(temp_dir / "remote.git"), str(target)))

        assert result == str(target)
        assert (target / "README.md").exists()


class TestErrorTranslation:
    """Tests for mapping GitPython errors onto RepositoryError"""

    def test_clean_output_strips_gitpython_formatting(self):
        assert _clean_output("\n  stderr: 'fatal: boom'") == "fatal: boom"
        assert _clean_output(b"plain") == "plain"
        assert _clean_output(None) == ""

    def test_timeout(self, client):
        error = git.exc.GitCommandError(
            ["git", "pull"], 1, stderr="Timeout: the command \"git pull\" did not complete in 30 secs."
        )

        assert isinstance(client._translate("pull", error), RepositoryTimeoutError)

    def test_not_a_repository(self, client):
        error = git.exc.GitCommandError(["git", "status"], 128, stderr="fatal: not a git repository")

        assert isinstance(client._translate("get_status", error), NotARepositoryError)

    def test_missing_executable(self, client):
        error = git.exc.GitCommandNotFound("git", "No such file")

        translated = client._translate("get_status", error)

        assert isinstance(translated, ExternalToolError)
        assert "not found" in translated.message

    def test_other_errors_keep_git_text_and_status(self, client):
        error = git.exc.GitCommandError(["git", "push"], 1, stderr="error: failed to push some refs")

        translated = client._translate("push", error, branch="main")

        assert isinstance(translated, ExternalToolError)
        assert translated.message == "error: failed to push some refs"
        assert translated.status == 1
        assert translated.branch == "main"

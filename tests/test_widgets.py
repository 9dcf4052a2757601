"""Tests for the rows the TUI panels build from repository state"""
from conftest import run
from git_assistant.models.repository import RepositoryStatus
from git_assistant.services.history_service import HistoryStore
from git_assistant.ui.widgets import BranchesPanel, CommandHistoryPanel, ConflictsPanel, LogPanel, StatusPanel


class TestPanelRows:
    """Each panel re-queries the client and returns a title and rows"""

    def test_branches(self, fake_client, bus):
        title, rows = run(BranchesPanel(fake_client, bus).fetch())

        assert title == "Branches (2 local, 1 remote)"
        assert [key for key, _ in rows] == ["main", "feature", "remotes/origin/main"]
        assert rows[0][1] == ("[bold]main *[/bold]",)

    def test_status(self, fake_client, bus):
        fake_client.status = RepositoryStatus(
            current="main", tracking="origin/main", ahead=1, modified=["a.txt"], not_added=["b.txt"]
        )

        title, rows = run(StatusPanel(fake_client, bus).fetch())

        assert title == "Status: main (↑1)"
        assert [cells[1] for _, cells in rows] == ["a.txt", "b.txt"]
        assert len({key for key, _ in rows}) == 2

    def test_log(self, fake_client, bus):
        title, rows = run(LogPanel(fake_client, bus).fetch())

        assert title == "History (1 commits)"
        assert rows[0][1][0] == "a" * 7

    def test_conflicts(self, fake_client, bus):
        assert run(ConflictsPanel(fake_client, bus).fetch()) == ("Conflicts (none)", [])

        fake_client.conflicts = ["x.txt"]
        title, rows = run(ConflictsPanel(fake_client, bus).fetch())

        assert title == "Conflicts (1)"
        assert rows[0][0] == "x.txt"

    def test_command_history(self, bus, temp_dir):
        history = HistoryStore(temp_dir / "history.json")
        item = history.add("pull", "Quick pull", True)

        title, rows = run(CommandHistoryPanel(history, bus).fetch())

        assert title == "Commands"
        assert rows[0][0] == item.id
        assert rows[0][1][1] == "Quick pull"

    def test_panels_do_not_subscribe_until_mounted(self, fake_client, bus):
        BranchesPanel(fake_client, bus)

        assert bus.subscriber_count == 0

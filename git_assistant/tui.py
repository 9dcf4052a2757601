"""Interactive TUI for git-assistant using Textual."""

from typing import Awaitable, Callable, Optional

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import Footer

from .config import Config
from .core import GitAssistant
from .logging_config import get_logger
from .models.operation import GuardedOperationOutcome
from .services.history_service import HistoryStore
from .ui.screens import TextualPrompter
from .ui.widgets import (
    BranchesPanel,
    CommandHistoryPanel,
    ConflictsPanel,
    LogPanel,
    NonExpandingHeader,
    StatusPanel,
)

logger = get_logger(__name__)

Command = Callable[[], Awaitable[GuardedOperationOutcome]]


class GitAssistantApp(App):
    """Panels for branches, status, history and conflicts, with key bindings for every command."""

    TITLE = "git-assistant"

    CSS = """
    #top, #bottom {
        height: 1fr;
    }

    BranchesPanel {
        width: 1fr;
    }

    StatusPanel, LogPanel {
        width: 2fr;
    }

    ConflictsPanel, CommandHistoryPanel {
        width: 1fr;
    }
    """

    BINDINGS = [
        Binding("q", "quit", "Quit"),
        Binding("p", "pull", "Pull"),
        Binding("P", "push", "Push"),
        Binding("s", "switch", "Switch"),
        Binding("m", "merge", "Merge"),
        Binding("b", "create_branch", "New Branch"),
        Binding("d", "delete_branch", "Delete Branch"),
        Binding("c", "resolve", "Resolve"),
        Binding("a", "mark_resolved", "Mark Resolved"),
        Binding("i", "initial_commit", "Commit All", show=False),
        Binding("o", "add_remote", "Add Remote", show=False),
        Binding("r", "refresh", "Refresh"),
    ]

    def __init__(self, repo_path: str, config: Config, history: Optional[HistoryStore] = None):
        super().__init__()
        self.repo_path = repo_path
        self.history = history or HistoryStore(limit=config.history_limit)
        self.assistant = GitAssistant(repo_path, config, TextualPrompter(self), history=self.history)

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        client = self.assistant.client
        bus = self.assistant.bus
        yield NonExpandingHeader(show_clock=True, icon="")
        with Horizontal(id="top"):
            yield BranchesPanel(client, bus, id="branches")
            yield StatusPanel(client, bus, id="status")
        with Horizontal(id="bottom"):
            yield LogPanel(client, bus, id="log")
            yield ConflictsPanel(client, bus, id="conflicts")
            yield CommandHistoryPanel(self.history, bus, id="commands")
        yield Footer()

    def on_mount(self) -> None:
        self.sub_title = self.repo_path

    @work(group="commands", thread=False)
    async def run_command(self, command: Command) -> None:
        """Run one command in the background.

        Command workers are not exclusive: cancelling one could abandon a git
        call halfway. The orchestrator refuses overlapping mutations instead.
        """
        try:
            await command()
        except Exception as e:
            logger.error(f"Unexpected error running command: {e}", exc_info=True)
            self.notify(f"Unexpected error: {e}", severity="error")
        finally:
            # History changes even when the repository does not
            self.query_one(CommandHistoryPanel).reload()

    def _selected(self, panel_type) -> Optional[str]:
        """Row under the cursor when that panel has focus."""
        panel = self.query_one(panel_type)
        if self.focused is None or panel not in self.focused.ancestors_with_self:
            return None
        return panel.selected_key()

    def action_pull(self) -> None:
        self.run_command(self.assistant.quick_pull)

    def action_push(self) -> None:
        self.run_command(self.assistant.quick_push)

    def action_switch(self) -> None:
        branch = self._selected(BranchesPanel)
        self.run_command(lambda: self.assistant.switch_branch(branch))

    def action_merge(self) -> None:
        branch = self._selected(BranchesPanel)
        self.run_command(lambda: self.assistant.merge_branch(branch))

    def action_create_branch(self) -> None:
        self.run_command(self.assistant.create_branch)

    def action_delete_branch(self) -> None:
        branch = self._selected(BranchesPanel)
        self.run_command(lambda: self.assistant.delete_branch(branch))

    def action_resolve(self) -> None:
        path = self._selected(ConflictsPanel)
        self.run_command(lambda: self.assistant.resolve_conflicts(path))

    def action_mark_resolved(self) -> None:
        path = self._selected(ConflictsPanel)
        self.run_command(lambda: self.assistant.mark_resolved(path))

    def action_initial_commit(self) -> None:
        self.run_command(self.assistant.initial_commit)

    def action_add_remote(self) -> None:
        self.run_command(self.assistant.add_remote)

    def action_refresh(self) -> None:
        self.run_command(self.assistant.refresh)

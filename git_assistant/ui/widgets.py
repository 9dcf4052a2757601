"""Custom widgets for the git-assistant TUI."""

from typing import TYPE_CHECKING, Callable, List, Optional, Sequence, Tuple

from rich.markup import escape
from rich.text import Text
from textual import work
from textual.app import ComposeResult, RenderResult
from textual.containers import Vertical
from textual.events import Click
from textual.widgets import DataTable, Header, Static
from textual.widgets._header import HeaderClockSpace, HeaderIcon, HeaderTitle

from git_assistant.__version__ import __version__
from git_assistant.constants import SYMBOL_FAILURE, SYMBOL_SUCCESS
from git_assistant.exceptions import RepositoryError
from git_assistant.formatters import (
    format_branch_name,
    format_current_branch,
    format_date,
    format_file_state,
    format_sync,
    status_rows,
)
from git_assistant.logging_config import get_logger

if TYPE_CHECKING:
    from git_assistant.services.git.client import RepositoryClient
    from git_assistant.services.history_service import HistoryStore
    from git_assistant.services.notification_bus import ChangeNotificationBus

logger = get_logger(__name__)

# (row key, cells)
Row = Tuple[str, Sequence[str]]


class VersionDisplay(HeaderClockSpace):
    """Custom widget to display version in place of clock."""

    DEFAULT_CSS = """
    VersionDisplay {
        width: auto;
        dock: right;
        padding: 0 1;
        background: $foreground 5%;
        color: $text;
        text-align: center;
        text-opacity: 85%;
    }
    """

    def render(self) -> RenderResult:
        """Render the version string."""
        return Text(f"v{__version__}")


class NonExpandingHeader(Header):
    """Header widget that doesn't expand/contract on click and shows version instead of clock."""

    def compose(self) -> ComposeResult:
        """Compose the header with custom version display."""
        yield HeaderIcon().data_bind(Header.icon)
        yield HeaderTitle()
        yield VersionDisplay() if self._show_clock else HeaderClockSpace()

    def on_click(self, event: Click) -> None:
        """Override to disable click-to-expand behavior."""
        event.stop()


class RepositoryPanel(Vertical):
    """A titled table that reloads itself whenever the bus publishes.

    Each reload runs in an exclusive worker, so a burst of notifications
    collapses into the most recent query.
    """

    DEFAULT_CSS = """
    RepositoryPanel {
        border: round $primary 50%;
        height: 1fr;
    }

    RepositoryPanel .panel-title {
        text-style: bold;
        padding: 0 1;
    }

    RepositoryPanel DataTable {
        height: 1fr;
    }
    """

    TITLE = ""
    COLUMNS: Tuple[str, ...] = ()

    def __init__(self, bus: "ChangeNotificationBus", **kwargs):
        super().__init__(**kwargs)
        self.bus = bus
        self._unsubscribe: Optional[Callable[[], None]] = None

    def compose(self) -> ComposeResult:
        yield Static(self.TITLE, classes="panel-title")
        yield DataTable(cursor_type="row", zebra_stripes=True)

    def on_mount(self) -> None:
        self.query_one(DataTable).add_columns(*self.COLUMNS)
        self._unsubscribe = self.bus.subscribe(self.reload)
        self.reload()

    def on_unmount(self) -> None:
        if self._unsubscribe:
            self._unsubscribe()

    def set_title(self, title: str) -> None:
        self.query_one(".panel-title", Static).update(title)

    async def fetch(self) -> Tuple[str, List[Row]]:
        """Return the title and rows to show."""
        raise NotImplementedError

    @work(exclusive=True, thread=False)
    async def reload(self) -> None:
        table = self.query_one(DataTable)
        try:
            title, rows = await self.fetch()
        except RepositoryError as e:
            logger.warning(f"{self.TITLE} panel could not load: {e}")
            table.clear()
            self.set_title(f"{self.TITLE} [red](unavailable)[/red]")
            return

        table.clear()
        for key, cells in rows:
            table.add_row(*cells, key=key)
        self.set_title(title)

    def selected_key(self) -> Optional[str]:
        """Row key under the cursor, if any."""
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return row_key.value


class ClientPanel(RepositoryPanel):
    def __init__(self, client: "RepositoryClient", bus: "ChangeNotificationBus", **kwargs):
        super().__init__(bus, **kwargs)
        self.client = client


class BranchesPanel(ClientPanel):
    TITLE = "Branches"
    COLUMNS = ("Branch",)

    async def fetch(self):
        branches = await self.client.get_branches()
        rows = [(name, (format_branch_name(name, name == branches.current),)) for name in branches.all]
        return f"{self.TITLE} ({len(branches.local)} local, {len(branches.remote)} remote)", rows


class StatusPanel(ClientPanel):
    TITLE = "Status"
    COLUMNS = ("State", "Path")

    async def fetch(self):
        status = await self.client.get_status()
        rows = []
        for index, (state, path) in enumerate(status_rows(status)):
            rows.append((f"{index}:{path}", (format_file_state(state), escape(path))))
        title = f"{self.TITLE}: {escape(format_current_branch(status.current))} ({format_sync(status)})"
        return title, rows


class LogPanel(ClientPanel):
    TITLE = "History"
    COLUMNS = ("Commit", "Date", "Author", "Message")

    async def fetch(self):
        log = await self.client.get_log(limit=50)
        rows = [
            (
                commit.hash,
                (commit.short_hash, format_date(commit.date), escape(commit.author_name), escape(commit.message)),
            )
            for commit in log.all
        ]
        return f"{self.TITLE} ({log.total} commits)", rows


class ConflictsPanel(ClientPanel):
    TITLE = "Conflicts"
    COLUMNS = ("Path",)

    async def fetch(self):
        conflicts = await self.client.get_conflicts()
        rows = [(path, (f"[red]{escape(path)}[/red]",)) for path in conflicts]
        title = f"{self.TITLE} ({len(conflicts)})" if conflicts else f"{self.TITLE} (none)"
        return title, rows


class CommandHistoryPanel(RepositoryPanel):
    TITLE = "Commands"
    COLUMNS = ("When", "Command", "Result")

    def __init__(self, history: "HistoryStore", bus: "ChangeNotificationBus", **kwargs):
        super().__init__(bus, **kwargs)
        self.history = history

    async def fetch(self):
        rows = []
        for item in self.history.get_history(20):
            result = f"[green]{SYMBOL_SUCCESS}[/green]" if item.success else f"[red]{SYMBOL_FAILURE}[/red]"
            rows.append((item.id, (format_date(item.timestamp), escape(item.command_name), result)))
        return self.TITLE, rows

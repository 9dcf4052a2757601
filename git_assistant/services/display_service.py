"""Rich console rendering of repository state and history"""
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from git_assistant.constants import SYMBOL_FAILURE, SYMBOL_SUCCESS
from git_assistant.formatters import (
    format_branch_name,
    format_current_branch,
    format_date,
    format_file_state,
    format_outcome,
    format_sync,
    status_rows,
)
from git_assistant.logging_config import get_logger
from git_assistant.models.history import CommandHistoryItem
from git_assistant.models.operation import GuardedOperationOutcome
from git_assistant.models.repository import BranchSet, LogResult, RepositoryStatus, StashEntry

console = Console()
logger = get_logger(__name__)


class DisplayService:
    def __init__(self, verbose: bool = False, debug: bool = False, output: Optional[Console] = None):
        self.verbose = verbose
        self.debug_mode = debug
        self.console = output or console

    def display_status(self, status: RepositoryStatus, stashes: Optional[List[StashEntry]] = None) -> None:
        """Show the branch header and a table of changed paths."""
        header = f"On branch [bold]{escape(format_current_branch(status.current))}[/bold]"
        if status.tracking:
            header += f" tracking {escape(status.tracking)}"
        header += f" ({format_sync(status)})"
        self.console.print(header)

        rows = status_rows(status)
        if not rows:
            self.console.print("Nothing to commit, working tree clean")
        else:
            table = Table()
            table.add_column("State")
            table.add_column("Path")
            for state, path in rows:
                table.add_row(format_file_state(state), escape(path))
            self.console.print(table)

        if status.conflicted:
            self.console.print(
                f"\n[bold red]{len(status.conflicted)} conflicted file(s).[/bold red] "
                "Run 'git-assistant resolve' to resolve them."
            )
        if stashes:
            self.console.print(f"\n{len(stashes)} stash entr{'y' if len(stashes) == 1 else 'ies'} saved")

    def display_branches(self, branches: BranchSet) -> None:
        table = Table()
        table.add_column("Branch")
        table.add_column("Type")
        for name in branches.all:
            is_remote = name in branches.remote
            table.add_row(
                format_branch_name(name, is_current=name == branches.current),
                "remote" if is_remote else "local",
            )
        self.console.print(table)
        if branches.current is None:
            self.console.print("[yellow]HEAD is detached[/yellow]")

    def display_log(self, log: LogResult) -> None:
        if not log.all:
            self.console.print("No commits yet")
            return
        table = Table()
        table.add_column("Commit")
        table.add_column("Date")
        table.add_column("Author")
        table.add_column("Message")
        for commit in log.all:
            message = escape(commit.message)
            if commit.refs and self.verbose:
                message = f"[cyan]({escape(commit.refs)})[/cyan] {message}"
            table.add_row(commit.short_hash, format_date(commit.date), escape(commit.author_name), message)
        self.console.print(table)

    def display_history(self, items: List[CommandHistoryItem]) -> None:
        if not items:
            self.console.print("No commands recorded yet")
            return
        table = Table()
        table.add_column("When")
        table.add_column("Command")
        table.add_column("Result")
        for item in items:
            result = f"[green]{SYMBOL_SUCCESS}[/green]" if item.success else f"[red]{SYMBOL_FAILURE}[/red]"
            if item.error:
                result += f" {escape(item.error)}"
            table.add_row(format_date(item.timestamp), escape(item.command_name), result)
        self.console.print(table)

    def display_outcome(self, outcome: GuardedOperationOutcome) -> None:
        """One-line summary, printed only in verbose mode since commands already notify."""
        if self.verbose:
            self.console.print(format_outcome(outcome))

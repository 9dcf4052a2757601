"""Status and outcome formatting utilities."""

from typing import List, Tuple

from rich.markup import escape

from git_assistant.constants import FILE_STATE_STYLES, OUTCOME_STYLES
from git_assistant.models.operation import GuardedOperationOutcome, OutcomeKind
from git_assistant.models.repository import RepositoryStatus


def status_rows(status: RepositoryStatus) -> List[Tuple[str, str]]:
    """
    Flatten a status into (state, path) rows, conflicts first.

    A path can appear twice when it is both staged and changed in the
    working tree.
    """
    rows = [("conflicted", path) for path in status.conflicted]
    rows += [("staged", path) for path in status.staged]
    staged = set(status.staged)
    for state, paths in (
        ("modified", status.modified),
        ("created", status.created),
        ("deleted", status.deleted),
        ("renamed", status.renamed),
    ):
        rows += [(state, path) for path in paths if path not in staged]
    rows += [("untracked", path) for path in status.not_added]
    return rows


def format_file_state(state: str) -> str:
    style = FILE_STATE_STYLES.get(state, "")
    return f"[{style}]{state}[/{style}]" if style else state


def format_outcome(outcome: GuardedOperationOutcome) -> str:
    """
    Describe an outcome in one line of Rich markup.

    Args:
        outcome: Result of a guarded operation or command

    Returns:
        Markup such as "[green]pull completed[/green]"
    """
    style = OUTCOME_STYLES.get(outcome.kind.value, "")
    if outcome.kind == OutcomeKind.COMPLETED:
        text = outcome.detail or f"{outcome.operation} completed"
    elif outcome.kind == OutcomeKind.FAILED:
        text = f"{outcome.operation} failed: {outcome.error}"
    else:
        text = f"{outcome.operation} {outcome.kind.value}: {outcome.reason.value}"
        if outcome.detail:
            text += f" ({outcome.detail})"
    text = escape(text)
    return f"[{style}]{text}[/{style}]" if style else text

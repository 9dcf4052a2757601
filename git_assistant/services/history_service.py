"""Persisted command history."""
import json
import logging
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional, Union

from git_assistant.models.history import CommandHistoryItem

# Import fcntl for POSIX file locking (Unix/Linux/macOS)
try:
    import fcntl
    HAS_FCNTL = True
except ImportError:
    HAS_FCNTL = False

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 50


class HistoryStore:
    """Newest-first list of executed commands, stored as JSON.

    Nothing touches the disk except ``load()`` and ``save()``; the store is
    created once and passed to whoever records or displays history.
    """

    def __init__(self, path: Optional[Union[str, Path]] = None, limit: int = DEFAULT_HISTORY_LIMIT):
        """Initialize the store.

        Args:
            path: JSON file to use; defaults to ~/.git-assistant/history.json
            limit: Maximum number of entries kept
        """
        if limit <= 0:
            raise ValueError(f"limit must be positive, got {limit}")
        self.path = Path(path) if path else Path.home() / ".git-assistant" / "history.json"
        self.limit = limit
        self._items: List[CommandHistoryItem] = []

    @contextmanager
    def _acquire_lock(self, file_handle, operation: str = "read"):
        """Hold a shared (read) or exclusive (write) lock on an open file."""
        if not HAS_FCNTL:
            logger.debug("File locking not available on this platform")
            yield
            return

        lock_type = fcntl.LOCK_EX if operation == "write" else fcntl.LOCK_SH
        fcntl.flock(file_handle.fileno(), lock_type)
        try:
            yield
        finally:
            fcntl.flock(file_handle.fileno(), fcntl.LOCK_UN)

    def load(self) -> List[CommandHistoryItem]:
        """Replace the in-memory history with the file's contents.

        A missing or corrupt file yields an empty history.
        """
        self._items = []
        if not self.path.exists():
            logger.debug("No history file found")
            return []

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                with self._acquire_lock(f, operation="read"):
                    data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read history file {self.path}: {e}")
            return []

        if not isinstance(data, list):
            logger.warning("History file does not contain a list, ignoring it")
            return []

        items = []
        for entry in data:
            try:
                items.append(CommandHistoryItem.from_dict(entry))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug(f"Skipping malformed history entry: {e}")

        self._items = items[:self.limit]
        logger.debug(f"Loaded {len(self._items)} history entries")
        return list(self._items)

    def save(self) -> None:
        """Write the history with an atomic replace.

        Raises:
            OSError: The history directory or file could not be written
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.path.with_suffix(".tmp")
        try:
            with open(temp_file, "w", encoding="utf-8") as f:
                with self._acquire_lock(f, operation="write"):
                    json.dump([item.to_dict() for item in self._items], f, indent=2)
                    f.flush()

            # Atomic rename (POSIX systems guarantee atomicity)
            temp_file.replace(self.path)
            logger.debug(f"Saved {len(self._items)} history entries")
        finally:
            if temp_file.exists():
                temp_file.unlink()

    def add(
        self,
        command: str,
        command_name: str,
        success: bool,
        error: Optional[str] = None,
    ) -> CommandHistoryItem:
        """Record a command as the newest entry, dropping the oldest beyond the limit."""
        item = CommandHistoryItem(command=command, command_name=command_name, success=success, error=error)
        self._items.insert(0, item)
        del self._items[self.limit:]
        return item

    def get_history(self, limit: int = 20) -> List[CommandHistoryItem]:
        """Newest entries first."""
        return list(self._items[:limit])

    def clear(self) -> None:
        self._items = []

    def __len__(self) -> int:
        return len(self._items)

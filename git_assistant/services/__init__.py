"""Services for git-assistant."""

from .conflict_resolver import ConflictResolver
from .display_service import DisplayService
from .history_service import HistoryStore
from .notification_bus import ChangeNotificationBus
from .orchestrator import MutationOrchestrator

__all__ = [
    "ChangeNotificationBus",
    "ConflictResolver",
    "DisplayService",
    "HistoryStore",
    "MutationOrchestrator",
]

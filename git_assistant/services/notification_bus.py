"""Payload-less change notifications for repository views"""

import inspect
from typing import Awaitable, Callable, List, Optional, Union, TYPE_CHECKING

from git_assistant.logging_config import get_logger

if TYPE_CHECKING:
    from git_assistant.models.operation import GuardedOperationOutcome

logger = get_logger(__name__)

Subscriber = Callable[[], Union[None, Awaitable[None]]]


class ChangeNotificationBus:
    """Tells subscribers that repository state may have changed.

    Notifications carry no payload: each subscriber re-queries the
    repository itself. Subscribers run in registration order, and one that
    raises is logged without stopping the rest.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a plain or async callable and return its unsubscribe handle."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass  # already removed

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def publish(self) -> None:
        """Invoke every subscriber once."""
        logger.debug(f"Publishing refresh to {len(self._subscribers)} subscriber(s)")
        for callback in list(self._subscribers):
            try:
                result = callback()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning(f"Refresh subscriber {callback!r} failed: {e}")

    async def publish_for(self, outcome: Optional["GuardedOperationOutcome"]) -> bool:
        """Publish only when ``outcome`` may have changed the working copy.

        Returns:
            True if a notification was published
        """
        if outcome is None or not outcome.had_side_effect:
            return False
        await self.publish()
        return True

"""Prompt collaborator interface used by the orchestrator and commands"""

from typing import Callable, Optional, Protocol, Sequence

Validator = Callable[[str], Optional[str]]


class Prompter(Protocol):
    """Asks the user questions and shows messages.

    A dismissed prompt returns None (or False for ``confirm``); it never raises.
    """

    async def choose(self, message: str, options: Sequence[str]) -> Optional[str]:
        """Return the chosen option label, or None when dismissed."""
        ...

    async def confirm(self, message: str) -> bool:
        ...

    async def input_text(
        self, prompt: str, validator: Optional[Validator] = None, default: Optional[str] = None
    ) -> Optional[str]:
        """Return text accepted by ``validator``, or None when dismissed."""
        ...

    async def notify(self, message: str, severity: str = "information") -> None:
        ...

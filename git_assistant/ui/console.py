"""Rich console implementation of the prompt collaborator"""

import asyncio
from typing import Optional, Sequence

from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm, Prompt

from git_assistant.constants import SEVERITY_ERROR, SEVERITY_WARNING
from git_assistant.logging_config import get_logger
from git_assistant.ui.prompts import Validator

logger = get_logger(__name__)

SEVERITY_STYLES = {
    SEVERITY_WARNING: "yellow",
    SEVERITY_ERROR: "bold red",
}


class ConsolePrompter:
    """Prompts on the terminal with Rich.

    Blocking reads run in a worker thread so the event loop stays free.
    With ``assume_yes`` every confirmation is accepted and every choice takes
    the first option, which makes commands scriptable.
    """

    def __init__(self, console: Optional[Console] = None, assume_yes: bool = False):
        self.console = console or Console()
        self.assume_yes = assume_yes

    async def choose(self, message: str, options: Sequence[str]) -> Optional[str]:
        if not options:
            return None
        if self.assume_yes:
            logger.debug(f"Auto-choosing '{options[0]}' for: {message}")
            return options[0]

        def _ask() -> Optional[str]:
            self.console.print(escape(message))
            for number, option in enumerate(options, start=1):
                self.console.print(f"  [bold]{number}[/bold]. {escape(option)}")
            try:
                answer = Prompt.ask(
                    "Choose",
                    choices=[str(number) for number in range(1, len(options) + 1)],
                    console=self.console,
                )
            except EOFError:
                return None
            return options[int(answer) - 1]

        return await asyncio.to_thread(_ask)

    async def confirm(self, message: str) -> bool:
        if self.assume_yes:
            logger.debug(f"Auto-confirming: {message}")
            return True

        def _ask() -> bool:
            try:
                return Confirm.ask(escape(message), default=False, console=self.console)
            except EOFError:
                return False

        return await asyncio.to_thread(_ask)

    async def input_text(
        self, prompt: str, validator: Optional[Validator] = None, default: Optional[str] = None
    ) -> Optional[str]:
        if self.assume_yes and default is not None and not (validator and validator(default)):
            return default

        def _ask() -> Optional[str]:
            while True:
                try:
                    if default is not None:
                        value = Prompt.ask(escape(prompt), default=default, console=self.console)
                    else:
                        value = Prompt.ask(escape(prompt), console=self.console)
                except EOFError:
                    return None
                if not value:
                    return None
                error = validator(value) if validator else None
                if error is None:
                    return value
                self.console.print(f"[red]{escape(error)}[/red]")

        return await asyncio.to_thread(_ask)

    async def notify(self, message: str, severity: str = "information") -> None:
        style = SEVERITY_STYLES.get(severity)
        text = escape(message)
        self.console.print(f"[{style}]{text}[/{style}]" if style else text)

"""Modal screens for the git-assistant TUI."""

from typing import TYPE_CHECKING, List, Optional, Sequence

from rich.markup import escape
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Container, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, OptionList, Static

from git_assistant.ui.prompts import Validator

if TYPE_CHECKING:
    from textual.app import App

DIALOG_CSS = """
{screen} {{
    align: center middle;
}}

{screen} > Vertical {{
    width: 80%;
    height: auto;
    max-height: 80%;
    border: thick $background 80%;
    background: $surface;
    padding: 1 2;
}}

{screen} .dialog-message {{
    width: 100%;
    height: auto;
    padding: 1 0;
}}

{screen} .dialog-error {{
    color: $error;
    height: auto;
}}

{screen} .button-container {{
    width: 100%;
    height: auto;
    align: center middle;
    padding: 1 0;
}}

{screen} Button {{
    margin: 0 1;
}}
"""


class ConfirmScreen(ModalScreen[bool]):
    """Modal confirmation dialog."""

    DEFAULT_CSS = DIALOG_CSS.format(screen="ConfirmScreen")

    BINDINGS = [
        Binding("escape", "dismiss_no", "Cancel"),
        Binding("y", "dismiss_yes", "Yes", show=False),
        Binding("n", "dismiss_no", "No", show=False),
    ]

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(escape(self.message), classes="dialog-message")
            with Container(classes="button-container"):
                yield Button("Yes", variant="error", id="yes")
                yield Button("No", variant="primary", id="no")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press."""
        self.dismiss(event.button.id == "yes")

    def action_dismiss_yes(self) -> None:
        self.dismiss(True)

    def action_dismiss_no(self) -> None:
        self.dismiss(False)


class ChoiceScreen(ModalScreen[Optional[str]]):
    """Pick one option from a list; escape dismisses with None."""

    DEFAULT_CSS = DIALOG_CSS.format(screen="ChoiceScreen") + """
    ChoiceScreen OptionList {
        height: auto;
        max-height: 20;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, message: str, options: Sequence[str]):
        super().__init__()
        self.message = message
        self.options: List[str] = list(options)

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(escape(self.message), classes="dialog-message")
            yield OptionList(*[escape(option) for option in self.options])

    def on_mount(self) -> None:
        self.query_one(OptionList).focus()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        self.dismiss(self.options[event.option_index])

    def action_cancel(self) -> None:
        self.dismiss(None)


class InputScreen(ModalScreen[Optional[str]]):
    """Ask for a line of text, re-asking until the validator accepts it."""

    DEFAULT_CSS = DIALOG_CSS.format(screen="InputScreen")

    BINDINGS = [Binding("escape", "cancel", "Cancel")]

    def __init__(self, prompt: str, validator: Optional[Validator] = None, default: Optional[str] = None):
        super().__init__()
        self.prompt = prompt
        self.validator = validator
        self.default = default

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(escape(self.prompt), classes="dialog-message")
            yield Input(value=self.default or "")
            yield Static("", classes="dialog-error")

    def on_mount(self) -> None:
        self.query_one(Input).focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        value = event.value
        if not value:
            self.dismiss(None)
            return
        error = self.validator(value) if self.validator else None
        if error:
            self.query_one(".dialog-error", Static).update(escape(error))
            return
        self.dismiss(value)

    def action_cancel(self) -> None:
        self.dismiss(None)


class TextualPrompter:
    """Prompt collaborator backed by modal screens.

    Must be awaited from a worker, since it waits for the screen to be dismissed.
    """

    def __init__(self, app: "App"):
        self.app = app

    async def choose(self, message: str, options: Sequence[str]) -> Optional[str]:
        if not options:
            return None
        return await self.app.push_screen_wait(ChoiceScreen(message, options))

    async def confirm(self, message: str) -> bool:
        return bool(await self.app.push_screen_wait(ConfirmScreen(message)))

    async def input_text(
        self, prompt: str, validator: Optional[Validator] = None, default: Optional[str] = None
    ) -> Optional[str]:
        return await self.app.push_screen_wait(InputScreen(prompt, validator, default))

    async def notify(self, message: str, severity: str = "information") -> None:
        self.app.notify(escape(message), severity=severity, timeout=8 if severity == "information" else 15)

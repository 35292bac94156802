from textual import events, on
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label

from utils.pure import parse_positive_int


class QuantityModal(ModalScreen[int | None]):
    """
    Ask for a new positive quantity. Dismisses with the number, or None if cancelled.
    """

    def __init__(self, caption: str, current: int) -> None:
        super().__init__()
        self.caption = caption
        self.current = current

    def compose(self) -> ComposeResult:
        with Vertical(id="div-dialog"):
            yield Label(self.caption, id="caption")
            yield Input(str(self.current), id="input-qty", type="integer")
            with Horizontal(id="dialog"):
                yield Button("Cancel", id="btn-secondary")
                yield Button("Save", id="btn-primary", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Input.Submitted, "#input-qty")
    @on(Button.Pressed, "#btn-primary")
    def handle_save(self) -> None:
        qty_input = self.query_one("#input-qty", Input)
        qty = parse_positive_int(qty_input.value)
        if qty is None:
            qty_input.add_class("-invalid")
            self.notify("Quantity must be a whole number above 0.", severity="error")
            return
        self.dismiss(qty)

    @on(Button.Pressed, "#btn-secondary")
    def handle_cancel(self) -> None:
        self.dismiss(None)

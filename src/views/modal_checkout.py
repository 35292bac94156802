from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Markdown

from db.models import Cart, Order
from services import customers, orders
from services.errors import ShopError
from utils.pure import format_money, generate_markdown_table
from views.modal_dialog import ConfirmModal

REQUIRED_FIELDS = {
    "input-recipient-name": "Recipient name",
    "input-recipient-phone": "Recipient phone",
    "input-address-line": "Shipping address",
}


class CheckoutModal(ModalScreen[Order | None]):
    """
    Order summary plus recipient details.
    Dismisses with the placed Order, or None if the customer backed out.
    """

    def __init__(self, cart: Cart):
        super().__init__()
        self._cart = cart

    def compose(self) -> ComposeResult:
        with VerticalScroll(id="div-checkout"):
            yield Markdown("", id="md-order-summary")
            with Vertical():
                yield Label("Recipient Name")
                yield Input(id="input-recipient-name")
                yield Label("Recipient Phone")
                yield Input(id="input-recipient-phone")
                yield Label("Shipping Address")
                yield Input(
                    placeholder="123 Main St, Anytown, ST 00000",
                    id="input-address-line",
                )
                yield Label("Note (optional)")
                yield Input(id="input-note")
            with Horizontal():
                yield Button("Go Back", id="btn-quit")
                yield Button("Place Order", id="btn-submit", variant="primary")

    async def on_mount(self):
        headers = ["Product Name", "Unit Price", "Quantity", "Subtotal"]
        rows = [
            [item.product_name, format_money(item.unit_price), item.quantity, format_money(item.subtotal)]
            for item in self._cart.items
        ]
        md = "### Order Summary\n\n" + generate_markdown_table(headers, rows, ["l", "r", "c", "r"])
        md += f"\n\n**Total:** {format_money(self._cart.total_amount)}"
        await self.query_one(Markdown).update(md)

        # default the recipient to the customer's own profile
        customer = await customers.get_customer(self.app.state.customer_id)
        self.query_one("#input-recipient-name", Input).value = customer.name
        self.query_one("#input-recipient-phone", Input).value = customer.phone or ""
        self.query_one("#input-address-line", Input).value = customer.address or ""
        self.query_one("#input-address-line").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(None)

    @on(Button.Pressed, "#btn-submit")
    @work(exclusive=True)
    async def handle_submit(self):
        values = {}
        for input_id, caption in REQUIRED_FIELDS.items():
            widget = self.query_one(f"#{input_id}", Input)
            if not widget.value.strip():
                widget.focus()
                widget.add_class("-invalid")
                self.notify(f"{caption} is required.", severity="error")
                return
            widget.remove_class("-invalid")
            values[input_id] = widget.value.strip()
        note = self.query_one("#input-note", Input).value.strip() or None

        if not await self.app.push_screen_wait(
            ConfirmModal("Place order? This cannot be undone.", tone="positive")
        ):
            return

        try:
            order = await orders.place_order(
                self.app.state.context,
                values["input-recipient-name"],
                values["input-recipient-phone"],
                values["input-address-line"],
                note,
            )
        except ShopError as e:
            self.notify(e.message, severity="error")
            self.dismiss(None)
            return

        self.notify(f"Order placed. Your order number is {order.order_number}.")
        self.dismiss(order)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self):
        self.dismiss(None)

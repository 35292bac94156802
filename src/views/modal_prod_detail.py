from textual import events, on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.reactive import reactive
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Markdown

from db.models import Product
from services import carts, catalog
from services.errors import ShopError
from utils.pure import format_money, generate_markdown_table, parse_positive_int


class ProdDetailModal(ModalScreen[bool]):
    """
    product detail plus quantity picker.
    Dismisses with True if the cart changed, False if not
    """

    order_qty = reactive(1)

    def __init__(self, prod_num: int) -> None:
        super().__init__()
        self._prod_num = prod_num
        self._prod: Product | None = None

    def compose(self) -> ComposeResult:
        with Horizontal(id="hort-prod-detail"):
            yield Markdown("", id="md-prod-detail")
            with Vertical():
                yield Label("Quantity")
                with Horizontal():
                    yield Button("-", id="btn-sub-qty")
                    yield Input(value="1", id="input-order-qty", type="integer")
                    yield Button("+", id="btn-add-qty")
                yield Label("", id="label-in-cart")
                with Horizontal():
                    yield Button("Go Back", id="btn-quit")
                    yield Button("Add to Cart", id="btn-addcart", variant="primary")

    async def on_mount(self):
        try:
            self._prod = await catalog.get_product(self._prod_num)
        except ShopError as e:
            self.notify(e.message, severity="error")
            self.dismiss(False)
            return

        p = self._prod
        rows = [
            ["Name", p.name],
            ["Type", p.prod_type or "-"],
            ["Price", format_money(p.price)],
            ["Description", p.description or ""],
        ]
        await self.query_one(Markdown).update(
            f"### {p.name}\n\n" + generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        )

        cart = await carts.get_cart(self.app.state.customer_id)
        in_cart = sum(
            item.quantity for item in (cart.items if cart else ()) if item.prod_num == p.prod_num
        )
        if in_cart:
            self.query_one("#label-in-cart", Label).update(f"Already in cart: {in_cart}")
        self.query_one("#input-order-qty").focus()

    def on_key(self, event: events.Key) -> None:
        if event.key == "escape":
            self.dismiss(False)

    def watch_order_qty(self, qty: int) -> None:
        qty_input = self.query_one("#input-order-qty", Input)
        if qty_input.value != str(qty):
            qty_input.value = str(qty)

    @on(Input.Changed, "#input-order-qty")
    def handle_qty_input(self, event: Input.Changed) -> None:
        qty = parse_positive_int(event.value)
        if qty is None:
            event.input.add_class("-invalid")
            return
        event.input.remove_class("-invalid")
        self.order_qty = qty

    @on(Button.Pressed, "#btn-sub-qty")
    def handle_sub_qty(self) -> None:
        self.order_qty = max(1, self.order_qty - 1)

    @on(Button.Pressed, "#btn-add-qty")
    def handle_add_qty(self) -> None:
        self.order_qty += 1

    @on(Button.Pressed, "#btn-addcart")
    @work(exclusive=True)
    async def handle_add_to_cart(self) -> None:
        try:
            await carts.add_product_to_cart(
                self.app.state.customer_id, self._prod_num, self.order_qty
            )
        except ShopError as e:
            self.notify(e.message, severity="error")
            return
        self.notify(f"Added {self.order_qty} x {self._prod.name} to cart.")
        self.dismiss(True)

    @on(Button.Pressed, "#btn-quit")
    def handle_quit(self) -> None:
        self.dismiss(False)

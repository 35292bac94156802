from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, Rule

from db.models import Cart
from services import carts
from services.errors import ShopError
from utils.messages import CartChangedMessage, ModeSwitchedMessage, NewOrderMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_checkout import CheckoutModal
from views.modal_dialog import ConfirmModal
from views.modal_quantity import QuantityModal


class CartScreen(BaseScreen):
    """
    cart content, quantity edits and checkout
    """

    def __init__(self) -> None:
        super().__init__()
        self._cart: Cart | None = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        yield DataTable(id="table-cart")
        yield Label("Total: $0.00 (0 items)", id="label-cart-total")
        yield Rule(line_style="dashed")
        with Horizontal(id="hort-buttons"):
            yield Button("Edit Quantity", id="btn-edit-item")
            yield Button("Remove Item", id="btn-remove-item", variant="warning")
            yield Button("Clear Cart", id="btn-clear-cart", variant="error")
            yield Button("Checkout", id="btn-checkout", variant="primary")

    def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Product", "Unit Price", "Qty", "Subtotal")
        self.handle_cart_change()

    @on(CartChangedMessage)
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @work(exclusive=True)  # must be exclusive, otherwise rows could be added twice
    async def handle_cart_change(self):
        self._cart = await carts.get_cart(self.app.state.customer_id)
        items = self._cart.items if self._cart else ()

        table = self.query_one(DataTable)
        table.clear()
        for item in items:
            table.add_row(
                item.product_name,
                format_money(item.unit_price),
                item.quantity,
                format_money(item.subtotal),
                key=str(item.cart_item_id),
            )

        if self._cart:
            total, count = self._cart.total_amount, self._cart.total_quantity
        else:
            total, count = 0, 0
        self.query_one("#label-cart-total", Label).update(
            f"Total: {format_money(total)} ({count} items)"
        )

    def _selected_item_id(self) -> int | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return int(row_key.value)

    def _cart_is_empty(self) -> bool:
        if self._cart is None or self._cart.is_empty:
            self.notify("Cart is empty.", severity="warning")
            return True
        return False

    @on(Button.Pressed, "#btn-edit-item")
    @work()
    async def handle_edit_item(self) -> None:
        item_id = self._selected_item_id()
        if item_id is None or self._cart_is_empty():
            return
        item = next(i for i in self._cart.items if i.cart_item_id == item_id)
        qty = await self.app.push_screen_wait(
            QuantityModal(f"New quantity for {item.product_name}", item.quantity)
        )
        if qty is None:
            return
        try:
            await carts.update_my_cart_item(self.app.state.context, item_id, qty)
        except ShopError as e:
            self.notify_error(e)
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-remove-item")
    @work()
    async def handle_remove_item(self) -> None:
        item_id = self._selected_item_id()
        if item_id is None or self._cart_is_empty():
            return
        if not await self.app.push_screen_wait(
            ConfirmModal("Do you really want to remove this item from cart?")
        ):
            return
        try:
            await carts.remove_my_cart_item(self.app.state.context, item_id)
            self.notify("Item removed from cart.")
        except ShopError as e:
            self.notify_error(e)
        self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-clear-cart")
    @work()
    async def handle_clear_cart(self) -> None:
        if self._cart_is_empty():
            return
        if await self.app.push_screen_wait(
            ConfirmModal("Do you really want to remove all items from cart?", tone="error")
        ):
            await carts.clear_cart(self.app.state.customer_id)
            self.post_message(CartChangedMessage())

    @on(Button.Pressed, "#btn-checkout")
    @work()
    async def handle_checkout(self) -> None:
        if self._cart_is_empty():
            return
        order = await self.app.push_screen_wait(CheckoutModal(self._cart))
        if order is not None:
            self.app.post_message(NewOrderMessage())
        self.post_message(CartChangedMessage())

from math import ceil
from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.reactive import reactive
from textual.validation import Number
from textual.widgets import Button, DataTable, Input, Label, MarkdownViewer

from db.models import Order
from services import orders
from services.errors import ShopError
from utils.messages import (
    ModeSwitchedMessage,
    NewOrderMessage,
    OrderStatusChangedMessage,
)
from utils.pure import format_money, order_detail_markdown
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal

PAGE_SIZE = 5


class PastOrdersScreen(BaseScreen):
    """
    Customers can browse their past orders with pagination and view details.

    Layout:
    - Markdown detail view at the top, showing the highlighted order.
    - Orders table below (newest first), 5 per page with Prev/Next.
    - Cancel button for orders that have not shipped yet.
    """

    # Show some hints in footer
    BINDINGS = [
        Binding("enter", "noop", "View Order Detail", show=True, key_display="⏎"),
    ]

    page_idx = reactive(1)
    page_cnt = reactive(1)

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-order-detail", show_table_of_contents=False)
            yield DataTable(id="table-orders")
        with Horizontal(id="hort-table-control"):
            yield Button("Refresh", id="btn-refresh")
            yield Button("<", id="btn-prev")
            yield Input("1", id="input-page", type="integer")
            yield Label(" / 1", id="label-total-page-cnt")
            yield Button(">", id="btn-next")
            yield Button("Cancel Order", id="btn-cancel-order", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Date", "Status", "Items", "Total")
        self.handle_refresh()

    def action_noop(self) -> None:
        pass

    @on(Button.Pressed, "#btn-refresh")
    @on(ModeSwitchedMessage)
    @on(ScreenResume)
    @on(NewOrderMessage)
    @on(OrderStatusChangedMessage)
    @work(exclusive=True, group="orders")
    async def handle_refresh(self) -> None:
        self._orders = await orders.list_my_orders(self.app.state.context)
        self.page_cnt = max(ceil(len(self._orders) / PAGE_SIZE), 1)
        self.query_one("#label-total-page-cnt", Label).update(f" / {self.page_cnt}")
        if self.page_idx > self.page_cnt:
            self.page_idx = self.page_cnt
        self._fill_page()

    def watch_page_idx(self, new: int) -> None:
        self.query_one("#input-page", Input).value = str(new)
        self._fill_page()

    def _refresh_buttons(self) -> None:
        self.query_one("#btn-prev", Button).disabled = self.page_idx <= 1
        self.query_one("#btn-next", Button).disabled = self.page_idx >= self.page_cnt
        self.query_one("#input-page", Input).validators = [
            Number(minimum=1, maximum=self.page_cnt)
        ]

    def _fill_page(self) -> None:
        start = (self.page_idx - 1) * PAGE_SIZE
        page = self._orders[start : start + PAGE_SIZE]

        table = self.query_one(DataTable)
        table.clear()
        for o in page:
            table.add_row(
                o.order_number,
                f"{o.created_date:%Y-%m-%d %H:%M}",
                o.status.display_name,
                o.item_count,
                format_money(o.total_amount),
                key=str(o.order_id),
            )
        self._refresh_buttons()
        if page:
            table.cursor_coordinate = (0, 0)
        self._render_detail(page[0] if page else None)

    @on(Button.Pressed, "#btn-prev")
    def handle_prev(self) -> None:
        if self.page_idx > 1:
            self.page_idx -= 1

    @on(Button.Pressed, "#btn-next")
    def handle_next(self) -> None:
        if self.page_idx < self.page_cnt:
            self.page_idx += 1

    @on(Input.Changed, "#input-page")
    def handle_page_input(self, ev: Input.Changed) -> None:
        if ev.value and ev.value.isdigit():
            new_idx = max(1, min(int(ev.value), self.page_cnt))
            if new_idx != self.page_idx:
                self.page_idx = new_idx

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        self._render_detail(self._find(int(event.row_key.value)))

    def _find(self, order_id: int) -> Order | None:
        return next((o for o in self._orders if o.order_id == order_id), None)

    def _selected_order(self) -> Order | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        return self._find(int(row_key.value))

    def _render_detail(self, order: Order | None) -> None:
        viewer = self.query_one("#md-order-detail", MarkdownViewer)
        if order is None:
            viewer.document.update("### Select an order to view its details.")
            self.query_one("#btn-cancel-order", Button).disabled = True
            return
        viewer.document.update(order_detail_markdown(order))
        self.query_one("#btn-cancel-order", Button).disabled = not order.status.is_cancellable

    @on(Button.Pressed, "#btn-cancel-order")
    @work()
    async def handle_cancel_order(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmModal(f"Cancel order {order.order_number}?", tone="error")
        ):
            return
        try:
            await orders.cancel_my_order(self.app.state.context, order.order_id)
            self.notify(f"Order {order.order_number} cancelled.")
        except ShopError as e:
            self.notify_error(e)
        self.post_message(OrderStatusChangedMessage(order.order_id))

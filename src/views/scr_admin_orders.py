from typing import List

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Label, MarkdownViewer, Select

from db.models import Order, OrderStatus
from services import orders
from services.errors import ShopError
from utils.messages import ModeSwitchedMessage, NewOrderMessage, OrderStatusChangedMessage
from utils.pure import format_money, order_detail_markdown
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal

ALL_STATUSES = ""

STATUS_OPTIONS = [(s.display_name, s.name) for s in OrderStatus]


class AdminOrdersScreen(BaseScreen):
    """
    Every order in the store, filterable by status.
    The admin can overwrite the status of the highlighted order or cancel it.
    """

    def __init__(self) -> None:
        super().__init__()
        self._orders: List[Order] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-order-filters"):
            yield Label("Status:")
            yield Select(
                [("All", ALL_STATUSES)] + STATUS_OPTIONS,
                allow_blank=False,
                id="select-filter-status",
            )
        with Vertical():
            yield DataTable(id="table-all-orders")
            yield MarkdownViewer(id="md-admin-order", show_table_of_contents=False)
        with Horizontal(id="hort-order-controls"):
            yield Select(STATUS_OPTIONS, allow_blank=False, id="select-new-status")
            yield Button("Update Status", id="btn-update-status", variant="primary")
            yield Button("Cancel Order", id="btn-admin-cancel", variant="error")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("Order No", "Customer", "Date", "Status", "Total")
        self.handle_reload()

    @on(Select.Changed, "#select-filter-status")
    @on(NewOrderMessage)
    @on(OrderStatusChangedMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        status = self.query_one("#select-filter-status", Select).value
        if status == ALL_STATUSES:
            self._orders = await orders.list_orders()
        else:
            self._orders = await orders.list_orders_by_status(status)

        table = self.query_one(DataTable)
        table.clear()
        for o in self._orders:
            table.add_row(
                o.order_number,
                o.cust_num,
                f"{o.created_date:%Y-%m-%d %H:%M}",
                o.status.display_name,
                format_money(o.total_amount),
                key=str(o.order_id),
            )
        self._render_detail(self._orders[0] if self._orders else None)

    @on(DataTable.RowHighlighted)
    def handle_row_highlight(self, event: DataTable.RowHighlighted) -> None:
        if event.row_key is None or event.row_key.value is None:
            return
        order_id = int(event.row_key.value)
        self._render_detail(next((o for o in self._orders if o.order_id == order_id), None))

    def _render_detail(self, order: Order | None) -> None:
        viewer = self.query_one("#md-admin-order", MarkdownViewer)
        if order is None:
            viewer.document.update("### No order selected.")
            return
        viewer.document.update(order_detail_markdown(order))
        self.query_one("#select-new-status", Select).value = order.status.name

    def _selected_order(self) -> Order | None:
        table = self.query_one(DataTable)
        if table.row_count == 0:
            return None
        row_key, _ = table.coordinate_to_cell_key(table.cursor_coordinate)
        order_id = int(row_key.value)
        return next((o for o in self._orders if o.order_id == order_id), None)

    @on(Button.Pressed, "#btn-update-status")
    @work()
    async def handle_update_status(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        new_status = self.query_one("#select-new-status", Select).value
        if new_status == order.status.name:
            self.notify("Nothing to update.", severity="warning")
            return
        target = OrderStatus[new_status]
        if not order.status.can_advance_to(target) and not await self.app.push_screen_wait(
            ConfirmModal(
                f"{order.status.display_name} does not normally move to "
                f"{target.display_name}. Apply anyway?"
            )
        ):
            return
        try:
            await orders.change_order_status(self.app.state.context, order.order_id, new_status)
            self.notify(f"Order {order.order_number} is now {target.display_name}.")
        except ShopError as e:
            self.notify_error(e)
        self.post_message(OrderStatusChangedMessage(order.order_id))

    @on(Button.Pressed, "#btn-admin-cancel")
    @work()
    async def handle_cancel(self) -> None:
        order = self._selected_order()
        if order is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmModal(f"Cancel order {order.order_number}?", tone="error")
        ):
            return
        try:
            await orders.cancel_order_as_admin(self.app.state.context, order.order_id)
            self.notify(f"Order {order.order_number} cancelled.")
        except ShopError as e:
            self.notify_error(e)
        self.post_message(OrderStatusChangedMessage(order.order_id))

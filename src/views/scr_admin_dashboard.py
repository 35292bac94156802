from textual import on, work
from textual.app import ComposeResult
from textual.containers import Vertical
from textual.events import ScreenResume
from textual.widgets import Button, MarkdownViewer

from services import dashboard
from utils.messages import ModeSwitchedMessage, NewOrderMessage, OrderStatusChangedMessage
from utils.pure import format_money, generate_markdown_table
from views.base_screen import BaseScreen

RECENT_ORDERS = 5


class AdminDashboardScreen(BaseScreen):
    """
    Store overview: order, product and customer counts plus the latest orders.
    """

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            yield MarkdownViewer(id="md-dashboard", show_table_of_contents=False)
            yield Button("Refresh", id="btn-refresh", variant="primary")

    def on_mount(self) -> None:
        self.handle_reload()

    @on(Button.Pressed, "#btn-refresh")
    @on(NewOrderMessage)
    @on(OrderStatusChangedMessage)
    @on(ScreenResume)
    @on(ModeSwitchedMessage)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        summary = await dashboard.get_admin_dashboard(self.app.state.context, RECENT_ORDERS)

        md = (
            "### Store Summary\n\n"
            f"- Total Orders: {summary.total_orders}\n"
            f"- Total Products: {summary.total_products}\n"
            f"- Total Customers: {summary.total_customers}\n\n"
            f"### Recent Orders\n\n"
        )
        if summary.recent_orders:
            rows = [
                [
                    o.order_number,
                    f"{o.created_date:%Y-%m-%d %H:%M}",
                    o.recipient_name,
                    o.status.display_name,
                    format_money(o.total_amount),
                ]
                for o in summary.recent_orders
            ]
            md += generate_markdown_table(
                ["Order No", "Date", "Recipient", "Status", "Total"],
                rows,
                ["l", "l", "l", "c", "r"],
            )
        else:
            md += "No orders yet."
        await self.query_one("#md-dashboard", MarkdownViewer).document.update(md)

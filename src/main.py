from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import LoadingIndicator

from db.models import Role
from utils.logger import get_logger
from utils.messages import ModeSwitchedMessage, QuitRequestedMessage, UserLogoutMessage
from utils.state import GlobalState
from views.scr_admin_customers import AdminCustomersScreen
from views.scr_admin_dashboard import AdminDashboardScreen
from views.scr_admin_orders import AdminOrdersScreen
from views.scr_admin_products import AdminProductsScreen
from views.scr_cart import CartScreen
from views.scr_login import LoginScreen
from views.scr_past_orders import PastOrdersScreen
from views.scr_prod_search import ProdSearchScreen

_logger = get_logger(__name__)


class ShopApp(App):
    BINDINGS = [
        Binding("ctrl+t", "switch_light", "Toggle Theme", show=True),
    ]

    MODES = {
        "prod_search": ProdSearchScreen,
        "cart": CartScreen,
        "my_orders": PastOrdersScreen,
        "admin_dashboard": AdminDashboardScreen,
        "admin_orders": AdminOrdersScreen,
        "admin_products": AdminProductsScreen,
        "admin_customers": AdminCustomersScreen,
    }

    ADMIN_MODES = {
        "admin_dashboard": "Dashboard",
        "admin_orders": "Order Management",
        "admin_products": "Product Management",
        "admin_customers": "Customer Management",
    }
    CUSTOMER_MODES = {
        "prod_search": "Search Products",
        "cart": "Cart",
        "my_orders": "My Orders",
    }

    CSS_PATH = "styles/shop.tcss"

    state: GlobalState

    def __init__(self):
        super().__init__()
        self.state = GlobalState()

    def compose(self) -> ComposeResult:
        yield LoadingIndicator()

    async def on_mount(self) -> None:
        self.main_flow()

    def action_switch_light(self):
        if self.theme == "textual-dark":
            self.theme = "solarized-light"
        else:
            self.theme = "textual-dark"
        self.notify(f"Theme changed to {self.theme}")

    @on(UserLogoutMessage)
    @work
    async def handle_user_logout(self):
        _logger.info(f"User '{self.state.username}' logged out.")
        self.state.logout()
        self.notify("Logout successful.")
        self.main_flow()

    @on(QuitRequestedMessage)
    def handle_quit(self):
        self.state.logout()
        self.exit()

    @work
    async def main_flow(self):
        await self.push_screen_wait(LoginScreen())
        if self.state.role == Role.CUSTOMER:
            target = "prod_search"
        elif self.state.role == Role.ADMIN:
            target = "admin_dashboard"
        else:
            return
        self.app.post_message(ModeSwitchedMessage(self.app.current_mode, target))
        await self.switch_mode(target)


def run() -> None:
    ShopApp().run()


if __name__ == "__main__":
    run()

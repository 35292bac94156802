from textual import on, work
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.widgets import DataTable, Input, Select

from services import catalog
from utils.messages import CartChangedMessage
from utils.pure import format_money
from views.base_screen import BaseScreen
from views.modal_prod_detail import ProdDetailModal

ALL_TYPES = ""

SORT_OPTIONS = [
    ("Default order", ""),
    ("Price: low to high", "price_asc"),
    ("Price: high to low", "price_desc"),
    ("Name: A-Z", "name_asc"),
    ("Name: Z-A", "name_desc"),
]


class ProdSearchScreen(BaseScreen):
    """
    Catalog browsing for customers: keyword, type filter and sort.
    Enter on a row opens the product detail to add it to the cart.
    """

    # only here to be displayed in footer
    BINDINGS = [
        Binding("enter", "noop", "View Product", show=True, key_display="⏎"),
    ]

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Horizontal(id="hort-search-filters"):
            yield Input(
                id="input-search", placeholder="Start typing to search products..."
            )
            yield Select([("All types", ALL_TYPES)], allow_blank=False, id="select-type")
            yield Select(SORT_OPTIONS, allow_blank=False, id="select-sort")
        yield DataTable(id="table-search-result")

    async def on_mount(self):
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("No.", "Name", "Type", "Price", "Description")

        types = await catalog.list_product_types()
        self.query_one("#select-type", Select).set_options(
            [("All types", ALL_TYPES)] + [(t, t) for t in types]
        )

        self.query_one("#input-search").focus()
        self.update_search_result()

    def action_noop(self) -> None:
        pass

    @on(Input.Changed, "#input-search")
    @on(Select.Changed)
    def handle_filter_changed(self) -> None:
        self.update_search_result()

    @on(DataTable.RowSelected)
    @work()
    async def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        prod_num = int(event.row_key.value)
        if await self.app.push_screen_wait(ProdDetailModal(prod_num)):
            self.app.post_message(CartChangedMessage())

    @work(exclusive=True)
    async def update_search_result(self) -> None:
        keyword = self.query_one("#input-search", Input).value
        prod_type = self.query_one("#select-type", Select).value
        sort = self.query_one("#select-sort", Select).value

        products = await catalog.search_products(keyword, prod_type, sort)

        table = self.query_one(DataTable)
        table.clear()
        for p in products:
            table.add_row(
                p.prod_num,
                p.name,
                p.prod_type or "-",
                format_money(p.price),
                p.description or "",
                key=str(p.prod_num),
            )

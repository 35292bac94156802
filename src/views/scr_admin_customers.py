from __future__ import annotations

from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.events import ScreenResume
from textual.widgets import Button, DataTable, Input, Label

from db.models import Customer
from services import customers
from services.errors import DuplicateIdentityError, ShopError, ValidationFailure
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal

FIELD_INPUTS = {
    "name": "#input-cust-name",
    "email": "#input-cust-email",
    "phone": "#input-cust-phone",
    "address": "#input-cust-address",
}


class AdminCustomersScreen(BaseScreen):
    """
    Admins list customers, filter by exact name, edit profiles or delete accounts.
    """

    current_cust_num: Optional[int] = None

    def __init__(self) -> None:
        super().__init__()
        self._customers: List[Customer] = []

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-cust-search"):
                yield Input(id="input-cust-search", placeholder="Full name, blank for all")
                yield Button("Search", id="btn-cust-search", variant="primary")
            yield DataTable(id="table-customers")
            with Vertical(id="div-cust-form"):
                with Horizontal():
                    with Vertical():
                        yield Label("Name:")
                        yield Input(id="input-cust-name")
                    with Vertical():
                        yield Label("Email:")
                        yield Input(id="input-cust-email")
                    with Vertical():
                        yield Label("Phone:")
                        yield Input(id="input-cust-phone")
                yield Label("Address:")
                yield Input(id="input-cust-address")
                with Horizontal(id="div-cust-button"):
                    yield Button("Delete", id="btn-cust-delete", variant="error")
                    yield Button("Save", id="btn-cust-save", variant="primary")

    def on_mount(self) -> None:
        table = self.query_one(DataTable)
        table.cursor_type = "row"
        table.zebra_stripes = True
        table.add_columns("No.", "Username", "Name", "Email", "Phone")
        self.query_one("#div-cust-form").add_class("hidden")
        self.handle_reload()

    @on(Button.Pressed, "#btn-cust-search")
    @on(Input.Submitted, "#input-cust-search")
    @on(ScreenResume)
    @work(exclusive=True)
    async def handle_reload(self) -> None:
        name = self.query_one("#input-cust-search", Input).value
        try:
            self._customers = await customers.list_customers_as_admin(
                self.app.state.context, name
            )
        except ShopError as e:
            self.notify_error(e)
            return

        table = self.query_one(DataTable)
        table.clear()
        for c in self._customers:
            table.add_row(
                c.cust_num, c.username, c.name, c.email, c.phone or "", key=str(c.cust_num)
            )
        if not any(c.cust_num == self.current_cust_num for c in self._customers):
            self.current_cust_num = None
            self.query_one("#div-cust-form").add_class("hidden")

    @on(DataTable.RowSelected)
    def handle_row_selected(self, event: DataTable.RowSelected) -> None:
        cust_num = int(event.row_key.value)
        customer = next((c for c in self._customers if c.cust_num == cust_num), None)
        if customer is None:
            return
        self.current_cust_num = cust_num
        self.query_one("#input-cust-name", Input).value = customer.name
        self.query_one("#input-cust-email", Input).value = customer.email
        self.query_one("#input-cust-phone", Input).value = customer.phone or ""
        self.query_one("#input-cust-address", Input).value = customer.address or ""
        for selector in FIELD_INPUTS.values():
            self.query_one(selector, Input).remove_class("-invalid")
        self.query_one("#div-cust-form").remove_class("hidden")
        self.query_one("#input-cust-name").focus()

    @on(Button.Pressed, "#btn-cust-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        if self.current_cust_num is None:
            return
        values = {}
        for field, selector in FIELD_INPUTS.items():
            widget = self.query_one(selector, Input)
            widget.remove_class("-invalid")
            values[field] = widget.value
        values["address"] = values["address"].strip() or None

        try:
            await customers.update_customer_as_admin(
                self.app.state.context, self.current_cust_num, **values
            )
        except ValidationFailure as e:
            for field in e.errors:
                if field in FIELD_INPUTS:
                    self.query_one(FIELD_INPUTS[field], Input).add_class("-invalid")
            self.notify_error(e)
            return
        except DuplicateIdentityError as e:
            self.query_one(FIELD_INPUTS[e.field], Input).add_class("-invalid")
            self.notify_error(e)
            return
        except ShopError as e:
            self.notify_error(e)
            return

        self.notify(f"Customer #{self.current_cust_num} updated.")
        self.handle_reload()

    @on(Button.Pressed, "#btn-cust-delete")
    @work()
    async def handle_delete(self) -> None:
        if self.current_cust_num is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmModal(f"Delete customer #{self.current_cust_num}?", tone="error")
        ):
            return
        try:
            await customers.delete_customer_as_admin(
                self.app.state.context, self.current_cust_num
            )
        except ShopError as e:
            # customers with orders are kept
            self.notify_error(e)
            return

        self.notify(f"Customer #{self.current_cust_num} deleted.")
        self.current_cust_num = None
        self.query_one("#div-cust-form").add_class("hidden")
        self.handle_reload()

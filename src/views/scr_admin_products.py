from __future__ import annotations

from typing import List, Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, Vertical
from textual.validation import Number
from textual.widgets import Button, Input, Label, MarkdownViewer, OptionList
from textual.widgets.option_list import Option

from db.models import Product
from services import catalog
from services.errors import ShopError, ValidationFailure
from utils.pure import format_money, generate_markdown_table
from views.base_screen import BaseScreen
from views.modal_dialog import ConfirmModal

FIELD_INPUTS = {
    "name": "#input-prod-name",
    "prod_type": "#input-prod-type",
    "price": "#input-prod-price",
    "description": "#input-prod-desc",
}


class AdminProductsScreen(BaseScreen):
    """
    Admins search the catalog, then edit, create or delete products.
    """

    current_prod_num: Optional[int] = None

    def compose(self) -> ComposeResult:
        yield from super().compose()
        with Vertical():
            with Horizontal(id="hort-prod-search"):
                yield Input(id="input-search", placeholder="Search for product...")
                yield Button("New Product", id="btn-new", variant="success")
            yield OptionList(id="optlist-prods")
            yield MarkdownViewer(id="md-prod", show_table_of_contents=False)
            with Vertical(id="div-prod-form"):
                with Horizontal():
                    with Vertical():
                        yield Label("Name:")
                        yield Input(id="input-prod-name")
                    with Vertical():
                        yield Label("Type:")
                        yield Input(id="input-prod-type")
                    with Vertical():
                        yield Label("Price ($):")
                        yield Input(
                            id="input-prod-price",
                            type="number",
                            validators=[Number(minimum=0.0)],
                        )
                yield Label("Description:")
                yield Input(id="input-prod-desc")
                with Horizontal(id="div-button"):
                    yield Button("Delete", id="btn-delete", variant="error")
                    yield Button("Save", id="btn-save", variant="primary")

    def on_mount(self) -> None:
        self.query_one("#input-search", Input).focus()
        self.query_one("#md-prod").add_class("hidden")
        self.query_one("#div-prod-form").add_class("hidden")
        self.update_optlist("")

    @on(Input.Changed, "#input-search")
    def handle_search_changed(self, message: Input.Changed) -> None:
        self.query_one("#optlist-prods").remove_class("hidden")
        self.update_optlist(message.value)

    @on(OptionList.OptionSelected, "#optlist-prods")
    def handle_option_selected(self, message: OptionList.OptionSelected) -> None:
        self.current_prod_num = int(message.option.id)
        self.render_product()
        self.query_one("#md-prod").remove_class("hidden")
        self.query_one("#div-prod-form").remove_class("hidden")
        self.query_one("#btn-delete").disabled = False

    @on(Button.Pressed, "#btn-new")
    async def handle_new(self) -> None:
        self.current_prod_num = None
        for selector in FIELD_INPUTS.values():
            widget = self.query_one(selector, Input)
            widget.value = ""
            widget.remove_class("-invalid")
        await self.query_one("#md-prod", MarkdownViewer).document.update("### New Product")
        self.query_one("#md-prod").remove_class("hidden")
        self.query_one("#div-prod-form").remove_class("hidden")
        self.query_one("#btn-delete").disabled = True
        self.query_one("#input-prod-name").focus()

    @work(exclusive=True)
    async def update_optlist(self, query: str):
        """
        fill option list with search results
        """
        results: List[Product] = await catalog.search_products(query, sort="name_asc")

        opt_list = self.query_one("#optlist-prods", OptionList)
        opt_list.clear_options()
        opt_list.add_options(
            [Option(f"{p.prod_num} {p.name}", id=str(p.prod_num)) for p in results]
        )

    @work(exclusive=True)
    async def render_product(self) -> None:
        try:
            prod = await catalog.get_product(self.current_prod_num)
        except ShopError as e:
            self.notify_error(e)
            return

        rows = [
            ["No.", prod.prod_num],
            ["Name", prod.name],
            ["Type", prod.prod_type or "-"],
            ["Price", format_money(prod.price)],
            ["Description", prod.description or ""],
        ]
        md_table = generate_markdown_table(["Attribute", "Value"], rows, ["l", "l"])
        await self.query_one("#md-prod", MarkdownViewer).document.update(
            f"### Product Detail: {prod.name}\n\n" + md_table
        )

        # prefill inputs with current values for convenience
        self.query_one("#input-prod-name", Input).value = prod.name
        self.query_one("#input-prod-type", Input).value = prod.prod_type or ""
        self.query_one("#input-prod-price", Input).value = f"{prod.price:.2f}"
        self.query_one("#input-prod-desc", Input).value = prod.description or ""

    def _form_values(self) -> dict:
        values = {}
        for field, selector in FIELD_INPUTS.items():
            widget = self.query_one(selector, Input)
            widget.remove_class("-invalid")
            values[field] = widget.value
        return values

    @on(Button.Pressed, "#btn-save")
    @work(exclusive=True)
    async def handle_save(self) -> None:
        values = self._form_values()
        try:
            if self.current_prod_num is None:
                prod = await catalog.create_product(**values)
                self.current_prod_num = prod.prod_num
                self.query_one("#btn-delete").disabled = False
                self.notify(f"Product #{prod.prod_num} created.")
            else:
                await catalog.update_product(self.current_prod_num, **values)
                self.notify("Product updated successfully.")
        except ValidationFailure as e:
            for field in e.errors:
                if field in FIELD_INPUTS:
                    self.query_one(FIELD_INPUTS[field], Input).add_class("-invalid")
            self.notify_error(e)
            return
        except ShopError as e:
            self.notify_error(e)
            return

        self.render_product()
        self.update_optlist(self.query_one("#input-search", Input).value)

    @on(Button.Pressed, "#btn-delete")
    @work()
    async def handle_delete(self) -> None:
        if self.current_prod_num is None:
            return
        if not await self.app.push_screen_wait(
            ConfirmModal(f"Delete product #{self.current_prod_num}?", tone="error")
        ):
            return
        try:
            await catalog.delete_product(self.current_prod_num)
        except ShopError as e:
            self.notify_error(e)
            return

        self.notify(f"Product #{self.current_prod_num} deleted.")
        self.current_prod_num = None
        self.query_one("#md-prod").add_class("hidden")
        self.query_one("#div-prod-form").add_class("hidden")
        self.update_optlist(self.query_one("#input-search", Input).value)

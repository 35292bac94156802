"""Cart manager: the customer's staging area before checkout."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from db import crud, models
from db.database import connect, transaction
from services.context import RequestContext, require_customer
from services.errors import InvalidQuantityError, NotFoundError, PermissionDeniedError
from utils.logger import get_logger

_logger = get_logger(__name__)


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidQuantityError(quantity)


async def _require_customer(conn, customer_id: int) -> models.Customer:
    customer = await crud.get_customer(conn, customer_id)
    if customer is None:
        raise NotFoundError("Customer", customer_id)
    return customer


async def get_cart(customer_id: int) -> Optional[models.Cart]:
    """Return the customer's cart with items, or None if they never had one."""
    async with connect() as conn:
        await _require_customer(conn, customer_id)
        return await crud.get_cart(conn, customer_id)


async def get_or_create_cart(customer_id: int) -> models.Cart:
    async with transaction() as conn:
        await _require_customer(conn, customer_id)
        await crud.ensure_cart(conn, customer_id, datetime.now())
        return await crud.get_cart(conn, customer_id)


async def get_cart_item(cart_item_id: int) -> models.CartItem:
    async with connect() as conn:
        item = await crud.get_cart_item(conn, cart_item_id)
    if item is None:
        raise NotFoundError("Cart item", cart_item_id)
    return item


async def add_product_to_cart(customer_id: int, product_id: int, quantity: int) -> None:
    """
    Add quantity of a product to the customer's cart, creating the cart if needed.

    A product already in the cart gets the quantities summed. A new line
    captures the product's current price as its unit price.
    """
    _check_quantity(quantity)
    now = datetime.now()
    async with transaction() as conn:
        await _require_customer(conn, customer_id)
        product = await crud.get_product(conn, product_id)
        if product is None:
            raise NotFoundError("Product", product_id)

        cart_id = await crud.ensure_cart(conn, customer_id, now)
        existing = await crud.find_cart_item(conn, cart_id, product_id)
        if existing:
            await crud.set_cart_item_quantity(
                conn, existing.cart_item_id, existing.quantity + quantity
            )
        else:
            await crud.insert_cart_item(conn, cart_id, product_id, quantity, product.price)
        await crud.touch_cart(conn, cart_id, now)

    _logger.debug(f"Customer {customer_id} added {quantity} x product {product_id}.")


async def update_cart_item_quantity(cart_item_id: int, quantity: int) -> None:
    _check_quantity(quantity)
    async with transaction() as conn:
        item = await crud.get_cart_item(conn, cart_item_id)
        if item is None:
            raise NotFoundError("Cart item", cart_item_id)
        await crud.set_cart_item_quantity(conn, cart_item_id, quantity)
        await crud.touch_cart(conn, item.cart_id, datetime.now())


async def remove_cart_item(cart_item_id: int) -> None:
    async with transaction() as conn:
        item = await crud.get_cart_item(conn, cart_item_id)
        if item is None:
            raise NotFoundError("Cart item", cart_item_id)
        await crud.delete_cart_item(conn, cart_item_id)
        await crud.touch_cart(conn, item.cart_id, datetime.now())


async def clear_cart(customer_id: int) -> None:
    """Remove every item from the customer's cart; no-op without a cart."""
    async with transaction() as conn:
        await _require_customer(conn, customer_id)
        row = await crud.get_cart_row(conn, customer_id)
        if not row:
            return
        await crud.clear_cart_items(conn, row["cart_id"])
        await crud.touch_cart(conn, row["cart_id"], datetime.now())


# ---------------------------
# Context-checked variants used by the UI
# ---------------------------


async def _ensure_item_is_mine(ctx: RequestContext, cart_item_id: int) -> None:
    customer_id = require_customer(ctx)
    async with connect() as conn:
        item = await crud.get_cart_item(conn, cart_item_id)
        if item is None:
            raise NotFoundError("Cart item", cart_item_id)
        row = await crud.get_cart_row(conn, customer_id)
    if not row or row["cart_id"] != item.cart_id:
        raise PermissionDeniedError("This item is not in your cart.")


async def update_my_cart_item(ctx: RequestContext, cart_item_id: int, quantity: int) -> None:
    await _ensure_item_is_mine(ctx, cart_item_id)
    await update_cart_item_quantity(cart_item_id, quantity)


async def remove_my_cart_item(ctx: RequestContext, cart_item_id: int) -> None:
    await _ensure_item_is_mine(ctx, cart_item_id)
    await remove_cart_item(cart_item_id)

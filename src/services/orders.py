"""Order engine: cart-to-order checkout and the order status lifecycle.

Lifecycle::

    PENDING_PAYMENT -> PAID -> PROCESSING -> SHIPPED -> DELIVERED
    PENDING_PAYMENT | PAID | PROCESSING -> CANCELLED

``cancel_order`` enforces the cancellation guard. ``update_order_status``
writes whatever known status it is given; jumps outside the table above are
logged as warnings but still applied.
"""

from __future__ import annotations

import random
from datetime import datetime
from typing import List, Optional, Union

from db import crud, models
from db.database import connect, transaction
from db.models import Order, OrderItem, OrderStatus
from services.context import (
    RequestContext,
    ensure_owns_order,
    require_admin,
    require_customer,
)
from services.errors import (
    EmptyCartError,
    IllegalTransitionError,
    InvalidStatusError,
    NotFoundError,
)
from utils.logger import get_logger

_logger = get_logger(__name__)


def generate_order_number(when: datetime) -> str:
    """Human-facing order number, e.g. ORD202511021530451234."""
    return f"ORD{when:%Y%m%d%H%M%S}{random.randint(1000, 9999)}"


async def _unique_order_number(conn, when: datetime) -> str:
    while True:
        order_number = generate_order_number(when)
        if not await crud.order_number_exists(conn, order_number):
            return order_number


def parse_status(status: Union[OrderStatus, str]) -> OrderStatus:
    if isinstance(status, OrderStatus):
        return status
    parsed = OrderStatus.parse(status)
    if parsed is None:
        raise InvalidStatusError(status)
    return parsed


async def _load_order(conn, order_id: int) -> Order:
    order = await crud.get_order(conn, order_id)
    if order is None:
        raise NotFoundError("Order", order_id)
    return order


# ---------------------------
# Checkout
# ---------------------------


async def create_order_from_cart(
    customer_id: int,
    recipient_name: str,
    recipient_phone: str,
    shipping_address: str,
    note: Optional[str] = None,
) -> Order:
    """
    Turn the customer's cart into a new order and empty the cart.

    Each order item snapshots the product's current name and the unit price
    the cart captured. The order, its items and the cart clear are one
    transaction: on any failure nothing is written and the cart is untouched.
    """
    now = datetime.now()
    async with transaction() as conn:
        if await crud.get_customer(conn, customer_id) is None:
            raise NotFoundError("Customer", customer_id)

        cart = await crud.get_cart(conn, customer_id)
        if cart is None or cart.is_empty:
            raise EmptyCartError(customer_id)

        items = [
            OrderItem(
                order_item_id=None,
                order_id=None,
                prod_num=cart_item.prod_num,
                product_name=cart_item.product_name,
                quantity=cart_item.quantity,
                unit_price=cart_item.unit_price,
            )
            for cart_item in cart.items
        ]
        total_amount = models.compute_total(items)
        order_number = await _unique_order_number(conn, now)

        order_id = await crud.insert_order(
            conn,
            order_number=order_number,
            cust_num=customer_id,
            total_amount=total_amount,
            status=OrderStatus.PENDING_PAYMENT,
            recipient_name=recipient_name,
            recipient_phone=recipient_phone,
            shipping_address=shipping_address,
            note=note,
            when=now,
        )
        for item in items:
            await crud.insert_order_item(conn, order_id, item)

        await crud.clear_cart_items(conn, cart.cart_id)
        await crud.touch_cart(conn, cart.cart_id, now)

        order = await crud.get_order(conn, order_id)

    _logger.info(
        f"Order {order.order_number} placed by customer {customer_id}: "
        f"{order.item_count} item(s), total {order.total_amount}."
    )
    return order


# ---------------------------
# Status changes
# ---------------------------


async def update_order_status(order_id: int, new_status_name: str) -> None:
    """
    Overwrite the order's status with any known status.

    Raises InvalidStatusError if the name is not an OrderStatus member; the
    order is not modified in that case.
    """
    async with transaction() as conn:
        order = await _load_order(conn, order_id)
        new_status = parse_status(new_status_name)

        if new_status != order.status and not order.status.can_advance_to(new_status):
            _logger.warning(
                f"Order {order.order_number}: {order.status.name} -> {new_status.name} "
                "is outside the normal lifecycle."
            )
        await crud.set_order_status(conn, order_id, new_status, datetime.now())

    _logger.info(
        f"Order {order.order_number} status {order.status.name} -> {new_status.name}."
    )


async def cancel_order(order_id: int) -> None:
    """Cancel an order that has not shipped yet."""
    async with transaction() as conn:
        order = await _load_order(conn, order_id)
        if order.status in (OrderStatus.SHIPPED, OrderStatus.DELIVERED):
            raise IllegalTransitionError(
                "Order has already shipped or been delivered and cannot be cancelled.",
                current=order.status,
                requested=OrderStatus.CANCELLED,
            )
        if order.status == OrderStatus.CANCELLED:
            raise IllegalTransitionError(
                "Order is already cancelled.",
                current=order.status,
                requested=OrderStatus.CANCELLED,
            )
        await crud.set_order_status(conn, order_id, OrderStatus.CANCELLED, datetime.now())

    _logger.info(f"Order {order.order_number} cancelled (was {order.status.name}).")


# ---------------------------
# Queries
# ---------------------------


async def get_order(order_id: int) -> Order:
    async with connect() as conn:
        return await _load_order(conn, order_id)


async def get_order_by_number(order_number: str) -> Order:
    async with connect() as conn:
        order = await crud.get_order_by_number(conn, order_number)
    if order is None:
        raise NotFoundError("Order", order_number)
    return order


async def list_orders() -> List[Order]:
    """All orders, newest first."""
    async with connect() as conn:
        return await crud.list_orders(conn)


async def list_recent_orders(limit: int = 5) -> List[Order]:
    async with connect() as conn:
        return await crud.list_orders(conn, limit=limit)


async def list_orders_for_customer(customer_id: int) -> List[Order]:
    """The customer's orders, newest first."""
    async with connect() as conn:
        if await crud.get_customer(conn, customer_id) is None:
            raise NotFoundError("Customer", customer_id)
        return await crud.list_orders_for_customer(conn, customer_id)


async def list_orders_by_status(status: Union[OrderStatus, str]) -> List[Order]:
    status = parse_status(status)
    async with connect() as conn:
        return await crud.list_orders_by_status(conn, status)


async def count_orders() -> int:
    async with connect() as conn:
        return await crud.count_orders(conn)


# ---------------------------
# Context-checked entry points
# ---------------------------


async def place_order(
    ctx: RequestContext,
    recipient_name: str,
    recipient_phone: str,
    shipping_address: str,
    note: Optional[str] = None,
) -> Order:
    customer_id = require_customer(ctx)
    return await create_order_from_cart(
        customer_id, recipient_name, recipient_phone, shipping_address, note
    )


async def list_my_orders(ctx: RequestContext) -> List[Order]:
    return await list_orders_for_customer(require_customer(ctx))


async def get_my_order(ctx: RequestContext, order_id: int) -> Order:
    order = await get_order(order_id)
    ensure_owns_order(ctx, order)
    return order


async def cancel_my_order(ctx: RequestContext, order_id: int) -> None:
    await get_my_order(ctx, order_id)
    await cancel_order(order_id)


async def change_order_status(ctx: RequestContext, order_id: int, new_status_name: str) -> None:
    require_admin(ctx)
    await update_order_status(order_id, new_status_name)


async def cancel_order_as_admin(ctx: RequestContext, order_id: int) -> None:
    require_admin(ctx)
    await cancel_order(order_id)

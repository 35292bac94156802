# provide dataclass models

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Iterable, Optional, Tuple

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce a price-like value to a Decimal at currency precision."""
    if isinstance(value, float):
        value = repr(value)
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


class Role(Enum):
    ADMIN = "admin"
    CUSTOMER = "customer"
    NONE = "none"


class OrderStatus(Enum):
    PENDING_PAYMENT = "Pending Payment"
    PAID = "Paid"
    PROCESSING = "Processing"
    SHIPPED = "Shipped"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"

    @property
    def display_name(self) -> str:
        return self.value

    @property
    def is_terminal(self) -> bool:
        return not FORWARD_TRANSITIONS[self]

    @property
    def is_cancellable(self) -> bool:
        return OrderStatus.CANCELLED in FORWARD_TRANSITIONS[self]

    def can_advance_to(self, other: OrderStatus) -> bool:
        return other in FORWARD_TRANSITIONS[self]

    @classmethod
    def parse(cls, name: str) -> Optional[OrderStatus]:
        """Look a status up by its member name, e.g. "PAID". None if unknown."""
        return cls.__members__.get(name) if isinstance(name, str) else None


# the lifecycle an order is expected to follow; DELIVERED and CANCELLED are terminal
FORWARD_TRANSITIONS = {
    OrderStatus.PENDING_PAYMENT: {OrderStatus.PAID, OrderStatus.CANCELLED},
    OrderStatus.PAID: {OrderStatus.PROCESSING, OrderStatus.CANCELLED},
    OrderStatus.PROCESSING: {OrderStatus.SHIPPED, OrderStatus.CANCELLED},
    OrderStatus.SHIPPED: {OrderStatus.DELIVERED},
    OrderStatus.DELIVERED: set(),
    OrderStatus.CANCELLED: set(),
}


@dataclass(frozen=True)
class AdminUser:
    id: int
    username: str
    password: str
    name: str
    email: str
    role: Role = Role.ADMIN


@dataclass(frozen=True)
class Customer:
    cust_num: int
    username: str
    password: str
    name: str
    email: str
    phone: Optional[str]
    address: Optional[str]


@dataclass(frozen=True)
class Product:
    prod_num: int
    name: str
    prod_type: Optional[str]
    price: Decimal
    description: Optional[str]
    image_ref: Optional[str]


@dataclass(frozen=True)
class CartItem:
    cart_item_id: int
    cart_id: int
    prod_num: int
    product_name: str  # live catalog name, for display only
    quantity: int
    unit_price: Decimal  # price when the product was first added

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class Cart:
    cart_id: int
    cust_num: int
    created_date: datetime
    updated_date: datetime
    items: Tuple[CartItem, ...] = ()

    @property
    def total_amount(self) -> Decimal:
        return sum((item.subtotal for item in self.items), Decimal("0.00"))

    @property
    def total_quantity(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items


@dataclass(frozen=True)
class OrderItem:
    order_item_id: Optional[int]
    order_id: Optional[int]
    prod_num: int
    product_name: str  # snapshot at order time
    quantity: int
    unit_price: Decimal  # snapshot at order time

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


def compute_total(items: Iterable[OrderItem]) -> Decimal:
    return sum((item.subtotal for item in items), Decimal("0.00")).quantize(CENT)


@dataclass(frozen=True)
class Order:
    order_id: int
    order_number: str
    cust_num: int
    total_amount: Decimal
    status: OrderStatus
    recipient_name: str
    recipient_phone: str
    shipping_address: str
    note: Optional[str]
    created_date: datetime
    updated_date: datetime
    items: Tuple[OrderItem, ...] = ()

    @property
    def item_count(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class DashboardSummary:
    total_orders: int
    total_products: int
    total_customers: int
    recent_orders: Tuple[Order, ...]

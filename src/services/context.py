from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from db.models import Order, Role
from services.errors import PermissionDeniedError


@dataclass(frozen=True)
class RequestContext:
    """
    Identity of whoever is calling into the services.

    Fields:
      - customer_id: customers.cust_num when role is CUSTOMER, else None
      - role: ADMIN | CUSTOMER | NONE
      - user_id: users.id when role is ADMIN, else None
    """

    customer_id: Optional[int] = None
    role: Role = Role.NONE
    user_id: Optional[int] = None

    @classmethod
    def for_customer(cls, customer_id: int) -> RequestContext:
        return cls(customer_id=customer_id, role=Role.CUSTOMER)

    @classmethod
    def for_admin(cls, user_id: int) -> RequestContext:
        return cls(role=Role.ADMIN, user_id=user_id)

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def is_customer(self) -> bool:
        return self.role == Role.CUSTOMER and self.customer_id is not None


ANONYMOUS = RequestContext()


def require_customer(ctx: RequestContext) -> int:
    """Return the context's customer id, or raise if no customer is logged in."""
    if not ctx.is_customer:
        raise PermissionDeniedError("Please log in as a customer first.")
    return ctx.customer_id


def require_admin(ctx: RequestContext) -> None:
    if not ctx.is_admin:
        raise PermissionDeniedError("Administrator access required.")


def ensure_owns_order(ctx: RequestContext, order: Order) -> None:
    customer_id = require_customer(ctx)
    if order.cust_num != customer_id:
        raise PermissionDeniedError("This order belongs to another customer.")

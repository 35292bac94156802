from __future__ import annotations

import re
from typing import Dict, List, Optional

from db import crud, models
from db.database import connect, transaction
from services.context import RequestContext, require_admin
from services.errors import (
    DuplicateIdentityError,
    InUseError,
    NotFoundError,
    ValidationFailure,
)
from utils.logger import get_logger

_logger = get_logger(__name__)

USERNAME_RE = re.compile(r"^[A-Za-z0-9_]{4,20}$")
EMAIL_RE = re.compile(r"^[\w.+-]+@[A-Za-z0-9-]+(\.[A-Za-z0-9-]+)+$")
PHONE_RE = re.compile(r"^\d{10}$")
MIN_PASSWORD_LENGTH = 6


def _add(errors: Dict[str, List[str]], field: str, message: str) -> None:
    errors.setdefault(field, []).append(message)


def validate_profile(
    name: str, email: str, phone: Optional[str], errors: Dict[str, List[str]]
) -> None:
    """Collect profile field errors into ``errors``."""
    if not name or not name.strip():
        _add(errors, "name", "Name is required.")
    if not email or not EMAIL_RE.match(email):
        _add(errors, "email", "Enter a valid email address.")
    if not phone or not PHONE_RE.match(phone):
        _add(errors, "phone", "Phone number must be exactly 10 digits.")


def validate_registration(
    username: str, password: str, name: str, email: str, phone: Optional[str]
) -> Dict[str, List[str]]:
    errors: Dict[str, List[str]] = {}
    if not username or not USERNAME_RE.match(username):
        _add(
            errors,
            "username",
            "Username must be 4-20 letters, digits or underscores.",
        )
    if not password or len(password) < MIN_PASSWORD_LENGTH:
        _add(
            errors,
            "password",
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters.",
        )
    validate_profile(name, email, phone, errors)
    return errors


async def get_customer(cust_num: int) -> models.Customer:
    async with connect() as conn:
        customer = await crud.get_customer(conn, cust_num)
    if customer is None:
        raise NotFoundError("Customer", cust_num)
    return customer


async def list_customers() -> List[models.Customer]:
    async with connect() as conn:
        return await crud.list_customers(conn)


async def find_customers_by_name(name: str) -> List[models.Customer]:
    async with connect() as conn:
        return await crud.find_customers_by_name(conn, name)


async def find_customer_by_email(email: str) -> Optional[models.Customer]:
    async with connect() as conn:
        return await crud.get_customer_by_email(conn, email)


async def count_customers() -> int:
    async with connect() as conn:
        return await crud.count_customers(conn)


async def update_customer(
    cust_num: int,
    name: str,
    email: str,
    phone: Optional[str],
    address: Optional[str],
) -> models.Customer:
    """Overwrite the profile fields; username and password are left alone."""
    email = (email or "").strip()
    phone = (phone or "").strip()
    errors: Dict[str, List[str]] = {}
    validate_profile(name, email, phone, errors)
    if errors:
        raise ValidationFailure(errors)

    async with transaction() as conn:
        if await crud.get_customer(conn, cust_num) is None:
            raise NotFoundError("Customer", cust_num)
        if await crud.email_taken(conn, email, exclude_cust_num=cust_num):
            raise DuplicateIdentityError("email", email)
        await crud.update_customer(conn, cust_num, name.strip(), email, phone, address)
        customer = await crud.get_customer(conn, cust_num)

    _logger.info(f"Customer {cust_num} profile updated.")
    return customer


async def delete_customer(cust_num: int) -> None:
    """Delete a customer and their cart. Customers with orders are kept."""
    async with transaction() as conn:
        if await crud.get_customer(conn, cust_num) is None:
            raise NotFoundError("Customer", cust_num)
        if await crud.customer_has_orders(conn, cust_num):
            raise InUseError("Customer", cust_num, "the customer has placed orders")
        await crud.delete_cart(conn, cust_num)
        await crud.delete_customer(conn, cust_num)

    _logger.info(f"Customer {cust_num} deleted.")


# ---------------------------
# Admin entry points
# ---------------------------


async def list_customers_as_admin(
    ctx: RequestContext, name: Optional[str] = None
) -> List[models.Customer]:
    """Every customer, or only those whose name matches exactly."""
    require_admin(ctx)
    if name and name.strip():
        return await find_customers_by_name(name.strip())
    return await list_customers()


async def update_customer_as_admin(
    ctx: RequestContext,
    cust_num: int,
    name: str,
    email: str,
    phone: Optional[str],
    address: Optional[str],
) -> models.Customer:
    require_admin(ctx)
    return await update_customer(cust_num, name, email, phone, address)


async def delete_customer_as_admin(ctx: RequestContext, cust_num: int) -> None:
    require_admin(ctx)
    await delete_customer(cust_num)

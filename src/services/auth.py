"""Registration and login.

Passwords are stored and compared as given. Comparison goes through a
``verifier`` callable so a hashed scheme can be dropped in without touching
callers.
"""

from __future__ import annotations

import hmac
from typing import Callable, Optional

from db import crud, models
from db.database import connect, transaction
from services.context import RequestContext
from services.customers import validate_registration
from services.errors import DuplicateIdentityError, ValidationFailure
from utils.logger import get_logger

_logger = get_logger(__name__)

CredentialVerifier = Callable[[str, str], bool]


def verify_credential(raw: str, stored: str) -> bool:
    """Plaintext comparison in constant time."""
    if raw is None or stored is None:
        return False
    return hmac.compare_digest(raw.encode("utf-8"), stored.encode("utf-8"))


async def is_username_taken(username: str) -> bool:
    """True if an admin or a customer already uses the username."""
    async with connect() as conn:
        return await crud.username_taken(conn, username)


async def register_customer(
    username: str,
    password: str,
    name: str,
    email: str,
    phone: str,
    address: Optional[str] = None,
) -> models.Customer:
    """
    Create a new customer account and return it.

    Raises ValidationFailure for malformed fields and DuplicateIdentityError
    when the username or email is taken.
    """
    username = (username or "").strip()
    email = (email or "").strip()
    phone = (phone or "").strip()

    errors = validate_registration(username, password, name, email, phone)
    if errors:
        raise ValidationFailure(errors)

    async with transaction() as conn:
        if await crud.username_taken(conn, username):
            raise DuplicateIdentityError("username", username)
        if await crud.email_taken(conn, email):
            raise DuplicateIdentityError("email", email)
        cust_num = await crud.insert_customer(
            conn, username, password, name.strip(), email, phone, address
        )
        customer = await crud.get_customer(conn, cust_num)

    _logger.info(f"Registered customer '{username}' as #{cust_num}.")
    return customer


async def customer_login(
    username: str, password: str, verifier: CredentialVerifier = verify_credential
) -> Optional[RequestContext]:
    """Return a customer context if the credentials match; otherwise None."""
    async with connect() as conn:
        customer = await crud.get_customer_by_username(conn, username)
    if customer is None or not verifier(password, customer.password):
        _logger.warning(f"Failed customer login for '{username}'.")
        return None
    return RequestContext.for_customer(customer.cust_num)


async def admin_login(
    username: str, password: str, verifier: CredentialVerifier = verify_credential
) -> Optional[RequestContext]:
    """Return an admin context if the credentials match; otherwise None."""
    async with connect() as conn:
        user = await crud.get_admin_by_username(conn, username)
    if user is None or not verifier(password, user.password):
        _logger.warning(f"Failed admin login for '{username}'.")
        return None
    return RequestContext.for_admin(user.id)

"""Domain errors raised by the service layer.

Each class is one error kind a caller can translate into a user-facing
message. All of them abort the enclosing transaction.
"""

from typing import Dict, List, Optional


class ShopError(Exception):
    """Base class for every domain rule violation."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ShopError):
    def __init__(self, entity: str, key):
        super().__init__(f"{entity} not found: {key}")
        self.entity = entity
        self.key = key


class EmptyCartError(ShopError):
    def __init__(self, customer_id: int):
        super().__init__("Cart is empty, cannot place an order.")
        self.customer_id = customer_id


class InvalidQuantityError(ShopError, ValueError):
    def __init__(self, quantity):
        super().__init__(f"Quantity must be greater than 0, got {quantity}.")
        self.quantity = quantity


class InvalidStatusError(ShopError, ValueError):
    def __init__(self, status_name):
        super().__init__(f"Invalid order status: {status_name}")
        self.status_name = status_name


class IllegalTransitionError(ShopError):
    def __init__(self, message: str, current=None, requested=None):
        super().__init__(message)
        self.current = current
        self.requested = requested


class DuplicateIdentityError(ShopError):
    def __init__(self, field: str, value: str):
        super().__init__(f"The {field} '{value}' is already in use.")
        self.field = field
        self.value = value


class ValidationFailure(ShopError, ValueError):
    """Malformed input; ``errors`` maps each field to its messages."""

    def __init__(self, errors: Dict[str, List[str]]):
        self.errors = errors
        summary = "; ".join(
            f"{field}: {', '.join(messages)}" for field, messages in errors.items()
        )
        super().__init__(summary or "Invalid input.")


class PermissionDeniedError(ShopError):
    def __init__(self, message: Optional[str] = None):
        super().__init__(message or "You are not allowed to do that.")


class InUseError(ShopError):
    def __init__(self, entity: str, key, reason: str):
        super().__init__(f"{entity} {key} cannot be deleted: {reason}")
        self.entity = entity
        self.key = key

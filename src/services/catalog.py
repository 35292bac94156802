from __future__ import annotations

import dataclasses
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from db import crud, models
from db.database import connect, transaction
from services.errors import InUseError, NotFoundError, ValidationFailure
from utils.logger import get_logger

_logger = get_logger(__name__)

SORT_KEYS = {
    "price_asc": (lambda p: p.price, False),
    "price_desc": (lambda p: p.price, True),
    "name_asc": (lambda p: p.name, False),
    "name_desc": (lambda p: p.name, True),
}


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def sort_products(products: List[models.Product], sort: Optional[str]) -> List[models.Product]:
    """Sort by one of SORT_KEYS; unknown or empty sort keeps the given order."""
    if not sort or sort not in SORT_KEYS:
        return products
    key, reverse = SORT_KEYS[sort]
    return sorted(products, key=key, reverse=reverse)


def _parse_price(price, errors: Dict[str, List[str]]) -> Optional[Decimal]:
    try:
        value = models.to_money(price)
    except (InvalidOperation, TypeError, ValueError):
        errors.setdefault("price", []).append("Price must be a number.")
        return None
    if not value.is_finite() or value < 0:
        errors.setdefault("price", []).append("Price cannot be negative.")
        return None
    return value


async def get_product(prod_num: int) -> models.Product:
    async with connect() as conn:
        product = await crud.get_product(conn, prod_num)
    if product is None:
        raise NotFoundError("Product", prod_num)
    return product


async def list_products(sort: Optional[str] = None) -> List[models.Product]:
    async with connect() as conn:
        products = await crud.search_products(conn)
    return sort_products(products, sort)


async def search_products(
    keyword: Optional[str] = None,
    prod_type: Optional[str] = None,
    sort: Optional[str] = None,
) -> List[models.Product]:
    """
    Filter the catalog and sort the result.

    - keyword: case-insensitive substring of the product name
    - prod_type: exact product type
    - sort: price_asc | price_desc | name_asc | name_desc
    Blank filters are ignored, so no filters returns the whole catalog.
    """
    async with connect() as conn:
        products = await crud.search_products(
            conn, _blank_to_none(keyword), _blank_to_none(prod_type)
        )
    return sort_products(products, sort)


async def list_product_types() -> List[str]:
    async with connect() as conn:
        return await crud.list_product_types(conn)


async def count_products() -> int:
    async with connect() as conn:
        return await crud.count_products(conn)


async def create_product(
    name: str,
    prod_type: Optional[str],
    price,
    description: Optional[str] = None,
    image_ref: Optional[str] = None,
) -> models.Product:
    errors: Dict[str, List[str]] = {}
    if not name or not name.strip():
        errors["name"] = ["Product name is required."]
    value = _parse_price(price, errors)
    if errors:
        raise ValidationFailure(errors)

    async with transaction() as conn:
        prod_num = await crud.insert_product(
            conn, name.strip(), _blank_to_none(prod_type), value, description, image_ref
        )
        product = await crud.get_product(conn, prod_num)

    _logger.info(f"Product #{prod_num} '{product.name}' created.")
    return product


async def update_product(
    prod_num: int,
    name: Optional[str] = None,
    prod_type: Optional[str] = None,
    price=None,
    description: Optional[str] = None,
    image_ref: Optional[str] = None,
) -> models.Product:
    """
    Update only the provided fields and return the stored product.

    Order items keep their own name and price, so placed orders are unaffected.
    """
    errors: Dict[str, List[str]] = {}
    changes = {}
    if name is not None:
        if not name.strip():
            errors["name"] = ["Product name is required."]
        changes["name"] = name.strip()
    if prod_type is not None:
        changes["prod_type"] = _blank_to_none(prod_type)
    if price is not None:
        changes["price"] = _parse_price(price, errors)
    if description is not None:
        changes["description"] = description
    if image_ref is not None:
        changes["image_ref"] = image_ref
    if errors:
        raise ValidationFailure(errors)

    async with transaction() as conn:
        product = await crud.get_product(conn, prod_num)
        if product is None:
            raise NotFoundError("Product", prod_num)
        product = dataclasses.replace(product, **changes)
        await crud.update_product(conn, product)

    _logger.info(f"Product #{prod_num} updated: {', '.join(changes) or 'no changes'}.")
    return product


async def delete_product(prod_num: int) -> None:
    """Delete a product and drop it from every cart.

    Products referenced by an order item are kept for traceability.
    """
    async with transaction() as conn:
        if await crud.get_product(conn, prod_num) is None:
            raise NotFoundError("Product", prod_num)
        if await crud.product_in_orders(conn, prod_num):
            raise InUseError("Product", prod_num, "it appears in placed orders")
        await crud.delete_product(conn, prod_num)

    _logger.info(f"Product #{prod_num} deleted.")

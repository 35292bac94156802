# src/db/crud.py
# data access for the shop tables; every function runs on a caller-provided
# connection so that services decide the transaction boundary
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Sequence

import aiosqlite

from db import models


def _ts(when: datetime) -> str:
    return when.isoformat()


def _parse_ts(val: str) -> datetime:
    return datetime.fromisoformat(val)


async def _fetchone(conn: aiosqlite.Connection, sql: str, params: Sequence = ()):
    cur = await conn.execute(sql, tuple(params))
    row = await cur.fetchone()
    await cur.close()
    return row


async def _fetchall(conn: aiosqlite.Connection, sql: str, params: Sequence = ()):
    cur = await conn.execute(sql, tuple(params))
    rows = await cur.fetchall()
    await cur.close()
    return rows


async def _count(conn: aiosqlite.Connection, table: str) -> int:
    row = await _fetchone(conn, f"SELECT COUNT(*) FROM {table};")
    return int(row[0])


# ---------------------------
# Admin users
# ---------------------------

_USER_COLS = "id, username, password, name, email, role"


def _row_to_admin(row) -> models.AdminUser:
    return models.AdminUser(
        id=row["id"],
        username=row["username"],
        password=row["password"],
        name=row["name"],
        email=row["email"],
        role=models.Role.ADMIN,
    )


async def get_admin_by_username(
    conn: aiosqlite.Connection, username: str
) -> Optional[models.AdminUser]:
    row = await _fetchone(
        conn, f"SELECT {_USER_COLS} FROM users WHERE username = ?;", (username,)
    )
    return _row_to_admin(row) if row else None


# ---------------------------
# Customers
# ---------------------------

_CUSTOMER_COLS = (
    "cust_num, cust_username, cust_password, cust_name, "
    "cust_email, cust_phone, cust_address"
)


def _row_to_customer(row) -> models.Customer:
    return models.Customer(
        cust_num=row["cust_num"],
        username=row["cust_username"],
        password=row["cust_password"],
        name=row["cust_name"],
        email=row["cust_email"],
        phone=row["cust_phone"],
        address=row["cust_address"],
    )


async def get_customer(
    conn: aiosqlite.Connection, cust_num: int
) -> Optional[models.Customer]:
    row = await _fetchone(
        conn,
        f"SELECT {_CUSTOMER_COLS} FROM customers WHERE cust_num = ?;",
        (cust_num,),
    )
    return _row_to_customer(row) if row else None


async def get_customer_by_username(
    conn: aiosqlite.Connection, username: str
) -> Optional[models.Customer]:
    row = await _fetchone(
        conn,
        f"SELECT {_CUSTOMER_COLS} FROM customers WHERE cust_username = ?;",
        (username,),
    )
    return _row_to_customer(row) if row else None


async def get_customer_by_email(
    conn: aiosqlite.Connection, email: str
) -> Optional[models.Customer]:
    row = await _fetchone(
        conn,
        f"SELECT {_CUSTOMER_COLS} FROM customers WHERE cust_email = ?;",
        (email,),
    )
    return _row_to_customer(row) if row else None


async def list_customers(conn: aiosqlite.Connection) -> List[models.Customer]:
    rows = await _fetchall(
        conn, f"SELECT {_CUSTOMER_COLS} FROM customers ORDER BY cust_num;"
    )
    return [_row_to_customer(row) for row in rows]


async def find_customers_by_name(
    conn: aiosqlite.Connection, name: str
) -> List[models.Customer]:
    rows = await _fetchall(
        conn,
        f"SELECT {_CUSTOMER_COLS} FROM customers WHERE cust_name = ? ORDER BY cust_num;",
        (name,),
    )
    return [_row_to_customer(row) for row in rows]


async def insert_customer(
    conn: aiosqlite.Connection,
    username: str,
    password: str,
    name: str,
    email: str,
    phone: Optional[str],
    address: Optional[str],
) -> int:
    cur = await conn.execute(
        """
        INSERT INTO customers(cust_username, cust_password, cust_name,
                              cust_email, cust_phone, cust_address)
        VALUES (?, ?, ?, ?, ?, ?);
        """,
        (username, password, name, email, phone, address),
    )
    cust_num = cur.lastrowid
    await cur.close()
    return cust_num


async def update_customer(
    conn: aiosqlite.Connection,
    cust_num: int,
    name: str,
    email: str,
    phone: Optional[str],
    address: Optional[str],
) -> bool:
    cur = await conn.execute(
        """
        UPDATE customers
        SET cust_name = ?, cust_email = ?, cust_phone = ?, cust_address = ?
        WHERE cust_num = ?;
        """,
        (name, email, phone, address, cust_num),
    )
    updated = cur.rowcount > 0
    await cur.close()
    return updated


async def delete_customer(conn: aiosqlite.Connection, cust_num: int) -> None:
    await conn.execute("DELETE FROM customers WHERE cust_num = ?;", (cust_num,))


async def count_customers(conn: aiosqlite.Connection) -> int:
    return await _count(conn, "customers")


async def username_taken(conn: aiosqlite.Connection, username: str) -> bool:
    """True if an admin or a customer already uses the username."""
    row = await _fetchone(
        conn,
        """
        SELECT 1 FROM users WHERE username = ?
        UNION ALL
        SELECT 1 FROM customers WHERE cust_username = ?
        LIMIT 1;
        """,
        (username, username),
    )
    return row is not None


async def email_taken(
    conn: aiosqlite.Connection, email: str, exclude_cust_num: Optional[int] = None
) -> bool:
    row = await _fetchone(
        conn,
        "SELECT 1 FROM customers WHERE cust_email = ? AND cust_num IS NOT ? LIMIT 1;",
        (email, exclude_cust_num),
    )
    return row is not None


# ---------------------------
# Products
# ---------------------------

_PRODUCT_COLS = (
    "prod_num, prod_name, prod_type, prod_price, prod_description, prod_image"
)


def _row_to_product(row) -> models.Product:
    return models.Product(
        prod_num=row["prod_num"],
        name=row["prod_name"],
        prod_type=row["prod_type"],
        price=Decimal(row["prod_price"]),
        description=row["prod_description"],
        image_ref=row["prod_image"],
    )


async def get_product(
    conn: aiosqlite.Connection, prod_num: int
) -> Optional[models.Product]:
    row = await _fetchone(
        conn, f"SELECT {_PRODUCT_COLS} FROM products WHERE prod_num = ?;", (prod_num,)
    )
    return _row_to_product(row) if row else None


async def search_products(
    conn: aiosqlite.Connection,
    keyword: Optional[str] = None,
    prod_type: Optional[str] = None,
) -> List[models.Product]:
    """Products whose name contains keyword (case-insensitive) and whose type
    equals prod_type. A None filter is not applied.
    """
    clauses: List[str] = []
    params: List[str] = []
    if keyword is not None:
        clauses.append("LOWER(prod_name) LIKE ?")
        params.append(f"%{keyword.lower()}%")
    if prod_type is not None:
        clauses.append("prod_type = ?")
        params.append(prod_type)
    where_clause = " AND ".join(clauses) if clauses else "1 = 1"
    rows = await _fetchall(
        conn,
        f"""
        SELECT {_PRODUCT_COLS}
        FROM products
        WHERE {where_clause}
        ORDER BY prod_num;
        """,
        params,
    )
    return [_row_to_product(row) for row in rows]


async def list_product_types(conn: aiosqlite.Connection) -> List[str]:
    rows = await _fetchall(
        conn,
        """
        SELECT DISTINCT prod_type
        FROM products
        WHERE prod_type IS NOT NULL AND TRIM(prod_type) <> ''
        ORDER BY prod_type;
        """,
    )
    return [row[0] for row in rows]


async def insert_product(
    conn: aiosqlite.Connection,
    name: str,
    prod_type: Optional[str],
    price: Decimal,
    description: Optional[str],
    image_ref: Optional[str],
) -> int:
    cur = await conn.execute(
        """
        INSERT INTO products(prod_name, prod_type, prod_price, prod_description, prod_image)
        VALUES (?, ?, ?, ?, ?);
        """,
        (name, prod_type, str(price), description, image_ref),
    )
    prod_num = cur.lastrowid
    await cur.close()
    return prod_num


async def update_product(conn: aiosqlite.Connection, product: models.Product) -> bool:
    cur = await conn.execute(
        """
        UPDATE products
        SET prod_name = ?, prod_type = ?, prod_price = ?, prod_description = ?, prod_image = ?
        WHERE prod_num = ?;
        """,
        (
            product.name,
            product.prod_type,
            str(product.price),
            product.description,
            product.image_ref,
            product.prod_num,
        ),
    )
    updated = cur.rowcount > 0
    await cur.close()
    return updated


async def product_in_orders(conn: aiosqlite.Connection, prod_num: int) -> bool:
    row = await _fetchone(
        conn, "SELECT 1 FROM order_items WHERE prod_num = ? LIMIT 1;", (prod_num,)
    )
    return row is not None


async def delete_product(conn: aiosqlite.Connection, prod_num: int) -> None:
    await conn.execute("DELETE FROM cart_items WHERE prod_num = ?;", (prod_num,))
    await conn.execute("DELETE FROM products WHERE prod_num = ?;", (prod_num,))


async def count_products(conn: aiosqlite.Connection) -> int:
    return await _count(conn, "products")


# ---------------------------
# Carts
# ---------------------------


def _row_to_cart_item(row) -> models.CartItem:
    return models.CartItem(
        cart_item_id=row["cart_item_id"],
        cart_id=row["cart_id"],
        prod_num=row["prod_num"],
        product_name=row["prod_name"],
        quantity=row["quantity"],
        unit_price=Decimal(row["unit_price"]),
    )


async def get_cart_row(conn: aiosqlite.Connection, cust_num: int):
    return await _fetchone(
        conn,
        "SELECT cart_id, cust_num, created_date, updated_date FROM carts WHERE cust_num = ?;",
        (cust_num,),
    )


async def list_cart_items(
    conn: aiosqlite.Connection, cart_id: int
) -> List[models.CartItem]:
    rows = await _fetchall(
        conn,
        """
        SELECT ci.cart_item_id, ci.cart_id, ci.prod_num, p.prod_name,
               ci.quantity, ci.unit_price
        FROM cart_items ci
        JOIN products p ON p.prod_num = ci.prod_num
        WHERE ci.cart_id = ?
        ORDER BY ci.cart_item_id;
        """,
        (cart_id,),
    )
    return [_row_to_cart_item(row) for row in rows]


async def get_cart(conn: aiosqlite.Connection, cust_num: int) -> Optional[models.Cart]:
    """Return the customer's cart with its items, or None if none was created."""
    row = await get_cart_row(conn, cust_num)
    if not row:
        return None
    items = await list_cart_items(conn, row["cart_id"])
    return models.Cart(
        cart_id=row["cart_id"],
        cust_num=row["cust_num"],
        created_date=_parse_ts(row["created_date"]),
        updated_date=_parse_ts(row["updated_date"]),
        items=tuple(items),
    )


async def ensure_cart(conn: aiosqlite.Connection, cust_num: int, when: datetime) -> int:
    """Create the customer's cart unless one exists; return its cart_id.

    Relies on the UNIQUE constraint on carts.cust_num, so a second cart can
    never be created for the same customer.
    """
    await conn.execute(
        """
        INSERT OR IGNORE INTO carts(cust_num, created_date, updated_date)
        VALUES (?, ?, ?);
        """,
        (cust_num, _ts(when), _ts(when)),
    )
    row = await get_cart_row(conn, cust_num)
    return row["cart_id"]


async def touch_cart(conn: aiosqlite.Connection, cart_id: int, when: datetime) -> None:
    await conn.execute(
        "UPDATE carts SET updated_date = ? WHERE cart_id = ?;", (_ts(when), cart_id)
    )


async def get_cart_item(
    conn: aiosqlite.Connection, cart_item_id: int
) -> Optional[models.CartItem]:
    row = await _fetchone(
        conn,
        """
        SELECT ci.cart_item_id, ci.cart_id, ci.prod_num, p.prod_name,
               ci.quantity, ci.unit_price
        FROM cart_items ci
        JOIN products p ON p.prod_num = ci.prod_num
        WHERE ci.cart_item_id = ?;
        """,
        (cart_item_id,),
    )
    return _row_to_cart_item(row) if row else None


async def find_cart_item(
    conn: aiosqlite.Connection, cart_id: int, prod_num: int
) -> Optional[models.CartItem]:
    row = await _fetchone(
        conn,
        """
        SELECT ci.cart_item_id, ci.cart_id, ci.prod_num, p.prod_name,
               ci.quantity, ci.unit_price
        FROM cart_items ci
        JOIN products p ON p.prod_num = ci.prod_num
        WHERE ci.cart_id = ? AND ci.prod_num = ?;
        """,
        (cart_id, prod_num),
    )
    return _row_to_cart_item(row) if row else None


async def insert_cart_item(
    conn: aiosqlite.Connection,
    cart_id: int,
    prod_num: int,
    quantity: int,
    unit_price: Decimal,
) -> int:
    cur = await conn.execute(
        """
        INSERT INTO cart_items(cart_id, prod_num, quantity, unit_price)
        VALUES (?, ?, ?, ?);
        """,
        (cart_id, prod_num, quantity, str(unit_price)),
    )
    cart_item_id = cur.lastrowid
    await cur.close()
    return cart_item_id


async def set_cart_item_quantity(
    conn: aiosqlite.Connection, cart_item_id: int, quantity: int
) -> None:
    await conn.execute(
        "UPDATE cart_items SET quantity = ? WHERE cart_item_id = ?;",
        (quantity, cart_item_id),
    )


async def delete_cart_item(conn: aiosqlite.Connection, cart_item_id: int) -> None:
    await conn.execute(
        "DELETE FROM cart_items WHERE cart_item_id = ?;", (cart_item_id,)
    )


async def clear_cart_items(conn: aiosqlite.Connection, cart_id: int) -> None:
    await conn.execute("DELETE FROM cart_items WHERE cart_id = ?;", (cart_id,))


async def delete_cart(conn: aiosqlite.Connection, cust_num: int) -> None:
    row = await get_cart_row(conn, cust_num)
    if not row:
        return
    await clear_cart_items(conn, row["cart_id"])
    await conn.execute("DELETE FROM carts WHERE cart_id = ?;", (row["cart_id"],))


# ---------------------------
# Orders
# ---------------------------

_ORDER_COLS = (
    "order_id, order_number, cust_num, total_amount, order_status, recipient_name, "
    "recipient_phone, shipping_address, order_note, created_date, updated_date"
)


def _row_to_order_item(row) -> models.OrderItem:
    return models.OrderItem(
        order_item_id=row["order_item_id"],
        order_id=row["order_id"],
        prod_num=row["prod_num"],
        product_name=row["product_name"],
        quantity=row["quantity"],
        unit_price=Decimal(row["unit_price"]),
    )


async def list_order_items(
    conn: aiosqlite.Connection, order_id: int
) -> List[models.OrderItem]:
    rows = await _fetchall(
        conn,
        """
        SELECT order_item_id, order_id, prod_num, product_name, quantity, unit_price
        FROM order_items
        WHERE order_id = ?
        ORDER BY order_item_id;
        """,
        (order_id,),
    )
    return [_row_to_order_item(row) for row in rows]


async def _row_to_order(conn: aiosqlite.Connection, row) -> models.Order:
    items = await list_order_items(conn, row["order_id"])
    return models.Order(
        order_id=row["order_id"],
        order_number=row["order_number"],
        cust_num=row["cust_num"],
        total_amount=Decimal(row["total_amount"]),
        status=models.OrderStatus[row["order_status"]],
        recipient_name=row["recipient_name"],
        recipient_phone=row["recipient_phone"],
        shipping_address=row["shipping_address"],
        note=row["order_note"],
        created_date=_parse_ts(row["created_date"]),
        updated_date=_parse_ts(row["updated_date"]),
        items=tuple(items),
    )


async def _orders_where(
    conn: aiosqlite.Connection,
    where_clause: str = "1 = 1",
    params: Sequence = (),
    limit: Optional[int] = None,
) -> List[models.Order]:
    sql = f"""
        SELECT {_ORDER_COLS}
        FROM orders
        WHERE {where_clause}
        ORDER BY created_date DESC, order_id DESC
    """
    params = list(params)
    if limit is not None:
        sql += " LIMIT ?"
        params.append(limit)
    rows = await _fetchall(conn, sql + ";", params)
    return [await _row_to_order(conn, row) for row in rows]


async def get_order(conn: aiosqlite.Connection, order_id: int) -> Optional[models.Order]:
    row = await _fetchone(
        conn, f"SELECT {_ORDER_COLS} FROM orders WHERE order_id = ?;", (order_id,)
    )
    return await _row_to_order(conn, row) if row else None


async def get_order_by_number(
    conn: aiosqlite.Connection, order_number: str
) -> Optional[models.Order]:
    row = await _fetchone(
        conn,
        f"SELECT {_ORDER_COLS} FROM orders WHERE order_number = ?;",
        (order_number,),
    )
    return await _row_to_order(conn, row) if row else None


async def list_orders(
    conn: aiosqlite.Connection, limit: Optional[int] = None
) -> List[models.Order]:
    """All orders, newest first."""
    return await _orders_where(conn, limit=limit)


async def list_orders_for_customer(
    conn: aiosqlite.Connection, cust_num: int
) -> List[models.Order]:
    return await _orders_where(conn, "cust_num = ?", (cust_num,))


async def list_orders_by_status(
    conn: aiosqlite.Connection, status: models.OrderStatus
) -> List[models.Order]:
    return await _orders_where(conn, "order_status = ?", (status.name,))


async def order_number_exists(conn: aiosqlite.Connection, order_number: str) -> bool:
    row = await _fetchone(
        conn, "SELECT 1 FROM orders WHERE order_number = ?;", (order_number,)
    )
    return row is not None


async def customer_has_orders(conn: aiosqlite.Connection, cust_num: int) -> bool:
    row = await _fetchone(
        conn, "SELECT 1 FROM orders WHERE cust_num = ? LIMIT 1;", (cust_num,)
    )
    return row is not None


async def insert_order(
    conn: aiosqlite.Connection,
    order_number: str,
    cust_num: int,
    total_amount: Decimal,
    status: models.OrderStatus,
    recipient_name: str,
    recipient_phone: str,
    shipping_address: str,
    note: Optional[str],
    when: datetime,
) -> int:
    cur = await conn.execute(
        """
        INSERT INTO orders(order_number, cust_num, total_amount, order_status,
                           recipient_name, recipient_phone, shipping_address,
                           order_note, created_date, updated_date)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
        """,
        (
            order_number,
            cust_num,
            str(total_amount),
            status.name,
            recipient_name,
            recipient_phone,
            shipping_address,
            note,
            _ts(when),
            _ts(when),
        ),
    )
    order_id = cur.lastrowid
    await cur.close()
    return order_id


async def insert_order_item(
    conn: aiosqlite.Connection, order_id: int, item: models.OrderItem
) -> int:
    cur = await conn.execute(
        """
        INSERT INTO order_items(order_id, prod_num, product_name, quantity, unit_price)
        VALUES (?, ?, ?, ?, ?);
        """,
        (order_id, item.prod_num, item.product_name, item.quantity, str(item.unit_price)),
    )
    order_item_id = cur.lastrowid
    await cur.close()
    return order_item_id


async def set_order_status(
    conn: aiosqlite.Connection,
    order_id: int,
    status: models.OrderStatus,
    when: datetime,
) -> None:
    await conn.execute(
        "UPDATE orders SET order_status = ?, updated_date = ? WHERE order_id = ?;",
        (status.name, _ts(when), order_id),
    )


async def count_orders(conn: aiosqlite.Connection) -> int:
    return await _count(conn, "orders")

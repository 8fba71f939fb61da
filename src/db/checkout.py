# turns a user's cart into an order
from __future__ import annotations

from datetime import datetime
from typing import Optional

import aiosqlite

from db import models
from db.cart_repository import CartRepository
from db.order_repository import OrderRepository


async def find_discount(
    conn: aiosqlite.Connection, discount_code: str
) -> models.Discount:
    cur = await conn.execute(
        "SELECT discount_id, discount_code, discount_value FROM discount WHERE discount_code = ?;",
        (discount_code.strip().upper(),),
    )
    row = await cur.fetchone()
    await cur.close()
    if not row:
        raise LookupError(f"Discount code {discount_code} not found")
    return models.Discount(
        discount_id=row["discount_id"],
        discount_code=row["discount_code"],
        discount_value=float(row["discount_value"]),
    )


def order_total(
    lines: list[models.CartProduct], discount: Optional[models.Discount] = None
) -> float:
    subtotal = sum(line.product.price * line.quantity for line in lines)
    if discount:
        subtotal *= 1 - discount.discount_value / 100
    return round(subtotal, 2)


async def place_order(
    conn: aiosqlite.Connection,
    user_id: str,
    full_name: str,
    phone: str,
    email: Optional[str],
    address: str,
    note: str = "",
    discount_code: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> models.Order:
    """
    Create a Pending order from everything in the user's cart and empty the cart.

    Stock was already taken when the items went into the cart, so clearing it
    here does not give anything back. Order, detail rows and the cleared cart
    are committed together.
    """
    carts = CartRepository(conn)
    orders = OrderRepository(conn)

    lines = await carts.get_cart_product(user_id)
    if not lines:
        raise ValueError("Cart is empty.")

    discount = await find_discount(conn, discount_code) if discount_code else None

    order = models.Order(
        order_id="",
        user_id=user_id,
        full_name=full_name,
        phone=phone,
        email=email or None,
        address=address,
        note=note or None,
        total_price=order_total(lines, discount),
        state="Pending",
        discount_id=discount.discount_id if discount else None,
        created_at=created_at or datetime.now(),
    )
    details = [
        models.OrderDetail(
            order_id="",
            product_id=line.product.product_id,
            quantity=line.quantity,
            price=line.product.price,
        )
        for line in lines
    ]
    order = await orders.create(order, details, commit=False)
    await carts.clear(user_id)
    await orders.save()
    return order

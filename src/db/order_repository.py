# src/db/order_repository.py
from __future__ import annotations

import random
from dataclasses import replace
from datetime import datetime
from typing import Iterable, List, Optional

import aiosqlite

from db import models
from utils.logger import get_logger

_logger = get_logger(__name__)

ORDER_SELECT = """
    SELECT order_id, user_id, full_name, phone, email, address, note,
           total_price, state, discount_id, created_at
    FROM orders
"""


def _to_datetime(val) -> datetime:
    if isinstance(val, datetime):
        return val
    return datetime.fromisoformat(val)


def _row_to_order(row) -> models.Order:
    return models.Order(
        order_id=row["order_id"],
        user_id=row["user_id"],
        full_name=row["full_name"],
        phone=row["phone"],
        email=row["email"],
        address=row["address"],
        note=row["note"],
        total_price=float(row["total_price"]),
        state=row["state"],
        discount_id=row["discount_id"],
        created_at=_to_datetime(row["created_at"]),
    )


class OrderRepository:
    """Orders and their detail rows. Every list comes back newest first."""

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn

    async def _generate_order_id(self) -> str:
        """Pick an OD###### id that isn't already in use."""
        while True:
            order_id = f"OD{random.randint(100000, 999999)}"
            cur = await self._conn.execute(
                "SELECT 1 FROM orders WHERE order_id = ?;", (order_id,)
            )
            exists = await cur.fetchone()
            await cur.close()
            if not exists:
                return order_id

    async def create(
        self,
        order: models.Order,
        details: Iterable[models.OrderDetail] = (),
        commit: bool = True,
    ) -> models.Order:
        """
        Insert the order and its detail rows. An empty order_id is replaced by
        a generated one, and the returned Order carries it. Details are
        written under the returned order's id whatever their own order_id is.
        """
        if not order.order_id:
            order = replace(order, order_id=await self._generate_order_id())

        await self._conn.execute(
            """
            INSERT INTO orders(order_id, user_id, full_name, phone, email, address,
                               note, total_price, state, discount_id, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
            """,
            (
                order.order_id,
                order.user_id,
                order.full_name,
                order.phone,
                order.email,
                order.address,
                order.note,
                order.total_price,
                order.state,
                order.discount_id,
                order.created_at.isoformat(sep=" ", timespec="seconds"),
            ),
        )
        await self._conn.executemany(
            "INSERT INTO order_detail(order_id, product_id, quantity, price) VALUES (?, ?, ?, ?);",
            [(order.order_id, d.product_id, d.quantity, d.price) for d in details],
        )
        if commit:
            await self.save()
        _logger.info(f"Order {order.order_id} created for user {order.user_id}")
        return order

    async def update_state(self, order_id: str, state: str) -> models.Order:
        if state not in models.ORDER_STATES:
            raise ValueError(f"Unknown order state: {state}")
        cur = await self._conn.execute(
            "UPDATE orders SET state = ? WHERE order_id = ?;", (state, order_id)
        )
        updated = cur.rowcount
        await cur.close()
        if not updated:
            raise LookupError(f"Order {order_id} not found")
        await self.save()
        _logger.info(f"Order {order_id} -> {state}")
        return await self.find_by_id(order_id)

    async def get_all(self) -> List[models.OrderTableRow]:
        """All orders, trimmed to what an order table shows."""
        cur = await self._conn.execute(
            """
            SELECT order_id, full_name, phone, created_at, total_price, state
            FROM orders
            ORDER BY created_at DESC, order_id;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
        return [
            models.OrderTableRow(
                order_id=row["order_id"],
                full_name=row["full_name"],
                phone=row["phone"],
                created_at=_to_datetime(row["created_at"]),
                total_price=float(row["total_price"]),
                state=row["state"],
            )
            for row in rows
        ]

    async def get_all_with_discount_order_by_descending(
        self,
    ) -> List[models.OrderWithDiscount]:
        """All orders with the discount they used, if any."""
        cur = await self._conn.execute(
            """
            SELECT o.order_id, o.user_id, o.full_name, o.created_at, o.total_price,
                   o.state, d.discount_code, d.discount_value
            FROM orders o
                     LEFT JOIN discount d ON d.discount_id = o.discount_id
            ORDER BY o.created_at DESC, o.order_id;
            """
        )
        rows = await cur.fetchall()
        await cur.close()
        return [
            models.OrderWithDiscount(
                order_id=row["order_id"],
                user_id=row["user_id"],
                full_name=row["full_name"],
                created_at=_to_datetime(row["created_at"]),
                total_price=float(row["total_price"]),
                state=row["state"],
                discount_code=row["discount_code"],
                discount_value=(
                    float(row["discount_value"])
                    if row["discount_value"] is not None
                    else None
                ),
            )
            for row in rows
        ]

    async def find_by_id(self, order_id: str) -> Optional[models.Order]:
        cur = await self._conn.execute(
            ORDER_SELECT + " WHERE order_id = ?;", (order_id,)
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            return None
        return _row_to_order(row)

    async def get_all_by_id_order_by_descending(
        self, order_id: str
    ) -> List[models.OrderLineRow]:
        """Detail lines of one order with product names."""
        cur = await self._conn.execute(
            """
            SELECT o.order_id, o.created_at, o.state,
                   od.product_id, p.name_pr, od.quantity, od.price
            FROM orders o
                     JOIN order_detail od ON od.order_id = o.order_id
                     JOIN product p ON p.product_id = od.product_id
            WHERE o.order_id = ?
            ORDER BY o.created_at DESC, od.product_id;
            """,
            (order_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
        return [
            models.OrderLineRow(
                order_id=row["order_id"],
                created_at=_to_datetime(row["created_at"]),
                state=row["state"],
                product_id=row["product_id"],
                name_pr=row["name_pr"],
                quantity=int(row["quantity"]),
                price=float(row["price"]),
            )
            for row in rows
        ]

    async def get_by_user_id(self, user_id: str) -> List[models.UserOrderRow]:
        """A user's orders with how many units each contains."""
        cur = await self._conn.execute(
            """
            SELECT o.order_id, o.created_at, o.state, o.total_price,
                   COALESCE(SUM(od.quantity), 0) AS item_count
            FROM orders o
                     LEFT JOIN order_detail od ON od.order_id = o.order_id
            WHERE o.user_id = ?
            GROUP BY o.order_id
            ORDER BY o.created_at DESC, o.order_id;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()
        return [
            models.UserOrderRow(
                order_id=row["order_id"],
                created_at=_to_datetime(row["created_at"]),
                state=row["state"],
                total_price=float(row["total_price"]),
                item_count=int(row["item_count"]),
            )
            for row in rows
        ]

    async def save(self) -> None:
        await self._conn.commit()

# src/db/cart_repository.py
from __future__ import annotations

from typing import Dict, List, Optional, Tuple

import aiosqlite

from db import models
from utils.logger import get_logger

_logger = get_logger(__name__)

CART_COLUMNS = ("user_id", "product_id", "quantity")


def _row_to_product(row) -> models.Product:
    return models.Product(
        product_id=row["product_id"],
        name_pr=row["name_pr"],
        name_serial=row["name_serial"],
        detail=row["detail"],
        price=float(row["price"]),
        quantity_pr=int(row["quantity_pr"]),
        guarantee_period=int(row["guarantee_period"]),
        supplier_id=row["supplier_id"],
    )


class CartRepository:
    """
    Cart rows of every user, plus the stock bookkeeping that goes with them.

    Adding to a cart reserves stock: the product's quantity_pr drops by the
    cart quantity, and is given back when the row is deleted. Each step is a
    plain read-then-write inside the connection's transaction, so two writers
    touching the same product can still overwrite each other's stock value.
    """

    def __init__(self, conn: aiosqlite.Connection):
        self._conn = conn
        self._tracked: Dict[Tuple[str, str], models.Cart] = {}

    # ---------------------------
    # Reads
    # ---------------------------

    async def get_cart(
        self, filter: Optional[Dict[str, object]] = None, tracked: bool = True
    ) -> List[models.Cart]:
        """Return cart rows matching every column=value pair in filter.

        tracked rows are kept in an identity map: loading the same
        (user_id, product_id) twice hands back the same object, refreshed.
        Untracked rows are detached copies.
        """
        filter = filter or {}
        unknown = set(filter) - set(CART_COLUMNS)
        if unknown:
            raise ValueError(f"Unknown cart column(s): {', '.join(sorted(unknown))}")

        where_clause = " AND ".join(f"{col} = ?" for col in filter) or "1 = 1"
        cur = await self._conn.execute(
            f"""
            SELECT user_id, product_id, quantity
            FROM cart
            WHERE {where_clause}
            ORDER BY user_id, product_id;
            """,
            tuple(filter.values()),
        )
        rows = await cur.fetchall()
        await cur.close()

        if not tracked:
            return [
                models.Cart(
                    user_id=row["user_id"],
                    product_id=row["product_id"],
                    quantity=int(row["quantity"]),
                )
                for row in rows
            ]
        return [self._attach(row) for row in rows]

    async def get_cart_product(self, user_id: str) -> List[models.CartProduct]:
        """
        One entry per cart row of the user: the product, the cart quantity and
        a single category, supplier and image. Lowest id wins when a product
        has several; None when it has none.
        """
        cur = await self._conn.execute(
            """
            SELECT c.quantity,
                   p.product_id, p.name_pr, p.name_serial, p.detail, p.price,
                   p.quantity_pr, p.guarantee_period, p.supplier_id,
                   cat.category_id, cat.category_name,
                   s.supplier_id AS sup_id, s.supplier_name,
                   i.image_id, i.image_href
            FROM cart c
                     JOIN product p ON p.product_id = c.product_id
                     LEFT JOIN category cat ON cat.category_id = (SELECT MIN(pc.category_id)
                                                                  FROM product_category pc
                                                                  WHERE pc.product_id = p.product_id)
                     LEFT JOIN supplier s ON s.supplier_id = p.supplier_id
                     LEFT JOIN image i ON i.image_id = (SELECT MIN(im.image_id)
                                                        FROM image im
                                                        WHERE im.product_id = p.product_id)
            WHERE c.user_id = ?
            ORDER BY p.product_id;
            """,
            (user_id,),
        )
        rows = await cur.fetchall()
        await cur.close()

        result = []
        for row in rows:
            product = _row_to_product(row)
            category = (
                models.Category(row["category_id"], row["category_name"])
                if row["category_id"] is not None
                else None
            )
            supplier = (
                models.Supplier(row["sup_id"], row["supplier_name"])
                if row["sup_id"] is not None
                else None
            )
            image = (
                models.Image(row["image_id"], product.product_id, row["image_href"])
                if row["image_id"] is not None
                else None
            )
            result.append(
                models.CartProduct(
                    product=product,
                    quantity=int(row["quantity"]),
                    category=category,
                    supplier=supplier,
                    image=image,
                )
            )
        return result

    # ---------------------------
    # Writes
    # ---------------------------

    async def create(self, entity: models.Cart) -> models.Cart:
        """
        Insert a cart row and take its quantity out of the product's stock.
        Stock is not checked first and may end up negative.
        """
        product = await self._find_product(entity.product_id)
        await self._conn.execute(
            "INSERT INTO cart(user_id, product_id, quantity) VALUES (?, ?, ?);",
            (entity.user_id, entity.product_id, entity.quantity),
        )
        await self._set_stock(product, product.quantity_pr - entity.quantity)
        await self.save()

        self._tracked[(entity.user_id, entity.product_id)] = entity
        return entity

    async def update(self, entity: models.Cart) -> Optional[models.Cart]:
        """
        Set the cart row to entity.quantity and move the difference in or out
        of stock. Raises ValueError, writing nothing, if stock would go below 0.

        A quantity of 0 deletes the row and returns None. That branch does not
        give the old quantity back to stock, unlike delete().
        """
        key = (entity.user_id, entity.product_id)
        if entity.quantity == 0:
            cur = await self._conn.execute(
                "DELETE FROM cart WHERE user_id = ? AND product_id = ?;", key
            )
            removed = cur.rowcount
            await cur.close()
            if not removed:
                raise LookupError(
                    f"No cart row for user {entity.user_id}, product {entity.product_id}"
                )
            await self.save()
            self._tracked.pop(key, None)
            _logger.debug(f"Cart row {key} removed by zero-quantity update")
            return None

        rows = await self.get_cart(
            {"user_id": entity.user_id, "product_id": entity.product_id}
        )
        if not rows:
            raise LookupError(
                f"No cart row for user {entity.user_id}, product {entity.product_id}"
            )
        cart = rows[0]

        product = await self._find_product(entity.product_id)
        new_stock = product.quantity_pr + cart.quantity - entity.quantity
        if new_stock < 0:
            _logger.warning(
                f"Rejected cart update {key}: {entity.quantity} requested, "
                f"{product.quantity_pr + cart.quantity} available"
            )
            raise ValueError("Quantity cannot be negative")

        await self._conn.execute(
            "UPDATE cart SET quantity = ? WHERE user_id = ? AND product_id = ?;",
            (entity.quantity, entity.user_id, entity.product_id),
        )
        await self._set_stock(product, new_stock)
        await self.save()

        cart.quantity = entity.quantity
        return cart

    async def delete(self, entity: models.Cart) -> None:
        """Give entity.quantity back to the product's stock and remove the row."""
        key = (entity.user_id, entity.product_id)
        cur = await self._conn.execute(
            "SELECT 1 FROM cart WHERE user_id = ? AND product_id = ?;", key
        )
        exists = await cur.fetchone()
        await cur.close()
        if not exists:
            raise LookupError(
                f"No cart row for user {entity.user_id}, product {entity.product_id}"
            )

        product = await self._find_product(entity.product_id)
        await self._set_stock(product, product.quantity_pr + entity.quantity)
        await self._conn.execute(
            "DELETE FROM cart WHERE user_id = ? AND product_id = ?;", key
        )
        await self.save()
        self._tracked.pop(key, None)

    async def clear(self, user_id: str) -> int:
        """Drop every cart row of a user, leaving stock as is. Not saved here."""
        cur = await self._conn.execute(
            "DELETE FROM cart WHERE user_id = ?;", (user_id,)
        )
        removed = cur.rowcount
        await cur.close()
        for key in [k for k in self._tracked if k[0] == user_id]:
            del self._tracked[key]
        return removed

    async def save(self) -> None:
        await self._conn.commit()

    # ---------------------------
    # Helpers
    # ---------------------------

    def _attach(self, row) -> models.Cart:
        key = (row["user_id"], row["product_id"])
        cart = self._tracked.get(key)
        if cart is None:
            cart = models.Cart(
                user_id=row["user_id"],
                product_id=row["product_id"],
                quantity=int(row["quantity"]),
            )
            self._tracked[key] = cart
        else:
            cart.quantity = int(row["quantity"])
        return cart

    async def _find_product(self, product_id: str) -> models.Product:
        cur = await self._conn.execute(
            """
            SELECT product_id, name_pr, name_serial, detail, price,
                   quantity_pr, guarantee_period, supplier_id
            FROM product
            WHERE product_id = ?;
            """,
            (product_id,),
        )
        row = await cur.fetchone()
        await cur.close()
        if not row:
            raise LookupError(f"Product {product_id} not found")
        return _row_to_product(row)

    async def _set_stock(self, product: models.Product, new_stock: int) -> None:
        await self._conn.execute(
            "UPDATE product SET quantity_pr = ? WHERE product_id = ?;",
            (new_stock, product.product_id),
        )
        _logger.debug(
            f"Stock of {product.product_id}: {product.quantity_pr} -> {new_stock}"
        )

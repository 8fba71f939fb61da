import sqlite3

from db import database as db_database
from db.cart_repository import CartRepository
from db.models import Cart
from dbcase import DbTestCase


class CartRepositoryTestCase(DbTestCase):
    # ---------- reads ----------

    async def test_get_cart_filters(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            self.assertEqual(len(await repo.get_cart()), 3)

            rows = await repo.get_cart({"user_id": "U001"})
            self.assertEqual([r.product_id for r in rows], ["PR002", "PR004"])

            rows = await repo.get_cart({"user_id": "U001", "product_id": "PR004"})
            self.assertEqual(rows, [Cart("U001", "PR004", 1)])

            self.assertEqual(await repo.get_cart({"user_id": "nobody"}), [])

            with self.assertRaises(ValueError):
                await repo.get_cart({"user_id; DROP TABLE cart": "x"})

    async def test_get_cart_tracked_and_detached(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            first = (await repo.get_cart({"user_id": "U002"}))[0]
            again = (await repo.get_cart({"user_id": "U002"}))[0]
            self.assertIs(first, again)

            detached = (await repo.get_cart({"user_id": "U002"}, tracked=False))[0]
            self.assertIsNot(first, detached)
            self.assertEqual(first, detached)

            # update writes through to the tracked instance
            returned = await repo.update(Cart("U002", "PR003", 3))
            self.assertIs(returned, first)
            self.assertEqual(first.quantity, 3)
            self.assertEqual(detached.quantity, 1)

    async def test_get_cart_product_single_reference_rows(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            for product_id in ("PR001", "PR003", "PR004"):
                await repo.create(Cart("U003", product_id, 1))

            lines = await repo.get_cart_product("U003")
            by_id = {line.product.product_id: line for line in lines}
            self.assertEqual(sorted(by_id), ["PR001", "PR003", "PR004"])

            # two categories and two images: lowest id wins
            mouse = by_id["PR001"]
            self.assertEqual(mouse.quantity, 1)
            self.assertEqual(mouse.product.name_pr, "Wireless Mouse M331")
            self.assertEqual(mouse.product.quantity_pr, 9)
            self.assertEqual(mouse.category.category_name, "Mouse")
            self.assertEqual(mouse.supplier.supplier_name, "Logi Distribution")
            self.assertEqual(mouse.image.image_id, 1)

            laptop = by_id["PR003"]
            self.assertIsNone(laptop.image)
            self.assertEqual(laptop.category.category_name, "Laptop")

            hub = by_id["PR004"]
            self.assertIsNone(hub.category)
            self.assertIsNone(hub.supplier)
            self.assertEqual(hub.image.image_href, "images/pr004.jpg")

            self.assertEqual(await repo.get_cart_product("nobody"), [])

    # ---------- create ----------

    async def test_create_takes_stock(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            created = await repo.create(Cart("U003", "PR001", 3))
            self.assertEqual(created, Cart("U003", "PR001", 3))
            self.assertEqual(await self.stock(conn, "PR001"), 7)

        # committed, visible from a new connection
        async with db_database.connect() as conn:
            self.assertEqual(await self.stock(conn, "PR001"), 7)
            rows = await CartRepository(conn).get_cart({"user_id": "U003"})
            self.assertEqual(rows, [Cart("U003", "PR001", 3)])

    async def test_create_does_not_check_stock(self):
        async with db_database.connect() as conn:
            await CartRepository(conn).create(Cart("U003", "PR005", 2))
            self.assertEqual(await self.stock(conn, "PR005"), -2)

    async def test_create_missing_product_and_duplicate_row(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            with self.assertRaises(LookupError):
                await repo.create(Cart("U003", "PR999", 1))
            self.assertEqual(await repo.get_cart({"user_id": "U003"}), [])

            with self.assertRaises(sqlite3.IntegrityError):
                await repo.create(Cart("U001", "PR002", 1))
            self.assertEqual(await self.stock(conn, "PR002"), 25)

    # ---------- update ----------

    async def test_add_update_then_zero_scenario(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            self.assertEqual(await self.stock(conn, "PR001"), 10)

            await repo.create(Cart("U003", "PR001", 3))
            self.assertEqual(await self.stock(conn, "PR001"), 7)

            updated = await repo.update(Cart("U003", "PR001", 5))
            self.assertEqual(updated.quantity, 5)
            self.assertEqual(await self.stock(conn, "PR001"), 5)

            updated = await repo.update(Cart("U003", "PR001", 2))
            self.assertEqual(await self.stock(conn, "PR001"), 8)

            # zero removes the row but does not hand the 2 back
            self.assertIsNone(await repo.update(Cart("U003", "PR001", 0)))
            self.assertEqual(await repo.get_cart({"user_id": "U003"}), [])
            self.assertEqual(await self.stock(conn, "PR001"), 8)

    async def test_update_rejects_negative_stock(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            # PR003: stock 5, U002 holds 1 -> at most 6
            with self.assertRaises(ValueError):
                await repo.update(Cart("U002", "PR003", 7))
            self.assertEqual(await self.stock(conn, "PR003"), 5)
            rows = await repo.get_cart({"user_id": "U002"}, tracked=False)
            self.assertEqual(rows[0].quantity, 1)

            await repo.update(Cart("U002", "PR003", 6))
            self.assertEqual(await self.stock(conn, "PR003"), 0)

    async def test_update_missing_row(self):
        async with db_database.connect() as conn:
            with self.assertRaises(LookupError):
                await CartRepository(conn).update(Cart("U003", "PR001", 2))
            self.assertEqual(await self.stock(conn, "PR001"), 10)

    async def test_zero_update_missing_row(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            # no row for this user, and no such product at all
            with self.assertRaises(LookupError):
                await repo.update(Cart("U003", "PR001", 0))
            with self.assertRaises(LookupError):
                await repo.update(Cart("U003", "PR999", 0))
            self.assertEqual(await self.stock(conn, "PR001"), 10)
            self.assertEqual(len(await repo.get_cart()), 3)

    # ---------- delete / clear / save ----------

    async def test_delete_restores_stock(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            await repo.delete(Cart("U001", "PR002", 2))
            self.assertEqual(await self.stock(conn, "PR002"), 27)
            rows = await repo.get_cart({"user_id": "U001"})
            self.assertEqual([r.product_id for r in rows], ["PR004"])

            with self.assertRaises(LookupError):
                await repo.delete(Cart("U001", "PR002", 2))
            self.assertEqual(await self.stock(conn, "PR002"), 27)

    async def test_delete_restores_callers_quantity(self):
        async with db_database.connect() as conn:
            # row holds 2, the entity handed in says 5
            await CartRepository(conn).delete(Cart("U001", "PR002", 5))
            self.assertEqual(await self.stock(conn, "PR002"), 30)

    async def test_create_then_delete_round_trip_stock(self):
        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            cart = await repo.create(Cart("U003", "PR002", 4))
            self.assertEqual(await self.stock(conn, "PR002"), 21)
            await repo.delete(cart)
            self.assertEqual(await self.stock(conn, "PR002"), 25)

    async def test_clear_keeps_stock_and_needs_save(self):
        async with db_database.connect() as conn:
            removed = await CartRepository(conn).clear("U001")
            self.assertEqual(removed, 2)
            # not saved: closing the context drops it

        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            self.assertEqual(len(await repo.get_cart({"user_id": "U001"})), 2)
            await repo.clear("U001")
            await repo.save()

        async with db_database.connect() as conn:
            repo = CartRepository(conn)
            self.assertEqual(await repo.get_cart({"user_id": "U001"}), [])
            self.assertEqual(await self.stock(conn, "PR002"), 25)
            self.assertEqual(await self.stock(conn, "PR004"), 40)

import os
import tempfile
import unittest

from db import database as db_database


class DbTestCase(unittest.IsolatedAsyncioTestCase):
    """Points the db at a fresh temporary file, seeded from dummy-data.sql."""

    def setUp(self):
        self.temp_dir = tempfile.TemporaryDirectory()
        self.db_path = os.path.join(self.temp_dir.name, "test.sqlite")
        self._orig_path = db_database.DB_PATH
        db_database.DB_PATH = self.db_path
        db_database.LOAD_SEED_DATA = True
        db_database._initialized = False

    async def asyncSetUp(self):
        # opening a connection runs the schema and seed scripts
        async with db_database.connect() as conn:
            cur = await conn.execute("SELECT COUNT(*) FROM product;")
            await cur.fetchone()
            await cur.close()

    def tearDown(self):
        db_database.DB_PATH = self._orig_path
        db_database._initialized = False
        self.temp_dir.cleanup()

    async def scalar(self, conn, sql, params=()):
        cur = await conn.execute(sql, params)
        row = await cur.fetchone()
        await cur.close()
        return row[0] if row else None

    async def stock(self, conn, product_id):
        return await self.scalar(
            conn, "SELECT quantity_pr FROM product WHERE product_id = ?;", (product_id,)
        )

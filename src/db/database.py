# opens the db context handed to the repositories, creates schema on first use
import asyncio
import os
from contextlib import asynccontextmanager
from pathlib import Path
from sqlite3 import Row

import aiosqlite

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

DB_PATH = config.DB_PATH
SCRIPT_DIR = Path(__file__).resolve().parent
SCHEMA_SCRIPT = SCRIPT_DIR / "tables.sql"
SEED_SCRIPT = SCRIPT_DIR / "dummy-data.sql"
LOAD_SEED_DATA = config.LOAD_SEED_DATA

_initialized = False
_init_lock = asyncio.Lock()


async def _run_script(conn: aiosqlite.Connection, script: Path) -> None:
    if not script.exists() or script.stat().st_size == 0:
        return
    _logger.info(f"Running {script.name}...")
    await conn.executescript(script.read_text())


async def _init_db(conn: aiosqlite.Connection) -> None:
    await _run_script(conn, SCHEMA_SCRIPT)
    if LOAD_SEED_DATA:
        await _run_script(conn, SEED_SCRIPT)
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name = ?;",
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Writes stay pending in the connection's transaction until a repository
    calls save(); anything unsaved is rolled back when the context closes.
    """
    global _initialized
    parent = os.path.dirname(DB_PATH)
    if parent:
        os.makedirs(parent, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row
    await conn.execute("PRAGMA foreign_keys = ON;")

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                if not await _table_exists(conn, "product"):
                    _logger.info(f"Initializing database at {DB_PATH}...")
                    await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()

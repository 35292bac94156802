# manages connection to db, provides the transaction boundary used by services
import asyncio
import os.path
from contextlib import asynccontextmanager
from sqlite3 import Row

import aiosqlite

from utils.logger import get_logger

_logger = get_logger(__name__)

_SQL_DIR = os.path.dirname(os.path.abspath(__file__))

DB_PATH = os.getenv("SHOP_DB_PATH", "data/shop.sqlite")
SEED_DATA = os.getenv("SHOP_SEED_DATA", "1").lower() not in ("0", "false", "no")
DB_INIT_SCRIPTS = [
    os.path.join(_SQL_DIR, "shop-tables.sql"),
]
DB_SEED_SCRIPTS = [
    os.path.join(_SQL_DIR, "dummy-data.sql"),
]

_initialized = False
_init_lock = asyncio.Lock()


async def _run_scripts(conn: aiosqlite.Connection, scripts: list[str]) -> None:
    for script in scripts:
        if not os.path.exists(script) or os.path.getsize(script) == 0:
            continue
        _logger.info(f"Running database script {os.path.basename(script)}...")
        with open(script, "r") as f:
            await conn.executescript(f.read())


async def _init_db(conn: aiosqlite.Connection) -> None:
    await _run_scripts(conn, DB_INIT_SCRIPTS)
    if SEED_DATA:
        await _run_scripts(conn, DB_SEED_SCRIPTS)
    await conn.commit()


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


@asynccontextmanager
async def connect() -> aiosqlite.Connection:
    """Async context manager yielding an aiosqlite connection with FK enabled.

    Ensures the database is initialized (tables and seed data) on first use.
    """
    global _initialized
    db_dir = os.path.dirname(DB_PATH)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)

    conn = await aiosqlite.connect(DB_PATH)
    conn.row_factory = Row
    await conn.execute("PRAGMA foreign_keys = ON;")

    if not _initialized:
        async with _init_lock:
            if not _initialized:
                exists = await _table_exists(conn, "customers")
                if not exists:
                    _logger.info(f"Initializing database at {DB_PATH}...")
                    await _init_db(conn)
                _initialized = True
    try:
        yield conn
    finally:
        await conn.close()


@asynccontextmanager
async def transaction() -> aiosqlite.Connection:
    """Yield a connection inside a single write transaction.

    Commits when the block exits normally. Any exception raised in the block
    rolls back every statement issued through the connection and propagates.
    """
    async with connect() as conn:
        await conn.execute("BEGIN IMMEDIATE;")
        try:
            yield conn
        except BaseException:
            await conn.rollback()
            _logger.debug("Transaction rolled back.")
            raise
        else:
            await conn.commit()

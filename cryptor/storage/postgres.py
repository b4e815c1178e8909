"""
PostgreSQL Storage — Encrypted blobs in a single append-only table.

Works with any asyncpg-compatible connection pool (``acquire()`` returning an
async context manager whose connection offers ``execute``, ``fetch``,
``fetchval`` and ``transaction``). Each statement autocommits, so ``append``
is durable on return; ``commit()`` only reports whether anything changed.

Insertion order is the ``BIGSERIAL`` id order.
"""
import logging
from typing import Any

from ..exceptions import StorageError
from .base import RecordHandle

logger = logging.getLogger("cryptor")

DEFAULT_TABLE = "cryptor_strings"

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_CREATE_SCHEMA = """
CREATE SCHEMA IF NOT EXISTS {schema}
"""

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    id BIGSERIAL PRIMARY KEY,
    ciphertext BYTEA NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""

_INSERT_BLOB = """
INSERT INTO {table} (ciphertext)
VALUES ($1)
RETURNING id
"""

_SELECT_ALL = """
SELECT ciphertext
FROM {table}
ORDER BY id
"""

_DELETE_ALL = """
DELETE FROM {table}
"""


class PostgresStorage:
    name = "postgres"

    def __init__(self, db_pool: Any, table: str = DEFAULT_TABLE) -> None:
        self._db = db_pool
        self._table = table
        self._dirty = False

    @property
    def table(self) -> str:
        return self._table

    async def create_schema(self) -> None:
        """Create the blob table (and its schema, if qualified)."""
        try:
            async with self._db.acquire() as conn:
                if "." in self._table:
                    schema = self._table.split(".", 1)[0]
                    await conn.execute(_CREATE_SCHEMA.format(schema=schema))
                await conn.execute(_CREATE_TABLE.format(table=self._table))
        except Exception as err:
            raise StorageError(err) from err
        logger.debug("Ensured table %s", self._table)

    async def append(self, blob: bytes) -> RecordHandle:
        try:
            async with self._db.acquire() as conn:
                record_id = await conn.fetchval(
                    _INSERT_BLOB.format(table=self._table), bytes(blob),
                )
        except Exception as err:
            raise StorageError(err) from err
        self._dirty = True
        return str(record_id)

    async def scan_all(self) -> list[bytes]:
        try:
            async with self._db.acquire() as conn:
                rows = await conn.fetch(_SELECT_ALL.format(table=self._table))
        except Exception as err:
            raise StorageError(err) from err
        return [bytes(row["ciphertext"]) for row in rows]

    async def delete_all(self) -> bool:
        try:
            async with self._db.acquire() as conn:
                tx = conn.transaction()
                started = False
                try:
                    await tx.start()
                    started = True
                    await conn.execute(_DELETE_ALL.format(table=self._table))
                    await tx.commit()
                except Exception as err:
                    if started:
                        await tx.rollback()
                    logger.error("Failed to clear %s: %s", self._table, err)
                    return False
        except Exception as err:
            raise StorageError(err) from err
        self._dirty = True
        return True

    async def commit(self) -> bool:
        changed, self._dirty = self._dirty, False
        return changed

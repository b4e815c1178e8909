"""
Tests for storage collaborators.

Tests cover:
- MemoryStorage append/scan/delete/commit semantics
- FileStorage JSON-lines persistence, malformed lines, atomic clear
- PostgresStorage against a fake asyncpg-style pool
- create_storage backend selection
"""
import base64
from contextlib import asynccontextmanager

import orjson
import pytest

from cryptor.config import CryptorConfig
from cryptor.exceptions import StorageError
from cryptor.store import EncryptedStringStore
from cryptor.storage import (
    BlobStorage,
    MemoryStorage,
    FileStorage,
    PostgresStorage,
    create_storage,
)


# --- Fake asyncpg pool ---

class FakeTransaction:
    def __init__(self, conn):
        self._conn = conn

    async def start(self):
        if self._conn.fail_start:
            raise ConnectionError("connection reset")
        self._conn.snapshot = list(self._conn.rows)

    async def commit(self):
        self._conn.snapshot = None
        self._conn.commits += 1

    async def rollback(self):
        self._conn.rows[:] = self._conn.snapshot
        self._conn.snapshot = None
        self._conn.rollbacks += 1


class FakeConnection:
    """Minimal asyncpg-like connection holding rows in a list."""

    def __init__(self):
        self.rows: list[dict] = []
        self.statements: list[str] = []
        self.next_id = 1
        self.snapshot = None
        self.commits = 0
        self.rollbacks = 0
        self.fail_delete = False
        self.fail_start = False

    async def execute(self, sql, *args):
        self.statements.append(sql)
        if "DELETE FROM" in sql:
            self.rows.clear()
            if self.fail_delete:
                raise RuntimeError("delete failed")
        return "OK"

    async def fetchval(self, sql, *args):
        self.statements.append(sql)
        assert "INSERT INTO" in sql
        row_id = self.next_id
        self.next_id += 1
        self.rows.append({"id": row_id, "ciphertext": args[0]})
        return row_id

    async def fetch(self, sql, *args):
        self.statements.append(sql)
        assert "ORDER BY id" in sql
        return sorted(self.rows, key=lambda r: r["id"])

    def transaction(self):
        return FakeTransaction(self)


class FakePool:
    def __init__(self):
        self.conn = FakeConnection()
        self.available = True

    @asynccontextmanager
    async def _acquire(self):
        if not self.available:
            raise ConnectionError("pool closed")
        yield self.conn

    def acquire(self):
        return self._acquire()


@pytest.fixture
def memory():
    return MemoryStorage()


@pytest.fixture
def file_storage(tmp_path):
    return FileStorage(tmp_path / "data" / "records.jsonl")


@pytest.fixture
def pool():
    return FakePool()


# --- Test MemoryStorage ---

class TestMemoryStorage:
    """Tests for the in-process backend."""

    def test_satisfies_protocol(self, memory):
        assert isinstance(memory, BlobStorage)

    @pytest.mark.asyncio
    async def test_append_and_scan_in_order(self, memory):
        handles = [await memory.append(b) for b in (b"one", b"two", b"three")]
        assert len(set(handles)) == 3
        assert await memory.scan_all() == [b"one", b"two", b"three"]

    @pytest.mark.asyncio
    async def test_commit_reports_changes(self, memory):
        assert await memory.commit() is False
        await memory.append(b"blob")
        assert await memory.commit() is True
        assert await memory.commit() is False

    @pytest.mark.asyncio
    async def test_delete_all(self, memory):
        await memory.append(b"blob")
        await memory.commit()
        assert await memory.delete_all() is True
        assert await memory.scan_all() == []
        assert await memory.commit() is True

    @pytest.mark.asyncio
    async def test_delete_all_on_empty_is_noop(self, memory):
        assert await memory.delete_all() is True
        assert await memory.commit() is False


# --- Test FileStorage ---

class TestFileStorage:
    """Tests for the JSON-lines file backend."""

    def test_satisfies_protocol(self, file_storage):
        assert isinstance(file_storage, BlobStorage)

    @pytest.mark.asyncio
    async def test_scan_missing_file(self, file_storage):
        assert await file_storage.scan_all() == []

    @pytest.mark.asyncio
    async def test_append_and_scan_in_order(self, file_storage):
        blobs = [bytes([i]) * 8 for i in range(10)]
        for blob in blobs:
            await file_storage.append(blob)
        assert await file_storage.scan_all() == blobs

    @pytest.mark.asyncio
    async def test_line_format(self, file_storage):
        handle = await file_storage.append(b"\x00\x01binary")
        lines = file_storage.path.read_bytes().splitlines()
        assert len(lines) == 1
        entry = orjson.loads(lines[0])
        assert entry["id"] == handle
        assert base64.b64decode(entry["data"]) == b"\x00\x01binary"

    @pytest.mark.asyncio
    async def test_records_survive_new_instance(self, file_storage):
        await file_storage.append(b"persisted")
        await file_storage.commit()
        reopened = FileStorage(file_storage.path)
        assert await reopened.scan_all() == [b"persisted"]

    @pytest.mark.asyncio
    async def test_malformed_lines_are_skipped(self, file_storage):
        await file_storage.append(b"first")
        with file_storage.path.open("ab") as fp:
            fp.write(b"{not json\n")
            fp.write(b'{"id": "x", "data": "!!!"}\n')
            fp.write(b'{"id": "y"}\n')
            fp.write(b"\n")
        await file_storage.append(b"second")
        assert await file_storage.scan_all() == [b"first", b"second"]

    @pytest.mark.asyncio
    async def test_commit_reports_changes(self, file_storage):
        assert await file_storage.commit() is False
        await file_storage.append(b"blob")
        assert await file_storage.commit() is True
        assert await file_storage.commit() is False

    @pytest.mark.asyncio
    async def test_delete_all(self, file_storage):
        await file_storage.append(b"a")
        await file_storage.append(b"b")
        assert await file_storage.delete_all() is True
        assert await file_storage.scan_all() == []
        assert file_storage.path.exists()
        assert not file_storage.path.with_name("records.jsonl.tmp").exists()

    @pytest.mark.asyncio
    async def test_delete_all_without_file(self, file_storage):
        assert await file_storage.delete_all() is True
        assert await file_storage.delete_all() is True
        assert await file_storage.scan_all() == []


# --- Test PostgresStorage ---

class TestPostgresStorage:
    """Tests for the asyncpg-compatible backend."""

    def test_satisfies_protocol(self, pool):
        assert isinstance(PostgresStorage(pool), BlobStorage)

    @pytest.mark.asyncio
    async def test_create_schema_plain_table(self, pool):
        storage = PostgresStorage(pool)
        await storage.create_schema()
        assert len(pool.conn.statements) == 1
        assert "CREATE TABLE IF NOT EXISTS cryptor_strings" in pool.conn.statements[0]

    @pytest.mark.asyncio
    async def test_create_schema_qualified_table(self, pool):
        storage = PostgresStorage(pool, table="vault.strings")
        await storage.create_schema()
        assert "CREATE SCHEMA IF NOT EXISTS vault" in pool.conn.statements[0]
        assert "CREATE TABLE IF NOT EXISTS vault.strings" in pool.conn.statements[1]

    @pytest.mark.asyncio
    async def test_append_returns_row_id(self, pool):
        storage = PostgresStorage(pool)
        assert await storage.append(b"a") == "1"
        assert await storage.append(b"b") == "2"

    @pytest.mark.asyncio
    async def test_scan_in_insertion_order(self, pool):
        storage = PostgresStorage(pool)
        for blob in (b"a", b"b", b"c"):
            await storage.append(blob)
        assert await storage.scan_all() == [b"a", b"b", b"c"]

    @pytest.mark.asyncio
    async def test_delete_all_in_transaction(self, pool):
        storage = PostgresStorage(pool)
        await storage.append(b"a")
        await storage.commit()
        assert await storage.delete_all() is True
        assert pool.conn.commits == 1
        assert await storage.scan_all() == []
        assert await storage.commit() is True

    @pytest.mark.asyncio
    async def test_delete_all_failure_rolls_back(self, pool):
        storage = PostgresStorage(pool)
        await storage.append(b"a")
        await storage.commit()
        pool.conn.fail_delete = True
        assert await storage.delete_all() is False
        assert pool.conn.rollbacks == 1
        assert await storage.scan_all() == [b"a"]
        assert await storage.commit() is False

    @pytest.mark.asyncio
    async def test_delete_all_start_failure(self, pool):
        storage = PostgresStorage(pool)
        await storage.append(b"a")
        pool.conn.fail_start = True
        assert await storage.delete_all() is False
        assert pool.conn.rollbacks == 0
        assert await storage.scan_all() == [b"a"]

    @pytest.mark.asyncio
    async def test_reset_all_reports_start_failure(self, pool):
        store = EncryptedStringStore(PostgresStorage(pool))
        pool.conn.fail_start = True
        with pytest.raises(StorageError):
            await store.reset_all()

    @pytest.mark.asyncio
    async def test_driver_errors_become_storage_errors(self, pool):
        storage = PostgresStorage(pool)
        pool.available = False
        for operation in (
            storage.create_schema(),
            storage.append(b"a"),
            storage.scan_all(),
            storage.delete_all(),
        ):
            with pytest.raises(StorageError) as exc_info:
                await operation
            assert isinstance(exc_info.value.cause, ConnectionError)
        assert await storage.commit() is False


# --- Test create_storage ---

class TestCreateStorage:
    """Tests for backend selection from config."""

    def test_memory_default(self):
        assert isinstance(create_storage(CryptorConfig()), MemoryStorage)

    def test_file_backend(self, tmp_path):
        path = tmp_path / "records.jsonl"
        storage = create_storage(
            CryptorConfig(storage_backend="file", file_path=str(path))
        )
        assert isinstance(storage, FileStorage)
        assert storage.path == path

    def test_postgres_backend(self, pool):
        storage = create_storage(
            CryptorConfig(storage_backend="postgres", table_name="app.blobs"),
            db_pool=pool,
        )
        assert isinstance(storage, PostgresStorage)
        assert storage.table == "app.blobs"

    def test_postgres_requires_pool(self):
        with pytest.raises(StorageError):
            create_storage(CryptorConfig(storage_backend="postgres"))

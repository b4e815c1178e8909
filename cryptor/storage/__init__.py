"""Storage collaborators for encrypted blobs."""
from typing import Any, Optional

from ..config import CryptorConfig
from ..exceptions import StorageError
from .base import BlobStorage, RecordHandle
from .memory import MemoryStorage
from .file import FileStorage
from .postgres import PostgresStorage


def create_storage(config: CryptorConfig, db_pool: Optional[Any] = None) -> BlobStorage:
    """Build the storage collaborator selected by ``config``.

    Args:
        config: Validated configuration.
        db_pool: asyncpg-compatible pool, required for the postgres backend.

    Raises:
        StorageError: If the postgres backend is selected without a pool.
    """
    if config.storage_backend == "file":
        return FileStorage(config.file_path)
    if config.storage_backend == "postgres":
        if db_pool is None:
            raise StorageError(message="postgres storage backend requires a db_pool")
        return PostgresStorage(db_pool, table=config.table_name)
    return MemoryStorage()


__all__ = [
    "BlobStorage",
    "RecordHandle",
    "MemoryStorage",
    "FileStorage",
    "PostgresStorage",
    "create_storage",
]

"""
File Storage — Encrypted blobs as a JSON-lines file.

Format: one JSON object per line, serialized with orjson:

    {"id": "<hex handle>", "data": "<base64 ciphertext>"}

Lines are only ever appended; ``delete_all`` swaps in an empty file with an
atomic rename. Blocking file I/O runs in a worker thread.
"""
import os
import base64
import asyncio
import logging
import threading
import uuid
from pathlib import Path
from typing import Union

import orjson

from ..exceptions import StorageError
from .base import RecordHandle

logger = logging.getLogger("cryptor")


class FileStorage:
    name = "file"

    def __init__(self, path: Union[str, Path]) -> None:
        self._path = Path(path)
        self._lock = threading.Lock()
        self._dirty = False

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Blocking helpers (run in a worker thread)
    # ------------------------------------------------------------------

    def _append_sync(self, blob: bytes) -> RecordHandle:
        handle = uuid.uuid4().hex
        line = orjson.dumps({
            "id": handle,
            "data": base64.b64encode(blob).decode("ascii"),
        }) + b"\n"
        with self._lock:
            try:
                self._path.parent.mkdir(parents=True, exist_ok=True)
                with self._path.open("ab") as fp:
                    fp.write(line)
                    fp.flush()
                    os.fsync(fp.fileno())
            except OSError as err:
                raise StorageError(err) from err
            self._dirty = True
        return handle

    def _scan_sync(self) -> list[bytes]:
        with self._lock:
            if not self._path.exists():
                return []
            try:
                raw = self._path.read_bytes()
            except OSError as err:
                raise StorageError(err) from err
        blobs: list[bytes] = []
        for lineno, line in enumerate(raw.splitlines(), start=1):
            if not line.strip():
                continue
            try:
                entry = orjson.loads(line)
                blobs.append(base64.b64decode(entry["data"], validate=True))
            except (ValueError, KeyError, TypeError) as err:
                logger.warning(
                    "Skipping malformed record at %s:%d (%s)",
                    self._path, lineno, type(err).__name__,
                )
        return blobs

    def _delete_all_sync(self) -> bool:
        with self._lock:
            if not self._path.exists():
                return True
            tmp = self._path.with_name(self._path.name + ".tmp")
            try:
                tmp.write_bytes(b"")
                os.replace(tmp, self._path)
            except OSError as err:
                logger.error("Failed to clear %s: %s", self._path, err)
                return False
            self._dirty = True
        return True

    def _commit_sync(self) -> bool:
        with self._lock:
            if not self._dirty:
                return False
            if self._path.exists():
                try:
                    fd = os.open(self._path, os.O_RDONLY)
                    try:
                        os.fsync(fd)
                    finally:
                        os.close(fd)
                except OSError as err:
                    raise StorageError(err) from err
            self._dirty = False
        return True

    # ------------------------------------------------------------------
    # BlobStorage API
    # ------------------------------------------------------------------

    async def append(self, blob: bytes) -> RecordHandle:
        return await asyncio.to_thread(self._append_sync, bytes(blob))

    async def scan_all(self) -> list[bytes]:
        return await asyncio.to_thread(self._scan_sync)

    async def delete_all(self) -> bool:
        return await asyncio.to_thread(self._delete_all_sync)

    async def commit(self) -> bool:
        return await asyncio.to_thread(self._commit_sync)

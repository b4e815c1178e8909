"""In-process blob storage. Records live as long as the instance."""
import uuid

from .base import RecordHandle


class MemoryStorage:
    name = "memory"

    def __init__(self) -> None:
        self._records: list[tuple[RecordHandle, bytes]] = []
        self._dirty = False

    def __len__(self) -> int:
        return len(self._records)

    async def append(self, blob: bytes) -> RecordHandle:
        handle = uuid.uuid4().hex
        self._records.append((handle, bytes(blob)))
        self._dirty = True
        return handle

    async def scan_all(self) -> list[bytes]:
        return [blob for _, blob in self._records]

    async def delete_all(self) -> bool:
        if self._records:
            self._records = []
            self._dirty = True
        return True

    async def commit(self) -> bool:
        changed, self._dirty = self._dirty, False
        return changed

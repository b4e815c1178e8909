"""Storage collaborator contract for encrypted blobs."""
from typing import Protocol, runtime_checkable

RecordHandle = str


@runtime_checkable
class BlobStorage(Protocol):
    """Insertion-ordered, append-only collection of opaque blobs.

    Implementations own their consistency: ``append`` is durable once it
    returns and ``delete_all`` removes every record atomically from the
    caller's point of view.
    """

    name: str

    async def append(self, blob: bytes) -> RecordHandle:
        """Append a blob and return its record handle."""
        ...

    async def scan_all(self) -> list[bytes]:
        """Return every stored blob in insertion order."""
        ...

    async def delete_all(self) -> bool:
        """Remove every record. Returns False if the backend failed."""
        ...

    async def commit(self) -> bool:
        """Durability barrier. Returns False when there was nothing to persist."""
        ...

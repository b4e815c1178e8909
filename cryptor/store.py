"""
EncryptedStringStore — Encrypted, append-only storage of text strings.

Provides the public API of Cryptor:
- ``store(text)`` — encrypt with the public key and persist
- ``list_all()`` — decrypt every stored record, skipping failures
- ``decrypt_all()`` — per-record results, failures included
- ``reset_all()`` — delete every record (the keypair is kept)
- ``reveal(ciphertext)`` — decrypt a single record, raising on failure

Security Note:
    Never log plaintext or ciphertext values. Only log record indexes,
    counts, backend names and error types.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from .crypto import CryptoCodec
from .keys import KeyProvider
from .config import CryptorConfig
from .exceptions import CryptorError, StorageError
from .storage import BlobStorage, create_storage

logger = logging.getLogger("cryptor")

ErrorCallback = Callable[[int, CryptorError], None]


@dataclass(frozen=True)
class DecryptResult:
    """Outcome of decrypting one stored record.

    ``index`` is the position in the ``scan_all()`` result, not a storage
    handle; backends that skip malformed entries shift later positions.
    """

    index: int
    value: Optional[str] = None
    error: Optional[CryptorError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class EncryptedStringStore:
    """Stores text strings encrypted under a lazily generated RSA keypair.

    The keypair is created by the first ``store()`` and kept for the life of
    the instance. Records written under any other keypair (for example by a
    previous process) cannot be decrypted and are skipped by ``list_all()``.
    """

    def __init__(
        self,
        storage: BlobStorage,
        key_provider: Optional[KeyProvider] = None,
        codec: Optional[CryptoCodec] = None,
        on_error: Optional[ErrorCallback] = None,
    ):
        self._storage = storage
        self._keys = key_provider or KeyProvider()
        self._codec = codec or CryptoCodec()
        self._on_error = on_error

    @property
    def storage(self) -> BlobStorage:
        return self._storage

    @property
    def key_provider(self) -> KeyProvider:
        return self._keys

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def store(self, text: str) -> None:
        """Encrypt and persist a string.

        Args:
            text: String to store. Its UTF-8 encoding must fit the RSA-OAEP
                plaintext limit (126 bytes).

        Raises:
            KeyProviderError: If the keypair could not be generated.
            CryptorError: Any codec failure, unchanged. Nothing is stored.
            StorageError: If the append itself failed.

        A failing ``commit()`` after a successful append is logged, not
        raised: the record is already durable.
        """
        keypair = self._keys.current()
        if keypair is None:
            # RSA generation is CPU bound; keep it off the event loop
            keypair = await asyncio.to_thread(self._keys.ensure_keypair)
        ciphertext = self._codec.encrypt(text, keypair.public_key)

        handle = await self._storage.append(ciphertext)
        # append is durable on return, so a failed commit is only reported
        try:
            if not await self._storage.commit():
                logger.debug("Commit after append had nothing to persist")
        except Exception:
            logger.exception(
                "Commit failed after record %s was appended to %s storage",
                handle, self._storage.name,
            )
        logger.debug("Stored record %s in %s", handle, self._storage.name)

    async def decrypt_all(self) -> list[DecryptResult]:
        """Decrypt every stored record, one result per record.

        Returns an empty list without reading storage when no keypair exists.
        """
        keypair = self._keys.current()
        if keypair is None:
            return []

        results: list[DecryptResult] = []
        for index, blob in enumerate(await self._storage.scan_all()):
            try:
                value = self._codec.decrypt(blob, keypair.private_key)
            except CryptorError as err:
                results.append(DecryptResult(index=index, error=err))
            else:
                results.append(DecryptResult(index=index, value=value))
        return results

    async def list_all(self) -> list[str]:
        """Return every decryptable string in stored order.

        Records that fail to decrypt are reported through the logger and the
        ``on_error`` callback, then omitted.
        """
        strings: list[str] = []
        failed = 0
        for result in await self.decrypt_all():
            if result.ok:
                strings.append(result.value)
                continue
            failed += 1
            self._report(result)
        if failed:
            logger.info(
                "Recovered %d record(s), skipped %d", len(strings), failed,
            )
        return strings

    async def reset_all(self) -> None:
        """Delete every stored record. The keypair is left untouched.

        Raises:
            StorageError: If the backend reports the deletion failed.
        """
        if not await self._storage.delete_all():
            raise StorageError(
                message=f"{self._storage.name} storage failed to delete records"
            )
        await self._storage.commit()
        logger.info("Cleared all records from %s storage", self._storage.name)

    def reveal(self, ciphertext: bytes) -> str:
        """Decrypt a single ciphertext, propagating any failure.

        Raises:
            PrivateKeyAbsent: If no keypair has been generated yet.
            CryptorError: Any codec failure.
        """
        return self._codec.decrypt(ciphertext, self._keys.private_key)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _report(self, result: DecryptResult) -> None:
        logger.error(
            "Failed to decrypt record at scan position %d: %s",
            result.index, type(result.error).__name__,
        )
        if self._on_error is None:
            return
        try:
            self._on_error(result.index, result.error)
        except Exception:
            logger.exception(
                "on_error callback failed for scan position %d", result.index,
            )

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def from_config(
        cls,
        config: CryptorConfig,
        db_pool: Any = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> "EncryptedStringStore":
        """Build a store on the storage backend selected by ``config``.

        Args:
            config: Validated configuration.
            db_pool: asyncpg-compatible pool for the postgres backend.
            on_error: Optional callback for per-record decryption failures.

        Returns:
            A store with a fresh, empty key provider.
        """
        storage = create_storage(config, db_pool=db_pool)
        logger.debug("Opened %s storage", storage.name)
        return cls(storage, on_error=on_error)

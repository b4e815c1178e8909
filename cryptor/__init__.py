"""Cryptor — Encrypted storage of text strings.

Security Note (Threat Model):
    The RSA private key exists only in process memory and is never
    persisted. Records written by an earlier process cannot be decrypted
    after a restart; they are skipped when reading.
"""

from .version import __version__
from .keys import Keypair, KeyProvider
from .crypto import CryptoCodec, ALGORITHM
from .store import EncryptedStringStore, DecryptResult
from .config import CryptorConfig
from .storage import (
    BlobStorage,
    MemoryStorage,
    FileStorage,
    PostgresStorage,
    create_storage,
)
from .exceptions import (
    CryptorError,
    KeyProviderError,
    KeyGenerationFailed,
    PublicKeyDerivationFailed,
    PublicKeyAbsent,
    PrivateKeyAbsent,
    InvalidInputData,
    AlgorithmNotSupported,
    EncryptionFailed,
    DecryptionFailed,
    InvalidDecryptedData,
    StorageError,
)

__all__ = [
    "__version__",
    "ALGORITHM",
    "Keypair",
    "KeyProvider",
    "CryptoCodec",
    "EncryptedStringStore",
    "DecryptResult",
    "CryptorConfig",
    "BlobStorage",
    "MemoryStorage",
    "FileStorage",
    "PostgresStorage",
    "create_storage",
    "CryptorError",
    "KeyProviderError",
    "KeyGenerationFailed",
    "PublicKeyDerivationFailed",
    "PublicKeyAbsent",
    "PrivateKeyAbsent",
    "InvalidInputData",
    "AlgorithmNotSupported",
    "EncryptionFailed",
    "DecryptionFailed",
    "InvalidDecryptedData",
    "StorageError",
]

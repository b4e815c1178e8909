"""Cryptor error taxonomy.

Every error raised by the package derives from ``CryptorError``. Errors that
wrap a failure from the cryptographic library or a storage backend keep it in
``cause`` and are raised with ``raise ... from cause``.
"""
from typing import Optional


class CryptorError(Exception):
    """Base class for all Cryptor errors."""

    message = "Cryptor error"

    def __init__(self, cause: Optional[BaseException] = None, message: Optional[str] = None):
        self.cause = cause
        text = message or self.message
        if cause is not None:
            text = f"{text}: {cause}"
        super().__init__(text)


# Key provisioning

class KeyProviderError(CryptorError):
    message = "Keypair provisioning failed"


class KeyGenerationFailed(KeyProviderError):
    message = "RSA keypair generation failed"


class PublicKeyDerivationFailed(KeyProviderError):
    message = "Could not derive public key from generated private key"


class PublicKeyAbsent(CryptorError):
    message = "No public key available"


class PrivateKeyAbsent(CryptorError):
    message = "No private key available"


# Codec

class InvalidInputData(CryptorError):
    message = "Plaintext could not be encoded as UTF-8"


class AlgorithmNotSupported(CryptorError):
    message = "Key does not support RSA-OAEP-SHA512"


class EncryptionFailed(CryptorError):
    message = "Encryption failed"


class DecryptionFailed(CryptorError):
    message = "Decryption failed"


class InvalidDecryptedData(CryptorError):
    message = "Decrypted bytes are not valid UTF-8 text"


# Storage

class StorageError(CryptorError):
    message = "Storage backend failure"

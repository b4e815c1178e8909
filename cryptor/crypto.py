"""
Cryptor Codec — RSA-OAEP encryption of text strings.

Each string is UTF-8 encoded and encrypted directly with the RSA public key:

    RSA-OAEP, MGF1(SHA-512), SHA-512 digest, no label

The algorithm is a fixed constant. Before every operation the key is checked
for support of that algorithm; a mismatch is a hard stop, never a fallback
to another scheme.

Security Note:
    Never log plaintext or ciphertext values.
    Plaintext is bounded by the OAEP ceiling: key_bytes - 2 * 64 - 2,
    i.e. 126 bytes for a 2048-bit modulus.
"""
import logging
from typing import Any

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from .exceptions import (
    InvalidInputData,
    AlgorithmNotSupported,
    EncryptionFailed,
    DecryptionFailed,
    InvalidDecryptedData,
)

logger = logging.getLogger("cryptor")

ALGORITHM = "RSA-OAEP-SHA512"
TEXT_ENCODING = "utf-8"
DIGEST_SIZE = 64  # SHA-512

ENCRYPT = "encrypt"
DECRYPT = "decrypt"


def _oaep() -> padding.OAEP:
    return padding.OAEP(
        mgf=padding.MGF1(algorithm=hashes.SHA512()),
        algorithm=hashes.SHA512(),
        label=None,
    )


class CryptoCodec:
    """Stateless RSA-OAEP-SHA512 encrypt/decrypt of text strings."""

    algorithm = ALGORITHM

    def supports(self, key: Any, operation: str) -> bool:
        """Check whether ``key`` can perform ``operation`` with RSA-OAEP-SHA512.

        Args:
            key: A ``cryptography`` key object.
            operation: Either ``"encrypt"`` or ``"decrypt"``.

        Returns:
            True if the key type matches the operation and its modulus is
            large enough for OAEP with a SHA-512 digest.
        """
        if operation == ENCRYPT:
            if not isinstance(key, rsa.RSAPublicKey):
                return False
        elif operation == DECRYPT:
            if not isinstance(key, rsa.RSAPrivateKey):
                return False
        else:
            return False
        return key.key_size // 8 >= 2 * DIGEST_SIZE + 2

    def max_plaintext_size(self, key: Any) -> int:
        """Largest plaintext, in bytes, the key can encrypt."""
        return key.key_size // 8 - 2 * DIGEST_SIZE - 2

    def encrypt(self, plaintext: str, public_key: rsa.RSAPublicKey) -> bytes:
        """Encrypt a text string with the given RSA public key.

        Args:
            plaintext: Text to encrypt.
            public_key: RSA public key.

        Returns:
            Ciphertext bytes (the size of the key modulus).

        Raises:
            InvalidInputData: If plaintext is not text or is not UTF-8 encodable.
            AlgorithmNotSupported: If the key cannot do RSA-OAEP-SHA512.
            EncryptionFailed: If the underlying library raised.
        """
        if not isinstance(plaintext, str):
            raise InvalidInputData(
                message=f"Expected str plaintext, got {type(plaintext).__name__}"
            )
        try:
            data = plaintext.encode(TEXT_ENCODING)
        except UnicodeEncodeError as err:
            raise InvalidInputData(err) from err

        if not self.supports(public_key, ENCRYPT):
            raise AlgorithmNotSupported()

        try:
            ciphertext = public_key.encrypt(data, _oaep())
        except Exception as err:
            raise EncryptionFailed(err) from err
        if not ciphertext:
            raise EncryptionFailed(message="Encryption produced no output")
        return ciphertext

    def decrypt(self, ciphertext: bytes, private_key: rsa.RSAPrivateKey) -> str:
        """Decrypt ciphertext produced by ``encrypt``.

        Args:
            ciphertext: Ciphertext bytes.
            private_key: RSA private key matching the encrypting public key.

        Returns:
            The original text.

        Raises:
            AlgorithmNotSupported: If the key cannot do RSA-OAEP-SHA512.
            DecryptionFailed: If the underlying library raised.
            InvalidDecryptedData: If the decrypted bytes are not UTF-8.
        """
        if not self.supports(private_key, DECRYPT):
            raise AlgorithmNotSupported()

        try:
            data = private_key.decrypt(ciphertext, _oaep())
        except Exception as err:
            raise DecryptionFailed(err) from err

        try:
            return data.decode(TEXT_ENCODING)
        except UnicodeDecodeError as err:
            raise InvalidDecryptedData(err) from err

"""
Key Provider — Lazy, generate-once RSA keypair slot.

The keypair is created on the first call to ``ensure_keypair()`` and cached
for the lifetime of the provider. It is never persisted, so ciphertext
written by a previous process cannot be decrypted by a new one.

Security Note:
    Never log key material. Only log key size and generation events.
"""
import logging
import threading
from dataclasses import dataclass
from typing import Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from .exceptions import (
    KeyGenerationFailed,
    PublicKeyDerivationFailed,
    PublicKeyAbsent,
    PrivateKeyAbsent,
)

logger = logging.getLogger("cryptor")

KEY_SIZE = 2048
PUBLIC_EXPONENT = 65537


@dataclass(frozen=True)
class Keypair:
    """A complete RSA keypair. Both halves are always present."""

    public_key: rsa.RSAPublicKey
    private_key: rsa.RSAPrivateKey


class KeyProvider:
    """Owns a single RSA keypair slot.

    The slot is either empty or holds a complete ``Keypair``. Generation and
    installation happen under a lock, so concurrent callers observe a single
    generation event and never a half-populated pair.
    """

    def __init__(self) -> None:
        self._keypair: Optional[Keypair] = None
        self._lock = threading.Lock()

    @property
    def is_ready(self) -> bool:
        return self._keypair is not None

    def current(self) -> Optional[Keypair]:
        """Return the cached keypair, or None. Never generates."""
        return self._keypair

    @property
    def public_key(self) -> rsa.RSAPublicKey:
        keypair = self._keypair
        if keypair is None:
            raise PublicKeyAbsent()
        return keypair.public_key

    @property
    def private_key(self) -> rsa.RSAPrivateKey:
        keypair = self._keypair
        if keypair is None:
            raise PrivateKeyAbsent()
        return keypair.private_key

    def ensure_keypair(self) -> Keypair:
        """Return the cached keypair, generating it on first use.

        Returns:
            The provider's keypair.

        Raises:
            KeyGenerationFailed: If RSA key generation raised.
            PublicKeyDerivationFailed: If the public half could not be
                derived from the new private key.
        """
        keypair = self._keypair
        if keypair is not None:
            return keypair
        with self._lock:
            if self._keypair is None:
                self._keypair = self._generate()
            return self._keypair

    def _generate(self) -> Keypair:
        try:
            private_key = rsa.generate_private_key(
                public_exponent=PUBLIC_EXPONENT,
                key_size=KEY_SIZE,
            )
        except Exception as err:
            raise KeyGenerationFailed(err) from err
        try:
            public_key = private_key.public_key()
        except Exception as err:
            raise PublicKeyDerivationFailed(err) from err
        if public_key is None:
            raise PublicKeyDerivationFailed()
        logger.info("Generated RSA-%d keypair", KEY_SIZE)
        return Keypair(public_key=public_key, private_key=private_key)

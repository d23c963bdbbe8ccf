"""
Encryption Service

AES-256-CBC encryption for audit log payloads.
The key is a SHA-256 digest of the configured secret, so any secret
length maps to exactly 32 bytes. Every call draws a fresh 16-byte IV.
"""

import hashlib
import os
from typing import Optional, Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from multiguard.api.config import settings
from multiguard.core.exceptions import CipherError


KEY_SIZE = 32  # AES-256
IV_SIZE = 16  # AES block size


def derive_encryption_key(secret: str) -> bytes:
    """
    Derive a fixed-size AES key from a configured secret.

    Args:
        secret: Secret of any length

    Returns:
        32-byte key
    """
    return hashlib.sha256(secret.encode()).digest()


def encrypt(key: bytes, plaintext: bytes) -> Tuple[str, str]:
    """
    Encrypt bytes with AES-256-CBC and PKCS7 padding.

    Args:
        key: 32-byte key
        plaintext: Bytes to encrypt (may be empty)

    Returns:
        Tuple of (ciphertext_hex, iv_hex)

    Raises:
        CipherError: If the cipher cannot be initialised or run
    """
    iv = os.urandom(IV_SIZE)
    try:
        padder = padding.PKCS7(algorithms.AES.block_size).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
    except (ValueError, TypeError) as e:
        raise CipherError(f"Encryption failed: {e}") from e

    return ciphertext.hex(), iv.hex()


def decrypt(key: bytes, ciphertext_hex: str, iv_hex: str) -> bytes:
    """
    Decrypt a payload produced by encrypt().

    Args:
        key: 32-byte key used for encryption
        ciphertext_hex: Hex-encoded ciphertext
        iv_hex: Hex-encoded IV stored alongside the ciphertext

    Returns:
        Original plaintext bytes

    Raises:
        CipherError: If decryption fails - wrong key or corrupted data
    """
    try:
        ciphertext = bytes.fromhex(ciphertext_hex)
        iv = bytes.fromhex(iv_hex)

        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
        return unpadder.update(padded) + unpadder.finalize()
    except (ValueError, TypeError) as e:
        raise CipherError("Decryption failed - invalid key or corrupted data") from e


class EncryptionService:
    """
    Holds the process-wide audit log key.

    The key is derived on first use and cached for the lifetime of the
    instance; changing LOG_ENCRYPTION_KEY requires a restart.
    """

    def __init__(self, secret: Optional[str] = None):
        """
        Initialize encryption service.

        Args:
            secret: Log encryption secret. Uses settings if not provided.
        """
        self._secret = secret if secret is not None else settings.LOG_ENCRYPTION_KEY
        self._key: Optional[bytes] = None

    @property
    def key(self) -> bytes:
        if self._key is None:
            self._key = derive_encryption_key(self._secret)
        return self._key

    def encrypt(self, plaintext: bytes) -> Tuple[str, str]:
        """Encrypt with the service key. Returns (ciphertext_hex, iv_hex)."""
        return encrypt(self.key, plaintext)

    def decrypt(self, ciphertext_hex: str, iv_hex: str) -> bytes:
        """Decrypt with the service key."""
        return decrypt(self.key, ciphertext_hex, iv_hex)


# Singleton instance
_encryption_service: Optional[EncryptionService] = None


def get_encryption_service() -> EncryptionService:
    """Get singleton encryption service instance."""
    global _encryption_service
    if _encryption_service is None:
        _encryption_service = EncryptionService()
    return _encryption_service

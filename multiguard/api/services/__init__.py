"""Crypto primitives: password hashing, log encryption, TOTP."""

from multiguard.api.services.encryption import (
    EncryptionService,
    decrypt,
    derive_encryption_key,
    encrypt,
    get_encryption_service,
)
from multiguard.api.services.passwords import hash_password, verify_password
from multiguard.api.services.totp import generate_totp_secret, verify_totp

__all__ = [
    "EncryptionService",
    "get_encryption_service",
    "derive_encryption_key",
    "encrypt",
    "decrypt",
    "hash_password",
    "verify_password",
    "generate_totp_secret",
    "verify_totp",
]

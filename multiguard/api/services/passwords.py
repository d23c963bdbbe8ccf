"""
Password hashing.

bcrypt embeds salt and cost in the hash string, so verification needs
nothing but the stored hash. bcrypt only looks at the first 72 bytes of
a password and current releases refuse anything longer.
"""

import bcrypt

from multiguard.core.exceptions import InputError


MAX_PASSWORD_BYTES = 72


def hash_password(plaintext: str) -> str:
    """
    Hash a password with a fresh bcrypt salt.

    Raises:
        InputError: If the password is longer than 72 UTF-8 bytes
    """
    encoded = plaintext.encode()
    if len(encoded) > MAX_PASSWORD_BYTES:
        raise InputError(
            f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
            field="password",
        )
    return bcrypt.hashpw(encoded, bcrypt.gensalt()).decode()


def verify_password(plaintext: str, password_hash: str) -> bool:
    """
    Check a password against a stored bcrypt hash.

    Malformed or empty hashes never raise; they simply fail to verify.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(plaintext.encode(), password_hash.encode())
    except (ValueError, TypeError):
        return False

"""
TOTP second factor.

RFC 6238 codes via pyotp, 30-second steps, 6 digits.
"""

from datetime import datetime
from typing import Optional

import pyotp


def generate_totp_secret() -> str:
    """Generate a fresh base32 TOTP secret."""
    return pyotp.random_base32()


def verify_totp(
    code: str,
    secret: str,
    valid_window: int = 1,
    at: Optional[datetime] = None,
) -> bool:
    """
    Verify a TOTP code.

    Args:
        code: Code submitted by the user
        secret: Base32 secret
        valid_window: Number of adjacent time steps accepted either side
        at: Instant to verify against (defaults to now)

    Returns:
        True if the code matches any step in the window
    """
    if not code or not secret:
        return False
    code = code.strip()
    if not code.isdigit():
        return False
    try:
        totp = pyotp.TOTP(secret)
        if at is None:
            return totp.verify(code, valid_window=valid_window)
        return totp.verify(code, for_time=at, valid_window=valid_window)
    except (ValueError, TypeError):
        # Secret is not valid base32
        return False


def current_code(secret: str, at: Optional[datetime] = None) -> str:
    """Code for the given instant. Used for enrollment previews and tests."""
    totp = pyotp.TOTP(secret)
    return totp.at(at) if at is not None else totp.now()


def provisioning_uri(secret: str, email: str, issuer: str) -> str:
    """otpauth:// URI for authenticator apps."""
    return pyotp.TOTP(secret).provisioning_uri(name=email, issuer_name=issuer)

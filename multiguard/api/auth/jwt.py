"""
JWT Token Handling

Session carrier for the HTTP layer. Tokens name the identity; every
request re-resolves it through the identity store.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

import jwt
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError

from multiguard.api.config import settings
from multiguard.api.domain import Principal


def create_access_token(principal: Principal) -> str:
    """
    Create a new access token.

    Args:
        principal: Authenticated principal

    Returns:
        Encoded JWT access token
    """
    now = datetime.now(timezone.utc)
    expire = now + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    payload = {
        "sub": principal.id,
        "name": principal.name,
        "role": principal.role.value,
        "clearance_level": principal.clearance_level,
        "department": principal.department,
        "iat": now,
        "exp": expire,
        "jti": str(uuid4()),
        "type": "access",
    }

    return jwt.encode(
        payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM
    )


def verify_token(token: str, token_type: str = "access") -> Optional[dict]:
    """
    Verify and decode a JWT token.

    Args:
        token: JWT token string
        token_type: Expected token type

    Returns:
        Decoded payload if valid, None otherwise
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        return None
    except InvalidTokenError:
        return None

    if payload.get("type") != token_type:
        return None

    return payload


def get_token_expiry_seconds() -> int:
    """Get access token expiry in seconds."""
    return settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

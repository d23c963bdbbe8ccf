"""
Authentication Schemas

Pydantic models for auth request/response validation.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from multiguard.api.domain import Principal
from multiguard.api.services.passwords import MAX_PASSWORD_BYTES


PASSWORD_RULES = [
    (r"[A-Z]", "Must contain uppercase letter"),
    (r"[a-z]", "Must contain lowercase letter"),
    (r"[0-9]", "Must contain number"),
    (r"[^A-Za-z0-9]", "Must contain special character"),
]


def check_password_policy(value: str) -> str:
    """Raise ValueError with the first unmet rule."""
    if len(value) < 8:
        raise ValueError("Password must be at least 8 chars")
    if len(value.encode()) > MAX_PASSWORD_BYTES:
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")
    for pattern, message in PASSWORD_RULES:
        if not re.search(pattern, value):
            raise ValueError(message)
    return value


class UserRegisterRequest(BaseModel):
    """User registration request."""

    name: str = Field(..., min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(..., max_length=100)

    @field_validator("password")
    @classmethod
    def password_policy(cls, value: str) -> str:
        return check_password_policy(value)


class UserLoginRequest(BaseModel):
    """User login request."""

    email: EmailStr
    password: str
    mfa_code: Optional[str] = Field(None, max_length=10)


class ProfileUpdateRequest(BaseModel):
    """Profile update request. Empty password leaves it unchanged."""

    name: str = Field(..., min_length=2, max_length=100)
    password: Optional[str] = Field(None, max_length=100)

    @field_validator("password")
    @classmethod
    def password_policy(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return check_password_policy(value)


class MfaEnableRequest(BaseModel):
    """Confirm an MFA secret with a code from the authenticator app."""

    secret: str = Field(..., min_length=16, max_length=64)
    token: str = Field(..., min_length=6, max_length=10)


class MfaSecretResponse(BaseModel):
    """Freshly generated, not yet enabled, MFA secret."""

    secret: str
    email: str
    provisioning_uri: str


class PrincipalResponse(BaseModel):
    """Authenticated identity, without secret fields."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: str
    clearance_level: int
    department: str
    status: str
    is_mfa_enabled: bool

    @classmethod
    def from_principal(cls, principal: Principal) -> "PrincipalResponse":
        return cls(
            id=principal.id,
            name=principal.name,
            email=principal.email,
            role=principal.role.value,
            clearance_level=principal.clearance_level,
            department=principal.department,
            status=principal.status.value,
            is_mfa_enabled=principal.is_mfa_enabled,
        )


class AuthResponse(BaseModel):
    """Token plus principal, returned on successful login."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: PrincipalResponse


class MessageResponse(BaseModel):
    """Simple message response."""

    message: str
    success: bool = True

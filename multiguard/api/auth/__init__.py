"""Authentication module."""

from multiguard.api.auth.service import AuthService
from multiguard.api.auth.mfa import MfaService, MfaEnrollment
from multiguard.api.auth.jwt import create_access_token, verify_token

__all__ = [
    "AuthService",
    "MfaService",
    "MfaEnrollment",
    "create_access_token",
    "verify_token",
]

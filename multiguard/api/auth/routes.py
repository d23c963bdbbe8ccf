"""
Authentication Routes

API endpoints for registration, login, MFA enrollment and profile updates.
Domain errors are mapped to HTTP responses by the app's exception handlers.
"""

from fastapi import APIRouter, Depends, Request, status

from multiguard.api.auth.jwt import create_access_token, get_token_expiry_seconds
from multiguard.api.auth.mfa import MfaService
from multiguard.api.auth.schemas import (
    AuthResponse,
    MessageResponse,
    MfaEnableRequest,
    MfaSecretResponse,
    PrincipalResponse,
    ProfileUpdateRequest,
    UserLoginRequest,
    UserRegisterRequest,
)
from multiguard.api.auth.service import AuthService
from multiguard.api.dependencies import (
    client_ip,
    get_auth_service,
    get_current_principal,
    get_mfa_service,
)
from multiguard.api.domain import Principal


router = APIRouter()


@router.post(
    "/register",
    response_model=PrincipalResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new user",
)
async def register(
    data: UserRegisterRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> PrincipalResponse:
    """
    Register a new user account.

    - **name**: At least 2 characters
    - **email**: Valid email address (must be unique)
    - **password**: 8+ characters with upper, lower, digit and special
    """
    principal = await auth_service.register(data.name, data.email, data.password)
    return PrincipalResponse.from_principal(principal)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="Login and get a session token",
)
async def login(
    data: UserLoginRequest,
    request: Request,
    auth_service: AuthService = Depends(get_auth_service),
) -> AuthResponse:
    """
    Authenticate with email, password and, when enabled, a TOTP code.

    Accounts with MFA answer 401 with code MFA_REQUIRED until the code
    is resubmitted together with the password.
    """
    principal = await auth_service.authenticate(
        data.email, data.password, data.mfa_code, ip=client_ip(request)
    )

    return AuthResponse(
        access_token=create_access_token(principal),
        expires_in=get_token_expiry_seconds(),
        user=PrincipalResponse.from_principal(principal),
    )


@router.post(
    "/mfa/secret",
    response_model=MfaSecretResponse,
    summary="Generate an MFA secret",
)
async def generate_mfa_secret(
    principal: Principal = Depends(get_current_principal),
    mfa_service: MfaService = Depends(get_mfa_service),
) -> MfaSecretResponse:
    """Issue a fresh TOTP secret. Nothing is stored until /mfa/enable."""
    enrollment = await mfa_service.generate_secret(principal.id)
    return MfaSecretResponse(
        secret=enrollment.secret,
        email=enrollment.email,
        provisioning_uri=enrollment.provisioning_uri,
    )


@router.post(
    "/mfa/enable",
    response_model=MessageResponse,
    summary="Enable MFA",
)
async def enable_mfa(
    data: MfaEnableRequest,
    principal: Principal = Depends(get_current_principal),
    mfa_service: MfaService = Depends(get_mfa_service),
) -> MessageResponse:
    """Confirm the secret with a current code and turn MFA on."""
    await mfa_service.enable(principal.id, data.secret, data.token)
    return MessageResponse(message="MFA enabled")


@router.patch(
    "/profile",
    response_model=PrincipalResponse,
    summary="Update profile",
)
async def update_profile(
    data: ProfileUpdateRequest,
    principal: Principal = Depends(get_current_principal),
    auth_service: AuthService = Depends(get_auth_service),
) -> PrincipalResponse:
    """Change display name and, optionally, password."""
    updated = await auth_service.update_profile(principal.id, data.name, data.password)
    return PrincipalResponse.from_principal(updated)

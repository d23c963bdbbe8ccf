"""
FastAPI Dependencies

Wires stores, the audit logger and the services for each request, and
resolves the bearer token into a principal.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from multiguard.api.access.audit import AuditLogger, SqlAuditSink
from multiguard.api.access.engine import AccessDecisionEngine
from multiguard.api.auth.jwt import verify_token
from multiguard.api.auth.mfa import MfaService
from multiguard.api.auth.service import AuthService
from multiguard.api.config import Settings, get_settings
from multiguard.api.db.session import get_db, get_session_maker
from multiguard.api.db.stores import (
    IdentityStore,
    ResourceStore,
    SqlIdentityStore,
    SqlResourceStore,
)
from multiguard.api.domain import Principal
from multiguard.core.clock import Clock, get_clock


security = HTTPBearer()

_audit_logger: Optional[AuditLogger] = None


def get_audit_logger() -> AuditLogger:
    """Process-wide audit logger writing to the audit_logs table."""
    global _audit_logger
    if _audit_logger is None:
        _audit_logger = AuditLogger(sink=SqlAuditSink(get_session_maker()))
    return _audit_logger


def get_request_clock() -> Clock:
    return get_clock()


def get_identity_store(db: AsyncSession = Depends(get_db)) -> IdentityStore:
    return SqlIdentityStore(db)


def get_resource_store(db: AsyncSession = Depends(get_db)) -> ResourceStore:
    return SqlResourceStore(db)


def get_auth_service(
    identities: IdentityStore = Depends(get_identity_store),
    audit: AuditLogger = Depends(get_audit_logger),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_request_clock),
) -> AuthService:
    """Dependency to get auth service."""
    return AuthService(identities, audit, settings=settings, clock=clock)


def get_mfa_service(
    identities: IdentityStore = Depends(get_identity_store),
    audit: AuditLogger = Depends(get_audit_logger),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_request_clock),
) -> MfaService:
    """Dependency to get MFA enrollment service."""
    return MfaService(identities, audit, settings=settings, clock=clock)


def get_access_engine(
    resources: ResourceStore = Depends(get_resource_store),
    audit: AuditLogger = Depends(get_audit_logger),
    settings: Settings = Depends(get_settings),
    clock: Clock = Depends(get_request_clock),
) -> AccessDecisionEngine:
    """Dependency to get the access decision engine."""
    return AccessDecisionEngine(resources, audit, settings=settings, clock=clock)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials = Depends(security),
    identities: IdentityStore = Depends(get_identity_store),
) -> Principal:
    """
    Get the current authenticated principal from the bearer token.

    Raises:
        HTTPException: If token is invalid or identity not found
    """
    payload = verify_token(credentials.credentials, "access")

    if not payload:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )

    identity = await identities.find_by_id(payload["sub"])

    if not identity:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
        )

    return identity.to_principal()


def client_ip(request: Request) -> str:
    """Best-known client address for audit records."""
    if request.client and request.client.host:
        return request.client.host
    return "127.0.0.1"

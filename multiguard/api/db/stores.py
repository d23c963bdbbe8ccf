"""
Identity and Resource Stores

Keyed accessors the security core depends on. The core never talks to
SQLAlchemy directly; it sees Identity / Resource dataclasses and a
StoreUnavailableError when the backing store fails.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional, Protocol

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from multiguard.api.db.models import ResourceRecord, User
from multiguard.api.domain import Identity, Resource, normalize_id
from multiguard.core.exceptions import InputError, StoreUnavailableError


logger = logging.getLogger(__name__)


class IdentityStore(Protocol):
    """Identity lookup and persistence."""

    async def find_by_email(self, email: str) -> Optional[Identity]: ...

    async def find_by_id(self, identity_id: str) -> Optional[Identity]: ...

    async def save(self, identity: Identity) -> None: ...


class ResourceStore(Protocol):
    """Resource lookup."""

    async def find_by_id(self, resource_id: str) -> Optional[Resource]: ...

    async def list_all(self) -> List[Resource]: ...


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite drops tzinfo on the way back
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def identity_from_row(user: User) -> Identity:
    """Map a User row to the domain Identity."""
    return Identity(
        id=user.id,
        name=user.name,
        email=user.email,
        password_hash=user.password_hash,
        role=user.role,
        clearance_level=user.clearance_level,
        department=user.department or "",
        status=user.status,
        login_attempts=user.login_attempts or 0,
        lock_until=_as_utc(user.lock_until),
        mfa_secret=user.mfa_secret,
        is_mfa_enabled=bool(user.is_mfa_enabled),
    )


def resource_from_row(row: ResourceRecord) -> Resource:
    """Map a ResourceRecord row to the domain Resource."""
    return Resource.create(
        id=row.id,
        name=row.name,
        sensitivity_level=row.sensitivity_level,
        owner_id=row.owner_id,
        shared_with=row.shared_with or [],
    )


# ============================================================
# SQLAlchemy stores
# ============================================================


class SqlIdentityStore:
    """Identity store backed by the users table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_email(self, email: str) -> Optional[Identity]:
        """Get identity by email address."""
        try:
            result = await self.db.execute(
                select(User).where(User.email == email)
            )
            user = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(operation="find_by_email") from e
        return identity_from_row(user) if user else None

    async def find_by_id(self, identity_id: str) -> Optional[Identity]:
        """Get identity by ID."""
        try:
            user = await self.db.get(User, normalize_id(identity_id))
        except SQLAlchemyError as e:
            raise StoreUnavailableError(operation="find_by_id") from e
        return identity_from_row(user) if user else None

    async def save(self, identity: Identity) -> None:
        """
        Insert or update an identity.

        Raises:
            InputError: If the email is already taken by another row
            StoreUnavailableError: If the write fails; nothing is persisted
        """
        try:
            user = await self.db.get(User, identity.id)
            if user is None:
                user = User(id=identity.id)
                self.db.add(user)

            user.name = identity.name
            user.email = identity.email
            user.password_hash = identity.password_hash
            user.role = identity.role.value
            user.clearance_level = identity.clearance_level
            user.department = identity.department
            user.status = identity.status.value
            user.login_attempts = identity.login_attempts
            user.lock_until = identity.lock_until
            user.mfa_secret = identity.mfa_secret
            user.is_mfa_enabled = identity.is_mfa_enabled

            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            raise InputError("Email already registered", field="email") from e
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error("Identity save failed for %s: %s", identity.id, e)
            raise StoreUnavailableError(operation="save") from e


class SqlResourceStore:
    """Resource store backed by the resources table."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_id(self, resource_id: str) -> Optional[Resource]:
        try:
            row = await self.db.get(ResourceRecord, normalize_id(resource_id))
        except SQLAlchemyError as e:
            raise StoreUnavailableError(operation="find_resource") from e
        return resource_from_row(row) if row else None

    async def list_all(self) -> List[Resource]:
        try:
            result = await self.db.execute(
                select(ResourceRecord).order_by(ResourceRecord.name)
            )
            rows = result.scalars().all()
        except SQLAlchemyError as e:
            raise StoreUnavailableError(operation="list_resources") from e
        return [resource_from_row(row) for row in rows]


# ============================================================
# In-memory stores
# ============================================================


class MemoryIdentityStore:
    """Dict-backed identity store. Hands out copies, never live records."""

    def __init__(self, identities: Optional[List[Identity]] = None):
        self._by_id: Dict[str, Identity] = {}
        for identity in identities or []:
            self._by_id[identity.id] = identity.copy()

    async def find_by_email(self, email: str) -> Optional[Identity]:
        for identity in self._by_id.values():
            if identity.email == email:
                return identity.copy()
        return None

    async def find_by_id(self, identity_id: str) -> Optional[Identity]:
        identity = self._by_id.get(normalize_id(identity_id))
        return identity.copy() if identity else None

    async def save(self, identity: Identity) -> None:
        for other in self._by_id.values():
            if other.email == identity.email and other.id != identity.id:
                raise InputError("Email already registered", field="email")
        self._by_id[identity.id] = identity.copy()


class MemoryResourceStore:
    """Dict-backed resource store."""

    def __init__(self, resources: Optional[List[Resource]] = None):
        self._by_id: Dict[str, Resource] = {r.id: r for r in resources or []}

    async def find_by_id(self, resource_id: str) -> Optional[Resource]:
        return self._by_id.get(normalize_id(resource_id))

    async def list_all(self) -> List[Resource]:
        return sorted(self._by_id.values(), key=lambda r: r.name)

    def add(self, resource: Resource) -> None:
        self._by_id[resource.id] = resource

"""
Domain Models

Identity, Resource and the value objects passed between the
authentication lifecycle, the access decision engine and the stores.
The stores own these records; the core only borrows copies.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Iterable, Optional

from multiguard.core.exceptions import InputError


class Role(str, Enum):
    """Closed set of roles."""

    ADMIN = "Admin"
    MANAGER = "Manager"
    EMPLOYEE = "Employee"
    HR = "HR"


class AccountStatus(str, Enum):
    """Account activation state."""

    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Sensitivity(str, Enum):
    """Resource sensitivity labels, lowest first."""

    PUBLIC = "Public"
    INTERNAL = "Internal"
    CONFIDENTIAL = "Confidential"

    @property
    def level(self) -> int:
        return SENSITIVITY_LEVELS[self]


SENSITIVITY_LEVELS: dict[Sensitivity, int] = {
    Sensitivity.PUBLIC: 1,
    Sensitivity.INTERNAL: 2,
    Sensitivity.CONFIDENTIAL: 3,
}


def normalize_id(value: object) -> str:
    """Canonical string form of an identity reference."""
    return str(value).strip()


@dataclass
class Identity:
    """
    Stored principal, including secret material.

    password_hash and mfa_secret never leave the authentication
    component; callers receive a Principal instead.
    """

    id: str
    name: str
    email: str
    password_hash: str
    role: Role = Role.EMPLOYEE
    clearance_level: int = 1
    department: str = "General"
    status: AccountStatus = AccountStatus.ACTIVE
    login_attempts: int = 0
    lock_until: Optional[datetime] = None
    mfa_secret: Optional[str] = None
    is_mfa_enabled: bool = False

    def __post_init__(self):
        self.id = normalize_id(self.id)
        try:
            self.role = Role(self.role)
            self.status = AccountStatus(self.status)
        except ValueError as e:
            raise InputError(str(e)) from e
        if self.clearance_level < 1:
            raise InputError("clearance_level must be >= 1", field="clearance_level")
        if self.login_attempts < 0:
            raise InputError("login_attempts must be >= 0", field="login_attempts")

    def is_locked(self, now: datetime) -> bool:
        """Locked if a lock is set and has not yet expired."""
        return self.lock_until is not None and now < self.lock_until

    def copy(self) -> "Identity":
        return replace(self)

    def to_principal(self) -> "Principal":
        return Principal(
            id=self.id,
            name=self.name,
            email=self.email,
            role=self.role,
            clearance_level=self.clearance_level,
            department=self.department,
            status=self.status,
            is_mfa_enabled=self.is_mfa_enabled,
        )


@dataclass(frozen=True)
class Principal:
    """Authenticated identity without secret fields."""

    id: str
    name: str
    email: str
    role: Role
    clearance_level: int
    department: str
    status: AccountStatus
    is_mfa_enabled: bool = False

    @property
    def attributes(self) -> "SubjectAttributes":
        return SubjectAttributes(department=self.department, status=self.status)


@dataclass(frozen=True)
class SubjectAttributes:
    """Fixed attribute set consulted by ABAC policies."""

    department: str
    status: AccountStatus


@dataclass(frozen=True)
class Resource:
    """Access-controlled object for MAC and DAC checks."""

    id: str
    name: str = ""
    sensitivity_level: Sensitivity = Sensitivity.PUBLIC
    owner_id: Optional[str] = None
    shared_with: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def create(
        cls,
        id: object,
        name: str = "",
        sensitivity_level: str = Sensitivity.PUBLIC,
        owner_id: Optional[object] = None,
        shared_with: Iterable[object] = (),
    ) -> "Resource":
        """Build a Resource, normalising every identity reference to str."""
        try:
            sensitivity = Sensitivity(sensitivity_level)
        except ValueError as e:
            raise InputError(str(e), field="sensitivity_level") from e
        return cls(
            id=normalize_id(id),
            name=name,
            sensitivity_level=sensitivity,
            owner_id=normalize_id(owner_id) if owner_id is not None else None,
            shared_with=frozenset(normalize_id(s) for s in shared_with),
        )

"""
Multiguard - Access Control Policies

Pure predicates for the five access-control models. No I/O, no clock
reads: every input is passed in, so each rule is testable on its own.
"""

from typing import Callable, Optional

from multiguard.api.domain import (
    SENSITIVITY_LEVELS,
    AccountStatus,
    Resource,
    Role,
    Sensitivity,
    SubjectAttributes,
    normalize_id,
)


# ============================================================
# MAC: clearance vs. sensitivity label
# ============================================================


def required_level(sensitivity: Sensitivity) -> int:
    """Numeric level a subject needs for a sensitivity label."""
    return SENSITIVITY_LEVELS[Sensitivity(sensitivity)]


def check_mac(clearance_level: int, sensitivity: Sensitivity) -> bool:
    """Allowed iff clearance is at least the label's level."""
    return clearance_level >= required_level(sensitivity)


# ============================================================
# DAC: ownership or explicit sharing
# ============================================================


def check_dac(subject_id: object, resource: Optional[Resource]) -> bool:
    """Owner or member of the share set. Missing resource denies."""
    if resource is None:
        return False

    subject = normalize_id(subject_id)
    if resource.owner_id is not None and normalize_id(resource.owner_id) == subject:
        return True

    return any(normalize_id(member) == subject for member in resource.shared_with)


# ============================================================
# RBAC: role membership
# ============================================================


def check_rbac(role: str, required_role: str) -> bool:
    """
    Exact role match, with Admin as a universal override.

    The override is deliberate policy: Admin passes every role check.
    There is no other hierarchy.
    """
    role_value = role.value if isinstance(role, Role) else str(role)
    required_value = required_role.value if isinstance(required_role, Role) else str(required_role)

    if role_value == Role.ADMIN.value:
        return True
    return role_value == required_value


# ============================================================
# RuBAC: time-of-day rule
# ============================================================


def check_rubac(hour: int, start: int = 9, end: int = 17) -> bool:
    """Allowed iff start <= hour < end (server local time)."""
    return start <= hour < end


# ============================================================
# ABAC: attribute predicates per action
# ============================================================


AbacPredicate = Callable[[SubjectAttributes], bool]


ABAC_POLICIES: dict[str, AbacPredicate] = {
    # Payroll staff may view salaries, but only while active
    "VIEW_SALARY": lambda s: s.department == "Payroll" and s.status == AccountStatus.ACTIVE,
    # IT staff may access server configuration
    "ACCESS_SERVER": lambda s: s.department == "IT",
}


def has_abac_policy(action: str) -> bool:
    return action in ABAC_POLICIES


def check_abac(attributes: SubjectAttributes, action: str) -> bool:
    """Evaluate the action's predicate. Unknown actions deny."""
    predicate = ABAC_POLICIES.get(action)
    if predicate is None:
        return False
    return bool(predicate(attributes))

"""
Tests for Domain Models and Exceptions
======================================

Identity validation, lock state, resource normalisation, the virtual
clock, the structured error hierarchy, settings constraints and the
registration password policy.
"""

from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from multiguard.api.auth.schemas import UserRegisterRequest
from multiguard.api.config import Settings
from multiguard.api.domain import AccountStatus, Identity, Resource, Role, Sensitivity
from multiguard.api.main import status_for
from multiguard.core.clock import FixedClock
from multiguard.core.exceptions import (
    AccountLockedError,
    AuthenticationError,
    CipherError,
    InputError,
    InvalidCredentialsError,
    MfaRequiredError,
    PolicyDenied,
    StoreUnavailableError,
)


NOW = datetime(2024, 3, 4, 12, 0, tzinfo=timezone.utc)


def make_identity(**overrides) -> Identity:
    fields = dict(id="u-1", name="Alice", email="alice@example.com", password_hash="x")
    fields.update(overrides)
    return Identity(**fields)


class TestIdentity:
    """Tests for the stored identity record."""

    def test_defaults(self):
        identity = make_identity()
        assert identity.role == Role.EMPLOYEE
        assert identity.status == AccountStatus.ACTIVE
        assert identity.login_attempts == 0
        assert identity.lock_until is None
        assert identity.is_mfa_enabled is False

    def test_string_role_and_status_coerced(self):
        identity = make_identity(role="Manager", status="Inactive")
        assert identity.role == Role.MANAGER
        assert identity.status == AccountStatus.INACTIVE

    def test_unknown_role_rejected(self):
        with pytest.raises(InputError):
            make_identity(role="Overlord")

    def test_clearance_must_be_positive(self):
        with pytest.raises(InputError):
            make_identity(clearance_level=0)

    def test_negative_attempts_rejected(self):
        with pytest.raises(InputError):
            make_identity(login_attempts=-1)

    def test_lock_state(self):
        """Locked strictly before lock_until, unlocked from then on."""
        identity = make_identity(lock_until=NOW + timedelta(minutes=15))
        assert identity.is_locked(NOW)
        assert identity.is_locked(NOW + timedelta(minutes=14, seconds=59))
        assert not identity.is_locked(NOW + timedelta(minutes=15))

    def test_no_lock_means_unlocked(self):
        assert not make_identity().is_locked(NOW)

    def test_copy_is_independent(self):
        original = make_identity()
        clone = original.copy()
        clone.login_attempts = 3
        assert original.login_attempts == 0

    def test_principal_carries_no_secrets(self):
        principal = make_identity(mfa_secret="JBSWY3DPEHPK3PXP").to_principal()
        assert not hasattr(principal, "password_hash")
        assert not hasattr(principal, "mfa_secret")
        assert principal.attributes.department == "General"


class TestResource:
    """Tests for resource construction."""

    def test_ids_normalised(self):
        resource = Resource.create(id=5, owner_id=1, shared_with=[2, " 3 "])
        assert resource.id == "5"
        assert resource.owner_id == "1"
        assert resource.shared_with == frozenset({"2", "3"})

    def test_default_label_is_public(self):
        assert Resource.create(id="r").sensitivity_level == Sensitivity.PUBLIC

    def test_unknown_label_rejected(self):
        with pytest.raises(InputError):
            Resource.create(id="r", sensitivity_level="TopSecret")

    def test_sensitivity_levels_ordered(self):
        levels = [s.level for s in Sensitivity]
        assert levels == sorted(levels) == [1, 2, 3]


class TestFixedClock:
    """Tests for the virtual clock."""

    def test_advance(self):
        clock = FixedClock(NOW)
        clock.advance(minutes=15)
        assert clock.now() == NOW + timedelta(minutes=15)

    def test_naive_instant_treated_as_utc(self):
        clock = FixedClock(datetime(2024, 3, 4, 8, 0))
        assert clock.now().tzinfo is timezone.utc
        assert clock.local_hour() == 8


class TestExceptions:
    """Tests for the structured error hierarchy."""

    def test_to_dict(self):
        error = InputError("Missing resource ID", field="resource_id")
        assert error.to_dict() == {
            "error": "InputError",
            "code": "INVALID_INPUT",
            "message": "Missing resource ID",
            "details": {"field": "resource_id"},
        }

    def test_str_includes_code(self):
        assert str(InvalidCredentialsError()) == "[INVALID_CREDENTIALS] Invalid email or password"

    def test_locked_error_carries_unlock_time(self):
        error = AccountLockedError(NOW)
        assert error.unlock_at == NOW
        assert error.details["unlock_at"] == NOW.isoformat()
        assert isinstance(error, AuthenticationError)

    @pytest.mark.parametrize(
        "error,status_code",
        [
            (InputError("bad"), 400),
            (InvalidCredentialsError(), 401),
            (MfaRequiredError(), 401),
            (AccountLockedError(NOW), 423),
            (PolicyDenied("No Discretionary Access granted", model="DAC"), 403),
            (StoreUnavailableError(operation="save"), 503),
            (CipherError("boom"), 503),
        ],
    )
    def test_http_status_mapping(self, error, status_code):
        assert status_for(error) == status_code


class TestSettings:
    """Tests for configuration constraints."""

    def test_lockout_defaults(self):
        settings = Settings()
        assert settings.LOCKOUT_THRESHOLD == 5
        assert settings.LOCKOUT_DURATION_MINUTES == 15

    @pytest.mark.parametrize("field", ["LOCKOUT_THRESHOLD", "LOCKOUT_DURATION_MINUTES"])
    @pytest.mark.parametrize("value", [0, -1])
    def test_lockout_values_must_be_positive(self, field, value):
        with pytest.raises(ValidationError):
            Settings(**{field: value})


class TestRegisterSchema:
    """Tests for the registration password policy."""

    def test_seventy_two_bytes_accepted(self):
        request = UserRegisterRequest(name="Bob", email="bob@example.com", password="Aa1!" + "x" * 68)
        assert len(request.password) == 72

    def test_over_seventy_two_bytes_rejected(self):
        with pytest.raises(ValidationError, match="72 bytes"):
            UserRegisterRequest(name="Bob", email="bob@example.com", password="Aa1!" + "x" * 80)

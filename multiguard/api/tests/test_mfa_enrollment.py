"""
MFA Enrollment Tests

generate_secret() must not persist anything; enable() commits the secret
only when the proof code validates against that same secret.
"""

from datetime import timedelta

import pyotp
import pytest

from multiguard.api.access.audit import AuditAction
from multiguard.api.services.totp import current_code
from multiguard.api.tests.conftest import TEST_PASSWORD
from multiguard.core.exceptions import InputError, InvalidMfaCodeError, MfaRequiredError


@pytest.mark.asyncio
async def test_generate_secret_is_not_persisted(mfa_service, identity_store, audit_sink):
    enrollment = await mfa_service.generate_secret("u-1")

    assert len(enrollment.secret) >= 16
    assert enrollment.email == "alice@example.com"
    assert enrollment.provisioning_uri.startswith("otpauth://totp/")
    assert "issuer=" in enrollment.provisioning_uri

    alice = await identity_store.find_by_id("u-1")
    assert alice.mfa_secret is None
    assert alice.is_mfa_enabled is False
    assert len(audit_sink) == 0


@pytest.mark.asyncio
async def test_each_secret_is_fresh(mfa_service):
    first = await mfa_service.generate_secret("u-1")
    second = await mfa_service.generate_secret("u-1")

    assert first.secret != second.secret


@pytest.mark.asyncio
async def test_generate_secret_for_unknown_identity(mfa_service):
    with pytest.raises(InputError):
        await mfa_service.generate_secret("ghost")


@pytest.mark.asyncio
async def test_enable_with_valid_proof(mfa_service, identity_store, audit_sink, clock):
    enrollment = await mfa_service.generate_secret("u-1")
    proof = current_code(enrollment.secret, clock.now())

    principal = await mfa_service.enable("u-1", enrollment.secret, proof)

    assert principal.is_mfa_enabled
    alice = await identity_store.find_by_id("u-1")
    assert alice.mfa_secret == enrollment.secret
    assert alice.is_mfa_enabled is True
    assert [e.action for e in audit_sink.for_actor("u-1")] == [AuditAction.MFA_ENABLED.value]


@pytest.mark.asyncio
async def test_enable_with_wrong_proof_changes_nothing(mfa_service, identity_store, audit_sink, clock):
    enrollment = await mfa_service.generate_secret("u-1")
    other_secret = pyotp.random_base32()
    proof = current_code(other_secret, clock.now())

    with pytest.raises(InvalidMfaCodeError) as exc_info:
        await mfa_service.enable("u-1", enrollment.secret, proof)

    assert exc_info.value.message == "Invalid Token"
    alice = await identity_store.find_by_id("u-1")
    assert alice.mfa_secret is None
    assert alice.is_mfa_enabled is False
    assert len(audit_sink) == 0


@pytest.mark.asyncio
async def test_enable_rejects_stale_proof(mfa_service, identity_store, clock):
    enrollment = await mfa_service.generate_secret("u-1")
    stale = current_code(enrollment.secret, clock.now() - timedelta(seconds=60))

    with pytest.raises(InvalidMfaCodeError):
        await mfa_service.enable("u-1", enrollment.secret, stale)

    alice = await identity_store.find_by_id("u-1")
    assert alice.is_mfa_enabled is False


@pytest.mark.asyncio
async def test_enable_rejects_non_numeric_proof(mfa_service):
    enrollment = await mfa_service.generate_secret("u-1")

    with pytest.raises(InvalidMfaCodeError):
        await mfa_service.enable("u-1", enrollment.secret, "abcdef")


@pytest.mark.asyncio
async def test_enable_requires_secret(mfa_service):
    with pytest.raises(InputError):
        await mfa_service.enable("u-1", "", "123456")


@pytest.mark.asyncio
async def test_enable_for_unknown_identity(mfa_service, clock):
    secret = pyotp.random_base32()

    with pytest.raises(InputError):
        await mfa_service.enable("ghost", secret, current_code(secret, clock.now()))


@pytest.mark.asyncio
async def test_login_requires_code_after_enrollment(mfa_service, auth_service, clock):
    enrollment = await mfa_service.generate_secret("u-1")
    await mfa_service.enable("u-1", enrollment.secret, current_code(enrollment.secret, clock.now()))

    with pytest.raises(MfaRequiredError):
        await auth_service.authenticate("alice@example.com", TEST_PASSWORD)

    clock.advance(seconds=30)
    principal = await auth_service.authenticate(
        "alice@example.com",
        TEST_PASSWORD,
        current_code(enrollment.secret, clock.now()),
    )
    assert principal.id == "u-1"

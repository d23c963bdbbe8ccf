"""
Multiguard API Test Suite

Test Categories:
1. Service tests - authentication lifecycle, MFA enrollment, access engine
2. Audit tests - encryption, ordering, failure isolation
3. Store tests - SQLAlchemy stores against in-memory SQLite
4. End-to-end tests - HTTP flows through the FastAPI app

Test Files:
- conftest.py: Shared fixtures (clock, stores, audit logger, database, clients)
- test_auth_lifecycle.py: Lockout and MFA gating state machine
- test_mfa_enrollment.py: Two-step MFA enable protocol
- test_access_engine.py: Decision engine dispatch, reasons and auditing
- test_audit_log.py: Encrypted append-only audit trail
- test_sql_stores.py: Identity/resource stores and failure mapping
- test_e2e_access_flow.py: Register, login, MFA, access checks over HTTP

Run Commands:
    # All tests
    pytest -v
"""

"""
Multiguard Test Configuration
=============================

Pytest configuration for the unit tests. Service, store and HTTP
fixtures live in multiguard/api/tests/conftest.py.
"""

import os


# Deterministic secrets for anything that reads module-level settings
os.environ.setdefault("LOG_ENCRYPTION_KEY", "unit-test-log-key")
os.environ.setdefault("JWT_SECRET_KEY", "unit-test-jwt-secret")

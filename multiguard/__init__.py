"""
Multiguard - Access Control Demonstration Service

Five access-control models (MAC, DAC, RBAC, RuBAC, ABAC), a login
lifecycle with lockout and TOTP, and an encrypted audit trail.
"""

__version__ = "1.0.0"

"""
Authorization Module

Role lookups, the pluggable AuthorizationProvider and FastAPI guards.

This module is part of SMARTMART_POLICY.
"""

from .dependencies import (get_authz_provider, get_request_identity,
                           require_access)
from .provider import AuthorizationProvider, PolicyAuthorizationProvider
from .roles import (AsyncInMemoryRoleLookup, AsyncRoleLookup,
                    InMemoryRoleLookup, MongoRoleLookup, MotorRoleLookup,
                    RoleLookup)

__all__ = [
    # Roles
    "RoleLookup",
    "AsyncRoleLookup",
    "InMemoryRoleLookup",
    "AsyncInMemoryRoleLookup",
    "MongoRoleLookup",
    "MotorRoleLookup",
    # Provider
    "AuthorizationProvider",
    "PolicyAuthorizationProvider",
    # Dependencies
    "get_authz_provider",
    "get_request_identity",
    "require_access",
]

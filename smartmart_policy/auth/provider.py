"""
Authorization Provider Interface

Exposes the SmartMart rules through the pluggable AuthorizationProvider
contract used by MongoDB-backed apps, so route guards can ask
``await authz.check(subject, resource, action)`` without knowing how the
decision is made.

This module is part of SMARTMART_POLICY.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol

from ..rules.evaluator import AsyncPolicyEvaluator
from ..rules.request import Service
from .roles import AsyncRoleLookup

logger = logging.getLogger(__name__)


class AuthorizationProvider(Protocol):
    """
    Defines the "contract" for any pluggable authorization provider.
    """

    async def check(
        self,
        subject: str,
        resource: str,
        action: str,
        user_object: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Checks if a subject is allowed to perform an action on a resource.
        """
        ...


class PolicyAuthorizationProvider:
    """
    Implements the AuthorizationProvider interface with the SmartMart rules.

    ``resource`` is a resource path (``products/abc``). Documents involved
    in the request travel in ``user_object``:

        {"existing": {...}, "incoming": {...}, "service": "storage"}

    No decision is cached: a role change applies to the next check.
    """

    def __init__(self, evaluator: AsyncPolicyEvaluator):
        """
        Initializes the provider with a configured async evaluator.
        """
        self._evaluator = evaluator
        logger.info("✔️  PolicyAuthorizationProvider initialized (no decision cache).")

    @classmethod
    def from_role_lookup(
        cls, role_lookup: AsyncRoleLookup, **kwargs: Any
    ) -> PolicyAuthorizationProvider:
        return cls(AsyncPolicyEvaluator(role_lookup, **kwargs))

    async def check(
        self,
        subject: str,
        resource: str,
        action: str,
        user_object: Optional[Dict[str, Any]] = None,
    ) -> bool:
        """
        Performs the authorization check. Never raises; anything that
        cannot be evaluated is denied.
        """
        context = user_object or {}
        decision = await self._evaluator.evaluate(
            subject or None,
            action,
            resource,
            existing=context.get("existing"),
            incoming=context.get("incoming"),
            service=context.get("service", Service.FIRESTORE),
        )
        return decision.allowed

"""
Policy Evaluator

Decides whether an access request is allowed. Evaluation walks the grants
applicable to the request in order and allows on the first grant that
holds; when none holds, or when the request cannot be understood, the
answer is Deny. Nothing here raises to the caller.

The caller's role is looked up lazily, only when a grant needs it and only
for authenticated callers, and at most once per evaluation. Lookup results
are never reused across evaluations.

Usage:
    evaluator = PolicyEvaluator(MongoRoleLookup(db.users))
    decision = evaluator.evaluate("u1", "update", "products/abc",
                                  existing={"stock": 3}, incoming={"stock": 2})
    if decision.allowed:
        ...

This module is part of SMARTMART_POLICY.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from ..constants import ADMIN_ROLE
from ..exceptions import PolicyError
from ..observability.logging import log_decision
from .grants import DEFAULT_RULES, Grant, RuleSet, find_grants
from .request import AccessRequest, Action, Decision, ResourcePath, Service

if TYPE_CHECKING:
    from ..auth.roles import AsyncRoleLookup, RoleLookup

logger = logging.getLogger(__name__)


class _EvaluatorBase:
    """Request building and decision bookkeeping shared by both evaluators."""

    def __init__(self, rules: Sequence[RuleSet] = DEFAULT_RULES, admin_role: str = ADMIN_ROLE):
        self._rules = tuple(rules)
        self._admin_role = admin_role

    def _build_request(
        self,
        identity: str | None,
        action: Action | str,
        path: ResourcePath | str,
        existing: Mapping[str, Any] | None,
        incoming: Mapping[str, Any] | None,
        service: Service | str,
    ) -> AccessRequest | None:
        try:
            return AccessRequest.build(identity, action, path, existing, incoming, service)
        except PolicyError as e:
            logger.warning(f"Malformed access request denied: {e}")
            log_decision(logger, False, identity=identity, action=action, path=path)
            return None

    def _check_grant(self, grant: Grant, request: AccessRequest, is_admin: bool) -> bool:
        try:
            return grant.allows(request, is_admin)
        except (AttributeError, TypeError, ValueError, KeyError) as e:
            # A predicate that cannot be evaluated does not grant.
            logger.warning(f"Grant '{grant.name}' could not be evaluated for {request.path}: {e}")
            return False

    def _finish(self, request: AccessRequest, grant: Grant | None) -> Decision:
        log_decision(
            logger,
            grant is not None,
            grant=grant.name if grant else None,
            identity=request.identity,
            action=request.action.value,
            path=str(request.path),
            service=request.path.service.value,
        )
        return Decision.of(grant is not None)

    def _role_is_admin(self, identity: str, role: str | None) -> bool:
        logger.debug(f"Role lookup for '{identity}': {role!r}")
        return role is not None and role == self._admin_role

    def _lookup_failed(self, identity: str, error: Exception) -> bool:
        logger.error(
            f"Role lookup failed for '{identity}', treating as non-admin: {error}",
            exc_info=True,
        )
        return False


class PolicyEvaluator(_EvaluatorBase):
    """
    Synchronous evaluator.

    Stateless apart from its configuration: a single instance can be shared
    across threads, provided the role lookup supports concurrent reads.
    """

    def __init__(
        self,
        role_lookup: RoleLookup,
        rules: Sequence[RuleSet] = DEFAULT_RULES,
        admin_role: str = ADMIN_ROLE,
    ):
        """
        Args:
            role_lookup: Source of user roles
            rules: Rule sets to evaluate against
            admin_role: Role value that satisfies admin grants
        """
        super().__init__(rules, admin_role)
        self._role_lookup = role_lookup

    def is_admin(self, identity: str | None) -> bool:
        """
        Whether ``identity`` currently holds the admin role.

        Unauthenticated callers are never looked up; missing records and
        lookup failures resolve to False.
        """
        if not identity:
            return False
        try:
            role = self._role_lookup.get_user_role(identity)
        except Exception as e:
            return self._lookup_failed(identity, e)
        return self._role_is_admin(identity, role)

    def evaluate(
        self,
        identity: str | None,
        action: Action | str,
        path: ResourcePath | str,
        existing: Mapping[str, Any] | None = None,
        incoming: Mapping[str, Any] | None = None,
        service: Service | str = Service.FIRESTORE,
    ) -> Decision:
        """
        Evaluate an access attempt.

        Args:
            identity: Verified subject id, None when unauthenticated
            action: Action name or ``Action``
            path: ``collection/id`` (or storage object path)
            existing: Stored document, if any
            incoming: Document as it would be after the write
            service: ``firestore`` or ``storage``

        Returns:
            Decision.ALLOW or Decision.DENY
        """
        request = self._build_request(identity, action, path, existing, incoming, service)
        if request is None:
            return Decision.DENY
        return self.evaluate_request(request)

    def evaluate_request(self, request: AccessRequest) -> Decision:
        """Evaluate a prepared request."""
        is_admin: bool | None = None
        for grant in find_grants(request, self._rules):
            if grant.needs_role and is_admin is None:
                is_admin = self.is_admin(request.identity)
            if self._check_grant(grant, request, bool(is_admin)):
                return self._finish(request, grant)
        return self._finish(request, None)


class AsyncPolicyEvaluator(_EvaluatorBase):
    """
    Asynchronous evaluator for apps whose role source is async (motor).

    Same rules and decisions as ``PolicyEvaluator``.
    """

    def __init__(
        self,
        role_lookup: AsyncRoleLookup,
        rules: Sequence[RuleSet] = DEFAULT_RULES,
        admin_role: str = ADMIN_ROLE,
    ):
        super().__init__(rules, admin_role)
        self._role_lookup = role_lookup

    async def is_admin(self, identity: str | None) -> bool:
        if not identity:
            return False
        try:
            role = await self._role_lookup.get_user_role(identity)
        except Exception as e:
            return self._lookup_failed(identity, e)
        return self._role_is_admin(identity, role)

    async def evaluate(
        self,
        identity: str | None,
        action: Action | str,
        path: ResourcePath | str,
        existing: Mapping[str, Any] | None = None,
        incoming: Mapping[str, Any] | None = None,
        service: Service | str = Service.FIRESTORE,
    ) -> Decision:
        request = self._build_request(identity, action, path, existing, incoming, service)
        if request is None:
            return Decision.DENY
        return await self.evaluate_request(request)

    async def evaluate_request(self, request: AccessRequest) -> Decision:
        is_admin: bool | None = None
        for grant in find_grants(request, self._rules):
            if grant.needs_role and is_admin is None:
                is_admin = await self.is_admin(request.identity)
            if self._check_grant(grant, request, bool(is_admin)):
                return self._finish(request, grant)
        return self._finish(request, None)


def evaluate(
    identity: str | None,
    action: Action | str,
    path: ResourcePath | str,
    role_lookup: RoleLookup,
    existing: Mapping[str, Any] | None = None,
    incoming: Mapping[str, Any] | None = None,
    service: Service | str = Service.FIRESTORE,
) -> Decision:
    """
    One-shot evaluation against the default rules.

    Equivalent to ``PolicyEvaluator(role_lookup).evaluate(...)``.
    """
    return PolicyEvaluator(role_lookup).evaluate(
        identity, action, path, existing=existing, incoming=incoming, service=service
    )

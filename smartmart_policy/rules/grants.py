"""
Access Grants

Declares the SmartMart access rules as ordered lists of named grants. Each
grant is a single predicate; a request is allowed when any grant that
applies to its action holds. Grants are listed broad-before-specific, so a
``write`` grant is always tried before the ``update`` grant on the same
collection.

Grants that need the caller's admin status say so with ``needs_role``; the
evaluator then resolves the role (at most once per evaluation) before
calling the predicate.

This module is part of SMARTMART_POLICY.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from numbers import Real

from ..constants import (
    MIN_STOCK,
    ORDER_OWNER_FIELD,
    ORDERS_COLLECTION,
    PRODUCTS_COLLECTION,
    STOCK_FIELD,
    STOCK_UPDATE_FIELDS,
    USERS_COLLECTION,
)
from .request import AccessRequest, Action, ResourcePath, Service

Predicate = Callable[[AccessRequest, bool], bool]
"""Grant predicate: ``(request, is_admin) -> bool``."""


@dataclass(frozen=True)
class Grant:
    """
    A single named permission.

    Attributes:
        name: Identifier used in decision logs
        action: Action the grant is declared on (covers granular actions)
        predicate: Condition that must hold for the grant to allow
        needs_role: Whether the predicate reads the caller's admin status
    """

    name: str
    action: Action
    predicate: Predicate
    needs_role: bool = False

    def applies_to(self, action: Action) -> bool:
        return self.action.covers(action)

    def allows(self, request: AccessRequest, is_admin: bool = False) -> bool:
        return bool(self.predicate(request, is_admin))


@dataclass(frozen=True)
class RuleSet:
    """
    Grants attached to one collection of one service.

    Attributes:
        service: Backend the rules belong to
        collection: First path segment the rules match
        grants: Grants in evaluation order
        recursive: Match every path beneath the collection instead of
                   only ``collection/id``
    """

    service: Service
    collection: str
    grants: tuple[Grant, ...]
    recursive: bool = False

    def matches(self, path: ResourcePath) -> bool:
        if path.service is not self.service or path.collection != self.collection:
            return False
        return self.recursive or path.document_id is not None

    def grants_for(self, action: Action) -> list[Grant]:
        return [grant for grant in self.grants if grant.applies_to(action)]


# ============================================================================
# PREDICATES
# ============================================================================


def always(request: AccessRequest, is_admin: bool) -> bool:
    return True


def admin_only(request: AccessRequest, is_admin: bool) -> bool:
    return request.authenticated and is_admin


def owns_order(request: AccessRequest, is_admin: bool) -> bool:
    """
    The caller is the order's ``userId``; a new order is judged by its incoming copy.

    Unlike the Firestore rule this replaces, which reads only the stored
    ``userId`` and so leaves order creation to admins, customers may create
    orders they own.
    """
    if not request.authenticated:
        return False
    document = request.existing if request.existing is not None else request.incoming
    if document is None:
        return False
    return document.get(ORDER_OWNER_FIELD) == request.identity


def owns_profile(request: AccessRequest, is_admin: bool) -> bool:
    return request.authenticated and request.path.document_id == request.identity


def _valid_stock(value: object) -> bool:
    # bool is an int subclass but never a stock level
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return value >= MIN_STOCK


def stock_only_update(request: AccessRequest, is_admin: bool) -> bool:
    """Only ``stock`` changes, and the new stock is non-negative."""
    if not request.authenticated or request.incoming is None:
        return False
    if not request.changed_fields <= STOCK_UPDATE_FIELDS:
        return False
    return _valid_stock(request.incoming.get(STOCK_FIELD))


# ============================================================================
# RULE SETS
# ============================================================================

PRODUCT_RULES = RuleSet(
    service=Service.FIRESTORE,
    collection=PRODUCTS_COLLECTION,
    grants=(
        Grant("products.public_read", Action.READ, always),
        Grant("products.admin_write", Action.WRITE, admin_only, needs_role=True),
        Grant("products.stock_update", Action.UPDATE, stock_only_update),
    ),
)

ORDER_RULES = RuleSet(
    service=Service.FIRESTORE,
    collection=ORDERS_COLLECTION,
    grants=(
        Grant("orders.owner_read", Action.READ, owns_order),
        Grant("orders.admin_read", Action.READ, admin_only, needs_role=True),
        Grant("orders.owner_write", Action.WRITE, owns_order),
        Grant("orders.admin_write", Action.WRITE, admin_only, needs_role=True),
    ),
)

USER_RULES = RuleSet(
    service=Service.FIRESTORE,
    collection=USERS_COLLECTION,
    grants=(
        Grant("users.self_read", Action.READ, owns_profile),
        Grant("users.admin_read", Action.READ, admin_only, needs_role=True),
        Grant("users.self_write", Action.WRITE, owns_profile),
        Grant("users.admin_write", Action.WRITE, admin_only, needs_role=True),
    ),
)

PRODUCT_IMAGE_RULES = RuleSet(
    service=Service.STORAGE,
    collection=PRODUCTS_COLLECTION,
    grants=(
        Grant("storage.products.public_read", Action.READ, always),
        Grant("storage.products.admin_write", Action.WRITE, admin_only, needs_role=True),
    ),
    recursive=True,
)

DEFAULT_RULES: tuple[RuleSet, ...] = (
    PRODUCT_RULES,
    ORDER_RULES,
    USER_RULES,
    PRODUCT_IMAGE_RULES,
)


def find_grants(request: AccessRequest, rules: Sequence[RuleSet] = DEFAULT_RULES) -> list[Grant]:
    """
    Grants applicable to a request, in evaluation order.

    Returns an empty list when no rule set matches the path.
    """
    grants: list[Grant] = []
    for rule_set in rules:
        if rule_set.matches(request.path):
            grants.extend(rule_set.grants_for(request.action))
    return grants

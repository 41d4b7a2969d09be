"""
Access Rules

Request types, the SmartMart grant tables and the evaluators that apply them.

This module is part of SMARTMART_POLICY.
"""

from .evaluator import AsyncPolicyEvaluator, PolicyEvaluator, evaluate
from .grants import (
    DEFAULT_RULES,
    ORDER_RULES,
    PRODUCT_IMAGE_RULES,
    PRODUCT_RULES,
    USER_RULES,
    Grant,
    RuleSet,
    find_grants,
)
from .request import AccessRequest, Action, Decision, ResourcePath, Service, affected_keys

__all__ = [
    # Evaluation
    "PolicyEvaluator",
    "AsyncPolicyEvaluator",
    "evaluate",
    # Requests
    "AccessRequest",
    "Action",
    "Decision",
    "ResourcePath",
    "Service",
    "affected_keys",
    # Grants
    "Grant",
    "RuleSet",
    "find_grants",
    "DEFAULT_RULES",
    "PRODUCT_RULES",
    "ORDER_RULES",
    "USER_RULES",
    "PRODUCT_IMAGE_RULES",
]

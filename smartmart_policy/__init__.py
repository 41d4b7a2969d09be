"""
SMARTMART_POLICY - SmartMart Access Policy

Authorization policy evaluator for the SmartMart document database and
product image storage: decides, for a verified identity, an action and a
target document, whether the access is allowed.
"""

# Authorization
from .auth import (AsyncInMemoryRoleLookup, AuthorizationProvider,
                   InMemoryRoleLookup, MongoRoleLookup, MotorRoleLookup,
                   PolicyAuthorizationProvider, require_access)
# Configuration
from .config import PolicySettings
# Document shapes
from .models import Order, Product, UserRecord
# Rules and evaluation
from .rules import (AccessRequest, Action, AsyncPolicyEvaluator, Decision,
                    PolicyEvaluator, ResourcePath, Service, evaluate)

__version__ = "0.1.0"

__all__ = [
    # Evaluation
    "PolicyEvaluator",
    "AsyncPolicyEvaluator",
    "evaluate",
    "AccessRequest",
    "Action",
    "Decision",
    "ResourcePath",
    "Service",
    # Auth
    "AuthorizationProvider",
    "PolicyAuthorizationProvider",
    "InMemoryRoleLookup",
    "AsyncInMemoryRoleLookup",
    "MongoRoleLookup",
    "MotorRoleLookup",
    "require_access",
    # Config
    "PolicySettings",
    # Models
    "Product",
    "UserRecord",
    "Order",
]

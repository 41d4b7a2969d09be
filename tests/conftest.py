"""
Pytest configuration and shared fixtures for SMARTMART_POLICY tests.

This module provides:
- Role lookup fixtures (in-memory and mocked MongoDB collections)
- Evaluator fixtures
- Sample documents shaped like the stored collections
"""

from typing import Any, Dict
from unittest.mock import AsyncMock, MagicMock

import pytest
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo.collection import Collection

from smartmart_policy.auth.roles import InMemoryRoleLookup, MotorRoleLookup
from smartmart_policy.models import Product
from smartmart_policy.rules.evaluator import AsyncPolicyEvaluator, PolicyEvaluator

# ============================================================================
# ROLE FIXTURES
# ============================================================================

ADMIN_ID = "admin-1"
CUSTOMER_ID = "u1"
OTHER_CUSTOMER_ID = "u2"
ROLELESS_ID = "u3"


@pytest.fixture
def role_lookup() -> InMemoryRoleLookup:
    """An admin, a plain customer record, and a record without a role."""
    return InMemoryRoleLookup(
        {
            ADMIN_ID: "admin",
            OTHER_CUSTOMER_ID: "customer",
            ROLELESS_ID: None,
        }
    )


@pytest.fixture
def evaluator(role_lookup: InMemoryRoleLookup) -> PolicyEvaluator:
    return PolicyEvaluator(role_lookup)


# ============================================================================
# MOCK MONGODB FIXTURES
# ============================================================================


@pytest.fixture
def mock_users_collection() -> MagicMock:
    """Create a mock pymongo users collection with no records."""
    collection = MagicMock(spec=Collection)
    collection.name = "users"
    collection.find_one = MagicMock(return_value=None)
    return collection


@pytest.fixture
def mock_motor_users_collection() -> MagicMock:
    """Create a mock motor users collection with no records."""
    collection = MagicMock(spec=AsyncIOMotorCollection)
    collection.name = "users"
    collection.find_one = AsyncMock(return_value=None)
    return collection


@pytest.fixture
def async_evaluator(mock_motor_users_collection: MagicMock) -> AsyncPolicyEvaluator:
    return AsyncPolicyEvaluator(MotorRoleLookup(mock_motor_users_collection))


# ============================================================================
# SAMPLE DOCUMENTS
# ============================================================================


@pytest.fixture
def product_document() -> Dict[str, Any]:
    """A stored product, as in the catalogue."""
    return Product(
        name="iPhone 15 Pro",
        description="Latest iPhone with titanium design",
        price=99999,
        category="Electronics",
        images=["https://example.com/iphone.jpg"],
        stock=50,
        rating=4.5,
        review_count=128,
        is_active=True,
    ).to_document()


@pytest.fixture
def order_document() -> Dict[str, Any]:
    """A stored order owned by CUSTOMER_ID."""
    return {"userId": CUSTOMER_ID, "items": [{"productId": "abc", "quantity": 1}], "total": 99999}

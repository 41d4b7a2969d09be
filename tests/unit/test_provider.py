"""
Unit tests for PolicyAuthorizationProvider and AsyncPolicyEvaluator.

Tests that the async path reaches the same decisions as the sync evaluator
and that it never caches role lookups.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from pymongo.errors import AutoReconnect

from smartmart_policy.auth.provider import PolicyAuthorizationProvider
from smartmart_policy.auth.roles import MotorRoleLookup
from smartmart_policy.rules.evaluator import AsyncPolicyEvaluator
from smartmart_policy.rules.request import AccessRequest, Decision


@pytest.fixture
def provider(async_evaluator) -> PolicyAuthorizationProvider:
    return PolicyAuthorizationProvider(async_evaluator)


def _set_roles(collection: MagicMock, roles: dict) -> None:
    async def find_one(filter, projection=None):
        user_id = filter["_id"]
        if user_id not in roles:
            return None
        return {"_id": user_id, "role": roles[user_id]}

    collection.find_one = AsyncMock(side_effect=find_one)


class TestAsyncPolicyEvaluator:
    """Test the async evaluator against the async role lookup."""

    @pytest.mark.asyncio
    async def test_public_read_without_lookup(self, async_evaluator, mock_motor_users_collection):
        decision = await async_evaluator.evaluate(None, "read", "products/abc")
        assert decision is Decision.ALLOW
        mock_motor_users_collection.find_one.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_admin_write(self, async_evaluator, mock_motor_users_collection):
        _set_roles(mock_motor_users_collection, {"admin-1": "admin"})
        assert await async_evaluator.evaluate("admin-1", "write", "products/abc") is Decision.ALLOW
        assert await async_evaluator.evaluate("u1", "write", "products/abc") is Decision.DENY

    @pytest.mark.asyncio
    async def test_stock_update(self, async_evaluator):
        allowed = AccessRequest.for_update("u1", "products/abc", {"stock": 5})
        denied = AccessRequest.for_update("u1", "products/abc", {"stock": -5})
        assert await async_evaluator.evaluate_request(allowed) is Decision.ALLOW
        assert await async_evaluator.evaluate_request(denied) is Decision.DENY

    @pytest.mark.asyncio
    async def test_lookup_failure_denies(self, mock_motor_users_collection):
        mock_motor_users_collection.find_one = AsyncMock(side_effect=AutoReconnect("lost"))
        evaluator = AsyncPolicyEvaluator(MotorRoleLookup(mock_motor_users_collection))
        assert await evaluator.evaluate("admin-1", "read", "users/u1") is Decision.DENY

    @pytest.mark.asyncio
    async def test_malformed_request_denies(self, async_evaluator):
        assert await async_evaluator.evaluate("u1", "explode", "products/abc") is Decision.DENY


class TestPolicyAuthorizationProvider:
    """Test the AuthorizationProvider contract."""

    @pytest.mark.asyncio
    async def test_check_allows_owner(self, provider):
        allowed = await provider.check(
            subject="u1",
            resource="orders/o1",
            action="read",
            user_object={"existing": {"userId": "u1"}},
        )
        assert allowed is True

    @pytest.mark.asyncio
    async def test_check_denies_other_user(self, provider):
        allowed = await provider.check(
            subject="u2",
            resource="orders/o1",
            action="read",
            user_object={"existing": {"userId": "u1"}},
        )
        assert allowed is False

    @pytest.mark.asyncio
    async def test_empty_subject_is_anonymous(self, provider):
        assert await provider.check(subject="", resource="products/abc", action="read") is True
        assert await provider.check(subject="", resource="users/u1", action="read") is False

    @pytest.mark.asyncio
    async def test_storage_service(self, provider, mock_motor_users_collection):
        _set_roles(mock_motor_users_collection, {"admin-1": "admin"})
        allowed = await provider.check(
            subject="admin-1",
            resource="products/abc/front.jpg",
            action="write",
            user_object={"service": "storage"},
        )
        assert allowed is True

    @pytest.mark.asyncio
    async def test_no_decision_cache(self, provider, mock_motor_users_collection):
        """Test that a role change is visible on the next check."""
        roles = {"u2": "customer"}
        _set_roles(mock_motor_users_collection, roles)
        assert await provider.check(subject="u2", resource="users/u1", action="read") is False

        roles["u2"] = "admin"
        assert await provider.check(subject="u2", resource="users/u1", action="read") is True
        assert mock_motor_users_collection.find_one.await_count == 2

    @pytest.mark.asyncio
    async def test_from_role_lookup(self, mock_motor_users_collection):
        provider = PolicyAuthorizationProvider.from_role_lookup(
            MotorRoleLookup(mock_motor_users_collection), admin_role="owner"
        )
        _set_roles(mock_motor_users_collection, {"boss": "owner"})
        assert await provider.check(subject="boss", resource="products/abc", action="delete") is True

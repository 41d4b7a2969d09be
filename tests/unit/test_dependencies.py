"""
Unit tests for the FastAPI authorization dependencies.

Tests require_access against a small app wired with an in-memory role
lookup and an identity supplied through request.state.
"""

from unittest.mock import MagicMock

import pytest
from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.testclient import TestClient

from smartmart_policy.auth.dependencies import (get_authz_provider,
                                                get_request_identity,
                                                require_access)
from smartmart_policy.auth.provider import PolicyAuthorizationProvider
from smartmart_policy.auth.roles import AsyncInMemoryRoleLookup
from smartmart_policy.rules.evaluator import AsyncPolicyEvaluator

STORED_DOCUMENTS = {
    "orders": {"o1": {"userId": "u1", "total": 99999}},
    "products": {"abc": {"name": "iPhone 15 Pro", "price": 99999, "stock": 50}},
}


def _stored(collection):
    async def load(request: Request, doc_id: str):
        stored = STORED_DOCUMENTS[collection].get(doc_id)
        if stored is None:
            raise HTTPException(status_code=404, detail="Not found")
        return stored, stored

    return load


async def _patched_product(request: Request, doc_id: str):
    stored = STORED_DOCUMENTS["products"][doc_id]
    return stored, {**stored, **(await request.json())}


@pytest.fixture
def app() -> FastAPI:
    app = FastAPI()
    app.state.authz_provider = PolicyAuthorizationProvider(
        AsyncPolicyEvaluator(AsyncInMemoryRoleLookup({"admin-1": "admin"}))
    )

    @app.middleware("http")
    async def identity_from_header(request: Request, call_next):
        request.state.user_id = request.headers.get("X-User-Id")
        return await call_next(request)

    @app.get("/products/{doc_id}")
    async def get_product(doc_id: str, identity=Depends(require_access("read", "products"))):
        return {"id": doc_id, "viewer": identity}

    @app.get("/users/{doc_id}")
    async def get_profile(doc_id: str, identity=Depends(require_access("read", "users"))):
        return {"id": doc_id}

    @app.get("/orders/{doc_id}")
    async def get_order(
        doc_id: str,
        identity=Depends(require_access("read", "orders", load_documents=_stored("orders"))),
    ):
        return {"id": doc_id}

    @app.get("/unloaded-orders/{doc_id}")
    async def get_order_unloaded(doc_id: str, identity=Depends(require_access("read", "orders"))):
        return {"id": doc_id}

    @app.patch("/products/{doc_id}")
    async def patch_product(
        doc_id: str,
        identity=Depends(require_access("update", "products", load_documents=_patched_product)),
    ):
        return {"id": doc_id}

    @app.put("/images/{path:path}")
    async def put_image(
        path: str,
        identity=Depends(require_access("write", "products", id_param="path", service="storage")),
    ):
        return {"path": path}

    return app


@pytest.fixture
def client(app) -> TestClient:
    return TestClient(app)


class TestRequireAccess:
    def test_public_read(self, client):
        response = client.get("/products/abc")
        assert response.status_code == 200
        assert response.json() == {"id": "abc", "viewer": None}

    def test_own_profile(self, client):
        response = client.get("/users/u1", headers={"X-User-Id": "u1"})
        assert response.status_code == 200

    def test_admin_reads_any_profile(self, client):
        response = client.get("/users/u1", headers={"X-User-Id": "admin-1"})
        assert response.status_code == 200

    def test_other_profile_forbidden(self, client):
        response = client.get("/users/u1", headers={"X-User-Id": "u2"})
        assert response.status_code == 403
        assert "do not have permission" in response.json()["detail"]

    def test_anonymous_profile_unauthorized(self, client):
        response = client.get("/users/u1")
        assert response.status_code == 401
        assert "must be logged in" in response.json()["detail"]

    def test_storage_write(self, client):
        assert client.put("/images/abc/front.jpg", headers={"X-User-Id": "admin-1"}).status_code == 200
        assert client.put("/images/abc/front.jpg", headers={"X-User-Id": "u1"}).status_code == 403

    def test_owner_reads_order(self, client):
        response = client.get("/orders/o1", headers={"X-User-Id": "u1"})
        assert response.status_code == 200

    def test_other_customer_order_forbidden(self, client):
        response = client.get("/orders/o1", headers={"X-User-Id": "u2"})
        assert response.status_code == 403

    def test_admin_reads_any_order(self, client):
        response = client.get("/orders/o1", headers={"X-User-Id": "admin-1"})
        assert response.status_code == 200

    def test_missing_order_not_found(self, client):
        response = client.get("/orders/nope", headers={"X-User-Id": "u1"})
        assert response.status_code == 404

    def test_owner_denied_without_documents(self, client):
        """Test that ownership cannot be established when no documents are loaded."""
        response = client.get("/unloaded-orders/o1", headers={"X-User-Id": "u1"})
        assert response.status_code == 403

    def test_stock_only_update(self, client):
        response = client.patch("/products/abc", json={"stock": 49}, headers={"X-User-Id": "u1"})
        assert response.status_code == 200

    def test_stock_and_price_update_forbidden(self, client):
        response = client.patch(
            "/products/abc", json={"stock": 49, "price": 1}, headers={"X-User-Id": "u1"}
        )
        assert response.status_code == 403

    def test_negative_stock_update_forbidden(self, client):
        response = client.patch("/products/abc", json={"stock": -1}, headers={"X-User-Id": "u1"})
        assert response.status_code == 403

    def test_identity_override(self, app):
        app.dependency_overrides[get_request_identity] = lambda: "u1"
        response = TestClient(app).get("/users/u1")
        assert response.status_code == 200


class TestGetAuthzProvider:
    @pytest.mark.asyncio
    async def test_missing_provider(self):
        request = MagicMock()
        request.app.state.authz_provider = None

        with pytest.raises(HTTPException) as exc_info:
            await get_authz_provider(request)

        assert exc_info.value.status_code == 500
        assert "Authorization engine not loaded" in exc_info.value.detail

    @pytest.mark.asyncio
    async def test_identity_from_state(self):
        request = MagicMock()
        request.state.user_id = "u1"
        assert await get_request_identity(request) == "u1"

        request.state.user_id = None
        assert await get_request_identity(request) is None

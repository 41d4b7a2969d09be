"""
FastAPI Authorization Dependencies

In-process guards that run the SmartMart rules before a route handler.
Authentication happens upstream: the verified subject id is read from
``request.state.user_id`` (set by the host app's auth middleware), or
supplied by overriding ``get_request_identity``.

This module is part of SMARTMART_POLICY.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Optional, Tuple

from fastapi import Depends, HTTPException, Request, status

from ..constants import PATH_SEPARATOR
from ..rules.request import Action, Service
from .provider import AuthorizationProvider

logger = logging.getLogger(__name__)

# (request, doc_id) -> (stored document, document as it would be after the write)
DocumentLoader = Callable[
    [Request, str], Awaitable[Tuple[Optional[Mapping[str, Any]], Optional[Mapping[str, Any]]]]
]


async def get_authz_provider(request: Request) -> AuthorizationProvider:
    """
    FastAPI Dependency: Retrieves the shared AuthZ provider from app.state.
    """
    provider = getattr(request.app.state, "authz_provider", None)
    if not provider:
        logger.critical("❌ get_authz_provider: AuthZ provider not found on app.state!")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server configuration error: Authorization engine not loaded.",
        )
    return provider


async def get_request_identity(request: Request) -> str | None:
    """
    FastAPI Dependency: The verified subject id of the caller, or None.
    """
    identity = getattr(request.state, "user_id", None)
    return str(identity) if identity else None


def require_access(
    action: Action | str,
    collection: str,
    id_param: str = "doc_id",
    service: Service | str = Service.FIRESTORE,
    load_documents: DocumentLoader | None = None,
):
    """
    Dependency Factory: Creates a dependency that enforces ``action`` on
    ``{collection}/{<id_param path parameter>}``.

    Usage:
        async def load_order(request, doc_id):
            stored = await db.orders.find_one({"_id": doc_id})
            return stored, stored

        @app.get("/orders/{doc_id}")
        async def get_order(
            identity: str | None = Depends(
                require_access("read", "orders", load_documents=load_order)
            ),
        ):
            ...

    Args:
        action: Action to check (``read``, ``write``, ``get``, ...)
        collection: Collection (or storage prefix) the route serves
        id_param: Name of the path parameter holding the document id
        service: ``firestore`` or ``storage``
        load_documents: Async callable returning the stored and incoming
            documents for the target. Rules that inspect documents (order
            ownership, the stock-only update) deny without it. Exceptions it
            raises, such as an ``HTTPException(404)``, propagate unchanged.

    Returns:
        A dependency returning the caller identity when access is allowed.
    """
    action_name = action.value if isinstance(action, Action) else str(action)
    service_name = service.value if isinstance(service, Service) else str(service)

    async def _check_access(
        request: Request,
        identity: str | None = Depends(get_request_identity),
        authz: AuthorizationProvider = Depends(get_authz_provider),
    ) -> str | None:
        """Internal dependency function performing the AuthZ check."""
        doc_id = request.path_params.get(id_param, "")
        resource = f"{collection}{PATH_SEPARATOR}{doc_id}"
        user_object: dict[str, Any] = {"service": service_name}
        if load_documents is not None:
            existing, incoming = await load_documents(request, doc_id)
            user_object["existing"] = existing
            user_object["incoming"] = incoming

        allowed = await authz.check(
            subject=identity or "",
            resource=resource,
            action=action_name,
            user_object=user_object,
        )

        if not allowed:
            logger.warning(
                f"require_access: Access DENIED for '{identity or 'anonymous'}' "
                f"to ('{resource}', '{action_name}')."
            )
            if not identity:
                raise HTTPException(
                    status_code=status.HTTP_401_UNAUTHORIZED,
                    detail=f"You must be logged in to '{action_name}' on '{resource}'.",
                )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"You do not have permission to perform '{action_name}' on '{resource}'.",
            )

        logger.debug(
            f"require_access: Access GRANTED for '{identity or 'anonymous'}' "
            f"to ('{resource}', '{action_name}')."
        )
        return identity

    return _check_access

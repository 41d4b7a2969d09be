"""
Role Lookups

The evaluator's only collaborator: given a subject id, return the ``role``
stored on its ``users/{uid}`` record. A missing record or a record without
a role is a normal outcome and yields ``None``; lookups never cache, so a
role change is visible on the very next evaluation.

This module is part of SMARTMART_POLICY.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import MongoClient
from pymongo.collection import Collection

from ..config import PolicySettings
from ..constants import ROLE_FIELD
from ..models import UserRecord

logger = logging.getLogger(__name__)


class RoleLookup(Protocol):
    """
    Synchronous role source.
    """

    def get_user_role(self, user_id: str) -> str | None:
        """
        Return the role of ``user_id``, or None when there is no record or no role.

        Must not raise for a missing user.
        """
        ...


class AsyncRoleLookup(Protocol):
    """
    Asynchronous role source.
    """

    async def get_user_role(self, user_id: str) -> str | None:
        ...


def _role_from_document(doc: Mapping[str, Any] | None, role_field: str) -> str | None:
    if doc is None:
        return None
    role = doc.get(role_field)
    if role is None:
        return None
    return str(role)


class _RoleTable:
    """
    A plain mapping of ``user_id -> role``.

    A user mapped to ``None`` has a record without a role; a user absent from
    the mapping has no record at all. Both resolve to ``None``.
    """

    def __init__(self, roles: Mapping[str, str | None] | None = None):
        self._roles: dict[str, str | None] = dict(roles or {})

    @classmethod
    def from_records(cls, records: Mapping[str, UserRecord]):
        return cls({user_id: record.role for user_id, record in records.items()})

    def set_role(self, user_id: str, role: str | None) -> None:
        self._roles[user_id] = role

    def remove_user(self, user_id: str) -> None:
        self._roles.pop(user_id, None)


class InMemoryRoleLookup(_RoleTable):
    """
    Role lookup backed by a plain mapping.

    Example:
        roles = InMemoryRoleLookup({"u1": "admin", "u2": None})
        roles.get_user_role("u1")  # "admin"
    """

    def get_user_role(self, user_id: str) -> str | None:
        return self._roles.get(user_id)


class AsyncInMemoryRoleLookup(_RoleTable):
    """
    Async counterpart of ``InMemoryRoleLookup``, for ``AsyncPolicyEvaluator``
    in tests and single-process apps.
    """

    async def get_user_role(self, user_id: str) -> str | None:
        return self._roles.get(user_id)


class MongoRoleLookup:
    """
    Role lookup reading ``users/{uid}`` through a pymongo collection.

    Each call issues exactly one ``find_one`` projected to the role field.
    Driver errors (``PyMongoError``) propagate to the caller, which decides
    how to fail.
    """

    def __init__(self, collection: Collection, role_field: str = ROLE_FIELD):
        """
        Args:
            collection: The users collection
            role_field: Field on the user record holding the role
        """
        self._collection = collection
        self._role_field = role_field

    @classmethod
    def from_settings(
        cls, settings: PolicySettings, client: MongoClient | None = None
    ) -> MongoRoleLookup:
        """
        Build a lookup from settings, creating a client when none is given.

        Raises:
            ConfigurationError: If the connection settings are incomplete
        """
        settings.validate_connection()
        if client is None:
            client = MongoClient(
                settings.mongo_uri,
                serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
            )
        logger.info(
            f"MongoRoleLookup using {settings.db_name}.{settings.users_collection} "
            f"(role field: '{settings.role_field}')"
        )
        return cls(client[settings.db_name][settings.users_collection], settings.role_field)

    def get_user_role(self, user_id: str) -> str | None:
        doc = self._collection.find_one({"_id": user_id}, projection={self._role_field: 1})
        return _role_from_document(doc, self._role_field)


class MotorRoleLookup:
    """
    Async role lookup reading ``users/{uid}`` through a motor collection.

    Same contract as ``MongoRoleLookup``: one ``find_one`` per call, no cache.
    """

    def __init__(self, collection: AsyncIOMotorCollection, role_field: str = ROLE_FIELD):
        self._collection = collection
        self._role_field = role_field

    @classmethod
    def from_settings(
        cls, settings: PolicySettings, client: AsyncIOMotorClient | None = None
    ) -> MotorRoleLookup:
        """
        Build a lookup from settings, creating a client when none is given.

        Raises:
            ConfigurationError: If the connection settings are incomplete
        """
        settings.validate_connection()
        if client is None:
            client = AsyncIOMotorClient(
                settings.mongo_uri,
                serverSelectionTimeoutMS=settings.server_selection_timeout_ms,
            )
        logger.info(
            f"MotorRoleLookup using {settings.db_name}.{settings.users_collection} "
            f"(role field: '{settings.role_field}')"
        )
        return cls(client[settings.db_name][settings.users_collection], settings.role_field)

    async def get_user_role(self, user_id: str) -> str | None:
        doc = await self._collection.find_one({"_id": user_id}, projection={self._role_field: 1})
        return _role_from_document(doc, self._role_field)

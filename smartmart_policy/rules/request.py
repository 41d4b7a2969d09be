"""
Access Request Types

Value types describing a single access attempt: who is asking (identity),
what they want to do (action), on which resource (path) and with which
documents (the stored one and the one about to be written).

This module is part of SMARTMART_POLICY.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any

from ..constants import DOCUMENT_PATH_SEGMENTS, PATH_SEPARATOR
from ..exceptions import ResourcePathError, UnknownActionError


class Action(str, Enum):
    """
    Actions a request can perform.

    ``read`` and ``write`` are the broad actions rules are usually declared
    on; the granular actions are what a concrete operation performs.
    """

    READ = "read"
    GET = "get"
    LIST = "list"

    WRITE = "write"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"

    @classmethod
    def parse(cls, value: Action | str) -> Action:
        """
        Coerce a value into an Action.

        Raises:
            UnknownActionError: If the value is not a known action name
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as e:
            raise UnknownActionError(f"Unknown action: {value!r}", action=value) from e

    def covers(self, requested: Action) -> bool:
        """True if a grant declared on this action applies to ``requested``."""
        return requested is self or requested in _COVERED_ACTIONS.get(self, frozenset())


_COVERED_ACTIONS: dict[Action, frozenset[Action]] = {
    Action.READ: frozenset({Action.GET, Action.LIST}),
    Action.WRITE: frozenset({Action.CREATE, Action.UPDATE, Action.DELETE}),
}


class Decision(str, Enum):
    """Outcome of an evaluation."""

    ALLOW = "allow"
    DENY = "deny"

    @property
    def allowed(self) -> bool:
        return self is Decision.ALLOW

    @classmethod
    def of(cls, allowed: bool) -> Decision:
        return cls.ALLOW if allowed else cls.DENY


class Service(str, Enum):
    """Backend a path belongs to; each has its own rule set."""

    FIRESTORE = "firestore"
    STORAGE = "storage"


@dataclass(frozen=True)
class ResourcePath:
    """
    A parsed ``collection/id[/...]`` path.

    Attributes:
        service: Backend the path is addressed to
        segments: Non-empty path segments
    """

    service: Service
    segments: tuple[str, ...]

    @classmethod
    def parse(
        cls, path: ResourcePath | str, service: Service | str = Service.FIRESTORE
    ) -> ResourcePath:
        """
        Parse a slash-separated path.

        A fully qualified document name
        (``databases/{db}/documents/products/abc``) is reduced to its
        document-relative part.

        Raises:
            ResourcePathError: If the path is empty or has empty segments
        """
        if isinstance(path, ResourcePath):
            return path
        if not isinstance(path, str):
            raise ResourcePathError(f"Resource path must be a string, got {type(path).__name__}")

        try:
            service = Service(service)
        except ValueError as e:
            raise ResourcePathError(f"Unknown service: {service!r}", path=path) from e

        segments = tuple(path.strip().strip(PATH_SEPARATOR).split(PATH_SEPARATOR))
        if len(segments) > 3 and segments[0] == "databases" and segments[2] == "documents":
            segments = segments[3:]

        if not segments or any(not segment for segment in segments):
            raise ResourcePathError("Resource path has empty segments", path=path)

        return cls(service=service, segments=segments)

    @property
    def collection(self) -> str:
        return self.segments[0]

    @property
    def document_id(self) -> str | None:
        """Document id for a top-level ``collection/id`` path, else None."""
        if len(self.segments) == DOCUMENT_PATH_SEGMENTS:
            return self.segments[1]
        return None

    def __str__(self) -> str:
        return PATH_SEPARATOR.join(self.segments)


def affected_keys(
    existing: Mapping[str, Any] | None, incoming: Mapping[str, Any] | None
) -> frozenset[str]:
    """
    Field names added, removed or changed between two documents.

    Args:
        existing: Stored document (None when it does not exist yet)
        incoming: Document as it would look after the write

    Returns:
        Set of affected top-level field names
    """
    before = existing or {}
    after = incoming or {}
    keys = set(before) | set(after)
    return frozenset(
        key
        for key in keys
        if (key in before) != (key in after) or before.get(key) != after.get(key)
    )


@dataclass(frozen=True)
class AccessRequest:
    """
    A single access attempt.

    Attributes:
        identity: Verified subject id, None when unauthenticated
        action: Requested action
        path: Target resource
        existing: Stored document, if any
        incoming: Document as it would be after the write, if any
    """

    identity: str | None
    action: Action
    path: ResourcePath
    existing: Mapping[str, Any] | None = None
    incoming: Mapping[str, Any] | None = None

    @classmethod
    def build(
        cls,
        identity: str | None,
        action: Action | str,
        path: ResourcePath | str,
        existing: Mapping[str, Any] | None = None,
        incoming: Mapping[str, Any] | None = None,
        service: Service | str = Service.FIRESTORE,
    ) -> AccessRequest:
        """
        Build a request from loosely typed values.

        Raises:
            UnknownActionError: If the action is unknown
            ResourcePathError: If the path cannot be parsed
        """
        return cls(
            identity=identity,
            action=Action.parse(action),
            path=ResourcePath.parse(path, service),
            existing=existing,
            incoming=incoming,
        )

    @classmethod
    def for_update(
        cls,
        identity: str | None,
        path: ResourcePath | str,
        changes: Mapping[str, Any],
        existing: Mapping[str, Any] | None = None,
        service: Service | str = Service.FIRESTORE,
    ) -> AccessRequest:
        """Build an ``update`` request from a partial patch applied onto ``existing``."""
        incoming = {**(existing or {}), **changes}
        return cls.build(identity, Action.UPDATE, path, existing, incoming, service)

    @property
    def authenticated(self) -> bool:
        return bool(self.identity)

    @property
    def changed_fields(self) -> frozenset[str]:
        return affected_keys(self.existing, self.incoming)

"""
Document shapes for the SmartMart collections.

These models describe the persisted layout that callers of the evaluator
produce and consume. Field names follow the stored camelCase keys through
aliases; ``to_document()`` returns the dictionary exactly as it is stored.

This module is part of SMARTMART_POLICY.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from .constants import ADMIN_ROLE, MIN_STOCK


class _Document(BaseModel):
    """Base for stored documents: populate by field name or stored alias."""

    model_config = ConfigDict(populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """Convert to the stored dictionary (aliased keys, unset optionals dropped)."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Product(_Document):
    """
    A catalogue entry stored at ``products/{id}``.

    ``price`` is expressed in minor currency units (e.g. cents).
    """

    name: str
    description: str = ""
    price: int = Field(..., ge=0, description="Price in minor units")
    category: str
    images: list[str] = Field(default_factory=list)
    stock: int = Field(0, ge=MIN_STOCK)
    rating: float = Field(0.0, ge=0.0)
    review_count: int = Field(0, alias="reviewCount", ge=0)
    is_active: bool = Field(True, alias="isActive")
    created_at: datetime | None = Field(None, alias="createdAt")
    updated_at: datetime | None = Field(None, alias="updatedAt")


class UserRecord(_Document):
    """A user profile stored at ``users/{uid}``; ``role`` drives admin checks."""

    email: str
    name: str = ""
    role: str | None = None
    created_at: datetime | None = Field(None, alias="createdAt")

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


class Order(_Document):
    """
    An order stored at ``orders/{id}``.

    Only ``userId`` is constrained by the access rules; any other order
    fields written by checkout are kept as-is.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    user_id: str = Field(..., alias="userId")

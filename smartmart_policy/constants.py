"""
Constants for SMARTMART_POLICY.

This module contains the collection names, role names and field names the
access rules are written against, so the rules never embed magic strings.
"""

from typing import Final

# ============================================================================
# COLLECTION CONSTANTS
# ============================================================================

PRODUCTS_COLLECTION: Final[str] = "products"
"""Product catalogue collection (also the storage prefix for product images)."""

ORDERS_COLLECTION: Final[str] = "orders"
"""Customer orders, written by the checkout flow."""

USERS_COLLECTION: Final[str] = "users"
"""User profiles; also the source of role lookups."""

# ============================================================================
# ROLE CONSTANTS
# ============================================================================

ADMIN_ROLE: Final[str] = "admin"
"""Role value that grants elevated privileges."""

ROLE_FIELD: Final[str] = "role"
"""Field on a user record that holds the role string."""

# ============================================================================
# DOCUMENT FIELD CONSTANTS
# ============================================================================

ORDER_OWNER_FIELD: Final[str] = "userId"
"""Field on an order that holds the owning identity."""

STOCK_FIELD: Final[str] = "stock"
"""Product field that authenticated customers may adjust."""

STOCK_UPDATE_FIELDS: Final[frozenset[str]] = frozenset({STOCK_FIELD})
"""Fields a non-admin update on a product may touch."""

MIN_STOCK: Final[int] = 0
"""Lowest stock value accepted through the stock-only update grant."""

# ============================================================================
# PATH CONSTANTS
# ============================================================================

PATH_SEPARATOR: Final[str] = "/"
"""Separator between collection and document id in resource paths."""

DOCUMENT_PATH_SEGMENTS: Final[int] = 2
"""Number of segments in a top-level document path (collection/id)."""

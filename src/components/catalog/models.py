"""
Catalog component models.

Products are priced in integer cents. A product can carry a scheduled
discount (FIXED amount or PERCENT off) and per-product affiliate settings
that override the program defaults.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any
from uuid import UUID


class DiscountType(Enum):
    NONE = "NONE"
    FIXED = "FIXED"
    PERCENT = "PERCENT"


class ProductStatus(Enum):
    """
    Product publication status.

    State transitions:
    - draft → published
    - published → draft (unpublish)
    """

    DRAFT = "draft"
    PUBLISHED = "published"


VALID_TRANSITIONS: dict[ProductStatus, set[ProductStatus]] = {
    ProductStatus.DRAFT: {ProductStatus.PUBLISHED},
    ProductStatus.PUBLISHED: {ProductStatus.DRAFT},
}


def can_transition(from_status: ProductStatus, to_status: ProductStatus) -> bool:
    """Check if a product status change is allowed."""
    return to_status in VALID_TRANSITIONS.get(from_status, set())


# --- Entity ---


@dataclass
class Product:
    """Sellable product."""

    id: UUID
    name: str
    slug: str
    price: int  # cents
    sku: str | None = None
    description: str = ""
    sale_price: int | None = None
    discount_type: DiscountType = DiscountType.NONE
    discount_value: int = 0
    sale_starts_at: datetime | None = None
    sale_ends_at: datetime | None = None
    status: ProductStatus = ProductStatus.DRAFT
    active: bool = True
    tags: list[str] = field(default_factory=list)
    primary_image: str | None = None
    seo_title: str | None = None
    seo_description: str | None = None
    # Affiliate overrides
    affiliate_enabled: bool = True
    affiliate_use_global_settings: bool = True
    affiliate_commission_type: str | None = None
    affiliate_commission_value: int | None = None
    affiliate_discount_type: str | None = None
    affiliate_discount_value: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


# Fields an admin may change through UpdateProductInput
UPDATABLE_FIELDS: frozenset[str] = frozenset(
    {
        "name",
        "slug",
        "price",
        "sku",
        "description",
        "sale_price",
        "discount_type",
        "discount_value",
        "sale_starts_at",
        "sale_ends_at",
        "status",
        "active",
        "tags",
        "primary_image",
        "seo_title",
        "seo_description",
        "affiliate_enabled",
        "affiliate_use_global_settings",
        "affiliate_commission_type",
        "affiliate_commission_value",
        "affiliate_discount_type",
        "affiliate_discount_value",
    }
)


# --- Inputs ---


@dataclass(frozen=True)
class CreateProductInput:
    """Input for creating a product."""

    name: str
    price: int
    slug: str | None = None
    sku: str | None = None
    description: str = ""
    tags: tuple[str, ...] = ()
    status: str = "draft"
    primary_image: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class UpdateProductInput:
    """Input for a partial product update."""

    product_id: UUID
    updates: dict[str, Any]


@dataclass(frozen=True)
class ListProductsInput:
    """Input for listing products."""

    tag: str | None = None
    q: str | None = None
    include_unpublished: bool = False


@dataclass(frozen=True)
class GetProductInput:
    """Input for a public product lookup."""

    slug: str


# --- Outputs ---


@dataclass(frozen=True)
class ValidationError:
    """Validation error detail."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ProductOutput:
    """Output from product create/update/get."""

    success: bool
    product: Product | None = None
    errors: list[ValidationError] = field(default_factory=list)


@dataclass(frozen=True)
class ListProductsOutput:
    """Output from product listing."""

    products: list[Product]
    total: int

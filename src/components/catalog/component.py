"""
Catalog component.

Product CRUD, public listing and effective price calculation.

Key behaviors:
- Slugs are derived from the name when not supplied and must be unique
- SKUs are unique when present
- Scheduled discounts only apply inside their sale window
- Public listings only include published, active products
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

from src.components.catalog.models import (
    UPDATABLE_FIELDS,
    CreateProductInput,
    DiscountType,
    GetProductInput,
    ListProductsInput,
    ListProductsOutput,
    Product,
    ProductOutput,
    ProductStatus,
    UpdateProductInput,
    ValidationError,
)
from src.components.catalog.ports import ProductRepoPort, TimePort

logger = logging.getLogger(__name__)

SLUG_REGEX = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


# --- Pure Functions ---


def slugify(value: str) -> str:
    """Lowercase, collapse anything non-alphanumeric to single dashes."""
    slug = re.sub(r"[^a-z0-9]+", "-", value.strip().lower())
    return slug.strip("-")


def is_sale_active(product: Product, now: datetime | None = None) -> bool:
    """Whether `now` falls inside the product's sale window (open ends allowed)."""
    if now is None:
        now = datetime.now(UTC)
    if product.sale_starts_at and now < product.sale_starts_at:
        return False
    if product.sale_ends_at and now > product.sale_ends_at:
        return False
    return True


def effective_price(product: Product, now: datetime | None = None) -> int:
    """
    Price a customer pays for one unit, in cents.

    An explicit sale_price lower than the list price wins over the
    scheduled discount. The result never drops below zero.
    """
    price = product.price

    if product.discount_type != DiscountType.NONE and is_sale_active(product, now):
        if product.discount_type == DiscountType.FIXED:
            price = product.price - product.discount_value
        elif product.discount_type == DiscountType.PERCENT:
            price = product.price - (product.price * product.discount_value) // 100

    if product.sale_price is not None and 0 <= product.sale_price < price:
        price = product.sale_price

    return max(0, price)


def validate_product(product: Product) -> list[ValidationError]:
    """Validate product fields."""
    errors: list[ValidationError] = []

    if not product.name.strip():
        errors.append(ValidationError("NAME_REQUIRED", "Product name is required", "name"))
    if product.price < 0:
        errors.append(ValidationError("INVALID_PRICE", "Price must be zero or more", "price"))
    if not SLUG_REGEX.match(product.slug):
        errors.append(
            ValidationError(
                "INVALID_SLUG",
                "Slug must be lowercase letters, numbers and single dashes",
                "slug",
            )
        )
    if product.sale_price is not None and product.sale_price < 0:
        errors.append(
            ValidationError("INVALID_SALE_PRICE", "Sale price must be zero or more", "sale_price")
        )
    if product.discount_type == DiscountType.PERCENT and not 0 <= product.discount_value <= 100:
        errors.append(
            ValidationError(
                "INVALID_DISCOUNT",
                "Percent discount must be between 0 and 100",
                "discount_value",
            )
        )
    if product.discount_type == DiscountType.FIXED and product.discount_value < 0:
        errors.append(
            ValidationError("INVALID_DISCOUNT", "Fixed discount must be positive", "discount_value")
        )
    if (
        product.sale_starts_at
        and product.sale_ends_at
        and product.sale_ends_at < product.sale_starts_at
    ):
        errors.append(
            ValidationError(
                "INVALID_SALE_WINDOW", "Sale end must be after sale start", "sale_ends_at"
            )
        )

    return errors


def _coerce_update(field_name: str, value: Any) -> Any:
    if field_name == "discount_type":
        return DiscountType(value) if not isinstance(value, DiscountType) else value
    if field_name == "status":
        return ProductStatus(value) if not isinstance(value, ProductStatus) else value
    if field_name in ("sale_starts_at", "sale_ends_at") and isinstance(value, str):
        return datetime.fromisoformat(value)
    if field_name == "tags":
        return [str(t).strip().lower() for t in value or [] if str(t).strip()]
    return value


def _uniqueness_errors(product: Product, repo: ProductRepoPort) -> list[ValidationError]:
    errors: list[ValidationError] = []
    existing = repo.get_by_slug(product.slug)
    if existing and existing.id != product.id:
        errors.append(ValidationError("SLUG_TAKEN", "Slug is already in use", "slug"))
    if product.sku:
        by_sku = repo.get_by_sku(product.sku)
        if by_sku and by_sku.id != product.id:
            errors.append(ValidationError("SKU_TAKEN", "SKU is already in use", "sku"))
    return errors


# --- Component Entry Points ---


def run_create_product(
    inp: CreateProductInput,
    repo: ProductRepoPort,
    time: TimePort,
) -> ProductOutput:
    """Create a product after validation and uniqueness checks."""
    now = time.now_utc()

    try:
        status = ProductStatus(inp.status)
    except ValueError:
        return ProductOutput(
            success=False,
            errors=[ValidationError("INVALID_STATUS", f"Unknown status: {inp.status}", "status")],
        )

    product = Product(
        id=uuid4(),
        name=inp.name.strip(),
        slug=inp.slug or slugify(inp.name),
        price=inp.price,
        sku=inp.sku or None,
        description=inp.description,
        tags=[t.strip().lower() for t in inp.tags if t.strip()],
        status=status,
        primary_image=inp.primary_image,
        created_at=now,
        updated_at=now,
    )

    extra = {k: v for k, v in inp.attributes.items() if k in UPDATABLE_FIELDS}
    try:
        for key, value in extra.items():
            setattr(product, key, _coerce_update(key, value))
    except ValueError as e:
        return ProductOutput(success=False, errors=[ValidationError("INVALID_VALUE", str(e))])

    errors = validate_product(product) + _uniqueness_errors(product, repo)
    if errors:
        return ProductOutput(success=False, errors=errors)

    repo.save(product)
    logger.info(f"Product created: {product.slug}")
    return ProductOutput(success=True, product=product)


def run_update_product(
    inp: UpdateProductInput,
    repo: ProductRepoPort,
    time: TimePort,
) -> ProductOutput:
    """Apply a partial update to a product."""
    product = repo.get_by_id(inp.product_id)
    if product is None:
        return ProductOutput(
            success=False, errors=[ValidationError("NOT_FOUND", "Product not found")]
        )

    unknown = sorted(set(inp.updates) - UPDATABLE_FIELDS)
    if unknown:
        return ProductOutput(
            success=False,
            errors=[
                ValidationError("UNKNOWN_FIELD", f"Field cannot be updated: {name}", name)
                for name in unknown
            ],
        )

    try:
        changes = {k: _coerce_update(k, v) for k, v in inp.updates.items()}
    except ValueError as e:
        return ProductOutput(success=False, errors=[ValidationError("INVALID_VALUE", str(e))])

    updated = replace(product, **changes, updated_at=time.now_utc())

    errors = validate_product(updated) + _uniqueness_errors(updated, repo)
    if errors:
        return ProductOutput(success=False, errors=errors)

    repo.save(updated)
    return ProductOutput(success=True, product=updated)


def is_publicly_visible(product: Product) -> bool:
    return product.active and product.status == ProductStatus.PUBLISHED


def run_list_products(inp: ListProductsInput, repo: ProductRepoPort) -> ListProductsOutput:
    """List products, public-only unless include_unpublished is set."""
    products = repo.list_all()

    if not inp.include_unpublished:
        products = [p for p in products if is_publicly_visible(p)]
    if inp.tag:
        tag = inp.tag.strip().lower()
        products = [p for p in products if tag in p.tags]
    if inp.q:
        needle = inp.q.strip().lower()
        products = [
            p for p in products if needle in p.name.lower() or needle in p.description.lower()
        ]

    products.sort(key=lambda p: p.name.lower())
    return ListProductsOutput(products=products, total=len(products))


def run_get_public_product(inp: GetProductInput, repo: ProductRepoPort) -> ProductOutput:
    """Public product lookup by slug. Hidden products look like missing ones."""
    product = repo.get_by_slug(inp.slug)
    if product is None or not is_publicly_visible(product):
        return ProductOutput(
            success=False, errors=[ValidationError("NOT_FOUND", "Product not found")]
        )
    return ProductOutput(success=True, product=product)


def run(
    inp: CreateProductInput | UpdateProductInput | ListProductsInput | GetProductInput,
    *,
    repo: ProductRepoPort,
    time: TimePort | None = None,
) -> ProductOutput | ListProductsOutput:
    """Catalog component entry point."""
    if isinstance(inp, CreateProductInput):
        assert time is not None
        return run_create_product(inp, repo, time)
    if isinstance(inp, UpdateProductInput):
        assert time is not None
        return run_update_product(inp, repo, time)
    if isinstance(inp, ListProductsInput):
        return run_list_products(inp, repo)
    if isinstance(inp, GetProductInput):
        return run_get_public_product(inp, repo)
    raise ValueError(f"Unknown input type: {type(inp)}")

"""
Catalog component.

Products, pricing and public product listing.
"""

from src.components.catalog.component import (
    effective_price,
    is_publicly_visible,
    is_sale_active,
    run,
    run_create_product,
    run_get_public_product,
    run_list_products,
    run_update_product,
    slugify,
    validate_product,
)
from src.components.catalog.models import (
    UPDATABLE_FIELDS,
    VALID_TRANSITIONS,
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
    can_transition,
)
from src.components.catalog.ports import ProductRepoPort

__all__ = [
    "run",
    "run_create_product",
    "run_update_product",
    "run_list_products",
    "run_get_public_product",
    "slugify",
    "effective_price",
    "is_sale_active",
    "is_publicly_visible",
    "validate_product",
    "Product",
    "ProductStatus",
    "DiscountType",
    "UPDATABLE_FIELDS",
    "VALID_TRANSITIONS",
    "can_transition",
    "CreateProductInput",
    "UpdateProductInput",
    "ListProductsInput",
    "GetProductInput",
    "ProductOutput",
    "ListProductsOutput",
    "ValidationError",
    "ProductRepoPort",
]

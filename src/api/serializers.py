"""
JSON views of component entities for the HTTP layer.
"""

from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from src.components.affiliates.models import Affiliate, AffiliateInvite, Referral
from src.components.blog.models import Post
from src.components.catalog import effective_price, is_sale_active
from src.components.catalog.models import Product
from src.components.cms import BlockType
from src.components.cms.models import Page
from src.components.coupons.models import Coupon
from src.components.orders.models import Order
from src.components.refunds.models import Refund
from src.components.themes.models import ThemePack

_PRODUCT_ADMIN_FIELDS = (
    "sku",
    "affiliate_enabled",
    "affiliate_use_global_settings",
    "affiliate_commission_type",
    "affiliate_commission_value",
    "affiliate_discount_type",
    "affiliate_discount_value",
)


def _plain(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_plain(v) for v in value]
    return value


def plain(obj: Any) -> dict[str, Any]:
    """Dataclass to a JSON-ready dict (enums by value, UUIDs and datetimes as strings)."""
    return _plain(asdict(obj))  # type: ignore[no-any-return]


def product_view(product: Product, now: datetime, admin: bool = False) -> dict[str, Any]:
    data = plain(product)
    data["effective_price"] = effective_price(product, now)
    data["on_sale"] = is_sale_active(product, now)
    if not admin:
        for name in _PRODUCT_ADMIN_FIELDS:
            data.pop(name, None)
    return data


def order_view(order: Order) -> dict[str, Any]:
    data = plain(order)
    # Request metadata is kept for CAPI matching only.
    for name in ("client_ip", "client_user_agent", "fbp", "fbc"):
        data.pop(name, None)
    return data


def page_view(page: Page) -> dict[str, Any]:
    return plain(page)


def post_view(post: Post) -> dict[str, Any]:
    return plain(post)


def coupon_view(coupon: Coupon) -> dict[str, Any]:
    return plain(coupon)


def refund_view(refund: Refund) -> dict[str, Any]:
    return plain(refund)


def affiliate_view(affiliate: Affiliate) -> dict[str, Any]:
    return plain(affiliate)


def referral_view(referral: Referral) -> dict[str, Any]:
    return plain(referral)


def invite_view(invite: AffiliateInvite) -> dict[str, Any]:
    return plain(invite)


def theme_view(theme: ThemePack) -> dict[str, Any]:
    return {
        "id": theme.id,
        "name": theme.name,
        "description": theme.description,
        "tokens": theme.tokens.model_dump(mode="json"),
        "component_variants": theme.component_variants,
        "block_style_defaults": theme.block_style_defaults,
        "built_in": theme.built_in,
    }


def block_type_view(block: BlockType) -> dict[str, Any]:
    return {
        "type": block.type,
        "label": block.label,
        "category": block.category,
        "description": block.description,
        "default_data": block.default_data,
        "version": block.version,
        "schema": block.model.model_json_schema(),
    }

"""
Page block registry.

Each block type has a pydantic model for its data, a category, a label and
default data for the page builder. Block JSON uses camelCase keys, so the
models alias their fields and dump by alias.

Page content is stored as {"version": 1, "blocks": [...]} where each block
is {"id", "type", "data", "settings"}.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from src.components.cms.models import ValidationError

logger = logging.getLogger(__name__)

CONTENT_VERSION = 1


class BlockModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BlockSettings(BlockModel):
    visibility: Literal["all", "desktop", "mobile"] = "all"
    alignment: Literal["left", "center", "right"] = "center"
    background: Literal["none", "light", "dark", "primary", "image"] = "none"
    padding: Literal["none", "sm", "md", "lg", "xl"] = "md"
    anchor: str = ""


# --- Block data models ---


class HeroData(BlockModel):
    headline: str = Field(min_length=1)
    subheadline: str = ""
    cta_text: str = ""
    cta_href: str = "#"
    secondary_cta_text: str = ""
    secondary_cta_href: str = ""
    background_image: str = ""
    hero_image: str = ""
    align: Literal["left", "center"] = "center"
    layout: Literal["stacked", "split-left", "split-right"] = "stacked"
    full_width: bool = True
    overlay_opacity: int = Field(default=60, ge=0, le=100)
    min_height: Literal["default", "tall", "full"] = "default"


class RichTextData(BlockModel):
    title: str = ""
    body_rich_text: str = ""
    align: Literal["left", "center", "right"] = "left"


class ImageData(BlockModel):
    src: str = Field(min_length=1)
    alt: str = ""
    caption: str = ""
    aspect_ratio: str | None = None
    rounded: bool = True
    link_href: str = ""


class ImageGridItem(BlockModel):
    src: str = Field(min_length=1)
    alt: str = ""
    caption: str = ""
    link_href: str = ""


class ImageGridData(BlockModel):
    items: list[ImageGridItem] = Field(default_factory=list)
    columns: int = Field(default=3, ge=2, le=4)
    spacing: Literal["tight", "normal", "loose"] = "normal"


class FeatureItem(BlockModel):
    icon: str = ""
    title: str = Field(min_length=1)
    description: str = ""


class FeatureListData(BlockModel):
    title: str = ""
    items: list[FeatureItem] = Field(default_factory=list)
    columns: int = Field(default=3, ge=1, le=3)


class TestimonialItem(BlockModel):
    quote: str = Field(min_length=1)
    name: str = Field(min_length=1)
    title: str = ""
    avatar: str = ""


class TestimonialsData(BlockModel):
    title: str = ""
    items: list[TestimonialItem] = Field(default_factory=list)
    layout: Literal["cards", "slider"] = "cards"


class FaqItem(BlockModel):
    q: str = Field(min_length=1)
    a: str = Field(min_length=1)


class FaqData(BlockModel):
    title: str = ""
    items: list[FaqItem] = Field(default_factory=list)
    allow_multiple_open: bool = False


class CallToActionData(BlockModel):
    headline: str = Field(min_length=1)
    subheadline: str = ""
    primary_cta_text: str = "Get Started"
    primary_cta_href: str = "#"
    secondary_cta_text: str = ""
    secondary_cta_href: str = ""


class ProductGridData(BlockModel):
    title: str = ""
    product_ids: list[str] = Field(default_factory=list)
    collection_tag: str = ""
    query_mode: Literal["ids", "tag", "all"] = "all"
    columns: int = Field(default=3, ge=2, le=4)
    show_price: bool = True


class ProductHighlightData(BlockModel):
    product_id: str = ""
    highlight_bullets: list[str] = Field(default_factory=list)
    show_gallery: bool = True
    show_buy_button: bool = True


class TrustBarItem(BlockModel):
    icon: str = ""
    label: str = Field(min_length=1)
    sublabel: str = ""


class TrustBarData(BlockModel):
    items: list[TrustBarItem] = Field(default_factory=list)
    layout: Literal["row", "wrap"] = "row"


class ComparisonColumn(BlockModel):
    key: str = Field(min_length=1)
    label: str = Field(min_length=1)


class ComparisonRow(BlockModel):
    label: str = Field(min_length=1)
    values_by_key: dict[str, str | bool] = Field(default_factory=dict)


class ComparisonTableData(BlockModel):
    title: str = ""
    columns: list[ComparisonColumn] = Field(default_factory=list)
    rows: list[ComparisonRow] = Field(default_factory=list)
    highlight_column_key: str = ""


class SpacerData(BlockModel):
    size: Literal["sm", "md", "lg", "xl"] = "md"


class DividerData(BlockModel):
    style: Literal["solid", "dashed", "dotted"] = "solid"
    width: Literal["full", "narrow"] = "full"


# --- Registry ---

BLOCK_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("layout", "Layout"),
    ("marketing", "Marketing"),
    ("ecommerce", "E-commerce"),
    ("trust", "Trust & Social Proof"),
    ("media", "Media"),
    ("utility", "Utility"),
)


@dataclass(frozen=True)
class BlockType:
    type: str
    label: str
    category: str
    description: str
    model: type[BlockModel]
    default_data: dict[str, Any] = field(default_factory=dict)
    version: int = 1


BLOCK_REGISTRY: dict[str, BlockType] = {
    entry.type: entry
    for entry in (
        BlockType(
            "hero",
            "Hero",
            "marketing",
            "Full-width hero with headline, subheadline and call to action",
            HeroData,
            {
                "headline": "Welcome to Power Plunge",
                "subheadline": "Cold therapy for peak recovery and performance.",
                "ctaText": "Shop Now",
                "ctaHref": "/shop",
            },
        ),
        BlockType(
            "richText",
            "Rich Text",
            "layout",
            "Formatted text section",
            RichTextData,
            {"bodyRichText": "<p>Start writing...</p>"},
        ),
        BlockType(
            "image", "Image", "media", "Single image with caption", ImageData,
            {"src": "https://placehold.co/1200x600", "alt": "Placeholder"},
        ),
        BlockType("imageGrid", "Image Grid", "media", "Grid of images", ImageGridData),
        BlockType(
            "featureList",
            "Feature List",
            "marketing",
            "Grid of features with icons",
            FeatureListData,
            {
                "title": "Why Power Plunge",
                "items": [
                    {"icon": "Snowflake", "title": "Precise cooling", "description": "Down to 37°F."},
                    {"icon": "Shield", "title": "Built to last", "description": "Stainless steel."},
                ],
            },
        ),
        BlockType(
            "testimonials", "Testimonials", "trust", "Customer quotes", TestimonialsData,
            {"title": "What our customers say"},
        ),
        BlockType(
            "faq", "FAQ", "utility", "Frequently asked questions", FaqData,
            {"title": "Frequently asked questions"},
        ),
        BlockType(
            "callToAction",
            "Call to Action",
            "marketing",
            "Headline with primary and secondary buttons",
            CallToActionData,
            {
                "headline": "Ready to take the plunge?",
                "primaryCtaText": "Shop Now",
                "primaryCtaHref": "/shop",
            },
        ),
        BlockType(
            "productGrid", "Product Grid", "ecommerce", "Grid of products", ProductGridData,
            {"title": "Shop"},
        ),
        BlockType(
            "productHighlight",
            "Product Highlight",
            "ecommerce",
            "Single product with bullets and buy button",
            ProductHighlightData,
        ),
        BlockType(
            "trustBar",
            "Trust Bar",
            "trust",
            "Row of trust badges",
            TrustBarData,
            {
                "items": [
                    {"icon": "Truck", "label": "Free Shipping", "sublabel": "On all orders"},
                    {"icon": "Shield", "label": "2-Year Warranty", "sublabel": "Full coverage"},
                    {"icon": "RotateCcw", "label": "30-Day Returns", "sublabel": "No questions asked"},
                ]
            },
        ),
        BlockType(
            "comparisonTable",
            "Comparison Table",
            "ecommerce",
            "Side-by-side model comparison",
            ComparisonTableData,
            {
                "columns": [{"key": "standard", "label": "Standard"}, {"key": "pro", "label": "Pro"}],
                "rows": [{"label": "Material", "valuesByKey": {"standard": "ABS", "pro": "Steel"}}],
                "highlightColumnKey": "pro",
            },
        ),
        BlockType("spacer", "Spacer", "layout", "Vertical whitespace", SpacerData),
        BlockType("divider", "Divider", "layout", "Horizontal rule", DividerData),
    )
}


class UnknownBlockTypeError(ValueError):
    def __init__(self, block_type: str) -> None:
        self.block_type = block_type
        super().__init__(f"Unknown block type: {block_type}")


def _allowed(allowed_types: Iterable[str] | None) -> set[str]:
    return set(BLOCK_REGISTRY) if allowed_types is None else set(allowed_types) & set(BLOCK_REGISTRY)


def list_block_types(allowed_types: Iterable[str] | None = None) -> list[BlockType]:
    allowed = _allowed(allowed_types)
    return [entry for entry in BLOCK_REGISTRY.values() if entry.type in allowed]


def blocks_by_category(allowed_types: Iterable[str] | None = None) -> dict[str, list[BlockType]]:
    """Block types grouped by category, in category order; empty categories omitted."""
    entries = list_block_types(allowed_types)
    grouped: dict[str, list[BlockType]] = {}
    for category, _label in BLOCK_CATEGORIES:
        members = [e for e in entries if e.category == category]
        if members:
            grouped[category] = members
    return grouped


def new_block_id() -> str:
    return f"blk_{uuid4().hex[:12]}"


def default_block(block_type: str) -> dict[str, Any]:
    entry = BLOCK_REGISTRY.get(block_type)
    if entry is None:
        raise UnknownBlockTypeError(block_type)
    data = entry.model.model_validate(entry.default_data).model_dump(by_alias=True)
    return {
        "id": new_block_id(),
        "type": block_type,
        "data": data,
        "settings": BlockSettings().model_dump(by_alias=True),
    }


def _pydantic_errors(exc: PydanticValidationError, prefix: str) -> list[ValidationError]:
    errors = []
    for error in exc.errors():
        path = ".".join(str(part) for part in error.get("loc", ()))
        errors.append(
            ValidationError(
                "invalid_block_data",
                error.get("msg", "Invalid value"),
                f"{prefix}.{path}" if path else prefix,
            )
        )
    return errors


def validate_block(
    block: Any, prefix: str = "block"
) -> tuple[dict[str, Any] | None, list[ValidationError]]:
    """
    Validate one block. Returns the block with defaults filled in, or None
    and the errors.
    """
    if not isinstance(block, dict):
        return None, [ValidationError("invalid_block", "Block must be an object", prefix)]

    block_type = block.get("type")
    entry = BLOCK_REGISTRY.get(block_type) if isinstance(block_type, str) else None
    if entry is None:
        return None, [
            ValidationError("unknown_block_type", f"Unknown block type: {block_type}", f"{prefix}.type")
        ]

    errors: list[ValidationError] = []
    data: dict[str, Any] | None = None
    settings: dict[str, Any] | None = None
    try:
        data = entry.model.model_validate(block.get("data") or {}).model_dump(by_alias=True)
    except PydanticValidationError as e:
        errors.extend(_pydantic_errors(e, f"{prefix}.data"))
    try:
        settings = BlockSettings.model_validate(block.get("settings") or {}).model_dump(by_alias=True)
    except PydanticValidationError as e:
        errors.extend(_pydantic_errors(e, f"{prefix}.settings"))

    if errors:
        return None, errors
    block_id = block.get("id")
    return {
        "id": block_id if isinstance(block_id, str) and block_id else new_block_id(),
        "type": block_type,
        "data": data,
        "settings": settings,
    }, []


def _raw_blocks(content_json: Any) -> list[Any]:
    if content_json is None:
        return []
    if isinstance(content_json, list):
        return content_json
    if isinstance(content_json, dict):
        blocks = content_json.get("blocks")
        return blocks if isinstance(blocks, list) else []
    return []


@dataclass(frozen=True)
class NormalizedContent:
    content: dict[str, Any]
    warnings: list[str] = field(default_factory=list)


def normalize_content(content_json: Any) -> NormalizedContent:
    """
    Coerce stored content into {"version": 1, "blocks": [...]}.

    Fills missing ids, data defaults and settings. Unknown block types are
    dropped. Blocks whose data fails validation are kept with defaults
    merged under the stored values so nothing the editor typed is lost.
    """
    warnings: list[str] = []
    blocks: list[dict[str, Any]] = []
    seen: set[str] = set()

    for i, raw in enumerate(_raw_blocks(content_json)):
        if not isinstance(raw, dict):
            warnings.append(f"Block {i} is not an object; dropped")
            continue
        block_type = raw.get("type")
        entry = BLOCK_REGISTRY.get(block_type) if isinstance(block_type, str) else None
        if entry is None:
            warnings.append(f"Unknown block type '{block_type}' at position {i}; dropped")
            continue

        block, errors = validate_block(raw, f"blocks.{i}")
        if block is None:
            warnings.append(f"Block '{block_type}' at position {i} has invalid data")
            stored = raw.get("data") if isinstance(raw.get("data"), dict) else {}
            raw_id = raw.get("id")
            block = {
                "id": raw_id if isinstance(raw_id, str) and raw_id else new_block_id(),
                "type": block_type,
                "data": {**entry.default_data, **stored},
                "settings": BlockSettings().model_dump(by_alias=True),
            }
        if block["id"] in seen:
            block["id"] = new_block_id()
        seen.add(block["id"])
        blocks.append(block)

    if warnings:
        logger.warning(f"Normalized page content with {len(warnings)} warning(s)")
    return NormalizedContent(content={"version": CONTENT_VERSION, "blocks": blocks}, warnings=warnings)


def validate_content(
    content_json: Any,
    max_blocks: int = 60,
    allowed_types: Iterable[str] | None = None,
) -> list[ValidationError]:
    """Strict check used before saving or publishing a page."""
    if content_json is None:
        return []
    if not isinstance(content_json, dict) or not isinstance(content_json.get("blocks"), list):
        return [
            ValidationError(
                "invalid_content", "Content must be an object with a blocks list", "content_json"
            )
        ]
    version = content_json.get("version", CONTENT_VERSION)
    if version != CONTENT_VERSION:
        return [
            ValidationError(
                "unsupported_version",
                f"Unsupported content version {version}",
                "content_json.version",
            )
        ]

    blocks = content_json["blocks"]
    errors: list[ValidationError] = []
    if len(blocks) > max_blocks:
        errors.append(
            ValidationError(
                "too_many_blocks",
                f"A page can have at most {max_blocks} blocks",
                "content_json.blocks",
            )
        )

    allowed = _allowed(allowed_types)
    seen: set[str] = set()
    for i, block in enumerate(blocks):
        prefix = f"content_json.blocks.{i}"
        block_type = block.get("type") if isinstance(block, dict) else None
        if block_type in BLOCK_REGISTRY and block_type not in allowed:
            errors.append(
                ValidationError(
                    "block_type_not_allowed", f"Block type {block_type} is disabled", f"{prefix}.type"
                )
            )
            continue
        _normalized, block_errors = validate_block(block, prefix)
        errors.extend(block_errors)
        block_id = block.get("id") if isinstance(block, dict) else None
        if isinstance(block_id, str) and block_id:
            if block_id in seen:
                errors.append(
                    ValidationError(
                        "duplicate_block_id", f"Duplicate block id {block_id}", f"{prefix}.id"
                    )
                )
            seen.add(block_id)
    return errors

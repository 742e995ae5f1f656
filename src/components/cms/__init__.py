"""
CMS component - pages built from typed blocks.
"""

from .blocks import (
    BLOCK_CATEGORIES,
    BLOCK_REGISTRY,
    BlockSettings,
    BlockType,
    NormalizedContent,
    UnknownBlockTypeError,
    blocks_by_category,
    default_block,
    list_block_types,
    normalize_content,
    validate_block,
    validate_content,
)
from .component import (
    navigation,
    run,
    run_create_page,
    run_delete_page,
    run_get_home_page,
    run_get_public_page,
    run_publish_due,
    run_publish_page,
    run_set_home_page,
    run_set_shop_page,
    run_update_page,
)
from .models import (
    CmsConfig,
    CreatePageInput,
    DeletePageInput,
    GetHomePageInput,
    GetPublicPageInput,
    NavLink,
    Page,
    PageOutput,
    PageStatus,
    PageType,
    SetSpecialPageInput,
    TransitionPageInput,
    UpdatePageInput,
    ValidationError,
    can_transition,
)
from .ports import PageRepoPort, TimePort

__all__ = [
    "run",
    "run_create_page",
    "run_update_page",
    "run_publish_page",
    "run_publish_due",
    "run_set_home_page",
    "run_set_shop_page",
    "run_delete_page",
    "run_get_public_page",
    "run_get_home_page",
    "navigation",
    "BLOCK_CATEGORIES",
    "BLOCK_REGISTRY",
    "BlockSettings",
    "BlockType",
    "NormalizedContent",
    "UnknownBlockTypeError",
    "blocks_by_category",
    "default_block",
    "list_block_types",
    "normalize_content",
    "validate_block",
    "validate_content",
    "CmsConfig",
    "CreatePageInput",
    "DeletePageInput",
    "GetHomePageInput",
    "GetPublicPageInput",
    "NavLink",
    "Page",
    "PageOutput",
    "PageStatus",
    "PageType",
    "SetSpecialPageInput",
    "TransitionPageInput",
    "UpdatePageInput",
    "ValidationError",
    "can_transition",
    "PageRepoPort",
    "TimePort",
]

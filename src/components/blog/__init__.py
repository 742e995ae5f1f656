"""
Blog component - posts, public listing, tags, categories and RSS.
"""

from .component import (
    build_rss,
    list_categories,
    list_tags,
    run,
    run_create_post,
    run_delete_post,
    run_get_public_post,
    run_list_public_posts,
    run_publish_post,
    run_update_post,
)
from .models import (
    CreatePostInput,
    DeletePostInput,
    GetPublicPostInput,
    ListPublicPostsInput,
    Post,
    PostListOutput,
    PostOutput,
    PostStatus,
    PublishPostInput,
    TermCount,
    UpdatePostInput,
    ValidationError,
)
from .ports import PostRepoPort, TimePort

__all__ = [
    "run",
    "run_create_post",
    "run_update_post",
    "run_publish_post",
    "run_delete_post",
    "run_list_public_posts",
    "run_get_public_post",
    "list_tags",
    "list_categories",
    "build_rss",
    "CreatePostInput",
    "DeletePostInput",
    "GetPublicPostInput",
    "ListPublicPostsInput",
    "Post",
    "PostListOutput",
    "PostOutput",
    "PostStatus",
    "PublishPostInput",
    "TermCount",
    "UpdatePostInput",
    "ValidationError",
    "PostRepoPort",
    "TimePort",
]

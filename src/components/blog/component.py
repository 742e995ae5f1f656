"""
Blog component - posts, public listing and the RSS feed.

Public reads only ever see published posts whose published_at has passed.
"""

from __future__ import annotations

import logging
import math
import re
from collections import Counter
from email.utils import format_datetime
from typing import Any
from uuid import uuid4
from xml.etree import ElementTree as ET

from src.components.audit.component import AuditRecorder
from src.components.blog.models import (
    UPDATABLE_FIELDS,
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
    can_transition,
)
from src.components.blog.ports import PostRepoPort, TimePort

logger = logging.getLogger(__name__)

SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
DEFAULT_PAGE_SIZE = 12
MAX_PAGE_SIZE = 50
RSS_ITEM_LIMIT = 20


def _not_found(ref: Any) -> PostOutput:
    return PostOutput(success=False, errors=[ValidationError("not_found", f"Post {ref} not found")])


def _clean_terms(values: list[str]) -> list[str]:
    """Strip, drop empties and de-duplicate while keeping order."""
    seen: dict[str, None] = {}
    for value in values:
        value = value.strip()
        if value:
            seen.setdefault(value, None)
    return list(seen)


def _validate(
    title: str, slug: str, repo: PostRepoPort, current: Post | None = None
) -> list[ValidationError]:
    errors: list[ValidationError] = []
    if not title or not title.strip():
        errors.append(ValidationError("title_required", "Title is required", "title"))
    if not slug or not SLUG_PATTERN.match(slug):
        errors.append(
            ValidationError(
                "slug_invalid", "Slug must be lowercase alphanumeric with hyphens", "slug"
            )
        )
    else:
        existing = repo.get_by_slug(slug)
        if existing is not None and (current is None or existing.id != current.id):
            errors.append(ValidationError("slug_taken", f"Slug '{slug}' is already in use", "slug"))
    return errors


def _visible_posts(repo: PostRepoPort, time: TimePort) -> list[Post]:
    now = time.now_utc()
    posts = [
        p
        for p in repo.list_posts(PostStatus.PUBLISHED)
        if p.published_at is not None and p.published_at <= now
    ]
    posts.sort(key=lambda p: p.published_at, reverse=True)
    return posts


# --- Admin operations ---


def run_create_post(inp: CreatePostInput, *, repo: PostRepoPort, time: TimePort) -> PostOutput:
    errors = _validate(inp.title, inp.slug, repo)
    if errors:
        return PostOutput(success=False, errors=errors)

    now = time.now_utc()
    post = Post(
        id=uuid4(),
        slug=inp.slug,
        title=inp.title.strip(),
        excerpt=inp.excerpt,
        body=inp.body,
        cover_image=inp.cover_image,
        author_name=inp.author_name,
        tags=_clean_terms(inp.tags),
        categories=_clean_terms(inp.categories),
        featured=inp.featured,
        created_at=now,
        updated_at=now,
    )
    saved = repo.save(post)
    logger.info(f"Post created: {saved.slug}")
    return PostOutput(success=True, post=saved)


def run_update_post(inp: UpdatePostInput, *, repo: PostRepoPort, time: TimePort) -> PostOutput:
    post = repo.get_by_id(inp.post_id)
    if post is None:
        return _not_found(inp.post_id)

    unknown = sorted(set(inp.updates) - UPDATABLE_FIELDS)
    if unknown:
        return PostOutput(
            success=False,
            post=post,
            errors=[
                ValidationError("unknown_field", f"Field '{name}' cannot be updated", name)
                for name in unknown
            ],
        )

    updates = dict(inp.updates)
    errors = _validate(
        updates.get("title", post.title), updates.get("slug", post.slug), repo, current=post
    )
    if errors:
        return PostOutput(success=False, post=post, errors=errors)

    for name in ("tags", "categories"):
        if name in updates:
            updates[name] = _clean_terms(updates[name] or [])
    for name, value in updates.items():
        setattr(post, name, value)
    post.updated_at = time.now_utc()
    return PostOutput(success=True, post=repo.save(post))


def run_publish_post(
    inp: PublishPostInput,
    *,
    repo: PostRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
) -> PostOutput:
    post = repo.get_by_id(inp.post_id)
    if post is None:
        return _not_found(inp.post_id)
    try:
        to_status = PostStatus(inp.to_status)
    except ValueError:
        return PostOutput(
            success=False,
            post=post,
            errors=[ValidationError("invalid_status", f"Unknown status: {inp.to_status}", "status")],
        )
    if not can_transition(post.status, to_status):
        return PostOutput(
            success=False,
            post=post,
            errors=[
                ValidationError(
                    "invalid_transition",
                    f"Cannot transition from '{post.status.value}' to '{to_status.value}'",
                    "status",
                )
            ],
        )

    now = time.now_utc()
    post.status = to_status
    post.updated_at = now
    if to_status == PostStatus.PUBLISHED and post.published_at is None:
        post.published_at = now
    saved = repo.save(post)
    logger.info(f"Post {saved.slug} is now {to_status.value}")
    if audit is not None:
        audit.record(
            "publish" if to_status == PostStatus.PUBLISHED else "status_change",
            "post",
            str(saved.id),
            description=f"Post '{saved.title}' {to_status.value}",
            actor_id=inp.actor_id,
            actor_name=inp.actor_name,
        )
    return PostOutput(success=True, post=saved)


def run_delete_post(inp: DeletePostInput, *, repo: PostRepoPort) -> PostOutput:
    post = repo.get_by_id(inp.post_id)
    if post is None:
        return _not_found(inp.post_id)
    repo.delete(post.id)
    return PostOutput(success=True, post=post)


# --- Public reads ---


def run_list_public_posts(
    inp: ListPublicPostsInput, *, repo: PostRepoPort, time: TimePort
) -> PostListOutput:
    page_size = max(1, min(inp.page_size or DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE))
    page = max(1, inp.page)

    posts = _visible_posts(repo, time)
    if inp.q:
        needle = inp.q.strip().lower()
        posts = [p for p in posts if needle in p.title.lower() or needle in p.excerpt.lower()]
    if inp.tag:
        posts = [p for p in posts if inp.tag in p.tags]
    if inp.category:
        posts = [p for p in posts if inp.category in p.categories]

    total = len(posts)
    start = (page - 1) * page_size
    return PostListOutput(
        posts=posts[start : start + page_size],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=math.ceil(total / page_size) if total else 0,
    )


def run_get_public_post(
    inp: GetPublicPostInput, *, repo: PostRepoPort, time: TimePort
) -> PostOutput:
    post = repo.get_by_slug(inp.slug)
    if (
        post is None
        or post.status != PostStatus.PUBLISHED
        or post.published_at is None
        or post.published_at > time.now_utc()
    ):
        return _not_found(inp.slug)
    return PostOutput(success=True, post=post)


def _term_counts(posts: list[Post], attr: str) -> list[TermCount]:
    counts = Counter(term for p in posts for term in getattr(p, attr))
    return [TermCount(name, n) for name, n in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))]


def list_tags(*, repo: PostRepoPort, time: TimePort) -> list[TermCount]:
    return _term_counts(_visible_posts(repo, time), "tags")


def list_categories(*, repo: PostRepoPort, time: TimePort) -> list[TermCount]:
    return _term_counts(_visible_posts(repo, time), "categories")


def build_rss(
    *,
    repo: PostRepoPort,
    time: TimePort,
    base_url: str,
    title: str = "Power Plunge Blog",
    description: str = "News and guides from Power Plunge",
) -> str:
    """RSS 2.0 document of the latest published posts."""
    base = base_url.rstrip("/")
    rss = ET.Element("rss", version="2.0")
    channel = ET.SubElement(rss, "channel")
    ET.SubElement(channel, "title").text = title
    ET.SubElement(channel, "link").text = f"{base}/blog"
    ET.SubElement(channel, "description").text = description
    ET.SubElement(channel, "lastBuildDate").text = format_datetime(time.now_utc())

    for post in _visible_posts(repo, time)[:RSS_ITEM_LIMIT]:
        link = f"{base}/blog/{post.slug}"
        item = ET.SubElement(channel, "item")
        ET.SubElement(item, "title").text = post.title
        ET.SubElement(item, "link").text = link
        ET.SubElement(item, "guid", isPermaLink="true").text = link
        ET.SubElement(item, "description").text = post.excerpt
        ET.SubElement(item, "pubDate").text = format_datetime(post.published_at)
        for category in post.categories:
            ET.SubElement(item, "category").text = category

    body = ET.tostring(rss, encoding="unicode")
    return f'<?xml version="1.0" encoding="UTF-8"?>\n{body}'


def run(
    inp: CreatePostInput
    | UpdatePostInput
    | PublishPostInput
    | DeletePostInput
    | ListPublicPostsInput
    | GetPublicPostInput,
    *,
    repo: PostRepoPort,
    time: TimePort,
    audit: AuditRecorder | None = None,
) -> PostOutput | PostListOutput:
    """Blog component entry point."""
    if isinstance(inp, CreatePostInput):
        return run_create_post(inp, repo=repo, time=time)
    if isinstance(inp, UpdatePostInput):
        return run_update_post(inp, repo=repo, time=time)
    if isinstance(inp, PublishPostInput):
        return run_publish_post(inp, repo=repo, time=time, audit=audit)
    if isinstance(inp, DeletePostInput):
        return run_delete_post(inp, repo=repo)
    if isinstance(inp, ListPublicPostsInput):
        return run_list_public_posts(inp, repo=repo, time=time)
    if isinstance(inp, GetPublicPostInput):
        return run_get_public_post(inp, repo=repo, time=time)
    raise ValueError(f"Unknown input type: {type(inp)}")

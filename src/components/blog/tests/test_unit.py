"""
Unit tests for the blog component.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID
from xml.etree import ElementTree as ET

import pytest

from src.adapters.clock import FixedClock
from src.components.blog import (
    CreatePostInput,
    DeletePostInput,
    GetPublicPostInput,
    ListPublicPostsInput,
    Post,
    PostStatus,
    PublishPostInput,
    UpdatePostInput,
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

NOW = datetime(2026, 4, 10, 9, 0, tzinfo=UTC)


class MockPostRepo:
    def __init__(self) -> None:
        self.posts: dict[UUID, Post] = {}

    def get_by_id(self, post_id: UUID) -> Post | None:
        return self.posts.get(post_id)

    def get_by_slug(self, slug: str) -> Post | None:
        return next((p for p in self.posts.values() if p.slug == slug), None)

    def list_posts(self, status: PostStatus | None = None) -> list[Post]:
        return [p for p in self.posts.values() if status is None or p.status == status]

    def save(self, post: Post) -> Post:
        self.posts[post.id] = post
        return post

    def delete(self, post_id: UUID) -> bool:
        return self.posts.pop(post_id, None) is not None


@pytest.fixture
def repo() -> MockPostRepo:
    return MockPostRepo()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


def _post(
    repo: MockPostRepo,
    clock: FixedClock,
    slug: str,
    *,
    published_ago: timedelta | None = timedelta(days=1),
    **kwargs,
) -> Post:
    out = run_create_post(
        CreatePostInput(title=kwargs.pop("title", slug.replace("-", " ").title()), slug=slug, **kwargs),
        repo=repo,
        time=clock,
    )
    assert out.success, out.errors
    post = out.post
    if published_ago is not None:
        post.status = PostStatus.PUBLISHED
        post.published_at = NOW - published_ago
    return post


class TestCreateUpdate:
    def test_create_cleans_terms(self, repo: MockPostRepo, clock: FixedClock) -> None:
        post = _post(repo, clock, "cold-facts", published_ago=None, tags=[" recovery", "recovery", ""])
        assert post.tags == ["recovery"]
        assert post.status == PostStatus.DRAFT

    def test_create_duplicate_slug(self, repo: MockPostRepo, clock: FixedClock) -> None:
        _post(repo, clock, "cold-facts")
        out = run_create_post(CreatePostInput(title="Again", slug="cold-facts"), repo=repo, time=clock)
        assert out.errors[0].code == "slug_taken"

    def test_create_invalid_slug(self, repo: MockPostRepo, clock: FixedClock) -> None:
        out = run_create_post(CreatePostInput(title="T", slug="Cold Facts"), repo=repo, time=clock)
        assert out.errors[0].code == "slug_invalid"

    def test_update(self, repo: MockPostRepo, clock: FixedClock) -> None:
        post = _post(repo, clock, "cold-facts", published_ago=None)
        out = run_update_post(
            UpdatePostInput(post_id=post.id, updates={"excerpt": "Short", "tags": ["a", "a"]}),
            repo=repo,
            time=clock,
        )
        assert out.success
        assert post.excerpt == "Short"
        assert post.tags == ["a"]

    def test_update_unknown_field(self, repo: MockPostRepo, clock: FixedClock) -> None:
        post = _post(repo, clock, "cold-facts", published_ago=None)
        out = run_update_post(
            UpdatePostInput(post_id=post.id, updates={"status": "published"}), repo=repo, time=clock
        )
        assert out.errors[0].code == "unknown_field"

    def test_delete(self, repo: MockPostRepo, clock: FixedClock) -> None:
        post = _post(repo, clock, "cold-facts")
        assert run_delete_post(DeletePostInput(post_id=post.id), repo=repo).success
        assert repo.posts == {}


class TestPublish:
    def test_publish_stamps_date(self, repo: MockPostRepo, clock: FixedClock) -> None:
        post = _post(repo, clock, "cold-facts", published_ago=None)
        out = run_publish_post(
            PublishPostInput(post_id=post.id, to_status="published"), repo=repo, time=clock
        )
        assert out.success
        assert post.published_at == NOW

    def test_republish_keeps_original_date(self, repo: MockPostRepo, clock: FixedClock) -> None:
        post = _post(repo, clock, "cold-facts")
        original = post.published_at
        run_publish_post(PublishPostInput(post_id=post.id, to_status="draft"), repo=repo, time=clock)
        run_publish_post(
            PublishPostInput(post_id=post.id, to_status="published"), repo=repo, time=clock
        )
        assert post.published_at == original

    def test_invalid_transition(self, repo: MockPostRepo, clock: FixedClock) -> None:
        post = _post(repo, clock, "cold-facts")
        out = run_publish_post(
            PublishPostInput(post_id=post.id, to_status="published"), repo=repo, time=clock
        )
        assert out.errors[0].code == "invalid_transition"


class TestPublicListing:
    def test_only_published_and_past(self, repo: MockPostRepo, clock: FixedClock) -> None:
        _post(repo, clock, "visible")
        _post(repo, clock, "draft", published_ago=None)
        _post(repo, clock, "future", published_ago=timedelta(days=-1))
        out = run_list_public_posts(ListPublicPostsInput(), repo=repo, time=clock)
        assert [p.slug for p in out.posts] == ["visible"]
        assert out.total == 1

    def test_newest_first(self, repo: MockPostRepo, clock: FixedClock) -> None:
        _post(repo, clock, "older", published_ago=timedelta(days=5))
        _post(repo, clock, "newer", published_ago=timedelta(days=1))
        out = run_list_public_posts(ListPublicPostsInput(), repo=repo, time=clock)
        assert [p.slug for p in out.posts] == ["newer", "older"]

    def test_search_title_and_excerpt(self, repo: MockPostRepo, clock: FixedClock) -> None:
        _post(repo, clock, "ice-baths", title="Ice Baths 101")
        _post(repo, clock, "sleep", excerpt="Cold ICE helps sleep")
        _post(repo, clock, "sauna")
        out = run_list_public_posts(ListPublicPostsInput(q="ice"), repo=repo, time=clock)
        assert {p.slug for p in out.posts} == {"ice-baths", "sleep"}

    def test_tag_and_category_filters(self, repo: MockPostRepo, clock: FixedClock) -> None:
        _post(repo, clock, "a", tags=["recovery"], categories=["guides"])
        _post(repo, clock, "b", tags=["recovery"])
        assert (
            run_list_public_posts(ListPublicPostsInput(tag="recovery"), repo=repo, time=clock).total
            == 2
        )
        out = run_list_public_posts(ListPublicPostsInput(category="guides"), repo=repo, time=clock)
        assert [p.slug for p in out.posts] == ["a"]

    def test_pagination(self, repo: MockPostRepo, clock: FixedClock) -> None:
        for i in range(5):
            _post(repo, clock, f"post-{i}", published_ago=timedelta(hours=i + 1))
        out = run_list_public_posts(
            ListPublicPostsInput(page=2, page_size=2), repo=repo, time=clock
        )
        assert [p.slug for p in out.posts] == ["post-2", "post-3"]
        assert out.total_pages == 3

    def test_page_size_capped(self, repo: MockPostRepo, clock: FixedClock) -> None:
        out = run_list_public_posts(ListPublicPostsInput(page_size=500), repo=repo, time=clock)
        assert out.page_size == 50
        assert out.total_pages == 0

    def test_get_public_post(self, repo: MockPostRepo, clock: FixedClock) -> None:
        _post(repo, clock, "visible")
        _post(repo, clock, "draft", published_ago=None)
        assert run_get_public_post(GetPublicPostInput(slug="visible"), repo=repo, time=clock).success
        out = run_get_public_post(GetPublicPostInput(slug="draft"), repo=repo, time=clock)
        assert out.errors[0].code == "not_found"


class TestTerms:
    def test_counts(self, repo: MockPostRepo, clock: FixedClock) -> None:
        _post(repo, clock, "a", tags=["recovery", "science"], categories=["guides"])
        _post(repo, clock, "b", tags=["recovery"], categories=["news"])
        _post(repo, clock, "c", published_ago=None, tags=["hidden"])
        tags = list_tags(repo=repo, time=clock)
        assert [(t.name, t.count) for t in tags] == [("recovery", 2), ("science", 1)]
        categories = list_categories(repo=repo, time=clock)
        assert [c.name for c in categories] == ["guides", "news"]


class TestRss:
    def test_feed(self, repo: MockPostRepo, clock: FixedClock) -> None:
        _post(repo, clock, "ice-baths", title="Ice & Baths", categories=["guides"])
        _post(repo, clock, "draft", published_ago=None)
        xml = build_rss(repo=repo, time=clock, base_url="https://shop.example/")

        assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>')
        root = ET.fromstring(xml.split("\n", 1)[1])
        assert root.tag == "rss"
        assert root.get("version") == "2.0"
        items = root.findall("./channel/item")
        assert len(items) == 1
        assert items[0].findtext("title") == "Ice & Baths"
        assert items[0].findtext("link") == "https://shop.example/blog/ice-baths"
        assert items[0].findtext("category") == "guides"

    def test_feed_limited_to_twenty(self, repo: MockPostRepo, clock: FixedClock) -> None:
        for i in range(25):
            _post(repo, clock, f"post-{i}", published_ago=timedelta(hours=i + 1))
        root = ET.fromstring(build_rss(repo=repo, time=clock, base_url="http://x").split("\n", 1)[1])
        assert len(root.findall("./channel/item")) == 20


def test_run_unknown_input(repo: MockPostRepo, clock: FixedClock) -> None:
    with pytest.raises(ValueError, match="Unknown input type"):
        run(object(), repo=repo, time=clock)  # type: ignore[arg-type]

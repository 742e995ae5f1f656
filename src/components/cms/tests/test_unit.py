"""
Unit tests for the CMS component: block registry and page lifecycle.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from uuid import UUID

import pytest

from src.adapters.clock import FixedClock
from src.components.audit import AuditEntry, AuditRecorder
from src.components.cms import (
    BLOCK_REGISTRY,
    CmsConfig,
    CreatePageInput,
    DeletePageInput,
    GetHomePageInput,
    GetPublicPageInput,
    Page,
    PageStatus,
    SetSpecialPageInput,
    TransitionPageInput,
    UnknownBlockTypeError,
    UpdatePageInput,
    blocks_by_category,
    default_block,
    list_block_types,
    navigation,
    normalize_content,
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
    validate_block,
    validate_content,
)

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class MockPageRepo:
    def __init__(self) -> None:
        self.pages: dict[UUID, Page] = {}

    def get_by_id(self, page_id: UUID) -> Page | None:
        return self.pages.get(page_id)

    def get_by_slug(self, slug: str) -> Page | None:
        return next((p for p in self.pages.values() if p.slug == slug), None)

    def get_home(self) -> Page | None:
        return next((p for p in self.pages.values() if p.is_home), None)

    def get_shop(self) -> Page | None:
        return next((p for p in self.pages.values() if p.is_shop), None)

    def list_pages(self, status: PageStatus | None = None) -> list[Page]:
        return [p for p in self.pages.values() if status is None or p.status == status]

    def save(self, page: Page) -> Page:
        self.pages[page.id] = page
        return page

    def delete(self, page_id: UUID) -> bool:
        return self.pages.pop(page_id, None) is not None


class MockAuditRepo:
    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []

    def save(self, entry: AuditEntry) -> AuditEntry:
        self.entries.append(entry)
        return entry


@pytest.fixture
def repo() -> MockPageRepo:
    return MockPageRepo()


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


def _create(repo: MockPageRepo, clock: FixedClock, slug: str = "about", **kwargs) -> Page:
    out = run_create_page(
        CreatePageInput(title=kwargs.pop("title", slug.title()), slug=slug, **kwargs),
        repo=repo,
        time=clock,
    )
    assert out.success, out.errors
    assert out.page is not None
    return out.page


def _publish(repo: MockPageRepo, clock: FixedClock, page: Page) -> Page:
    out = run_publish_page(
        TransitionPageInput(page_id=page.id, to_status="published"), repo=repo, time=clock
    )
    assert out.success, out.errors
    return out.page


# --- Block registry ---


class TestBlockRegistry:
    def test_fourteen_block_types(self) -> None:
        assert len(BLOCK_REGISTRY) == 14
        assert BLOCK_REGISTRY["hero"].category == "marketing"
        assert BLOCK_REGISTRY["richText"].category == "layout"
        assert BLOCK_REGISTRY["comparisonTable"].category == "ecommerce"
        assert BLOCK_REGISTRY["faq"].category == "utility"

    def test_list_filters_by_allowed(self) -> None:
        types = [b.type for b in list_block_types(["hero", "faq", "nope"])]
        assert types == ["hero", "faq"]

    def test_blocks_by_category_omits_empty(self) -> None:
        grouped = blocks_by_category(["spacer", "trustBar"])
        assert list(grouped) == ["layout", "trust"]

    def test_default_block_is_valid(self) -> None:
        for block_type in BLOCK_REGISTRY:
            block = default_block(block_type)
            assert block["id"].startswith("blk_")
            normalized, errors = validate_block(block)
            assert errors == [], block_type
            assert normalized is not None

    def test_default_block_unknown_type(self) -> None:
        with pytest.raises(UnknownBlockTypeError):
            default_block("carousel")

    def test_validate_block_fills_defaults(self) -> None:
        block, errors = validate_block({"type": "hero", "data": {"headline": "Cold"}})
        assert errors == []
        assert block["data"]["ctaHref"] == "#"
        assert block["data"]["overlayOpacity"] == 60
        assert block["settings"]["padding"] == "md"

    def test_validate_block_invalid_data(self) -> None:
        block, errors = validate_block(
            {"type": "hero", "data": {"headline": "x", "overlayOpacity": 150}}, "b"
        )
        assert block is None
        assert errors[0].code == "invalid_block_data"
        assert errors[0].field == "b.data.overlayOpacity"


class TestNormalizeContent:
    def test_none_becomes_empty_document(self) -> None:
        assert normalize_content(None).content == {"version": 1, "blocks": []}

    def test_bare_list_accepted(self) -> None:
        result = normalize_content([{"type": "spacer"}])
        assert len(result.content["blocks"]) == 1
        assert result.content["blocks"][0]["data"] == {"size": "md"}

    def test_unknown_type_dropped_with_warning(self) -> None:
        result = normalize_content({"blocks": [{"type": "carousel"}, {"type": "divider"}]})
        assert [b["type"] for b in result.content["blocks"]] == ["divider"]
        assert "carousel" in result.warnings[0]

    def test_invalid_block_kept_with_stored_values(self) -> None:
        result = normalize_content({"blocks": [{"id": "a", "type": "image", "data": {"alt": "x"}}]})
        block = result.content["blocks"][0]
        assert block["id"] == "a"
        assert block["data"]["alt"] == "x"
        assert block["data"]["src"]
        assert result.warnings

    def test_duplicate_ids_reassigned(self) -> None:
        result = normalize_content(
            {"blocks": [{"id": "x", "type": "spacer"}, {"id": "x", "type": "divider"}]}
        )
        ids = [b["id"] for b in result.content["blocks"]]
        assert ids[0] == "x"
        assert ids[1] != "x"


class TestValidateContent:
    def test_valid(self) -> None:
        content = {"version": 1, "blocks": [default_block("hero"), default_block("faq")]}
        assert validate_content(content) == []

    def test_not_a_document(self) -> None:
        assert validate_content("hello")[0].code == "invalid_content"

    def test_wrong_version(self) -> None:
        assert validate_content({"version": 2, "blocks": []})[0].code == "unsupported_version"

    def test_too_many_blocks(self) -> None:
        content = {"version": 1, "blocks": [default_block("spacer") for _ in range(3)]}
        codes = [e.code for e in validate_content(content, max_blocks=2)]
        assert codes == ["too_many_blocks"]

    def test_unknown_type(self) -> None:
        errors = validate_content({"version": 1, "blocks": [{"id": "a", "type": "carousel"}]})
        assert errors[0].code == "unknown_block_type"

    def test_disallowed_type(self) -> None:
        content = {"version": 1, "blocks": [default_block("hero")]}
        errors = validate_content(content, allowed_types=["faq"])
        assert errors[0].code == "block_type_not_allowed"

    def test_duplicate_ids(self) -> None:
        block = default_block("spacer")
        errors = validate_content({"version": 1, "blocks": [block, dict(block)]})
        assert [e.code for e in errors] == ["duplicate_block_id"]


# --- Pages ---


class TestCreatePage:
    def test_creates_draft(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock, content_json=[{"type": "hero", "data": {"headline": "Hi"}}])
        assert page.status == PageStatus.DRAFT
        assert page.content_json["version"] == 1
        assert page.content_json["blocks"][0]["type"] == "hero"
        assert page.created_at == NOW

    def test_duplicate_slug(self, repo: MockPageRepo, clock: FixedClock) -> None:
        _create(repo, clock, "about")
        out = run_create_page(CreatePageInput(title="Again", slug="about"), repo=repo, time=clock)
        assert not out.success
        assert out.errors[0].code == "slug_taken"

    def test_reserved_slug(self, repo: MockPageRepo, clock: FixedClock) -> None:
        out = run_create_page(
            CreatePageInput(title="Admin", slug="admin"),
            repo=repo,
            time=clock,
            config=CmsConfig(reserved_slugs=("admin", "api")),
        )
        assert out.errors[0].code == "slug_reserved"

    def test_invalid_slug_and_title(self, repo: MockPageRepo, clock: FixedClock) -> None:
        out = run_create_page(CreatePageInput(title=" ", slug="Bad Slug"), repo=repo, time=clock)
        codes = {e.code for e in out.errors}
        assert codes == {"title_required", "slug_invalid"}

    def test_invalid_page_type(self, repo: MockPageRepo, clock: FixedClock) -> None:
        out = run_create_page(
            CreatePageInput(title="X", slug="x", page_type="blog"), repo=repo, time=clock
        )
        assert out.errors[0].code == "invalid_page_type"

    def test_audited(self, repo: MockPageRepo, clock: FixedClock) -> None:
        audit_repo = MockAuditRepo()
        run_create_page(
            CreatePageInput(title="About", slug="about", actor_name="ana"),
            repo=repo,
            time=clock,
            audit=AuditRecorder(audit_repo, clock),
        )
        assert audit_repo.entries[0].action == "create"
        assert audit_repo.entries[0].entity_type == "page"


class TestUpdatePage:
    def test_updates_fields(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock)
        clock.advance(minutes=5)
        out = run_update_page(
            UpdatePageInput(page_id=page.id, updates={"title": " About us ", "show_in_nav": True}),
            repo=repo,
            time=clock,
        )
        assert out.success
        assert out.page.title == "About us"
        assert out.page.show_in_nav is True
        assert out.page.updated_at == NOW + timedelta(minutes=5)

    def test_unknown_field(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock)
        out = run_update_page(
            UpdatePageInput(page_id=page.id, updates={"status": "published"}), repo=repo, time=clock
        )
        assert out.errors[0].code == "unknown_field"
        assert repo.get_by_id(page.id).status == PageStatus.DRAFT

    def test_slug_collision(self, repo: MockPageRepo, clock: FixedClock) -> None:
        _create(repo, clock, "about")
        other = _create(repo, clock, "contact")
        out = run_update_page(
            UpdatePageInput(page_id=other.id, updates={"slug": "about"}), repo=repo, time=clock
        )
        assert out.errors[0].code == "slug_taken"

    def test_content_normalized(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock)
        out = run_update_page(
            UpdatePageInput(page_id=page.id, updates={"content_json": [{"type": "divider"}]}),
            repo=repo,
            time=clock,
        )
        assert out.page.content_json["blocks"][0]["data"]["style"] == "solid"


class TestPublish:
    def test_publish_sets_published_at(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _publish(repo, clock, _create(repo, clock))
        assert page.status == PageStatus.PUBLISHED
        assert page.published_at == NOW

    def test_invalid_transition(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _publish(repo, clock, _create(repo, clock))
        out = run_publish_page(
            TransitionPageInput(page_id=page.id, to_status="scheduled"), repo=repo, time=clock
        )
        assert out.errors[0].code == "invalid_transition"

    def test_schedule_requires_future(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock)
        out = run_publish_page(
            TransitionPageInput(page_id=page.id, to_status="scheduled", publish_at=NOW),
            repo=repo,
            time=clock,
        )
        assert out.errors[0].code == "publish_at_past"

    def test_publish_due_never_early(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock)
        run_publish_page(
            TransitionPageInput(
                page_id=page.id, to_status="scheduled", publish_at=NOW + timedelta(hours=1)
            ),
            repo=repo,
            time=clock,
        )
        assert run_publish_due(repo=repo, time=clock) == []
        clock.advance(hours=1)
        published = run_publish_due(repo=repo, time=clock)
        assert [p.id for p in published] == [page.id]
        assert page.status == PageStatus.PUBLISHED
        assert page.scheduled_at is None

    def test_publish_rejects_invalid_content(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock)
        page.content_json = {"version": 1, "blocks": [{"id": "a", "type": "hero", "data": {}}]}
        out = run_publish_page(
            TransitionPageInput(page_id=page.id, to_status="published"), repo=repo, time=clock
        )
        assert not out.success
        assert out.errors[0].code == "invalid_block_data"

    def test_publish_audited(self, repo: MockPageRepo, clock: FixedClock) -> None:
        audit_repo = MockAuditRepo()
        page = _create(repo, clock)
        run_publish_page(
            TransitionPageInput(page_id=page.id, to_status="published"),
            repo=repo,
            time=clock,
            audit=AuditRecorder(audit_repo, clock),
        )
        assert audit_repo.entries[0].action == "publish"
        assert audit_repo.entries[0].metadata == {"from": "draft", "to": "published"}


class TestSpecialPages:
    def test_single_home_page(self, repo: MockPageRepo, clock: FixedClock) -> None:
        first = _create(repo, clock, "home")
        second = _create(repo, clock, "home-v2")
        run_set_home_page(SetSpecialPageInput(page_id=first.id, role="home"), repo=repo, time=clock)
        run_set_home_page(SetSpecialPageInput(page_id=second.id, role="home"), repo=repo, time=clock)
        assert [p.slug for p in repo.pages.values() if p.is_home] == ["home-v2"]

    def test_single_shop_page(self, repo: MockPageRepo, clock: FixedClock) -> None:
        first = _create(repo, clock, "shop")
        second = _create(repo, clock, "store")
        run_set_shop_page(SetSpecialPageInput(page_id=first.id, role="shop"), repo=repo, time=clock)
        run_set_shop_page(SetSpecialPageInput(page_id=second.id, role="shop"), repo=repo, time=clock)
        assert [p.slug for p in repo.pages.values() if p.is_shop] == ["store"]

    def test_home_page_cannot_be_deleted(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock, "home")
        run_set_home_page(SetSpecialPageInput(page_id=page.id, role="home"), repo=repo, time=clock)
        out = run_delete_page(DeletePageInput(page_id=page.id), repo=repo)
        assert out.errors[0].code == "home_page"
        assert page.id in repo.pages

    def test_delete(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _create(repo, clock)
        assert run_delete_page(DeletePageInput(page_id=page.id), repo=repo).success
        assert repo.pages == {}


class TestPublicReads:
    def test_draft_not_public(self, repo: MockPageRepo, clock: FixedClock) -> None:
        _create(repo, clock, "about")
        out = run_get_public_page(GetPublicPageInput(slug="about"), repo=repo)
        assert out.errors[0].code == "not_found"

    def test_published_public(self, repo: MockPageRepo, clock: FixedClock) -> None:
        _publish(repo, clock, _create(repo, clock, "about"))
        assert run_get_public_page(GetPublicPageInput(slug="about"), repo=repo).success

    def test_home_page(self, repo: MockPageRepo, clock: FixedClock) -> None:
        page = _publish(repo, clock, _create(repo, clock, "home"))
        assert not run_get_home_page(GetHomePageInput(), repo=repo).success
        run_set_home_page(SetSpecialPageInput(page_id=page.id, role="home"), repo=repo, time=clock)
        assert run_get_home_page(GetHomePageInput(), repo=repo).page.id == page.id

    def test_navigation(self, repo: MockPageRepo, clock: FixedClock) -> None:
        home = _publish(repo, clock, _create(repo, clock, "home", show_in_nav=True, nav_order=0))
        run_set_home_page(SetSpecialPageInput(page_id=home.id, role="home"), repo=repo, time=clock)
        _publish(repo, clock, _create(repo, clock, "faq", title="FAQ", show_in_nav=True, nav_order=2))
        _publish(repo, clock, _create(repo, clock, "about", show_in_nav=True, nav_order=1))
        _publish(repo, clock, _create(repo, clock, "hidden"))
        _create(repo, clock, "draft", show_in_nav=True)

        links = navigation(repo.list_pages())
        assert [(n.label, n.href) for n in links] == [
            ("Home", "/"),
            ("About", "/about"),
            ("FAQ", "/faq"),
        ]


def test_run_dispatches(repo: MockPageRepo, clock: FixedClock) -> None:
    out = run(CreatePageInput(title="About", slug="about"), repo=repo, time=clock)
    assert out.success


def test_run_unknown_input(repo: MockPageRepo, clock: FixedClock) -> None:
    with pytest.raises(ValueError, match="Unknown input type"):
        run("nope", repo=repo, time=clock)  # type: ignore[arg-type]

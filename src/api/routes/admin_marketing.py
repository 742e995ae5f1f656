"""
Admin marketing and oversight endpoints.

Newsletter subscribers, the Meta Conversions API queue, first-party
analytics counts and the audit log.
"""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query

from src.adapters.clock import SystemClock
from src.adapters.meta_graph import MetaGraphClient
from src.adapters.sqlite.commerce import SQLiteOrderRepo
from src.adapters.sqlite.marketing import (
    SQLiteCapiEventRepo,
    SQLiteEventRepo,
    SQLiteNewsletterRepo,
)
from src.adapters.sqlite.repos import SQLiteAuditRepo
from src.api.deps import (
    get_audit_repo,
    get_capi_repo,
    get_clock,
    get_event_repo,
    get_meta_client,
    get_meta_config,
    get_newsletter_repo,
    get_order_repo,
    get_rules,
    require_permission,
)
from src.api.serializers import plain
from src.components.audit import QueryAuditInput, run_query
from src.components.capi import DispatchBatchInput, queue_stats, run_dispatch_batch
from src.components.capi.models import MetaConfig
from src.components.consent import EventCountsInput, run_event_counts
from src.components.newsletter import (
    ListSubscribersInput,
    run_list_subscribers,
    subscriber_counts,
)
from src.domain.entities import User
from src.rules.models import Rules

logger = logging.getLogger(__name__)

router = APIRouter()


# --- Newsletter ---


@router.get("/newsletter/subscribers")
def list_subscribers(
    status_filter: str | None = Query(None, alias="status"),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    repo: SQLiteNewsletterRepo = Depends(get_newsletter_repo),
    _: User = Depends(require_permission("newsletter:read")),
) -> dict[str, Any]:
    result = run_list_subscribers(
        ListSubscribersInput(status=status_filter, limit=limit, offset=offset), repo
    )
    counts = subscriber_counts(repo)
    return {
        "subscribers": [plain(s) for s in result.subscribers],
        "total": result.total,
        "counts": {**plain(counts), "total": counts.total},
    }


# --- Conversions API queue ---


@router.get("/capi/stats")
def capi_stats(
    repo: SQLiteCapiEventRepo = Depends(get_capi_repo),
    meta: MetaConfig = Depends(get_meta_config),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("capi:read")),
) -> dict[str, Any]:
    return {"configured": meta.configured, **plain(queue_stats(repo, clock))}


@router.post("/capi/dispatch")
def capi_dispatch(
    limit: int | None = Query(None, ge=1, le=500),
    repo: SQLiteCapiEventRepo = Depends(get_capi_repo),
    orders: SQLiteOrderRepo = Depends(get_order_repo),
    meta: MetaConfig = Depends(get_meta_config),
    client: MetaGraphClient | None = Depends(get_meta_client),
    rules: Rules = Depends(get_rules),
    clock: SystemClock = Depends(get_clock),
    _: User = Depends(require_permission("capi:write")),
) -> dict[str, Any]:
    """Send one batch of due events now instead of waiting for the worker."""
    if client is None or not meta.configured:
        return {"configured": False, "dispatched": 0, "failed": 0}
    result = run_dispatch_batch(
        DispatchBatchInput(limit=limit or rules.capi.batch_size),
        repo,
        client,
        meta,
        clock,
        orders=orders,
        max_attempts=rules.capi.max_attempts,
    )
    logger.info(f"Manual CAPI dispatch: {result.dispatched} sent, {result.failed} failed")
    return {"configured": True, "dispatched": result.dispatched, "failed": result.failed}


# --- Analytics ---


@router.get("/analytics/events")
def event_counts(
    since: datetime | None = None,
    include_bots: bool = False,
    repo: SQLiteEventRepo = Depends(get_event_repo),
    _: User = Depends(require_permission("dashboard:read")),
) -> dict[str, Any]:
    result = run_event_counts(EventCountsInput(since=since, include_bots=include_bots), repo=repo)
    return {"counts": [plain(c) for c in result.counts], "total": result.total}


# --- Audit ---


@router.get("/audit")
def audit_log(
    entity_type: str | None = None,
    entity_id: str | None = None,
    action: str | None = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    repo: SQLiteAuditRepo = Depends(get_audit_repo),
    _: User = Depends(require_permission("audit:read")),
) -> dict[str, Any]:
    result = run_query(
        QueryAuditInput(
            entity_type=entity_type,
            entity_id=entity_id,
            action=action,
            limit=limit,
            offset=offset,
        ),
        repo=repo,
    )
    return {"entries": [plain(e) for e in result.entries], "total": result.total}

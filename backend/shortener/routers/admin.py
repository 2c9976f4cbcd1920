"""
Admin automation router.

Every route runs GATE (emergency stop → credential → AUTH_CHECK log),
then, for operations that change state, RATE LIMIT. Each route also
writes its own entry to the operation log.

POST /admin/api/blog                          — create a post (normal op)
GET  /admin/api/blog                          — list posts
POST /admin/api/automation/load-test          — paced synthetic events (bulk op)
GET  /admin/api/automation/load-test/{job_id} — job progress
POST /admin/api/automation/emergency-stop     — set the kill switch
POST /admin/api/automation/resume             — clear it (credential only)
GET  /admin/api/automation/status             — kill switch state
GET  /admin/api/automation/operations         — operation log, newest first
GET  /admin/api/automation/rate-limit         — caller's own windows
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from shortener.auth.dependencies import AdminContext, require_admin, require_admin_credential
from shortener.auth.rate_limit import admit, enforce_rate_limit
from shortener.core.context import ServiceContext, get_context
from shortener.schemas.admin import (
    EmergencyStatusOut,
    EmergencyStopRequest,
    LoadTestJobOut,
    LoadTestRequest,
    OperationLogEntryOut,
    RateLimitStatusOut,
)
from shortener.schemas.posts import PostCreate, PostOut, PostSummaryOut
from shortener.services.load_test import LoadTestJob
from shortener.services.rate_limiter import OP_BULK

router = APIRouter(tags=["Admin"])

Ctx = Annotated[ServiceContext, Depends(get_context)]
Admin = Annotated[AdminContext, Depends(require_admin)]
RateLimited = Annotated[AdminContext, Depends(enforce_rate_limit)]


def _job_out(job: LoadTestJob) -> LoadTestJobOut:
    return LoadTestJobOut(
        id=job.id,
        key=job.key,
        collection_id=job.collection_id,
        requested=job.requested,
        recorded=job.recorded,
        status=job.status.value,
        started_at=job.started_at,
        finished_at=job.finished_at,
    )


# ── Blog management ─────────────────────────────────────────
@router.post(
    "/blog",
    response_model=PostOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a blog post",
)
async def create_post(payload: PostCreate, context: Ctx, admin: RateLimited) -> PostOut:
    post = context.posts.create(payload.title, payload.content, payload.author)
    context.gate.log_operation(
        "CREATE_POST", admin.client_identity, {"postId": post.id, "slug": post.slug},
    )
    return PostOut.model_validate(post)


@router.get("/blog", response_model=list[PostSummaryOut], summary="List blog posts")
async def list_posts(context: Ctx, _admin: Admin) -> list[PostSummaryOut]:
    return [PostSummaryOut.model_validate(p) for p in context.posts.list()]


# ── Load test (bulk) ────────────────────────────────────────
@router.post(
    "/automation/load-test",
    response_model=LoadTestJobOut,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Record paced synthetic events for one key",
    description=(
        "Bulk operation: subject to the bulk cooldown, the daily bulk cap, "
        "and the hourly cap. Events are labelled as load-test traffic."
    ),
)
async def start_load_test(
    payload: LoadTestRequest,
    context: Ctx,
    admin: Admin,
) -> LoadTestJobOut:
    config = context.settings

    if payload.kind == "click":
        if payload.key not in context.links:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Short URL not found")
        store, limit, base_delay_ms = context.clicks, config.BULK_EVENT_LIMIT, config.CLICK_BASE_DELAY_MS
    else:
        if context.posts.get_by_slug(payload.key) is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")
        store, limit, base_delay_ms = context.views, config.BULK_VIEW_LIMIT, config.VIEW_BASE_DELAY_MS

    if payload.count > limit:
        raise HTTPException(
            status_code=422,
            detail=f"count must be at most {limit} for {payload.kind} load tests",
        )

    admit(context, admin, OP_BULK)

    job = context.load_tests.start(
        store,
        payload.key,
        payload.count,
        requested_by=admin.client_identity,
        base_delay=base_delay_ms / 1000,
    )
    context.gate.log_operation(
        "LOAD_TEST",
        admin.client_identity,
        {"jobId": job.id, "key": payload.key, "kind": payload.kind, "count": payload.count},
    )
    return _job_out(job)


@router.get(
    "/automation/load-test/{job_id}",
    response_model=LoadTestJobOut,
    summary="Load test progress",
)
async def get_load_test(job_id: str, context: Ctx, _admin: Admin) -> LoadTestJobOut:
    job = context.load_tests.get(job_id)
    if job is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")
    return _job_out(job)


# ── Emergency stop ──────────────────────────────────────────
@router.post(
    "/automation/emergency-stop",
    response_model=EmergencyStatusOut,
    summary="Suspend every gated admin operation",
)
async def emergency_stop(
    context: Ctx,
    admin: Admin,
    payload: EmergencyStopRequest | None = None,
) -> EmergencyStatusOut:
    reason = payload.reason if payload else "manual"
    context.gate.activate_emergency_stop(reason, admin.client_identity)
    await context.scheduler.cancel_all()
    return EmergencyStatusOut(active=True, reason=reason)


@router.post(
    "/automation/resume",
    response_model=EmergencyStatusOut,
    summary="Lift the emergency stop",
    description="Checks the credential only; works while the stop is active.",
)
async def resume(
    context: Ctx,
    admin: Annotated[AdminContext, Depends(require_admin_credential)],
) -> EmergencyStatusOut:
    context.gate.release_emergency_stop(admin.client_identity)
    return EmergencyStatusOut(active=False)


@router.get(
    "/automation/status",
    response_model=EmergencyStatusOut,
    summary="Emergency stop state",
)
async def emergency_status(
    context: Ctx,
    _admin: Annotated[AdminContext, Depends(require_admin_credential)],
) -> EmergencyStatusOut:
    stop = context.gate.emergency_stop
    return EmergencyStatusOut(active=stop.active, reason=stop.reason)


# ── Introspection ───────────────────────────────────────────
@router.get(
    "/automation/operations",
    response_model=list[OperationLogEntryOut],
    summary="Recent admin operations, newest first",
)
async def list_operations(
    context: Ctx,
    _admin: Admin,
    limit: int = Query(default=100, ge=1, le=1000),
) -> list[OperationLogEntryOut]:
    return [OperationLogEntryOut.model_validate(e) for e in context.gate.operation_log.recent(limit)]


@router.get(
    "/automation/rate-limit",
    response_model=RateLimitStatusOut,
    summary="The caller's rate-limit windows",
)
async def rate_limit_status(context: Ctx, admin: Admin) -> RateLimitStatusOut:
    limiter = context.rate_limiter
    config = context.settings
    snap = limiter.snapshot(admin.client_identity)
    return RateLimitStatusOut(
        identity=snap.identity,
        operations_last_hour=snap.operations_last_hour,
        bulk_operations_last_day=snap.bulk_operations_last_day,
        cooldown_remaining=snap.cooldown_remaining,
        warning_count=snap.warning_count,
        max_operations_per_hour=limiter.max_operations_per_hour,
        max_bulk_operations_per_day=limiter.max_bulk_operations_per_day,
        next_click_delay_ms=limiter.calculate_progressive_delay(
            admin.client_identity, config.CLICK_BASE_DELAY_MS,
        ),
        next_view_delay_ms=limiter.calculate_progressive_delay(
            admin.client_identity, config.VIEW_BASE_DELAY_MS,
        ),
    )

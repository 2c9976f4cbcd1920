"""
Analytics router — admin-only views over the in-memory analytics.

Aggregates come from AnalyticsAggregator (cached per collection for
ANALYTICS_CACHE_MS, invalidated by every recorded event).

Endpoints:
  GET /admin/api/analytics                — url + blog aggregates, system totals
  GET /admin/api/analytics/{code}         — one short link
  GET /admin/api/blog/{slug}/analytics    — one blog post

Requires the admin gate; reads are not rate limited.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status

from shortener.auth.dependencies import AdminContext, require_admin
from shortener.core.context import ServiceContext, get_context
from shortener.schemas.analytics import (
    AggregateStatsOut,
    DashboardOut,
    ItemAnalyticsOut,
    SystemStatsOut,
)
from shortener.services.reports import build_item_report, build_system_stats

router = APIRouter(tags=["Analytics"])

Ctx = Annotated[ServiceContext, Depends(get_context)]
Admin = Annotated[AdminContext, Depends(require_admin)]


@router.get(
    "/analytics",
    response_model=DashboardOut,
    summary="Aggregate analytics across links and posts",
)
async def get_dashboard(
    context: Ctx,
    _admin: Admin,
    fresh: bool = Query(default=False, description="Bypass the stats cache."),
) -> DashboardOut:
    use_cache = not fresh
    urls = context.aggregator.compute_stats(context.clicks, use_cache=use_cache)
    blog = context.aggregator.compute_stats(context.views, use_cache=use_cache)
    return DashboardOut(
        urls=AggregateStatsOut.model_validate(urls),
        blog=AggregateStatsOut.model_validate(blog),
        system=SystemStatsOut(**build_system_stats(context)),
    )


@router.get(
    "/analytics/{code}",
    response_model=ItemAnalyticsOut,
    summary="Click analytics for one short link",
)
async def get_link_analytics(code: str, context: Ctx, _admin: Admin) -> ItemAnalyticsOut:
    if code not in context.links:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Short URL not found")
    report = build_item_report(context.clicks, code, context.clock.now())
    return ItemAnalyticsOut.model_validate(report)


@router.get(
    "/blog/{slug}/analytics",
    response_model=ItemAnalyticsOut,
    summary="View analytics for one blog post",
)
async def get_post_analytics(slug: str, context: Ctx, _admin: Admin) -> ItemAnalyticsOut:
    if context.posts.get_by_slug(slug) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")
    report = build_item_report(context.views, slug, context.clock.now())
    return ItemAnalyticsOut.model_validate(report)

"""
Public blog router.

GET /blog        — list posts (summaries, newest first)
GET /blog/{slug} — full post; records a view
"""

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status

from shortener.auth.dependencies import client_identity, user_agent
from shortener.core.context import ServiceContext, get_context
from shortener.schemas.posts import PostOut, PostSummaryOut

router = APIRouter(tags=["Blog"])

Ctx = Annotated[ServiceContext, Depends(get_context)]


@router.get("", response_model=list[PostSummaryOut], summary="List blog posts")
async def list_posts(context: Ctx) -> list[PostSummaryOut]:
    return [PostSummaryOut.model_validate(p) for p in context.posts.list()]


@router.get("/{slug}", response_model=PostOut, summary="Read a blog post")
async def read_post(slug: str, request: Request, context: Ctx) -> PostOut:
    post = context.posts.get_by_slug(slug)
    if post is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blog post not found")

    context.views.record_event(slug, client_identity(request), user_agent(request))
    return PostOut.model_validate(post)

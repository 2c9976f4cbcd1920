"""
Link router — public shortening, preview, and redirect.

POST /shorten        — create (or reuse) a short code
GET  /preview/{code} — link details, no click recorded
GET  /{code}         — 302 to the destination, click recorded

The redirect route is a catch-all and must be mounted last.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.responses import RedirectResponse

from shortener.auth.dependencies import client_identity, user_agent
from shortener.core.context import ServiceContext, get_context
from shortener.models.link import Link
from shortener.schemas.links import LinkOut, ShortenRequest, ShortenResponse
from shortener.services.keygen import CollisionExhausted
from shortener.services.links import ShortenError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Links"])

Ctx = Annotated[ServiceContext, Depends(get_context)]

_NOT_FOUND = HTTPException(
    status_code=status.HTTP_404_NOT_FOUND,
    detail="Short URL not found",
)


def _link_out(link: Link) -> dict:
    return {
        "short_code": link.code,
        "original_url": link.original_url,
        "created_at": link.created_at,
        "is_custom": link.is_custom,
    }


@router.post(
    "/shorten",
    response_model=ShortenResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Shorten a URL",
)
async def shorten_url(payload: ShortenRequest, context: Ctx) -> ShortenResponse:
    """
    Returns the existing code if the URL was already shortened
    (auto-generated codes only).
    """
    try:
        result = context.links.create(payload.original_url, payload.custom_code)
    except CollisionExhausted:
        logger.exception("Short code space exhausted")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Unable to generate unique short code",
        )

    if result.error is ShortenError.CODE_TAKEN:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=result.error.value)
    if result.error is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=result.error.value)

    return ShortenResponse(**_link_out(result.link), existing=result.existing)


@router.get(
    "/preview/{code}",
    response_model=LinkOut,
    summary="Inspect a short link without following it",
)
async def preview_link(code: str, context: Ctx) -> LinkOut:
    link = context.links.get(code)
    if link is None:
        raise _NOT_FOUND
    return LinkOut(**_link_out(link))


@router.get(
    "/{code}",
    response_class=RedirectResponse,
    status_code=status.HTTP_302_FOUND,
    summary="Follow a short link",
)
async def follow_link(code: str, request: Request, context: Ctx) -> RedirectResponse:
    link = context.links.get(code)
    if link is None:
        raise _NOT_FOUND

    context.clicks.record_event(code, client_identity(request), user_agent(request))
    return RedirectResponse(url=link.original_url, status_code=status.HTTP_302_FOUND)

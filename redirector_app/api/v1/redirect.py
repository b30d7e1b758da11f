from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import HTMLResponse, PlainTextResponse, RedirectResponse, Response

from redirector_app.exceptions import StoreError
from redirector_app.services.resolution_service import Outcome, OutcomeKind, ResolutionService
from redirector_app.dependencies import get_resolution_service
from redirector_app.templating import render_challenge

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["redirect"])

ACCESS_DENIED = "Access denied."
NO_INDEX_HEADERS = {
    "Cache-Control": "no-store",
    "X-Robots-Tag": "noindex, nofollow",
}


def outcome_to_response(outcome: Outcome) -> Response:
    """
    Turn a resolution Outcome into an HTTP response.

    FORBIDDEN always answers the same generic text: the reason (bot rule,
    bad signature, token mismatch) only ever goes to the logs.
    """
    if outcome.kind == OutcomeKind.REDIRECT:
        return RedirectResponse(url=outcome.url, status_code=status.HTTP_302_FOUND)

    if outcome.kind == OutcomeKind.CHALLENGE:
        return HTMLResponse(render_challenge(outcome.url), headers=NO_INDEX_HEADERS)

    if outcome.kind == OutcomeKind.NOT_FOUND:
        return PlainTextResponse(outcome.reason, status_code=status.HTTP_404_NOT_FOUND)

    if outcome.kind == OutcomeKind.BAD_REQUEST:
        return PlainTextResponse(outcome.reason, status_code=status.HTTP_400_BAD_REQUEST)

    return PlainTextResponse(ACCESS_DENIED, status_code=status.HTTP_403_FORBIDDEN)


async def _resolve(resolver, ident: str, token: str, request: Request) -> Response:
    try:
        outcome = await resolver(ident, token, request.query_params, request.headers)
    except StoreError:
        logger.exception("redirect_lookup_failed", ident=ident)
        return PlainTextResponse(
            "Internal server error.",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )

    if outcome.kind == OutcomeKind.FORBIDDEN:
        logger.warning("redirect_forbidden", ident=ident, reason=outcome.reason)

    return outcome_to_response(outcome)


@router.get("/s/{slug}/{token}")
async def redirect_by_slug(
    slug: str,
    token: str,
    request: Request,
    resolution_service: ResolutionService = Depends(get_resolution_service),
):
    """Resolve a slug link: /s/{slug}/{token}[?email=...]"""
    return await _resolve(resolution_service.resolve_slug, slug, token, request)


@router.get("/{key}/{token}")
async def redirect_by_path_token(
    key: str,
    token: str,
    request: Request,
    resolution_service: ResolutionService = Depends(get_resolution_service),
):
    """
    Resolve a signed link: /{key}/{token}[?email=...]

    Answers 302 (or the challenge page), 403 for bots and bad tokens,
    404 for unknown keys and 400 for a malformed email.
    """
    return await _resolve(resolution_service.resolve, key, token, request)


@router.get("/{key}")
async def redirect_by_query_token(
    key: str,
    request: Request,
    token: Optional[str] = None,
    resolution_service: ResolutionService = Depends(get_resolution_service),
):
    """
    Query form of the same link: /{key}?token=...[&email=...]

    Without a token parameter the path is not a redirect link at all
    (favicon.ico, robots.txt, ...) and gets the unmatched-route 404.
    """
    if token is None:
        return PlainTextResponse("Error: Invalid request.", status_code=status.HTTP_404_NOT_FOUND)
    return await _resolve(resolution_service.resolve, key, token, request)

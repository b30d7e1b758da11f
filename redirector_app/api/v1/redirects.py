from typing import List, Optional

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from redirector_app.dependencies import get_admin_service, get_issuance_service, require_admin
from redirector_app.exceptions import KeyCollisionError, NotFoundError, StoreError, ValidationError
from redirector_app.schemas.redirect import (
    IssueResponse,
    MessageResponse,
    RedirectCreate,
    RedirectRecord,
    RedirectUpdate,
)
from redirector_app.services.admin_service import AdminService
from redirector_app.services.issuance_service import IssuanceService

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["redirects"])
admin_router = APIRouter(prefix="/redirects", tags=["admin"], dependencies=[Depends(require_admin)])


def _message(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


@router.post("/add-redirect", response_model=IssueResponse, response_model_exclude_none=True)
async def add_redirect(
    request: Request,
    body: Optional[RedirectCreate] = None,
    issuance_service: IssuanceService = Depends(get_issuance_service),
):
    """Issue a new signed link for a destination URL"""
    body = body or RedirectCreate()
    try:
        issued = await issuance_service.issue(
            body.destination,
            base_url=str(request.base_url),
            slug=body.slug,
        )
    except ValidationError as exc:
        return _message(status.HTTP_400_BAD_REQUEST, str(exc))
    except KeyCollisionError:
        logger.warning("redirect_key_collision", slug=body.slug)
        return _message(status.HTTP_409_CONFLICT, "Key or slug already in use. Please retry.")
    except StoreError:
        logger.exception("redirect_save_failed")
        return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to save redirect.")

    return IssueResponse(
        message="Redirect added successfully!",
        redirect_url=issued.redirect_url,
        path_redirect_url=issued.path_redirect_url,
        slug_redirect_url=issued.slug_redirect_url,
    )


@admin_router.get("", response_model=List[RedirectRecord])
async def list_redirects(admin_service: AdminService = Depends(get_admin_service)):
    """List every redirect record"""
    try:
        return await admin_service.list_redirects()
    except StoreError:
        logger.exception("redirect_list_failed")
        return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to fetch redirects")


@admin_router.put("/{key}", response_model=MessageResponse)
async def update_redirect(
    key: str,
    body: Optional[RedirectUpdate] = None,
    admin_service: AdminService = Depends(get_admin_service),
):
    """Change the destination of a redirect (token stays the same)"""
    body = body or RedirectUpdate()
    try:
        await admin_service.update_destination(key, body.destination)
    except ValidationError as exc:
        return _message(status.HTTP_400_BAD_REQUEST, str(exc))
    except NotFoundError:
        return _message(status.HTTP_404_NOT_FOUND, "Redirect not found.")
    except StoreError:
        logger.exception("redirect_update_failed", key=key)
        return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to update redirect.")

    return MessageResponse(message="Redirect updated.")


@admin_router.delete("/{key}", response_model=MessageResponse)
async def delete_redirect(
    key: str,
    admin_service: AdminService = Depends(get_admin_service),
):
    """Delete a redirect"""
    try:
        await admin_service.delete_redirect(key)
    except NotFoundError:
        return _message(status.HTTP_404_NOT_FOUND, "Redirect not found.")
    except StoreError:
        logger.exception("redirect_delete_failed", key=key)
        return _message(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to delete redirect.")

    return MessageResponse(message="Redirect deleted.")

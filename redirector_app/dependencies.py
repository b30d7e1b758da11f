"""
FastAPI dependencies for dependency injection.

`create_app()` builds the process-wide components once (settings, store,
token codec, bot gate) and parks them on `app.state`. These providers hand
them to routes and wire the services on top.

Pattern: Dependency Injection
- Routes never construct infrastructure themselves
- Tests swap components via `app.dependency_overrides`
"""

import secrets
from typing import Optional

from fastapi import Depends, Header, HTTPException, Request, status

from redirector_app.config import Settings
from redirector_app.security.bot_gate import BotGate
from redirector_app.security.token_codec import TokenCodec
from redirector_app.services.admin_service import AdminService
from redirector_app.services.issuance_service import IssuanceService
from redirector_app.services.resolution_service import ResolutionService
from redirector_app.store.strategies import RedirectStore


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> RedirectStore:
    return request.app.state.store


def get_token_codec(request: Request) -> TokenCodec:
    return request.app.state.token_codec


def get_bot_gate(request: Request) -> BotGate:
    return request.app.state.bot_gate


def get_resolution_service(
    settings: Settings = Depends(get_settings),
    store: RedirectStore = Depends(get_store),
    codec: TokenCodec = Depends(get_token_codec),
    gate: BotGate = Depends(get_bot_gate),
) -> ResolutionService:
    return ResolutionService(
        store=store,
        codec=codec,
        gate=gate,
        challenge_mode=settings.challenge_mode,
        identity_param=settings.identity_param,
    )


def get_issuance_service(
    settings: Settings = Depends(get_settings),
    store: RedirectStore = Depends(get_store),
    codec: TokenCodec = Depends(get_token_codec),
) -> IssuanceService:
    return IssuanceService(store=store, codec=codec, key_bytes=settings.key_bytes)


def get_admin_service(store: RedirectStore = Depends(get_store)) -> AdminService:
    return AdminService(store=store)


def require_admin(
    settings: Settings = Depends(get_settings),
    x_admin_key: Optional[str] = Header(None),
) -> None:
    """
    Guard for /redirects*.

    Open when no ADMIN_API_KEY is configured; otherwise the X-Admin-Key
    header must match it.
    """
    if settings.admin_api_key is None:
        return
    if x_admin_key is None or not secrets.compare_digest(x_admin_key, settings.admin_api_key):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied.")

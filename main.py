from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException

from redirector_app.config import Settings, load_settings
from redirector_app.logging_config import configure_logging
from redirector_app.security.bot_gate import BotGate
from redirector_app.security.token_codec import TokenCodec
from redirector_app.store.factory import StoreFactory
from redirector_app.api.v1 import redirects, redirect

logger = structlog.get_logger(__name__)


def rate_limit_exceeded(request: Request, exc: RateLimitExceeded):
    """Must stay sync: SlowAPIMiddleware calls it without awaiting"""
    logger.warning("rate_limited", client=get_remote_address(request), limit=str(exc.detail))
    return PlainTextResponse(
        "Too many requests. Please try again later.",
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
    )


async def not_found_fallback(request: Request, exc: StarletteHTTPException):
    """Unmatched paths and methods answer plain-text 404; other HTTP errors keep FastAPI's default"""
    if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
        return PlainTextResponse("Error: Invalid request.", status_code=status.HTTP_404_NOT_FOUND)
    return await http_exception_handler(request, exc)


async def invalid_body(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"message": "Invalid request body."},
    )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Everything process-wide (settings, store, token codec, bot gate,
    rate limiter) is created here once and attached to `app.state`.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level, settings.log_json)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        app.state.store.close()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Signed, bot-filtered redirect links built with FastAPI",
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = StoreFactory.create(settings)
    app.state.token_codec = TokenCodec(settings.jwt_secret, settings.jwt_algorithm)
    app.state.bot_gate = BotGate(honeypot_param=settings.honeypot_param)

    # Admission control ahead of every route: one window per client shared by all routes
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        application_limits=[settings.rate_limit],
        storage_uri=settings.rate_limit_storage_uri,
        enabled=settings.rate_limit_enabled,
    )
    app.add_middleware(SlowAPIMiddleware)

    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded)
    app.add_exception_handler(StarletteHTTPException, not_found_fallback)
    app.add_exception_handler(RequestValidationError, invalid_body)

    @app.get("/health")
    def health_check():
        """Health check endpoint"""
        return {"status": "healthy", "environment": settings.environment}

    ######## Include routers (admin paths before the catch-all /{key} routes)
    app.include_router(redirects.router)
    app.include_router(redirects.admin_router)
    app.include_router(redirect.router)

    logger.info(
        "app_created",
        environment=settings.environment,
        store_backend=settings.store_backend,
        challenge_mode=settings.challenge_mode,
    )
    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(app, host=app.state.settings.host, port=app.state.settings.port)

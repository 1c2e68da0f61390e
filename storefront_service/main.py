"""
main.py — FastAPI entry point for the storefront service

The service sits between the storefront front end and the remote commerce
platform. It owns no data: every route reshapes a request, calls the platform
and returns the reshaped result.

Responsibilities:
    • Build settings and the remote API client once per process
    • Register the storefront, cart and checkout routes
    • Render every failure as {status, message, error}
    • CORS for the configured storefront origin, static `.well-known` files
    • Health endpoint
"""

import os
import traceback
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from .clients import CommerceClient
from .config import Settings
from .encoding import normalize
from .errors import ServiceError
from .logging_config import get_logger, setup_logging
from .routes import cart_router, checkout_router, storefront_router

log = get_logger(__name__)


def error_response(status: int, message: str, error) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={"status": status, "message": message, "error": error},
    )


async def handle_service_error(request: Request, exc: ServiceError):
    log_fn = log.error if exc.http_status >= 500 else log.warning
    log_fn(f"{request.method} {request.url.path} failed ({exc.kind.value}): {exc.message}")
    details = normalize(exc.upstream_details) if exc.upstream_details is not None else exc.message
    return error_response(exc.http_status, exc.message, details)


async def handle_validation_error(request: Request, exc: RequestValidationError):
    log.warning(f"{request.method} {request.url.path} rejected: invalid request body.")
    return error_response(422, "Invalid request body.", jsonable_encoder(exc.errors()))


async def handle_http_exception(request: Request, exc: StarletteHTTPException):
    return error_response(exc.status_code, str(exc.detail), str(exc.detail))


async def handle_unexpected_error(request: Request, exc: Exception):
    log.critical(f"{request.method} {request.url.path} crashed: {exc!r}", exc_info=exc)
    description = "".join(traceback.format_exception_only(type(exc), exc)).strip()
    return error_response(500, "Internal server error.", description)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Creates the remote API client at startup unless one was injected. A missing
    access token aborts startup.
    """
    owns_client = app.state.commerce is None
    if owns_client:
        settings: Settings = app.state.settings
        app.state.commerce = CommerceClient.from_settings(settings)
        log.info(f"Storefront service started against the {settings.square_environment} environment.")
    try:
        yield
    finally:
        if owns_client:
            await app.state.commerce.aclose()
            app.state.commerce = None
            log.info("Commerce client closed.")


def create_app(settings: Optional[Settings] = None, client: Optional[CommerceClient] = None) -> FastAPI:
    """
    Application factory.

    Args:
        settings (Settings, optional): Configuration; read from the environment when omitted.
        client (CommerceClient, optional): Pre-built remote client (tests inject one
            backed by a mock transport). Built at startup when omitted.
    """
    settings = settings or Settings()
    setup_logging(settings.log_level, settings.log_file)

    app = FastAPI(title="Storefront Service", lifespan=lifespan)
    app.state.settings = settings
    app.state.commerce = client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ServiceError, handle_service_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    @app.get("/health")
    def health_check():
        """Liveness probe for container orchestrators."""
        return {"status": "ok"}

    app.include_router(storefront_router)
    app.include_router(cart_router)
    app.include_router(checkout_router)

    # Domain association files for wallet payment verification
    if os.path.isdir(settings.well_known_dir):
        app.mount("/.well-known", StaticFiles(directory=settings.well_known_dir), name="well-known")

    return app


# Settings are read when the server starts, not on import:
#     uvicorn storefront_service.main:create_app --factory
if __name__ == "__main__":
    import uvicorn

    uvicorn.run("storefront_service.main:create_app", factory=True, host="0.0.0.0", port=8000)

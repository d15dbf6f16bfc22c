"""
Main entrypoint for the Auction API.

This module assembles the FastAPI application: logging, CORS, request
logging, the ``/api`` routes and the exception handlers that turn the
error taxonomy in ``core.errors`` into JSON error bodies.  The
``create_app`` function builds and configures the app, which is then
instantiated at module import time as ``app``, e.g.::

    uvicorn auction_api.app.main:app --reload

The auction store is an explicit handle created here, opened on the
startup event and closed on the shutdown event.  Tests pass their own
``Settings`` (usually with an in‑memory database) and an optional clock.
"""

import logging
import time
from datetime import datetime
from typing import Callable, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.endpoints import health
from .api.endpoints.auctions import REQUEST_SCHEMAS
from .api.router import API_PREFIX, router as api_router
from .core.config import Settings, settings as default_settings
from .core.db import AuctionStore
from .core.errors import AuctionError
from .core.logging_config import setup_logging
from .services.auction_service import AuctionService


logger = logging.getLogger(__name__)


def _field_name(loc) -> str:
    # JSON decode errors carry the character offset, e.g. ("body", 0)
    return ".".join(part for part in loc if isinstance(part, str) and part != "body") or "body"


def create_app(
    settings: Optional[Settings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to use; defaults to the environment-derived
        ``core.config.settings``.
    clock : Optional[Callable[[], datetime]]
        Time source for the auction service.  Defaults to the current
        UTC time.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or default_settings
    # Initialise logging before anything else so that the modules below
    # can safely log messages.
    setup_logging(settings.log_level, settings.log_file or None)

    app = FastAPI(title=settings.project_name, version=settings.api_version, debug=settings.debug)

    store = AuctionStore(settings.database_url)
    app.state.settings = settings
    app.state.store = store
    app.state.auction_service = AuctionService(store, clock=clock)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info("%s %s -> %s (%.1f ms)", request.method, request.url.path, response.status_code, elapsed_ms)
        return response

    app.include_router(api_router, prefix=API_PREFIX)
    # Health check is also reachable without the prefix.
    app.include_router(health.router, tags=["health"])

    @app.get("/", tags=["info"])
    async def index() -> dict:
        return {
            "message": "Welcome to Auction App API",
            "version": settings.api_version,
            "endpoints": {
                f"GET {API_PREFIX}/viewAll": "Get all auctions",
                f"POST {API_PREFIX}/addNew": "Create a new auction",
                f"POST {API_PREFIX}/placeBid": "Place a bid on an auction",
                f"POST {API_PREFIX}/deleteItem": "Delete an auction item",
                f"GET {API_PREFIX}/auctions/{{auctionId}}": "Get a single auction",
                "GET /health": "Health check",
            },
        }

    @app.exception_handler(AuctionError)
    async def auction_error_handler(request: Request, exc: AuctionError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        missing = any(err.get("type") == "missing" for err in errors)
        content = {
            "error": "Missing required fields" if missing else "Invalid request",
            "message": "; ".join(f"{_field_name(err.get('loc', ()))}: {err.get('msg')}" for err in errors),
        }
        path = request.url.path
        if path.startswith(API_PREFIX):
            schema = REQUEST_SCHEMAS.get(path[len(API_PREFIX):])
            if schema is not None:
                content["required"] = schema.required_fields()
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code == status.HTTP_404_NOT_FOUND:
            content = {"error": "Not Found", "message": f"Route {request.url.path} not found"}
        else:
            content = {"error": str(exc.detail)}
        return JSONResponse(status_code=exc.status_code, content=content, headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal Server Error", "message": str(exc)},
        )

    @app.on_event("startup")
    async def startup_event() -> None:
        store.open()

    @app.on_event("shutdown")
    async def shutdown_event() -> None:
        store.close()

    return app


# Create the application instance at import time so that tools such as
# uvicorn can discover it without calling create_app manually.
app = create_app()

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from contextlib import asynccontextmanager
from typing import Optional
from slowapi.errors import RateLimitExceeded
import logging
import uuid

import httpx

from .config import Settings, get_settings
from .database import Database
from .exceptions import SyncError
from .schemas.common import fail
from .services.background import drain
from .utils.logging_config import setup_logging, set_request_context, clear_request_context
from .utils.metrics import record_http_request
from .utils.rate_limiter import limiter, bind_app_settings

from .routers import sync, bookings, websites, sync_logs, admin, health, metrics

logger = logging.getLogger(__name__)


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, is_production: bool = False):
        super().__init__(app)
        self.is_production = is_production

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        if self.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        return response


# Request ID Middleware
class RequestIdMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])
        request.state.request_id = request_id
        set_request_context(request_id)
        bind_app_settings(request.app.state.settings)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers["X-Request-ID"] = request_id
        route = request.scope.get("route")
        record_http_request(request.method, getattr(route, "path", request.url.path), response.status_code)
        return response


def create_app(
    settings: Optional[Settings] = None,
    database: Optional[Database] = None,
    http_transport: Optional[httpx.BaseTransport] = None
) -> FastAPI:
    """
    Build the API. Tests pass their own settings, an in-memory database and
    an httpx transport that stands in for source websites, LINE and Resend.
    """
    settings = settings or get_settings()
    database = database or Database(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting onebooking ({settings.environment})")
        database.create_tables()
        yield
        await drain()
        logger.info("Shutting down onebooking")

    app = FastAPI(
        title="OneBooking Sync API",
        description="Booking aggregation and two-way sync for partner websites",
        version="1.0.0",
        lifespan=lifespan
    )

    app.state.settings = settings
    app.state.database = database
    app.state.http_transport = http_transport
    app.state.limiter = limiter

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, is_production=settings.is_production)

    @app.exception_handler(SyncError)
    async def sync_error_handler(request: Request, exc: SyncError):
        return JSONResponse(status_code=exc.status_code, content=fail(exc.message, exc.code))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid value for {location}: {first.get('msg')}" if location else "Invalid payload"
        return JSONResponse(status_code=400, content=fail(message, "INVALID_PAYLOAD"))

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
        return JSONResponse(
            status_code=429,
            content=fail("Too many requests, try again later", "RATE_LIMITED")
        )

    app.include_router(sync.router)
    app.include_router(bookings.router)
    app.include_router(websites.router)
    app.include_router(sync_logs.router)
    app.include_router(admin.router)
    app.include_router(health.router)
    app.include_router(metrics.router)

    @app.get("/")
    async def root():
        return {
            "message": "OneBooking Sync API",
            "version": "1.0.0",
            "docs": "/docs",
            "status": "running"
        }

    return app


def build_default_app() -> FastAPI:
    settings = get_settings()
    setup_logging(level=settings.log_level, json_format=settings.use_json_logs)
    return create_app(settings)


app = build_default_app()

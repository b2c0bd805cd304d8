"""
Rate Limiter Configuration

In-memory storage by default; point RATE_LIMIT_STORAGE_URI at redis://
when running several instances. The storage backend is process-wide and read
from the environment at import; per-route limits come from the settings of
the app serving the request.
"""

from contextvars import ContextVar
from typing import Optional

from slowapi import Limiter
from slowapi.util import get_remote_address
from fastapi import Request

from ..config import Settings, get_settings

_app_settings: ContextVar[Optional[Settings]] = ContextVar("app_settings", default=None)


def get_real_client_ip(request: Request) -> str:
    """Get real client IP behind reverse proxy"""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # Take the first IP (original client)
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


def create_limiter() -> Limiter:
    settings = get_settings()
    return Limiter(
        key_func=get_real_client_ip,
        storage_uri=settings.rate_limit_storage_uri,
        default_limits=["300/minute"]
    )


limiter = create_limiter()


def bind_app_settings(settings: Settings) -> None:
    """Called once per request with the serving app's settings."""
    _app_settings.set(settings)


def sync_rate_limit() -> str:
    """Limit applied to the inbound sync endpoint (resolved per request)."""
    settings = _app_settings.get() or get_settings()
    return settings.sync_rate_limit

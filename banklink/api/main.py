"""
FastAPI Application for SEB Banklink Authentication
"""
import logging
from typing import Optional

from fastapi import FastAPI
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from banklink.api.routes import seb
from banklink.core.config import Settings, configure_logging, get_settings

logger = logging.getLogger(__name__)


# Security Headers Middleware
class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses"""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # Signed request forms must not be cached
        response.headers["Cache-Control"] = "no-store"
        return response


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Settings to use (defaults to environment-loaded settings)
    """
    explicit = settings is not None
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Banklink Auth",
        description="SEB banklink authentication handshake",
        version="1.0.0",
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.include_router(seb.router, prefix=settings.path_prefix.rstrip("/"))
    if explicit:
        app.dependency_overrides[get_settings] = lambda: settings

    logger.info(
        f"Banklink routes mounted at {settings.path_prefix} "
        f"(sender={settings.snd_id}, site={settings.site})"
    )
    return app

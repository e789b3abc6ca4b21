"""
Job Marketplace API

Main FastAPI application with security hardening.
"""

import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Callable, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy import text
from starlette.middleware.base import BaseHTTPMiddleware

from jobmarket import __version__
from jobmarket.api.v1.api import api_router
from jobmarket.auth.jwt import TokenCodec
from jobmarket.auth.password import PasswordHasher
from jobmarket.core.config import Settings
from jobmarket.core.database import Database
from jobmarket.core.errors import AppError, InternalError, ValidationFailed
from jobmarket.core.logging_config import configure_logging
from jobmarket.core.uploads import UploadStore

logger = logging.getLogger(__name__)


# =============================================================================
# Security Middleware
# =============================================================================

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses."""

    def __init__(self, app, enable_hsts: bool = False):
        super().__init__(app)
        self.enable_hsts = enable_hsts

    async def dispatch(self, request: Request, call_next: Callable):
        response = await call_next(request)

        # Prevent clickjacking
        response.headers["X-Frame-Options"] = "DENY"

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # Referrer policy
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Strict CSP for API endpoints; the docs UI needs its CDN assets
        if not request.url.path.startswith(("/docs", "/redoc")):
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        # HSTS (only enable in production with HTTPS)
        if self.enable_hsts:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Add unique request ID for tracing."""

    async def dispatch(self, request: Request, call_next: Callable):
        request_id = request.headers.get("X-Request-ID") or secrets.token_urlsafe(8)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as exc:
            # Anything unhandled below this point becomes an opaque 500
            response = await unhandled_error_handler(request, exc)
        response.headers["X-Request-ID"] = request_id

        return response


# =============================================================================
# Error Handlers
# =============================================================================

def error_response(exc: AppError) -> JSONResponse:
    headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == status.HTTP_401_UNAUTHORIZED else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a classified error."""
    if isinstance(exc, InternalError):
        request_id = getattr(request.state, "request_id", "unknown")
        logger.error("[%s] %s", request_id, exc.message, exc_info=exc.__cause__ or exc)
        body = exc.to_dict()
        body["request_id"] = request_id
        return JSONResponse(status_code=exc.status_code, content=body)
    return error_response(exc)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Report request validation problems as ValidationFailed with per-field detail."""
    errors = [
        {
            "field": ".".join(str(part) for part in err.get("loc", ())[1:]) or None,
            "message": err.get("msg"),
        }
        for err in exc.errors()
    ]
    return error_response(ValidationFailed(errors=errors))


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler to prevent information leakage."""
    request_id = getattr(request.state, "request_id", "unknown")
    logger.exception("[%s] Unhandled exception on %s %s", request_id, request.method, request.url.path)

    body = InternalError().to_dict()
    body["request_id"] = request_id
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=body)


# =============================================================================
# Application factory
# =============================================================================

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    All shared components (database, token codec, password hasher, upload
    store) are created here from `settings` and stored on `app.state`.
    """
    if settings is None:
        load_dotenv()
        settings = Settings()

    configure_logging(settings)

    database = Database(settings.database_url, echo=settings.sql_debug)
    upload_store = UploadStore(settings.upload_dir, settings.max_upload_bytes)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager for startup/shutdown events."""
        logger.info("Starting Job Marketplace API %s (%s)", __version__, settings.environment)

        await database.init()
        upload_store.ensure_dirs()
        logger.info("Database initialized")

        yield

        logger.info("Shutting down Job Marketplace API")
        await database.close()

    app = FastAPI(
        title="Job Marketplace API",
        version=__version__,
        description="Applicants, employers and job postings with revocable JWT sessions",
        lifespan=lifespan,
        docs_url="/docs" if settings.enable_docs else None,
        redoc_url="/redoc" if settings.enable_docs else None,
    )

    app.state.settings = settings
    app.state.database = database
    app.state.token_codec = TokenCodec.from_settings(settings)
    app.state.password_hasher = PasswordHasher.from_settings(settings)
    app.state.upload_store = upload_store

    # Middleware (order matters - last added runs first)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    # Trusted hosts (prevent host header attacks)
    trusted_hosts = settings.trusted_hosts_list
    if "*" not in trusted_hosts:
        app.add_middleware(TrustedHostMiddleware, allowed_hosts=trusted_hosts)

    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(SecurityHeadersMiddleware, enable_hsts=settings.enable_hsts)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    @app.get("/", tags=["root"])
    def home():
        """Root endpoint."""
        return {
            "name": "Job Marketplace API",
            "version": __version__,
            "docs": "/docs" if settings.enable_docs else None,
        }

    @app.get("/health", tags=["health"])
    async def health_check():
        """Health check endpoint for load balancers and monitoring."""
        db_status = "healthy"
        try:
            async with database.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except Exception:
            logger.exception("Health check database probe failed")
            db_status = "unhealthy"

        return {
            "status": "healthy" if db_status == "healthy" else "degraded",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "version": __version__,
            "database": db_status,
        }

    app.include_router(api_router, prefix="/v1")

    # Uploaded files; the directories are created at startup
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir, check_dir=False), name="uploads")

    return app


# =============================================================================
# Development Server
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "jobmarket.main:create_app",
        factory=True,
        host="0.0.0.0",
        port=8000,
        reload=True,
        log_level="info",
    )

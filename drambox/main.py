"""FastAPI application entry point for DramBox."""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from drambox import __version__
from drambox.config import configure_logging, settings
from drambox.database import close_db, init_db
from drambox.services.analytics import posthog_service
from drambox.services.community_ratings import calculate_community_ratings
from drambox.services.exceptions import DramBoxError, IntegrityDefect, Unauthorized
from drambox.services.orphan_sweep import sweep_orphaned_pours

logger = logging.getLogger(__name__)
jobs_logger = logging.getLogger("drambox.jobs")

# Background batch job handle
_jobs_task: asyncio.Task | None = None


# Global per-IP limit; auth and cron routes add their own stricter limits
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[lambda: f"{settings.rate_limit_per_minute}/minute"],
)


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to all responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["X-Permitted-Cross-Domain-Policies"] = "none"

        # JSON API only, nothing to load
        response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        if settings.enforce_https:
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains; preload"
            )

        return response


def _is_production() -> bool:
    """Check if we're running in production mode.

    Returns:
        True if running in production (not debug mode and not testing).
    """
    return not settings.debug and not os.getenv("PYTEST_CURRENT_TEST")


async def run_batch_jobs() -> None:
    """Run the orphan sweep followed by the community rating calculation."""
    sweep = await sweep_orphaned_pours()
    jobs_logger.info(
        "Orphan sweep: found=%d fixed=%d failed=%d remaining=%d",
        sweep.found,
        sweep.fixed,
        sweep.failed,
        sweep.remaining,
    )
    ratings = await calculate_community_ratings()
    jobs_logger.info(
        "Community ratings: updated=%d cleared=%d failed=%d",
        ratings.bottles_updated,
        ratings.bottles_cleared,
        ratings.failed,
    )


async def _run_background_jobs() -> None:
    """Run the batch jobs on a fixed interval until cancelled."""
    interval = settings.jobs_interval_minutes * 60

    while True:
        try:
            await asyncio.sleep(interval)
            await run_batch_jobs()
        except asyncio.CancelledError:
            jobs_logger.debug("Background jobs task cancelled")
            break
        except Exception:
            jobs_logger.exception("Background jobs run failed")
            # Continue with the next interval


def _validate_security_configuration() -> None:
    """Validate security configuration at startup.

    Raises:
        RuntimeError: If critical security issues are detected in production.
    """
    issues = []
    warnings = []

    secret_key = settings.secret_key
    if not secret_key or len(secret_key) < 32:
        issues.append(
            "SECRET_KEY is missing or too short (minimum 32 characters). "
            "Set DRAMBOX_SECRET_KEY environment variable."
        )

    if not settings.cron_secret:
        warnings.append(
            "No cron secret configured; automation endpoints will reject every call. "
            "Set DRAMBOX_CRON_SECRET to enable them."
        )

    if _is_production():
        mongodb_url = settings.mongodb_url
        if "localhost" in mongodb_url or "127.0.0.1" in mongodb_url:
            warnings.append(
                "MongoDB URL points to localhost in production. "
                "This may indicate an insecure configuration."
            )

        if not settings.enforce_https:
            warnings.append(
                "HTTPS enforcement is disabled. "
                "Consider enabling enforce_https=true for production."
            )

    for warning in warnings:
        logger.warning("SECURITY WARNING: %s", warning)

    if issues and _is_production():
        for issue in issues:
            logger.error("SECURITY ERROR: %s", issue)
        raise RuntimeError(
            "Application startup blocked due to security configuration issues. "
            "See logs for details."
        )
    elif issues:
        for issue in issues:
            logger.warning("SECURITY WARNING (development mode): %s", issue)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager."""
    global _jobs_task

    configure_logging()
    _validate_security_configuration()

    await init_db()

    if settings.jobs_enabled:
        _jobs_task = asyncio.create_task(_run_background_jobs())
        logger.info(
            "Started background jobs task (every %d minutes)", settings.jobs_interval_minutes
        )

    yield

    if _jobs_task:
        _jobs_task.cancel()
        try:
            await _jobs_task
        except asyncio.CancelledError:
            pass
        _jobs_task = None
        logger.info("Stopped background jobs task")

    # Flush pending analytics events
    posthog_service.shutdown()

    await close_db()


async def dramboxerror_handler(request: Request, exc: DramBoxError) -> JSONResponse:
    """Translate service errors into a status code with a safe message."""
    if isinstance(exc, IntegrityDefect):
        logger.error("INTEGRITY DEFECT on %s %s: %s", request.method, request.url.path, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": "Internal error", "reason": exc.reason},
        )

    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "reason": exc.reason},
        headers=headers,
    )


app = FastAPI(
    title=settings.app_name,
    description="Whiskey collection pour tracking",
    version=__version__,
    lifespan=lifespan,
)

# Add rate limiter
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(DramBoxError, dramboxerror_handler)
app.add_middleware(SlowAPIMiddleware)

# Only allow origins from the whitelist; empty list means same-origin only
if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH"],
        allow_headers=["Authorization", "Content-Type"],
        max_age=600,
    )

app.add_middleware(SecurityHeadersMiddleware)


@app.get("/health", tags=["Health"])
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(
        content={
            "status": "healthy",
            "version": __version__,
            "app_name": settings.app_name,
        }
    )


# Import and include routers
from drambox.routers import activities, auth, bottles, catalog, cron, pour_sessions, pours

app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(catalog.router, prefix="/api/catalog", tags=["Catalog"])
app.include_router(bottles.router, prefix="/api/bottles", tags=["Bottles"])
app.include_router(pours.router, prefix="/api/pours", tags=["Pours"])
app.include_router(pour_sessions.router, prefix="/api/pour-sessions", tags=["Pour Sessions"])
app.include_router(activities.router, prefix="/api/activities", tags=["Activity"])
app.include_router(cron.router, prefix="/api/cron", tags=["Automation"])

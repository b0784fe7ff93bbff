"""
Render Service - FastAPI application.

Exposes /health and /render. Rendering goes through a single shared
Chromium instance managed by EngineManager; each request gets its own
isolated browser context.
"""

import base64
import logging
from datetime import datetime, timezone

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .auth import SECRET_HEADER, check_render_secret, verify_render_secret
from .config import settings, validate_config_on_startup
from .engine import EngineManager
from .errors import RenderServiceError, Unauthorized
from .models import HealthResponse, RenderErrorResponse, RenderRequest, RenderResponse
from .pipeline import RenderPipeline

# Configure logging
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Render Service",
    version=__version__,
    description="HTML to PDF rendering on a shared headless Chromium"
)

engine_manager = EngineManager(
    headless=settings.engine_headless,
    shutdown_grace_seconds=settings.shutdown_grace_seconds,
)
pipeline = RenderPipeline(
    engine_manager,
    timeout_ms=settings.render_timeout_ms,
    settle_ms=settings.settle_ms,
    prefer_css_page_size=settings.prefer_css_page_size,
    cleanup_timeout_ms=settings.cleanup_timeout_ms,
)


# ============================================================================
# Lifecycle
# ============================================================================

@app.on_event("startup")
async def on_startup():
    """Validate configuration. The engine itself starts lazily on first render."""
    validate_config_on_startup()
    logger.info(f"Render service {__version__} ready on {settings.host}:{settings.port}")


@app.on_event("shutdown")
async def on_shutdown():
    """Close the shared engine when the process is terminating."""
    logger.info("Render service shutting down")
    await engine_manager.shutdown_engine()


# ============================================================================
# Error Handlers
# ============================================================================

@app.exception_handler(RenderServiceError)
async def render_service_error_handler(request: Request, exc: RenderServiceError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


def _error_location(loc) -> str:
    # ("body", "widthMm") -> "widthMm"; ("body", 1) is a JSON decode offset
    fields = [part for part in loc[1:] if isinstance(part, str)]
    return ".".join(fields) or "body"


@app.exception_handler(RequestValidationError)
async def request_validation_error_handler(request: Request, exc: RequestValidationError):
    """
    Malformed bodies get the same flat error shape as every other failure.

    FastAPI decodes the body before running route dependencies, so the
    secret is checked here first: unauthenticated callers only ever see 401.
    """
    try:
        check_render_secret(request.headers.get(SECRET_HEADER))
    except Unauthorized as e:
        return JSONResponse(status_code=e.status_code, content=e.to_response())

    messages = [
        f"{_error_location(err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    ]
    return JSONResponse(
        status_code=400,
        content={"error": "Invalid request", "message": "; ".join(messages)},
    )


# ============================================================================
# Endpoints
# ============================================================================

@app.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe. Does not touch the engine."""
    return HealthResponse(status="ok", timestamp=datetime.now(timezone.utc).isoformat())


@app.post(
    "/render",
    response_model=RenderResponse,
    responses={500: {"model": RenderErrorResponse}},
    dependencies=[Depends(verify_render_secret)],
)
async def render(request: RenderRequest):
    """
    Render HTML to PDF.

    Returns:
        200 with the base64 PDF, or 500 with the failure message. Both carry renderMs.

    Raises:
        Unauthorized: 401 for a missing or wrong X-Render-Secret
        ValidationError: 400 for missing HTML
    """
    result = await pipeline.render(request)

    if not result.success:
        body = RenderErrorResponse(
            message=result.message,
            renderMs=result.render_ms,
            errorType=result.error_kind,
        )
        return JSONResponse(status_code=500, content=body.model_dump())

    return RenderResponse(
        pdf=base64.b64encode(result.pdf).decode("ascii"),
        size=result.size,
        renderMs=result.render_ms,
    )

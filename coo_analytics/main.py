"""
FastAPI application entry point for the COO Analytics API.

This module configures logging, CORS and error handling, registers the API
routers, and manages the telemetry sink lifecycle.

Error contract:
- Request validation failures -> 400 {"success": false, "error": "<field>: <message>"}
- Unknown routes -> 404 {"success": false, "error": "Endpoint not found", "availableEndpoints": [...]}
- Handler errors -> {"success": false, "error": "<detail>"} with the handler's status
- Anything unhandled -> 500 {"success": false, "error": "Internal server error"}
"""

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from coo_analytics import __version__
from coo_analytics.api import api_router
from coo_analytics.core.config import get_settings
from coo_analytics.core.dependencies import SettingsDep, get_telemetry
from coo_analytics.core.telemetry import utc_timestamp
from coo_analytics.models.schemas import ErrorResponse

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)

_STARTED_AT = time.monotonic()

AVAILABLE_ENDPOINTS: List[str] = [
    "GET /health",
    "GET /",
    "POST /query",
    "POST /analyze",
    "GET /insights",
    "POST /track/outcome",
    "GET /metrics",
    "POST /track/post",
    "POST /track/upload",
    "POST /events/analyze",
    "GET /events/metrics",
]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Lifespan context manager for FastAPI application startup and shutdown events.

    On startup:
        - Open the telemetry sink (starts the Mixpanel worker when configured)

    On shutdown:
        - Close the telemetry sink, draining queued events
    """
    # Startup
    logger.info(f"{settings.app_name} API starting")
    telemetry = get_telemetry()
    telemetry.open()
    telemetry.emit("api_server_started", {"version": __version__})

    yield

    # Shutdown
    logger.info(f"{settings.app_name} API shutting down")
    telemetry.close()


# Create FastAPI application
app = FastAPI(
    title="COO Analytics Agent API",
    version=__version__,
    description=(
        "Natural-language business queries, insight synthesis with outcome-based "
        "confidence learning, and post/upload event tracking."
    ),
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router)


# =============================================================================
# Error Handlers
# =============================================================================


def format_validation_error(exc: RequestValidationError) -> str:
    """First validation error as '<field>: <message>'."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    location = [str(part) for part in first.get("loc", ()) if part not in ("body", "query", "path")]
    field = ".".join(location) or "body"
    return f"{field}: {first.get('msg', 'invalid value')}"


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = format_validation_error(exc)
    logger.warning(f"{request.method} {request.url.path} rejected: {message}")
    return JSONResponse(status_code=400, content=ErrorResponse(error=message).model_dump())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return JSONResponse(
            status_code=404,
            content={
                "success": False,
                "error": "Endpoint not found",
                "availableEndpoints": AVAILABLE_ENDPOINTS,
            },
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(error=str(exc.detail)).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(f"Server error on {request.method} {request.url.path}: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(error="Internal server error").model_dump(),
    )


# =============================================================================
# Service Endpoints
# =============================================================================


@app.get("/health")
async def health_check(settings: SettingsDep):
    """
    Health check endpoint for monitoring and load balancer probes.

    Returns:
        Dict with status, service name, version and uptime
    """
    return {
        "status": "healthy",
        "service": settings.app_name,
        "version": __version__,
        "timestamp": utc_timestamp(),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
    }


@app.get("/")
async def root():
    """
    Root endpoint providing API information.

    Returns:
        Dict with API name, version and endpoint list
    """
    return {
        "name": "COO Analytics Agent API",
        "version": __version__,
        "docs": "/docs",
        "openapi": "/openapi.json",
        "endpoints": AVAILABLE_ENDPOINTS,
    }


def main() -> None:
    import uvicorn

    uvicorn.run(
        "coo_analytics.main:app",
        host=settings.host,
        port=settings.port,
    )


# Run with uvicorn when executed directly
if __name__ == "__main__":
    main()

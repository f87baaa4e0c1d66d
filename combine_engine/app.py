"""
Combined Bet Recommendation API - Main Application

Receives an already annotated fixture catalog, runs the combination engine
and returns the combined bet closest to the requested target odds.

Architecture:
- Catalog provider -> fixtures and candidate selections (upstream)
- This service -> constraint checks, exhaustive search and ranking
- Narrative provider -> optional free-text rationale (downstream, display only)
"""

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# Configure logging FIRST (before other imports)
from .logging_config import setup_logging, safe_log
from .config import (
    ENGINE_VERSION,
    API_TITLE,
    API_DESCRIPTION,
    API_HOST,
    API_PORT,
    ENABLE_ODDS_PRUNING,
    GENERATION_TIMEOUT_SECONDS,
    validate_config
)

logger = setup_logging()

logger.info(safe_log("=" * 80))
logger.info(safe_log(f"[START] Combined Bet Engine v{ENGINE_VERSION} Initializing..."))
logger.info(safe_log("=" * 80))

validate_config()
logger.info(safe_log("[OK] Configuration validated"))

from .engine import get_engine_status
from .exceptions import (
    CombineEngineError,
    InvalidConfigError,
    GenerationTimeoutError,
    GenerationLimitError,
)
from .middleware import RequestLoggingMiddleware
from .routers import combinations_router, health_router

engine_status = get_engine_status()
logger.info(safe_log(f"[CONFIG] Engine Type: {engine_status['engine_type']}"))
logger.info(safe_log(f"[CONFIG] Odds Pruning: {'ENABLED' if ENABLE_ODDS_PRUNING else 'DISABLED'}"))
logger.info(safe_log(f"[CONFIG] Generation Timeout: {GENERATION_TIMEOUT_SECONDS}s"))
for feature in engine_status["features"]:
    logger.info(safe_log(f"[FEAT]   - {feature}"))

app = FastAPI(
    title=API_TITLE,
    version=ENGINE_VERSION,
    description=API_DESCRIPTION,
    docs_url="/docs",
    redoc_url="/redoc"
)

logger.info(safe_log("[OK] FastAPI application created"))

app.include_router(combinations_router)
app.include_router(health_router)
app.add_middleware(RequestLoggingMiddleware)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


# Exception handlers
@app.exception_handler(InvalidConfigError)
async def invalid_config_handler(request: Request, exc: InvalidConfigError):
    """Handle out-of-range search configuration."""
    request_id = _request_id(request)
    logger.error(safe_log(f"[{request_id}] InvalidConfigError: {str(exc)}"))

    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid search configuration",
            "detail": str(exc),
            "fields": exc.violations,
            "status_code": 400,
            "request_id": request_id
        }
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    """Report body type errors with the same shape as InvalidConfigError."""
    request_id = _request_id(request)
    violations = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        violations.append({
            "field": ".".join(location) or "payload",
            "message": error.get("msg", "invalid value")
        })
    logger.error(safe_log(
        f"[{request_id}] RequestValidationError: "
        f"{', '.join(v['field'] for v in violations)}"
    ))

    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid search configuration",
            "detail": "Request body failed validation",
            "fields": violations,
            "status_code": 400,
            "request_id": request_id
        }
    )


@app.exception_handler(GenerationTimeoutError)
async def generation_timeout_handler(request: Request, exc: GenerationTimeoutError):
    """Handle search deadline expiry."""
    request_id = _request_id(request)
    logger.error(safe_log(f"[{request_id}] GenerationTimeoutError: {str(exc)}"))

    return JSONResponse(
        status_code=503,
        content={
            "error": "Combination search timed out",
            "detail": str(exc),
            "status_code": 503,
            "request_id": request_id
        }
    )


@app.exception_handler(GenerationLimitError)
async def generation_limit_handler(request: Request, exc: GenerationLimitError):
    """Handle oversized search spaces."""
    request_id = _request_id(request)
    logger.error(safe_log(f"[{request_id}] GenerationLimitError: {str(exc)}"))

    return JSONResponse(
        status_code=422,
        content={
            "error": "Combination search produced too many candidates",
            "detail": str(exc),
            "suggestion": "Narrow the odds ratio band or send fewer fixtures",
            "status_code": 422,
            "request_id": request_id
        }
    )


@app.exception_handler(CombineEngineError)
async def combine_engine_handler(request: Request, exc: CombineEngineError):
    """Handle remaining engine errors."""
    request_id = _request_id(request)
    logger.error(safe_log(f"[{request_id}] CombineEngineError: {str(exc)}"))

    return JSONResponse(
        status_code=422,
        content={
            "error": "Combination generation failed",
            "detail": str(exc),
            "status_code": 422,
            "request_id": request_id
        }
    )


# Root endpoint
@app.get("/")
async def root():
    """Service information endpoint."""
    return {
        "service": API_TITLE,
        "version": ENGINE_VERSION,
        "status": "operational",
        "description": API_DESCRIPTION,
        "documentation": "/docs",
        "health_check": "/health",
        "engine_info": "/engine-info",
        "generate": "/api/v1/generate-combination",
        "config": "/api/v1/config"
    }


@app.on_event("startup")
async def startup_event():
    """Log application startup."""
    logger.info(safe_log("=" * 80))
    logger.info(safe_log("[START] Application startup complete"))
    logger.info(safe_log(f"[START] Engine Version: {ENGINE_VERSION}"))
    logger.info(safe_log("[START] Ready to accept requests"))
    logger.info(safe_log("=" * 80))


@app.on_event("shutdown")
async def shutdown_event():
    """Log application shutdown."""
    logger.info(safe_log("=" * 80))
    logger.info(safe_log("[SHUTDOWN] Application shutting down"))
    logger.info(safe_log("=" * 80))


if __name__ == "__main__":
    logger.info(safe_log("[START] Starting uvicorn server..."))

    uvicorn.run(
        app,
        host=API_HOST,
        port=API_PORT,
        log_level="info"
    )

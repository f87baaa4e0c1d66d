"""
Health Check and System Information Endpoints

Provides health checks, system status, and engine information.
"""

import logging
import os
from datetime import datetime, timezone
from fastapi import APIRouter

from ..config import (
    ENGINE_VERSION,
    LOG_DIR,
    NARRATIVE_PROVIDER_URL,
)
from ..engine import get_engine_status
from ..schemas import HealthCheckResponse

logger = logging.getLogger("combine_api.routers")
router = APIRouter(tags=["health"])


@router.get("/health", response_model=HealthCheckResponse)
async def health_check():
    """
    Health check endpoint for monitoring.

    Returns:
        - Service status
        - Engine availability
        - Narrative provider configuration
    """
    engine_status = get_engine_status()
    engine_available = engine_status.get("initialized", False)

    health_response = {
        "status": "operational" if engine_available else "degraded",
        "service": "combined-bet-engine",
        "engine_version": ENGINE_VERSION,
        "engine_status": "healthy" if engine_available else "unavailable",
        "narrative_provider": "configured" if NARRATIVE_PROVIDER_URL else "disabled",
        "log_dir": "exists" if os.path.exists(LOG_DIR) else "missing",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "endpoints": {
            "/api/v1/generate-combination": "POST - Recommend the combined bet closest to a target",
            "/api/v1/config": "GET - Search limits and defaults",
            "/health": "GET - Health check",
            "/engine-info": "GET - Detailed engine information",
            "/docs": "GET - Interactive API documentation"
        }
    }

    logger.info(f"[HEALTH] Health check requested - Status: {health_response['status']}")

    return health_response


@router.get("/engine-info")
async def engine_info():
    """
    Detailed engine information endpoint.

    Returns engine capabilities, search limits and feature flags.
    """
    engine_status = get_engine_status()

    logger.info("[ENGINE INFO] Engine info requested")

    return {
        "name": "Combined Bet Engine",
        "version": ENGINE_VERSION,
        "description": (
            "Exhaustive combination search with constraint checks and "
            "target-odds ranking"
        ),
        "engine_type": engine_status["engine_type"],
        "features": engine_status["features"],
        "market_types": engine_status["market_types"],
        "limits": engine_status["limits"],
        "capabilities": {
            "deterministic": True,
            "odds_pruning": engine_status["odds_pruning"],
            "generation_timeout_seconds": engine_status["generation_timeout_seconds"],
            "max_combinations": engine_status["max_combinations"],
            "narrative_provider": bool(NARRATIVE_PROVIDER_URL),
            "metrics": [
                "total_odds",
                "aggregate_confidence",
                "difference",
                "is_exact"
            ]
        }
    }

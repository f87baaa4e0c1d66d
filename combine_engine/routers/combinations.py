"""
Combination Endpoints

Handles combined bet generation:
- POST /api/v1/generate-combination - Recommend the combination closest to a target
- GET /api/v1/config - Public search limits
"""

import logging
import time
from fastapi import APIRouter, Depends, HTTPException, Request

from ..schemas import GenerateRequest, GenerateResponse, PublicConfigResponse
from ..services import CombinationService
from ..exceptions import CombineEngineError
from ..engine.models import known_market_types
from ..config import (
    TARGET_ODDS_MIN,
    TARGET_ODDS_MAX,
    MIN_MATCHES,
    MAX_MATCHES_LIMIT,
    DEFAULT_MIN_ODDS_RATIO,
    DEFAULT_MAX_ODDS_RATIO,
    DEFAULT_ALTERNATIVES_COUNT,
    MAX_CATALOG_FIXTURES,
    DEFAULT_FORBIDDEN_MARKET_PAIRS,
    NARRATIVE_PROVIDER_URL,
)

logger = logging.getLogger("combine_api.routers")
router = APIRouter(prefix="/api/v1", tags=["combinations"])

_combination_service = CombinationService()


def get_combination_service() -> CombinationService:
    return _combination_service


@router.post(
    "/generate-combination",
    response_model=GenerateResponse,
    response_model_by_alias=True
)
def generate_combination(
    payload: GenerateRequest,
    request: Request,
    service: CombinationService = Depends(get_combination_service)
):
    """
    Recommend the combined bet whose total odds is closest to the target.

    An empty search space is a normal answer (``found: false`` with a
    suggestion), not an error.
    """
    request_id = getattr(request.state, "request_id", f"gen_{int(time.time() * 1000)}")

    logger.info(f"[{request_id}] ========== COMBINATION GENERATION STARTED ==========")

    try:
        result = service.generate(payload, request_id=request_id)

    except CombineEngineError:
        # Mapped to HTTP responses by the app-level handlers
        raise

    except Exception as e:
        logger.error(
            f"[{request_id}] [CRASH] Unexpected error: {str(e)}",
            exc_info=True
        )
        raise HTTPException(
            status_code=500,
            detail=f"Internal engine failure: {str(e)}"
        )

    logger.info(
        f"[{request_id}] ========== COMBINATION GENERATION COMPLETE "
        f"(found={result['found']}) =========="
    )

    return result


@router.get(
    "/config",
    response_model=PublicConfigResponse,
    response_model_by_alias=True
)
async def public_config():
    """Limits and defaults a client needs to build a valid request."""
    return {
        "targetOddsMin": TARGET_ODDS_MIN,
        "targetOddsMax": TARGET_ODDS_MAX,
        "minMatches": MIN_MATCHES,
        "maxMatches": MAX_MATCHES_LIMIT,
        "defaultMinOddsRatio": DEFAULT_MIN_ODDS_RATIO,
        "defaultMaxOddsRatio": DEFAULT_MAX_ODDS_RATIO,
        "defaultAlternativesCount": DEFAULT_ALTERNATIVES_COUNT,
        "maxCatalogFixtures": MAX_CATALOG_FIXTURES,
        "marketTypes": list(known_market_types()),
        "forbiddenMarketPairs": [list(pair) for pair in DEFAULT_FORBIDDEN_MARKET_PAIRS],
        "narrativeEnabled": bool(NARRATIVE_PROVIDER_URL),
    }

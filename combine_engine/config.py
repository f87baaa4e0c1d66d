"""
Configuration management for the Combined Bet Engine.

Centralizes all configuration settings, environment variables, and constants.
"""

import os
from typing import Dict, Any, List, Tuple
from pathlib import Path

from .exceptions import ConfigurationError

# Base directory
BASE_DIR = Path(__file__).parent

# Logging Configuration
LOG_DIR = Path(os.getenv("LOG_DIR", str(BASE_DIR / "logs")))
LOG_FILE = LOG_DIR / "engine.log"
LOG_MAX_BYTES = 10 * 1024 * 1024  # 10MB
LOG_BACKUP_COUNT = 10
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Engine Configuration
ENGINE_VERSION = "1.0.0"

# API Configuration
API_HOST = os.getenv("API_HOST", "0.0.0.0")
API_PORT = int(os.getenv("API_PORT", "10000"))
API_TITLE = "Combined Bet Recommendation API"
API_DESCRIPTION = (
    "Builds the combined bet whose total odds lands closest to a target, "
    "under fixture uniqueness, market diversification and forbidden-pair rules."
)

# Search domain limits
TARGET_ODDS_MIN = float(os.getenv("TARGET_ODDS_MIN", "2.0"))
TARGET_ODDS_MAX = float(os.getenv("TARGET_ODDS_MAX", "1000.0"))
MIN_MATCHES = 2
MAX_MATCHES_LIMIT = 8
DEFAULT_MIN_ODDS_RATIO = 0.4
DEFAULT_MAX_ODDS_RATIO = 2.5
DEFAULT_ALTERNATIVES_COUNT = 4
MAX_ALTERNATIVES_COUNT = 20
EXACTNESS_TOLERANCE = float(os.getenv("EXACTNESS_TOLERANCE", "0.10"))

# Catalog ingestion
MAX_CANDIDATES_PER_FIXTURE = 2
MAX_CATALOG_FIXTURES = int(os.getenv("MAX_CATALOG_FIXTURES", "24"))
DEFAULT_CONFIDENCE = 70.0

# Outright result and shots on target measure correlated outcomes
DEFAULT_FORBIDDEN_MARKET_PAIRS: List[Tuple[str, str]] = [
    ("victory", "shots_on_target"),
]

# Performance Configuration
ENABLE_ODDS_PRUNING = os.getenv("ENABLE_ODDS_PRUNING", "true").lower() == "true"
GENERATION_TIMEOUT_SECONDS = float(os.getenv("GENERATION_TIMEOUT_SECONDS", "10.0"))
MAX_COMBINATIONS = int(os.getenv("MAX_COMBINATIONS", "2000000"))

# Narrative provider (external, optional)
NARRATIVE_PROVIDER_URL = os.getenv("NARRATIVE_PROVIDER_URL", "")
NARRATIVE_TIMEOUT = float(os.getenv("NARRATIVE_TIMEOUT", "60.0"))
NARRATIVE_FALLBACK_TEXT = "Analysis unavailable for this combination."

# Error Messages
ERROR_MESSAGES = {
    "INVALID_CONFIG": "Invalid search configuration",
    "NO_COMBINATION": "No valid combination found",
    "NO_COMBINATION_SUGGESTION": (
        "Try a lower target odds value, a wider odds ratio band "
        "or fewer forbidden market pairs"
    ),
    "GENERATION_TIMEOUT": "Combination search exceeded its time budget",
    "GENERATION_LIMIT": "Combination search produced too many candidates",
    "GENERATION_FAILED": "Combination generation failed",
}


def get_config() -> Dict[str, Any]:
    """Get complete configuration dictionary."""
    return {
        "engine": {
            "version": ENGINE_VERSION,
            "odds_pruning": ENABLE_ODDS_PRUNING,
            "generation_timeout_seconds": GENERATION_TIMEOUT_SECONDS,
            "max_combinations": MAX_COMBINATIONS,
        },
        "api": {
            "host": API_HOST,
            "port": API_PORT,
            "title": API_TITLE,
        },
        "logging": {
            "log_dir": str(LOG_DIR),
            "log_file": str(LOG_FILE),
            "log_level": LOG_LEVEL,
        },
        "limits": {
            "target_odds_min": TARGET_ODDS_MIN,
            "target_odds_max": TARGET_ODDS_MAX,
            "min_matches": MIN_MATCHES,
            "max_matches": MAX_MATCHES_LIMIT,
            "default_min_odds_ratio": DEFAULT_MIN_ODDS_RATIO,
            "default_max_odds_ratio": DEFAULT_MAX_ODDS_RATIO,
            "default_alternatives_count": DEFAULT_ALTERNATIVES_COUNT,
            "max_alternatives_count": MAX_ALTERNATIVES_COUNT,
            "exactness_tolerance": EXACTNESS_TOLERANCE,
            "max_candidates_per_fixture": MAX_CANDIDATES_PER_FIXTURE,
            "max_catalog_fixtures": MAX_CATALOG_FIXTURES,
        },
        "narrative": {
            "enabled": bool(NARRATIVE_PROVIDER_URL),
            "timeout": NARRATIVE_TIMEOUT,
        },
    }


def validate_config() -> bool:
    """Validate configuration values."""
    errors = []

    if TARGET_ODDS_MIN <= 1.0:
        errors.append("TARGET_ODDS_MIN must be greater than 1.0")

    if TARGET_ODDS_MAX <= TARGET_ODDS_MIN:
        errors.append("TARGET_ODDS_MAX must be greater than TARGET_ODDS_MIN")

    if not 0 < EXACTNESS_TOLERANCE < 1:
        errors.append("EXACTNESS_TOLERANCE must be between 0 and 1")

    if MAX_CATALOG_FIXTURES < MIN_MATCHES:
        errors.append(f"MAX_CATALOG_FIXTURES must be at least {MIN_MATCHES}")

    if GENERATION_TIMEOUT_SECONDS < 0:
        errors.append("GENERATION_TIMEOUT_SECONDS cannot be negative")

    if MAX_COMBINATIONS < 1:
        errors.append("MAX_COMBINATIONS must be positive")

    if API_PORT < 1 or API_PORT > 65535:
        errors.append("API_PORT must be between 1 and 65535")

    if errors:
        raise ConfigurationError(
            f"Configuration validation failed: {'; '.join(errors)}"
        )

    return True

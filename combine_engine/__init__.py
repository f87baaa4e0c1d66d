# combine_engine/__init__.py

"""
Combined Bet Engine - Main Package Exports

The FastAPI application lives in ``combine_engine.app`` and is not imported
here, so importing the engine does not configure logging or build the app.
"""

# Export engine components
from .engine import (
    process_generate_request,
    get_engine_status,
    CombinationGenerator,
    BestCombinationSelector,
    ConfidenceScorer,
    ConstraintValidator,
    build_catalog,
    __version__ as ENGINE_VERSION
)

from .exceptions import (
    CombineEngineError,
    InvalidConfigError,
    MalformedCandidateError,
    GenerationTimeoutError,
    GenerationLimitError,
)

# Package metadata
__version__ = ENGINE_VERSION
__author__ = "Combined Bet Engine Team"
__description__ = "Deterministic combined bet search against a target total odds"

# Public API exports
__all__ = [
    # Engine functions
    'process_generate_request',
    'get_engine_status',

    # Engine components
    'CombinationGenerator',
    'BestCombinationSelector',
    'ConfidenceScorer',
    'ConstraintValidator',
    'build_catalog',

    # Exceptions
    'CombineEngineError',
    'InvalidConfigError',
    'MalformedCandidateError',
    'GenerationTimeoutError',
    'GenerationLimitError',

    # Metadata
    '__version__',
    '__author__',
    '__description__',
    'ENGINE_VERSION'
]

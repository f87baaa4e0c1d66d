"""
Service layer for business logic separation.

Services handle orchestration around the engine, keeping API endpoints clean and focused.
"""

from .combination_service import CombinationService
from .narrative_service import NarrativeService
from .validation_service import ValidationService

__all__ = [
    "CombinationService",
    "NarrativeService",
    "ValidationService",
]

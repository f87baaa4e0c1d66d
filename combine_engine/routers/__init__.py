"""
API routers for the Combined Bet Engine.

Separates endpoints into logical groups for better organization.
"""

from .combinations import router as combinations_router
from .health import router as health_router

__all__ = [
    "combinations_router",
    "health_router",
]

"""
Custom exception hierarchy for the Combined Bet Engine.

Provides structured error handling with clear error types and messages.
"""

from typing import Optional, Dict, Any, List


class EngineError(Exception):
    """Base exception for all engine-related errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": self.message,
            "error_code": self.error_code,
            "details": self.details
        }


class CombineEngineError(EngineError):
    """Base exception for combination engine errors."""

    def __init__(self, message: str, error_code: Optional[str] = None, **kwargs):
        super().__init__(message, error_code=error_code or "COMBINE_ENGINE_ERROR", **kwargs)


class InvalidConfigError(CombineEngineError):
    """
    Raised when the search configuration is out of its domain range.

    Every violated field is collected before raising, so the caller can
    report them all at once.
    """

    def __init__(self, violations: List[Dict[str, str]], **kwargs):
        fields = [v["field"] for v in violations]
        message = f"Invalid search configuration: {', '.join(fields)}"
        super().__init__(message, error_code="INVALID_CONFIG", **kwargs)
        self.violations = violations
        self.details["fields"] = violations

    @property
    def fields(self) -> List[str]:
        return [v["field"] for v in self.violations]


class MalformedCandidateError(CombineEngineError):
    """Raised when a single candidate selection cannot be ingested."""

    def __init__(self, message: str, fixture_id: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="MALFORMED_CANDIDATE", **kwargs)
        if fixture_id:
            self.details["fixture_id"] = fixture_id


class GenerationTimeoutError(CombineEngineError):
    """Raised when the search deadline expires before enumeration completes."""

    def __init__(self, message: str, elapsed: Optional[float] = None, **kwargs):
        super().__init__(message, error_code="GENERATION_TIMEOUT", **kwargs)
        if elapsed is not None:
            self.details["elapsed_seconds"] = round(elapsed, 4)


class GenerationLimitError(CombineEngineError):
    """Raised when the search emits more combinations than allowed."""

    def __init__(self, message: str, limit: Optional[int] = None, **kwargs):
        super().__init__(message, error_code="GENERATION_LIMIT", **kwargs)
        if limit is not None:
            self.details["limit"] = limit


class ConfigurationError(EngineError):
    """Raised when configuration errors occur."""

    def __init__(self, message: str, config_key: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="CONFIGURATION_ERROR", **kwargs)
        if config_key:
            self.details["config_key"] = config_key


class NarrativeError(EngineError):
    """Raised when the narrative provider call fails."""

    def __init__(self, message: str, url: Optional[str] = None, **kwargs):
        super().__init__(message, error_code="NARRATIVE_ERROR", **kwargs)
        if url:
            self.details["url"] = url

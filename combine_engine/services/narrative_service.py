"""
Narrative Service

Thin client for the external narrative provider:
- Posts the selected combination to the configured endpoint
- Returns the free-text rationale it answers with
- Falls back to a fixed text when the provider fails

The engine never consults the narrative; it is display-only.
"""

import logging
import httpx
from typing import Dict, Any, Optional

from ..config import NARRATIVE_PROVIDER_URL, NARRATIVE_TIMEOUT, NARRATIVE_FALLBACK_TEXT
from ..engine.models import RankedCombination
from ..exceptions import NarrativeError

logger = logging.getLogger("combine_api.services")


class NarrativeService:
    """Service for fetching a rationale for a recommended combination."""

    def __init__(
        self,
        url: str = NARRATIVE_PROVIDER_URL,
        timeout: float = NARRATIVE_TIMEOUT,
        fallback_text: str = NARRATIVE_FALLBACK_TEXT,
        transport: Optional[httpx.BaseTransport] = None
    ):
        self.url = url
        self.timeout = timeout
        self.fallback_text = fallback_text
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.url)

    def build_payload(self, ranked: RankedCombination, target_odds: float) -> Dict[str, Any]:
        return {
            "combination": ranked.to_dict(),
            "targetOdds": target_odds,
            "fixtures": [c.fixture.teams for c in ranked.combination.selections],
        }

    def request_explanation(
        self,
        payload: Dict[str, Any],
        request_id: str = "unknown"
    ) -> str:
        """
        Post the combination to the narrative provider.

        Raises:
            NarrativeError: timeout, non-2xx status or malformed response
        """
        try:
            logger.info(f"[{request_id}] [NARRATIVE] Requesting explanation from {self.url}...")

            with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
                response = client.post(self.url, json=payload)

        except httpx.TimeoutException:
            raise NarrativeError(
                f"Narrative provider timeout after {self.timeout}s",
                url=self.url
            )
        except httpx.HTTPError as e:
            raise NarrativeError(
                f"Narrative provider request failed: {str(e)}",
                url=self.url
            )

        if not response.is_success:
            raise NarrativeError(
                f"Narrative provider returned status {response.status_code}: "
                f"{response.text[:200]}",
                url=self.url
            )

        try:
            body = response.json()
        except ValueError:
            raise NarrativeError("Narrative provider returned invalid JSON", url=self.url)

        explanation = body.get("explanation") if isinstance(body, dict) else None
        if not isinstance(explanation, str) or not explanation.strip():
            raise NarrativeError("Narrative provider response has no explanation", url=self.url)

        return explanation.strip()

    def explain(
        self,
        ranked: RankedCombination,
        target_odds: float,
        request_id: str = "unknown"
    ) -> Optional[str]:
        """
        Rationale for ``ranked``, the fallback text on provider failure, or
        None when no provider is configured.
        """
        if not self.enabled:
            return None

        try:
            explanation = self.request_explanation(
                self.build_payload(ranked, target_odds),
                request_id
            )
            logger.info(f"[{request_id}] [NARRATIVE] Explanation received")
            return explanation
        except NarrativeError as e:
            logger.warning(f"[{request_id}] [NARRATIVE] {e.message} - using fallback text")
            return self.fallback_text

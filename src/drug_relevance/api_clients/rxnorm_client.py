"""
RxNorm API Client

Client for the NLM RxNorm REST API. Only the /drugs.json endpoint is
needed: it returns every concept group (SBD, SCD, ...) for a drug name.

Free API with no authentication required.
"""

import logging
from typing import Any, Dict, List, Optional

from src.drug_relevance.api_clients.base_client import BaseAPIClient
from src.drug_relevance.utils.circuit_breaker import CircuitBreaker

logger = logging.getLogger(__name__)


class RxNormClient(BaseAPIClient):
    """Client for RxNorm REST API."""

    BASE_URL = "https://rxnav.nlm.nih.gov/REST"

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: float = 8.0,
        circuit_breaker: Optional[CircuitBreaker] = None,
        **kwargs,
    ):
        """Initialize RxNorm client."""
        super().__init__(
            base_url=base_url or self.BASE_URL,
            timeout=timeout,
            name="RxNorm",
            circuit_breaker=circuit_breaker,
            **kwargs,
        )

    def get_drugs(self, drug_name: str) -> Optional[Dict[str, Any]]:
        """
        Fetch the raw /drugs.json payload for a drug name.

        Args:
            drug_name: Drug name (brand or generic)

        Returns:
            Parsed JSON, or None when the request failed
        """
        logger.debug(f"[RxNorm] Fetching: {drug_name}")
        return self.get("/drugs.json", params={"name": drug_name})

    def get_concept_groups(self, drug_name: str) -> Optional[List[Dict[str, Any]]]:
        """
        Concept groups for a drug name.

        Returns:
            List of conceptGroup dicts ([] when RxNorm knows no such drug),
            or None when the request failed
        """
        result = self.get_drugs(drug_name)
        if result is None:
            return None
        if not isinstance(result, dict):
            logger.error(f"[RxNorm] Unexpected payload type {type(result).__name__} for: {drug_name}")
            return None

        drug_group = result.get("drugGroup") or {}
        if not isinstance(drug_group, dict):
            logger.error(f"[RxNorm] Malformed drugGroup for: {drug_name}")
            return None

        concept_groups = drug_group.get("conceptGroup") or []
        if not isinstance(concept_groups, list):
            logger.error(f"[RxNorm] Malformed conceptGroup for: {drug_name}")
            return None
        return [group for group in concept_groups if isinstance(group, dict)]

    def health_check(self) -> bool:
        """Check if RxNorm API is accessible."""
        result = self.get("/version.json")
        return result is not None and "version" in result

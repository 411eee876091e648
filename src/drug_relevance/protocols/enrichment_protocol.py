"""
Name Enrichment Protocol

Resolves a bare drug name into structured brand/generic/dosage data.
Implementations must be idempotent and side-effect-free from the
pipeline's point of view; they may cache internally.
"""

from typing import Protocol, Optional, List

from src.drug_relevance.models import EnrichedDrug


class NameEnrichmentService(Protocol):
    """Protocol for drug name enrichment implementations."""

    async def resolve(self, name: str) -> Optional[EnrichedDrug]:
        """
        Resolve one drug name.

        Returns:
            EnrichedDrug, or None when the name cannot be resolved
        """
        ...

    async def resolve_many(self, names: List[str]) -> List[EnrichedDrug]:
        """
        Resolve several names, silently dropping those that do not resolve.

        Order of the returned list follows the order of names.
        """
        ...

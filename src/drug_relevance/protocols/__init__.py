"""
Protocol definitions for dependency injection.

These protocols define the interfaces the pipeline depends on,
allowing for easy mocking in tests and swapping implementations.
"""

from src.drug_relevance.protocols.llm_protocol import LLMClient
from src.drug_relevance.protocols.enrichment_protocol import NameEnrichmentService

__all__ = [
    "LLMClient",
    "NameEnrichmentService",
]

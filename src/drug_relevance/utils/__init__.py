"""Utilities for the drug relevance pipeline."""

from src.drug_relevance.utils.cache import TTLCache, CacheEntry
from src.drug_relevance.utils.circuit_breaker import CircuitBreaker, CircuitState
from src.drug_relevance.utils.logger import setup_logging, log_pipeline_result

__all__ = [
    "TTLCache",
    "CacheEntry",
    "CircuitBreaker",
    "CircuitState",
    "setup_logging",
    "log_pipeline_result",
]

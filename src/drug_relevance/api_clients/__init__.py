"""REST clients used for drug name enrichment."""

from src.drug_relevance.api_clients.base_client import BaseAPIClient
from src.drug_relevance.api_clients.rxnorm_client import RxNormClient

__all__ = ["BaseAPIClient", "RxNormClient"]

"""
Services for the drug relevance pipeline.

Each service has one job and receives its collaborators through the
constructor; factory.create_pipeline() wires them together.
"""

from src.drug_relevance.services.candidate_generator import (
    CandidateGenerator,
    parse_drug_list,
    validate_drug_list,
)
from src.drug_relevance.services.candidate_lookup import CandidateLookup
from src.drug_relevance.services.enrichment import RxNormEnrichmentService
from src.drug_relevance.services.inflight import InFlightCoordinator, InFlightTicket
from src.drug_relevance.services.relevance_agent import RelevanceScoringAgent, parse_score_response
from src.drug_relevance.services.score_matching import apply_scores, build_score_map, find_matching_score

__all__ = [
    "CandidateGenerator",
    "parse_drug_list",
    "validate_drug_list",
    "CandidateLookup",
    "RxNormEnrichmentService",
    "InFlightCoordinator",
    "InFlightTicket",
    "RelevanceScoringAgent",
    "parse_score_response",
    "apply_scores",
    "build_score_map",
    "find_matching_score",
]

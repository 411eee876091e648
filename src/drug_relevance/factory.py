"""
Factory Functions for the Drug Relevance Pipeline

Provides create_pipeline() to build a fully-wired DrugValidationPipeline
from Settings, with optional injected collaborators for tests.
"""

import logging
from typing import Optional

from src.drug_relevance.config import Settings, get_settings, validate_settings
from src.drug_relevance.curated_mappings import CuratedMappingTable
from src.drug_relevance.llm.anthropic_client import AnthropicLLMClient
from src.drug_relevance.pipeline import DrugValidationPipeline
from src.drug_relevance.prompts.manager import PromptManager
from src.drug_relevance.protocols.enrichment_protocol import NameEnrichmentService
from src.drug_relevance.protocols.llm_protocol import LLMClient
from src.drug_relevance.services.candidate_generator import CandidateGenerator
from src.drug_relevance.services.candidate_lookup import CandidateLookup
from src.drug_relevance.services.enrichment import RxNormEnrichmentService
from src.drug_relevance.services.inflight import InFlightCoordinator
from src.drug_relevance.services.relevance_agent import RelevanceScoringAgent
from src.drug_relevance.api_clients.rxnorm_client import RxNormClient
from src.drug_relevance.utils.cache import TTLCache

logger = logging.getLogger(__name__)


def create_pipeline(
    settings: Optional[Settings] = None,
    generator_llm: Optional[LLMClient] = None,
    scoring_llm: Optional[LLMClient] = None,
    enrichment_service: Optional[NameEnrichmentService] = None,
    curated: Optional[CuratedMappingTable] = None,
    clock=None,
) -> DrugValidationPipeline:
    """
    Create a fully-wired DrugValidationPipeline.

    Args:
        settings: Settings (defaults to get_settings())
        generator_llm: LLM client for Tier 3 generation (defaults to Anthropic, generator_model)
        scoring_llm: LLM client for relevance scoring (defaults to Anthropic, scoring_model)
        enrichment_service: Name enrichment (defaults to RxNorm)
        curated: Curated mapping table (defaults to the built-in table)
        clock: Monotonic clock shared by all caches (tests pass a fake)

    Returns:
        Configured DrugValidationPipeline

    Raises:
        ConfigurationError: If settings are invalid, or no API key is set and
            an Anthropic client would be needed
    """
    settings = settings or get_settings()

    validate_settings(
        settings,
        strict=True,
        require_api_key=generator_llm is None or scoring_llm is None,
    )

    if generator_llm is None:
        generator_llm = AnthropicLLMClient(settings.anthropic_api_key, model=settings.generator_model)
        logger.info(f"Created Anthropic LLM client ({settings.generator_model}) for drug list generation")
    if scoring_llm is None:
        scoring_llm = AnthropicLLMClient(settings.anthropic_api_key, model=settings.scoring_model)
        logger.info(f"Created Anthropic LLM client ({settings.scoring_model}) for relevance scoring")

    if enrichment_service is None:
        enrichment_service = RxNormEnrichmentService(
            client=RxNormClient(
                base_url=settings.rxnorm_base_url,
                timeout=settings.enrichment_timeout_seconds,
            ),
            cache=TTLCache(
                name="rxnorm",
                ttl_seconds=settings.enrichment_cache_ttl_seconds,
                max_size=settings.enrichment_cache_max_size,
                clock=clock,
            ),
            timeout_seconds=settings.enrichment_timeout_seconds,
        )

    prompts = PromptManager()

    generator = CandidateGenerator(
        llm_client=generator_llm,
        timeout_seconds=settings.generation_timeout_seconds,
        max_tokens=settings.generation_max_tokens,
        max_drugs=settings.max_generated_drugs,
        prompt_manager=prompts,
    )

    lookup = CandidateLookup(
        generator=generator,
        curated=curated,
        fallback_cache=TTLCache(
            name="fallback",
            ttl_seconds=settings.fallback_cache_ttl_seconds,
            max_size=settings.fallback_cache_max_size,
            clock=clock,
        ),
        coordinator=InFlightCoordinator(name="generation"),
        wait_timeout_seconds=settings.inflight_wait_timeout_seconds,
        telemetry_log_interval=settings.telemetry_log_interval,
    )

    agent = RelevanceScoringAgent(
        llm_client=scoring_llm,
        timeout_seconds=settings.scoring_timeout_seconds,
        max_tokens=settings.scoring_max_tokens,
        max_drugs=settings.fetch_limit,
        prompt_manager=prompts,
    )

    # A joiner may wait for generation, enrichment and scoring back to back
    request_wait = (
        settings.generation_timeout_seconds
        + settings.enrichment_timeout_seconds
        + settings.scoring_timeout_seconds
        + settings.inflight_wait_timeout_seconds
    )

    return DrugValidationPipeline(
        lookup=lookup,
        enrichment=enrichment_service,
        agent=agent,
        validation_cache=TTLCache(
            name="validation",
            ttl_seconds=settings.validation_cache_ttl_seconds,
            max_size=settings.validation_cache_max_size,
            clock=clock,
        ),
        coordinator=InFlightCoordinator(name="resolve"),
        fetch_limit=settings.fetch_limit,
        max_results=settings.max_results,
        off_label_threshold=settings.off_label_threshold,
        fda_approved_threshold=settings.fda_approved_threshold,
        request_wait_timeout_seconds=request_wait,
        cache_stats_log_interval=settings.cache_stats_log_interval,
    )

"""
Drug Validation Pipeline

Orchestrates the full condition -> drug list flow:
1. Check the validation cache (keyed by diagnosis code)
2. Get candidate drug names (curated -> fallback cache -> AI generation)
3. Enrich names via RxNorm
4. Score relevance with the scoring model
5. Filter by threshold, sort, cap
6. Cache and return

Graceful degradation throughout: if scoring fails the enriched drugs come
back unscored (relevance_score == -1) and are not cached, so the next
request retries. resolve_drugs() never raises.
"""

import logging
from threading import Lock
from typing import Dict, List, Optional

from src.drug_relevance.models import (
    UNSCORED,
    CacheStats,
    TelemetrySnapshot,
    ValidatedDrugResult,
)
from src.drug_relevance.normalizer import (
    normalize_condition,
    normalize_diagnosis_code,
    sanitize_condition_name,
    sanitize_diagnosis_code,
)
from src.drug_relevance.protocols.enrichment_protocol import NameEnrichmentService
from src.drug_relevance.services.candidate_lookup import CandidateLookup
from src.drug_relevance.services.inflight import InFlightCoordinator
from src.drug_relevance.services.relevance_agent import RelevanceScoringAgent
from src.drug_relevance.services.score_matching import apply_scores
from src.drug_relevance.utils.cache import TTLCache
from src.drug_relevance.utils.logger import log_pipeline_result

logger = logging.getLogger(__name__)

FDA_APPROVED_THRESHOLD = 7
OFF_LABEL_THRESHOLD = 4

# Score >= fda_approved: approved for this indication; >= off_label: off-label use
DRUG_SCORE_THRESHOLDS = {
    "fda_approved": FDA_APPROVED_THRESHOLD,
    "off_label": OFF_LABEL_THRESHOLD,
}


def _format_age(seconds: float) -> str:
    if seconds < 3600:
        return f"{seconds / 60:.1f} minutes"
    return f"{seconds / 3600:.1f} hours"


class DrugValidationPipeline:
    """
    Resolves (condition name, diagnosis code) to a ranked list of relevant drugs.

    Usage:
        pipeline = create_pipeline()
        drugs = await pipeline.resolve_drugs(
            "Type 2 diabetes mellitus without complications", "E11.9"
        )
    """

    def __init__(
        self,
        lookup: CandidateLookup,
        enrichment: NameEnrichmentService,
        agent: RelevanceScoringAgent,
        validation_cache: Optional[TTLCache] = None,
        coordinator: Optional[InFlightCoordinator] = None,
        fetch_limit: int = 10,
        max_results: int = 8,
        off_label_threshold: int = OFF_LABEL_THRESHOLD,
        fda_approved_threshold: int = FDA_APPROVED_THRESHOLD,
        request_wait_timeout_seconds: float = 60.0,
        cache_stats_log_interval: int = 100,
    ):
        self.lookup = lookup
        self.enrichment = enrichment
        self.agent = agent
        self.validation_cache = validation_cache or TTLCache(name="validation", max_size=500)
        self.coordinator = coordinator or InFlightCoordinator(name="resolve")
        self.fetch_limit = fetch_limit
        self.max_results = max_results
        self.off_label_threshold = off_label_threshold
        self.fda_approved_threshold = fda_approved_threshold
        self.request_wait_timeout_seconds = request_wait_timeout_seconds
        self.cache_stats_log_interval = cache_stats_log_interval

        self._operation_count = 0
        self._count_lock = Lock()

    # =========================================================================
    # Main entry point
    # =========================================================================

    async def resolve_drugs(self, condition_name: str, diagnosis_code: str) -> List[ValidatedDrugResult]:
        """
        Validated, relevance-ranked drugs for a condition.

        Args:
            condition_name: Diagnosis description (e.g., "Morbid (severe) obesity")
            diagnosis_code: Diagnosis code (e.g., "E66.01"); keys the validation cache

        Returns:
            At most max_results drugs scoring >= off_label_threshold, best
            first; unscored drugs (score -1) when scoring was unavailable;
            [] when nothing relevant was found or on any unexpected error
        """
        condition_name = sanitize_condition_name(condition_name)
        code = normalize_diagnosis_code(sanitize_diagnosis_code(diagnosis_code))
        cache_key = code or f"CONDITION:{normalize_condition(condition_name)}"
        log_prefix = f"[DrugPipeline:{code or '-'}]"

        try:
            self._maybe_log_cache_stats()

            cached = self.validation_cache.get(cache_key)
            if cached is not None:
                age = _format_age(self.validation_cache.age_seconds(cache_key) or 0.0)
                logger.info(f"{log_prefix} Cache HIT, returning {len(cached)} cached drugs (age: {age})")
                return list(cached)

            logger.info(f"{log_prefix} Cache MISS, fetching fresh data")
            # Joiners receive the owner's list object; each caller gets its own copy
            results = await self.coordinator.run(
                cache_key,
                lambda: self._resolve_uncached(condition_name, code, cache_key, log_prefix),
                default=[],
                timeout=self.request_wait_timeout_seconds,
            )
            return list(results)
        except Exception as e:
            logger.exception(f"{log_prefix} Unexpected pipeline error: {e}")
            return []

    async def _resolve_uncached(
        self,
        condition_name: str,
        code: str,
        cache_key: str,
        log_prefix: str,
    ) -> List[ValidatedDrugResult]:
        if not normalize_condition(condition_name):
            logger.warning(f"{log_prefix} Empty condition name")
            self._store(cache_key, [], condition_name, log_prefix)
            return []

        # Candidates
        logger.info(f"{log_prefix} Fetching drugs for: '{condition_name}'")
        lookup = await self.lookup.lookup(condition_name)
        if not lookup.found:
            logger.info(f"{log_prefix} No candidate drugs found ({lookup.reason.value})")
            self._store(cache_key, [], condition_name, log_prefix)
            return []

        candidates = lookup.drugs[:self.fetch_limit]
        logger.info(f"{log_prefix} Found {len(candidates)} candidate drugs ({lookup.tier.value})")

        # Enrichment
        enriched = await self.enrichment.resolve_many(candidates)
        if not enriched:
            logger.info(f"{log_prefix} No drugs found in RxNorm")
            self._store(cache_key, [], condition_name, log_prefix)
            return []
        logger.info(f"{log_prefix} Enriched {len(enriched)}/{len(candidates)} drugs")

        # Scoring
        scores = await self.agent.score(condition_name, enriched)
        if not scores:
            logger.warning(f"{log_prefix} AI returned no scores, returning unfiltered results")
            unscored = [ValidatedDrugResult.from_enriched(drug, relevance_score=UNSCORED) for drug in enriched]
            log_pipeline_result(code, condition_name, lookup.tier, len(candidates), len(unscored), scored=False)
            return unscored
        logger.info(f"{log_prefix} Received {len(scores)} scores from AI")

        # Match, filter, rank
        scored = apply_scores(enriched, scores, log_prefix=log_prefix)
        final = self._rank(scored, log_prefix)

        self._store(cache_key, final, condition_name, log_prefix)
        log_pipeline_result(code, condition_name, lookup.tier, len(candidates), len(final), scored=True)
        return list(final)

    def _rank(self, scored: List[ValidatedDrugResult], log_prefix: str) -> List[ValidatedDrugResult]:
        relevant = [drug for drug in scored if drug.relevance_score >= self.off_label_threshold]

        fda_approved = sum(1 for d in relevant if d.relevance_score >= self.fda_approved_threshold)
        logger.info(
            f"{log_prefix} {fda_approved} FDA-approved (>={self.fda_approved_threshold}), "
            f"{len(relevant) - fda_approved} off-label "
            f"({self.off_label_threshold}-{self.fda_approved_threshold - 1})"
        )

        if not relevant:
            logger.info(f"{log_prefix} No drugs met relevance threshold for this condition")

        # sorted() is stable: equal scores keep enrichment order
        ranked = sorted(relevant, key=lambda d: d.relevance_score, reverse=True)
        return ranked[:self.max_results]

    # =========================================================================
    # Scoring-free path
    # =========================================================================

    async def fetch_drugs_without_validation(
        self,
        condition_name: str,
        diagnosis_code: str,
    ) -> List[ValidatedDrugResult]:
        """
        Candidates plus enrichment, no scoring and no caching.

        Every result has relevance_score == -1.
        """
        condition_name = sanitize_condition_name(condition_name)
        log_prefix = f"[DrugPipeline:{normalize_diagnosis_code(diagnosis_code) or '-'}]"

        try:
            lookup = await self.lookup.lookup(condition_name)
            if not lookup.found:
                logger.info(f"{log_prefix} No drug mappings found (no AI validation)")
                return []

            enriched = await self.enrichment.resolve_many(lookup.drugs[:self.max_results])
            logger.info(f"{log_prefix} Fetched {len(enriched)} drugs (no AI validation)")
            return [ValidatedDrugResult.from_enriched(drug, relevance_score=UNSCORED) for drug in enriched]
        except Exception as e:
            logger.exception(f"{log_prefix} Fetch failed: {e}")
            return []

    # =========================================================================
    # Validation cache
    # =========================================================================

    def _store(self, cache_key: str, drugs: List[ValidatedDrugResult], condition_name: str, log_prefix: str):
        self.validation_cache.set(cache_key, list(drugs), source_label=condition_name)
        logger.info(f"{log_prefix} Cached {len(drugs)} validated drugs")

    def _maybe_log_cache_stats(self):
        with self._count_lock:
            self._operation_count += 1
            count = self._operation_count

        if count % self.cache_stats_log_interval == 0:
            stats = self.validation_cache.cache_stats()
            logger.info(
                f"[DrugPipeline:Cache] Stats after {count} ops: "
                f"{stats.valid} valid, {stats.expired} expired, {stats.total} total"
            )

    # =========================================================================
    # Administration
    # =========================================================================

    def cache_stats(self) -> Dict[str, CacheStats]:
        return {
            "fallback": self.lookup.fallback_cache.cache_stats(),
            "validation": self.validation_cache.cache_stats(),
        }

    def telemetry_snapshot(self) -> TelemetrySnapshot:
        return self.lookup.snapshot()

    def clear_fallback_cache(self) -> int:
        """Empty the Tier 2 cache and drop generation tickets."""
        return self.lookup.clear()

    def clear_validation_cache(self) -> int:
        """Empty the validation cache and reset the operation counter."""
        size = self.validation_cache.clear()
        self.coordinator.clear()
        with self._count_lock:
            self._operation_count = 0
        return size

    def category_of(self, drug: ValidatedDrugResult) -> str:
        """Display bucket of a result under this pipeline's thresholds."""
        return drug.category(self.fda_approved_threshold, self.off_label_threshold).value


"""
Tiered candidate lookup.

Tier 1: curated keyword table (no I/O)
Tier 2: fallback cache of previously generated lists (24h)
Tier 3: model generation, at most one in flight per normalized condition

Only successful, non-empty Tier 3 results are written to the fallback
cache, so a transient model failure is retried on the next request.
"""

import logging
from threading import Lock
from typing import Optional

from src.drug_relevance.curated_mappings import CuratedMappingTable
from src.drug_relevance.models import (
    FailureReason,
    GenerationResult,
    LookupResult,
    LookupTier,
    TelemetrySnapshot,
)
from src.drug_relevance.normalizer import normalize_condition
from src.drug_relevance.services.candidate_generator import CandidateGenerator
from src.drug_relevance.services.inflight import InFlightCoordinator
from src.drug_relevance.utils.cache import TTLCache

logger = logging.getLogger(__name__)


class CandidateLookup:
    """Resolves a condition name to candidate drug names through the three tiers."""

    def __init__(
        self,
        generator: CandidateGenerator,
        curated: Optional[CuratedMappingTable] = None,
        fallback_cache: Optional[TTLCache] = None,
        coordinator: Optional[InFlightCoordinator] = None,
        wait_timeout_seconds: float = 30.0,
        telemetry_log_interval: int = 50,
    ):
        self.generator = generator
        self.curated = curated or CuratedMappingTable()
        self.fallback_cache = fallback_cache or TTLCache(name="fallback", max_size=200)
        self.coordinator = coordinator or InFlightCoordinator(name="generation")
        self.wait_timeout_seconds = wait_timeout_seconds
        self.telemetry_log_interval = telemetry_log_interval

        self._lock = Lock()
        self._total_lookups = 0
        self._curated_hits = 0
        self._fallback_hits = 0
        self._ai_generations = 0

    async def lookup(self, condition_name: str) -> LookupResult:
        """
        Candidate drug names for a condition, plus the tier that produced them.

        Never raises; a failed generation yields an empty result whose
        reason says why.
        """
        normalized = normalize_condition(condition_name)
        if not normalized:
            logger.warning("[DrugMappings] Empty condition name provided")
            return LookupResult(drugs=[], tier=LookupTier.NONE, reason=FailureReason.EMPTY_INPUT)

        log_prefix = f"[DrugMappings:{condition_name[:30]}]"

        # Tier 1
        match = self.curated.match(normalized)
        if match:
            keyword, drugs = match
            logger.info(f"{log_prefix} CURATED HIT: '{keyword}' -> {len(drugs)} drugs")
            self._record(curated=True)
            return LookupResult(drugs=drugs, tier=LookupTier.CURATED)

        # Tier 2
        cached = self.fallback_cache.get(normalized)
        if cached:
            logger.info(f"{log_prefix} FALLBACK CACHE HIT: {len(cached)} drugs")
            self._record(fallback=True)
            return LookupResult(drugs=list(cached), tier=LookupTier.FALLBACK_CACHE)

        # Tier 3
        self._record()
        if self.coordinator.is_in_flight(normalized):
            logger.info(f"{log_prefix} Waiting for in-flight AI generation...")

        try:
            result: GenerationResult = await self.coordinator.run(
                normalized,
                lambda: self._generate(condition_name, normalized),
                default=GenerationResult.failed(
                    FailureReason.TIMEOUT, "No result from in-flight generation"
                ),
                timeout=self.wait_timeout_seconds,
            )
        except Exception as e:
            logger.error(f"{log_prefix} AI generation error: {e}")
            return LookupResult(drugs=[], tier=LookupTier.NONE, reason=FailureReason.API_ERROR)

        if not result.success or not result.drugs:
            logger.warning(f"{log_prefix} AI generation failed: {result.error}")
            return LookupResult(drugs=[], tier=LookupTier.NONE, reason=result.reason)

        return LookupResult(drugs=list(result.drugs), tier=LookupTier.AI_GENERATED)

    async def _generate(self, condition_name: str, normalized: str) -> GenerationResult:
        with self._lock:
            self._ai_generations += 1

        logger.info(f"[DrugMappings:{condition_name[:30]}] AI GENERATION: no curated mapping or cache entry")
        result = await self.generator.generate(condition_name)

        if result.success and result.drugs:
            self.fallback_cache.set(normalized, list(result.drugs), source_label=condition_name)
            logger.info(f"[DrugMappings:FallbackCache] Cached {len(result.drugs)} drugs for: {condition_name}")
        return result

    def _record(self, curated: bool = False, fallback: bool = False):
        with self._lock:
            self._total_lookups += 1
            if curated:
                self._curated_hits += 1
            if fallback:
                self._fallback_hits += 1
            should_log = self._total_lookups % self.telemetry_log_interval == 0

        if should_log:
            self._log_telemetry()

    def _log_telemetry(self):
        snapshot = self.snapshot()
        total = snapshot.total_lookups or 1
        logger.info(
            f"[DrugMappings:Telemetry] After {snapshot.total_lookups} lookups: "
            f"{snapshot.curated_hits / total:.1%} curated ({snapshot.curated_hits}), "
            f"{snapshot.fallback_hits / total:.1%} cached fallback ({snapshot.fallback_hits}), "
            f"{snapshot.ai_generations / total:.1%} AI generated ({snapshot.ai_generations})"
        )

    def snapshot(self) -> TelemetrySnapshot:
        with self._lock:
            return TelemetrySnapshot(
                total_lookups=self._total_lookups,
                curated_hits=self._curated_hits,
                fallback_hits=self._fallback_hits,
                ai_generations=self._ai_generations,
            )

    def clear(self) -> int:
        """Empty the fallback cache and forget in-flight tickets."""
        self.coordinator.clear()
        return self.fallback_cache.clear()

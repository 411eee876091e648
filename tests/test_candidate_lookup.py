"""
Tests for the three-tier candidate lookup.
"""

import asyncio
import logging

import pytest

from src.drug_relevance.curated_mappings import CuratedMappingTable
from src.drug_relevance.models import FailureReason, LookupTier
from src.drug_relevance.services.candidate_generator import CandidateGenerator
from src.drug_relevance.services.candidate_lookup import CandidateLookup
from src.drug_relevance.utils.cache import TTLCache
from tests.fakes import FakeLLMClient


@pytest.fixture
def fallback_cache(clock):
    return TTLCache(name="fallback", ttl_seconds=86400, max_size=200, clock=clock)


def _lookup(llm, fallback_cache, **kwargs):
    return CandidateLookup(
        generator=CandidateGenerator(llm),
        fallback_cache=fallback_cache,
        **kwargs,
    )


class TestTiers:
    """Tier precedence: curated, then fallback cache, then generation."""

    def test_curated_hit_skips_model(self, generator_llm, fallback_cache):
        lookup = _lookup(generator_llm, fallback_cache)

        result = asyncio.run(lookup.lookup("Type 2 diabetes mellitus without complications"))

        assert result.tier == LookupTier.CURATED
        assert result.drugs[0] == "metformin"
        assert generator_llm.calls == []

    def test_curated_wins_over_cached_entry(self, generator_llm, fallback_cache):
        fallback_cache.set("gout", ["something-else"])
        lookup = _lookup(generator_llm, fallback_cache)

        result = asyncio.run(lookup.lookup("Gout"))

        assert result.tier == LookupTier.CURATED
        assert "allopurinol" in result.drugs

    def test_generation_then_fallback_cache(self, generator_llm, fallback_cache):
        lookup = _lookup(generator_llm, fallback_cache)

        first = asyncio.run(lookup.lookup("Fabry disease"))
        second = asyncio.run(lookup.lookup("  FABRY   disease "))

        assert first.tier == LookupTier.AI_GENERATED
        assert first.drugs == ["alpha-drug", "beta-drug"]
        assert second.tier == LookupTier.FALLBACK_CACHE
        assert second.drugs == first.drugs
        assert len(generator_llm.calls) == 1
        assert fallback_cache.get_entry("fabry disease").source_label == "Fabry disease"

    def test_expired_fallback_regenerates(self, generator_llm, fallback_cache, clock):
        lookup = _lookup(generator_llm, fallback_cache)

        asyncio.run(lookup.lookup("Fabry disease"))
        clock.advance(86400 + 1)
        result = asyncio.run(lookup.lookup("Fabry disease"))

        assert result.tier == LookupTier.AI_GENERATED
        assert len(generator_llm.calls) == 2

    def test_custom_curated_table(self, generator_llm, fallback_cache):
        lookup = _lookup(
            generator_llm,
            fallback_cache,
            curated=CuratedMappingTable({"fabry": ["migalastat"]}),
        )
        result = asyncio.run(lookup.lookup("Fabry disease"))
        assert (result.tier, result.drugs) == (LookupTier.CURATED, ["migalastat"])


class TestFailures:
    """Failed generations are reported and never cached."""

    def test_empty_input(self, generator_llm, fallback_cache):
        lookup = _lookup(generator_llm, fallback_cache)

        result = asyncio.run(lookup.lookup("   "))

        assert result.drugs == []
        assert result.reason == FailureReason.EMPTY_INPUT
        assert lookup.snapshot().total_lookups == 0
        assert generator_llm.calls == []

    def test_api_error_not_cached(self, fallback_cache):
        llm = FakeLLMClient(error=RuntimeError("overloaded"))
        lookup = _lookup(llm, fallback_cache)

        result = asyncio.run(lookup.lookup("Fabry disease"))

        assert result.tier == LookupTier.NONE
        assert result.reason == FailureReason.API_ERROR
        assert len(fallback_cache) == 0

    def test_failure_retried_on_next_request(self, fallback_cache):
        llm = FakeLLMClient(response="[]")
        lookup = _lookup(llm, fallback_cache)

        first = asyncio.run(lookup.lookup("Fabry disease"))
        llm.response = '["migalastat"]'
        second = asyncio.run(lookup.lookup("Fabry disease"))

        assert first.reason == FailureReason.PARSE_FAILURE
        assert second.drugs == ["migalastat"]
        assert len(llm.calls) == 2


class TestConcurrency:

    def test_concurrent_lookups_generate_once(self, fallback_cache):
        llm = FakeLLMClient(response='["migalastat", "agalsidase beta"]', delay=0.01)
        lookup = _lookup(llm, fallback_cache)

        async def main():
            return await asyncio.gather(*[lookup.lookup("Fabry disease") for _ in range(10)])

        results = asyncio.run(main())

        assert len(llm.calls) == 1
        assert all(r.drugs == ["migalastat", "agalsidase beta"] for r in results)
        snapshot = lookup.snapshot()
        assert snapshot.total_lookups == 10
        assert snapshot.ai_generations == 1

    def test_joiner_gives_up_after_wait_timeout(self, fallback_cache):
        llm = FakeLLMClient(response='["migalastat"]', delay=0.2)
        lookup = _lookup(llm, fallback_cache, wait_timeout_seconds=0.01)

        async def main():
            return await asyncio.gather(lookup.lookup("Fabry disease"), lookup.lookup("Fabry disease"))

        owner, joiner = asyncio.run(main())

        assert owner.drugs == ["migalastat"]
        assert joiner.drugs == []
        assert joiner.reason == FailureReason.TIMEOUT


class TestTelemetry:

    def test_counters_and_periodic_log(self, generator_llm, fallback_cache, caplog):
        lookup = _lookup(generator_llm, fallback_cache, telemetry_log_interval=4)

        async def main():
            await lookup.lookup("Gout")
            await lookup.lookup("Fabry disease")
            await lookup.lookup("Fabry disease")
            await lookup.lookup("Kawasaki disease")

        with caplog.at_level(logging.INFO):
            asyncio.run(main())

        snapshot = lookup.snapshot()
        assert (snapshot.total_lookups, snapshot.curated_hits,
                snapshot.fallback_hits, snapshot.ai_generations) == (4, 1, 1, 2)
        assert snapshot.curated_hit_rate == 0.25
        assert "[DrugMappings:Telemetry] After 4 lookups: 25.0% curated (1)" in caplog.text

    def test_clear_empties_fallback_cache(self, generator_llm, fallback_cache):
        lookup = _lookup(generator_llm, fallback_cache)
        asyncio.run(lookup.lookup("Fabry disease"))

        assert lookup.clear() == 1
        assert len(fallback_cache) == 0

"""Shared fixtures for the drug relevance test suite."""

import pytest

from src.drug_relevance.config import Settings
from tests.fakes import FakeClock, FakeEnrichmentService, FakeLLMClient


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def generator_llm():
    return FakeLLMClient(response='["alpha-drug", "beta-drug"]')


@pytest.fixture
def scoring_llm():
    return FakeLLMClient(response="[]")


@pytest.fixture
def enrichment():
    return FakeEnrichmentService()


@pytest.fixture
def settings():
    """Defaults only: no .env file, no API key."""
    return Settings(_env_file=None, anthropic_api_key=None)

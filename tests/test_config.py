"""
Tests for settings validation and pipeline construction.
"""

import logging

import pytest

from src.drug_relevance import config
from src.drug_relevance.config import (
    ConfigurationError,
    Settings,
    reload_settings,
    validate_settings,
)
from src.drug_relevance.factory import create_pipeline
from src.drug_relevance.llm.anthropic_client import AnthropicLLMClient
from src.drug_relevance.services.enrichment import RxNormEnrichmentService


def _settings(**overrides):
    values = {"anthropic_api_key": None}
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSettings:

    def test_defaults(self, settings):
        assert settings.generation_timeout_seconds == 10.0
        assert settings.scoring_timeout_seconds == 20.0
        assert settings.enrichment_timeout_seconds == 8.0
        assert settings.fallback_cache_max_size == 200
        assert settings.validation_cache_max_size == 500
        assert settings.fallback_cache_ttl_seconds == 86400
        assert settings.fetch_limit == 10
        assert settings.max_results == 8
        assert settings.max_generated_drugs == 15
        assert (settings.off_label_threshold, settings.fda_approved_threshold) == (4, 7)
        assert not settings.has_llm

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setattr(config, "_settings", None)
        monkeypatch.setenv("FETCH_LIMIT", "12")
        monkeypatch.setenv("SCORING_MODEL", "claude-test")

        settings = reload_settings()

        assert settings.fetch_limit == 12
        assert settings.scoring_model == "claude-test"


class TestValidateSettings:
    """Tests for validate_settings()."""

    def test_valid(self):
        errors, warnings = validate_settings(_settings(anthropic_api_key="sk-test"))
        assert errors == []
        assert warnings == []

    def test_missing_key(self):
        errors, _ = validate_settings(_settings(), strict=False)
        assert any("ANTHROPIC_API_KEY" in e for e in errors)

    def test_missing_key_allowed(self):
        errors, _ = validate_settings(_settings(), strict=False, require_api_key=False)
        assert errors == []

    @pytest.mark.parametrize("field, value", [
        ("generation_timeout_seconds", 0),
        ("scoring_timeout_seconds", -1),
        ("validation_cache_ttl_seconds", 0),
        ("fallback_cache_max_size", 0),
        ("max_results", 0),
        ("off_label_threshold", 11),
        ("fda_approved_threshold", 3),
    ])
    def test_invalid_values(self, field, value):
        errors, _ = validate_settings(
            _settings(**{field: value}), strict=False, require_api_key=False
        )
        assert any(field in e for e in errors)

    def test_max_results_above_fetch_limit_warns(self):
        errors, warnings = validate_settings(
            _settings(max_results=12), strict=False, require_api_key=False
        )
        assert errors == []
        assert "max_results (12) exceeds fetch_limit (10)" in warnings[0]

    def test_strict_raises(self, caplog):
        with caplog.at_level(logging.ERROR):
            with pytest.raises(ConfigurationError, match="fetch_limit must be >= 1"):
                validate_settings(_settings(fetch_limit=0), require_api_key=False)
        assert "Configuration validation failed" in caplog.text


class TestCreatePipeline:
    """Tests for create_pipeline()."""

    def test_fails_fast_without_key(self, settings):
        with pytest.raises(ConfigurationError, match="ANTHROPIC_API_KEY"):
            create_pipeline(settings=settings)

    def test_fails_fast_when_one_client_missing(self, settings, generator_llm):
        with pytest.raises(ConfigurationError):
            create_pipeline(settings=settings, generator_llm=generator_llm)

    def test_injected_clients_need_no_key(self, settings, generator_llm, scoring_llm, enrichment):
        pipeline = create_pipeline(
            settings=settings,
            generator_llm=generator_llm,
            scoring_llm=scoring_llm,
            enrichment_service=enrichment,
        )

        assert pipeline.enrichment is enrichment
        assert pipeline.agent.llm_client is scoring_llm
        assert pipeline.lookup.generator.llm_client is generator_llm
        assert pipeline.fetch_limit == 10
        assert pipeline.max_results == 8
        assert pipeline.validation_cache.max_size == 500
        assert pipeline.lookup.fallback_cache.max_size == 200

    def test_default_collaborators(self):
        settings = _settings(anthropic_api_key="sk-test", generator_model="gen-model")

        pipeline = create_pipeline(settings=settings)

        generator_llm = pipeline.lookup.generator.llm_client
        assert isinstance(generator_llm, AnthropicLLMClient)
        assert generator_llm.model == "gen-model"
        assert pipeline.agent.llm_client.model == settings.scoring_model
        assert isinstance(pipeline.enrichment, RxNormEnrichmentService)
        assert pipeline.enrichment.cache.max_size == 1000
        assert pipeline.agent.max_drugs == settings.fetch_limit

    def test_invalid_settings_rejected(self, generator_llm, scoring_llm):
        with pytest.raises(ConfigurationError):
            create_pipeline(
                settings=_settings(max_results=0),
                generator_llm=generator_llm,
                scoring_llm=scoring_llm,
            )

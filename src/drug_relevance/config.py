"""
Configuration for the drug relevance pipeline.

Settings are loaded from environment variables and an optional .env file
at the project root. Defaults reproduce the production tuning: 24h caches,
10s generation timeout, fetch 10 candidates, keep 8 scored results.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

# src/drug_relevance/config.py -> project root
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"

DAY_SECONDS = 24 * 60 * 60


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing required values."""
    pass


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Required for Tier 3 generation and relevance scoring
    anthropic_api_key: Optional[str] = None

    # Models: a fast one for candidate lists, a stronger one for scoring
    generator_model: str = "claude-3-5-haiku-20241022"
    scoring_model: str = "claude-sonnet-4-20250514"

    # Candidate generation (Tier 3)
    generation_timeout_seconds: float = 10.0
    generation_max_tokens: int = 500
    max_generated_drugs: int = 15

    # Relevance scoring
    scoring_timeout_seconds: float = 20.0
    scoring_max_tokens: int = 2000

    # Name enrichment (RxNorm)
    rxnorm_base_url: str = "https://rxnav.nlm.nih.gov/REST"
    enrichment_timeout_seconds: float = 8.0
    enrichment_cache_ttl_seconds: float = DAY_SECONDS
    enrichment_cache_max_size: int = 1000

    # Caches
    fallback_cache_ttl_seconds: float = DAY_SECONDS
    fallback_cache_max_size: int = 200
    validation_cache_ttl_seconds: float = DAY_SECONDS
    validation_cache_max_size: int = 500

    # Result shaping
    fetch_limit: int = 10
    max_results: int = 8
    off_label_threshold: int = 4
    fda_approved_threshold: int = 7

    # Concurrency
    inflight_wait_timeout_seconds: float = 30.0

    # Observability
    telemetry_log_interval: int = 50
    cache_stats_log_interval: int = 100
    log_level: str = "INFO"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @property
    def has_llm(self) -> bool:
        """Check if an Anthropic key is configured"""
        return bool(self.anthropic_api_key)


def validate_settings(
    settings: Settings,
    strict: bool = True,
    require_api_key: bool = True,
) -> Tuple[List[str], List[str]]:
    """
    Validate settings and return errors and warnings.

    Args:
        settings: Settings to validate
        strict: If True, raise ConfigurationError for critical issues
        require_api_key: If False, a missing ANTHROPIC_API_KEY is not an error

    Returns:
        Tuple of (errors, warnings) lists

    Raises:
        ConfigurationError: If strict=True and critical errors found
    """
    errors = []
    warnings = []

    if require_api_key and not settings.anthropic_api_key:
        errors.append("ANTHROPIC_API_KEY is required but not set")

    for name in (
        "generation_timeout_seconds",
        "scoring_timeout_seconds",
        "enrichment_timeout_seconds",
        "inflight_wait_timeout_seconds",
        "fallback_cache_ttl_seconds",
        "validation_cache_ttl_seconds",
        "enrichment_cache_ttl_seconds",
    ):
        value = getattr(settings, name)
        if value <= 0:
            errors.append(f"{name} must be > 0, got: {value}")

    for name in (
        "fallback_cache_max_size",
        "validation_cache_max_size",
        "enrichment_cache_max_size",
        "fetch_limit",
        "max_results",
        "max_generated_drugs",
        "telemetry_log_interval",
        "cache_stats_log_interval",
    ):
        value = getattr(settings, name)
        if value < 1:
            errors.append(f"{name} must be >= 1, got: {value}")

    if not 0 <= settings.off_label_threshold <= 10:
        errors.append(f"off_label_threshold must be between 0 and 10, got: {settings.off_label_threshold}")

    if not settings.off_label_threshold <= settings.fda_approved_threshold <= 10:
        errors.append(
            f"fda_approved_threshold ({settings.fda_approved_threshold}) must be between "
            f"off_label_threshold ({settings.off_label_threshold}) and 10"
        )

    if settings.max_results > settings.fetch_limit:
        warnings.append(
            f"max_results ({settings.max_results}) exceeds fetch_limit ({settings.fetch_limit}); "
            f"at most {settings.fetch_limit} drugs can be returned"
        )

    if errors:
        logger.error(f"Configuration validation failed with {len(errors)} error(s):")
        for error in errors:
            logger.error(f"  - {error}")

    if warnings:
        logger.warning(f"Configuration has {len(warnings)} warning(s):")
        for warning in warnings:
            logger.warning(f"  - {warning}")

    if strict and errors:
        error_msg = "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(f"Configuration validation failed:\n{error_msg}")

    return errors, warnings


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the global settings instance.

    Returns:
        Settings instance loaded from environment
    """
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """
    Force reload settings from environment.

    Returns:
        New Settings instance
    """
    global _settings
    _settings = Settings()
    return _settings

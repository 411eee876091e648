"""
Drug Relevance Resolution

Maps a diagnosis (name + code) to a short, ranked list of clinically
relevant drugs:

    Tier 1 curated table -> Tier 2 fallback cache -> Tier 3 AI generation
    -> RxNorm enrichment -> AI relevance scoring -> threshold filter

Usage:
    from src.drug_relevance import create_pipeline

    pipeline = create_pipeline()
    drugs = await pipeline.resolve_drugs("Morbid (severe) obesity", "E66.01")
"""

from src.drug_relevance.config import ConfigurationError, Settings, get_settings, reload_settings
from src.drug_relevance.factory import create_pipeline
from src.drug_relevance.models import (
    UNSCORED,
    CacheStats,
    DrugCategory,
    DrugScore,
    EnrichedDrug,
    FailureReason,
    GenerationResult,
    LookupResult,
    LookupTier,
    TelemetrySnapshot,
    ValidatedDrugResult,
)
from src.drug_relevance.normalizer import normalize_condition, normalize_diagnosis_code
from src.drug_relevance.pipeline import DRUG_SCORE_THRESHOLDS, DrugValidationPipeline

__all__ = [
    # Entry points
    "create_pipeline",
    "DrugValidationPipeline",
    "DRUG_SCORE_THRESHOLDS",
    # Configuration
    "Settings",
    "get_settings",
    "reload_settings",
    "ConfigurationError",
    # Models
    "UNSCORED",
    "CacheStats",
    "DrugCategory",
    "DrugScore",
    "EnrichedDrug",
    "FailureReason",
    "GenerationResult",
    "LookupResult",
    "LookupTier",
    "TelemetrySnapshot",
    "ValidatedDrugResult",
    # Normalization
    "normalize_condition",
    "normalize_diagnosis_code",
]

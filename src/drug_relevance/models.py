"""
Data models for the condition-to-drug relevance pipeline.

Plain dataclasses, in the same spirit as the drug database dataclasses:
values flowing between tiers are immutable, results are built fresh.
"""

from dataclasses import dataclass, field, asdict
from enum import Enum
from typing import Optional, List, Dict, Any


# Sentinel relevance score meaning "scoring unavailable, do not filter"
UNSCORED = -1


class LookupTier(str, Enum):
    """Which tier of the fallback chain produced a candidate list."""
    CURATED = "curated"
    FALLBACK_CACHE = "fallback_cache"
    AI_GENERATED = "ai_generated"
    NONE = "none"


class FailureReason(str, Enum):
    """Why a tier produced no usable result."""
    NONE = "none"
    MISS = "miss"
    EMPTY_INPUT = "empty_input"
    TIMEOUT = "timeout"
    API_ERROR = "api_error"
    PARSE_FAILURE = "parse_failure"
    EMPTY = "empty"


class DrugCategory(str, Enum):
    """Display bucket derived from a relevance score."""
    FDA_APPROVED = "fda_approved"
    OFF_LABEL = "off_label"
    EXCLUDED = "excluded"
    UNSCORED = "unscored"


@dataclass(frozen=True)
class EnrichedDrug:
    """Structured drug record returned by the name enrichment service."""
    brand_name: str
    generic_name: str
    source_id: str
    dosage_form: Optional[str] = None
    strength: Optional[str] = None
    full_name: Optional[str] = None

    @property
    def display_name(self) -> str:
        """'Brand (generic)' label used in prompts and score matching."""
        return f"{self.brand_name} ({self.generic_name})"

    @property
    def indication_label(self) -> str:
        """Short dosage description, e.g. 'Oral Tablet - 500 MG'."""
        if not self.dosage_form:
            return "Prescription medication"
        if self.strength:
            return f"{self.dosage_form} - {self.strength}"
        return self.dosage_form


@dataclass(frozen=True)
class DrugScore:
    """One scored candidate from the relevance scoring agent."""
    drug_name: str
    score: int
    reasoning: str


@dataclass(frozen=True)
class ValidatedDrugResult:
    """Enriched drug plus its relevance score (-1 when unscored)."""
    brand_name: str
    generic_name: str
    source_id: str
    relevance_score: int
    dosage_form: Optional[str] = None
    strength: Optional[str] = None
    full_name: Optional[str] = None
    relevance_reasoning: Optional[str] = None

    @classmethod
    def from_enriched(
        cls,
        drug: EnrichedDrug,
        relevance_score: int = UNSCORED,
        relevance_reasoning: Optional[str] = None,
    ) -> "ValidatedDrugResult":
        return cls(
            brand_name=drug.brand_name,
            generic_name=drug.generic_name,
            source_id=drug.source_id,
            dosage_form=drug.dosage_form,
            strength=drug.strength,
            full_name=drug.full_name,
            relevance_score=relevance_score,
            relevance_reasoning=relevance_reasoning,
        )

    @property
    def is_scored(self) -> bool:
        return self.relevance_score != UNSCORED

    def category(self, fda_approved_threshold: int = 7, off_label_threshold: int = 4) -> DrugCategory:
        """Bucket the score the way the result view groups drugs."""
        if not self.is_scored:
            return DrugCategory.UNSCORED
        if self.relevance_score >= fda_approved_threshold:
            return DrugCategory.FDA_APPROVED
        if self.relevance_score >= off_label_threshold:
            return DrugCategory.OFF_LABEL
        return DrugCategory.EXCLUDED

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of a Tier-3 drug list generation."""
    success: bool
    drugs: List[str] = field(default_factory=list)
    reason: FailureReason = FailureReason.NONE
    error: Optional[str] = None

    @classmethod
    def failed(cls, reason: FailureReason, error: str) -> "GenerationResult":
        return cls(success=False, drugs=[], reason=reason, error=error)


@dataclass(frozen=True)
class LookupResult:
    """Candidate drug names plus the tier that produced them."""
    drugs: List[str]
    tier: LookupTier
    reason: FailureReason = FailureReason.NONE

    @property
    def found(self) -> bool:
        return bool(self.drugs)


@dataclass(frozen=True)
class CacheStats:
    """Entry counts for one cache."""
    total: int
    valid: int
    expired: int


@dataclass(frozen=True)
class TelemetrySnapshot:
    """Lookup counters for operational monitoring."""
    total_lookups: int
    curated_hits: int
    fallback_hits: int
    ai_generations: int

    @property
    def curated_hit_rate(self) -> float:
        if self.total_lookups == 0:
            return 0.0
        return self.curated_hits / self.total_lookups

"""
RxNorm-backed Name Enrichment Service

Turns a bare candidate name ("semaglutide") into an EnrichedDrug with
brand name, generic name, dosage form and strength taken from the RxNorm
concept name, e.g.

    "0.5 ML semaglutide 0.5 MG/ML Auto-Injector [Wegovy]"
    -> Wegovy (semaglutide), Auto-Injector, 0.5 MG/ML

Concept preference: SBD (branded, carries [Brand]) > SCD (clinical) >
first group with any concept. Definitive answers, including "not found",
are cached for 24h; transport failures are not cached.
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

from src.drug_relevance.api_clients.rxnorm_client import RxNormClient
from src.drug_relevance.models import EnrichedDrug
from src.drug_relevance.utils.cache import TTLCache

logger = logging.getLogger(__name__)

_BRAND = re.compile(r"\[([^\]]+)\]")
_GENERIC = re.compile(r"\b([a-z]+(?:\s*/\s*[a-z]+)?)\s+\d", re.IGNORECASE)
_STRENGTH = re.compile(
    r"(\d+(?:\.\d+)?\s*(?:MG|ML|MCG|G|UNT)(?:\s*(?:per|/)\s*\d+(?:\.\d+)?\s*(?:MG|ML|MCG|G))?)",
    re.IGNORECASE,
)
_UNIT_WORDS = {"ml", "mg", "mcg", "g", "hr", "per", "dose"}

# Checked in order; longer, more specific forms first
DOSAGE_FORMS = [
    "Auto-Injector",
    "Pen Injector",
    "Prefilled Syringe",
    "Extended Release Oral Tablet",
    "Extended Release Oral Capsule",
    "Oral Tablet",
    "Oral Capsule",
    "Oral Solution",
    "Tablet",
    "Capsule",
    "Injection",
    "Solution",
    "Suspension",
    "Inhaler",
    "Nasal Spray",
    "Topical",
    "Patch",
    "Cream",
    "Ointment",
]

PREFERRED_TERM_TYPES = ("SBD", "SCD")


def _title_case(text: str) -> str:
    return " ".join(word.capitalize() for word in re.split(r"[\s/]+", text.lower()) if word)


def extract_brand_name(full_name: str, fallback: str) -> str:
    """Bracketed brand from an RxNorm name, else the search term title-cased."""
    match = _BRAND.search(full_name)
    if match:
        return match.group(1)
    return _title_case(fallback)


def extract_generic_name(full_name: str, fallback: str) -> str:
    """Ingredient word(s) directly before the first number, lowercased."""
    match = _GENERIC.search(full_name)
    if match:
        return match.group(1).lower()

    for word in full_name.split():
        cleaned = re.sub(r"[^a-z/]", "", word.lower())
        if len(cleaned) > 2 and cleaned not in _UNIT_WORDS and cleaned[0].isalpha():
            return cleaned

    return fallback.lower()


def extract_dosage_form(full_name: str) -> Optional[str]:
    lowered = full_name.lower()
    for form in DOSAGE_FORMS:
        if form.lower() in lowered:
            return form
    return None


def extract_strength(full_name: str) -> Optional[str]:
    match = _STRENGTH.search(full_name)
    return match.group(1) if match else None


def select_concept(concept_groups: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Pick the concept to describe a drug: SBD, then SCD, then anything."""
    for tty in PREFERRED_TERM_TYPES:
        for group in concept_groups:
            if group.get("tty") == tty and group.get("conceptProperties"):
                return group["conceptProperties"][0]

    for group in concept_groups:
        if group.get("conceptProperties"):
            return group["conceptProperties"][0]

    return None


def parse_concept(concept: Dict[str, Any], search_name: str) -> Optional[EnrichedDrug]:
    """Build an EnrichedDrug from one RxNorm conceptProperties entry."""
    full_name = concept.get("name")
    rxcui = concept.get("rxcui")
    if not full_name or not rxcui:
        return None

    return EnrichedDrug(
        brand_name=extract_brand_name(full_name, search_name),
        generic_name=extract_generic_name(full_name, search_name),
        source_id=str(rxcui),
        dosage_form=extract_dosage_form(full_name),
        strength=extract_strength(full_name),
        full_name=full_name,
    )


class RxNormEnrichmentService:
    """
    NameEnrichmentService backed by RxNorm.

    Blocking HTTP calls run in worker threads; resolve_many fans them out
    concurrently and keeps the input order.
    """

    def __init__(
        self,
        client: Optional[RxNormClient] = None,
        cache: Optional[TTLCache] = None,
        timeout_seconds: float = 8.0,
    ):
        self.client = client or RxNormClient(timeout=timeout_seconds)
        self.cache = cache or TTLCache(name="rxnorm", ttl_seconds=24 * 60 * 60, max_size=1000)
        self.timeout_seconds = timeout_seconds

    @staticmethod
    def _cache_key(name: str) -> str:
        return name.lower().strip()

    def resolve_sync(self, name: str) -> Optional[EnrichedDrug]:
        """Blocking lookup of one name."""
        key = self._cache_key(name)
        if not key:
            return None

        entry = self.cache.get_entry(key)
        if entry is not None:
            if entry.value is None:
                logger.debug(f"[RxNorm] Cache HIT (no result): {name}")
            else:
                logger.debug(f"[RxNorm] Cache HIT: {name} -> {entry.value.brand_name}")
            return entry.value

        concept_groups = self.client.get_concept_groups(name)
        if concept_groups is None:
            # Transport failure; try again on the next request
            return None

        concept = select_concept(concept_groups)
        drug = parse_concept(concept, name) if concept else None
        self.cache.set(key, drug, source_label="rxnorm")

        if drug:
            logger.info(f"[RxNorm] Found: {drug.brand_name} ({drug.generic_name})")
        else:
            logger.info(f"[RxNorm] Not found: {name}")
        return drug

    async def resolve(self, name: str) -> Optional[EnrichedDrug]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self.resolve_sync, name),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(f"[RxNorm] Lookup timed out after {self.timeout_seconds}s: {name}")
            return None
        except Exception as e:
            logger.error(f"[RxNorm] Lookup failed for {name}: {e}")
            return None

    async def resolve_many(self, names: List[str]) -> List[EnrichedDrug]:
        if not names:
            return []

        logger.info(f"[RxNorm] Fetching {len(names)} drugs in parallel")
        results = await asyncio.gather(*(self.resolve(name) for name in names))
        drugs = [drug for drug in results if drug is not None]
        logger.info(f"[RxNorm] Successfully fetched {len(drugs)}/{len(names)} drugs")
        return drugs

    def clear_cache(self) -> int:
        return self.cache.clear()

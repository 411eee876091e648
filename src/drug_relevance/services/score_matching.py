"""
Matching model scores back to enriched drugs.

The scoring model echoes drug names loosely ("Wegovy (Semaglutide)",
"wegovy", "Semaglutide"), so each score is indexed under several keys and
each drug is looked up through progressively looser strategies:

1. exact "brand (generic)"
2. brand only
3. generic only
4. brand, then generic, with whitespace removed
5. any key containing the brand, or contained in it
"""

import logging
import re
from typing import Dict, List, Optional, Sequence

from src.drug_relevance.models import DrugScore, EnrichedDrug, ValidatedDrugResult

logger = logging.getLogger(__name__)

_BRAND_GENERIC = re.compile(r"^(.+?)\s*\((.+?)\)$")
_WHITESPACE = re.compile(r"\s+")


def build_score_map(scores: Sequence[DrugScore]) -> Dict[str, DrugScore]:
    """Index scores by lowercased name, brand, generic and space-free name. Later scores win."""
    score_map: Dict[str, DrugScore] = {}
    for score in scores:
        name = score.drug_name.lower().strip()
        score_map[name] = score

        match = _BRAND_GENERIC.match(name)
        if match:
            score_map[match.group(1).strip()] = score
            score_map[match.group(2).strip()] = score

        score_map[_WHITESPACE.sub("", name)] = score
    return score_map


def find_matching_score(drug: EnrichedDrug, score_map: Dict[str, DrugScore]) -> Optional[DrugScore]:
    brand = drug.brand_name.lower().strip()
    generic = drug.generic_name.lower().strip()

    for key in (
        f"{brand} ({generic})",
        brand,
        generic,
        _WHITESPACE.sub("", brand),
        _WHITESPACE.sub("", generic),
    ):
        if key in score_map:
            return score_map[key]

    if brand:
        for key, score in score_map.items():
            if key and (brand in key or key in brand):
                return score

    return None


def apply_scores(
    drugs: Sequence[EnrichedDrug],
    scores: Sequence[DrugScore],
    log_prefix: str = "[DrugPipeline]",
) -> List[ValidatedDrugResult]:
    """
    Attach scores to drugs. Drugs with no matching score are dropped.

    Returns:
        Scored results in the input drug order
    """
    score_map = build_score_map(scores)
    results = []
    for drug in drugs:
        matched = find_matching_score(drug, score_map)
        if matched is None:
            logger.warning(f"{log_prefix} No score match for: {drug.display_name}")
            continue
        results.append(
            ValidatedDrugResult.from_enriched(
                drug,
                relevance_score=matched.score,
                relevance_reasoning=matched.reasoning,
            )
        )
    return results

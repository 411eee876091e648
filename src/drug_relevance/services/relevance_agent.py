"""
Relevance Scoring Agent

Asks a model to score how well each enriched drug treats a condition,
on the 0-10 rubric in prompts/templates/relevance_system.j2. The point is
to separate drugs that TREAT the condition from drugs whose label merely
mentions it as a warning or risk factor.

score() never raises. Any failure returns [], which the pipeline treats
as "scoring unavailable" and passes results through unscored.
"""

import asyncio
import json
import logging
import math
import re
from numbers import Real
from typing import Any, List, Optional, Sequence

from src.drug_relevance.models import DrugScore, EnrichedDrug
from src.drug_relevance.prompts.manager import (
    RELEVANCE_SYSTEM,
    RELEVANCE_USER,
    PromptManager,
    get_prompt_manager,
)
from src.drug_relevance.protocols.llm_protocol import LLMClient

logger = logging.getLogger(__name__)

MIN_SCORE = 0
MAX_SCORE = 10
MAX_REASONING_LENGTH = 150
RAW_SAMPLE_LENGTH = 500

_OPENING_FENCE = re.compile(r"^```(?:json)?\s*", re.IGNORECASE)
_CLOSING_FENCE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    cleaned = text.strip()
    cleaned = _OPENING_FENCE.sub("", cleaned)
    cleaned = _CLOSING_FENCE.sub("", cleaned)
    return cleaned.strip()


def clamp_score(value: Real) -> int:
    """Round half-up, then clamp into [0, 10]."""
    value = float(value)
    if value >= MAX_SCORE:
        return MAX_SCORE
    if value <= MIN_SCORE:
        return MIN_SCORE
    return int(math.floor(value + 0.5))


def _validate_item(item: Any) -> Optional[DrugScore]:
    if not isinstance(item, dict):
        return None

    drug_name = item.get("drugName")
    score = item.get("score")
    reasoning = item.get("reasoning")

    if not isinstance(drug_name, str) or not isinstance(reasoning, str):
        return None
    # bool is an int subclass; "score": true is not a score
    if isinstance(score, bool) or not isinstance(score, Real):
        return None
    if score != score:  # NaN
        return None

    return DrugScore(
        drug_name=drug_name,
        score=clamp_score(score),
        reasoning=reasoning[:MAX_REASONING_LENGTH],
    )


def parse_score_response(text: Optional[str]) -> List[DrugScore]:
    """
    Parse the scoring model's JSON array into DrugScore values.

    Markdown code fences are stripped first. Elements missing a string
    drugName, a numeric score or a string reasoning are dropped with a
    warning. Scores are rounded and clamped to 0-10; reasoning is cut to
    150 characters.

    Args:
        text: Raw model output

    Returns:
        Valid scores in response order; [] if the text is not a JSON array
    """
    if not text:
        return []

    try:
        parsed = json.loads(strip_code_fences(text))
    except json.JSONDecodeError:
        logger.error("[DrugRelevanceAgent] JSON parsing failed")
        logger.error(f"[DrugRelevanceAgent] Raw response: {text[:RAW_SAMPLE_LENGTH]}")
        return []

    if not isinstance(parsed, list):
        logger.error("[DrugRelevanceAgent] Response is not an array")
        return []

    scores = []
    for item in parsed:
        score = _validate_item(item)
        if score is None:
            logger.warning(f"[DrugRelevanceAgent] Invalid item in response: {str(item)[:200]}")
            continue
        scores.append(score)
    return scores


class RelevanceScoringAgent:
    """Scores enriched drugs for clinical relevance to a condition."""

    def __init__(
        self,
        llm_client: LLMClient,
        timeout_seconds: float = 20.0,
        max_tokens: int = 2000,
        max_drugs: int = 10,
        prompt_manager: Optional[PromptManager] = None,
    ):
        self.llm_client = llm_client
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.max_drugs = max_drugs
        self.prompts = prompt_manager or get_prompt_manager()

    async def score(self, condition_name: str, drugs: Sequence[EnrichedDrug]) -> List[DrugScore]:
        """
        Score each drug 0-10 for the condition.

        Args:
            condition_name: Condition as the user typed it
            drugs: Enriched drugs; only the first max_drugs are sent

        Returns:
            Parsed scores, or [] on any failure
        """
        if not drugs:
            return []

        batch = list(drugs)[:self.max_drugs]
        system_prompt = self.prompts.render(RELEVANCE_SYSTEM)
        user_prompt = self.prompts.render(
            RELEVANCE_USER,
            condition_name=condition_name,
            drugs=[{"brand_name": d.brand_name, "generic_name": d.generic_name} for d in batch],
        )

        try:
            response = await asyncio.wait_for(
                self.llm_client.complete(
                    user_prompt,
                    max_tokens=self.max_tokens,
                    temperature=0.0,
                    system=system_prompt,
                    timeout=self.timeout_seconds,
                ),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, TimeoutError):
            logger.error(f"[DrugRelevanceAgent] Scoring timed out after {self.timeout_seconds}s")
            return []
        except Exception as e:
            logger.error(f"[DrugRelevanceAgent] API call failed: {e}")
            return []

        scores = parse_score_response(response)
        if scores:
            logger.info(f"[DrugRelevanceAgent] Scored {len(scores)} drugs for '{condition_name}'")
        return scores

"""
Candidate Generator (Tier 3)

Asks a fast model for generic drug names that treat a condition. Used only
when neither the curated table nor the fallback cache has an answer.

generate() never raises: timeouts, API errors and unusable output come
back as a failed GenerationResult carrying a FailureReason.
"""

import asyncio
import json
import logging
import re
from typing import Any, List, Optional

from src.drug_relevance.models import FailureReason, GenerationResult
from src.drug_relevance.prompts.manager import CANDIDATE_GENERATION, PromptManager, get_prompt_manager
from src.drug_relevance.protocols.llm_protocol import LLMClient

logger = logging.getLogger(__name__)

_JSON_ARRAY = re.compile(r"\[[\s\S]*\]")
# "- drug", "* drug", "1. drug", "1) drug", "• drug", optionally followed by " - description"
_LIST_LINE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*(.+?)(?:\s+[-–—]\s+.+)?$")
_PARENTHETICAL = re.compile(r"\s*\([^)]*\)")
_FORBIDDEN_CHARS = re.compile(r"[<>{}\[\]\\]")

MIN_NAME_LENGTH = 3
MAX_NAME_LENGTH = 100


def _parse_json_array(text: str) -> List[str]:
    match = _JSON_ARRAY.search(text)
    if not match:
        return []
    try:
        parsed: Any = json.loads(match.group(0))
    except json.JSONDecodeError:
        return []
    if not isinstance(parsed, list):
        return []
    return [item for item in parsed if isinstance(item, str)]


def _parse_list_lines(text: str) -> List[str]:
    drugs = []
    for line in text.splitlines():
        match = _LIST_LINE.match(line)
        if not match:
            continue
        name = _PARENTHETICAL.sub("", match.group(1)).strip()
        if MIN_NAME_LENGTH <= len(name) < MAX_NAME_LENGTH:
            drugs.append(name.lower())
    return drugs


def _parse_comma_separated(text: str) -> List[str]:
    items = []
    for part in re.sub(r"[\[\]]", "", text).split(","):
        item = part.strip().strip("\"'")
        if MIN_NAME_LENGTH <= len(item) < MAX_NAME_LENGTH:
            items.append(item)
    return items


def parse_drug_list(text: Optional[str]) -> List[str]:
    """
    Extract drug names from a free-form model response.

    Tries, in order, and returns the first non-empty result:
    1. a JSON array of strings (non-string elements ignored)
    2. a bullet / numbered / markdown list, one drug per line, with
       parenthetical asides and trailing " - description" removed
    3. comma-separated values

    Args:
        text: Raw model output

    Returns:
        Drug names, unvalidated; [] when nothing could be parsed
    """
    if not text or not text.strip():
        return []

    for strategy in (_parse_json_array, _parse_list_lines, _parse_comma_separated):
        drugs = strategy(text)
        if drugs:
            logger.debug(f"[DrugGenerator:Parse] {strategy.__name__} found {len(drugs)} drugs")
            return drugs

    logger.warning("[DrugGenerator:Parse] Could not parse response format")
    return []


def validate_drug_list(names: List[str]) -> List[str]:
    """Lowercase, trim and dedupe names, dropping obvious parsing artifacts."""
    seen = set()
    cleaned = []
    for name in names:
        name = name.lower().strip()
        if not MIN_NAME_LENGTH <= len(name) <= MAX_NAME_LENGTH:
            continue
        if _FORBIDDEN_CHARS.search(name):
            continue
        if name in seen:
            continue
        seen.add(name)
        cleaned.append(name)
    return cleaned


class CandidateGenerator:
    """Generates candidate drug lists for conditions without a curated mapping."""

    def __init__(
        self,
        llm_client: LLMClient,
        timeout_seconds: float = 10.0,
        max_tokens: int = 500,
        max_drugs: int = 15,
        prompt_manager: Optional[PromptManager] = None,
    ):
        self.llm_client = llm_client
        self.timeout_seconds = timeout_seconds
        self.max_tokens = max_tokens
        self.max_drugs = max_drugs
        self.prompts = prompt_manager or get_prompt_manager()

    async def generate(self, condition_name: str) -> GenerationResult:
        """
        Generate a validated list of generic drug names for a condition.

        Args:
            condition_name: Condition as the user typed it (sanitized)

        Returns:
            GenerationResult; success=True only with a non-empty list
        """
        log_prefix = f"[DrugGenerator:{condition_name[:30]}]"

        if not condition_name or not condition_name.strip():
            return GenerationResult.failed(FailureReason.EMPTY_INPUT, "Empty condition name")

        prompt = self.prompts.render(
            CANDIDATE_GENERATION,
            condition_name=condition_name,
            max_drugs=self.max_drugs,
        )
        logger.info(f"{log_prefix} Generating drug list with AI...")

        try:
            response = await asyncio.wait_for(
                self.llm_client.complete(
                    prompt,
                    max_tokens=self.max_tokens,
                    temperature=0.0,
                    timeout=self.timeout_seconds,
                ),
                timeout=self.timeout_seconds,
            )
        except (asyncio.TimeoutError, TimeoutError):
            logger.error(f"{log_prefix} AI request timed out after {self.timeout_seconds}s")
            return GenerationResult.failed(FailureReason.TIMEOUT, "Request timeout")
        except Exception as e:
            logger.error(f"{log_prefix} AI API call failed: {e}")
            return GenerationResult.failed(FailureReason.API_ERROR, f"API call failed: {e}")

        parsed = parse_drug_list(response)
        if not parsed:
            logger.warning(
                f"{log_prefix} AI returned no drugs (empty or unparseable): {(response or '')[:200]!r}"
            )
            return GenerationResult.failed(FailureReason.PARSE_FAILURE, "Empty or unparseable response")

        drugs = validate_drug_list(parsed)[:self.max_drugs]
        if not drugs:
            logger.warning(f"{log_prefix} No valid drugs after validation")
            return GenerationResult.failed(FailureReason.EMPTY, "No valid drugs after validation")

        logger.info(f"{log_prefix} Successfully generated {len(drugs)} drugs")
        return GenerationResult(success=True, drugs=drugs)

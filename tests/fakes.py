"""
Test doubles for the pipeline's injected collaborators.

FakeLLMClient and FakeEnrichmentService implement the LLMClient and
NameEnrichmentService protocols; FakeClock drives cache expiry.
"""

import asyncio
import json
from typing import Callable, Dict, List, Optional, Union

from src.drug_relevance.models import EnrichedDrug


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FakeLLMClient:
    """Returns a canned response (or the result of a callable) and records calls."""

    def __init__(
        self,
        response: Union[str, Callable[[str], str]] = "[]",
        error: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        self.response = response
        self.error = error
        self.delay = delay
        self.calls: List[Dict] = []

    async def complete(self, prompt, max_tokens=1000, temperature=0.0, system=None, timeout=None):
        self.calls.append({
            "prompt": prompt,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "system": system,
            "timeout": timeout,
        })
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        if callable(self.response):
            return self.response(prompt)
        return self.response

    def get_usage_stats(self) -> Dict[str, int]:
        return {"input_tokens": 0, "output_tokens": 0, "requests": len(self.calls), "failures": 0}


def make_drug(generic: str, brand: Optional[str] = None, source_id: Optional[str] = None) -> EnrichedDrug:
    return EnrichedDrug(
        brand_name=brand or generic.title(),
        generic_name=generic,
        source_id=source_id or f"rx-{generic}",
        dosage_form="Oral Tablet",
        strength="10 MG",
    )


class FakeEnrichmentService:
    """
    Resolves names from a fixed table.

    With known=None every name resolves to make_drug(name), branded from
    brands when listed there.
    """

    def __init__(
        self,
        known: Optional[Dict[str, EnrichedDrug]] = None,
        brands: Optional[Dict[str, str]] = None,
    ):
        self.known = known
        self.brands = brands or {}
        self.calls: List[List[str]] = []

    async def resolve(self, name: str) -> Optional[EnrichedDrug]:
        if self.known is None:
            return make_drug(name.lower(), self.brands.get(name.lower()))
        return self.known.get(name.lower())

    async def resolve_many(self, names: List[str]) -> List[EnrichedDrug]:
        self.calls.append(list(names))
        results = [await self.resolve(name) for name in names]
        return [drug for drug in results if drug is not None]


def scores_json(pairs) -> str:
    """JSON scoring response for (drug_name, score) pairs."""
    return json.dumps([
        {"drugName": name, "score": score, "reasoning": f"score {score}"}
        for name, score in pairs
    ])

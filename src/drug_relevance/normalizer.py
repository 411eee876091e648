"""
Key normalization for condition names and diagnosis codes.

Both caches are keyed by these functions, so two inputs that normalize
identically always share cache entries.
"""

import re
from typing import Optional

_WHITESPACE = re.compile(r"\s+")

MAX_CONDITION_LENGTH = 500
MAX_DIAGNOSIS_CODE_LENGTH = 20


def normalize_condition(name: Optional[str]) -> str:
    """
    Canonical lookup key for a condition name.

    Lowercases, trims and collapses internal whitespace to single spaces.
    Pure and idempotent.

    Args:
        name: Free-text condition name (e.g., "  Type 2   Diabetes ")

    Returns:
        Normalized key (e.g., "type 2 diabetes"); "" for empty input
    """
    if not name:
        return ""
    return _WHITESPACE.sub(" ", name.lower()).strip()


def normalize_diagnosis_code(code: Optional[str]) -> str:
    """
    Canonical validation-cache key for a diagnosis code ("e11.9 " -> "E11.9").
    """
    if not code:
        return ""
    return _WHITESPACE.sub("", code).upper()


def sanitize_condition_name(name: Optional[str]) -> str:
    """Trim and cap a condition name before it reaches any prompt."""
    return (name or "").strip()[:MAX_CONDITION_LENGTH]


def sanitize_diagnosis_code(code: Optional[str]) -> str:
    """Trim, uppercase and cap a diagnosis code."""
    return (code or "").strip().upper()[:MAX_DIAGNOSIS_CODE_LENGTH]

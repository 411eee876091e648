"""
Tests for condition / diagnosis-code key normalization.
"""

import pytest

from src.drug_relevance.normalizer import (
    MAX_CONDITION_LENGTH,
    MAX_DIAGNOSIS_CODE_LENGTH,
    normalize_condition,
    normalize_diagnosis_code,
    sanitize_condition_name,
    sanitize_diagnosis_code,
)


class TestNormalizeCondition:
    """Tests for normalize_condition()."""

    def test_lowercases_and_collapses_whitespace(self):
        assert normalize_condition("  Type 2   Diabetes\tMellitus \n") == "type 2 diabetes mellitus"

    @pytest.mark.parametrize("raw", [
        "Morbid (severe) obesity",
        "  ESSENTIAL   hypertension ",
        "Fabry\tdisease",
        "",
    ])
    def test_idempotent(self, raw):
        once = normalize_condition(raw)
        assert normalize_condition(once) == once

    def test_equivalent_inputs_share_a_key(self):
        assert normalize_condition("Fabry  Disease") == normalize_condition(" fabry disease ")

    def test_empty_and_none(self):
        assert normalize_condition("") == ""
        assert normalize_condition("   ") == ""
        assert normalize_condition(None) == ""


class TestNormalizeDiagnosisCode:
    """Tests for normalize_diagnosis_code()."""

    def test_uppercases_and_strips(self):
        assert normalize_diagnosis_code(" e11.9 ") == "E11.9"

    def test_none(self):
        assert normalize_diagnosis_code(None) == ""


class TestSanitize:
    """Input caps applied before anything reaches a prompt."""

    def test_condition_name_capped(self):
        assert len(sanitize_condition_name("x" * 2000)) == MAX_CONDITION_LENGTH

    def test_condition_name_trimmed(self):
        assert sanitize_condition_name("  Gout  ") == "Gout"

    def test_diagnosis_code_capped_and_uppercased(self):
        result = sanitize_diagnosis_code("  e66.01" + "9" * 50)
        assert result.startswith("E66.01")
        assert len(result) == MAX_DIAGNOSIS_CODE_LENGTH

    def test_none_inputs(self):
        assert sanitize_condition_name(None) == ""
        assert sanitize_diagnosis_code(None) == ""

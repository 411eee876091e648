"""
Tests for matching model scores back to enriched drugs.
"""

from src.drug_relevance.models import DrugScore
from src.drug_relevance.services.score_matching import (
    apply_scores,
    build_score_map,
    find_matching_score,
)
from tests.fakes import make_drug


def _score(name, score=8):
    return DrugScore(drug_name=name, score=score, reasoning=f"{name} reasoning")


WEGOVY = make_drug("semaglutide", "Wegovy")


class TestFindMatchingScore:
    """Each matching strategy in isolation."""

    def test_exact_brand_generic(self):
        score_map = build_score_map([_score("Wegovy (Semaglutide)", 10)])
        assert find_matching_score(WEGOVY, score_map).score == 10

    def test_brand_only(self):
        score_map = build_score_map([_score("WEGOVY", 9)])
        assert find_matching_score(WEGOVY, score_map).score == 9

    def test_generic_only(self):
        score_map = build_score_map([_score("semaglutide", 7)])
        assert find_matching_score(WEGOVY, score_map).score == 7

    def test_whitespace_stripped(self):
        drug = make_drug("insulin glargine", "Lantus Solostar")
        score_map = build_score_map([_score("LantusSolostar", 8)])
        assert find_matching_score(drug, score_map).score == 8

    def test_fuzzy_containment(self):
        score_map = build_score_map([_score("Wegovy Pen Injector", 6)])
        assert find_matching_score(WEGOVY, score_map).score == 6

    def test_no_match(self):
        score_map = build_score_map([_score("Saxenda (liraglutide)")])
        assert find_matching_score(WEGOVY, score_map) is None

    def test_later_score_wins_for_shared_keys(self):
        score_map = build_score_map([
            _score("Wegovy", 4),
            _score("Wegovy (semaglutide)", 10),
        ])
        # exact key and the brand key both point at the later score
        assert find_matching_score(WEGOVY, score_map).score == 10


class TestApplyScores:
    """Tests for apply_scores()."""

    def test_unmatched_drugs_dropped_in_order(self, caplog):
        drugs = [
            make_drug("semaglutide", "Wegovy"),
            make_drug("orlistat", "Xenical"),
            make_drug("liraglutide", "Saxenda"),
        ]
        scores = [_score("Saxenda (liraglutide)", 9), _score("Wegovy (semaglutide)", 10)]

        results = apply_scores(drugs, scores, log_prefix="[Test]")

        assert [r.brand_name for r in results] == ["Wegovy", "Saxenda"]
        assert [r.relevance_score for r in results] == [10, 9]
        assert results[0].relevance_reasoning == "Wegovy (semaglutide) reasoning"
        assert "[Test] No score match for: Xenical (orlistat)" in caplog.text

    def test_enriched_fields_carried_over(self):
        results = apply_scores([WEGOVY], [_score("Wegovy", 8)])
        assert results[0].source_id == "rx-semaglutide"
        assert results[0].dosage_form == "Oral Tablet"
        assert results[0].strength == "10 MG"

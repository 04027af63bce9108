"""
Unit tests for candidate ranking.
"""

import pytest

from cardsense.identification.candidate_ranker import CandidateRanker, MatchResult
from cardsense.identification.catalog import CardRecord
from cardsense.ocr.field_extractor import ExtractedFields


def make_fields(**values) -> ExtractedFields:
    fields = ExtractedFields()
    for name, value in values.items():
        fields.set(name, value, 0.9)
    return fields


class TestCandidateRanker:
    """Tests for CandidateRanker class."""

    @pytest.fixture
    def ranker(self):
        return CandidateRanker()

    def test_empty_candidates_rejected(self, ranker):
        with pytest.raises(ValueError):
            ranker.select_best([], make_fields(card_name="Black Lotus"))

    def test_exact_name_wins(self, ranker):
        candidates = [
            CardRecord(id="1", name="Black Lotus"),
            CardRecord(id="2", name="Blacker Lotus"),
        ]

        result = ranker.select_best(candidates, make_fields(card_name="Black Lotus"), 100)

        assert isinstance(result, MatchResult)
        assert result.candidate.id == "1"
        assert result.match_quality == pytest.approx(1.0)
        assert result.selection_score == pytest.approx(CandidateRanker.NAME_WEIGHT)

    def test_quality_blends_recognition_confidence(self, ranker):
        candidates = [CardRecord(id="1", name="Black Lotus")]

        result = ranker.select_best(candidates, make_fields(card_name="Black Lotus"), 80)

        assert result.match_quality == pytest.approx((1.0 + 0.8) / 2)

    def test_quality_without_name_uses_confidence_only(self, ranker):
        candidates = [CardRecord(id="1", name="Shock", rarity="common")]

        result = ranker.select_best(candidates, make_fields(rarity="common"), 70)

        assert result.match_quality == pytest.approx(0.7)
        assert result.selection_score == pytest.approx(CandidateRanker.RARITY_WEIGHT)

    def test_name_comparison_ignores_case(self, ranker):
        candidates = [CardRecord(id="1", name="Lightning Bolt")]

        result = ranker.select_best(candidates, make_fields(card_name="LIGHTNING BOLT"), 100)

        assert result.scoring_components.name_similarity == 1.0

    def test_tie_keeps_first_candidate(self, ranker):
        candidates = [
            CardRecord(id="first", name="Shock"),
            CardRecord(id="second", name="Shock"),
        ]

        result = ranker.select_best(candidates, make_fields(card_name="Shock"), 90)

        assert result.candidate.id == "first"
        assert result.is_ambiguous

    def test_set_code_breaks_name_tie(self, ranker):
        candidates = [
            CardRecord(id="lea", name="Shivan Dragon", set_code="lea"),
            CardRecord(id="m10", name="Shivan Dragon", set_code="m10"),
        ]

        result = ranker.select_best(
            candidates, make_fields(card_name="Shivan Dragon", set_code="M10"), 90
        )

        assert result.candidate.id == "m10"
        assert result.selection_score == pytest.approx(0.7)
        assert result.scoring_components.set_match
        assert not result.is_ambiguous

    def test_all_signals(self, ranker):
        candidate = CardRecord(
            id="1",
            name="Lightning Bolt",
            set_code="m10",
            collector_number="146",
            rarity="common",
            artist="Christopher Moeller",
        )
        fields = make_fields(
            card_name="Lightning Bolt",
            set_code="M10",
            collector_number="146",
            rarity="Common",
            artist="Christopher Moeller",
        )

        components = ranker.score(candidate, fields)

        assert components.final_score == pytest.approx(1.0)
        assert components.collector_number_match
        assert components.rarity_match

    def test_missing_candidate_field_contributes_nothing(self, ranker):
        candidate = CardRecord(id="1", name="Opt")

        components = ranker.score(candidate, make_fields(set_code="XLN", rarity="common"))

        assert components.final_score == 0.0
        assert components.name_similarity is None

    def test_matched_fields_only_lists_extracted(self, ranker):
        candidates = [CardRecord(id="1", name="Opt", set_code="xln", rarity="common")]

        result = ranker.select_best(candidates, make_fields(card_name="0pt", set_code="XLN"), 50)

        assert result.matched_fields == {"card_name": "Opt", "set_code": "xln"}

    def test_single_candidate_not_ambiguous(self, ranker):
        result = ranker.select_best([CardRecord(id="1", name="Opt")], make_fields(card_name="Opt"))

        assert result.runner_up_score is None
        assert not result.is_ambiguous

    @pytest.mark.parametrize(
        "quality,label",
        [(0.9, "high"), (0.85, "high"), (0.7, "medium"), (0.5, "low"), (0.2, "uncertain")],
    )
    def test_quality_label(self, quality, label):
        result = MatchResult(candidate=CardRecord(id="1", name="Opt"), match_quality=quality)

        assert result.quality_label == label

    def test_explain(self, ranker):
        candidates = [CardRecord(id="1", name="Shock"), CardRecord(id="2", name="Shock")]
        result = ranker.select_best(candidates, make_fields(card_name="Shock"), 90)

        explanation = ranker.explain(result)

        assert "Selected: Shock" in explanation
        assert "Ambiguous" in explanation

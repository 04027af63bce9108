"""
Unit tests for recognized text normalization.
"""

import pytest

from cardsense.ocr.text_normalizer import NormalizationResult, TextNormalizer


class TestTextNormalizer:
    """Tests for TextNormalizer class."""

    @pytest.fixture
    def normalizer(self):
        """Create text normalizer instance."""
        return TextNormalizer()

    def test_empty_text(self, normalizer):
        result = normalizer.normalize("")

        assert isinstance(result, NormalizationResult)
        assert result.normalized == ""
        assert not result.was_modified

    def test_digits_between_letters_fixed(self, normalizer):
        result = normalizer.normalize("Lightn1ng B0lt")

        assert result.normalized == "Lightning Bolt"
        assert result.was_modified

    def test_collector_numbers_survive(self, normalizer):
        text = "0042/0100 [M10]\n2/2"

        assert normalizer.normalize(text).normalized == text

    def test_smart_quotes(self, normalizer):
        result = normalizer.normalize("Urza’s “Saga”")

        assert result.normalized == "Urza's \"Saga\""

    def test_accents_removed(self, normalizer):
        assert normalizer.normalize("Lim-Dûl's Vault").normalized == "Lim-Dul's Vault"

    def test_card_vocabulary(self, normalizer):
        result = normalizer.normalize("Sorcerv\nArtlfact Creatnre")

        assert result.normalized == "Sorcery\nArtifact Creature"

    def test_copyright_marker(self, normalizer):
        assert normalizer.normalize("(c) 2009 Wizards").normalized == "© 2009 Wizards"

    def test_whitespace_keeps_lines(self, normalizer):
        result = normalizer.normalize("Lightning   Bolt \n\n   Instant\t\t")

        assert result.normalized == "Lightning Bolt\nInstant"

    def test_corrections_reduce_confidence(self, normalizer):
        result = normalizer.normalize("Lightn1ng Sorcerv")

        assert len(result.corrections) == 2
        assert result.confidence_adjustment == pytest.approx(-0.04)

    def test_confidence_adjustment_capped(self):
        words = [f"w{i:02d}z" for i in range(30)]
        normalizer = TextNormalizer(extra_patterns=[(word, "ok") for word in words])

        result = normalizer.normalize(" ".join(words))

        assert result.confidence_adjustment == -0.3

    def test_ocr_fixes_can_be_disabled(self):
        normalizer = TextNormalizer(fix_ocr_errors=False)

        result = normalizer.normalize("Lightn1ng")

        assert result.normalized == "Lightn1ng"
        assert result.corrections == []

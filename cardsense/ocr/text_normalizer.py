"""
Text Normalizer for CardSense

Post-processing for recognized card text:
- Unicode normalization
- Context-dependent OCR error correction
- Card vocabulary fixes
- Whitespace cleanup that keeps line structure

Digits are only rewritten when surrounded by letters. A blanket 0->O style
table would also rewrite collector numbers, set codes and power/toughness.
"""

import re
import unicodedata
from dataclasses import dataclass
from typing import Optional


@dataclass
class NormalizationResult:
    """Result of text normalization."""
    original: str
    normalized: str
    corrections: list[tuple[str, str]]  # (pattern, replacement) pairs that fired
    confidence_adjustment: float  # Adjustment to recognition confidence

    @property
    def was_modified(self) -> bool:
        return self.original != self.normalized


class TextNormalizer:
    """
    Text normalization for recognized card text.

    Usage:
        normalizer = TextNormalizer()
        result = normalizer.normalize("Lightn1ng B0lt {R}")
        print(result.normalized)  # "Lightning Bolt {R}"
    """

    # Digit/letter confusions, only between letters
    ERROR_PATTERNS = [
        (r"(?<=[A-Z])0(?=[A-Z])", "O"),
        (r"(?<=[A-Za-z])0(?=[a-z])", "o"),
        (r"(?<=[A-Z])1(?=[A-Z])", "I"),
        (r"(?<=[a-z])1(?=[a-z])", "i"),
        (r"(?<=[A-Za-z])5(?=[a-z])", "s"),
        (r"(?<=[a-z])8(?=[a-z])", "b"),
        (r"[“”„]", '"'),
        (r"[‘’‚]", "'"),
        (r"\|", "I"),
    ]

    # Card vocabulary misreads
    CARD_PATTERNS = [
        (r"\bMaqic\b", "Magic"),
        (r"\bGatherlng\b", "Gathering"),
        (r"\bArtlfact\b", "Artifact"),
        (r"\bEnchanment\b", "Enchantment"),
        (r"\bSorcerv\b", "Sorcery"),
        (r"\blnstant\b", "Instant"),
        (r"\bPlaneswalke\b", "Planeswalker"),
        (r"\bCreatnre\b", "Creature"),
        (r"\bbartlefield\b", "battlefield"),
        (r"\b[Il1]llus\.", "Illus."),
        (r"\(c\)\s*(?=\d{4})", "© "),
    ]

    def __init__(
        self,
        fix_unicode: bool = True,
        fix_ocr_errors: bool = True,
        extra_patterns: Optional[list[tuple[str, str]]] = None,
    ):
        """
        Initialize the text normalizer.

        Args:
            fix_unicode: Normalize Unicode characters
            fix_ocr_errors: Apply OCR error corrections
            extra_patterns: Additional (regex, replacement) pairs applied last
        """
        self.fix_unicode = fix_unicode
        self.fix_ocr_errors = fix_ocr_errors

        self._compiled_patterns = [
            (re.compile(p), r)
            for p, r in self.ERROR_PATTERNS + self.CARD_PATTERNS + (extra_patterns or [])
        ]

    def normalize(self, text: str) -> NormalizationResult:
        """
        Normalize recognized text.

        Args:
            text: Raw recognized text

        Returns:
            NormalizationResult with normalized text and metadata
        """
        if not text:
            return NormalizationResult(
                original="",
                normalized="",
                corrections=[],
                confidence_adjustment=0.0,
            )

        original = text
        corrections: list[tuple[str, str]] = []
        confidence_adj = 0.0

        if self.fix_unicode:
            text = self._normalize_unicode(text)

        if self.fix_ocr_errors:
            text, corrections = self._fix_ocr_errors(text)
            # Each correction slightly reduces confidence
            confidence_adj -= len(corrections) * 0.02

        text = self._normalize_whitespace(text)

        return NormalizationResult(
            original=original,
            normalized=text,
            corrections=corrections,
            confidence_adjustment=max(-0.3, confidence_adj),
        )

    def _normalize_unicode(self, text: str) -> str:
        # NFKC folds ligatures and full-width forms; combining accents are dropped
        text = unicodedata.normalize("NFKD", text)
        text = "".join(c for c in text if unicodedata.category(c) != "Mn")
        return unicodedata.normalize("NFKC", text)

    def _fix_ocr_errors(self, text: str) -> tuple[str, list[tuple[str, str]]]:
        corrections = []

        for pattern, replacement in self._compiled_patterns:
            new_text = pattern.sub(replacement, text)
            if new_text != text:
                corrections.append((pattern.pattern, replacement))
                text = new_text

        return text, corrections

    def _normalize_whitespace(self, text: str) -> str:
        """Collapse runs of spaces per line and drop blank lines."""
        lines = (re.sub(r"[^\S\n]+", " ", line).strip() for line in text.splitlines())
        return "\n".join(line for line in lines if line)

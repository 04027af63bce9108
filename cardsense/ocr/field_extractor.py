"""
Field Extractor for CardSense

Turns recognized card text into structured field guesses:
- Ordered pattern cascades per field (first match wins)
- Per-field heuristic confidence
- Cleaned card name for catalog queries

Each field has a list of matchers, most reliable first. Later matchers are
fallbacks for degraded text and score lower than the primary one.
"""

import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Optional

from loguru import logger

from cardsense.ocr.text_normalizer import TextNormalizer


STOP_WORDS = ("the", "of", "a", "an")

# First year a card could carry a copyright line
FIRST_PRINT_YEAR = 1993


@dataclass
class ExtractedFields:
    """
    Field guesses from one piece of recognized text.

    A field is in `confidences` exactly when it is in `values`.
    """

    values: dict[str, Any] = field(default_factory=dict)
    confidences: dict[str, float] = field(default_factory=dict)
    cleaned_card_name: Optional[str] = None

    def set(self, name: str, value: Any, confidence: float) -> None:
        self.values[name] = value
        self.confidences[name] = confidence

    def get(self, name: str, default: Any = None) -> Any:
        return self.values.get(name, default)

    def __contains__(self, name: str) -> bool:
        return name in self.values

    def __len__(self) -> int:
        return len(self.values)

    @property
    def overall_confidence(self) -> float:
        """Mean of per-field confidences, 0 when nothing was found."""
        if not self.confidences:
            return 0.0
        return sum(self.confidences.values()) / len(self.confidences)

    @property
    def card_name(self) -> Optional[str]:
        return self.values.get("card_name")

    @property
    def has_card_name(self) -> bool:
        return bool(self.values.get("card_name"))

    def to_dict(self) -> dict:
        return {
            "fields": dict(self.values),
            "confidence_scores": dict(self.confidences),
            "cleaned_card_name": self.cleaned_card_name,
            "overall_confidence": self.overall_confidence,
            "extracted_fields": len(self.values),
        }


@dataclass
class FieldMatch:
    """Value produced by one matcher."""
    value: Any
    confidence: float
    span: Optional[tuple[int, int]] = None


def _group(index: int = 1) -> Callable[[re.Match], Optional[str]]:
    def transform(match: re.Match) -> Optional[str]:
        value = match.group(index)
        return value.strip() if value else None
    return transform


def _always(value: Any) -> bool:
    return True


@dataclass(frozen=True)
class PatternMatcher:
    """
    One regex in a field cascade.

    Returns a FieldMatch when the pattern yields a non-empty value. The
    matcher's confidence applies to plausible values, `reduced_confidence`
    to the rest.
    """

    pattern: re.Pattern
    confidence: float
    reduced_confidence: float = 0.6
    transform: Callable[[re.Match], Any] = _group()
    plausible: Callable[[Any], bool] = _always
    find_all: bool = False
    use_last: bool = False

    def match(self, text: str) -> Optional[FieldMatch]:
        span = None
        if self.find_all:
            value = [v for v in (self.transform(m) for m in self.pattern.finditer(text)) if v]
        else:
            value = None
            matches = list(self.pattern.finditer(text))
            if self.use_last:
                matches.reverse()
            for m in matches:
                value = self.transform(m)
                if value:
                    span = m.span()
                    break

        if not value:
            return None

        confidence = self.confidence if self.plausible(value) else self.reduced_confidence
        return FieldMatch(value=value, confidence=confidence, span=span)


def _matcher(
    pattern: str,
    confidence: float,
    flags: int = 0,
    **kwargs: Any,
) -> PatternMatcher:
    return PatternMatcher(pattern=re.compile(pattern, flags), confidence=confidence, **kwargs)


def _name_plausible(name: str) -> bool:
    return 3 < len(name) < 50


def _year_plausible(year: str) -> bool:
    return FIRST_PRINT_YEAR <= int(year) <= date.today().year + 1


def _collector_fraction(match: re.Match) -> Optional[str]:
    number, total = match.group(1), match.group(2)
    if int(number) > int(total):
        return None
    return number.lstrip("0") or "0"


def _strip_zeros(match: re.Match) -> Optional[str]:
    value = match.group(1)
    return value.lstrip("0") or "0"


def _rarity(match: re.Match) -> str:
    value = re.sub(r"\s+", " ", match.group(1).lower())
    return "mythic" if value.startswith("mythic") else value


def _upper(match: re.Match) -> str:
    return match.group(1).upper()


def _power_toughness(match: re.Match) -> tuple[str, str]:
    return match.group(1).upper(), match.group(2).upper()


def _mana_symbols(match: re.Match) -> list[str]:
    return re.findall(r"\{([^}]+)\}|(\d+|[WUBRGCX])", match.group(1))


_NAME_CHARS = r"[a-zA-Z ,'\-]"
_PT_VALUE = r"(\d{1,2}|\*|[Xx])"
_RARITIES = r"(Mythic\s*Rare|Mythic|Rare|Uncommon|Common|Special|Timeshifted)"
_CARD_TYPES = r"(?:Artifact|Creature|Enchantment|Instant|Sorcery|Planeswalker|Land|Battle|Kindred|Tribal)\b"


class FieldExtractor:
    """
    Cascade-based field extraction from recognized card text.

    The card name is assumed to open the text: a capitalized run ending at a
    mana-cost brace, a digit, a dash, or the end of the line.

    Usage:
        extractor = FieldExtractor()
        fields = extractor.extract("Lightning Bolt {R}\\nInstant")
        print(fields.card_name, fields.get("mana_cost_symbols"))
    """

    MATCHERS: dict[str, list[PatternMatcher]] = {
        "card_name": [
            _matcher(
                rf"^([A-Z]{_NAME_CHARS}*?[a-zA-Z])(?=\s*\{{|\s*\d|\s*[—–]|\s+-\s|[ \t]*$)",
                0.9,
                re.MULTILINE,
                plausible=_name_plausible,
            ),
            _matcher(rf"^([A-Z]{_NAME_CHARS}{{2,40}})", 0.7, re.MULTILINE, plausible=_name_plausible),
            _matcher(
                rf"([A-Z]{_NAME_CHARS}+?)(?=\s+\{{|\s+\d+/\d+|\s+[—–])",
                0.7,
                plausible=_name_plausible,
            ),
        ],
        "mana_cost_symbols": [
            _matcher(r"\{([0-9WUBRGCXYZSP/]+)\}", 0.95, find_all=True),
            PatternMatcher(
                pattern=re.compile(r"Mana\s*Cost[:\s]*([0-9WUBRGCX{}/]+)", re.IGNORECASE),
                confidence=0.7,
                transform=lambda m: [a or b for a, b in _mana_symbols(m)],
            ),
        ],
        "power_toughness": [
            # Rules text mentions tokens ("a 1/1 creature"), the P/T box comes last
            _matcher(
                rf"(?<![\w/+\-]){_PT_VALUE}/{_PT_VALUE}(?![\w/])",
                0.9,
                transform=_power_toughness,
                use_last=True,
            ),
            _matcher(
                rf"Power[/:\s]*{_PT_VALUE}[^\d]*?Toughness[/:\s]*{_PT_VALUE}",
                0.7,
                re.IGNORECASE,
                transform=_power_toughness,
            ),
            _matcher(
                rf"(?<![\w/+\-]){_PT_VALUE}\s+/\s+{_PT_VALUE}(?![\w/])",
                0.7,
                transform=_power_toughness,
                use_last=True,
            ),
        ],
        "set_code": [
            _matcher(r"\[([A-Z0-9]{3,4})\]", 0.9, transform=_upper),
            _matcher(r"\b(?i:Set)[:\s]+([A-Z0-9]{3,4})\b", 0.7, transform=_upper),
            _matcher(r"©\s*\d{4}\s*([A-Z]{3,4})\b", 0.7, transform=_upper),
        ],
        "collector_number": [
            _matcher(r"(?<![\w/])(\d{1,4})/(\d{2,4})(?![\w/])", 0.8, transform=_collector_fraction),
            _matcher(r"#\s?(\d{1,4}[a-z]?)\b", 0.6, transform=_strip_zeros),
            _matcher(r"\bNumber[:\s]*(\d{1,4})\b", 0.6, re.IGNORECASE, transform=_strip_zeros),
        ],
        "rarity": [
            _matcher(rf"Rarity[:\s]*{_RARITIES}\b", 0.9, re.IGNORECASE, transform=_rarity),
            _matcher(rf"\b{_RARITIES}\b", 0.7, re.IGNORECASE, transform=_rarity),
        ],
        "type_line": [
            _matcher(
                rf"\b((?:(?:Legendary|Basic|Snow|World)[ \t]+)*{_CARD_TYPES}"
                rf"(?:[ \t]+{_CARD_TYPES})*(?:[ \t]*[—–-][ \t]*[A-Za-z' \t]+)?)",
                0.8,
                re.IGNORECASE,
            ),
            _matcher(r"\bType[:\s]*([^\n]+)", 0.6, re.IGNORECASE),
        ],
        "artist": [
            _matcher(r"\bIllus(?:trated\s+by)?[.:\s]*([A-Za-z][A-Za-z .'\-]+)", 0.7),
            _matcher(r"\bArtist[:\s]*([A-Za-z][A-Za-z .'\-]+)", 0.6, re.IGNORECASE),
            _matcher(r"\bArt\s*by[:\s]*([A-Za-z][A-Za-z .'\-]+)", 0.6, re.IGNORECASE),
        ],
        "copyright_year": [
            _matcher(r"©\s*(\d{4})", 0.8, plausible=_year_plausible),
            _matcher(r"\b(\d{4})\s*Wizards", 0.7, plausible=_year_plausible),
        ],
    }

    def __init__(self, normalizer: Optional[TextNormalizer] = None, normalize: bool = True):
        """
        Initialize extractor.

        Args:
            normalizer: Text normalizer run before matching
            normalize: Skip normalization entirely when False
        """
        self.normalizer = normalizer or TextNormalizer()
        self.normalize = normalize

    def extract(self, text: str) -> ExtractedFields:
        """
        Extract field guesses from recognized text.

        Never raises; a field that cannot be found is simply absent.

        Args:
            text: Recognized text, line breaks preserved

        Returns:
            ExtractedFields with values, confidences and cleaned name
        """
        fields = ExtractedFields()
        if not text or not text.strip():
            return fields

        if self.normalize:
            text = self.normalizer.normalize(text).normalized

        pt_span: Optional[tuple[int, int]] = None
        for name, matchers in self.MATCHERS.items():
            source = text
            if name == "collector_number" and pt_span is not None:
                # A two-digit P/T box such as 15/15 also reads as n/total
                start, end = pt_span
                source = text[:start] + " " * (end - start) + text[end:]

            found = self._first_match(matchers, source)
            if found is None:
                continue

            if name == "power_toughness":
                pt_span = found.span
                power, toughness = found.value
                fields.set("power", power, found.confidence)
                fields.set("toughness", toughness, found.confidence)
            else:
                fields.set(name, found.value, found.confidence)

        if fields.has_card_name:
            fields.cleaned_card_name = self.clean_card_name(fields.card_name)

        logger.debug(
            f"Extracted {len(fields)} fields "
            f"(confidence {fields.overall_confidence:.2f}): {sorted(fields.values)}"
        )
        return fields

    def _first_match(self, matchers: list[PatternMatcher], text: str) -> Optional[FieldMatch]:
        for matcher in matchers:
            found = matcher.match(text)
            if found is not None:
                return found
        return None

    @staticmethod
    def clean_card_name(name: str) -> str:
        """
        Normalize a card name for catalog queries.

        Drops punctuation other than apostrophes and hyphens, collapses
        whitespace and removes the stop words the/of/a/an.
        """
        cleaned = re.sub(r"[^\w\s'\-]", " ", name)
        cleaned = re.sub(rf"\b(?:{'|'.join(STOP_WORDS)})\b", " ", cleaned, flags=re.IGNORECASE)
        return " ".join(cleaned.split())

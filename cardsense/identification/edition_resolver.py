"""
Edition Resolver for CardSense

Orders the printings of one card and matches them against visual hints:
- Display ranking by price, rarity, special treatments and recency
- Hint-based disambiguation (set symbol, border, copyright year)
- Price summaries and display helpers

A disambiguation without any scoring edition is a normal outcome; the
caller asks the user to pick.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional, Sequence, Union

from loguru import logger

from cardsense.identification.catalog import EditionRecord


NOT_VISIBLE = "not visible"


@dataclass
class EditionHints:
    """Visual cues read off the physical card."""

    set_symbol: Optional[str] = None
    border_style: Optional[str] = None
    copyright_year: Optional[Union[int, str]] = None

    @classmethod
    def from_dict(cls, data: dict) -> "EditionHints":
        return cls(
            set_symbol=data.get("set_symbol"),
            border_style=data.get("border_style"),
            copyright_year=data.get("copyright_year"),
        )


@dataclass
class EditionMatch:
    """One edition that scored against the hints."""

    edition: EditionRecord
    confidence: int
    reasons: list[str] = field(default_factory=list)


@dataclass
class DisambiguationResult:
    """Hint matching outcome. `has_matches` is False when nothing scored."""

    has_matches: bool
    best_match: Optional[EditionMatch]
    all_matches: list[EditionMatch]
    suggestion: str

    def to_dict(self) -> dict:
        return {
            "has_matches": self.has_matches,
            "best_match": self.best_match.edition.id if self.best_match else None,
            "matches": [
                {"id": m.edition.id, "set_name": m.edition.set_name, "confidence": m.confidence, "reasons": m.reasons}
                for m in self.all_matches
            ],
            "suggestion": self.suggestion,
        }


@dataclass
class PriceRange:
    """USD price spread. All fields are None when no edition has a price."""

    min: Optional[float] = None
    max: Optional[float] = None
    average: Optional[float] = None

    @property
    def available(self) -> bool:
        return self.min is not None


@dataclass
class RankedEdition:
    """Edition with its display score and helpers."""

    edition: EditionRecord
    sort_value: float
    display_price: str
    display_tags: list[str]


class EditionResolver:
    """
    Display ranking and hint disambiguation over a card's printings.

    Usage:
        resolver = EditionResolver()
        ranked = resolver.rank_for_display(editions)
        result = resolver.disambiguate(editions, EditionHints(border_style="black"))
    """

    # Display ranking
    PRICE_MULTIPLIER = 10
    PRICE_SCORE_CAP = 1000
    RARITY_SCORES = {"mythic": 100, "rare": 75, "uncommon": 50, "common": 25}
    PROMO_BONUS = 150
    FULL_ART_BONUS = 100
    TEXTLESS_BONUS = 75
    BORDERLESS_BONUS = 125
    RECENCY_BONUS = 50
    RECENCY_YEARS = 2

    # Disambiguation
    SET_SYMBOL_SCORE = 10
    BORDER_MATCH_SCORE = 25
    COPYRIGHT_MATCH_SCORE = 30
    COPYRIGHT_YEAR_TOLERANCE = 1

    POPULAR_EDITION_COUNT = 5

    NO_MATCH_SUGGESTION = "Unable to automatically match - manual selection recommended"

    def __init__(self, current_year: Optional[int] = None):
        """
        Args:
            current_year: Fixed year for the recency bonus (defaults to today)
        """
        self._current_year = current_year

    @property
    def current_year(self) -> int:
        return self._current_year or date.today().year

    def sort_value(self, edition: EditionRecord) -> float:
        """Display importance of an edition. Higher sorts first."""
        score = 0.0

        price = edition.best_usd_price
        if price:
            score += min(price * self.PRICE_MULTIPLIER, self.PRICE_SCORE_CAP)

        score += self.RARITY_SCORES.get((edition.rarity or "").lower(), 0)

        if edition.promo:
            score += self.PROMO_BONUS
        if edition.full_art:
            score += self.FULL_ART_BONUS
        if edition.textless:
            score += self.TEXTLESS_BONUS
        if edition.borderless:
            score += self.BORDERLESS_BONUS

        year = edition.release_year
        if year is not None and self.current_year - year <= self.RECENCY_YEARS:
            score += self.RECENCY_BONUS

        return score

    def rank_for_display(self, editions: Sequence[EditionRecord]) -> list[RankedEdition]:
        """
        Editions ordered by descending sort value.

        The sort is stable, so equal scores keep catalog order.
        """
        ranked = [
            RankedEdition(
                edition=edition,
                sort_value=self.sort_value(edition),
                display_price=self.display_price(edition),
                display_tags=self.display_tags(edition),
            )
            for edition in editions
        ]
        ranked.sort(key=lambda r: r.sort_value, reverse=True)
        return ranked

    def disambiguate(
        self,
        editions: Sequence[EditionRecord],
        hints: Optional[EditionHints] = None,
    ) -> DisambiguationResult:
        """
        Score editions against visual hints.

        Args:
            editions: Printings in catalog order
            hints: Cues read off the card; missing cues contribute nothing

        Returns:
            DisambiguationResult with scoring editions, best first
        """
        hints = hints or EditionHints()
        hint_year = self._parse_year(hints.copyright_year)
        border = (hints.border_style or "").strip().lower()
        has_symbol = bool(hints.set_symbol and hints.set_symbol.strip().lower() != NOT_VISIBLE)

        matches: list[EditionMatch] = []
        for edition in editions:
            confidence = 0
            reasons: list[str] = []

            # Presence only, descriptions are not compared
            if has_symbol:
                confidence += self.SET_SYMBOL_SCORE
                reasons.append("Set symbol analysis")

            if border and border in (edition.border_color or "").lower():
                confidence += self.BORDER_MATCH_SCORE
                reasons.append(f"Border match: {hints.border_style}")

            year = edition.release_year
            if hint_year is not None and year is not None:
                if abs(year - hint_year) <= self.COPYRIGHT_YEAR_TOLERANCE:
                    confidence += self.COPYRIGHT_MATCH_SCORE
                    reasons.append(f"Copyright year match: {hint_year}")

            if confidence > 0:
                matches.append(EditionMatch(edition=edition, confidence=confidence, reasons=reasons))

        matches.sort(key=lambda m: m.confidence, reverse=True)

        if not matches:
            logger.warning(f"No edition matched hints across {len(editions)} printings")
            return DisambiguationResult(
                has_matches=False,
                best_match=None,
                all_matches=[],
                suggestion=self.NO_MATCH_SUGGESTION,
            )

        best = matches[0]
        logger.info(f"Best edition match: {best.edition.set_name} ({best.confidence})")
        return DisambiguationResult(
            has_matches=True,
            best_match=best,
            all_matches=matches,
            suggestion=f"Best match: {best.edition.set_name} ({best.confidence}% confidence)",
        )

    @staticmethod
    def _parse_year(value: Any) -> Optional[int]:
        if value is None:
            return None
        if isinstance(value, int):
            return value
        text = str(value).strip()
        if not text or text.lower() == NOT_VISIBLE:
            return None
        digits = "".join(ch for ch in text if ch.isdigit())[:4]
        return int(digits) if len(digits) == 4 else None

    @staticmethod
    def price_range(editions: Sequence[EditionRecord]) -> PriceRange:
        """Min, max and mean of each edition's best USD price."""
        prices = sorted(p for p in (e.best_usd_price for e in editions) if p is not None)
        if not prices:
            return PriceRange()
        return PriceRange(min=prices[0], max=prices[-1], average=sum(prices) / len(prices))

    @staticmethod
    def display_price(edition: EditionRecord) -> str:
        prices = edition.prices
        if prices.get("usd") is not None:
            return f"${prices['usd']:.2f}"
        if prices.get("usd_foil") is not None:
            return f"${prices['usd_foil']:.2f} (foil)"
        if prices.get("eur") is not None:
            return f"€{prices['eur']:.2f}"
        if prices.get("eur_foil") is not None:
            return f"€{prices['eur_foil']:.2f} (foil)"
        return "Price N/A"

    @staticmethod
    def display_tags(edition: EditionRecord) -> list[str]:
        """Short labels for spotting a printing at a glance."""
        tags = []
        if edition.promo:
            tags.append("PROMO")
        if edition.full_art:
            tags.append("FULL ART")
        if edition.textless:
            tags.append("TEXTLESS")
        if edition.borderless:
            tags.append("BORDERLESS")
        if edition.frame == "2015":
            tags.append("MODERN")
        if edition.frame == "1993":
            tags.append("VINTAGE")
        if edition.rarity == "mythic":
            tags.append("MYTHIC")
        if edition.foil and not edition.nonfoil:
            tags.append("FOIL ONLY")
        return tags

    def popular_editions(self, ranked: Sequence[RankedEdition]) -> list[RankedEdition]:
        """Top entries of an already ranked list."""
        return list(ranked[: self.POPULAR_EDITION_COUNT])

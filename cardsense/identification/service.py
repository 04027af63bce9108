"""
Identification Service

Runs card identification from recognized text:
text -> fields -> catalog candidates -> best card -> printings -> editions.
"""

from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from loguru import logger

from cardsense.config import Settings, get_settings
from cardsense.errors import NoCandidatesFound, NoTextExtracted
from cardsense.identification.cache import ResultCache
from cardsense.identification.candidate_ranker import CandidateRanker, MatchResult
from cardsense.identification.catalog import CardRecord, CatalogClient, EditionRecord, ScryfallClient
from cardsense.identification.edition_resolver import (
    DisambiguationResult,
    EditionHints,
    EditionResolver,
    PriceRange,
    RankedEdition,
)
from cardsense.ocr.field_extractor import ExtractedFields, FieldExtractor
from cardsense.ocr.recognition import ImagePayload, RawRecognition, TesseractRecognizer


@dataclass
class IdentificationResult:
    """Everything known about one scanned card."""

    match_result: MatchResult
    editions: list[RankedEdition]
    disambiguation: DisambiguationResult
    price_range: PriceRange
    fields: ExtractedFields

    @property
    def card(self) -> CardRecord:
        return self.match_result.candidate

    def to_dict(self) -> dict:
        return {
            "match": self.match_result.to_dict(),
            "editions": [
                {
                    "id": r.edition.id,
                    "set_code": r.edition.set_code,
                    "set_name": r.edition.set_name,
                    "sort_value": r.sort_value,
                    "display_price": r.display_price,
                    "tags": r.display_tags,
                }
                for r in self.editions
            ],
            "disambiguation": self.disambiguation.to_dict(),
            "price_range": {
                "min": self.price_range.min,
                "max": self.price_range.max,
                "average": self.price_range.average,
            },
            "fields": self.fields.to_dict(),
        }


@dataclass
class EditionCatalog:
    """All printings of a card, ranked for display."""

    card_name: str
    card: CardRecord
    editions: list[RankedEdition] = field(default_factory=list)
    price_range: PriceRange = field(default_factory=PriceRange)
    popular_editions: list[RankedEdition] = field(default_factory=list)

    @property
    def total_editions(self) -> int:
        return len(self.editions)


class IdentificationService:
    """
    Service for identifying cards from recognized text.

    Catalog lookups go through the result cache so repeated scans of the
    same card within the TTL do not hit the catalog again.
    """

    def __init__(
        self,
        catalog: Optional[CatalogClient] = None,
        extractor: Optional[FieldExtractor] = None,
        ranker: Optional[CandidateRanker] = None,
        resolver: Optional[EditionResolver] = None,
        cache: Optional[ResultCache] = None,
        recognizer: Optional[TesseractRecognizer] = None,
        settings: Optional[Settings] = None,
    ):
        """
        Initialize service.

        Args:
            catalog: Card catalog client
            extractor: Field extractor for recognized text
            ranker: Candidate ranker
            resolver: Edition resolver
            cache: Lookup cache
            recognizer: Recognition engine, only needed for identify_image
            settings: Settings to read defaults from
        """
        settings = settings or get_settings()
        self.catalog = catalog or ScryfallClient(settings=settings)
        self.extractor = extractor or FieldExtractor()
        self.ranker = ranker or CandidateRanker()
        self.resolver = resolver or EditionResolver()
        self.cache = cache or ResultCache(ttl=timedelta(hours=settings.cache_ttl_hours))
        self._recognizer = recognizer
        self._settings = settings

    @property
    def recognizer(self) -> TesseractRecognizer:
        if self._recognizer is None:
            self._recognizer = TesseractRecognizer(settings=self._settings)
        return self._recognizer

    async def identify(
        self,
        recognition: RawRecognition,
        hints: Optional[EditionHints] = None,
    ) -> IdentificationResult:
        """
        Identify a card and its printing from recognized text.

        Args:
            recognition: Text and word confidences from the recognizer
            hints: Visual cues for edition disambiguation

        Returns:
            IdentificationResult

        Raises:
            NoTextExtracted: No card name in the text
            NoCandidatesFound: Catalog has nothing for the name
            RateLimited: Propagated from the catalog
            NetworkFailure: Propagated from the catalog
        """
        fields = self.extractor.extract(recognition.text)
        if not fields.cleaned_card_name:
            logger.warning("No card name in recognized text")
            raise NoTextExtracted(recognition.text[:100] or None)

        # Stop words are part of real names ("Wrath of God"), search as read
        query = fields.card_name

        logger.info(f"Searching for card with query: '{query}'")
        candidates = await self._search(query)

        match = self.ranker.select_best(candidates, fields, recognition.confidence)
        if match.is_ambiguous:
            logger.warning(
                f"Ambiguous match for '{query}': runner-up within {self.ranker.AMBIGUITY_GAP}"
            )

        editions = await self._prints(match.candidate)
        ranked = self.resolver.rank_for_display(editions)

        if hints is None and "copyright_year" in fields:
            hints = EditionHints(copyright_year=fields.get("copyright_year"))
        disambiguation = self.resolver.disambiguate(editions, hints)

        logger.info(
            f"Identified '{match.candidate.name}' ({match.quality_label}), "
            f"{len(editions)} printings"
        )
        return IdentificationResult(
            match_result=match,
            editions=ranked,
            disambiguation=disambiguation,
            price_range=self.resolver.price_range(editions),
            fields=fields,
        )

    async def identify_image(
        self,
        image: ImagePayload,
        hints: Optional[EditionHints] = None,
    ) -> IdentificationResult:
        """Recognize text in a card image, then identify it."""
        recognition = self.recognizer.recognize(image)
        if not recognition.has_text:
            raise NoTextExtracted("Recognizer returned no text")
        return await self.identify(recognition, hints)

    async def get_all_editions(self, card_name: str) -> EditionCatalog:
        """
        Every printing of a card by name, ranked for display.

        Raises:
            NoCandidatesFound: Catalog has nothing for the name
        """
        key = f"editions_{card_name.lower()}"

        async def load() -> EditionCatalog:
            candidates = await self._search(card_name)
            card = candidates[0]
            editions = await self._prints(card)
            ranked = self.resolver.rank_for_display(editions)
            logger.info(f"Found {len(ranked)} editions for {card_name}")
            return EditionCatalog(
                card_name=card_name,
                card=card,
                editions=ranked,
                price_range=self.resolver.price_range(editions),
                popular_editions=self.resolver.popular_editions(ranked),
            )

        return await self.cache.get_or_load(key, load)

    async def _search(self, query: str) -> list[CardRecord]:
        async def load() -> list[CardRecord]:
            cards = await self.catalog.search(query)
            if not cards:
                raise NoCandidatesFound(query)
            return cards

        return await self.cache.get_or_load(f"search:{query}", load)

    async def _prints(self, card: CardRecord) -> list[EditionRecord]:
        return await self.cache.get_or_load(
            f"prints:{card.id}",
            lambda: self.catalog.prints(card),
        )

    async def close(self):
        close = getattr(self.catalog, "close", None)
        if close is not None:
            await close()

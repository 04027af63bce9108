"""
Card Identification Module

Matches extracted fields against the card catalog and resolves printings.
"""

from cardsense.identification.fuzzy import FuzzyMatcher
from cardsense.identification.catalog import (
    CardRecord,
    CatalogClient,
    EditionRecord,
    ScryfallClient,
)
from cardsense.identification.candidate_ranker import (
    CandidateRanker,
    MatchResult,
    ScoringComponents,
)
from cardsense.identification.edition_resolver import (
    DisambiguationResult,
    EditionHints,
    EditionMatch,
    EditionResolver,
    PriceRange,
    RankedEdition,
)
from cardsense.identification.cache import ResultCache
from cardsense.identification.service import (
    EditionCatalog,
    IdentificationResult,
    IdentificationService,
)

__all__ = [
    # Matching
    "FuzzyMatcher",
    "CandidateRanker",
    "MatchResult",
    "ScoringComponents",
    # Catalog
    "CardRecord",
    "CatalogClient",
    "EditionRecord",
    "ScryfallClient",
    # Editions
    "DisambiguationResult",
    "EditionHints",
    "EditionMatch",
    "EditionResolver",
    "PriceRange",
    "RankedEdition",
    # Service
    "ResultCache",
    "EditionCatalog",
    "IdentificationResult",
    "IdentificationService",
]

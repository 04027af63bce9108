"""
Candidate Ranker for CardSense

Picks the catalog entry that best fits the extracted fields:
- Weighted per-field scoring (name, set, collector number, rarity, artist)
- Stable selection: ties go to the earliest candidate
- Reported match quality blends name similarity with recognition confidence

Design Decisions:
1. Signals are summed independently, no interaction terms
2. Fields absent on either side contribute nothing
3. The selection score and the reported quality are separate numbers
"""

from dataclasses import dataclass, field
from typing import Optional, Sequence

from loguru import logger

from cardsense.identification.catalog import CardRecord
from cardsense.identification.fuzzy import FuzzyMatcher
from cardsense.ocr.field_extractor import ExtractedFields


@dataclass
class ScoringComponents:
    """Breakdown of one candidate's selection score."""

    name_similarity: Optional[float] = None
    set_match: bool = False
    collector_number_match: bool = False
    rarity_match: bool = False
    artist_similarity: Optional[float] = None

    final_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            "name_similarity": self.name_similarity,
            "set_match": self.set_match,
            "collector_number_match": self.collector_number_match,
            "rarity_match": self.rarity_match,
            "artist_similarity": self.artist_similarity,
            "final_score": self.final_score,
        }


@dataclass
class MatchResult:
    """Best catalog candidate for one recognition."""

    candidate: CardRecord
    match_quality: float
    matched_fields: dict[str, Optional[str]] = field(default_factory=dict)

    # Selection details
    selection_score: float = 0.0
    scoring_components: ScoringComponents = field(default_factory=ScoringComponents)
    runner_up_score: Optional[float] = None
    total_considered: int = 0

    @property
    def is_ambiguous(self) -> bool:
        """Runner-up scored within CandidateRanker.AMBIGUITY_GAP of the winner."""
        if self.runner_up_score is None:
            return False
        return self.selection_score - self.runner_up_score < CandidateRanker.AMBIGUITY_GAP

    @property
    def quality_label(self) -> str:
        if self.match_quality >= CandidateRanker.HIGH_QUALITY_THRESHOLD:
            return "high"
        elif self.match_quality >= CandidateRanker.MEDIUM_QUALITY_THRESHOLD:
            return "medium"
        elif self.match_quality >= CandidateRanker.LOW_QUALITY_THRESHOLD:
            return "low"
        return "uncertain"

    def to_dict(self) -> dict:
        return {
            "card_id": self.candidate.id,
            "name": self.candidate.name,
            "match_quality": self.match_quality,
            "quality": self.quality_label,
            "matched_fields": dict(self.matched_fields),
            "selection_score": self.selection_score,
            "is_ambiguous": self.is_ambiguous,
        }


class CandidateRanker:
    """
    Weighted field scoring over catalog candidates.

    Usage:
        ranker = CandidateRanker()
        result = ranker.select_best(cards, fields, recognition_confidence=72)
        print(result.candidate.name, result.match_quality)
    """

    # Scoring weights
    NAME_WEIGHT = 0.50
    SET_WEIGHT = 0.20
    COLLECTOR_NUMBER_WEIGHT = 0.15
    RARITY_WEIGHT = 0.10
    ARTIST_WEIGHT = 0.05

    # Quality thresholds
    HIGH_QUALITY_THRESHOLD = 0.85
    MEDIUM_QUALITY_THRESHOLD = 0.65
    LOW_QUALITY_THRESHOLD = 0.45

    # Ambiguity threshold (gap to second place)
    AMBIGUITY_GAP = 0.05

    def __init__(self, matcher: Optional[FuzzyMatcher] = None):
        self.matcher = matcher or FuzzyMatcher()

    def score(self, candidate: CardRecord, fields: ExtractedFields) -> ScoringComponents:
        """
        Score a single candidate against extracted fields.

        Args:
            candidate: Catalog entry
            fields: Extracted field guesses

        Returns:
            ScoringComponents with the accumulated final_score
        """
        components = ScoringComponents()
        score = 0.0

        card_name = fields.get("card_name")
        if card_name:
            components.name_similarity = self.matcher.similarity(
                card_name.lower(), candidate.name.lower()
            )
            score += components.name_similarity * self.NAME_WEIGHT

        set_code = fields.get("set_code")
        if set_code and candidate.set_code:
            if set_code.lower() == candidate.set_code.lower():
                components.set_match = True
                score += self.SET_WEIGHT

        collector_number = fields.get("collector_number")
        if collector_number and candidate.collector_number:
            if collector_number == candidate.collector_number:
                components.collector_number_match = True
                score += self.COLLECTOR_NUMBER_WEIGHT

        rarity = fields.get("rarity")
        if rarity and candidate.rarity:
            if rarity.lower() == candidate.rarity.lower():
                components.rarity_match = True
                score += self.RARITY_WEIGHT

        artist = fields.get("artist")
        if artist and candidate.artist:
            components.artist_similarity = self.matcher.similarity(
                artist.lower(), candidate.artist.lower()
            )
            score += components.artist_similarity * self.ARTIST_WEIGHT

        components.final_score = score
        return components

    def select_best(
        self,
        candidates: Sequence[CardRecord],
        fields: ExtractedFields,
        recognition_confidence: float = 0.0,
    ) -> MatchResult:
        """
        Select the highest scoring candidate.

        Only a strictly greater score replaces the current best, so ties keep
        the earliest candidate.

        Args:
            candidates: Catalog entries in catalog order, at least one
            fields: Extracted field guesses
            recognition_confidence: Mean recognition confidence, 0-100

        Returns:
            MatchResult for the winner

        Raises:
            ValueError: candidates is empty
        """
        if not candidates:
            raise ValueError("select_best requires at least one candidate")

        scored = [(candidate, self.score(candidate, fields)) for candidate in candidates]

        best_index = 0
        for i, (candidate, components) in enumerate(scored):
            logger.debug(f"{candidate.name}: score={components.final_score:.3f}")
            if components.final_score > scored[best_index][1].final_score:
                best_index = i

        best, components = scored[best_index]
        others = [c.final_score for i, (_, c) in enumerate(scored) if i != best_index]

        result = MatchResult(
            candidate=best,
            match_quality=self.match_quality(components, recognition_confidence),
            matched_fields=self.matched_fields(best, fields),
            selection_score=components.final_score,
            scoring_components=components,
            runner_up_score=max(others) if others else None,
            total_considered=len(candidates),
        )

        logger.info(
            f"Selected '{best.name}' from {len(candidates)} candidates "
            f"(quality {result.match_quality:.2f}, {result.quality_label})"
        )
        return result

    def match_quality(self, components: ScoringComponents, recognition_confidence: float) -> float:
        """Mean of name similarity (when a name was extracted) and recognition confidence."""
        factors = [recognition_confidence / 100.0]
        if components.name_similarity is not None:
            factors.append(components.name_similarity)
        return sum(factors) / len(factors)

    @staticmethod
    def matched_fields(candidate: CardRecord, fields: ExtractedFields) -> dict[str, Optional[str]]:
        """Candidate's value for every field that was extracted."""
        attributes = {
            "card_name": candidate.name,
            "set_code": candidate.set_code,
            "collector_number": candidate.collector_number,
            "rarity": candidate.rarity,
            "artist": candidate.artist,
        }
        return {name: value for name, value in attributes.items() if name in fields}

    def explain(self, result: MatchResult) -> str:
        """Human-readable summary of a selection."""
        sc = result.scoring_components
        lines = [
            f"Selected: {result.candidate.name} ({result.candidate.set_code or '?'})",
            f"Candidates considered: {result.total_considered}",
            f"Selection score: {result.selection_score:.3f}",
            f"Match quality: {result.match_quality:.2f} ({result.quality_label})",
        ]
        if sc.name_similarity is not None:
            lines.append(f"  name={sc.name_similarity:.2f}")
        lines.append(
            f"  set={sc.set_match}, number={sc.collector_number_match}, rarity={sc.rarity_match}"
        )
        if result.is_ambiguous:
            lines.append(f"  Ambiguous - runner-up scored {result.runner_up_score:.3f}")
        return "\n".join(lines)

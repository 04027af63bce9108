"""
Fuzzy string matching.

Normalized edit-distance similarity. Comparison is case-sensitive; callers
case-fold before comparing.
"""


class FuzzyMatcher:
    """Levenshtein-based string similarity."""

    @staticmethod
    def distance(a: str, b: str) -> int:
        """
        Edit distance with unit-cost insertions, deletions and substitutions.

        Args:
            a: First string
            b: Second string

        Returns:
            Minimum number of single-character edits turning a into b
        """
        if a == b:
            return 0
        if len(a) < len(b):
            a, b = b, a
        if not b:
            return len(a)

        previous = list(range(len(b) + 1))
        for i, ca in enumerate(a, start=1):
            current = [i]
            for j, cb in enumerate(b, start=1):
                current.append(min(
                    previous[j] + 1,             # deletion
                    current[j - 1] + 1,          # insertion
                    previous[j - 1] + (ca != cb),  # substitution
                ))
            previous = current

        return previous[-1]

    @classmethod
    def similarity(cls, a: str, b: str) -> float:
        """
        Similarity in [0, 1] from edit distance.

        (max_len - distance) / max_len, with two empty strings counted as a
        full match.
        """
        longest = max(len(a), len(b))
        if longest == 0:
            return 1.0
        return (longest - cls.distance(a, b)) / longest

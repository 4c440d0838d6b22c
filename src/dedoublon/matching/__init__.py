"""Module de rapprochement et de dédoublonnage."""

from dedoublon.matching.engine import MatchingEngine
from dedoublon.matching.schema import (
    DeduplicationResult,
    FieldMatchScore,
    MatchCluster,
    MatchPair,
    MatchResult,
    MatchType,
)

__all__ = [
    "MatchingEngine",
    "DeduplicationResult",
    "FieldMatchScore",
    "MatchCluster",
    "MatchPair",
    "MatchResult",
    "MatchType",
]

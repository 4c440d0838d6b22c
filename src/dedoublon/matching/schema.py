"""Schémas et types des résultats de rapprochement et de dédoublonnage."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from dedoublon.config import Algorithm


class MatchType(str, Enum):
    """Classification d'une paire selon son score global."""

    EXACT = "exact"
    PROBABLE = "probable"
    POSSIBLE = "possible"
    NON_MATCH = "non-match"


@dataclass
class FieldMatchScore:
    """Score d'un champ, avec les deux valeurs brutes comparées (pour audit)."""

    field: str
    score: float
    algorithm: Algorithm
    value1: Any
    value2: Any


@dataclass
class MatchPair:
    """Paire d'enregistrements comparés (indices = positions dans l'entrée)."""

    record1_index: int
    record2_index: int
    score: float
    field_scores: list[FieldMatchScore]
    match_type: MatchType

    def __repr__(self) -> str:
        return (
            f"MatchPair({self.record1_index}, {self.record2_index}, "
            f"score={self.score:.3f}, {self.match_type.value})"
        )


@dataclass
class MatchCluster:
    """Groupe d'enregistrements reliés transitivement par des paires retenues."""

    id: str
    record_indices: list[int]  # triés, sans doublon, au moins 2
    master_index: int
    confidence: float  # moyenne des scores des paires internes au groupe

    @property
    def size(self) -> int:
        return len(self.record_indices)


@dataclass
class MatchResult:
    """Résultat de find_matches pour un lot d'enregistrements."""

    rule_id: str
    rule_name: str
    total_records: int
    pairs: list[MatchPair] = field(default_factory=list)
    exact_matches: int = 0
    probable_matches: int = 0
    possible_matches: int = 0
    clusters: list[MatchCluster] = field(default_factory=list)
    execution_time_ms: float = 0.0
    timestamp: str = ""


@dataclass
class DeduplicationResult:
    """Résultat de deduplicate : unique_records + total_duplicates == total_records."""

    total_records: int
    unique_records: int
    duplicate_groups: int
    total_duplicates: int
    clusters: list[MatchCluster] = field(default_factory=list)
    survivor_records: list[dict[str, Any]] = field(default_factory=list)
    execution_time_ms: float = 0.0
    timestamp: str = ""

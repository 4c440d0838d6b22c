"""Configuration : règles de rapprochement et fichier config JSON."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping


class DedoublonError(Exception):
    """Exception de base pour Dedoublon."""


class ConfigError(DedoublonError, ValueError):
    """Erreur de validation d'une règle ou de la configuration."""


class ConfigFileError(DedoublonError):
    """Erreur de chargement du fichier de configuration (fichier absent, JSON invalide)."""


class Algorithm(str, Enum):
    """Algorithmes de similarité disponibles pour un champ."""

    EXACT = "exact"
    LEVENSHTEIN = "levenshtein"
    JARO_WINKLER = "jaro-winkler"
    SOUNDEX = "soundex"
    METAPHONE = "metaphone"
    DOUBLE_METAPHONE = "double-metaphone"
    NGRAM = "ngram"
    COSINE = "cosine"
    JACCARD = "jaccard"
    TOKEN_SORT = "token-sort"
    TOKEN_SET = "token-set"
    FUZZY = "fuzzy"
    CUSTOM = "custom"


class MergeStrategy(str, Enum):
    """Stratégie de choix du maître et de fusion d'un groupe de doublons."""

    KEEP_FIRST = "keep-first"
    KEEP_LAST = "keep-last"
    KEEP_MOST_COMPLETE = "keep-most-complete"
    KEEP_MOST_RECENT = "keep-most-recent"
    MANUAL = "manual"
    CUSTOM = "custom"


class PreprocessStep(str, Enum):
    """Étapes de prétraitement connues (les autres noms sont ignorés)."""

    TRIM = "trim"
    LOWERCASE = "lowercase"
    REMOVE_PUNCTUATION = "remove-punctuation"
    PHONETIC = "phonetic"


ALGORITHM_ALIASES = {
    "edit-distance": Algorithm.LEVENSHTEIN,
    "n-gram": Algorithm.NGRAM,
    "fuzzy-composite": Algorithm.FUZZY,
}

DEFAULT_MERGE_STRATEGY = MergeStrategy.KEEP_MOST_COMPLETE


def parse_algorithm(value: str | Algorithm) -> Algorithm:
    """Convertit un nom d'algorithme (ou un alias) en Algorithm."""
    if isinstance(value, Algorithm):
        return value
    key = str(value).strip().lower()
    if key in ALGORITHM_ALIASES:
        return ALGORITHM_ALIASES[key]
    try:
        return Algorithm(key)
    except ValueError:
        valid = sorted([a.value for a in Algorithm] + list(ALGORITHM_ALIASES))
        raise ConfigError(f"algorithm invalide: {value!r}. Valides: {valid}") from None


def parse_merge_strategy(value: str | MergeStrategy) -> MergeStrategy:
    """Convertit un nom de stratégie de fusion en MergeStrategy."""
    if isinstance(value, MergeStrategy):
        return value
    try:
        return MergeStrategy(str(value).strip().lower())
    except ValueError:
        valid = sorted(s.value for s in MergeStrategy)
        raise ConfigError(f"merge_strategy invalide: {value!r}. Valides: {valid}") from None


@dataclass(frozen=True)
class FieldConfig:
    """
    Configuration de comparaison d'un champ.

    `threshold` est informatif : seul le seuil global de la règle
    (`MatchRule.overall_threshold`) décide de la classification.
    La construction directe est validée comme `from_dict` : l'algorithme
    peut être donné par son nom (ou un alias).
    """

    name: str
    algorithm: Algorithm = Algorithm.EXACT
    weight: float = 1.0
    threshold: float = 0.0
    case_sensitive: bool = False
    preprocess: tuple[str, ...] = ()
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.name:
            raise ConfigError("name requis pour chaque champ")
        try:
            weight = float(self.weight)
            threshold = float(self.threshold)
        except (TypeError, ValueError):
            raise ConfigError(f"weight et threshold doivent être numériques (champ {self.name!r})") from None
        if weight < 0:
            raise ConfigError(f"weight doit être >= 0 (got {weight})")
        if not 0 <= threshold <= 1:
            raise ConfigError(f"threshold doit être entre 0 et 1 (got {threshold})")
        if not isinstance(self.parameters, Mapping):
            raise ConfigError(f"parameters doit être un objet (champ {self.name!r})")
        # Dataclass gelée : normalisation via object.__setattr__
        object.__setattr__(self, "algorithm", parse_algorithm(self.algorithm))
        object.__setattr__(self, "weight", weight)
        object.__setattr__(self, "threshold", threshold)
        object.__setattr__(self, "preprocess", tuple(str(s) for s in self.preprocess))

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> FieldConfig:
        return cls(
            name=str(d.get("name") or ""),
            algorithm=d.get("algorithm", "exact"),
            weight=d.get("weight", 1.0),
            threshold=d.get("threshold", 0.0),
            case_sensitive=bool(d.get("case_sensitive", False)),
            preprocess=tuple(d.get("preprocess", ())),
            parameters=d.get("parameters") or {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "algorithm": self.algorithm.value,
            "weight": self.weight,
            "threshold": self.threshold,
            "case_sensitive": self.case_sensitive,
            "preprocess": list(self.preprocess),
            "parameters": dict(self.parameters),
        }


@dataclass(frozen=True)
class MatchRule:
    """
    Règle de rapprochement : champs pondérés, seuil global, blocking, fusion.

    Les champs peuvent être donnés en FieldConfig ou en dicts, la stratégie de
    fusion par son nom ; tout est validé à la construction.
    """

    id: str
    name: str
    fields: tuple[FieldConfig, ...]
    overall_threshold: float
    max_results: int | None = None
    blocking_fields: tuple[str, ...] = ()
    merge_strategy: MergeStrategy | None = None
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.id:
            raise ConfigError("id requis pour chaque règle")
        try:
            overall_threshold = float(self.overall_threshold)
        except (TypeError, ValueError):
            raise ConfigError(f"overall_threshold doit être numérique (got {self.overall_threshold!r})") from None
        if not 0 <= overall_threshold <= 1:
            raise ConfigError(f"overall_threshold doit être entre 0 et 1 (got {overall_threshold})")
        max_results = self.max_results
        if max_results is not None:
            max_results = int(max_results)
            if max_results < 1:
                raise ConfigError(f"max_results doit être >= 1 (got {max_results})")

        fields = tuple(f if isinstance(f, FieldConfig) else FieldConfig.from_dict(f) for f in self.fields)
        strategy = self.merge_strategy
        object.__setattr__(self, "fields", fields)
        object.__setattr__(self, "overall_threshold", overall_threshold)
        object.__setattr__(self, "max_results", max_results)
        object.__setattr__(self, "blocking_fields", tuple(str(f) for f in self.blocking_fields))
        object.__setattr__(self, "merge_strategy", parse_merge_strategy(strategy) if strategy is not None else None)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> MatchRule:
        rule_id = d.get("id") or ""
        return cls(
            id=str(rule_id),
            name=str(d.get("name", rule_id)),
            fields=tuple(d.get("fields", [])),
            overall_threshold=d.get("overall_threshold", 0.8),
            max_results=d.get("max_results"),
            blocking_fields=tuple(d.get("blocking_fields", ())),
            merge_strategy=d.get("merge_strategy"),
            enabled=bool(d.get("enabled", True)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "fields": [f.to_dict() for f in self.fields],
            "overall_threshold": self.overall_threshold,
            "max_results": self.max_results,
            "blocking_fields": list(self.blocking_fields),
            "merge_strategy": self.merge_strategy.value if self.merge_strategy else None,
            "enabled": self.enabled,
        }


@dataclass
class Config:
    """Configuration de l'outil en ligne de commande."""

    input_file: str = ""
    sheet: str | None = None  # None = première feuille
    default_rule: str | None = None  # None = première règle
    rules: list[MatchRule] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Mapping[str, Any]) -> Config:
        rules = [MatchRule.from_dict(r) for r in d.get("rules", [])]
        if not rules:
            raise ConfigError("au moins une règle requise dans rules")

        seen: set[str] = set()
        for r in rules:
            if r.id in seen:
                raise ConfigError(f"id de règle dupliqué: {r.id!r}")
            seen.add(r.id)

        default_rule = d.get("default_rule")
        if default_rule is not None and default_rule not in seen:
            raise ConfigError(f"default_rule inconnue: {default_rule!r}. Règles: {sorted(seen)}")

        return cls(
            input_file=d.get("input_file", ""),
            sheet=d.get("sheet"),
            default_rule=default_rule,
            rules=rules,
        )

    @classmethod
    def load(cls, path: str | Path) -> Config:
        """
        Charge la configuration depuis un fichier JSON.

        Raises:
            ConfigFileError: Si le fichier est absent ou le JSON invalide.
            ConfigError: Si la configuration est invalide.
        """
        path = Path(path).resolve()
        if not path.exists():
            raise ConfigFileError(f"Fichier de configuration introuvable: {path}")

        try:
            with open(path, encoding="utf-8") as f:
                d = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigFileError(f"JSON invalide dans {path}: {e}") from e
        except OSError as e:
            raise ConfigFileError(f"Impossible de lire {path}: {e}") from e

        if not isinstance(d, dict):
            raise ConfigFileError(f"Fichier de configuration invalide: {path} doit contenir un objet JSON")

        config = cls.from_dict(d)
        config.resolve_paths(path.parent)
        return config

    def resolve_paths(self, base_dir: Path) -> None:
        """Résout input_file par rapport au répertoire de base (dossier du fichier config)."""
        if self.input_file and not Path(self.input_file).is_absolute():
            self.input_file = str((Path(base_dir) / self.input_file).resolve())

    def get_rule(self, rule_id: str | None = None) -> MatchRule:
        """Retourne la règle demandée, sinon default_rule, sinon la première."""
        wanted = rule_id or self.default_rule
        if wanted is None:
            return self.rules[0]
        for r in self.rules:
            if r.id == wanted:
                return r
        raise ConfigError(f"Règle inconnue: {wanted!r}. Règles: {[r.id for r in self.rules]}")

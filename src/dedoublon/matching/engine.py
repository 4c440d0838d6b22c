"""
Moteur de rapprochement : recherche de paires, regroupement et dédoublonnage.

Contrat "fail-soft" : aucune opération de comparaison ne lève d'exception pour
des données. Une règle inconnue donne un résultat vide, un matcher personnalisé
absent ou défaillant donne un score 0, une étape de prétraitement inconnue est
ignorée et une date illisible est sautée lors du choix du maître. Seules les
erreurs de programmation aux frontières des registres lèvent (TypeError pour un
matcher non appelable, ConfigError à la construction d'une règle invalide).
"""

from __future__ import annotations

import logging
import time
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Sequence, Union

import pandas as pd

from dedoublon.config import DEFAULT_MERGE_STRATEGY, FieldConfig, MatchRule
from dedoublon.matching.blockers import build_blocks, iter_block_pairs
from dedoublon.matching.clustering import build_clusters
from dedoublon.matching.merge import merge_cluster, select_master
from dedoublon.matching.schema import DeduplicationResult, MatchPair, MatchResult, MatchType
from dedoublon.matching.scorers import classify, score_record_pair, score_values
from dedoublon.registry import CustomMatcher, MatcherRegistry, RuleRegistry

logger = logging.getLogger(__name__)

Records = Union[Sequence[Mapping[str, Any]], pd.DataFrame]


def _as_records(records: Records) -> Sequence[Mapping[str, Any]]:
    """Accepte une liste de dicts ou un DataFrame (lignes dans l'ordre)."""
    if isinstance(records, pd.DataFrame):
        return records.to_dict(orient="records")
    return records


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class MatchingEngine:
    """
    Moteur de rapprochement et de dédoublonnage d'enregistrements.

    Les registres de règles et de matchers sont injectés (ou créés vides) ; ils
    sont protégés par verrou, le reste du moteur est sans état.

    Usage:
        engine = MatchingEngine()
        engine.register_rule(MatchRule.from_dict({...}))
        result = engine.find_matches(records, "name-match")
        deduped = engine.deduplicate(records, "name-match")
    """

    def __init__(
        self,
        registry: RuleRegistry | None = None,
        matchers: MatcherRegistry | None = None,
        rules: Iterable[MatchRule] = (),
    ) -> None:
        self.registry = registry if registry is not None else RuleRegistry()
        self.matchers = matchers if matchers is not None else MatcherRegistry()
        for rule in rules:
            self.registry.register(rule)

    # Règles et matchers

    def register_rule(self, rule: MatchRule) -> None:
        """Enregistre une règle (remplace celle de même id)."""
        self.registry.register(rule)

    def unregister_rule(self, rule_id: str) -> bool:
        return self.registry.unregister(rule_id)

    def get_rule(self, rule_id: str) -> MatchRule | None:
        return self.registry.get(rule_id)

    @property
    def rules(self) -> list[MatchRule]:
        return self.registry.list()

    @property
    def rule_count(self) -> int:
        return len(self.registry)

    def register_custom_matcher(self, name: str, matcher: CustomMatcher) -> None:
        """Enregistre une fonction utilisable via algorithm="custom", parameters={"matcher": name}."""
        self.matchers.register(name, matcher)

    def _resolve_rule(self, rule: str | MatchRule) -> MatchRule | None:
        if isinstance(rule, MatchRule):
            return rule
        return self.registry.get(rule)

    # Comparaison

    def compare_values(self, value1: Any, value2: Any, field: FieldConfig) -> float:
        """Similarité (0-1) de deux valeurs pour un champ."""
        return score_values(value1, value2, field, self.matchers)

    def compare_records(
        self,
        record1: Mapping[str, Any],
        record2: Mapping[str, Any],
        rule: MatchRule,
    ) -> MatchPair:
        """
        Compare deux enregistrements sans blocking.

        La paire est retournée quelle que soit sa classification (y compris non-match),
        avec les indices 0 et 1.
        """
        return self._compare(record1, record2, rule, 0, 1)

    def _compare(
        self,
        record1: Mapping[str, Any],
        record2: Mapping[str, Any],
        rule: MatchRule,
        idx1: int,
        idx2: int,
    ) -> MatchPair:
        score, field_scores = score_record_pair(record1, record2, rule, self.matchers)
        return MatchPair(
            record1_index=idx1,
            record2_index=idx2,
            score=score,
            field_scores=field_scores,
            match_type=classify(score, rule.overall_threshold),
        )

    def compare_block(
        self,
        records: Sequence[Mapping[str, Any]],
        block: Sequence[int],
        rule: MatchRule,
    ) -> list[MatchPair]:
        """Compare toutes les paires d'un bloc et garde celles qui ne sont pas non-match."""
        pairs: list[MatchPair] = []
        for idx1, idx2 in iter_block_pairs(block):
            pair = self._compare(records[idx1], records[idx2], rule, idx1, idx2)
            if pair.match_type is not MatchType.NON_MATCH:
                pairs.append(pair)
        return pairs

    # Lots

    def find_matches(self, records: Records, rule: str | MatchRule) -> MatchResult:
        """
        Trouve les paires de doublons d'un lot.

        Args:
            records: Enregistrements (liste de dicts ou DataFrame).
            rule: Id d'une règle enregistrée, ou règle passée directement.

        Returns:
            MatchResult. Une règle inconnue donne un résultat vide (pas d'exception).
        """
        start = time.perf_counter()
        rows = _as_records(records)
        resolved = self._resolve_rule(rule)
        if resolved is None:
            logger.warning("Règle inconnue: %r, aucun rapprochement effectué", rule)
            return MatchResult(
                rule_id=str(rule),
                rule_name="",
                total_records=len(rows),
                execution_time_ms=_elapsed_ms(start),
                timestamp=_now_iso(),
            )

        blocks = build_blocks(rows, resolved.blocking_fields)
        pairs: list[MatchPair] = []
        for block in blocks:
            pairs.extend(self.compare_block(rows, block, resolved))

        if resolved.max_results:
            pairs.sort(key=lambda p: p.score, reverse=True)
            pairs = pairs[: resolved.max_results]

        clusters = build_clusters(pairs, len(rows))
        result = MatchResult(
            rule_id=resolved.id,
            rule_name=resolved.name,
            total_records=len(rows),
            pairs=pairs,
            exact_matches=sum(1 for p in pairs if p.match_type is MatchType.EXACT),
            probable_matches=sum(1 for p in pairs if p.match_type is MatchType.PROBABLE),
            possible_matches=sum(1 for p in pairs if p.match_type is MatchType.POSSIBLE),
            clusters=clusters,
            execution_time_ms=_elapsed_ms(start),
            timestamp=_now_iso(),
        )
        logger.info(
            "Règle %r : %d enregistrements, %d blocs, %d paires, %d groupes (%.1f ms)",
            resolved.id,
            len(rows),
            len(blocks),
            len(pairs),
            len(clusters),
            result.execution_time_ms,
        )
        return result

    def deduplicate(self, records: Records, rule: str | MatchRule) -> DeduplicationResult:
        """
        Dédoublonne un lot : un enregistrement fusionné par groupe, plus chaque
        enregistrement isolé tel quel.

        Les enregistrements d'entrée ne sont pas modifiés.
        """
        start = time.perf_counter()
        rows = _as_records(records)
        resolved = self._resolve_rule(rule)
        match_result = self.find_matches(rows, resolved if resolved is not None else rule)
        strategy = (resolved.merge_strategy if resolved else None) or DEFAULT_MERGE_STRATEGY

        clusters = []
        survivors: list[dict[str, Any]] = []
        clustered: set[int] = set()
        for cluster in match_result.clusters:
            cluster = replace(cluster, master_index=select_master(cluster, rows, strategy))
            clusters.append(cluster)
            survivors.append(merge_cluster(cluster, rows, strategy))
            clustered.update(cluster.record_indices)

        survivors.extend(dict(row) for idx, row in enumerate(rows) if idx not in clustered)

        result = DeduplicationResult(
            total_records=len(rows),
            unique_records=len(survivors),
            duplicate_groups=len(clusters),
            total_duplicates=len(rows) - len(survivors),
            clusters=clusters,
            survivor_records=survivors,
            execution_time_ms=_elapsed_ms(start),
            timestamp=_now_iso(),
        )
        logger.info(
            "Dédoublonnage (%s) : %d -> %d enregistrements, %d groupes",
            strategy.value,
            result.total_records,
            result.unique_records,
            result.duplicate_groups,
        )
        return result

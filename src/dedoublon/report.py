"""Génération du rapport (onglet REPORT) et des tableaux de paires et de groupes."""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from dedoublon import __version__
from dedoublon.config import MatchRule
from dedoublon.matching.schema import DeduplicationResult, MatchCluster, MatchResult


def _result_rows(result: MatchResult | DeduplicationResult) -> list[tuple[str, object]]:
    if isinstance(result, DeduplicationResult):
        return [
            ("nb_records", result.total_records),
            ("nb_unique", result.unique_records),
            ("nb_duplicates", result.total_duplicates),
            ("nb_groups", result.duplicate_groups),
        ]
    return [
        ("nb_records", result.total_records),
        ("nb_pairs", len(result.pairs)),
        ("nb_exact", result.exact_matches),
        ("nb_probable", result.probable_matches),
        ("nb_possible", result.possible_matches),
        ("nb_groups", len(result.clusters)),
    ]


def build_report_df(
    result: MatchResult | DeduplicationResult,
    rule: MatchRule | None = None,
) -> pd.DataFrame:
    """
    Construit le DataFrame pour l'onglet REPORT.

    Contient : compteurs du résultat, paramètres et champs de la règle,
    durée, horodatage, version.
    """
    rows: list[tuple[str, object]] = [("Metric", "Value"), *_result_rows(result)]

    if rule is not None:
        rows.extend(
            [
                ("", ""),
                ("Parameters", ""),
                ("rule_id", rule.id),
                ("rule_name", rule.name),
                ("overall_threshold", rule.overall_threshold),
                ("max_results", rule.max_results if rule.max_results is not None else ""),
                ("blocking_fields", ", ".join(rule.blocking_fields)),
                ("merge_strategy", rule.merge_strategy.value if rule.merge_strategy else ""),
                ("", ""),
                ("Fields", ""),
            ]
        )
        for i, f in enumerate(rule.fields):
            steps = f" pre={'+'.join(f.preprocess)}" if f.preprocess else ""
            rows.append((f"field_{i}", f"{f.name} w={f.weight} a={f.algorithm.value}{steps}"))

    rows.extend(
        [
            ("", ""),
            ("execution_time_ms", round(result.execution_time_ms, 3)),
            ("timestamp", result.timestamp),
            ("version", __version__),
        ]
    )
    return pd.DataFrame(rows, columns=["Key", "Value"])


def build_pairs_df(result: MatchResult) -> pd.DataFrame:
    """Une ligne par paire retenue, avec le score de chaque champ en colonne."""
    rows = []
    for p in result.pairs:
        row: dict[str, object] = {
            "record1_index": p.record1_index,
            "record2_index": p.record2_index,
            "score": p.score,
            "match_type": p.match_type.value,
        }
        for fs in p.field_scores:
            row[f"score_{fs.field}"] = fs.score
        rows.append(row)
    return pd.DataFrame(rows, columns=None if rows else ["record1_index", "record2_index", "score", "match_type"])


def build_clusters_df(clusters: Sequence[MatchCluster]) -> pd.DataFrame:
    """Une ligne par groupe : id, membres, maître, confiance."""
    return pd.DataFrame(
        [
            {
                "cluster_id": c.id,
                "record_indices": ", ".join(str(i) for i in c.record_indices),
                "size": c.size,
                "master_index": c.master_index,
                "confidence": c.confidence,
            }
            for c in clusters
        ],
        columns=["cluster_id", "record_indices", "size", "master_index", "confidence"],
    )


def print_report_console(result: MatchResult | DeduplicationResult) -> None:
    """Affiche un résumé du rapport en console."""
    print("\n=== Dedoublon Report ===")
    if isinstance(result, DeduplicationResult):
        print(f"  Enregistrements:  {result.total_records}")
        print(f"  Uniques:          {result.unique_records}")
        print(f"  Doublons:         {result.total_duplicates}")
        print(f"  Groupes:          {result.duplicate_groups}")
    else:
        print(f"  Règle:            {result.rule_id} {result.rule_name}".rstrip())
        print(f"  Enregistrements:  {result.total_records}")
        print(f"  Paires:           {len(result.pairs)}")
        print(f"  Exactes:          {result.exact_matches}")
        print(f"  Probables:        {result.probable_matches}")
        print(f"  Possibles:        {result.possible_matches}")
        print(f"  Groupes:          {len(result.clusters)}")
    print(f"  Durée (ms):       {result.execution_time_ms:.1f}")
    print(f"  Version:          {__version__}")
    print(f"  Timestamp:        {result.timestamp}")
    print("========================\n")

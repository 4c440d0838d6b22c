"""Choix de l'enregistrement maître et fusion d'un groupe de doublons."""

from __future__ import annotations

import numbers
from typing import Any, Mapping, Sequence

import pandas as pd

from dedoublon.config import MergeStrategy
from dedoublon.matching.schema import MatchCluster
from dedoublon.normalize import is_empty

# Champs date usuels, parcourus dans cet ordre pour keep-most-recent
DATE_FIELDS = (
    "updatedAt",
    "updated_at",
    "modifiedAt",
    "modified_at",
    "createdAt",
    "created_at",
    "date",
    "timestamp",
)


def count_filled(record: Mapping[str, Any]) -> int:
    """Nombre de champs ni absents ni vides."""
    return sum(1 for v in record.values() if not is_empty(v))


def parse_timestamp(value: Any) -> pd.Timestamp | None:
    """
    Interprète une valeur comme date (UTC), ou None si impossible.

    Les nombres sont des millisecondes depuis l'epoch ; une date sans fuseau est
    considérée en UTC ; les booléens et les valeurs fausses sont ignorés.
    """
    if isinstance(value, bool) or not pd.api.types.is_scalar(value) or is_empty(value) or not value:
        return None
    try:
        if isinstance(value, numbers.Real):
            ts = pd.to_datetime(value, unit="ms", utc=True)
        else:
            ts = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    return ts


def select_master(
    cluster: MatchCluster,
    records: Sequence[Mapping[str, Any]],
    strategy: MergeStrategy,
) -> int:
    """
    Choisit l'indice maître d'un groupe selon la stratégie.

    - keep-first / keep-last : plus petit / plus grand indice.
    - keep-most-complete : membre ayant le plus de champs renseignés (le premier en cas d'égalité).
    - keep-most-recent : membre portant la date la plus récente parmi DATE_FIELDS.
    - manual / custom : premier membre.
    """
    indices = cluster.record_indices

    if strategy is MergeStrategy.KEEP_LAST:
        return indices[-1]

    if strategy is MergeStrategy.KEEP_MOST_COMPLETE:
        best_idx = indices[0]
        best_count = 0
        for idx in indices:
            count = count_filled(records[idx])
            if count > best_count:
                best_idx, best_count = idx, count
        return best_idx

    if strategy is MergeStrategy.KEEP_MOST_RECENT:
        best_idx = indices[0]
        best_ts: pd.Timestamp | None = None
        for idx in indices:
            record = records[idx]
            for name in DATE_FIELDS:
                ts = parse_timestamp(record.get(name))
                if ts is None:
                    continue
                if best_ts is None or ts > best_ts:
                    best_idx, best_ts = idx, ts
        return best_idx

    return indices[0]


def merge_cluster(
    cluster: MatchCluster,
    records: Sequence[Mapping[str, Any]],
    strategy: MergeStrategy,
) -> dict[str, Any]:
    """
    Construit l'enregistrement survivant d'un groupe à partir de son maître.

    keep-most-complete complète chaque champ vide du maître avec la première
    valeur non vide trouvée parmi les membres (dans l'ordre des indices) ; les
    autres stratégies retournent une copie du maître.
    """
    merged = dict(records[cluster.master_index])
    if strategy is not MergeStrategy.KEEP_MOST_COMPLETE:
        return merged

    keys: dict[str, None] = {}
    for idx in cluster.record_indices:
        keys.update(dict.fromkeys(records[idx]))

    for key in keys:
        if not is_empty(merged.get(key)):
            continue
        for idx in cluster.record_indices:
            val = records[idx].get(key)
            if not is_empty(val):
                merged[key] = val
                break
    return merged

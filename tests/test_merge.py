"""Tests du choix du maître et de la fusion."""

import pandas as pd

from dedoublon.config import MergeStrategy
from dedoublon.matching.merge import count_filled, merge_cluster, parse_timestamp, select_master
from dedoublon.matching.schema import MatchCluster


def _cluster(indices: list[int]) -> MatchCluster:
    return MatchCluster("cluster_test", indices, indices[0], 0.9)


def test_count_filled() -> None:
    assert count_filled({"a": "x", "b": "", "c": None, "d": 0}) == 2


def test_keep_first_and_last() -> None:
    records = [{"n": "a"}, {"n": "b"}, {"n": "c"}]
    cluster = _cluster([0, 2])
    assert select_master(cluster, records, MergeStrategy.KEEP_FIRST) == 0
    assert select_master(cluster, records, MergeStrategy.KEEP_LAST) == 2
    assert select_master(cluster, records, MergeStrategy.MANUAL) == 0
    assert select_master(cluster, records, MergeStrategy.CUSTOM) == 0


def test_keep_most_complete_master() -> None:
    records = [
        {"name": "Alice", "email": "", "phone": None},
        {"name": "Alice", "email": "a@x.org", "phone": None},
        {"name": "Alice", "email": "a@x.org", "phone": None},
    ]
    # Égalité : le premier des plus complets
    assert select_master(_cluster([0, 1, 2]), records, MergeStrategy.KEEP_MOST_COMPLETE) == 1


def test_keep_most_recent() -> None:
    records = [
        {"name": "a", "updated_at": "2023-01-01"},
        {"name": "b", "updated_at": "2024-06-01"},
        {"name": "c", "updated_at": "pas une date"},
    ]
    assert select_master(_cluster([0, 1, 2]), records, MergeStrategy.KEEP_MOST_RECENT) == 1


def test_keep_most_recent_before_epoch() -> None:
    records = [
        {"name": "a", "date": "1950-01-01"},
        {"name": "b", "date": "1960-01-01"},
    ]
    assert select_master(_cluster([0, 1]), records, MergeStrategy.KEEP_MOST_RECENT) == 1


def test_keep_most_recent_without_dates() -> None:
    records = [{"name": "a"}, {"name": "b"}]
    assert select_master(_cluster([0, 1]), records, MergeStrategy.KEEP_MOST_RECENT) == 0


def test_parse_timestamp() -> None:
    assert parse_timestamp("2024-01-01") == pd.Timestamp("2024-01-01", tz="UTC")
    assert parse_timestamp(0) is None
    assert parse_timestamp(1_700_000_000_000) == pd.Timestamp(1_700_000_000_000, unit="ms", tz="UTC")
    assert parse_timestamp(True) is None
    assert parse_timestamp("") is None
    assert parse_timestamp(None) is None
    assert parse_timestamp("n'importe quoi") is None


def test_merge_fills_empty_fields() -> None:
    records = [
        {"name": "Alice", "email": "a@x.org", "phone": ""},
        {"name": "Alice", "email": "", "phone": "0102", "city": "Lyon"},
    ]
    cluster = MatchCluster("c", [0, 1], 0, 1.0)
    merged = merge_cluster(cluster, records, MergeStrategy.KEEP_MOST_COMPLETE)
    assert merged == {"name": "Alice", "email": "a@x.org", "phone": "0102", "city": "Lyon"}
    # Entrées intactes
    assert records[0]["phone"] == ""
    assert "city" not in records[0]


def test_merge_other_strategies_copy_master() -> None:
    records = [{"name": "A", "phone": ""}, {"name": "B", "phone": "0102"}]
    cluster = MatchCluster("c", [0, 1], 1, 1.0)
    merged = merge_cluster(cluster, records, MergeStrategy.KEEP_LAST)
    assert merged == {"name": "B", "phone": "0102"}
    assert merged is not records[1]

"""Tests du module report."""

import pytest

from dedoublon import __version__
from dedoublon.config import Algorithm, FieldConfig, MatchRule, MergeStrategy
from dedoublon.matching.schema import (
    DeduplicationResult,
    FieldMatchScore,
    MatchCluster,
    MatchPair,
    MatchResult,
    MatchType,
)
from dedoublon.report import build_clusters_df, build_pairs_df, build_report_df, print_report_console


@pytest.fixture
def sample_rule() -> MatchRule:
    return MatchRule(
        "contacts",
        "Contacts",
        (
            FieldConfig("name", Algorithm.JARO_WINKLER, weight=2.0, preprocess=("trim", "lowercase")),
            FieldConfig("email", Algorithm.EXACT),
        ),
        0.85,
        blocking_fields=("city",),
        merge_strategy=MergeStrategy.KEEP_MOST_RECENT,
    )


@pytest.fixture
def sample_clusters() -> list[MatchCluster]:
    return [MatchCluster("cluster_aaaaaaaaaaaa", [0, 2, 3], 2, 0.95)]


@pytest.fixture
def sample_match_result(sample_clusters: list[MatchCluster]) -> MatchResult:
    pairs = [
        MatchPair(
            0,
            2,
            1.0,
            [
                FieldMatchScore("name", 1.0, Algorithm.JARO_WINKLER, "Alice", "Alice"),
                FieldMatchScore("email", 1.0, Algorithm.EXACT, "a@x.org", "a@x.org"),
            ],
            MatchType.EXACT,
        ),
        MatchPair(
            2,
            3,
            0.9,
            [
                FieldMatchScore("name", 0.85, Algorithm.JARO_WINKLER, "Alice", "Alicia"),
                FieldMatchScore("email", 1.0, Algorithm.EXACT, "a@x.org", "a@x.org"),
            ],
            MatchType.PROBABLE,
        ),
    ]
    return MatchResult(
        rule_id="contacts",
        rule_name="Contacts",
        total_records=5,
        pairs=pairs,
        exact_matches=1,
        probable_matches=1,
        possible_matches=0,
        clusters=sample_clusters,
        execution_time_ms=1.23456,
        timestamp="2024-01-01T00:00:00+00:00",
    )


@pytest.fixture
def sample_dedup_result(sample_clusters: list[MatchCluster]) -> DeduplicationResult:
    return DeduplicationResult(
        total_records=5,
        unique_records=3,
        duplicate_groups=1,
        total_duplicates=2,
        clusters=sample_clusters,
        survivor_records=[{"name": "Alice"}, {"name": "Bob"}, {"name": "Carol"}],
        execution_time_ms=2.0,
        timestamp="2024-01-01T00:00:00+00:00",
    )


def _value(df, key: str):
    return df[df["Key"] == key]["Value"].values[0]


def test_build_report_df_match_counts(sample_match_result: MatchResult, sample_rule: MatchRule) -> None:
    df = build_report_df(sample_match_result, sample_rule)
    assert _value(df, "nb_records") == 5
    assert _value(df, "nb_pairs") == 2
    assert _value(df, "nb_exact") == 1
    assert _value(df, "nb_probable") == 1
    assert _value(df, "nb_possible") == 0
    assert _value(df, "nb_groups") == 1
    assert _value(df, "execution_time_ms") == 1.235


def test_build_report_df_contains_params(sample_match_result: MatchResult, sample_rule: MatchRule) -> None:
    df = build_report_df(sample_match_result, sample_rule)
    keys = df["Key"].tolist()
    assert "overall_threshold" in keys
    assert "blocking_fields" in keys
    assert "version" in keys
    assert "timestamp" in keys
    assert _value(df, "merge_strategy") == "keep-most-recent"
    assert _value(df, "field_0") == "name w=2.0 a=jaro-winkler pre=trim+lowercase"
    assert _value(df, "version") == __version__


def test_build_report_df_without_rule(sample_dedup_result: DeduplicationResult) -> None:
    df = build_report_df(sample_dedup_result)
    keys = df["Key"].tolist()
    assert "rule_id" not in keys
    assert _value(df, "nb_unique") == 3
    assert _value(df, "nb_duplicates") == 2
    assert _value(df, "nb_groups") == 1


def test_build_pairs_df(sample_match_result: MatchResult) -> None:
    df = build_pairs_df(sample_match_result)
    assert len(df) == 2
    assert list(df.columns[:4]) == ["record1_index", "record2_index", "score", "match_type"]
    assert df["match_type"].tolist() == ["exact", "probable"]
    assert df["score_name"].tolist() == [1.0, 0.85]


def test_build_pairs_df_empty() -> None:
    df = build_pairs_df(MatchResult(rule_id="r", rule_name="", total_records=0))
    assert df.empty
    assert "score" in df.columns


def test_build_clusters_df(sample_clusters: list[MatchCluster]) -> None:
    df = build_clusters_df(sample_clusters)
    assert df.iloc[0]["record_indices"] == "0, 2, 3"
    assert df.iloc[0]["size"] == 3
    assert df.iloc[0]["master_index"] == 2
    assert build_clusters_df([]).empty


def test_print_report_console_match(capsys: pytest.CaptureFixture[str], sample_match_result: MatchResult) -> None:
    print_report_console(sample_match_result)
    out = capsys.readouterr().out
    assert "Dedoublon Report" in out
    assert "contacts Contacts" in out
    assert "Paires:" in out
    assert "Exactes:" in out


def test_print_report_console_dedup(
    capsys: pytest.CaptureFixture[str], sample_dedup_result: DeduplicationResult
) -> None:
    print_report_console(sample_dedup_result)
    out = capsys.readouterr().out
    assert "Uniques:" in out
    assert "Doublons:" in out
    assert "Paires:" not in out

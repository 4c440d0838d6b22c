"""Tests du regroupement en composantes connexes."""

import re

import pytest

from dedoublon.matching.clustering import UnionFind, build_clusters
from dedoublon.matching.schema import MatchPair, MatchType


def _pair(i: int, j: int, score: float) -> MatchPair:
    return MatchPair(i, j, score, [], MatchType.PROBABLE)


def test_union_find() -> None:
    uf = UnionFind(5)
    assert uf.union(0, 1)
    assert uf.union(1, 2)
    assert not uf.union(0, 2)
    assert uf.find(0) == uf.find(2)
    assert uf.find(3) != uf.find(0)


def test_clusters_transitive() -> None:
    clusters = build_clusters([_pair(0, 1, 0.9), _pair(1, 2, 0.8)], 4)
    assert len(clusters) == 1
    assert clusters[0].record_indices == [0, 1, 2]
    assert clusters[0].master_index == 0
    assert clusters[0].size == 3
    assert clusters[0].confidence == pytest.approx(0.85)


def test_clusters_sorted_by_confidence() -> None:
    pairs = [_pair(0, 1, 0.7), _pair(2, 3, 0.95), _pair(4, 5, 0.8)]
    clusters = build_clusters(pairs, 6)
    assert [c.record_indices for c in clusters] == [[2, 3], [4, 5], [0, 1]]


def test_cluster_confidence_uses_all_internal_pairs() -> None:
    pairs = [_pair(0, 1, 1.0), _pair(1, 2, 0.8), _pair(0, 2, 0.6)]
    clusters = build_clusters(pairs, 3)
    assert clusters[0].confidence == pytest.approx(0.8)


def test_clusters_disjoint_and_ids_unique() -> None:
    pairs = [_pair(0, 3, 0.9), _pair(1, 2, 0.9), _pair(3, 5, 0.9)]
    clusters = build_clusters(pairs, 6)
    members = [i for c in clusters for i in c.record_indices]
    assert len(members) == len(set(members))
    assert len({c.id for c in clusters}) == len(clusters)
    assert all(re.fullmatch(r"cluster_[0-9a-f]{12}", c.id) for c in clusters)


def test_no_pairs_no_clusters() -> None:
    assert build_clusters([], 10) == []

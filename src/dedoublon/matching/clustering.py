"""Regroupement des paires retenues en composantes connexes (union-find)."""

from __future__ import annotations

import uuid
from typing import Sequence

from dedoublon.matching.schema import MatchCluster, MatchPair


class UnionFind:
    """Ensembles disjoints sur 0..size-1, compression de chemin et union par rang."""

    def __init__(self, size: int) -> None:
        self._parent = list(range(size))
        self._rank = [0] * size

    def find(self, x: int) -> int:
        root = x
        while self._parent[root] != root:
            root = self._parent[root]
        while self._parent[x] != root:
            self._parent[x], x = root, self._parent[x]
        return root

    def union(self, x: int, y: int) -> bool:
        """Fusionne les ensembles de x et y ; False s'ils étaient déjà réunis."""
        root_x = self.find(x)
        root_y = self.find(y)
        if root_x == root_y:
            return False
        if self._rank[root_x] < self._rank[root_y]:
            root_x, root_y = root_y, root_x
        self._parent[root_y] = root_x
        if self._rank[root_x] == self._rank[root_y]:
            self._rank[root_x] += 1
        return True


def new_cluster_id() -> str:
    return f"cluster_{uuid.uuid4().hex[:12]}"


def build_clusters(pairs: Sequence[MatchPair], total_records: int) -> list[MatchCluster]:
    """
    Construit les groupes de doublons à partir des paires retenues.

    Seuls les indices présents dans au moins une paire sont regroupés. La
    confiance d'un groupe est la moyenne des scores de toutes les paires dont
    les deux extrémités sont dans le groupe (y compris celles qui n'ont pas
    servi à la fusion). Le maître par défaut est le plus petit indice.

    Returns:
        Groupes d'au moins deux membres, triés par confiance décroissante.
    """
    if not pairs:
        return []

    uf = UnionFind(total_records)
    for pair in pairs:
        uf.union(pair.record1_index, pair.record2_index)

    members: dict[int, set[int]] = {}
    scores: dict[int, list[float]] = {}
    for pair in pairs:
        root = uf.find(pair.record1_index)
        members.setdefault(root, set()).update((pair.record1_index, pair.record2_index))
        scores.setdefault(root, []).append(pair.score)

    clusters: list[MatchCluster] = []
    for root, indices in members.items():
        if len(indices) < 2:
            continue
        sorted_indices = sorted(indices)
        cluster_scores = scores[root]
        clusters.append(
            MatchCluster(
                id=new_cluster_id(),
                record_indices=sorted_indices,
                master_index=sorted_indices[0],
                confidence=sum(cluster_scores) / len(cluster_scores),
            )
        )

    clusters.sort(key=lambda c: c.confidence, reverse=True)
    return clusters

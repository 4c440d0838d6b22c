"""Blocking : partition des enregistrements pour réduire l'espace de comparaison."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Mapping, Sequence

from dedoublon.normalize import to_text

logger = logging.getLogger(__name__)


def get_block_key(record: Mapping[str, Any], blocking_fields: Sequence[str]) -> str:
    """
    Génère la clé de bloc : valeurs des champs en minuscules, sans espaces de bord, jointes par "|".

    Une valeur absente compte comme une chaîne vide.
    """
    return "|".join(to_text(record.get(f)).lower().strip() for f in blocking_fields)


def build_blocks(
    records: Sequence[Mapping[str, Any]],
    blocking_fields: Sequence[str] = (),
) -> list[list[int]]:
    """
    Construit les blocs de comparaison (listes d'indices d'enregistrements).

    Sans champ de blocking, un seul bloc contient tous les indices. Sinon, les
    enregistrements sont groupés par clé et seuls les groupes d'au moins deux
    membres sont retournés, dans l'ordre de première apparition de la clé.

    Args:
        records: Enregistrements à comparer.
        blocking_fields: Champs formant la clé de bloc.

    Returns:
        Liste de blocs.
    """
    if not blocking_fields:
        return [list(range(len(records)))]

    groups: dict[str, list[int]] = {}
    for idx, record in enumerate(records):
        key = get_block_key(record, blocking_fields)
        if key not in groups:
            groups[key] = []
        groups[key].append(idx)

    blocks = [indices for indices in groups.values() if len(indices) > 1]
    logger.debug(
        "Blocking sur %s : %d clés, %d blocs comparables",
        list(blocking_fields),
        len(groups),
        len(blocks),
    )
    return blocks


def iter_block_pairs(block: Sequence[int]) -> Iterator[tuple[int, int]]:
    """Toutes les paires non ordonnées d'un bloc, une seule fois chacune."""
    for pos, idx1 in enumerate(block):
        for idx2 in block[pos + 1 :]:
            yield idx1, idx2

"""Normalisation des valeurs et pipeline de prétraitement avant comparaison."""

from __future__ import annotations

import re
from typing import Any, Iterable

import pandas as pd

from dedoublon.config import PreprocessStep
from dedoublon.phonetics import soundex

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def is_missing(val: Any) -> bool:
    """
    Indique si une valeur est absente.

    None, NaN (float ou numpy) et les manquants pandas (pd.NA, NaT) sont absents.
    """
    if val is None:
        return True
    if not pd.api.types.is_scalar(val):
        return False
    return bool(pd.isna(val))


def is_empty(val: Any) -> bool:
    """Valeur absente ou chaîne vide (critère de complétude d'un champ)."""
    return is_missing(val) or val == ""


def to_text(val: Any) -> str:
    """
    Convertit une valeur scalaire en chaîne pour comparaison.

    Les booléens deviennent "true"/"false" et les flottants entiers perdent leur ".0",
    pour qu'une même valeur lue depuis un tableur ou un JSON donne le même texte.
    """
    if is_missing(val):
        return ""
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, float) and val.is_integer():
        return str(int(val))
    return str(val)


def remove_punctuation(s: str) -> str:
    """Retire tout caractère qui n'est ni alphanumérique, ni '_', ni un espace."""
    return _PUNCTUATION_RE.sub("", s)


def preprocess(value: str, steps: Iterable[str]) -> str:
    """
    Applique les étapes de prétraitement dans l'ordre configuré.

    Les noms d'étape inconnus sont ignorés (la valeur passe telle quelle).

    Args:
        value: Valeur déjà convertie en texte.
        steps: Noms d'étapes (trim, lowercase, remove-punctuation, phonetic).

    Returns:
        Valeur transformée.
    """
    result = value
    for step in steps:
        if step == PreprocessStep.TRIM.value:
            result = result.strip()
        elif step == PreprocessStep.LOWERCASE.value:
            result = result.lower()
        elif step == PreprocessStep.REMOVE_PUNCTUATION.value:
            result = remove_punctuation(result)
        elif step == PreprocessStep.PHONETIC.value:
            result = soundex(result)
    return result


def prepare_pair(
    value1: Any,
    value2: Any,
    steps: Iterable[str],
    *,
    case_sensitive: bool = False,
) -> tuple[str, str]:
    """Convertit, prétraite et (sauf champ sensible à la casse) passe en minuscules deux valeurs."""
    steps = tuple(steps)
    s = preprocess(to_text(value1), steps)
    t = preprocess(to_text(value2), steps)
    if not case_sensitive:
        s = s.lower()
        t = t.lower()
    return s, t

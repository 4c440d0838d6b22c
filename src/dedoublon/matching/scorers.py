"""
Calcul des similarités par champ et du score global d'une paire d'enregistrements.

Toutes les similarités sont normalisées dans [0, 1]. Aucune comparaison ne lève
d'exception : une donnée inexploitable dégrade le score (0) au lieu d'interrompre
le lot. Les appelants ne doivent donc pas compter sur des exceptions pour
signaler un problème de qualité de données.
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from typing import Any, Callable, Mapping

from rapidfuzz.distance import Levenshtein

from dedoublon.config import Algorithm, FieldConfig, MatchRule
from dedoublon.matching.schema import FieldMatchScore, MatchType
from dedoublon.normalize import is_missing, prepare_pair
from dedoublon.phonetics import double_metaphone, metaphone, soundex
from dedoublon.registry import CustomMatcher, MatcherRegistry

logger = logging.getLogger(__name__)

WINKLER_PREFIX_SCALE = 0.1
WINKLER_MAX_PREFIX = 4
DEFAULT_NGRAM_SIZE = 2
POSSIBLE_MATCH_FACTOR = 0.8


def levenshtein_distance(a: str, b: str) -> int:
    """Distance d'édition (insertions, suppressions, substitutions de coût 1)."""
    return Levenshtein.distance(a, b)


def exact_similarity(s: str, t: str) -> float:
    return 1.0 if s == t else 0.0


def levenshtein_similarity(s: str, t: str) -> float:
    """1 - distance / longueur max ; deux chaînes vides sont identiques."""
    if s == t:
        return 1.0
    max_len = max(len(s), len(t))
    if max_len == 0:
        return 1.0
    return 1.0 - levenshtein_distance(s, t) / max_len


def jaro_similarity(s: str, t: str) -> float:
    """
    Similarité de Jaro.

    Fenêtre de correspondance max(0, max(len)/2 - 1) ; le nombre de
    transpositions est divisé par deux sans arrondi (un nombre impair compte
    pour une demi-transposition).
    """
    if s == t:
        return 1.0
    if not s or not t:
        return 0.0

    window = max(0, max(len(s), len(t)) // 2 - 1)
    s_matched = [False] * len(s)
    t_matched = [False] * len(t)
    matches = 0
    for i, ch in enumerate(s):
        for j in range(max(0, i - window), min(i + window + 1, len(t))):
            if t_matched[j] or t[j] != ch:
                continue
            s_matched[i] = t_matched[j] = True
            matches += 1
            break
    if matches == 0:
        return 0.0

    transpositions = 0
    k = 0
    for i, ch in enumerate(s):
        if not s_matched[i]:
            continue
        while not t_matched[k]:
            k += 1
        if ch != t[k]:
            transpositions += 1
        k += 1

    return (matches / len(s) + matches / len(t) + (matches - transpositions / 2) / matches) / 3


def jaro_winkler_similarity(s: str, t: str) -> float:
    """
    Jaro-Winkler : Jaro + bonus de préfixe commun (p = 0.1, 4 caractères max).

    Le bonus s'applique quel que soit le score Jaro (pas de seuil de 0.7).
    """
    if s == t:
        return 1.0
    jaro = jaro_similarity(s, t)
    if jaro == 0:
        return 0.0

    prefix = 0
    for a, b in zip(s[:WINKLER_MAX_PREFIX], t[:WINKLER_MAX_PREFIX]):
        if a != b:
            break
        prefix += 1
    return jaro + prefix * WINKLER_PREFIX_SCALE * (1 - jaro)


def soundex_similarity(s: str, t: str) -> float:
    return 1.0 if soundex(s) == soundex(t) else 0.0


def metaphone_similarity(s: str, t: str) -> float:
    return 1.0 if metaphone(s) == metaphone(t) else 0.0


def double_metaphone_similarity(s: str, t: str) -> float:
    """1 si un code primaire ou alternatif de s correspond à un code de t."""
    primary1, alternate1 = double_metaphone(s)
    primary2, alternate2 = double_metaphone(t)
    if primary1 == primary2 or primary1 == alternate2 or alternate1 == primary2:
        return 1.0
    if alternate1 and alternate1 == alternate2:
        return 1.0
    return 0.0


def _ngrams(s: str, n: int) -> list[str]:
    if len(s) < n:
        return [s]
    return [s[i : i + n] for i in range(len(s) - n + 1)]


def ngram_similarity(s: str, t: str, n: int = DEFAULT_NGRAM_SIZE) -> float:
    """Coefficient de Dice sur les multi-ensembles de n-grammes de caractères."""
    if s == t:
        return 1.0
    if len(s) < n and len(t) < n:
        return 0.0
    grams1 = Counter(_ngrams(s, n))
    grams2 = Counter(_ngrams(t, n))
    total = sum(grams1.values()) + sum(grams2.values())
    if total == 0:
        return 1.0
    return 2 * sum((grams1 & grams2).values()) / total


def cosine_similarity(s: str, t: str) -> float:
    """Cosinus entre les vecteurs de fréquence des caractères."""
    if s == t:
        return 1.0
    if not s or not t:
        return 0.0
    freq1 = Counter(s)
    freq2 = Counter(t)
    dot = sum(count * freq2[c] for c, count in freq1.items())
    magnitude = math.sqrt(sum(v * v for v in freq1.values())) * math.sqrt(sum(v * v for v in freq2.values()))
    if magnitude == 0:
        return 0.0
    return dot / magnitude


def jaccard_similarity(s: str, t: str) -> float:
    """Jaccard sur les ensembles de mots (séparés par des espaces)."""
    tokens1 = set(s.split())
    tokens2 = set(t.split())
    if not tokens1 and not tokens2:
        return 1.0
    union = tokens1 | tokens2
    return len(tokens1 & tokens2) / len(union)


def token_sort_similarity(s: str, t: str) -> float:
    """Mots triés alphabétiquement puis similarité d'édition."""
    return levenshtein_similarity(" ".join(sorted(s.split())), " ".join(sorted(t.split())))


def token_set_similarity(s: str, t: str) -> float:
    """
    Meilleure similarité d'édition entre l'intersection des mots et chaque côté reconstruit.

    Compare intersection/côté 1, intersection/côté 2 et côté 1/côté 2, où chaque côté
    est l'intersection triée suivie de ses mots propres triés.
    """
    tokens1 = set(s.split())
    tokens2 = set(t.split())
    common = " ".join(sorted(tokens1 & tokens2))
    combined1 = " ".join([common, *sorted(tokens1 - tokens2)]).strip()
    combined2 = " ".join([common, *sorted(tokens2 - tokens1)]).strip()
    return max(
        levenshtein_similarity(common, combined1),
        levenshtein_similarity(common, combined2),
        levenshtein_similarity(combined1, combined2),
    )


def fuzzy_similarity(s: str, t: str) -> float:
    """Maximum de levenshtein, jaro-winkler et token-sort."""
    return max(
        levenshtein_similarity(s, t),
        jaro_winkler_similarity(s, t),
        token_sort_similarity(s, t),
    )


SIMILARITY_FUNCTIONS: dict[Algorithm, Callable[[str, str], float]] = {
    Algorithm.EXACT: exact_similarity,
    Algorithm.LEVENSHTEIN: levenshtein_similarity,
    Algorithm.JARO_WINKLER: jaro_winkler_similarity,
    Algorithm.SOUNDEX: soundex_similarity,
    Algorithm.METAPHONE: metaphone_similarity,
    Algorithm.DOUBLE_METAPHONE: double_metaphone_similarity,
    Algorithm.COSINE: cosine_similarity,
    Algorithm.JACCARD: jaccard_similarity,
    Algorithm.TOKEN_SORT: token_sort_similarity,
    Algorithm.TOKEN_SET: token_set_similarity,
    Algorithm.FUZZY: fuzzy_similarity,
}


def _ngram_size(parameters: Mapping[str, Any]) -> int:
    try:
        n = int(parameters.get("n", DEFAULT_NGRAM_SIZE))
    except (TypeError, ValueError):
        return DEFAULT_NGRAM_SIZE
    return n if n >= 1 else DEFAULT_NGRAM_SIZE


def _score_custom(
    value1: Any,
    value2: Any,
    field: FieldConfig,
    matchers: MatcherRegistry | Mapping[str, CustomMatcher] | None,
) -> float:
    """Appelle le matcher enregistré sous parameters["matcher"] avec les valeurs brutes."""
    name = field.parameters.get("matcher")
    matcher = matchers.get(name) if (name and matchers is not None) else None
    if matcher is None:
        logger.warning("Matcher personnalisé non enregistré: %r (champ %r), score 0", name, field.name)
        return 0.0
    try:
        score = float(matcher(value1, value2, dict(field.parameters)))
    except Exception:
        logger.warning("Échec du matcher personnalisé %r (champ %r), score 0", name, field.name, exc_info=True)
        return 0.0
    if math.isnan(score):
        return 0.0
    return min(max(score, 0.0), 1.0)


def score_values(
    value1: Any,
    value2: Any,
    field: FieldConfig,
    matchers: MatcherRegistry | Mapping[str, CustomMatcher] | None = None,
) -> float:
    """
    Calcule la similarité (0-1) de deux valeurs selon la configuration du champ.

    Args:
        value1: Première valeur (str, nombre, booléen ou absente).
        value2: Seconde valeur.
        field: Configuration du champ (algorithme, prétraitement, paramètres).
        matchers: Registre des matchers personnalisés (objet exposant get(name)).

    Returns:
        1 si les deux valeurs sont absentes, 0 si une seule l'est, sinon le score
        de l'algorithme.
    """
    missing1 = is_missing(value1)
    missing2 = is_missing(value2)
    if missing1 and missing2:
        return 1.0
    if missing1 or missing2:
        return 0.0

    if field.algorithm is Algorithm.CUSTOM:
        return _score_custom(value1, value2, field, matchers)

    s, t = prepare_pair(value1, value2, field.preprocess, case_sensitive=field.case_sensitive)

    if field.algorithm is Algorithm.NGRAM:
        return ngram_similarity(s, t, _ngram_size(field.parameters))

    return SIMILARITY_FUNCTIONS[field.algorithm](s, t)


def score_record_pair(
    record1: Mapping[str, Any],
    record2: Mapping[str, Any],
    rule: MatchRule,
    matchers: MatcherRegistry | Mapping[str, CustomMatcher] | None = None,
) -> tuple[float, list[FieldMatchScore]]:
    """
    Calcule le score global (pondéré) entre deux enregistrements.

    Un champ absent d'un enregistrement est comparé comme une valeur absente.

    Returns:
        (score_global, scores par champ dans l'ordre de la règle)
    """
    total_weight = 0.0
    weighted_sum = 0.0
    field_scores: list[FieldMatchScore] = []

    for field in rule.fields:
        value1 = record1.get(field.name)
        value2 = record2.get(field.name)
        sc = score_values(value1, value2, field, matchers)
        field_scores.append(FieldMatchScore(field.name, sc, field.algorithm, value1, value2))
        total_weight += field.weight
        weighted_sum += sc * field.weight

    if total_weight == 0:
        return 0.0, field_scores
    return weighted_sum / total_weight, field_scores


def classify(score: float, overall_threshold: float) -> MatchType:
    """exact (>= 1), probable (>= seuil), possible (>= 0.8 * seuil), sinon non-match."""
    if score >= 1.0:
        return MatchType.EXACT
    if score >= overall_threshold:
        return MatchType.PROBABLE
    if score >= overall_threshold * POSSIBLE_MATCH_FACTOR:
        return MatchType.POSSIBLE
    return MatchType.NON_MATCH

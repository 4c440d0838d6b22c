"""Registres de règles et de matchers personnalisés (état partagé, protégé par verrou)."""

from __future__ import annotations

import threading
from typing import Any, Callable, Iterable, Mapping

from dedoublon.config import MatchRule

CustomMatcher = Callable[[Any, Any, Mapping[str, Any]], float]


class RuleRegistry:
    """
    Stockage en mémoire des règles, indexé par id.

    Enregistrer une règle dont l'id existe déjà la remplace. Rien n'est persisté.
    """

    def __init__(self, rules: Iterable[MatchRule] = ()) -> None:
        self._lock = threading.RLock()
        self._rules: dict[str, MatchRule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: MatchRule) -> None:
        with self._lock:
            self._rules[rule.id] = rule

    def unregister(self, rule_id: str) -> bool:
        """Retire une règle ; retourne False si l'id était inconnu."""
        with self._lock:
            return self._rules.pop(rule_id, None) is not None

    def get(self, rule_id: str) -> MatchRule | None:
        with self._lock:
            return self._rules.get(rule_id)

    def list(self, *, enabled_only: bool = False) -> list[MatchRule]:
        """Règles dans l'ordre d'enregistrement."""
        with self._lock:
            rules = list(self._rules.values())
        if enabled_only:
            return [r for r in rules if r.enabled]
        return rules

    def __len__(self) -> int:
        with self._lock:
            return len(self._rules)

    def __contains__(self, rule_id: object) -> bool:
        with self._lock:
            return rule_id in self._rules


class MatcherRegistry:
    """Fonctions de similarité personnalisées, appelées par l'algorithme "custom"."""

    def __init__(self, matchers: Mapping[str, CustomMatcher] | None = None) -> None:
        self._lock = threading.RLock()
        self._matchers: dict[str, CustomMatcher] = {}
        for name, fn in (matchers or {}).items():
            self.register(name, fn)

    def register(self, name: str, matcher: CustomMatcher) -> None:
        """
        Enregistre (ou remplace) un matcher.

        Le matcher reçoit (valeur1, valeur2, paramètres) et retourne un score 0-1.

        Raises:
            TypeError: Si matcher n'est pas appelable.
        """
        if not callable(matcher):
            raise TypeError(f"matcher {name!r} doit être appelable (got {type(matcher).__name__})")
        with self._lock:
            self._matchers[name] = matcher

    def unregister(self, name: str) -> bool:
        with self._lock:
            return self._matchers.pop(name, None) is not None

    def get(self, name: str) -> CustomMatcher | None:
        with self._lock:
            return self._matchers.get(name)

    def names(self) -> list[str]:
        with self._lock:
            return list(self._matchers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._matchers)

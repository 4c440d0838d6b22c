"""Tests des registres de règles et de matchers."""

import threading

import pytest

from dedoublon.config import Algorithm, FieldConfig, MatchRule
from dedoublon.registry import MatcherRegistry, RuleRegistry


def _rule(rule_id: str, *, enabled: bool = True, threshold: float = 0.8) -> MatchRule:
    return MatchRule(rule_id, rule_id.upper(), (FieldConfig("name", Algorithm.EXACT),), threshold, enabled=enabled)


def test_register_get_unregister() -> None:
    registry = RuleRegistry()
    registry.register(_rule("a"))
    assert len(registry) == 1
    assert "a" in registry
    assert registry.get("a").name == "A"
    assert registry.unregister("a") is True
    assert registry.unregister("a") is False
    assert registry.get("a") is None


def test_register_replaces_same_id() -> None:
    registry = RuleRegistry([_rule("a", threshold=0.8)])
    registry.register(_rule("a", threshold=0.5))
    assert len(registry) == 1
    assert registry.get("a").overall_threshold == 0.5


def test_list_order_and_enabled_filter() -> None:
    registry = RuleRegistry([_rule("b"), _rule("a", enabled=False), _rule("c")])
    assert [r.id for r in registry.list()] == ["b", "a", "c"]
    assert [r.id for r in registry.list(enabled_only=True)] == ["b", "c"]


def test_concurrent_registration() -> None:
    registry = RuleRegistry()

    def worker(offset: int) -> None:
        for i in range(50):
            registry.register(_rule(f"r{offset}_{i}"))

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(registry) == 200


def test_matcher_registry() -> None:
    matchers = MatcherRegistry()
    matchers.register("same", lambda a, b, p: 1.0 if a == b else 0.0)
    assert matchers.names() == ["same"]
    assert matchers.get("same")("x", "x", {}) == 1.0
    assert matchers.get("absent") is None
    assert matchers.unregister("same") is True
    assert len(matchers) == 0


def test_matcher_registry_rejects_non_callable() -> None:
    with pytest.raises(TypeError, match="appelable"):
        MatcherRegistry().register("bad", "pas une fonction")  # type: ignore[arg-type]

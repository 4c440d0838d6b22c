"""Tests du blocking."""

from dedoublon.matching.blockers import build_blocks, get_block_key, iter_block_pairs


def test_block_key_normalized() -> None:
    assert get_block_key({"city": " Lyon ", "zip": 69001}, ["city", "zip"]) == "lyon|69001"
    assert get_block_key({"city": "Lyon"}, ["city", "zip"]) == "lyon|"
    assert get_block_key({"zip": 0}, ["zip"]) == "0"


def test_no_blocking_fields_single_block() -> None:
    records = [{"a": 1}, {"a": 2}, {"a": 3}]
    assert build_blocks(records) == [[0, 1, 2]]
    assert build_blocks(records, []) == [[0, 1, 2]]


def test_blocks_skip_singletons() -> None:
    records = [
        {"city": "Lyon"},
        {"city": "Paris"},
        {"city": "LYON"},
        {"city": "Nantes"},
        {"city": "paris "},
    ]
    assert build_blocks(records, ["city"]) == [[0, 2], [1, 4]]


def test_blocks_missing_values_share_empty_key() -> None:
    records = [{"city": None}, {"name": "x"}, {"city": "Lyon"}]
    assert build_blocks(records, ["city"]) == [[0, 1]]


def test_iter_block_pairs() -> None:
    assert list(iter_block_pairs([0, 2, 5])) == [(0, 2), (0, 5), (2, 5)]
    assert list(iter_block_pairs([4])) == []


def test_candidate_pairs_stay_within_blocks() -> None:
    records = [{"k": "a"}, {"k": "b"}, {"k": "a"}, {"k": "b"}]
    pairs = [pair for block in build_blocks(records, ["k"]) for pair in iter_block_pairs(block)]
    assert pairs == [(0, 2), (1, 3)]

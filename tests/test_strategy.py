"""
tests/test_strategy.py
Singular, pitchfork and clusterbomb enumeration and their termination.
"""
import pytest

from wordfuzz.core.strategy import (
    ClusterbombStrategy,
    Mode,
    PitchforkStrategy,
    SingularStrategy,
    build_strategy,
)
from wordfuzz.core.wordcursor import WordCursor


def collect(strategy):
    combinations = []
    while True:
        values = strategy.new_values()
        done = strategy.load_next(values)
        combinations.append(tuple(values))
        if done:
            return combinations


def test_clusterbomb_enumerates_cartesian_product_once():
    strategy = ClusterbombStrategy([WordCursor(b"a\nb\nc\n"), WordCursor(b"1\n2\n")], 2)

    combinations = collect(strategy)

    assert combinations == [
        ("a", "1"), ("b", "1"), ("c", "1"),
        ("a", "2"), ("b", "2"), ("c", "2"),
    ]
    assert len(set(combinations)) == 3 * 2
    assert strategy.cardinality() == 6
    assert strategy.exhausted


def test_clusterbomb_three_lists():
    cursors = [WordCursor(b"a\nb\n"), WordCursor(b"1\n2\n3\n"), WordCursor(b"x\ny\n")]
    combinations = collect(ClusterbombStrategy(cursors, 3))

    assert len(combinations) == 12
    assert len(set(combinations)) == 12
    assert combinations[0] == ("a", "1", "x")
    assert combinations[-1] == ("b", "3", "y")


def test_pitchfork_stops_with_longest_list():
    strategy = PitchforkStrategy([WordCursor(b"a\nb\nc\n"), WordCursor(b"1\n2\n")], 2)

    combinations = collect(strategy)

    assert len(combinations) == 3
    # the shorter list starts over from its own first word
    assert combinations == [("a", "1"), ("b", "2"), ("c", "1")]
    assert strategy.cardinality() == 3


def test_pitchfork_longest_list_second():
    strategy = PitchforkStrategy([WordCursor(b"a\n"), WordCursor(b"1\n2\n3\n4\n")], 2)
    combinations = collect(strategy)

    assert [c[1] for c in combinations] == ["1", "2", "3", "4"]
    assert [c[0] for c in combinations] == ["a", "a", "a", "a"]


def test_singular_fills_every_slot_with_one_word():
    strategy = SingularStrategy([WordCursor(b"one\ntwo\nthree\n")], 3)

    combinations = collect(strategy)

    assert combinations == [("one",) * 3, ("two",) * 3, ("three",) * 3]
    assert strategy.cardinality() == 3


def test_build_strategy_pads_missing_cursors(caplog):
    strategy = build_strategy(Mode.CLUSTERBOMB, [WordCursor(b"a\nb\n")], 2)

    assert len(strategy.cursors) == 2
    assert strategy.cursors[1].is_dummy
    assert collect(strategy) == [("a", "FUZZ"), ("b", "FUZZ")]
    assert "Expected 2 word-list(s), provided 1" in caplog.text


def test_build_strategy_ignores_extra_cursors(caplog):
    cursors = [WordCursor(b"a\n"), WordCursor(b"1\n2\n"), WordCursor(b"x\ny\nz\n")]
    strategy = build_strategy("pitchfork", cursors, 2)

    assert len(strategy.cursors) == 2
    assert strategy.cardinality() == 2
    assert "provided 3" in caplog.text


def test_build_strategy_singular_uses_first_cursor(caplog):
    strategy = build_strategy("singular", [WordCursor(b"a\n"), WordCursor(b"b\n")], 2)

    assert isinstance(strategy, SingularStrategy)
    assert collect(strategy) == [("a", "a")]
    assert "Expected 1 word-list, provided 2" in caplog.text


def test_build_strategy_rejects_unknown_mode():
    with pytest.raises(ValueError):
        build_strategy("shotgun", [WordCursor(b"a\n")], 1)

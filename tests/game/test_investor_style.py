#!filepath: tests/game/test_investor_style.py
import itertools

import pytest

from invest_game.game.style import MENTORS, Archetype, StyleInputs, classify


# ======================================================
# Primary rules
# ======================================================
@pytest.mark.parametrize(
    "inputs, archetype, rule",
    [
        # trades, turns, sectors, profit, bonus
        ((8, 10, 5, 20.0, 20), Archetype.CAUTIOUS, "primary:cautious"),
        ((6, 10, 2, 45.0, 5), Archetype.FOCUSED, "primary:focused"),
        ((30, 10, 3, 40.0, 10), Archetype.ACTIVE, "primary:active"),
        ((20, 10, 3, 60.0, 10), Archetype.GROWTH, "primary:growth"),
        ((15, 10, 4, 30.0, 15), Archetype.BALANCED, "primary:balanced"),
    ],
)
def test_primary_rules(inputs, archetype, rule):
    style = classify(*inputs)

    assert style.archetype is archetype
    assert style.rule == rule
    assert style.mentor == MENTORS[archetype]


def test_cautious_wins_over_later_rules():
    """
    Contract:
    evaluation order is fixed; the first matching rule decides
    """
    # also satisfies the relaxed cautious / balanced safety nets
    assert classify(10, 10, 5, 30.0, 20).rule == "primary:cautious"


def test_focused_needs_patience():
    # 8 trades over 5 turns: intensity 1.6 > 0.8 → falls to safety net
    style = classify(8, 5, 2, 45.0, 5)

    assert style.archetype is Archetype.FOCUSED
    assert style.rule == "safety:focused"


# ======================================================
# Safety net
# ======================================================
@pytest.mark.parametrize(
    "inputs, rule",
    [
        ((12, 10, 1, 25.0, -10), "safety:focused"),
        ((22, 10, 3, 16.0, 10), "safety:active"),
        ((12, 10, 4, -5.0, 15), "safety:cautious"),
        ((14, 10, 3, 5.0, 10), "safety:balanced"),
        ((14, 10, 0, 45.0, -10), "safety:focused"),
    ],
)
def test_safety_net(inputs, rule):
    assert classify(*inputs).rule == rule


def test_high_profit_few_sectors_is_focused_before_growth():
    # safety:focused is checked before safety:growth
    style = classify(14, 10, 1, 45.0, -10)

    assert style.archetype is Archetype.FOCUSED
    assert style.rule == "safety:focused"


def test_default_is_steady():
    style = classify(15, 10, 3, -20.0, 10)

    assert style.archetype is Archetype.STEADY
    assert style.mentor == "John Bogle"
    assert style.rule == "default:steady"


# ======================================================
# Totality
# ======================================================
def test_classifier_is_total():
    """
    🔒 Contract:
    every input tuple gets exactly one archetype, never unmatched
    """
    trades = [0, 1, 8, 10, 12, 15, 20, 25, 40, 80]
    turns = [0, 1, 5, 10]
    sectors = [0, 1, 2, 3, 4, 5]
    profits = [-100.0, -1.0, 0.0, 15.0, 20.0, 30.0, 40.0, 50.0, 200.0]
    bonuses = [-10, 5, 10, 15, 20]

    for combo in itertools.product(trades, turns, sectors, profits, bonuses):
        style = classify(*combo)
        assert style.archetype in Archetype


def test_intensity_zero_turns():
    assert StyleInputs(5, 0, 1, 0.0, 0).intensity == 0.0
    assert StyleInputs(25, 10, 1, 0.0, 0).intensity == 2.5

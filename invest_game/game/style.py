from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Tuple

from invest_game.utils.logger import logs
"""
{#!filepath: invest_game/game/style.py}

Investor-style classifier (FINAL / FROZEN)

Pure, total function of:
    (total_trades, total_turns, max_sectors, profit_rate, diversification_bonus)

Evaluation order:
    1. five primary rules (strict conjunctions)
    2. five safety-net rules (relaxed)
    3. unconditional default

Invariants:
- exactly one archetype is returned for any input
- no rule reads anything but the five inputs
"""


class Archetype(str, Enum):
    CAUTIOUS = "cautious"
    FOCUSED = "focused"
    ACTIVE = "active"
    GROWTH = "growth"
    BALANCED = "balanced"
    STEADY = "steady"


MENTORS = {
    Archetype.CAUTIOUS: "Benjamin Graham",
    Archetype.FOCUSED: "Warren Buffett",
    Archetype.ACTIVE: "George Soros",
    Archetype.GROWTH: "Peter Lynch",
    Archetype.BALANCED: "Ray Dalio",
    Archetype.STEADY: "John Bogle",
}

DESCRIPTIONS = {
    Archetype.CAUTIOUS: "Safe investing through careful analysis",
    Archetype.FOCUSED: "Long-term concentration in a few excellent companies",
    Archetype.ACTIVE: "Active trading that seizes market opportunities",
    Archetype.GROWTH: "Returns from discovering growth companies",
    Archetype.BALANCED: "Stable growth through risk diversification",
    Archetype.STEADY: "Steady, stable long-term investing",
}


@dataclass(frozen=True)
class StyleInputs:
    total_trades: int
    total_turns: int
    max_sectors: int
    profit_rate: float
    diversification_bonus: float

    @property
    def intensity(self) -> float:
        """Trades per turn; 0 when no turns were played."""
        if self.total_turns <= 0:
            return 0.0
        return self.total_trades / self.total_turns


@dataclass(frozen=True)
class InvestorStyle:
    archetype: Archetype
    mentor: str
    description: str
    rule: str            # which rule matched, e.g. "primary:cautious"

    @property
    def key(self) -> str:
        return self.archetype.value


Rule = Tuple[str, Archetype, Callable[[StyleInputs], bool]]


# ------------------------------------------------------------------
# Primary rules
# ------------------------------------------------------------------
def _is_cautious(s: StyleInputs) -> bool:
    return (
        s.total_trades <= 10
        and s.max_sectors >= 5
        and s.diversification_bonus >= 15
        and 0 <= s.profit_rate <= 30
    )


def _is_focused(s: StyleInputs) -> bool:
    return (
        s.total_trades <= 8
        and s.max_sectors <= 2
        and s.profit_rate >= 40
        and s.intensity <= 0.8
    )


def _is_active(s: StyleInputs) -> bool:
    return (
        s.total_trades >= 25
        and 2 <= s.max_sectors <= 4
        and s.profit_rate >= 35
        and s.intensity >= 2.5
    )


def _is_growth(s: StyleInputs) -> bool:
    return (
        15 <= s.total_trades <= 25
        and 2 <= s.max_sectors <= 4
        and s.profit_rate >= 50
        and 1.5 <= s.intensity <= 2.5
    )


def _is_balanced(s: StyleInputs) -> bool:
    return (
        s.max_sectors == 4
        and 10 <= s.diversification_bonus < 20
        and 25 <= s.profit_rate <= 45
        and 10 <= s.total_trades <= 20
    )


PRIMARY_RULES: Tuple[Rule, ...] = (
    ("primary:cautious", Archetype.CAUTIOUS, _is_cautious),
    ("primary:focused", Archetype.FOCUSED, _is_focused),
    ("primary:active", Archetype.ACTIVE, _is_active),
    ("primary:growth", Archetype.GROWTH, _is_growth),
    ("primary:balanced", Archetype.BALANCED, _is_balanced),
)

# ------------------------------------------------------------------
# 🛡️ Safety net (relaxed)
# ------------------------------------------------------------------
SAFETY_NET_RULES: Tuple[Rule, ...] = (
    ("safety:focused", Archetype.FOCUSED, lambda s: s.max_sectors <= 2 and s.profit_rate >= 20),
    ("safety:active", Archetype.ACTIVE, lambda s: s.total_trades >= 20 and s.profit_rate >= 15),
    ("safety:cautious", Archetype.CAUTIOUS, lambda s: s.total_trades <= 12 and s.max_sectors >= 4),
    ("safety:balanced", Archetype.BALANCED, lambda s: s.max_sectors >= 3 and s.profit_rate >= 0),
    ("safety:growth", Archetype.GROWTH, lambda s: s.profit_rate >= 40),
)


def _style(archetype: Archetype, rule: str) -> InvestorStyle:
    return InvestorStyle(
        archetype=archetype,
        mentor=MENTORS[archetype],
        description=DESCRIPTIONS[archetype],
        rule=rule,
    )


def classify(
    total_trades: int,
    total_turns: int,
    max_sectors: int,
    profit_rate: float,
    diversification_bonus: float,
) -> InvestorStyle:
    inputs = StyleInputs(
        total_trades=total_trades,
        total_turns=total_turns,
        max_sectors=max_sectors,
        profit_rate=profit_rate,
        diversification_bonus=diversification_bonus,
    )

    for name, archetype, rule in PRIMARY_RULES + SAFETY_NET_RULES:
        if rule(inputs):
            logs.debug(f"[Style] matched rule={name} intensity={inputs.intensity:.2f}")
            return _style(archetype, name)

    return _style(Archetype.STEADY, "default:steady")

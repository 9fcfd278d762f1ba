from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

from invest_game.game.core.types import Sector
# invest_game/game/core/events.py


# -------------------------
# Scope (tagged variant)
# -------------------------
@dataclass(frozen=True)
class GlobalScope:
    """Every instrument in the market."""

    def describe(self) -> str:
        return "GLOBAL"


@dataclass(frozen=True)
class SectorScope:
    sector: Sector

    def describe(self) -> str:
        return self.sector.value


EffectScope = Union[GlobalScope, SectorScope]

GLOBAL = GlobalScope()


class VariationMode(str, Enum):
    INDEPENDENT = "INDEPENDENT"   # 每个 instrument 单独抽样
    UNIFORM = "UNIFORM"           # 每个 effect 只抽一次


class EventCategory(str, Enum):
    TECHNOLOGY = "technology"
    ENERGY = "energy"
    INTEREST = "interest"
    CRYPTO = "crypto"
    CORPORATE = "corporate"
    GENERAL = "general"


# -------------------------
# Effect
# -------------------------
@dataclass(frozen=True)
class EffectDescriptor:
    scope: EffectScope
    base_rate: float                                   # percent
    variation: Optional[Tuple[float, float]] = None    # (min, max) percent
    mode: VariationMode = VariationMode.INDEPENDENT

    def __post_init__(self) -> None:
        if self.variation is not None:
            lo, hi = self.variation
            if lo > hi:
                raise ValueError(f"variation min > max: {self.variation}")

    @property
    def is_global(self) -> bool:
        return isinstance(self.scope, GlobalScope)


# -------------------------
# Event
# -------------------------
@dataclass(frozen=True)
class ScheduledEvent:
    """
    ScheduledEvent (FROZEN)

    effects 按声明顺序依次作用：后面的 effect 读取已更新的价格（复利叠加）。
    """

    key: str
    effects: Tuple[EffectDescriptor, ...]
    category: EventCategory = EventCategory.GENERAL
    title: str = ""

    @property
    def average_impact(self) -> float:
        if not self.effects:
            return 0.0
        return sum(e.base_rate for e in self.effects) / len(self.effects)

    @property
    def affected_sector(self) -> Optional[Sector]:
        """
        The one sector this event targets, None when it touches the whole
        market or more than one sector.
        """
        if any(e.is_global for e in self.effects):
            return None
        sectors = {e.scope.sector for e in self.effects}
        if len(sectors) == 1:
            return next(iter(sectors))
        return None

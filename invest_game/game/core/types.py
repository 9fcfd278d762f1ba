from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple
# invest_game/game/core/types.py


# -------------------------
# Enums
# -------------------------
class Sector(str, Enum):
    TECH = "TECH"          # 科技
    SEM = "SEM"            # 半导体
    EV = "EV"              # 电动车 / 能源
    CRYPTO = "CRYPTO"      # 加密资产
    CORP = "CORP"          # 传统大企业


class GameState(str, Enum):
    WAITING_TO_START = "WAITING_TO_START"
    READY = "READY"
    PLAYING = "PLAYING"
    FINISHED = "FINISHED"


class TurnPhase(str, Enum):
    """Inner turn-loop phases; each one is a suspension point of tick()."""

    TURN_START = "TURN_START"
    EVENT_DISPLAY = "EVENT_DISPLAY"
    COUNTDOWN = "COUNTDOWN"
    SETTLE = "SETTLE"
    GAME_END = "GAME_END"
    DONE = "DONE"


class Side(str, Enum):
    BUY = "BUY"
    SELL = "SELL"


class LifestyleGrade(str, Enum):
    UPPER = "UPPER"
    MIDDLE_UPPER = "MIDDLE_UPPER"
    MIDDLE = "MIDDLE"
    LOWER = "LOWER"


class InvestmentGrade(str, Enum):
    GENIUS = "genius"
    EXPERT = "expert"
    MASTER = "master"
    BEGINNER = "beginner"
    NOVICE = "novice"


class RankChange(str, Enum):
    UP = "UP"
    DOWN = "DOWN"
    SAME = "SAME"


# -------------------------
# Instrument (repository-owned, mutable)
# -------------------------
@dataclass
class Instrument:
    id: str
    name: str
    sector: Sector
    price: int
    previous_price: int = 0
    change_rate: float = 0.0
    rank: int = 1
    previous_rank: int = 1

    def __post_init__(self) -> None:
        if not self.previous_price:
            self.previous_price = self.price

    def apply_rate(self, percent: float) -> int:
        """
        price := round(price × (1 + percent/100))

        Python round() is half-to-even, same as the game's integer rounding.
        """
        self.previous_price = self.price
        self.change_rate = percent
        self.price = int(round(self.price * (1 + percent / 100.0)))
        return self.price

    def update_rank(self, new_rank: int) -> None:
        self.previous_rank = self.rank
        self.rank = new_rank

    @property
    def rank_change(self) -> RankChange:
        if self.previous_rank > self.rank:
            return RankChange.UP
        if self.previous_rank < self.rank:
            return RankChange.DOWN
        return RankChange.SAME


# -------------------------
# Holding (repository-owned fact)
# -------------------------
@dataclass(frozen=True)
class Holding:
    instrument_id: str
    quantity: int
    avg_price: float      # 加权平均买入价，部分卖出不变

    def add(self, qty: int, price: int) -> "Holding":
        total = self.quantity + qty
        avg = (self.avg_price * self.quantity + price * qty) / total
        return Holding(self.instrument_id, total, avg)

    def remove(self, qty: int) -> "Holding":
        return Holding(self.instrument_id, self.quantity - qty, self.avg_price)


@dataclass(frozen=True)
class HoldingSnapshot:
    """Copied holding row; never a live reference into the repository."""

    instrument_id: str
    name: str
    sector: Sector
    quantity: int
    price: int
    avg_price: float

    @property
    def value(self) -> int:
        return self.price * self.quantity

    @property
    def invested(self) -> float:
        return self.avg_price * self.quantity

    @property
    def profit(self) -> float:
        return self.value - self.invested

    @property
    def profit_percent(self) -> float:
        return self.profit / self.invested * 100 if self.invested > 0 else 0.0


# -------------------------
# Ledger facts
# -------------------------
@dataclass(frozen=True)
class TransactionRecord:
    seq: int              # 单调递增，作为排序用 timestamp
    turn: int
    side: Side
    instrument_id: str
    name: str
    sector: Sector
    quantity: int
    price: int
    fee: int
    created_at: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def amount(self) -> int:
        return self.price * self.quantity

    @property
    def net_amount(self) -> int:
        """Cash delta of this trade (negative for buys)."""
        if self.side is Side.BUY:
            return -(self.amount + self.fee)
        return self.amount - self.fee


@dataclass(frozen=True)
class EventRecord:
    turn: int
    event_key: str
    title: str
    affected_sector: Optional[Sector]   # None == whole market
    average_impact: float


@dataclass
class TurnSnapshot:
    """
    TurnSnapshot

    Mutable while its turn is open (transactions / events are appended),
    owned by the ledger once committed: readers only ever get copies.
    """

    turn: int
    cash: int = 0
    stock_value: int = 0
    total_assets: int = 0
    holdings: Tuple[HoldingSnapshot, ...] = ()
    transactions: list[TransactionRecord] = field(default_factory=list)
    events: list[EventRecord] = field(default_factory=list)

    @property
    def trade_count(self) -> int:
        return len(self.transactions)

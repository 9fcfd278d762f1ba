# invest_game/game/result.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from invest_game.game.core.types import InvestmentGrade, LifestyleGrade, Sector
from invest_game.game.metrics import EquityMetrics
from invest_game.game.style import InvestorStyle


@dataclass(frozen=True)
class InvestmentOutcome:
    """One instrument's P&L: still held (unrealised) or fully divested."""

    instrument_id: str
    name: str
    sector: Sector
    quantity: int
    avg_price: float
    price: int
    profit: float
    profit_percent: float
    realized: bool


@dataclass(frozen=True)
class SectorPerformance:
    sector: Sector
    trades: int
    bought: int
    sold: int
    held_value: int
    fees: int

    @property
    def profit(self) -> int:
        return self.sold + self.held_value - self.bought - self.fees

    @property
    def return_rate(self) -> float:
        return self.profit / self.bought * 100 if self.bought > 0 else 0.0


@dataclass(frozen=True)
class GameResult:
    """
    GameResult (FINAL / FROZEN)

    不可变事实结果，用于：
      - 结果展示 / CLI report
      - 回归测试
    """

    # -----------------------
    # Money
    # -----------------------
    initial_cash: int
    final_assets: int              # post-bonus
    pre_bonus_total: int
    bonus_amount: int
    total_profit: int
    profit_rate: float
    lifestyle_grade: LifestyleGrade

    # -----------------------
    # Diversification
    # -----------------------
    diversification_bonus: int     # percent actually applied (watermark)
    max_sectors: int

    # -----------------------
    # Trading stats
    # -----------------------
    total_turns: int
    total_trades: int
    profitable_trades: int
    win_rate: float
    total_fees: int

    best_investment: Optional[InvestmentOutcome]
    worst_investment: Optional[InvestmentOutcome]
    investment_grade: InvestmentGrade
    achievements: Tuple[str, ...]
    investor_style: InvestorStyle

    # -----------------------
    # Extras
    # -----------------------
    sector_performance: Tuple[SectorPerformance, ...] = ()
    favourite_sector: Optional[Sector] = None
    equity: EquityMetrics = field(default_factory=EquityMetrics)

    def summary(self) -> Dict[str, Any]:
        return {
            "initial_cash": self.initial_cash,
            "final_assets": self.final_assets,
            "bonus_amount": self.bonus_amount,
            "profit": self.total_profit,
            "profit_rate": round(self.profit_rate, 2),
            "lifestyle": self.lifestyle_grade.value,
            "bonus_rate": self.diversification_bonus,
            "max_sectors": self.max_sectors,
            "trades": self.total_trades,
            "win_rate": round(self.win_rate, 2),
            "fees": self.total_fees,
            "grade": self.investment_grade.value,
            "style": self.investor_style.key,
            "mentor": self.investor_style.mentor,
            "achievements": list(self.achievements),
        }

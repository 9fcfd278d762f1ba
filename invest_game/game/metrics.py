from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence

import numpy as np


@dataclass(frozen=True)
class EquityMetrics:
    """Derived from the per-turn total-asset curve (initial cash first)."""

    curve: List[int] = field(default_factory=list)
    max_drawdown: float = 0.0           # absolute, won
    max_drawdown_pct: float = 0.0       # percent of running peak
    best_turn_change: float = 0.0       # percent
    worst_turn_change: float = 0.0      # percent
    volatility: float = 0.0             # std of per-turn percent changes


def equity_metrics(initial_cash: int, totals: Sequence[int]) -> EquityMetrics:
    """
    Pure function: same inputs → same metrics.

    Empty ``totals`` → neutral metrics with curve == [initial_cash].
    """
    eq = np.array([initial_cash, *totals], dtype=float)

    if len(eq) < 2:
        return EquityMetrics(curve=[int(v) for v in eq])

    peak = np.maximum.accumulate(eq)
    dd = peak - eq
    with np.errstate(divide="ignore", invalid="ignore"):
        dd_pct = np.where(peak > 0, dd / peak * 100.0, 0.0)
        prev = eq[:-1]
        ret = np.where(prev > 0, np.diff(eq) / prev * 100.0, 0.0)

    return EquityMetrics(
        curve=[int(v) for v in eq],
        max_drawdown=float(np.max(dd)),
        max_drawdown_pct=float(np.max(dd_pct)),
        best_turn_change=float(np.max(ret)),
        worst_turn_change=float(np.min(ret)),
        volatility=float(np.std(ret)) if len(ret) > 1 else 0.0,
    )

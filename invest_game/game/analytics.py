from __future__ import annotations

from collections import Counter, defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

from invest_game.config.game_config import LifestyleThresholds
from invest_game.game.core.types import (
    EventRecord,
    HoldingSnapshot,
    InvestmentGrade,
    LifestyleGrade,
    Sector,
    Side,
    TransactionRecord,
)
from invest_game.game.diversification import apply_bonus, bonus_rate_for
from invest_game.game.history import HistoryLedger
from invest_game.game.metrics import equity_metrics
from invest_game.game.result import GameResult, InvestmentOutcome, SectorPerformance
from invest_game.game.style import classify
from invest_game.utils.logger import logs


# ------------------------------------------------------------------
# Grades
# ------------------------------------------------------------------
def lifestyle_grade(total: int, thresholds: LifestyleThresholds) -> LifestyleGrade:
    if total >= thresholds.upper:
        return LifestyleGrade.UPPER
    if total >= thresholds.middle_upper:
        return LifestyleGrade.MIDDLE_UPPER
    if total >= thresholds.middle:
        return LifestyleGrade.MIDDLE
    return LifestyleGrade.LOWER


def investment_grade(profit_rate: float) -> InvestmentGrade:
    if profit_rate >= 80:
        return InvestmentGrade.GENIUS
    if profit_rate >= 50:
        return InvestmentGrade.EXPERT
    if profit_rate >= 20:
        return InvestmentGrade.MASTER
    if profit_rate >= 0:
        return InvestmentGrade.BEGINNER
    return InvestmentGrade.NOVICE


def profit_and_rate(final_assets: int, initial_cash: int) -> Tuple[int, float]:
    profit = final_assets - initial_cash
    rate = profit / initial_cash * 100 if initial_cash else 0.0
    return profit, rate


# ------------------------------------------------------------------
# Win rate
# ------------------------------------------------------------------
def average_buy_price(
    transactions: Sequence[TransactionRecord], instrument_id: str, up_to_seq: int
) -> float:
    """Quantity-weighted average BUY price over buys with seq ≤ up_to_seq."""
    cost = 0
    qty = 0
    for t in transactions:
        if t.side is Side.BUY and t.instrument_id == instrument_id and t.seq <= up_to_seq:
            cost += t.amount
            qty += t.quantity
    return cost / qty if qty > 0 else 0.0


def win_stats(transactions: Sequence[TransactionRecord]) -> Tuple[int, float]:
    """
    (profitable_sells, win_rate)

    win_rate = profitable sells / ALL trades × 100, 0 without trades.
    """
    profitable = 0
    for t in transactions:
        if t.side is not Side.SELL:
            continue
        if t.price > average_buy_price(transactions, t.instrument_id, t.seq):
            profitable += 1

    total = len(transactions)
    rate = profitable / total * 100 if total > 0 else 0.0
    return profitable, rate


# ------------------------------------------------------------------
# Best / worst investment
# ------------------------------------------------------------------
def investment_outcomes(
    transactions: Sequence[TransactionRecord],
    holdings: Sequence[HoldingSnapshot],
) -> List[InvestmentOutcome]:
    """
    Union of:
      - held instruments → unrealised P&L vs avg price
      - fully divested instruments → sold − bought − fees, percent of bought
    """
    out: List[InvestmentOutcome] = [
        InvestmentOutcome(
            instrument_id=h.instrument_id,
            name=h.name,
            sector=h.sector,
            quantity=h.quantity,
            avg_price=h.avg_price,
            price=h.price,
            profit=h.profit,
            profit_percent=h.profit_percent,
            realized=False,
        )
        for h in holdings
        if h.quantity > 0
    ]
    held = {h.instrument_id for h in holdings if h.quantity > 0}

    grouped: Dict[str, List[TransactionRecord]] = defaultdict(list)
    for t in sorted(transactions, key=lambda r: r.seq):
        grouped[t.instrument_id].append(t)

    for iid, rows in grouped.items():
        if iid in held:
            continue
        buys = [r for r in rows if r.side is Side.BUY]
        bought = sum(r.amount for r in buys)
        bought_qty = sum(r.quantity for r in buys)
        sold = sum(r.amount for r in rows if r.side is Side.SELL)
        fees = sum(r.fee for r in rows)

        profit = sold - bought - fees
        out.append(
            InvestmentOutcome(
                instrument_id=iid,
                name=rows[-1].name,
                sector=rows[-1].sector,
                quantity=0,
                avg_price=bought / bought_qty if bought_qty > 0 else 0.0,
                price=rows[-1].price,
                profit=float(profit),
                profit_percent=profit / bought * 100 if bought > 0 else 0.0,
                realized=True,
            )
        )
    return out


def best_and_worst(
    outcomes: Sequence[InvestmentOutcome],
) -> Tuple[Optional[InvestmentOutcome], Optional[InvestmentOutcome]]:
    if not outcomes:
        return None, None
    best = max(outcomes, key=lambda o: o.profit_percent)
    worst = min(outcomes, key=lambda o: o.profit_percent)
    return best, worst


# ------------------------------------------------------------------
# Achievements
# ------------------------------------------------------------------
def achievements(
    profit_rate: float,
    win_rate: float,
    transactions: Sequence[TransactionRecord],
    events: Sequence[EventRecord],
) -> Tuple[str, ...]:
    out: List[str] = []
    total = len(transactions)

    if profit_rate >= 100:
        out.append("investment_king")
    if profit_rate >= 50:
        out.append("perfect_timing")

    if win_rate >= 80:
        out.append("quick_judgement")
    if win_rate >= 60:
        out.append("lucky_investor")

    sectors = {t.sector for t in transactions}
    if len(sectors) >= 4:
        out.append("diversification_master")
    if len(sectors) >= 3:
        out.append("portfolio_manager")

    if total >= 50:
        out.append("active_trader")
    if total <= 20:
        out.append("patient_investor")

    event_turns = {e.turn for e in events}
    if sum(1 for t in transactions if t.turn in event_turns) >= 10:
        out.append("news_master")

    return tuple(out)


# ------------------------------------------------------------------
# Sector performance
# ------------------------------------------------------------------
def sector_performance(
    transactions: Sequence[TransactionRecord],
    holdings: Sequence[HoldingSnapshot],
) -> Tuple[SectorPerformance, ...]:
    trades: Counter = Counter()
    bought: Dict[Sector, int] = defaultdict(int)
    sold: Dict[Sector, int] = defaultdict(int)
    fees: Dict[Sector, int] = defaultdict(int)
    held: Dict[Sector, int] = defaultdict(int)

    for t in transactions:
        trades[t.sector] += 1
        fees[t.sector] += t.fee
        if t.side is Side.BUY:
            bought[t.sector] += t.amount
        else:
            sold[t.sector] += t.amount

    for h in holdings:
        held[h.sector] += h.value

    rows = [
        SectorPerformance(
            sector=s,
            trades=trades[s],
            bought=bought[s],
            sold=sold[s],
            held_value=held[s],
            fees=fees[s],
        )
        for s in Sector
        if trades[s] or held[s]
    ]
    rows.sort(key=lambda r: r.return_rate, reverse=True)
    return tuple(rows)


def favourite_sector(transactions: Sequence[TransactionRecord]) -> Optional[Sector]:
    if not transactions:
        return None
    return Counter(t.sector for t in transactions).most_common(1)[0][0]


# ------------------------------------------------------------------
# GameResult
# ------------------------------------------------------------------
class ResultAnalytics:
    """
    Ledger + final machine values → GameResult (pure derivation)

    An empty ledger yields zeroed / neutral values.
    """

    def __init__(self, thresholds: Optional[LifestyleThresholds] = None) -> None:
        self.thresholds = thresholds if thresholds is not None else LifestyleThresholds()

    @logs.catch(msg="result analytics failed")
    def compute(
        self,
        *,
        initial_cash: int,
        pre_bonus_total: int,
        watermark: int,
        ledger: HistoryLedger,
    ) -> GameResult:
        transactions = ledger.transactions
        events = ledger.events
        history = ledger.history
        last = ledger.last_snapshot
        holdings = last.holdings if last is not None else ()

        bonus_rate = bonus_rate_for(watermark)
        bonus_amount, final_assets = apply_bonus(pre_bonus_total, bonus_rate)
        profit, profit_rate = profit_and_rate(final_assets, initial_cash)

        profitable, win_rate = win_stats(transactions)
        best, worst = best_and_worst(investment_outcomes(transactions, holdings))

        style = classify(
            total_trades=len(transactions),
            total_turns=len(history),
            max_sectors=watermark,
            profit_rate=profit_rate,
            diversification_bonus=bonus_rate,
        )

        result = GameResult(
            initial_cash=initial_cash,
            final_assets=final_assets,
            pre_bonus_total=pre_bonus_total,
            bonus_amount=bonus_amount,
            total_profit=profit,
            profit_rate=profit_rate,
            lifestyle_grade=lifestyle_grade(final_assets, self.thresholds),
            diversification_bonus=bonus_rate,
            max_sectors=watermark,
            total_turns=len(history),
            total_trades=len(transactions),
            profitable_trades=profitable,
            win_rate=win_rate,
            total_fees=sum(t.fee for t in transactions),
            best_investment=best,
            worst_investment=worst,
            investment_grade=investment_grade(profit_rate),
            achievements=achievements(profit_rate, win_rate, transactions, events),
            investor_style=style,
            sector_performance=sector_performance(transactions, holdings),
            favourite_sector=favourite_sector(transactions),
            equity=equity_metrics(initial_cash, [s.total_assets for s in history]),
        )

        logs.info(
            f"[Analytics] final={final_assets} bonus={bonus_rate}% profit_rate={profit_rate:.2f} "
            f"trades={len(transactions)} win_rate={win_rate:.1f} style={style.key}"
        )
        return result

from __future__ import annotations

from dataclasses import dataclass
from itertools import count
from typing import Callable, Dict, List, Optional

from invest_game.game.core.interfaces import InstrumentRepository
from invest_game.game.core.notifier import Notifier, Signal
from invest_game.game.core.types import Side, TransactionRecord
from invest_game.utils.errors import (
    GameError,
    InsufficientFunds,
    InsufficientHoldings,
    InvalidInstrument,
    TradeRejected,
)
from invest_game.utils.logger import logs


TradeObserver = Callable[[TransactionRecord], None]


def fee_for(amount: int, fee_rate: float) -> int:
    """fee == round(amount × fee_rate)"""
    return int(round(amount * fee_rate))


@dataclass(frozen=True)
class Quote:
    instrument_id: str
    side: Side
    quantity: int
    price: int
    amount: int
    fee: int

    @property
    def total(self) -> int:
        """Cash delta magnitude: amount + fee for BUY, amount − fee for SELL."""
        if self.side is Side.BUY:
            return self.amount + self.fee
        return self.amount - self.fee


@dataclass(frozen=True)
class TradeResult:
    """
    TradeResult (value, never raised)

    ok=True  → record is set
    ok=False → error is set, cash/holdings already restored
    """

    ok: bool
    record: Optional[TransactionRecord] = None
    error: Optional[GameError] = None
    cash_after: int = 0

    @classmethod
    def success(cls, record: TransactionRecord, cash_after: int) -> "TradeResult":
        return cls(ok=True, record=record, cash_after=cash_after)

    @classmethod
    def failure(cls, error: GameError, cash_after: int) -> "TradeResult":
        return cls(ok=False, error=error, cash_after=cash_after)

    def unwrap(self) -> TransactionRecord:
        if self.error is not None:
            raise self.error
        return self.record


class TradingEngine:
    """
    Trading Engine

    buy : check funds → debit cash → increase holding
          (holding failure → restore cash exactly, TradeRejected)
    sell: decrease holding → credit amount − fee
          (holding failure → TradeRejected, cash untouched)

    Observers (ledger, tracker) are called synchronously on success,
    then ``trade_executed`` is emitted on the notifier.
    """

    def __init__(
        self,
        repo: Optional[InstrumentRepository],
        initial_cash: int,
        fee_rate: float,
        notifier: Optional[Notifier] = None,
    ) -> None:
        self.repo = repo
        self.fee_rate = fee_rate
        self.notifier = notifier
        self.current_turn: int = 0

        self._cash: int = int(initial_cash)
        self._seq = count(1)
        self._observers: List[TradeObserver] = []

    # --------------------------------------------------
    # Observers
    # --------------------------------------------------
    def add_observer(self, fn: TradeObserver) -> None:
        self._observers.append(fn)

    # --------------------------------------------------
    # Read side
    # --------------------------------------------------
    @property
    def cash(self) -> int:
        return self._cash

    def stock_value(self) -> int:
        if self.repo is None:
            return 0
        total = 0
        for iid, qty in self.repo.get_holdings().items():
            inst = self.repo.get(iid)
            if inst is not None:
                total += inst.price * qty
        return total

    def total_assets(self) -> int:
        return self._cash + self.stock_value()

    def quote_buy(self, instrument_id: str, qty: int) -> Optional[Quote]:
        inst = self.repo.get(instrument_id) if self.repo is not None else None
        if inst is None or qty <= 0:
            return None
        amount = inst.price * qty
        return Quote(instrument_id, Side.BUY, qty, inst.price, amount, fee_for(amount, self.fee_rate))

    def quote_sell(self, instrument_id: str, qty: int) -> Optional[Quote]:
        inst = self.repo.get(instrument_id) if self.repo is not None else None
        if inst is None or qty <= 0:
            return None
        amount = inst.price * qty
        return Quote(instrument_id, Side.SELL, qty, inst.price, amount, fee_for(amount, self.fee_rate))

    def max_affordable(self, instrument_id: str) -> int:
        """Largest qty with price×qty + fee ≤ cash."""
        inst = self.repo.get(instrument_id) if self.repo is not None else None
        if inst is None or inst.price <= 0:
            return 0
        qty = int(self._cash // (inst.price * (1 + self.fee_rate)))
        # rounding of the fee can push the estimate one unit either way
        while qty > 0 and self.quote_buy(instrument_id, qty).total > self._cash:
            qty -= 1
        while self.quote_buy(instrument_id, qty + 1).total <= self._cash:
            qty += 1
        return qty

    # --------------------------------------------------
    # Write side
    # --------------------------------------------------
    def buy(self, instrument_id: str, qty: int) -> TradeResult:
        if self.repo is None:
            logs.warning("[Trading] no repository bound, buy rejected")
            return TradeResult.failure(TradeRejected("no instrument repository"), self._cash)

        inst = self.repo.get(instrument_id)
        if inst is None:
            return TradeResult.failure(InvalidInstrument(f"unknown instrument {instrument_id}"), self._cash)
        if qty <= 0:
            return TradeResult.failure(TradeRejected(f"invalid quantity {qty}"), self._cash)

        quote = self.quote_buy(instrument_id, qty)
        if self._cash < quote.total:
            logs.info(
                f"[Trading] BUY refused id={instrument_id} qty={qty} "
                f"need={quote.total} cash={self._cash}"
            )
            return TradeResult.failure(
                InsufficientFunds(f"need {quote.total}, have {self._cash}"), self._cash
            )

        before = self._cash
        self._cash -= quote.total

        try:
            ok = self.repo.increase_holding(instrument_id, qty, quote.price)
        except Exception as e:
            logs.error(f"[Trading] increase_holding raised id={instrument_id} err={e!r}")
            ok = False

        if not ok:
            self._cash = before
            logs.warning(f"[Trading] BUY rolled back id={instrument_id} qty={qty} cash={self._cash}")
            return TradeResult.failure(
                TradeRejected(f"holding update failed for {instrument_id}"), self._cash
            )

        record = self._record(Side.BUY, inst.id, inst.name, inst.sector, qty, quote.price, quote.fee)
        logs.info(
            f"[Trading] BUY id={instrument_id} qty={qty} price={quote.price} "
            f"fee={quote.fee} cash={self._cash}"
        )
        self._publish(record)
        return TradeResult.success(record, self._cash)

    def sell(self, instrument_id: str, qty: int) -> TradeResult:
        if self.repo is None:
            logs.warning("[Trading] no repository bound, sell rejected")
            return TradeResult.failure(TradeRejected("no instrument repository"), self._cash)

        inst = self.repo.get(instrument_id)
        if inst is None:
            return TradeResult.failure(InvalidInstrument(f"unknown instrument {instrument_id}"), self._cash)
        if qty <= 0:
            return TradeResult.failure(TradeRejected(f"invalid quantity {qty}"), self._cash)

        holding = self.repo.get_holding(instrument_id)
        held = holding.quantity if holding is not None else 0
        if held < qty:
            return TradeResult.failure(
                InsufficientHoldings(f"hold {held}, sell {qty}"), self._cash
            )

        try:
            ok = self.repo.decrease_holding(instrument_id, qty)
        except Exception as e:
            logs.error(f"[Trading] decrease_holding raised id={instrument_id} err={e!r}")
            ok = False

        if not ok:
            return TradeResult.failure(
                TradeRejected(f"holding update failed for {instrument_id}"), self._cash
            )

        quote = self.quote_sell(instrument_id, qty)
        self._cash += quote.total

        record = self._record(Side.SELL, inst.id, inst.name, inst.sector, qty, quote.price, quote.fee)
        logs.info(
            f"[Trading] SELL id={instrument_id} qty={qty} price={quote.price} "
            f"fee={quote.fee} cash={self._cash}"
        )
        self._publish(record)
        return TradeResult.success(record, self._cash)

    def liquidate_all(self) -> List[TradeResult]:
        """
        Forced end-of-game liquidation.

        Only nonzero holdings are sold, so calling twice is a no-op.
        """
        if self.repo is None:
            logs.warning("[Trading] no repository bound, skip liquidation")
            return []

        holdings: Dict[str, int] = self.repo.get_holdings()
        results = [self.sell(iid, qty) for iid, qty in holdings.items() if qty > 0]

        failed = [r for r in results if not r.ok]
        if failed:
            logs.error(f"[Trading] liquidation failures={len(failed)}")
        logs.info(f"[Trading] liquidated positions={len(results)} cash={self._cash}")
        return results

    # --------------------------------------------------
    # Internals
    # --------------------------------------------------
    def _record(self, side, iid, name, sector, qty, price, fee) -> TransactionRecord:
        return TransactionRecord(
            seq=next(self._seq),
            turn=self.current_turn,
            side=side,
            instrument_id=iid,
            name=name,
            sector=sector,
            quantity=qty,
            price=price,
            fee=fee,
        )

    def _publish(self, record: TransactionRecord) -> None:
        # cash / holdings are already committed: an observer failure must not undo the trade
        for fn in self._observers:
            try:
                fn(record)
            except Exception as e:
                logs.error(f"[Trading] observer error seq={record.seq} err={e!r}")
        if self.notifier is not None:
            self.notifier.emit(Signal.TRADE_EXECUTED, record)

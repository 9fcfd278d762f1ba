from __future__ import annotations

from dataclasses import asdict, replace
from typing import Callable, List, Literal, Optional

import pandas as pd

from invest_game.game.core.interfaces import InstrumentRepository
from invest_game.game.core.types import (
    EventRecord,
    HoldingSnapshot,
    TransactionRecord,
    TurnSnapshot,
)
from invest_game.utils.logger import logs


class HistoryLedger:
    """
    HistoryLedger (append-only facts)

    Snapshot lifecycle (one-snapshot lag):
      begin_turn(n)  → commits snapshot n-1 into history, opens snapshot n
      end_turn()     → refreshes snapshot n's end-of-turn values
      close()        → refreshes and commits the last snapshot

    Invariant:
      len(history) == number of completed turns
    """

    def __init__(
        self,
        repo: Optional[InstrumentRepository],
        cash_source: Callable[[], int],
    ) -> None:
        self.repo = repo
        self._cash_source = cash_source

        self._history: List[TurnSnapshot] = []
        self._transactions: List[TransactionRecord] = []
        self._events: List[EventRecord] = []
        self._current: Optional[TurnSnapshot] = None
        self._closed = False

    # --------------------------------------------------
    # Snapshot lifecycle
    # --------------------------------------------------
    def begin_turn(self, turn: int) -> TurnSnapshot:
        if self._current is not None:
            self._commit()

        self._current = TurnSnapshot(turn=turn)
        self._fill(self._current)
        logs.debug(f"[Ledger] begin turn={turn} history={len(self._history)}")
        return self._current

    def end_turn(self) -> Optional[TurnSnapshot]:
        if self._current is None:
            return None
        self._fill(self._current)
        logs.info(
            f"[Ledger] end turn={self._current.turn} cash={self._current.cash} "
            f"stock={self._current.stock_value} total={self._current.total_assets} "
            f"trades={self._current.trade_count}"
        )
        return self._current

    def close(self) -> None:
        if self._closed:
            return
        if self._current is not None:
            self._fill(self._current)
            self._commit()
        self._closed = True
        logs.info(
            f"[Ledger] closed turns={len(self._history)} "
            f"trades={len(self._transactions)} events={len(self._events)}"
        )

    def _commit(self) -> None:
        self._history.append(self._current)
        self._current = None

    def _fill(self, snap: TurnSnapshot) -> None:
        cash = int(self._cash_source())
        rows: List[HoldingSnapshot] = []

        if self.repo is not None:
            for iid, qty in self.repo.get_holdings().items():
                inst = self.repo.get(iid)
                holding = self.repo.get_holding(iid)
                if inst is None or qty <= 0:
                    continue
                rows.append(
                    HoldingSnapshot(
                        instrument_id=iid,
                        name=inst.name,
                        sector=inst.sector,
                        quantity=qty,
                        price=inst.price,
                        avg_price=holding.avg_price if holding is not None else float(inst.price),
                    )
                )

        stock_value = sum(r.value for r in rows)
        snap.cash = cash
        snap.stock_value = stock_value
        snap.total_assets = cash + stock_value
        snap.holdings = tuple(rows)

    # --------------------------------------------------
    # Recording
    # --------------------------------------------------
    def record_transaction(self, record: TransactionRecord) -> None:
        self._transactions.append(record)
        if self._current is not None:
            self._current.transactions.append(record)

    def record_event(self, record: EventRecord) -> None:
        self._events.append(record)
        if self._current is not None:
            self._current.events.append(record)

    # --------------------------------------------------
    # Read side
    # --------------------------------------------------
    @staticmethod
    def _copy(snap: TurnSnapshot) -> TurnSnapshot:
        return replace(
            snap,
            transactions=list(snap.transactions),
            events=list(snap.events),
        )

    @property
    def history(self) -> List[TurnSnapshot]:
        """Copies of the committed snapshots; history itself is append-only."""
        return [self._copy(s) for s in self._history]

    @property
    def transactions(self) -> List[TransactionRecord]:
        return list(self._transactions)

    @property
    def events(self) -> List[EventRecord]:
        return list(self._events)

    @property
    def current_snapshot(self) -> Optional[TurnSnapshot]:
        return self._current

    @property
    def last_snapshot(self) -> Optional[TurnSnapshot]:
        if self._current is not None:
            return self._current
        return self._copy(self._history[-1]) if self._history else None

    def live_snapshot(self) -> Optional[TurnSnapshot]:
        """Copy of the open snapshot with values as of now; ledger untouched."""
        if self._current is None:
            return None
        snap = self._copy(self._current)
        self._fill(snap)
        return snap

    @property
    def is_closed(self) -> bool:
        return self._closed

    def reset(self) -> None:
        self._history.clear()
        self._transactions.clear()
        self._events.clear()
        self._current = None
        self._closed = False

    # --------------------------------------------------
    # Frames (report helpers)
    # --------------------------------------------------
    def to_frame(
        self, kind: Literal["transactions", "snapshots", "events"] = "transactions"
    ) -> pd.DataFrame:
        if kind == "transactions":
            rows = []
            for t in self._transactions:
                row = asdict(t)
                row["side"] = t.side.value
                row["sector"] = t.sector.value
                row["amount"] = t.amount
                row["net_amount"] = t.net_amount
                rows.append(row)
            cols = [
                "seq", "turn", "side", "instrument_id", "name", "sector",
                "quantity", "price", "amount", "fee", "net_amount", "created_at",
            ]
            return pd.DataFrame(rows, columns=cols)

        if kind == "snapshots":
            rows = [
                dict(
                    turn=s.turn,
                    cash=s.cash,
                    stock_value=s.stock_value,
                    total_assets=s.total_assets,
                    positions=len(s.holdings),
                    trades=s.trade_count,
                    events=len(s.events),
                )
                for s in self._history
            ]
            cols = ["turn", "cash", "stock_value", "total_assets", "positions", "trades", "events"]
            return pd.DataFrame(rows, columns=cols)

        if kind == "events":
            rows = [
                dict(
                    turn=e.turn,
                    event_key=e.event_key,
                    title=e.title,
                    affected_sector=e.affected_sector.value if e.affected_sector else None,
                    average_impact=e.average_impact,
                )
                for e in self._events
            ]
            cols = ["turn", "event_key", "title", "affected_sector", "average_impact"]
            return pd.DataFrame(rows, columns=cols)

        raise ValueError(f"unknown frame kind: {kind}")

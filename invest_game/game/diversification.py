from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Set, Tuple

from invest_game.game.core.interfaces import InstrumentRepository
from invest_game.game.core.types import Sector, TransactionRecord
from invest_game.utils.logger import logs


def bonus_rate_for(sectors: int) -> int:
    """{0–1: −10, 2: +5, 3: +10, 4: +15, 5+: +20} (percent)"""
    if sectors <= 1:
        return -10
    if sectors == 2:
        return 5
    if sectors == 3:
        return 10
    if sectors == 4:
        return 15
    return 20


def apply_bonus(total: int, bonus_rate: float) -> Tuple[int, int]:
    """Return (bonus_amount, total + bonus_amount)."""
    bonus_amount = int(round(total * bonus_rate / 100.0))
    return bonus_amount, total + bonus_amount


@dataclass(frozen=True)
class SectorBonusEntry:
    turn: int
    sectors: int
    watermark: int
    bonus_rate: int


class DiversificationTracker:
    """
    Watermark of the max number of distinct sectors held at once.

    - trades update the live count only
    - end_turn() is the only place the watermark moves
    - the watermark never decreases
    """

    def __init__(self, repo: Optional[InstrumentRepository]) -> None:
        self.repo = repo
        self._watermark: int = 0
        self._current: int = 0
        self._history: List[SectorBonusEntry] = []

    # --------------------------------------------------
    # Read side
    # --------------------------------------------------
    @property
    def watermark(self) -> int:
        return self._watermark

    @property
    def current_sector_count(self) -> int:
        return self._current

    @property
    def bonus_rate(self) -> int:
        return bonus_rate_for(self._watermark)

    @property
    def history(self) -> List[SectorBonusEntry]:
        return list(self._history)

    def held_sectors(self) -> Set[Sector]:
        if self.repo is None:
            return set()
        out: Set[Sector] = set()
        for iid, qty in self.repo.get_holdings().items():
            inst = self.repo.get(iid)
            if qty > 0 and inst is not None:
                out.add(inst.sector)
        return out

    # --------------------------------------------------
    # Write side
    # --------------------------------------------------
    def on_trade(self, record: TransactionRecord) -> None:
        self._current = len(self.held_sectors())

    def end_turn(self, turn: int) -> int:
        self._current = len(self.held_sectors())
        if self._current > self._watermark:
            logs.info(f"[Diversification] watermark {self._watermark}->{self._current} turn={turn}")
            self._watermark = self._current

        self._history.append(
            SectorBonusEntry(
                turn=turn,
                sectors=self._current,
                watermark=self._watermark,
                bonus_rate=bonus_rate_for(self._current),
            )
        )
        return self._current

    def apply(self, total: int) -> Tuple[int, int]:
        """Bonus of the watermark (never of the current count) on ``total``."""
        return apply_bonus(total, self.bonus_rate)

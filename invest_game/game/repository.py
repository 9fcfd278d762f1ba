from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from invest_game.game.core.interfaces import InstrumentRepository
from invest_game.game.core.types import Holding, Instrument, Sector
from invest_game.utils.logger import logs


# (id, sector, start price)
DEFAULT_MARKET: Tuple[Tuple[str, Sector, int], ...] = (
    ("SmartTech", Sector.TECH, 45000),
    ("CloudKing", Sector.TECH, 36000),
    ("SearchMaster", Sector.TECH, 23600),
    ("SocialVerse", Sector.TECH, 26300),
    ("StreamPlus", Sector.TECH, 31200),
    ("NeoChips", Sector.SEM, 28500),
    ("ChipFactory", Sector.SEM, 19850),
    ("RyzenTech", Sector.SEM, 15200),
    ("ThunderMotors", Sector.EV, 18200),
    ("GreenCar", Sector.EV, 14750),
    ("CleanEnergy", Sector.EV, 12600),
    ("DigitalGold", Sector.CRYPTO, 52800),
    ("SmartCoin", Sector.CRYPTO, 8950),
    ("KoreaElec", Sector.CORP, 67500),
    ("MemoryKing", Sector.CORP, 11400),
)


class InMemoryInstrumentRepository(InstrumentRepository):
    """
    In-memory market + holdings.

    - prices are ints, mutated in place on the Instrument objects
    - ranks are recalculated by price (desc) after every price move
    """

    def __init__(self, instruments: Optional[Iterable[Instrument]] = None) -> None:
        if instruments is None:
            instruments = [
                Instrument(id=i, name=i, sector=s, price=p)
                for i, s, p in DEFAULT_MARKET
            ]
        self._instruments: Dict[str, Instrument] = {i.id: i for i in instruments}
        self._holdings: Dict[str, Holding] = {}
        self.recalculate_ranks()

    # --------------------------------------------------
    # Market
    # --------------------------------------------------
    def get(self, instrument_id: str) -> Optional[Instrument]:
        return self._instruments.get(instrument_id)

    def list_by_sector(self, sector: Sector) -> List[Instrument]:
        return [i for i in self._instruments.values() if i.sector == sector]

    def list_all(self) -> List[Instrument]:
        return list(self._instruments.values())

    def adjust_price(self, instrument_id: str, percent: float) -> Optional[int]:
        inst = self._instruments.get(instrument_id)
        if inst is None:
            logs.warning(f"[Repo] adjust_price unknown id={instrument_id}")
            return None
        new_price = inst.apply_rate(percent)
        self.recalculate_ranks()
        return new_price

    def recalculate_ranks(self) -> None:
        ordered = sorted(self._instruments.values(), key=lambda i: i.price, reverse=True)
        for n, inst in enumerate(ordered, start=1):
            inst.update_rank(n)

    # --------------------------------------------------
    # Holdings
    # --------------------------------------------------
    def get_holdings(self) -> Dict[str, int]:
        return {k: h.quantity for k, h in self._holdings.items() if h.quantity > 0}

    def get_holding(self, instrument_id: str) -> Optional[Holding]:
        return self._holdings.get(instrument_id)

    def increase_holding(self, instrument_id: str, qty: int, price: int) -> bool:
        if instrument_id not in self._instruments or qty <= 0:
            return False
        cur = self._holdings.get(instrument_id)
        if cur is None:
            self._holdings[instrument_id] = Holding(instrument_id, qty, float(price))
        else:
            self._holdings[instrument_id] = cur.add(qty, price)
        return True

    def decrease_holding(self, instrument_id: str, qty: int) -> bool:
        cur = self._holdings.get(instrument_id)
        if cur is None or qty <= 0 or cur.quantity < qty:
            return False
        nxt = cur.remove(qty)
        if nxt.quantity == 0:
            del self._holdings[instrument_id]
        else:
            self._holdings[instrument_id] = nxt
        return True

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from invest_game.game.core.types import Holding, Instrument, Sector
"""
{#!filepath: invest_game/game/core/interfaces.py}

InstrumentRepository (FINAL / FROZEN)

Defines WHAT the game may read and write about the market and the player's
holdings.

Contract:
- get(id): instrument or None when unknown
- list_by_sector / list_all: live instruments (prices mutate in place)
- adjust_price(id, percent): price := round(price × (1 + percent/100))
- get_holdings(): copy of {id: qty}, nonzero quantities only
- increase_holding / decrease_holding: True on success, False on refusal

Invariants:
- quantities are never negative
- a holding that reaches zero is removed
- partial sells keep the weighted-average price

Engines MUST interact with prices and holdings exclusively via this interface.
"""


class InstrumentRepository(ABC):
    """
    World-facing market + holdings interface.

    Cash is NOT here: the trading engine owns cash.
    """

    @abstractmethod
    def get(self, instrument_id: str) -> Optional[Instrument]:
        """Instrument by id, None when unknown"""

    @abstractmethod
    def list_by_sector(self, sector: Sector) -> List[Instrument]:
        ...

    @abstractmethod
    def list_all(self) -> List[Instrument]:
        ...

    @abstractmethod
    def adjust_price(self, instrument_id: str, percent: float) -> Optional[int]:
        """Apply a percent move, return the new price (None when unknown)"""

    @abstractmethod
    def get_holdings(self) -> Dict[str, int]:
        ...

    @abstractmethod
    def get_holding(self, instrument_id: str) -> Optional[Holding]:
        ...

    @abstractmethod
    def increase_holding(self, instrument_id: str, qty: int, price: int) -> bool:
        ...

    @abstractmethod
    def decrease_holding(self, instrument_id: str, qty: int) -> bool:
        ...

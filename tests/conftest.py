# tests/conftest.py
from __future__ import annotations

from typing import Iterable, List, Optional

import pytest
from loguru import logger

from invest_game.config.game_config import GameConfig
from invest_game.game.core.notifier import Notifier
from invest_game.game.core.types import Instrument, Sector
from invest_game.game.repository import InMemoryInstrumentRepository
from invest_game.game.session import GameSession
from invest_game.game.state_machine import TurnStateMachine
from invest_game.game.trading import TradingEngine


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


# ============================================================
# Deterministic randomness
# ============================================================
class MidpointRng:
    """uniform(a, b) → (a + b) / 2; drift uniform(-v, v) is therefore 0."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []

    def uniform(self, a: float, b: float) -> float:
        self.calls.append((a, b))
        return (a + b) / 2


class ScriptedRng:
    """Returns the scripted values in order, then repeats the last one."""

    def __init__(self, values: Iterable[float]) -> None:
        self.values = list(values)
        self.calls: List[tuple] = []

    def uniform(self, a: float, b: float) -> float:
        self.calls.append((a, b))
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


@pytest.fixture
def mid_rng() -> MidpointRng:
    return MidpointRng()


@pytest.fixture
def scripted_rng():
    def _make(values: Iterable[float]) -> ScriptedRng:
        return ScriptedRng(values)

    return _make


# ============================================================
# Repositories
# ============================================================
class RefusingRepository(InMemoryInstrumentRepository):
    """Holding mutations fail (False) or raise, on demand."""

    def __init__(self, instruments=None, *, refuse_increase=False, raise_increase=False,
                 refuse_decrease=False, raise_decrease=False):
        super().__init__(instruments)
        self.refuse_increase = refuse_increase
        self.raise_increase = raise_increase
        self.refuse_decrease = refuse_decrease
        self.raise_decrease = raise_decrease

    def increase_holding(self, instrument_id, qty, price):
        if self.raise_increase:
            raise IOError("holding store unavailable")
        if self.refuse_increase:
            return False
        return super().increase_holding(instrument_id, qty, price)

    def decrease_holding(self, instrument_id, qty):
        if self.raise_decrease:
            raise IOError("holding store unavailable")
        if self.refuse_decrease:
            return False
        return super().decrease_holding(instrument_id, qty)


def make_instruments() -> List[Instrument]:
    """One 10,000 instrument per sector plus a second TECH one."""
    return [
        Instrument("T1", "Tech One", Sector.TECH, 10_000),
        Instrument("T2", "Tech Two", Sector.TECH, 20_000),
        Instrument("S1", "Semi One", Sector.SEM, 10_000),
        Instrument("E1", "EV One", Sector.EV, 10_000),
        Instrument("C1", "Coin One", Sector.CRYPTO, 10_000),
        Instrument("K1", "Corp One", Sector.CORP, 10_000),
    ]


@pytest.fixture
def small_repo() -> InMemoryInstrumentRepository:
    return InMemoryInstrumentRepository(make_instruments())


@pytest.fixture
def market_repo() -> InMemoryInstrumentRepository:
    return InMemoryInstrumentRepository()


@pytest.fixture
def refusing_repo():
    def _make(**flags) -> RefusingRepository:
        return RefusingRepository(make_instruments(), **flags)

    return _make


# ============================================================
# Engines
# ============================================================
@pytest.fixture
def game_cfg() -> GameConfig:
    return GameConfig(seed=7)


@pytest.fixture
def notifier() -> Notifier:
    return Notifier()


@pytest.fixture
def trading(small_repo, notifier) -> TradingEngine:
    return TradingEngine(small_repo, initial_cash=1_000_000, fee_rate=0.0025, notifier=notifier)


@pytest.fixture
def make_machine(game_cfg, mid_rng):
    def _make(repo=..., cfg: Optional[GameConfig] = None, catalog=None, rng=None) -> TurnStateMachine:
        if repo is ...:
            repo = InMemoryInstrumentRepository(make_instruments())
        return TurnStateMachine(
            cfg or game_cfg,
            repo,
            catalog=catalog,
            rng=rng or mid_rng,
        )

    return _make


@pytest.fixture
def session(game_cfg) -> GameSession:
    return GameSession(
        game_cfg,
        repo_factory=lambda: InMemoryInstrumentRepository(make_instruments()),
        rng_factory=MidpointRng,
    )

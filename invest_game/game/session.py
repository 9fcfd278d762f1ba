from __future__ import annotations

import random
from typing import Callable, Optional, Union

from invest_game.config.game_config import GameConfig
from invest_game.game.catalog import EventCatalog
from invest_game.game.clock import SimulatedClock
from invest_game.game.core.interfaces import InstrumentRepository
from invest_game.game.core.notifier import Notifier, Signal, Subscription
from invest_game.game.core.types import GameState, TurnPhase, TurnSnapshot
from invest_game.game.repository import InMemoryInstrumentRepository
from invest_game.game.result import GameResult
from invest_game.game.state_machine import TurnStateMachine
from invest_game.game.trading import TradeResult
from invest_game.utils.logger import logs


class GameSession:
    """
    Test / CLI harness around one TurnStateMachine + SimulatedClock.

    reset() rebuilds the repository and the machine from scratch; notifier
    subscriptions survive a reset.
    """

    def __init__(
        self,
        cfg: Optional[GameConfig] = None,
        repo_factory: Callable[[], Optional[InstrumentRepository]] = InMemoryInstrumentRepository,
        catalog: Optional[EventCatalog] = None,
        rng_factory: Optional[Callable[[], random.Random]] = None,
    ) -> None:
        self.cfg = cfg if cfg is not None else GameConfig()
        self._repo_factory = repo_factory
        self._catalog = catalog
        self._rng_factory = rng_factory or (lambda: random.Random(self.cfg.seed))
        self.notifier = Notifier()
        self._build()

    def _build(self) -> None:
        self.repo = self._repo_factory()
        self.machine = TurnStateMachine(
            self.cfg,
            self.repo,
            catalog=self._catalog,
            notifier=self.notifier,
            rng=self._rng_factory(),
        )
        self.clock = SimulatedClock(self.machine, dt=self.cfg.tick_slice)

    # --------------------------------------------------
    # Queries
    # --------------------------------------------------
    @property
    def state(self) -> GameState:
        return self.machine.state

    @property
    def turn(self) -> int:
        return self.machine.turn

    @property
    def paused(self) -> bool:
        return self.clock.paused

    @property
    def result(self) -> Optional[GameResult]:
        return self.machine.result

    def snapshot(self) -> Union[TurnSnapshot, GameResult, None]:
        if self.machine.result is not None:
            return self.machine.result
        return self.machine.live_snapshot()

    def subscribe(self, signal: Signal, callback) -> Subscription:
        return self.notifier.subscribe(signal, callback)

    # --------------------------------------------------
    # Commands
    # --------------------------------------------------
    def start(self) -> bool:
        if self.machine.state is GameState.WAITING_TO_START:
            self.machine.prepare()
        if not self.machine.start():
            return False
        # run TURN_START of turn 1
        self.clock.step(0.0)
        return True

    def advance_turn(self) -> bool:
        """
        Finish the current turn and stop once the next one has started
        (or the game has finished).
        """
        if not self.machine.is_playing:
            logs.warning(f"[Session] advance_turn refused state={self.state.value}")
            return False
        if self.clock.paused:
            logs.warning("[Session] advance_turn refused while paused")
            return False

        start_turn = self.machine.turn

        # a skip issued during EVENT_DISPLAY would be re-armed away;
        # past COUNTDOWN (SETTLE) the turn is already over, never skip the next one
        self.clock.run_until(
            lambda: self.machine.phase is TurnPhase.COUNTDOWN
            or self.machine.turn > start_turn
            or not self.machine.is_playing
        )
        if (
            self.machine.is_playing
            and self.machine.turn == start_turn
            and self.machine.phase is TurnPhase.COUNTDOWN
        ):
            self.machine.force_skip_turn(self.clock.paused)

        self.clock.run_until(
            lambda: self.machine.turn > start_turn or not self.machine.is_playing
        )
        return True

    def buy(self, instrument_id: str, qty: int) -> TradeResult:
        return self.machine.buy(instrument_id, qty)

    def sell(self, instrument_id: str, qty: int) -> TradeResult:
        return self.machine.sell(instrument_id, qty)

    def pause(self) -> bool:
        return self.clock.pause()

    def resume(self) -> None:
        self.clock.resume()

    def force_skip_turn(self) -> bool:
        return self.machine.force_skip_turn(self.clock.paused)

    def tick(self, dt: float) -> Optional[TurnPhase]:
        return self.clock.step(dt)

    def reset(self) -> None:
        logs.info(f"[Session] reset from state={self.state.value} turn={self.turn}")
        self._build()
        self.machine.prepare()

    def run_to_end(self) -> Optional[GameResult]:
        if self.machine.state in (GameState.WAITING_TO_START, GameState.READY):
            self.start()
        if self.clock.paused:
            self.resume()

        while self.machine.is_playing:
            self.advance_turn()

        self.clock.run_until(lambda: self.machine.phase in (TurnPhase.DONE, None))
        return self.machine.result

from __future__ import annotations

import math
import random
from typing import Optional

from invest_game.config.game_config import GameConfig
from invest_game.game.analytics import ResultAnalytics
from invest_game.game.catalog import EventCatalog
from invest_game.game.core.events import ScheduledEvent
from invest_game.game.core.interfaces import InstrumentRepository
from invest_game.game.core.notifier import Notifier, Signal
from invest_game.game.core.types import EventRecord, GameState, TurnPhase, TurnSnapshot
from invest_game.game.diversification import DiversificationTracker
from invest_game.game.effects import EffectEngine, EffectReport
from invest_game.game.history import HistoryLedger
from invest_game.game.result import GameResult
from invest_game.game.trading import TradeResult, TradingEngine
from invest_game.utils.errors import InvalidTurnState
from invest_game.utils.logger import logs
"""
{#!filepath: invest_game/game/state_machine.py}

TurnStateMachine (FINAL / FROZEN)

Outer states:
    WAITING_TO_START → READY → PLAYING → FINISHED
    reset() → READY (rebuilds ledger / tracker / trading engine)

Inner turn loop, driven ONLY by tick(dt, paused):

    TURN_START ──► EVENT_DISPLAY ──► COUNTDOWN ──► SETTLE ──► TURN_START ...
         └──────────(no event)───────►┘                └──(last turn)──► GAME_END ──► DONE

Time semantics:
- EVENT_DISPLAY / SETTLE / GAME_END waits are game-clock: frozen while paused
- COUNTDOWN consumes real time in tick_slice slices; a slice decrements the
  countdown only when not paused
- instantaneous transitions never consume dt

Invariants:
- the scheduled event fires at most once per turn
- one TurnSnapshot per completed turn (ledger commits with one-turn lag)
- nothing inside the loop raises; missing collaborators degrade to no-ops
"""

EPS = 1e-9


class TurnStateMachine:
    def __init__(
        self,
        cfg: GameConfig,
        repo: Optional[InstrumentRepository],
        catalog: Optional[EventCatalog] = None,
        notifier: Optional[Notifier] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.cfg = cfg
        self.repo = repo
        self.catalog = catalog if catalog is not None else EventCatalog()
        self.notifier = notifier if notifier is not None else Notifier()
        self.rng = rng if rng is not None else random.Random(cfg.seed)

        self.effects = EffectEngine(repo, self.rng)
        self.analytics = ResultAnalytics(cfg.lifestyle)

        self.state: GameState = GameState.WAITING_TO_START
        self._reset_loop()
        self._build_session_objects()

        if repo is None:
            logs.warning("[TurnFSM] no instrument repository bound, market steps are no-ops")

    # --------------------------------------------------
    # Construction helpers
    # --------------------------------------------------
    def _build_session_objects(self) -> None:
        self.trading = TradingEngine(
            self.repo,
            initial_cash=self.cfg.initial_cash,
            fee_rate=self.cfg.fee_rate,
            notifier=self.notifier,
        )
        self.ledger = HistoryLedger(self.repo, cash_source=lambda: self.trading.cash)
        self.tracker = DiversificationTracker(self.repo)

        # ledger first: the trade is a recorded fact before anyone reacts to it
        self.trading.add_observer(self.ledger.record_transaction)
        self.trading.add_observer(self.tracker.on_trade)

    def _reset_loop(self) -> None:
        self.phase: Optional[TurnPhase] = None
        self.turn: int = 0
        self.remaining: float = 0.0
        self.event_applied: bool = False
        self.current_event: Optional[ScheduledEvent] = None
        self.last_report: Optional[EffectReport] = None
        self.result: Optional[GameResult] = None

        self._wait: float = 0.0
        self._slice_acc: float = 0.0
        self._finished: bool = False

    # --------------------------------------------------
    # Read side
    # --------------------------------------------------
    @property
    def turn_duration(self) -> float:
        return self.cfg.effective_turn_duration

    @property
    def is_playing(self) -> bool:
        return self.state is GameState.PLAYING

    @property
    def turns_completed(self) -> int:
        return len(self.ledger.history)

    @property
    def cash(self) -> int:
        return self.trading.cash

    def total_assets(self) -> int:
        return self.trading.total_assets()

    def live_snapshot(self) -> Optional[TurnSnapshot]:
        return self.ledger.live_snapshot()

    # --------------------------------------------------
    # Outer state transitions
    # --------------------------------------------------
    def _set_state(self, state: GameState) -> None:
        if state is self.state:
            return
        logs.info(f"[TurnFSM] state {self.state.value} -> {state.value}")
        self.state = state
        self.notifier.emit(Signal.STATE_CHANGED, state)

    def prepare(self) -> bool:
        if self.state is not GameState.WAITING_TO_START:
            logs.warning(f"[TurnFSM] prepare refused state={self.state.value}")
            return False
        self._set_state(GameState.READY)
        return True

    def start(self) -> bool:
        if self.state is not GameState.READY:
            logs.warning(f"[TurnFSM] start refused state={self.state.value}")
            return False
        self._reset_loop()
        self.phase = TurnPhase.TURN_START
        self._set_state(GameState.PLAYING)
        return True

    def reset(self) -> None:
        """
        Back to READY with a fresh ledger, tracker and trading engine.

        Positions left by an aborted game are dropped from the repository;
        prices are the repository's business and stay as they are.
        """
        if self.repo is not None:
            for iid, qty in self.repo.get_holdings().items():
                self.repo.decrease_holding(iid, qty)

        self._reset_loop()
        self._build_session_objects()
        self.state = GameState.WAITING_TO_START
        self._set_state(GameState.READY)
        logs.info("[TurnFSM] reset")

    # --------------------------------------------------
    # Player commands (gated on PLAYING)
    # --------------------------------------------------
    def buy(self, instrument_id: str, qty: int) -> TradeResult:
        if not self.is_playing:
            return TradeResult.failure(
                InvalidTurnState(f"buy while {self.state.value}"), self.trading.cash
            )
        return self.trading.buy(instrument_id, qty)

    def sell(self, instrument_id: str, qty: int) -> TradeResult:
        if not self.is_playing:
            return TradeResult.failure(
                InvalidTurnState(f"sell while {self.state.value}"), self.trading.cash
            )
        return self.trading.sell(instrument_id, qty)

    def force_skip_turn(self, paused: bool = False) -> bool:
        """
        Zero the countdown. Observed at the next tick (cooperative).

        Refused while paused or outside PLAYING. During EVENT_DISPLAY the
        countdown is re-armed on entering COUNTDOWN, so the skip has no effect.
        """
        if not self.is_playing or paused:
            logs.warning(
                f"[TurnFSM] force skip refused state={self.state.value} paused={paused}"
            )
            return False
        self.remaining = 0.0
        self.notifier.emit(Signal.TIMER_TICK, self.remaining)
        logs.info(f"[TurnFSM] force skip turn={self.turn} phase={self.phase.value}")
        return True

    # --------------------------------------------------
    # Tick
    # --------------------------------------------------
    def tick(self, dt: float, paused: bool = False) -> Optional[TurnPhase]:
        if self.state is not GameState.PLAYING and self.phase is not TurnPhase.GAME_END:
            return self.phase

        budget = max(0.0, float(dt))

        while True:
            phase = self.phase

            if phase is TurnPhase.TURN_START:
                self._start_turn()
                continue

            if phase is TurnPhase.EVENT_DISPLAY:
                budget = self._consume_wait(budget, paused)
                if self._wait > EPS:
                    break
                self._enter_countdown()
                continue

            if phase is TurnPhase.COUNTDOWN:
                if self.remaining > EPS:
                    budget = self._run_countdown(budget, paused)
                if self.remaining > EPS:
                    break
                self._enter_settle()
                continue

            if phase is TurnPhase.SETTLE:
                budget = self._consume_wait(budget, paused)
                if self._wait > EPS:
                    break
                if self.turn >= self.cfg.max_turns:
                    self.phase = TurnPhase.GAME_END
                else:
                    self.phase = TurnPhase.TURN_START
                continue

            if phase is TurnPhase.GAME_END:
                if not self._finished:
                    self._finish()
                budget = self._consume_wait(budget, paused)
                if self._wait > EPS:
                    break
                self.phase = TurnPhase.DONE
                logs.debug("[TurnFSM] done")

            break

        return self.phase

    def _consume_wait(self, budget: float, paused: bool) -> float:
        if paused:
            return 0.0
        take = min(budget, self._wait)
        self._wait -= take
        return budget - take

    def _run_countdown(self, budget: float, paused: bool) -> float:
        step = self.cfg.tick_slice

        while budget > EPS and self.remaining > EPS:
            need = step - self._slice_acc
            if budget + EPS < need:
                self._slice_acc += budget
                return 0.0

            budget = max(0.0, budget - need)
            self._slice_acc = 0.0

            if paused:
                continue

            prev = self.remaining
            self.remaining = max(0.0, round(self.remaining - step, 6))
            if math.ceil(prev) != math.ceil(self.remaining):
                self.notifier.emit(Signal.TIMER_TICK, self.remaining)

        return budget

    # --------------------------------------------------
    # Phase bodies
    # --------------------------------------------------
    def _start_turn(self) -> None:
        self.turn += 1
        self.event_applied = False
        self.current_event = None
        self.remaining = self.turn_duration
        self._slice_acc = 0.0
        self.trading.current_turn = self.turn

        logs.info(f"[TurnFSM] turn={self.turn}/{self.cfg.max_turns} start cash={self.trading.cash}")
        self.notifier.emit(Signal.TURN_CHANGED, self.turn)
        self.notifier.emit(Signal.TIMER_TICK, self.remaining)
        self.ledger.begin_turn(self.turn)

        event = self.catalog.get(self.turn)
        if event is not None and not self.event_applied:
            self._trigger(event)
            self._wait = self.cfg.event_display_delay
            self.phase = TurnPhase.EVENT_DISPLAY
        else:
            self._enter_countdown()

    def _trigger(self, event: ScheduledEvent) -> None:
        self.last_report = self.effects.resolve(event)
        self.event_applied = True
        self.current_event = event

        self.ledger.record_event(
            EventRecord(
                turn=self.turn,
                event_key=event.key,
                title=event.title or event.key,
                affected_sector=event.affected_sector,
                average_impact=event.average_impact,
            )
        )
        logs.info(f"[TurnFSM] event turn={self.turn} key={event.key} category={event.category.value}")
        self.notifier.emit(Signal.EVENT_TRIGGERED, event)

    def _enter_countdown(self) -> None:
        if self.remaining != self.turn_duration:
            logs.warning(
                f"[TurnFSM] timer mismatch turn={self.turn} "
                f"remaining={self.remaining} -> {self.turn_duration}"
            )
            self.remaining = self.turn_duration
            self.notifier.emit(Signal.TIMER_TICK, self.remaining)
        self._slice_acc = 0.0
        self.phase = TurnPhase.COUNTDOWN

    def _enter_settle(self) -> None:
        if self.catalog.has_event(self.turn + 1):
            logs.info(f"[TurnFSM] turn={self.turn} end: next turn has event, drift skipped")
        else:
            self.effects.drift(self.cfg.volatility_for)

        sectors = self.tracker.end_turn(self.turn)
        self.ledger.end_turn()
        self.notifier.emit(Signal.DIVERSIFICATION_UPDATED, sectors)

        self._wait = self.cfg.end_turn_delay
        self.phase = TurnPhase.SETTLE

    def _finish(self) -> None:
        self._finished = True

        self.trading.liquidate_all()
        self.ledger.close()

        self.result = self.analytics.compute(
            initial_cash=self.cfg.initial_cash,
            pre_bonus_total=self.trading.total_assets(),
            watermark=self.tracker.watermark,
            ledger=self.ledger,
        )
        self._set_state(GameState.FINISHED)
        self.notifier.emit(Signal.GAME_COMPLETED, self.result)

        self._wait = self.cfg.game_end_delay
        logs.info(
            f"[TurnFSM] game finished final={self.result.final_assets} "
            f"lifestyle={self.result.lifestyle_grade.value}"
        )

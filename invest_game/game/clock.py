from __future__ import annotations
from abc import ABC, abstractmethod
from time import perf_counter, sleep
from typing import Callable, Optional

from invest_game.game.core.types import TurnPhase
from invest_game.game.state_machine import TurnStateMachine
from invest_game.utils.logger import logs
# invest_game/game/clock.py


class ClockDriver(ABC):
    """
    External tick source.

    - owns the pause flag and passes it into every tick
    - never mutates the machine except through tick()
    """

    def __init__(self, machine: TurnStateMachine) -> None:
        self.machine = machine
        self.paused: bool = False

    def pause(self) -> bool:
        if not self.machine.is_playing:
            logs.warning("[Clock] pause refused: game not playing")
            return False
        self.paused = True
        logs.info("[Clock] paused")
        return True

    def resume(self) -> None:
        self.paused = False
        logs.info("[Clock] resumed")

    def step(self, dt: float) -> Optional[TurnPhase]:
        return self.machine.tick(dt, self.paused)

    @abstractmethod
    def run_until(self, predicate: Callable[[], bool], max_steps: int = 1_000_000) -> int:
        """Tick until predicate() holds, return the number of ticks."""


class SimulatedClock(ClockDriver):
    """Fixed-dt stepping, no sleeping. Deterministic."""

    def __init__(self, machine: TurnStateMachine, dt: float = 0.1) -> None:
        super().__init__(machine)
        if dt <= 0:
            raise ValueError(f"dt must be > 0, got {dt}")
        self.dt = dt
        self.elapsed: float = 0.0

    def step(self, dt: Optional[float] = None) -> Optional[TurnPhase]:
        dt = self.dt if dt is None else dt
        self.elapsed += dt
        return super().step(dt)

    def advance(self, seconds: float) -> Optional[TurnPhase]:
        """Advance ``seconds`` of real time in dt-sized steps."""
        phase = self.machine.phase
        n = int(round(seconds / self.dt))
        for _ in range(n):
            phase = self.step()
        return phase

    def run_until(self, predicate: Callable[[], bool], max_steps: int = 1_000_000) -> int:
        steps = 0
        while not predicate():
            if steps >= max_steps:
                raise RuntimeError(f"clock did not converge after {max_steps} steps")
            self.step()
            steps += 1
        return steps


class RealtimeClock(ClockDriver):
    """perf_counter deltas + sleep between ticks."""

    def __init__(
        self,
        machine: TurnStateMachine,
        interval: float = 0.1,
        now: Callable[[], float] = perf_counter,
        sleeper: Callable[[float], None] = sleep,
    ) -> None:
        super().__init__(machine)
        self.interval = interval
        self._now = now
        self._sleep = sleeper
        self._last: Optional[float] = None

    def poll(self) -> Optional[TurnPhase]:
        t = self._now()
        dt = 0.0 if self._last is None else t - self._last
        self._last = t
        return self.step(dt)

    def run_until(self, predicate: Callable[[], bool], max_steps: int = 1_000_000) -> int:
        steps = 0
        while not predicate():
            if steps >= max_steps:
                raise RuntimeError(f"clock did not converge after {max_steps} steps")
            self.poll()
            steps += 1
            self._sleep(self.interval)
        return steps

    def run(self) -> None:
        self.run_until(lambda: self.machine.phase is TurnPhase.DONE)

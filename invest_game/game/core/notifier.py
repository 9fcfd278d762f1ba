from __future__ import annotations
from collections import defaultdict
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, DefaultDict, List

from invest_game.utils.logger import logs
# invest_game/game/core/notifier.py


class Signal(str, Enum):
    STATE_CHANGED = "state_changed"
    TURN_CHANGED = "turn_changed"
    EVENT_TRIGGERED = "event_triggered"
    TIMER_TICK = "timer_tick"
    GAME_COMPLETED = "game_completed"
    TRADE_EXECUTED = "trade_executed"
    DIVERSIFICATION_UPDATED = "diversification_updated"


Callback = Callable[[Any], None]


@dataclass
class Subscription:
    """Handle returned by Notifier.subscribe()."""

    notifier: "Notifier"
    signal: Signal
    callback: Callback
    active: bool = True

    def unsubscribe(self) -> None:
        if self.active:
            self.notifier.unsubscribe(self.signal, self.callback)
            self.active = False


class Notifier:
    """
    Notifier (observer registry)

    - multicast, one payload argument per callback
    - order across subscribers is unspecified
    - a failing subscriber is logged, never propagated to the emitter
    """

    def __init__(self) -> None:
        self._observers: DefaultDict[Signal, List[Callback]] = defaultdict(list)

    def subscribe(self, signal: Signal, callback: Callback) -> Subscription:
        self._observers[signal].append(callback)
        logs.debug(f"[Notifier] subscribed signal={signal.value}")
        return Subscription(self, signal, callback)

    def unsubscribe(self, signal: Signal, callback: Callback) -> None:
        if callback in self._observers[signal]:
            self._observers[signal].remove(callback)
            logs.debug(f"[Notifier] unsubscribed signal={signal.value}")

    def subscriber_count(self, signal: Signal) -> int:
        return len(self._observers[signal])

    def emit(self, signal: Signal, payload: Any = None) -> None:
        # copy: callbacks may unsubscribe while we iterate
        for callback in list(self._observers[signal]):
            try:
                callback(payload)
            except Exception as e:
                logs.error(f"[Notifier] callback error signal={signal.value} err={e!r}")

    def clear(self) -> None:
        self._observers.clear()

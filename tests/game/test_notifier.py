#!filepath: tests/game/test_notifier.py
from invest_game.game.core.notifier import Notifier, Signal


def test_emit_reaches_every_subscriber():
    n = Notifier()
    got_a, got_b = [], []
    n.subscribe(Signal.TURN_CHANGED, got_a.append)
    n.subscribe(Signal.TURN_CHANGED, got_b.append)

    n.emit(Signal.TURN_CHANGED, 3)

    assert got_a == [3]
    assert got_b == [3]


def test_signals_are_independent():
    n = Notifier()
    got = []
    n.subscribe(Signal.TIMER_TICK, got.append)

    n.emit(Signal.TURN_CHANGED, 1)

    assert got == []
    assert n.subscriber_count(Signal.TIMER_TICK) == 1
    assert n.subscriber_count(Signal.TURN_CHANGED) == 0


def test_subscription_handle_unsubscribes_once():
    n = Notifier()
    got = []
    sub = n.subscribe(Signal.TIMER_TICK, got.append)

    sub.unsubscribe()
    sub.unsubscribe()
    n.emit(Signal.TIMER_TICK, 1.0)

    assert got == []
    assert not sub.active
    assert n.subscriber_count(Signal.TIMER_TICK) == 0


def test_failing_callback_is_isolated():
    """
    Contract:
    one subscriber raising must not stop the others nor reach the emitter
    """
    n = Notifier()
    got = []

    def boom(_):
        raise RuntimeError("ui gone")

    n.subscribe(Signal.GAME_COMPLETED, boom)
    n.subscribe(Signal.GAME_COMPLETED, got.append)

    n.emit(Signal.GAME_COMPLETED, "result")

    assert got == ["result"]


def test_unsubscribe_during_emit():
    n = Notifier()
    got = []
    subs = {}

    def once(payload):
        got.append(payload)
        subs["once"].unsubscribe()

    subs["once"] = n.subscribe(Signal.STATE_CHANGED, once)

    n.emit(Signal.STATE_CHANGED, "a")
    n.emit(Signal.STATE_CHANGED, "b")

    assert got == ["a"]


def test_clear():
    n = Notifier()
    n.subscribe(Signal.TRADE_EXECUTED, lambda _: None)
    n.clear()

    assert n.subscriber_count(Signal.TRADE_EXECUTED) == 0

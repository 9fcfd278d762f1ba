#!filepath: tests/game/test_turn_state_machine.py
import pytest

from invest_game.config.game_config import GameConfig
from invest_game.game.core.notifier import Signal
from invest_game.game.core.types import GameState, Side, TurnPhase
from invest_game.game.diversification import apply_bonus
from invest_game.utils.errors import InvalidTurnState, TradeRejected


# ======================================================
# Helpers
# ======================================================
def _started(machine):
    if machine.state is GameState.WAITING_TO_START:
        assert machine.prepare()
    assert machine.start()
    machine.tick(0.0)
    return machine


def _run(machine, dt=1.0, max_ticks=100_000):
    for _ in range(max_ticks):
        if machine.tick(dt) is TurnPhase.DONE:
            return machine
    raise AssertionError("machine did not reach DONE")


def _skip_to_turn(machine, turn):
    while machine.turn < turn:
        if machine.phase is TurnPhase.COUNTDOWN:
            machine.force_skip_turn()
        machine.tick(0.1)


def _record(machine, signal):
    got = []
    machine.notifier.subscribe(signal, got.append)
    return got


# ======================================================
# Outer states
# ======================================================
def test_state_transitions(make_machine):
    m = make_machine()
    states = _record(m, Signal.STATE_CHANGED)

    assert m.state is GameState.WAITING_TO_START
    assert not m.start()                         # not READY yet

    _started(m)
    _run(m)

    assert states == [GameState.READY, GameState.PLAYING, GameState.FINISHED]
    assert m.phase is TurnPhase.DONE


def test_turn_one_starts_in_countdown(make_machine):
    m = _started(make_machine())

    assert m.turn == 1
    assert m.phase is TurnPhase.COUNTDOWN
    assert m.remaining == 30.0


# ======================================================
# Full game
# ======================================================
def test_one_snapshot_per_turn(make_machine):
    """
    🔒 Contract:
    a 10-turn game commits exactly 10 snapshots, turns 1..10 in order
    """
    m = make_machine()
    turns = _record(m, Signal.TURN_CHANGED)

    _run(_started(m))

    assert turns == list(range(1, 11))
    assert [s.turn for s in m.ledger.history] == list(range(1, 11))
    assert m.turns_completed == 10
    assert m.result.total_turns == 10


def test_scheduled_events_fire_once_each(make_machine):
    m = make_machine()
    fired = _record(m, Signal.EVENT_TRIGGERED)

    _run(_started(m))

    assert [e.key for e in fired] == [
        "ai_innovation",
        "energy_policy",
        "interest_rate",
        "crypto_regulation",
    ]
    assert [e.turn for e in m.ledger.events] == [3, 5, 7, 9]
    assert m.ledger.history[2].events[0].event_key == "ai_innovation"


def test_game_completed_carries_result(make_machine):
    m = make_machine()
    done = _record(m, Signal.GAME_COMPLETED)

    _run(_started(m))

    assert done == [m.result]
    assert m.result.final_assets == 900_000      # no trades → −10% bonus


# ======================================================
# Countdown timing
# ======================================================
def test_timer_tick_on_whole_second_boundary(make_machine):
    m = _started(make_machine())
    ticks = _record(m, Signal.TIMER_TICK)

    m.tick(1.0)

    assert ticks == [29.0]
    assert m.remaining == pytest.approx(29.0)


def test_partial_slices_accumulate(make_machine):
    m = _started(make_machine())

    m.tick(0.05)
    assert m.remaining == 30.0

    m.tick(0.05)
    assert m.remaining == pytest.approx(29.9)


def test_pause_freezes_countdown(make_machine):
    m = _started(make_machine())

    m.tick(5.0, paused=True)
    assert m.remaining == 30.0

    m.tick(1.0)
    assert m.remaining == pytest.approx(29.0)


def test_pause_freezes_event_display(make_machine):
    m = make_machine()
    _started(m)
    _skip_to_turn(m, 3)

    assert m.phase is TurnPhase.EVENT_DISPLAY

    m.tick(10.0, paused=True)
    assert m.phase is TurnPhase.EVENT_DISPLAY

    m.tick(3.0)
    assert m.phase is TurnPhase.COUNTDOWN
    assert m.remaining == 30.0


def test_skip_timer_shortens_turns(make_machine):
    m = _started(make_machine(cfg=GameConfig(seed=7, skip_timer=True)))

    assert m.remaining == 1.0
    _run(m)
    assert m.turns_completed == 10


# ======================================================
# Force skip
# ======================================================
def test_force_skip_is_observed_on_next_tick(make_machine):
    m = _started(make_machine())

    assert m.force_skip_turn()
    assert m.phase is TurnPhase.COUNTDOWN        # cooperative, nothing moved yet
    assert m.remaining == 0.0

    m.tick(0.0)
    assert m.phase is TurnPhase.SETTLE


def test_force_skip_refused(make_machine):
    m = make_machine()
    assert not m.force_skip_turn()               # not playing

    _started(m)
    assert not m.force_skip_turn(paused=True)
    assert m.remaining == 30.0


def test_skip_during_event_display_is_rearmed(make_machine):
    m = make_machine()
    _started(m)
    _skip_to_turn(m, 3)
    ticks = _record(m, Signal.TIMER_TICK)

    assert m.force_skip_turn()
    m.tick(3.0)

    assert m.phase is TurnPhase.COUNTDOWN
    assert m.remaining == 30.0
    assert ticks == [0.0, 30.0]


# ======================================================
# Turn end
# ======================================================
def test_drift_skipped_before_event_turn(make_machine, mid_rng):
    m = _started(make_machine())

    m.force_skip_turn()
    m.tick(0.1)
    assert len(mid_rng.calls) == 6               # turn 1 → drift on 6 instruments

    _skip_to_turn(m, 2)
    before = len(mid_rng.calls)
    m.force_skip_turn()
    m.tick(0.1)

    assert m.phase is TurnPhase.SETTLE
    assert len(mid_rng.calls) == before          # turn 3 has an event


def test_diversification_updated_each_turn(make_machine):
    m = make_machine()
    counts = _record(m, Signal.DIVERSIFICATION_UPDATED)

    _started(m)
    m.buy("T1", 1)
    m.buy("E1", 1)
    _run(m)

    assert len(counts) == 10
    assert counts[0] == 2


def test_watermark_bonus_through_machine(make_machine):
    m = _started(make_machine())
    for iid in ("T1", "S1", "E1", "C1"):
        assert m.buy(iid, 1).ok

    _skip_to_turn(m, 2)
    for iid in ("S1", "E1", "C1"):
        assert m.sell(iid, 1).ok

    _run(m)

    assert m.result.max_sectors == 4
    assert m.result.diversification_bonus == 15


def test_liquidation_at_game_end(make_machine):
    m = _started(make_machine())
    m.buy("T1", 10)

    _run(m)

    assert m.repo.get_holdings() == {}
    assert m.result.total_trades == 2
    last = m.ledger.transactions[-1]
    assert (last.side, last.turn, last.quantity) == (Side.SELL, 10, 10)
    assert m.result.final_assets == apply_bonus(m.cash, -10)[1]     # one sector only


# ======================================================
# Commands / degraded mode
# ======================================================
def test_trades_gated_on_playing(make_machine):
    m = make_machine()

    res = m.buy("T1", 1)
    assert not res.ok
    assert isinstance(res.error, InvalidTurnState)
    assert isinstance(m.sell("T1", 1).error, InvalidTurnState)

    _started(m)
    assert m.buy("T1", 1).ok


def test_missing_repository_degrades(make_machine):
    m = make_machine(repo=None)

    _run(_started(m))

    assert m.turns_completed == 10
    assert len(m.ledger.events) == 4
    assert m.result.total_trades == 0
    assert m.result.final_assets == 900_000


def test_missing_repository_rejects_trades(make_machine):
    m = _started(make_machine(repo=None))

    assert isinstance(m.buy("T1", 1).error, TradeRejected)


def test_reset_returns_to_ready(make_machine):
    m = _started(make_machine())
    m.buy("T1", 5)
    _skip_to_turn(m, 2)

    m.reset()

    assert m.state is GameState.READY
    assert m.turn == 0
    assert m.phase is None
    assert m.cash == 1_000_000
    assert m.repo.get_holdings() == {}
    assert m.ledger.history == []
    assert m.tracker.watermark == 0

    _started(m)
    assert m.turn == 1

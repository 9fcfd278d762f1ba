#!filepath: tests/game/test_game_session.py
from invest_game.game.core.notifier import Signal
from invest_game.game.core.types import GameState, TurnPhase, TurnSnapshot
from invest_game.game.result import GameResult


def test_start_runs_turn_one(session):
    assert session.start()

    assert session.state is GameState.PLAYING
    assert session.turn == 1
    assert session.machine.phase is TurnPhase.COUNTDOWN
    assert not session.start()                   # already playing


def test_advance_turn_moves_exactly_one_turn(session):
    session.start()

    for expected in range(2, 6):
        assert session.advance_turn()
        assert session.turn == expected

    # turn 5 carries an event: the session stops while it is displayed
    assert session.machine.phase is TurnPhase.EVENT_DISPLAY
    assert session.advance_turn()
    assert session.turn == 6


def test_advance_turn_after_countdown_ran_out_keeps_next_turn(session):
    """
    Contract:
    turn 1 already in SETTLE → advance_turn only waits for turn 2,
    turn 2 keeps its full trading window
    """
    session.start()
    session.tick(session.cfg.turn_duration + 0.05)
    assert session.machine.phase is TurnPhase.SETTLE
    assert session.turn == 1

    assert session.advance_turn()

    assert session.turn == 2
    assert session.machine.phase is TurnPhase.COUNTDOWN
    assert session.machine.remaining > session.cfg.turn_duration - 1

    session.tick(0.1)
    assert session.turn == 2
    assert session.machine.phase is TurnPhase.COUNTDOWN
    assert session.buy("T1", 1).ok


def test_advance_turn_refused_when_paused_or_idle(session):
    assert not session.advance_turn()            # not started
    assert not session.pause()                   # not playing

    session.start()
    assert session.pause()
    assert session.paused
    assert not session.advance_turn()
    assert not session.force_skip_turn()

    session.resume()
    assert session.advance_turn()
    assert session.turn == 2


def test_snapshot_is_live_then_result(session):
    session.start()
    session.buy("T1", 3)

    snap = session.snapshot()
    assert isinstance(snap, TurnSnapshot)
    assert snap.turn == 1
    assert snap.trade_count == 1
    assert snap.stock_value == 30_000

    result = session.run_to_end()

    assert isinstance(result, GameResult)
    assert session.snapshot() is result
    assert session.state is GameState.FINISHED
    assert session.machine.phase is TurnPhase.DONE
    assert len(session.machine.ledger.history) == 10


def test_run_to_end_from_ready(session):
    result = session.run_to_end()

    assert result is not None
    assert result.total_turns == 10
    assert result.final_assets == 900_000


def test_reset_rebuilds_and_keeps_subscribers(session):
    turns = []
    session.subscribe(Signal.TURN_CHANGED, turns.append)

    session.start()
    session.buy("E1", 2)
    old_repo = session.repo
    session.advance_turn()

    session.reset()

    assert session.state is GameState.READY
    assert session.turn == 0
    assert session.repo is not old_repo
    assert session.repo.get_holdings() == {}
    assert session.snapshot() is None

    session.start()
    assert turns == [1, 2, 1]


def test_tick_passes_through_clock(session):
    session.start()

    session.tick(1.0)

    assert session.machine.remaining == 29.0

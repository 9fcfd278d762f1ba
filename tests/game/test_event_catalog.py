#!filepath: tests/game/test_event_catalog.py
import pytest

from invest_game.game.catalog import EventCatalog
from invest_game.game.core.events import (
    GLOBAL,
    EffectDescriptor,
    ScheduledEvent,
    SectorScope,
)
from invest_game.game.core.types import Sector


def test_default_schedule():
    cat = EventCatalog()

    assert list(cat) == [3, 5, 7, 9]
    assert len(cat) == 4
    assert cat.get(3).key == "ai_innovation"
    assert cat.get(4) is None
    assert not cat.has_event(1)


def test_global_effect_declared_first():
    for _, ev in EventCatalog().items():
        assert ev.effects[0].is_global
        assert all(not e.is_global for e in ev.effects[1:])


def test_upcoming_is_next_turn_news():
    cat = EventCatalog()

    assert cat.upcoming(2).key == "ai_innovation"
    assert cat.upcoming(3) is None


def test_by_key():
    cat = EventCatalog()

    assert cat.by_key("crypto_regulation") is cat.get(9)
    assert cat.by_key("nope") is None


def test_custom_schedule_is_copied():
    schedule = {1: ScheduledEvent("k", (EffectDescriptor(SectorScope(Sector.EV), 5.0),))}
    cat = EventCatalog(schedule)
    schedule[2] = schedule[1]

    assert list(cat) == [1]
    assert EventCatalog({}).get(3) is None


def test_event_summary_fields():
    single = ScheduledEvent("k", (EffectDescriptor(SectorScope(Sector.EV), 20.0),))
    mixed = EventCatalog().get(5)

    assert single.affected_sector is Sector.EV
    assert mixed.affected_sector is None
    assert mixed.average_impact == pytest.approx(10.0)
    assert ScheduledEvent("empty", ()).average_impact == 0.0
    assert GLOBAL.describe() == "GLOBAL"

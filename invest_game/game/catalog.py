from __future__ import annotations

from typing import Dict, Iterator, Mapping, Optional, Tuple

from invest_game.game.core.events import (
    GLOBAL,
    EffectDescriptor,
    EventCategory,
    ScheduledEvent,
    SectorScope,
)
from invest_game.game.core.types import Sector


# ------------------------------------------------------------------
# Canonical schedule: global effect first, then sector effects.
# Instruments of a listed sector therefore get BOTH moves, compounded.
# ------------------------------------------------------------------
DEFAULT_SCHEDULE: Dict[int, ScheduledEvent] = {
    3: ScheduledEvent(
        key="ai_innovation",
        title="AI innovation boom",
        category=EventCategory.TECHNOLOGY,
        effects=(
            EffectDescriptor(GLOBAL, 0.0, (-2.0, 2.0)),
            EffectDescriptor(SectorScope(Sector.SEM), 25.0, (-3.0, 3.0)),
            EffectDescriptor(SectorScope(Sector.TECH), 15.0, (-3.0, 3.0)),
        ),
    ),
    5: ScheduledEvent(
        key="energy_policy",
        title="Green energy subsidy",
        category=EventCategory.ENERGY,
        effects=(
            EffectDescriptor(GLOBAL, 0.0, (-4.0, 4.0)),
            EffectDescriptor(SectorScope(Sector.EV), 20.0, (-10.0, 10.0)),
        ),
    ),
    7: ScheduledEvent(
        key="interest_rate",
        title="Central bank rate hike",
        category=EventCategory.INTEREST,
        effects=(
            EffectDescriptor(GLOBAL, 0.0, (-5.0, 10.0)),
            EffectDescriptor(SectorScope(Sector.TECH), -10.0, (-5.0, 5.0)),
            EffectDescriptor(SectorScope(Sector.CORP), 7.5, (-2.5, 2.5)),
        ),
    ),
    9: ScheduledEvent(
        key="crypto_regulation",
        title="Crypto regulation tightened",
        category=EventCategory.CRYPTO,
        effects=(
            EffectDescriptor(GLOBAL, 0.0, (-5.0, 10.0)),
            EffectDescriptor(SectorScope(Sector.CRYPTO), -15.0, (-5.0, 5.0)),
        ),
    ),
}


class EventCatalog:
    """
    turn -> ScheduledEvent (immutable mapping)

    A turn with no event is NOT an error: get() returns None.
    """

    def __init__(self, schedule: Optional[Mapping[int, ScheduledEvent]] = None) -> None:
        src = DEFAULT_SCHEDULE if schedule is None else schedule
        self._schedule: Dict[int, ScheduledEvent] = dict(src)

    def get(self, turn: int) -> Optional[ScheduledEvent]:
        return self._schedule.get(turn)

    def has_event(self, turn: int) -> bool:
        return turn in self._schedule

    def upcoming(self, turn: int) -> Optional[ScheduledEvent]:
        """News preview: the event scheduled for the turn after ``turn``."""
        return self._schedule.get(turn + 1)

    def by_key(self, key: str) -> Optional[ScheduledEvent]:
        for ev in self._schedule.values():
            if ev.key == key:
                return ev
        return None

    def items(self) -> Tuple[Tuple[int, ScheduledEvent], ...]:
        return tuple(sorted(self._schedule.items()))

    def __iter__(self) -> Iterator[int]:
        return iter(sorted(self._schedule))

    def __len__(self) -> int:
        return len(self._schedule)

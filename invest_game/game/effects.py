from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from invest_game.game.core.events import (
    EffectDescriptor,
    GlobalScope,
    ScheduledEvent,
    VariationMode,
)
from invest_game.game.core.interfaces import InstrumentRepository
from invest_game.game.core.types import Instrument, Sector
from invest_game.utils.logger import logs


DRIFT_KEY = "__drift__"


@dataclass(frozen=True)
class AppliedEffect:
    instrument_id: str
    effect_index: int      # -1 for drift
    rate: float
    old_price: int
    new_price: int


@dataclass
class EffectReport:
    """Per-instrument applied rates, in application order."""

    event_key: str
    applied: List[AppliedEffect] = field(default_factory=list)

    def rates_for(self, instrument_id: str) -> List[float]:
        return [a.rate for a in self.applied if a.instrument_id == instrument_id]

    def total_change_percent(self, instrument_id: str) -> float:
        rows = [a for a in self.applied if a.instrument_id == instrument_id]
        if not rows or rows[0].old_price == 0:
            return 0.0
        return (rows[-1].new_price / rows[0].old_price - 1) * 100

    def by_instrument(self) -> Dict[str, List[float]]:
        out: Dict[str, List[float]] = {}
        for a in self.applied:
            out.setdefault(a.instrument_id, []).append(a.rate)
        return out

    def __len__(self) -> int:
        return len(self.applied)


class EffectEngine:
    """
    Effect Resolution Engine

    Contract:
      - effects apply sequentially in declaration order
      - each effect reads already-updated prices (multiplicative compounding)
      - Global targets EVERY instrument, Sector only that sector
      - rate = base_rate + uniform(min, max), drawn per instrument
        (INDEPENDENT) or once per effect (UNIFORM); base_rate without range

    Missing repository → logged no-op, empty report.
    """

    def __init__(
        self,
        repo: Optional[InstrumentRepository],
        rng: Optional[random.Random] = None,
    ) -> None:
        self.repo = repo
        self.rng = rng if rng is not None else random.Random()

    # --------------------------------------------------
    # Scheduled event
    # --------------------------------------------------
    def resolve(self, event: ScheduledEvent) -> EffectReport:
        report = EffectReport(event_key=event.key)

        if self.repo is None:
            logs.warning(f"[Effects] no repository bound, skip event={event.key}")
            return report

        for idx, effect in enumerate(event.effects):
            self._apply_effect(idx, effect, report)

        logs.info(
            f"[Effects] event={event.key} effects={len(event.effects)} "
            f"applied={len(report)}"
        )
        return report

    def _targets(self, effect: EffectDescriptor) -> List[Instrument]:
        if isinstance(effect.scope, GlobalScope):
            return self.repo.list_all()
        return self.repo.list_by_sector(effect.scope.sector)

    def _draw(self, effect: EffectDescriptor) -> float:
        if effect.variation is None:
            return effect.base_rate
        lo, hi = effect.variation
        return effect.base_rate + self.rng.uniform(lo, hi)

    def _apply_effect(self, idx: int, effect: EffectDescriptor, report: EffectReport) -> None:
        targets = self._targets(effect)

        shared: Optional[float] = None
        if effect.mode is VariationMode.UNIFORM:
            shared = self._draw(effect)

        for inst in targets:
            rate = shared if shared is not None else self._draw(effect)
            old = inst.price
            new = self.repo.adjust_price(inst.id, rate)
            if new is None:
                continue
            report.applied.append(AppliedEffect(inst.id, idx, rate, old, new))
            logs.debug(
                f"[Effects] scope={effect.scope.describe()} id={inst.id} "
                f"rate={rate:+.2f}% {old}->{new}"
            )

    # --------------------------------------------------
    # End-of-turn drift
    # --------------------------------------------------
    def drift(self, volatility_for: Callable[[Sector], float]) -> EffectReport:
        """
        Whole-market random move: each instrument draws uniform(-v, v),
        v = its sector's volatility.
        """
        report = EffectReport(event_key=DRIFT_KEY)

        if self.repo is None:
            logs.warning("[Effects] no repository bound, skip drift")
            return report

        for inst in self.repo.list_all():
            v = float(volatility_for(inst.sector))
            rate = self.rng.uniform(-v, v)
            old = inst.price
            new = self.repo.adjust_price(inst.id, rate)
            if new is None:
                continue
            report.applied.append(AppliedEffect(inst.id, -1, rate, old, new))

        logs.info(f"[Effects] drift applied={len(report)}")
        return report

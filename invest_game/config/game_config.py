from __future__ import annotations

from typing import Dict

from pydantic import BaseModel, Field, model_validator

from invest_game.utils.errors import UserInputError


class LifestyleThresholds(BaseModel):
    upper: int = 1_500_000
    middle_upper: int = 1_300_000
    middle: int = 1_000_000

    @model_validator(mode="after")
    def _ordered(self) -> "LifestyleThresholds":
        if not (self.upper >= self.middle_upper >= self.middle):
            raise UserInputError(
                f"lifestyle thresholds must be descending: "
                f"{self.upper} / {self.middle_upper} / {self.middle}"
            )
        return self


class GameConfig(BaseModel):
    """
    GameConfig（FINAL / FROZEN）

    语义：
      - 一局游戏的“规则定义”
      - 时间单位统一为秒（game-clock）
      - fee_rate 为小数：0.0025 == 0.25%
    """

    max_turns: int = Field(10, ge=1)
    turn_duration: float = Field(30.0, gt=0)
    initial_cash: int = Field(1_000_000, ge=0)
    fee_rate: float = Field(0.0025, ge=0, lt=1)

    # game-clock waits
    event_display_delay: float = Field(3.0, ge=0)
    end_turn_delay: float = Field(0.5, ge=0)
    game_end_delay: float = Field(2.0, ge=0)

    # countdown 以 tick_slice 为粒度消耗真实时间
    tick_slice: float = Field(0.1, gt=0)

    # debug: 每回合倒计时缩短为 1 秒
    skip_timer: bool = False

    seed: int | None = None

    lifestyle: LifestyleThresholds = Field(default_factory=LifestyleThresholds)

    # 每个 sector 回合末的随机波动幅度（百分比）
    drift_volatility: Dict[str, float] = Field(
        default_factory=lambda: {
            "TECH": 4.0,
            "SEM": 6.0,
            "EV": 7.0,
            "CRYPTO": 10.0,
            "CORP": 3.0,
        }
    )
    default_volatility: float = 5.0

    @property
    def effective_turn_duration(self) -> float:
        return 1.0 if self.skip_timer else self.turn_duration

    def volatility_for(self, sector) -> float:
        key = getattr(sector, "value", sector)
        return float(self.drift_volatility.get(key, self.default_volatility))

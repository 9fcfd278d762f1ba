from .log_config import LogConfig
from .game_config import GameConfig, LifestyleThresholds

__all__ = ["LogConfig", "GameConfig", "LifestyleThresholds"]

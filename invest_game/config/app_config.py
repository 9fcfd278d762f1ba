#!filepath: invest_game/config/app_config.py
import os

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field

from .log_config import LogConfig
from .game_config import GameConfig
from invest_game.utils.errors import UserInputError


ENV_SEED = "INVEST_GAME_SEED"
ENV_LOG_LEVEL = "INVEST_GAME_LOG_LEVEL"
ENV_MAX_TURNS = "INVEST_GAME_MAX_TURNS"


def _env_int(name: str) -> int:
    value = os.environ[name]
    try:
        return int(value)
    except ValueError:
        raise UserInputError(f"{name} must be an integer, got {value!r}") from None


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    invest_game/config/app_config.py → invest_game/config → invest_game → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "base.yml")


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    game: GameConfig = Field(default_factory=GameConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用包内 invest_game/config/base.yml
        - 不依赖当前工作目录
        - env 覆盖 YAML：seed / log level / max_turns
        """
        # 1) 先加载 .env（在项目根目录下）
        load_dotenv(os.path.join(project_root(), ".env"))

        # 2) 决定配置文件路径
        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        raw.setdefault("log", {})
        raw.setdefault("game", {})

        # 4) env 覆盖
        if os.getenv(ENV_SEED):
            raw["game"]["seed"] = _env_int(ENV_SEED)
        if os.getenv(ENV_MAX_TURNS):
            raw["game"]["max_turns"] = _env_int(ENV_MAX_TURNS)
        if os.getenv(ENV_LOG_LEVEL):
            raw["log"]["level"] = os.environ[ENV_LOG_LEVEL]

        return cls(**raw)

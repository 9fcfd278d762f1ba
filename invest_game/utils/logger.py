#!filepath: invest_game/utils/logger.py
import os
import json
from functools import wraps
from time import perf_counter
from loguru import logger
from typing import TYPE_CHECKING, Callable, Optional

if TYPE_CHECKING:
    from invest_game.config.log_config import LogConfig

_LOGGER_CONFIGURED = False
# Logger 初始化“只执行一次”，init_logging 可以显式重建


class Logging:
    """
    游戏日志模块
    ---------------------------------------
    - 支持按日期切割
    - 支持日志保留周期
    - 包含函数级日志装饰器
    ---------------------------------------
    """

    def __init__(
        self,
        log_dir: str = "logs",
        rotation: str = "1 day",
        retention: str = "30 days",
        log_level: str = "INFO",
        configure: bool = True,
    ):
        self.log_dir = log_dir
        self.rotation = rotation
        self.retention = retention
        self.level = log_level

        if configure:
            os.makedirs(self.log_dir, exist_ok=True)
            self._configure()

    def _configure(self) -> None:
        """
        配置全局 logger
        """
        global _LOGGER_CONFIGURED

        logger.remove()

        logger.add(
            sink=f"{self.log_dir}/{{time:YYYY-MM-DD}}.log",
            rotation=self.rotation,
            retention=self.retention,
            level=self.level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
            enqueue=True,
            backtrace=True,
            diagnose=True,
        )

        logger.info("\n-----------Logger initialized successfully.-----------")
        _LOGGER_CONFIGURED = True

    # ----------- 日志方法 -----------
    def debug(self, msg: str, *args, **kwargs):
        logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        logger.exception(msg, *args, **kwargs)

    # ---------- 日志装饰器 ----------
    def catch(
        self,
        msg: str = "Exception occurred",
        log_inputs: bool = False,
        log_outputs: bool = False,
        log_time: bool = True,
    ) -> Callable:

        def decorator(func: Callable):
            @wraps(func)
            def wrapper(*args, **kwargs):

                if log_inputs:
                    logger.info(
                        f"[CALL] {func.__name__} args={args}, kwargs={json.dumps(kwargs, ensure_ascii=False, default=str)}"
                    )

                start = perf_counter()

                try:
                    result = func(*args, **kwargs)
                except Exception:
                    logger.exception(f"[ERROR] {func.__name__}: {msg}")
                    raise

                if log_outputs:
                    logger.info(f"[RETURN] {func.__name__} result={result}")

                if log_time:
                    cost = perf_counter() - start
                    logger.info(f"[TIME] {func.__name__} took {cost:.4f}s")

                return result

            return wrapper

        return decorator


# 默认全局 logs：import 时不挂文件 sink（不创建 logs/），由 init_logging 显式配置
logs = Logging(configure=False)


def init_logging(cfg: Optional["LogConfig"] = None) -> Logging:
    """
    按 LogConfig 重新配置全局 logger。

    返回的仍然是模块级 ``logs``，调用方持有的引用不会失效。
    """
    if cfg is None:
        return logs

    logs.log_dir = cfg.dir
    logs.rotation = cfg.rotation
    logs.retention = cfg.retention
    logs.level = cfg.level

    os.makedirs(logs.log_dir, exist_ok=True)
    logs._configure()
    return logs

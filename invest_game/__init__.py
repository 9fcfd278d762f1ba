#!filepath: invest_game/__init__.py

from .utils.logger import Logging, logs, init_logging
from .config.app_config import AppConfig

__version__ = "0.1.0"

__all__ = [
    "logs", "Logging", "init_logging",
    "AppConfig",
    "__version__",
]

"""按名称缓存的日志器"""

import logging
import threading
from typing import Dict, Optional

from .config import LogConfig
from .handlers import HandlerFactory
from .security import CredentialMaskingFilter


class LazyLogger:
    """
    首次请求时配置日志器，之后按名称返回同一实例

    每个日志器：
    - 挂载 CredentialMaskingFilter（在任何输出端之前脱敏）
    - propagate=False，避免经 root 日志器输出未脱敏副本
    """
    _loggers: Dict[str, logging.Logger] = {}
    _lock = threading.Lock()

    @classmethod
    def get(
        cls,
        name: str,
        log_level: Optional[str] = None,
        log_to_console: bool = True,
        log_to_file: Optional[bool] = None,
        separate_log_file: Optional[str] = None
    ) -> logging.Logger:
        with cls._lock:
            cached = cls._loggers.get(name)
            if cached is not None:
                return cached

            logger = logging.getLogger(name)
            for handler in list(logger.handlers):
                logger.removeHandler(handler)
                handler.close()

            logger.setLevel(getattr(logging, (log_level or LogConfig.LOG_LEVEL).upper(), logging.INFO))
            logger.propagate = False
            logger.addFilter(CredentialMaskingFilter())

            if log_to_console:
                logger.addHandler(HandlerFactory.create_handler("console", logging.DEBUG))

            if LogConfig.LOG_TO_FILE if log_to_file is None else log_to_file:
                try:
                    logger.addHandler(HandlerFactory.create_handler(
                        "rotating", logging.DEBUG, filename=separate_log_file
                    ))
                except RuntimeError as e:
                    logger.warning("File logging disabled: %s", e)

            cls._loggers[name] = logger
            return logger

    @classmethod
    def cleanup(cls):
        """摘除并关闭所有已配置日志器的输出端"""
        with cls._lock:
            for logger in cls._loggers.values():
                for handler in list(logger.handlers):
                    logger.removeHandler(handler)
                    try:
                        handler.close()
                    except (OSError, ValueError):
                        pass
            cls._loggers.clear()

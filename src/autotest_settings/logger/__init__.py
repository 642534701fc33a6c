"""安全日志系统（所有输出经过凭证脱敏）"""

import atexit
import logging
from typing import Optional

from .config import LogConfig
from .metrics import LogMetrics
from .formatters import SecurityFormatter
from .security import CredentialMaskingFilter, mask_sensitive_data
from .handlers import HandlerFactory
from .lazy_logger import LazyLogger

__all__ = [
    "logger", "security_logger", "setup_logger", "cleanup",
    "mask_sensitive_data", "CredentialMaskingFilter", "SecurityFormatter",
    "HandlerFactory", "LazyLogger", "LogConfig", "LogMetrics",
]


def setup_logger(
    name: str = "autotest_settings",
    log_level: Optional[str] = None,
    log_to_console: bool = True,
    log_to_file: Optional[bool] = None,
    separate_log_file: Optional[str] = None
) -> logging.Logger:
    """
    获取统一格式的日志器

    标准格式:
        2026-02-15 00:30:45 INFO     [manager.py:reload:42] Configuration reloaded
    """
    return LazyLogger.get(
        name,
        log_level=log_level,
        log_to_console=log_to_console,
        log_to_file=LogConfig.LOG_TO_FILE if log_to_file is None else log_to_file,
        separate_log_file=separate_log_file,
    )


def cleanup():
    """全局清理函数"""
    LazyLogger.cleanup()
    HandlerFactory.cleanup()
    LogMetrics.reset()


logger = setup_logger("autotest_settings")
security_logger = setup_logger("autotest_settings.security", separate_log_file="security.log")

atexit.register(cleanup)

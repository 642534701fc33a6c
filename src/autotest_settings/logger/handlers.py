"""日志输出端"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional

from .config import LogConfig
from .formatters import SecurityFormatter


class HandlerFactory:
    """
    创建 console / rotating 两种输出端，并登记以便进程退出时统一关闭

    两种输出端共用 SecurityFormatter；文件输出端延迟打开（delay=True），
    未写日志时不会创建空文件
    """
    _created: List[logging.Handler] = []
    _lock = threading.RLock()

    @staticmethod
    def _log_dir(target_dir=None) -> Path:
        log_dir = Path(target_dir or LogConfig.LOG_DIR).resolve()
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise RuntimeError(f"Cannot create log directory {log_dir}: {e}") from e
        return log_dir

    @classmethod
    def create_handler(
        cls,
        handler_type: str,
        level: int,
        filename: Optional[str] = None,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        **kwargs
    ) -> logging.Handler:
        """
        Args:
            handler_type: "console"（默认写 stderr，可用 stream= 指定）或 "rotating"
            level: 输出端级别
            filename: 日志文件名（rotating，默认 LogConfig.MAIN_LOG_FILE）
            fmt / datefmt: 覆盖默认格式
            **kwargs: log_dir / maxBytes / backupCount / stream

        Raises:
            ValueError: 未知类型
            RuntimeError: 日志目录无法创建
        """
        if handler_type == "console":
            handler = logging.StreamHandler(kwargs.get("stream") or sys.stderr)
        elif handler_type == "rotating":
            handler = RotatingFileHandler(
                cls._log_dir(kwargs.get("log_dir")) / (filename or LogConfig.MAIN_LOG_FILE),
                maxBytes=kwargs.get("maxBytes", LogConfig.MAX_BYTES),
                backupCount=kwargs.get("backupCount", LogConfig.BACKUP_COUNT),
                encoding="utf-8",
                delay=True,
            )
        else:
            raise ValueError(f"Unknown handler type: {handler_type}")

        handler.setLevel(level)
        handler.setFormatter(SecurityFormatter(
            fmt or SecurityFormatter.STANDARD_FORMAT,
            datefmt or SecurityFormatter.DATE_FORMAT,
        ))
        with cls._lock:
            cls._created.append(handler)
        return handler

    @classmethod
    def cleanup(cls) -> None:
        with cls._lock:
            created, cls._created = cls._created, []
        for handler in created:
            try:
                handler.flush()
                handler.close()
            except (OSError, ValueError):
                # 流可能已被外部关闭
                pass

    @classmethod
    def get_handler_count(cls) -> int:
        with cls._lock:
            return len(cls._created)

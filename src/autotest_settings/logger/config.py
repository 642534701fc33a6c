"""
日志设置（全部来自环境变量）

LOG_LEVEL         日志级别（默认 INFO）
LOG_DIR           日志目录（默认 PROJECT_ROOT/logs）
LOG_FILE          主日志文件名（默认 settings.log）
LOG_TO_FILE       是否写文件（默认 false，库默认只输出到 stderr）
LOG_MAX_BYTES     单个日志文件上限（默认 10MB，最小 1KB）
LOG_BACKUP_COUNT  轮转保留份数（默认 7）
LOG_QUIET         关闭日志模块自身的 stderr 提示
"""

import os
import sys
from pathlib import Path
from typing import Optional

from .._path import PROJECT_ROOT

DEFAULT_MAX_BYTES = 10 * 1024 * 1024
DEFAULT_BACKUP_COUNT = 7
MIN_MAX_BYTES = 1024


class ConfigLoader:
    """环境变量读取与宽松类型转换"""

    TRUE_VALUES = frozenset({'true', '1', 'yes', 'y', 'on'})

    @staticmethod
    def get_env_var(name: str, default: Optional[str] = None) -> Optional[str]:
        value = os.environ.get(name)
        return default if value is None or value.strip() == '' else value.strip()

    @classmethod
    def parse_bool(cls, value) -> bool:
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in cls.TRUE_VALUES

    @staticmethod
    def parse_int(value, default: int) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return default


class LogConfig:
    """日志设置（类属性即当前生效值，refresh() 重新读取环境变量）"""
    LOG_DIR: Path = PROJECT_ROOT / 'logs'
    LOG_LEVEL: str = 'INFO'
    MAIN_LOG_FILE: str = 'settings.log'
    LOG_TO_FILE: bool = False
    MAX_BYTES: int = DEFAULT_MAX_BYTES
    BACKUP_COUNT: int = DEFAULT_BACKUP_COUNT
    QUIET: bool = False

    VALID_LOG_LEVELS = frozenset({'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'})

    @classmethod
    def initialize(cls):
        env = ConfigLoader.get_env_var
        cls.QUIET = ConfigLoader.parse_bool(env('LOG_QUIET', 'false'))
        cls.LOG_DIR = Path(env('LOG_DIR') or PROJECT_ROOT / 'logs')
        cls.LOG_LEVEL = env('LOG_LEVEL', 'INFO').upper()
        cls.MAIN_LOG_FILE = env('LOG_FILE', 'settings.log')
        cls.LOG_TO_FILE = ConfigLoader.parse_bool(env('LOG_TO_FILE', 'false'))
        cls.MAX_BYTES = ConfigLoader.parse_int(env('LOG_MAX_BYTES'), DEFAULT_MAX_BYTES)
        cls.BACKUP_COUNT = ConfigLoader.parse_int(env('LOG_BACKUP_COUNT'), DEFAULT_BACKUP_COUNT)
        cls._apply_fallbacks()

    @classmethod
    def _apply_fallbacks(cls):
        """非法取值回退到默认值"""
        if cls.LOG_LEVEL not in cls.VALID_LOG_LEVELS:
            cls._notice(f"Unknown LOG_LEVEL {cls.LOG_LEVEL!r}, falling back to INFO")
            cls.LOG_LEVEL = 'INFO'
        if cls.MAX_BYTES < MIN_MAX_BYTES:
            cls._notice(f"LOG_MAX_BYTES={cls.MAX_BYTES} is below {MIN_MAX_BYTES}, falling back to 10MB")
            cls.MAX_BYTES = DEFAULT_MAX_BYTES
        if cls.BACKUP_COUNT < 1:
            cls.BACKUP_COUNT = DEFAULT_BACKUP_COUNT

    @classmethod
    def _notice(cls, message: str):
        # 日志系统尚未就绪，直接写 stderr
        if not cls.QUIET:
            print(f"⚠️  {message}", file=sys.stderr)

    refresh = initialize


LogConfig.initialize()

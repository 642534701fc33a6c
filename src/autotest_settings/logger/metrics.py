"""脱敏过滤器计数"""

import threading
from collections import Counter
from typing import Dict


class LogMetrics:
    """
    CredentialMaskingFilter 运行计数（进程级）

    total_logs     经过过滤器的日志条数
    masked_logs    其中发生了脱敏的条数
    filter_errors  过滤器内部异常次数（日志本身照常输出）
    """
    KEYS = ("total_logs", "masked_logs", "filter_errors")

    _guard = threading.Lock()
    _counts: Counter = Counter()

    @classmethod
    def record(cls, key: str, value: int = 1):
        with cls._guard:
            cls._counts[key] += value

    @classmethod
    def get_snapshot(cls) -> Dict[str, int]:
        """当前计数副本（未出现的计数为 0）"""
        with cls._guard:
            snapshot = dict.fromkeys(cls.KEYS, 0)
            snapshot.update(cls._counts)
        return snapshot

    @classmethod
    def reset(cls):
        with cls._guard:
            cls._counts.clear()

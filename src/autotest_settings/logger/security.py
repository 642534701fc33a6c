"""日志脱敏模块"""

import logging
import sys

from .config import LogConfig
from .metrics import LogMetrics


def _masker():
    # 延迟导入：security 包依赖本日志模块
    from ..security import masker
    return masker


def mask_sensitive_data(message):
    """脱敏敏感数据（文本凭证 + URL 凭证）"""
    if not isinstance(message, str):
        return message
    masker = _masker()
    return masker.mask_url_credentials(masker.mask_in_text(message))


class CredentialMaskingFilter(logging.Filter):
    """
    凭证脱敏过滤器

    先完成 %-格式化再脱敏，避免 "password=%s" 这类模板被提前替换
    """

    def filter(self, record: logging.LogRecord) -> bool:
        try:
            message = record.getMessage()
            masked = mask_sensitive_data(message)
            if masked != message:
                LogMetrics.record("masked_logs")
            record.msg = masked
            record.args = None
            LogMetrics.record("total_logs")
        except Exception as e:
            LogMetrics.record("filter_errors")
            if not LogConfig.QUIET:
                print(f"⚠️  Credential masking filter error: {e}", file=sys.stderr)
        return True

"""单行安全日志格式"""

import logging
import re

from .security import mask_sensitive_data


class SecurityFormatter(logging.Formatter):
    """
    时间 级别 [文件:函数:行号] 消息

    - 消息中的换行替换为空格，终端控制序列直接移除（防日志注入）
    - 异常堆栈追加前同样经过凭证脱敏（连接串、口令常出现在异常消息中）
    """
    STANDARD_FORMAT = "%(asctime)s %(levelname)-8s [%(filename)s:%(funcName)s:%(lineno)d] %(message)s"
    DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

    _TERMINAL_ESCAPES = re.compile(r'\x1b\[[0-?]*[ -/]*[@-~]|\x1b[@-Z\\-_]|\x9b')
    _LINE_BREAKS = re.compile(r'[\r\n]+')

    def format(self, record: logging.LogRecord) -> str:
        if isinstance(record.msg, str):
            record.msg = self.single_line(record.msg)
        return super().format(record)

    def formatException(self, ei) -> str:
        return mask_sensitive_data(super().formatException(ei))

    @classmethod
    def single_line(cls, text: str) -> str:
        return cls._LINE_BREAKS.sub(' ', cls._TERMINAL_ESCAPES.sub('', text))

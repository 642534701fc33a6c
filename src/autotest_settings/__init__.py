"""
⚙️ autotest_settings - 测试框架配置与敏感信息管理

核心功能：
- ConfigManager: 五层合并配置（默认值 → 配置文件 → 环境变量 → 进程属性 → 敏感信息）
- SecretsManager: 有序 provider 链查找敏感信息
- CredentialMasker: 日志/报告中的凭证脱敏

使用示例：
#>>> from autotest_settings import get_config
#>>> config = get_config()
#>>> config.get_property("browser")
'chrome'
"""
import threading
from typing import Optional

from .config import ConfigManager, DefaultSettings, PropertiesLoader
from .exceptions import MissingSecretError, SecretAccessError
from .security import (
    CredentialMasker,
    EncryptedMemorySecretsProvider,
    EnvironmentSecretsProvider,
    SecretsManager,
    SecretsProvider,
    mask_in_text,
    mask_url_credentials,
    mask_value,
)

__version__ = "1.0.0"

__all__ = [
    # 核心类
    "ConfigManager",
    "DefaultSettings",
    "PropertiesLoader",
    "SecretsManager",
    "SecretsProvider",
    "EnvironmentSecretsProvider",
    "EncryptedMemorySecretsProvider",
    "CredentialMasker",

    # 异常
    "SecretAccessError",
    "MissingSecretError",

    # 便捷函数
    "init",
    "get_config",
    "get_secrets_manager",
    "reset",
    "mask_value",
    "mask_in_text",
    "mask_url_credentials",
]

# 全局实例（延迟初始化）
_lock = threading.RLock()
_secrets_manager: Optional[SecretsManager] = None
_config: Optional[ConfigManager] = None


def get_secrets_manager() -> SecretsManager:
    """延迟初始化共享 SecretsManager（避免模块加载时副作用）"""
    global _secrets_manager
    if _secrets_manager is None:
        with _lock:
            if _secrets_manager is None:
                _secrets_manager = SecretsManager()
    return _secrets_manager


def init(**kwargs) -> ConfigManager:
    """
    初始化共享 ConfigManager（进程内仅执行一次，重复调用返回同一实例）

    Args:
        **kwargs: 透传给 ConfigManager；未指定 secrets_manager 时使用共享实例

    Raises:
        MissingSecretError: 必需敏感信息缺失（此时不保存实例，可修复后重试）
    """
    global _config
    if _config is None:
        with _lock:
            if _config is None:
                if kwargs.get("secrets_manager") is None:
                    kwargs["secrets_manager"] = get_secrets_manager()
                _config = ConfigManager(**kwargs)
    return _config


def get_config() -> ConfigManager:
    """获取共享 ConfigManager（首次调用时按默认参数初始化）"""
    return init()


def reset() -> None:
    """丢弃共享实例（下一次访问重新构建，主要用于测试）"""
    global _secrets_manager, _config
    with _lock:
        _config = None
        _secrets_manager = None

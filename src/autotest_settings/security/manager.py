"""
🔐 SecretsManager - 多来源敏感信息门面

核心设计：
✅ provider 链顺序在构造时固定，先命中者优先
✅ 不跨 provider 缓存（每次调用重新遍历链，依赖各 provider 自身缓存）
✅ 必需密钥缺失立即失败，异常中附带配置指引
✅ 日志与异常消息中的敏感值统一脱敏

使用示例：
#>>> secrets = SecretsManager()
#>>> secrets.get_secret("STANDARD_USER")
'standard_user'
#>>> secrets.get_secret("OPTIONAL_TOKEN", required=False) is None
True
"""
import threading
from typing import Iterable, List, Optional, Tuple

from ..exceptions import MissingSecretError, SecretAccessError
from ..logger import logger, security_logger
from .env_provider import EnvironmentSecretsProvider
from .masker import mask_in_text, mask_value
from .provider import SecretsProvider


class SecretsManager:
    """
    敏感信息管理门面

    读操作无锁（provider 链构造后只读）；reload() 互斥执行
    """

    def __init__(self, providers: Optional[Iterable[SecretsProvider]] = None):
        """
        Args:
            providers: 有序 provider 链（默认仅 EnvironmentSecretsProvider）

        Raises:
            ValueError: provider 链为空
        """
        chain = tuple(providers) if providers is not None else (EnvironmentSecretsProvider(),)
        if not chain:
            raise ValueError("SecretsManager requires at least one secrets provider")

        self._providers: Tuple[SecretsProvider, ...] = chain
        self._reload_lock = threading.Lock()
        logger.info("SecretsManager initialized with %d provider(s): %s",
                    len(chain), ", ".join(self.get_active_providers()))

    @property
    def providers(self) -> Tuple[SecretsProvider, ...]:
        return self._providers

    @staticmethod
    def _validate_key(key: str) -> None:
        if not key:
            raise ValueError("Secret key cannot be null or empty")

    def get_secret(self, key: str, required: bool = True) -> Optional[str]:
        """
        按链顺序获取敏感值

        Args:
            key: 密钥名称
            required: 为 True 时未找到抛出异常；为 False 时返回 None

        Returns:
            Optional[str]: 敏感值

        Raises:
            ValueError: 键名为 None 或空
            MissingSecretError: required=True 且所有 provider 均未找到
        """
        self._validate_key(key)

        for provider in self._providers:
            value = provider.get_secret(key)
            if value:
                logger.debug("Key '%s' retrieved from provider: %s", key, provider.provider_name)
                return value

        if required:
            security_logger.error("Required key '%s' not found in any secrets provider", key)
            raise MissingSecretError.missing_secret(key)

        return None

    def has_secret(self, key: str) -> bool:
        """任一 provider 存在该密钥即为 True（空键名返回 False）"""
        if not key:
            return False
        return any(provider.has_secret(key) for provider in self._providers)

    def get_secret_masked(self, key: str) -> Optional[str]:
        """获取脱敏后的敏感值（安全日志用）"""
        return mask_value(self.get_secret(key))

    def reload(self) -> List[str]:
        """
        按链顺序重新加载所有 provider

        单个 provider 失败不影响其余 provider（尽力而为，非原子）

        Returns:
            List[str]: 加载失败的 provider 名称
        """
        failed = []
        with self._reload_lock:
            for provider in self._providers:
                try:
                    provider.reload()
                except Exception as e:
                    failed.append(provider.provider_name)
                    logger.error("Failed to reload secrets provider %s: %s",
                                 provider.provider_name, mask_in_text(str(e)))

        if failed:
            logger.warning("Secrets reloaded with %d failure(s): %s", len(failed), ", ".join(failed))
        else:
            logger.info("All secrets providers reloaded")
        return failed

    def validate_secret(self, key: str, value: Optional[str]) -> None:
        """
        校验新提供的敏感值

        Raises:
            SecretAccessError: 值为 None、空字符串、非字符串或仅包含空白
        """
        if not value:
            raise SecretAccessError(f"Secret '{key}' is null or empty")
        if not isinstance(value, str):
            raise SecretAccessError(f"Secret '{key}' must be a string, got {type(value).__name__}")
        if not value.strip():
            raise SecretAccessError(f"Secret '{key}' contains only whitespace")

    def get_active_providers(self) -> List[str]:
        """按链顺序返回 provider 名称"""
        return [provider.provider_name for provider in self._providers]

"""
SecretsProvider - 敏感信息来源抽象

扩展方式：实现本接口并追加到 SecretsManager 的 provider 链中，
SecretsManager 本身无需修改。已有实现：
- EnvironmentSecretsProvider（环境变量 + .env 文件）
- EncryptedMemorySecretsProvider（内存加密存储）
"""
from abc import ABC, abstractmethod
from typing import Optional


class SecretsProvider(ABC):
    """敏感信息来源接口"""

    @abstractmethod
    def get_secret(self, key: str) -> Optional[str]:
        """
        按键名查找敏感值

        缺失是正常结果（返回 None），不得抛出异常；
        None 或空键名同样返回 None

        Args:
            key: 密钥名称

        Returns:
            Optional[str]: 敏感值，未找到时为 None
        """

    def has_secret(self, key: str) -> bool:
        """检查密钥是否存在（与 get_secret 保持一致）"""
        return self.get_secret(key) is not None

    @abstractmethod
    def reload(self) -> None:
        """丢弃缓存并重新读取来源（需与并发读取安全共存）"""

    @property
    def provider_name(self) -> str:
        """稳定的来源标识（用于日志/诊断）"""
        return type(self).__name__

    def __repr__(self) -> str:
        return f"<{self.provider_name}>"

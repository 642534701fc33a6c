"""
🔐 EncryptedMemorySecretsProvider - 内存加密存储

安全设计：
✅ 内存中仅存储加密字节（无明文缓存）
✅ 每次 get_secret() 动态解密（最小化明文生命周期）
✅ 不提供持久化，进程结束后数据丢失

典型用途：测试中注入凭证、运行时从外部系统获取的一次性凭证。

使用示例：
#>>> provider = EncryptedMemorySecretsProvider({"STANDARD_USER": "standard_user"})
#>>> manager = SecretsManager([provider, EnvironmentSecretsProvider()])
#>>> manager.get_secret("STANDARD_USER")
'standard_user'
"""
from typing import Dict, List, Mapping, Optional

from cryptography.fernet import Fernet, InvalidToken

from ..logger import security_logger
from .provider import SecretsProvider


class EncryptedMemorySecretsProvider(SecretsProvider):
    """内存加密存储的敏感信息来源"""

    def __init__(self, secrets: Optional[Mapping[str, str]] = None, fernet: Optional[Fernet] = None):
        """
        Args:
            secrets: 初始键值对
            fernet: 加密器（默认生成进程内临时密钥）
        """
        self._fernet = fernet or Fernet(Fernet.generate_key())
        self._encrypted_cache: Dict[str, bytes] = {}
        for name, value in (secrets or {}).items():
            self.set_secret(name, value)

    def set_secret(self, name: str, value: str) -> None:
        """
        安全存储敏感信息（内存加密）

        Raises:
            ValueError: 键名为空
            TypeError: value 不是字符串
        """
        if not name:
            raise ValueError("Secret key cannot be null or empty")
        if not isinstance(value, str):
            raise TypeError(f"Secret value must be str, got {type(value).__name__}")

        self._encrypted_cache[name] = self._fernet.encrypt(value.encode())
        security_logger.info("Stored '%s' in memory (encrypted)", name)

    def get_secret(self, key: str) -> Optional[str]:
        if not key:
            return None
        encrypted = self._encrypted_cache.get(key)
        if encrypted is None:
            return None
        try:
            value = self._fernet.decrypt(encrypted).decode()
        except InvalidToken:
            security_logger.error("Decryption failed for in-memory key '%s'", key)
            return None
        return value or None

    def delete_secret(self, name: str) -> bool:
        """从内存中删除，返回是否存在"""
        if self._encrypted_cache.pop(name, None) is not None:
            security_logger.info("Purged '%s' from memory", name)
            return True
        return False

    def list_secrets(self) -> List[str]:
        """列出所有密钥名称（不解密）"""
        return list(self._encrypted_cache.keys())

    def reload(self) -> None:
        # 内存即来源，无外部数据可重新读取
        security_logger.debug("In-memory secrets kept on reload (%d entries)", len(self._encrypted_cache))

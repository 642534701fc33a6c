"""
🔐 敏感信息模块

核心功能：
- CredentialMasker: 凭证脱敏（值 / 文本 / URL）
- SecretsProvider: 敏感信息来源抽象
- EnvironmentSecretsProvider: 环境变量 + .env 文件（支持 ENC[...] 加密字段）
- EncryptedMemorySecretsProvider: 内存加密存储
- SecretsManager: 多来源有序解析门面
"""
from .masker import (
    CredentialMasker,
    mask_value,
    mask_in_text,
    mask_url_credentials,
    mask_mapping,
)
from .provider import SecretsProvider
from .env_provider import EnvironmentSecretsProvider
from .memory_provider import EncryptedMemorySecretsProvider
from .manager import SecretsManager
from .crypto import encrypt_value, decrypt_value, generate_key_file, is_encrypted_value

__all__ = [
    "CredentialMasker",
    "SecretsProvider",
    "EnvironmentSecretsProvider",
    "EncryptedMemorySecretsProvider",
    "SecretsManager",

    "mask_value",
    "mask_in_text",
    "mask_url_credentials",
    "mask_mapping",
    "encrypt_value",
    "decrypt_value",
    "generate_key_file",
    "is_encrypted_value",
]

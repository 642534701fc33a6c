"""
EnvironmentSecretsProvider - 环境变量 + .env 文件

查找顺序：
  1. 进程环境变量（最高优先级）
  2. 项目根目录下的 .env 文件（仅当环境变量中不存在时）

缓存约定：首次成功解析的值按键缓存，仅 reload() 会清空缓存。
首次访问后再写入环境变量的值在 reload() 前不可见。
"""
import os
import threading
from pathlib import Path
from typing import Dict, Mapping, NamedTuple, Optional, Union

from cryptography.fernet import Fernet
from dotenv import dotenv_values

from .._path import PROJECT_ROOT
from ..logger import logger, security_logger
from .crypto import decrypt_value, is_encrypted_value, load_fernet
from .masker import mask_in_text
from .provider import SecretsProvider


class _Snapshot(NamedTuple):
    """一次加载的完整状态（reload 时整体替换）"""
    entries: Dict[str, str]
    fernet: Optional[Fernet]
    cache: Dict[str, str]


def default_env_file() -> Path:
    """默认 .env 路径：ENV_FILE 环境变量 > 项目根目录"""
    return Path(os.getenv("ENV_FILE") or PROJECT_ROOT / ".env")


class EnvironmentSecretsProvider(SecretsProvider):
    """从环境变量和 .env 文件读取敏感信息"""

    def __init__(
            self,
            env_file: Optional[Union[str, Path]] = None,
            key_file: Optional[Union[str, Path]] = None,
            environ: Optional[Mapping[str, str]] = None
    ):
        """
        Args:
            env_file: .env 文件路径（默认 ENV_FILE 或 PROJECT_ROOT/.env）
            key_file: ENC[...] 字段的 Fernet 密钥文件（默认 SECRET_KEY_FILE）
            environ: 环境变量映射（默认 os.environ，实时读取）
        """
        self._env_file = Path(env_file) if env_file else default_env_file()
        self._key_file = key_file
        self._environ = os.environ if environ is None else environ
        self._lock = threading.Lock()
        self._state = self._load()

    @property
    def env_file(self) -> Path:
        return self._env_file

    def _load(self) -> _Snapshot:
        return _Snapshot(entries=self._load_dotenv(), fernet=self._load_key(), cache={})

    def _load_dotenv(self) -> Dict[str, str]:
        """读取 .env（缺失或损坏时降级为仅环境变量）"""
        if not self._env_file.exists():
            logger.info("No .env file found at %s, will use environment variables only", self._env_file)
            return {}

        try:
            raw = dotenv_values(self._env_file, encoding="utf-8")
        except (OSError, UnicodeDecodeError, ValueError) as e:
            logger.warning(
                "Failed to load .env file %s: %s. Will use environment variables only.",
                self._env_file, mask_in_text(str(e))
            )
            return {}

        entries = {k: v for k, v in raw.items() if k and v}
        logger.info("Loaded %d secrets from .env file", len(entries))
        return entries

    def _load_key(self) -> Optional[Fernet]:
        """加载解密密钥（可选）"""
        try:
            return load_fernet(self._key_file)
        except (OSError, ValueError) as e:
            security_logger.warning("Encryption key unavailable, ENC[...] values cannot be read: %s", e)
            return None

    def _decode(self, key: str, raw: Optional[str], source: str, fernet: Optional[Fernet]) -> Optional[str]:
        """空值视为缺失；ENC[...] 格式自动解密"""
        if not raw:
            return None
        if not is_encrypted_value(raw):
            logger.debug("Key '%s' loaded from %s", key, source)
            return raw

        if fernet is None:
            security_logger.error("Key '%s' in %s is encrypted but no key file is configured", key, source)
            return None
        try:
            value = decrypt_value(raw, fernet)
        except ValueError as e:
            security_logger.error("Decryption failed for key '%s' from %s: %s", key, source, mask_in_text(str(e)))
            return None
        security_logger.info("Decrypted key '%s' from %s", key, source)
        return value or None

    def get_secret(self, key: str) -> Optional[str]:
        if not key:
            return None

        state = self._state
        cached = state.cache.get(key)
        if cached is not None:
            return cached

        value = self._decode(key, self._environ.get(key), "environment variable", state.fernet)
        if value is None:
            value = self._decode(key, state.entries.get(key), ".env file", state.fernet)

        if value is None:
            logger.debug("Key '%s' not found in environment variables or .env file", key)
            return None
        return state.cache.setdefault(key, value)

    def reload(self) -> None:
        with self._lock:
            self._state = self._load()
        logger.info("Secrets reloaded from environment and .env file")

    @property
    def cached_keys(self):
        """已缓存的键名（不含值）"""
        return sorted(self._state.cache)

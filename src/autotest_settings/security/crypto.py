"""
🔐 Fernet 加解密工具（.env 中 ENC[...] 格式字段）

.env 文件格式示例：
    # 明文字段
    STANDARD_USER=standard_user

    # 加密字段
    TEST_PASSWORD=ENC[gAAAAABkX9J3mZqV7XqV7XqV7XqV7XqV7XqV7XqV7XqV7XqV7XqV7XqV7]

生成密钥：
    python -c "from autotest_settings.security.crypto import generate_key_file; generate_key_file()"
"""
import os
import re
from pathlib import Path
from typing import Optional, Union

from cryptography.fernet import Fernet, InvalidToken

from .._path import PROJECT_ROOT

DEFAULT_KEY_FILE = PROJECT_ROOT / "config" / "secrets" / ".secret_key"

# Fernet 密钥必须为 44 字节 URL 安全 base64
KEY_LENGTH = 44

# 加密值正则模式：ENC[base64_encoded_value]
ENC_PATTERN = re.compile(r'^ENC\[(?P<value>[A-Za-z0-9_\-+=/]+)\]$')


def resolve_key_file(key_file: Optional[Union[str, Path]] = None) -> Path:
    """密钥文件路径：参数 > SECRET_KEY_FILE 环境变量 > 默认路径"""
    if key_file:
        return Path(key_file)
    env_path = os.getenv("SECRET_KEY_FILE")
    return Path(env_path) if env_path else DEFAULT_KEY_FILE


def _diagnose_key_issue(key_bytes: bytes) -> str:
    """
    诊断密钥问题

    Args:
        key_bytes: 原始密钥字节

    Returns:
        str: 诊断信息
    """
    length = len(key_bytes)
    lines = [f"Invalid key length: {length} bytes (expected {KEY_LENGTH})"]

    if length == KEY_LENGTH + 1 and key_bytes.endswith(b'\n'):
        lines.append("   → Contains Unix newline \\n (use 'wb' mode when generating)")
    elif length == KEY_LENGTH + 2 and key_bytes.endswith(b'\r\n'):
        lines.append("   → Contains Windows CRLF \\r\\n")
    elif length == 32:
        lines.append("   → Raw 32-byte key (not base64-encoded)")
    elif length < 40:
        lines.append("   → Severely truncated key")

    lines.append("Regenerate with: generate_key_file()")
    return "\n".join(lines)


def load_fernet(key_file: Optional[Union[str, Path]] = None) -> Optional[Fernet]:
    """
    加载 Fernet 实例

    Returns:
        Optional[Fernet]: 密钥文件不存在时为 None

    Raises:
        ValueError: 密钥格式无效
    """
    path = resolve_key_file(key_file)
    if not path.exists():
        return None

    with open(path, 'rb') as f:
        raw_key = f.read()

    stripped_key = raw_key.strip()
    if len(stripped_key) != KEY_LENGTH:
        raise ValueError(_diagnose_key_issue(stripped_key))

    try:
        return Fernet(stripped_key)
    except (ValueError, TypeError) as e:
        raise ValueError(f"Key validation failed: {e}") from e


def is_encrypted_value(value: Optional[str]) -> bool:
    """
    检查值是否为加密格式

    Example:
        >>> is_encrypted_value("ENC[gAAAAABkX9J3mZqV7X==]")
        True
        >>> is_encrypted_value("secret_sauce")
        False
    """
    return isinstance(value, str) and bool(ENC_PATTERN.match(value.strip()))


def encrypt_value(value: str, fernet: Fernet) -> str:
    """
    加密单个值并格式化为 ENC[...] 格式

    Args:
        value: 明文值
        fernet: Fernet 实例

    Returns:
        str: ENC[...] 格式字符串
    """
    token = fernet.encrypt(value.encode('utf-8'))
    return f"ENC[{token.decode('utf-8')}]"


def decrypt_value(encrypted_str: str, fernet: Fernet) -> str:
    """
    解密 ENC[...] 格式的值

    Raises:
        ValueError: 格式无效或解密失败（密钥不匹配/数据损坏）
    """
    match = ENC_PATTERN.match(encrypted_str.strip())
    if not match:
        raise ValueError("Invalid ENC format: must be ENC[...]")

    try:
        return fernet.decrypt(match.group('value').encode('utf-8')).decode('utf-8')
    except InvalidToken as e:
        raise ValueError(
            "Decryption failed: invalid Fernet token, key mismatch or corrupted data"
        ) from e


def generate_key_file(filepath: Optional[Union[str, Path]] = None) -> Path:
    """
    生成密钥文件

    Args:
        filepath: 密钥文件路径（默认 SECRET_KEY_FILE 或 config/secrets/.secret_key）

    Returns:
        Path: 密钥文件路径
    """
    key_path = resolve_key_file(filepath)
    key_path.parent.mkdir(parents=True, exist_ok=True)

    # 二进制模式写入（避免换行符污染）
    with open(key_path, 'wb') as f:
        f.write(Fernet.generate_key())

    if os.name != 'nt':
        key_path.chmod(0o600)
    return key_path

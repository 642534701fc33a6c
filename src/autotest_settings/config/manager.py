"""
配置管理核心

合并顺序（后者覆盖前者）：
  1. 内置默认值（DefaultSettings）
  2. 配置文件（config/config.properties 或 YAML，缺失时跳过）
  3. 环境变量白名单覆盖（BROWSER → browser 等）
  4. 进程属性覆盖（仅覆盖已存在的键）
  5. 敏感信息（必需，缺失立即失败）

示例：
#>>> config = ConfigManager()
#>>> config.get_int("implicit.wait", 10)
10
#>>> config.get_property("standard.user")
'standard_user'
"""
import os
import re
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

import yaml

from .._path import PROJECT_ROOT
from ..exceptions import SecretAccessError
from ..logger import logger
from ..security.manager import SecretsManager
from ..security.masker import is_sensitive_key, mask_in_text, mask_mapping, mask_url_credentials, mask_value
from .defaults import DefaultSettings
from .properties_loader import PropertiesLoader

INT_MIN, INT_MAX = -2 ** 31, 2 ** 31 - 1
LONG_MIN, LONG_MAX = -2 ** 63, 2 ** 63 - 1

# 仅接受 ASCII 十进制整数（不接受 "1_000"、全角数字等）
_INTEGER = re.compile(r"^[+-]?[0-9]+$")

_TRUE_VALUES = frozenset({"true", "1", "yes", "y", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "n", "off"})


def default_config_path() -> Path:
    """默认配置文件路径：CONFIG_FILE 环境变量 > config/config.properties"""
    return Path(os.getenv("CONFIG_FILE") or PROJECT_ROOT / "config" / "config.properties")


def env_to_property_key(name: str) -> str:
    """UPPER_SNAKE_CASE → lower.dotted.case"""
    return name.lower().replace("_", ".")


class ConfigManager:
    """配置管理核心（单一查询入口）"""

    # 允许覆盖配置的环境变量白名单
    ENV_OVERRIDES: Tuple[str, ...] = ("BROWSER", "HEADLESS", "SELENIUM_GRID_URL", "TEST_ENV", "THREAD_COUNT")
    GRID_URL_VAR = "SELENIUM_GRID_URL"

    # 启动时必须存在的敏感信息
    SECRET_KEYS: Tuple[str, ...] = (
        "STANDARD_USER",
        "LOCKED_USER",
        "PROBLEM_USER",
        "PERFORMANCE_USER",
        "TEST_PASSWORD",
    )

    def __init__(
            self,
            secrets_manager: Optional[SecretsManager] = None,
            config_path: Optional[Union[str, Path]] = None,
            system_properties: Optional[Mapping[str, str]] = None,
            environ: Optional[Mapping[str, str]] = None,
            env_overrides: Optional[Iterable[str]] = None,
            secret_keys: Optional[Iterable[str]] = None,
            defaults: Optional[DefaultSettings] = None
    ):
        """
        构造并立即加载配置

        Args:
            secrets_manager: 敏感信息门面（默认新建）
            config_path: 配置文件路径（默认 CONFIG_FILE 或 config/config.properties）
            system_properties: 进程属性（第 4 层）
            environ: 环境变量映射（默认 os.environ）
            env_overrides: 环境变量白名单（默认 ENV_OVERRIDES）
            secret_keys: 必需敏感信息名称（默认 SECRET_KEYS）
            defaults: 内置默认值

        Raises:
            MissingSecretError: 任一必需敏感信息缺失
        """
        self._secrets = secrets_manager or SecretsManager()
        self._config_path = Path(config_path) if config_path else default_config_path()
        self._system_properties: Dict[str, str] = dict(system_properties or {})
        self._environ = os.environ if environ is None else environ
        self._env_overrides = tuple(env_overrides) if env_overrides is not None else self.ENV_OVERRIDES
        self._secret_keys = tuple(secret_keys) if secret_keys is not None else self.SECRET_KEYS
        self._defaults = defaults or DefaultSettings()
        self._loader = PropertiesLoader()
        self._lock = threading.Lock()

        with self._lock:
            self._properties: Dict[str, str] = self._load_properties()

    @property
    def secrets_manager(self) -> SecretsManager:
        return self._secrets

    @property
    def config_path(self) -> Path:
        return self._config_path

    # ==================== 加载 ====================

    def _load_properties(self) -> Dict[str, str]:
        """从头构建完整配置（返回新字典，不修改当前配置）"""
        store = self._defaults.to_properties()
        self._apply_config_file(store)
        self._apply_environment(store)
        self._apply_system_properties(store)
        self._apply_secrets(store)
        logger.info("Configuration loaded successfully (%d keys)", len(store))
        return store

    def _apply_config_file(self, store: Dict[str, str]) -> None:
        try:
            file_values = self._loader.load(self._config_path)
        except (OSError, ValueError) as e:
            logger.warning("Could not load config file, using defaults: %s", mask_in_text(str(e)))
            return
        store.update(file_values)
        logger.info("Loaded %d properties from %s", len(file_values), self._config_path)

    def _apply_environment(self, store: Dict[str, str]) -> None:
        for var in self._env_overrides:
            value = self._environ.get(var)
            if value:
                key = env_to_property_key(var)
                store[key] = value
                logger.info("Overridden from ENV: %s = %s", key, self._display(key, value))

        # Grid 地址同时开启 grid 模式
        grid_url = self._environ.get(self.GRID_URL_VAR)
        if grid_url:
            store["selenium.grid"] = "true"
            store["selenium.grid.url"] = grid_url

    def _apply_system_properties(self, store: Dict[str, str]) -> None:
        for key in list(store):
            value = self._system_properties.get(key)
            if value:
                store[key] = value
                logger.debug("Overridden from System Property: %s = %s", key, self._display(key, value))

    def _apply_secrets(self, store: Dict[str, str]) -> None:
        for secret_key in self._secret_keys:
            try:
                value = self._secrets.get_secret(secret_key, required=True)
            except SecretAccessError as e:
                logger.error("Failed to load required key '%s' (%s), aborting configuration load", secret_key, type(e).__name__)
                raise
            property_key = env_to_property_key(secret_key)
            store[property_key] = value
            logger.debug("SecretsManager provided '%s'", property_key)

    @staticmethod
    def _display(key: str, value: Optional[str]) -> Optional[str]:
        """日志展示用的值（凭证类键完全脱敏）"""
        if is_sensitive_key(key):
            return mask_value(value)
        return mask_url_credentials(value)

    # ==================== 读取 ====================

    def get_property(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """获取字符串配置"""
        return self._properties.get(key, default)

    get_string = get_property

    def _get_number(self, key: str, default, kind: str, lower: int, upper: int):
        value = self._properties.get(key)
        if value is None:
            return default
        text = value.strip()
        if not _INTEGER.match(text):
            logger.warning("Invalid %s for key %s: %s", kind, key, self._display(key, value))
            return default
        number = int(text)
        if not lower <= number <= upper:
            logger.warning("Out of range %s for key %s: %s", kind, key, self._display(key, value))
            return default
        return number

    def get_int(self, key: str, default: int) -> int:
        """获取 32 位整数配置（无法解析时记录警告并返回默认值）"""
        return self._get_number(key, default, "integer", INT_MIN, INT_MAX)

    def get_long(self, key: str, default: int) -> int:
        """获取 64 位整数配置（无法解析时记录警告并返回默认值）"""
        return self._get_number(key, default, "long", LONG_MIN, LONG_MAX)

    def get_float(self, key: str, default: float) -> float:
        """获取浮点数配置"""
        value = self._properties.get(key)
        if value is None:
            return default
        try:
            return float(value.strip())
        except ValueError:
            logger.warning("Invalid float for key %s: %s", key, self._display(key, value))
            return default

    def get_boolean(self, key: str, default: bool) -> bool:
        """
        获取布尔配置

        接受 true/false、1/0、yes/no、y/n、on/off（不区分大小写），
        其他值记录警告并返回默认值
        """
        value = self._properties.get(key)
        if value is None:
            return default
        normalized = value.strip().lower()
        if normalized in _TRUE_VALUES:
            return True
        if normalized in _FALSE_VALUES:
            return False
        logger.warning("Invalid boolean for key %s: %s", key, self._display(key, value))
        return default

    def get_credential_masked(self, key: str) -> Optional[str]:
        """获取脱敏后的凭证（日志用）"""
        return mask_value(self.get_property(key))

    def keys(self) -> List[str]:
        return list(self._properties)

    def as_dict(self) -> Dict[str, str]:
        """配置副本（含明文凭证，勿直接记录日志）"""
        return dict(self._properties)

    def __contains__(self, key: object) -> bool:
        return key in self._properties

    # ==================== 写入 / 重载 ====================

    def set_property(self, key: str, value: str) -> None:
        """
        运行时覆盖（优先级最高，直到下一次 reload()）

        Raises:
            ValueError: 键名为空或值为 None
        """
        if not key:
            raise ValueError("Property key cannot be null or empty")
        if value is None:
            raise ValueError(f"Property value for '{key}' cannot be None")
        self._properties[key] = str(value)

    def apply_overrides(self, overrides_str: str) -> None:
        """
        应用命令行覆盖（作为进程属性层，仅覆盖已存在的键）
        格式: "key1=value1,key2.subkey=value2"
        """
        if not overrides_str:
            return

        for pair in overrides_str.split(","):
            if "=" not in pair:
                continue
            key, value = pair.split("=", 1)
            key = key.strip()
            if key:
                self._system_properties[key] = value.strip()
        self.reload()

    def reload(self) -> None:
        """
        重新加载：先刷新敏感信息来源，再完整重建五层配置

        新配置构建完成后整体替换，读取方不会看到半成品；
        构建失败（如必需密钥缺失）时保留原配置并抛出异常
        """
        with self._lock:
            self._secrets.reload()
            self._loader.clear_cache()
            self._properties = self._load_properties()
        logger.info("Configuration reloaded")

    def to_yaml(self) -> str:
        """生成配置快照 YAML（凭证已脱敏）"""
        return yaml.safe_dump(mask_mapping(self.as_dict()), default_flow_style=False,
                              sort_keys=False, allow_unicode=True)

import logging
import re
import sys
import warnings
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pytest
import yaml

import autotest_settings
from autotest_settings.security import EncryptedMemorySecretsProvider, SecretsManager

TEST_DATA_DIR = Path(__file__).parent / "test_data"

# 五个必需凭证（与 ConfigManager.SECRET_KEYS 一致）
REQUIRED_SECRETS = {
    "STANDARD_USER": "standard_user",
    "LOCKED_USER": "locked_out_user",
    "PROBLEM_USER": "problem_user",
    "PERFORMANCE_USER": "performance_glitch_user",
    "TEST_PASSWORD": "secret_sauce",
}

# 测试期间必须从进程环境中移除的变量
_ISOLATED_ENV_VARS = (
    "BROWSER", "HEADLESS", "SELENIUM_GRID_URL", "TEST_ENV", "THREAD_COUNT",
    "ENV_FILE", "CONFIG_FILE", "SECRET_KEY_FILE",
) + tuple(REQUIRED_SECRETS)


class InvalidYamlFormatError(ValueError):
    """YAML 用例文件格式验证失败"""


# ==================== YAML 用例加载（带缓存） ====================
@lru_cache(maxsize=32)
def _cached_load_yaml(file_path_str: str) -> Dict[str, List[Dict[str, Any]]]:
    """
    加载并验证 YAML 用例文件

    结构: {group_name: [case_dict, ...]}，单个字典视为单用例
    """
    file_path = Path(file_path_str)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            raw_data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise InvalidYamlFormatError(f"YAML 语法错误 in {file_path}:\n{e}")

    if raw_data is None:
        return {}
    if not isinstance(raw_data, dict):
        raise InvalidYamlFormatError(f"YAML 根必须是字典，当前类型: {type(raw_data).__name__}")

    normalized: Dict[str, List[Dict[str, Any]]] = {}
    for group_name, value in raw_data.items():
        cases = [value] if isinstance(value, dict) else value
        if not isinstance(cases, list) or not all(isinstance(c, dict) for c in cases):
            raise InvalidYamlFormatError(f"组 '{group_name}' 的值必须是字典或字典列表")
        normalized[group_name] = cases
    return normalized


def _case_id(case: Dict[str, Any], group_name: str, idx: int) -> str:
    """生成可读性用例 ID（pytest 要求有效标识符风格）"""
    case_id = str(case.get("id", "")) or f"{group_name}_{idx}"
    case_id = re.sub(r'[^a-zA-Z0-9_]', '_', case_id)
    case_id = re.sub(r'_+', '_', case_id).strip('_')
    if not case_id or not case_id[0].isalpha():
        case_id = f"{group_name}_{idx}"
    return case_id


# ==================== 核心钩子 ====================
def pytest_generate_tests(metafunc):
    """
    @pytest.mark.yaml_data(file=..., group=...) 动态参数化

    测试函数参数名必须与 YAML 字段名完全一致
    """
    marker = metafunc.definition.get_closest_marker("yaml_data")
    if marker is None:
        return

    try:
        file_name = marker.kwargs["file"]
        group_name = marker.kwargs["group"]
    except KeyError as e:
        raise pytest.UsageError(
            f"[YAML数据错误] in {metafunc.definition.nodeid}\n"
            f"@pytest.mark.yaml_data 缺少必需参数 {e}\n"
            f"  正确用法: @pytest.mark.yaml_data(file='xxx.yaml', group='yyy')"
        )

    abs_file_path = TEST_DATA_DIR / file_name
    if not abs_file_path.exists():
        _warn_and_skip(metafunc, f"YAML数据文件不存在，跳过测试: {abs_file_path}")
        return

    try:
        groups = _cached_load_yaml(str(abs_file_path))
    except InvalidYamlFormatError as e:
        raise pytest.UsageError(f"[YAML数据错误] in {metafunc.definition.nodeid}\n{e}")

    cases = groups.get(group_name)
    if not cases:
        _warn_and_skip(metafunc, f"YAML中不存在用例组 '{group_name}'，可用组: {list(groups)}")
        return

    yaml_fields = set(cases[0])
    param_names = [p for p in metafunc.fixturenames if p in yaml_fields]
    if not param_names:
        raise pytest.UsageError(
            f"[YAML数据错误] in {metafunc.definition.nodeid}\n"
            f"测试函数参数与YAML字段无匹配\n"
            f"  YAML字段: {sorted(yaml_fields)}\n"
            f"  测试参数: {sorted(metafunc.fixturenames)}"
        )

    param_values: List[Tuple[Any, ...]] = []
    param_ids: List[str] = []
    for idx, case in enumerate(cases):
        if any(p not in case for p in param_names):
            continue  # 跳过字段缺失的用例
        param_values.append(tuple(case[p] for p in param_names))
        param_ids.append(_case_id(case, group_name, idx))

    metafunc.parametrize(",".join(param_names), param_values, ids=param_ids, scope="function")


def _warn_and_skip(metafunc, message: str) -> None:
    """
    收集阶段不能调用 pytest.skip()：发出警告并参数化空列表，
    pytest 会将测试标记为 skipped
    """
    full_message = f"[YAML数据] in {metafunc.definition.nodeid}\n{message}"
    warnings.warn(full_message, UserWarning, stacklevel=2)
    print(f"\n⚠️  YAML数据跳过 [{metafunc.definition.nodeid}]:\n{message}", file=sys.stderr)

    safe_params = [
        p for p in metafunc.fixturenames
        if p.isidentifier() and not p.startswith("_") and p != "request"
    ]
    metafunc.parametrize(safe_params[0] if safe_params else "yaml_skip_marker", [], ids=[])


# ==================== 公共 fixture ====================
@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    """移除会影响配置解析的进程环境变量，.env 指向不存在的临时路径"""
    for name in _ISOLATED_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENV_FILE", str(tmp_path / "missing.env"))
    monkeypatch.setenv("SECRET_KEY_FILE", str(tmp_path / "missing.key"))
    yield


@pytest.fixture(autouse=True)
def reset_shared_instances():
    """每个用例前后丢弃进程级共享实例"""
    autotest_settings.reset()
    yield
    autotest_settings.reset()


@pytest.fixture
def required_secrets() -> Dict[str, str]:
    return dict(REQUIRED_SECRETS)


@pytest.fixture
def memory_provider(required_secrets) -> EncryptedMemorySecretsProvider:
    return EncryptedMemorySecretsProvider(required_secrets)


@pytest.fixture
def secrets_manager(memory_provider) -> SecretsManager:
    return SecretsManager([memory_provider])


@pytest.fixture
def write_file(tmp_path):
    """在临时目录中写入文本文件，返回路径"""

    def _write(name: str, content: str) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return path

    return _write


class _ListHandler(logging.Handler):
    """收集日志记录（过滤器已在日志器层执行，记录中为脱敏后的消息）"""

    def __init__(self):
        super().__init__(logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record):
        self.records.append(record)

    @property
    def messages(self) -> List[str]:
        return [record.getMessage() for record in self.records]


@pytest.fixture
def log_capture():
    """捕获 autotest_settings 日志（日志器 propagate=False，caplog 无法捕获）"""
    handler = _ListHandler()
    loggers = [logging.getLogger("autotest_settings"), logging.getLogger("autotest_settings.security")]
    levels = [lg.level for lg in loggers]
    for lg in loggers:
        lg.addHandler(handler)
        lg.setLevel(logging.DEBUG)
    yield handler
    for lg, level in zip(loggers, levels):
        lg.removeHandler(handler)
        lg.setLevel(level)

"""
配置文件加载器

支持两种格式：
- .properties: 扁平 key=value（# / ! 注释，= / : / 空白分隔，反斜杠续行）
- .yaml / .yml: 嵌套字典，展开为 lower.dotted.case 键
"""
from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import yaml

_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_SEPARATORS = "=:"
_WHITESPACE = " \t\f"


class PropertiesLoader:
    """配置文件加载器（带修改时间缓存）"""

    YAML_SUFFIXES = (".yaml", ".yml")

    def __init__(self):
        self._cache: Dict[Path, Tuple[Dict[str, str], float]] = {}  # {path: (data, mtime)}

    def load(self, path: Union[str, Path]) -> Dict[str, str]:
        """
        加载配置文件

        Raises:
            FileNotFoundError: 文件不存在
            ValueError: 文件内容无法解析
        """
        file_path = Path(path)
        if not file_path.is_file():
            raise FileNotFoundError(f"Config file not found: {file_path}")

        mtime = file_path.stat().st_mtime
        cached = self._cache.get(file_path)
        if cached is not None and cached[1] >= mtime:
            return dict(cached[0])

        try:
            text = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ValueError(f"Config file is not valid UTF-8 ({file_path}): {e}") from e

        if file_path.suffix.lower() in self.YAML_SUFFIXES:
            data = self._parse_yaml(text, file_path)
        else:
            data = self.parse_properties(text)

        self._cache[file_path] = (data, mtime)
        return dict(data)

    def clear_cache(self):
        """清除缓存"""
        self._cache.clear()

    # ==================== .properties ====================

    @classmethod
    def parse_properties(cls, text: str) -> Dict[str, str]:
        """
        解析 .properties 文本

        Example:
            >>> PropertiesLoader.parse_properties("base.url = https://example.com\\n# note\\nheadless:true")
            {'base.url': 'https://example.com', 'headless': 'true'}
        """
        result: Dict[str, str] = {}
        for line in cls._logical_lines(text):
            key, value = cls._split_key_value(line)
            result[cls._unescape(key)] = cls._unescape(value)
        return result

    @staticmethod
    def _logical_lines(text: str) -> List[str]:
        """合并续行，跳过空行和注释"""
        lines = []
        buffer = ""
        continuing = False
        for raw in text.splitlines():
            line = raw.lstrip(_WHITESPACE)
            if not continuing and (not line or line[0] in "#!"):
                continue

            # 行尾奇数个反斜杠表示续行
            trailing = len(line) - len(line.rstrip("\\"))
            if trailing % 2 == 1:
                buffer += line[:-1]
                continuing = True
                continue

            lines.append(buffer + line)
            buffer = ""
            continuing = False

        if buffer:
            lines.append(buffer)
        return lines

    @staticmethod
    def _split_key_value(line: str) -> Tuple[str, str]:
        """在首个未转义的分隔符处拆分"""
        index = 0
        length = len(line)
        while index < length:
            char = line[index]
            if char == "\\":
                index += 2
                continue
            if char in _SEPARATORS or char in _WHITESPACE:
                break
            index += 1

        key = line[:index]
        rest = line[index:].lstrip(_WHITESPACE)
        if rest and rest[0] in _SEPARATORS:
            rest = rest[1:].lstrip(_WHITESPACE)
        return key, rest

    @staticmethod
    def _unescape(text: str) -> str:
        """
        处理转义序列（\\t \\n \\uXXXX 等）

        Raises:
            ValueError: \\u 转义格式错误
        """
        if "\\" not in text:
            return text

        chars = []
        index = 0
        while index < len(text):
            char = text[index]
            if char != "\\" or index + 1 >= len(text):
                chars.append(char)
                index += 1
                continue

            nxt = text[index + 1]
            if nxt == "u":
                code = text[index + 2:index + 6]
                if len(code) != 4:
                    raise ValueError(f"Malformed \\uXXXX encoding: \\u{code}")
                try:
                    chars.append(chr(int(code, 16)))
                except ValueError:
                    raise ValueError(f"Malformed \\uXXXX encoding: \\u{code}") from None
                index += 6
            else:
                chars.append(_ESCAPES.get(nxt, nxt))
                index += 2
        return "".join(chars)

    # ==================== YAML ====================

    @classmethod
    def _parse_yaml(cls, text: str, file_path: Path) -> Dict[str, str]:
        try:
            raw = yaml.safe_load(text)
        except yaml.YAMLError as e:
            raise ValueError(f"YAML parse error ({file_path}): {e}") from e

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ValueError(f"YAML root must be a mapping, got {type(raw).__name__} ({file_path})")
        return cls.flatten(raw)

    @classmethod
    def flatten(cls, data: Dict[str, Any], prefix: str = "") -> Dict[str, str]:
        """
        嵌套字典展开为点分键

        Example:
            >>> PropertiesLoader.flatten({"selenium": {"grid": True, "grid_url": "http://hub"}})
            {'selenium.grid': 'true', 'selenium.grid_url': 'http://hub'}
        """
        result: Dict[str, str] = {}
        for key, value in data.items():
            full_key = f"{prefix}{key}"
            if isinstance(value, dict):
                result.update(cls.flatten(value, prefix=f"{full_key}."))
            else:
                result[full_key] = cls._to_string(value)
        return result

    @staticmethod
    def _to_string(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return ""
        if isinstance(value, (list, tuple)):
            return ",".join(PropertiesLoader._to_string(item) for item in value)
        return str(value)

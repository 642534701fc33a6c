"""内置默认配置（优先级最低的一层）"""
from typing import Any, Dict, Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator


class DefaultSettings(BaseModel):
    """
    内置默认值模型

    字段别名即配置键（lower.dotted.case）；凭证不在此处定义，
    统一由 SecretsManager 提供
    """
    base_url: str = Field("https://www.saucedemo.com", alias="base.url")
    browser: str = "chrome"
    headless: bool = False
    implicit_wait: int = Field(10, alias="implicit.wait")
    explicit_wait: int = Field(20, alias="explicit.wait")
    page_load_timeout: int = Field(30, alias="page.load.timeout")
    screenshot_on_failure: bool = Field(True, alias="screenshot.on.failure")
    selenium_grid: bool = Field(False, alias="selenium.grid")
    selenium_grid_url: str = Field("http://localhost:4444/wd/hub", alias="selenium.grid.url")

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="forbid")

    @field_validator("browser")
    @classmethod
    def validate_browser(cls, v):
        valid_types = ["chrome", "firefox", "edge"]
        if v.lower() not in valid_types:
            raise ValueError(f"invalid browser: {v}, must be one of {valid_types}")
        return v.lower()

    @field_validator("implicit_wait", "explicit_wait", "page_load_timeout")
    @classmethod
    def validate_positive(cls, v):
        if v <= 0:
            raise ValueError("timeout must be greater than 0")
        return v

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "DefaultSettings":
        """
        从键值对构造（键可用别名或字段名）

        Raises:
            ValueError: 校验失败（消息汇总所有字段错误）
        """
        try:
            return cls(**dict(data))
        except ValidationError as e:
            messages = []
            for err in e.errors():
                loc = ".".join(str(part) for part in err["loc"])
                messages.append(f"'{loc}': {err['msg']} (value: {err.get('input')})")
            raise ValueError("Invalid default settings:\n" + "\n".join(messages)) from None

    def to_properties(self) -> Dict[str, str]:
        """导出为字符串键值对（布尔值小写）"""
        result = {}
        for key, value in self.model_dump(by_alias=True).items():
            if isinstance(value, bool):
                result[key] = "true" if value else "false"
            else:
                result[key] = str(value)
        return result

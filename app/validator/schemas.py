"""
校验结果数据结构
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class FieldError(BaseModel):
    """单个字段的校验失败"""
    name: Literal["ValidatorError"] = "ValidatorError"
    kind: str                                          # required / minlength / email / type ...
    path: str                                          # 字段名
    message: str
    value: Any = None                                  # 原始输入值（便于客户端定位）


class ValidationResult(BaseModel):
    """校验输出：ok 时 data 为清洗后的字段，否则 errors 非空"""
    entity: str                                        # Todo / User
    data: dict[str, Any] = Field(default_factory=dict)
    errors: list[FieldError] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

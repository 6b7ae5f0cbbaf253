"""
Todo 入参校验

- text：必填（部分更新时可省略），去除首尾空白后不能为空
- completed：部分更新时可选，必须是布尔值
"""

from typing import Any

from app.validator.schemas import FieldError, ValidationResult

_MISSING = object()


def _check_text(value: Any) -> tuple[str | None, FieldError | None]:
    if value is None:
        return None, FieldError(kind="required", path="text", message="Path `text` is required.", value=value)
    if not isinstance(value, str):
        return None, FieldError(kind="type", path="text", message="Path `text` must be a string.", value=value)
    text = value.strip()
    if not text:
        # 纯空白等同于未填
        return None, FieldError(kind="required", path="text", message="Path `text` is required.", value=value)
    return text, None


def validate_todo(payload: dict[str, Any], *, partial: bool = False) -> ValidationResult:
    """
    校验 Todo 字段

    partial=False 用于创建：text 必填；
    partial=True 用于 PATCH：只校验出现的字段，未知字段直接丢弃。
    """
    result = ValidationResult(entity="Todo")

    raw_text = payload.get("text", _MISSING)
    if raw_text is not _MISSING or not partial:
        text, error = _check_text(None if raw_text is _MISSING else raw_text)
        if error:
            result.errors.append(error)
        else:
            result.data["text"] = text

    if partial and "completed" in payload and payload["completed"] is not None:
        completed = payload["completed"]
        if isinstance(completed, bool):
            result.data["completed"] = completed
        else:
            result.errors.append(FieldError(
                kind="type", path="completed", message="Path `completed` must be a boolean.", value=completed,
            ))

    return result

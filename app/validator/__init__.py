"""入参校验：每个实体一个显式校验函数，返回结构化结果"""

from app.validator.schemas import FieldError, ValidationResult
from app.validator.todo_validator import validate_todo
from app.validator.user_validator import validate_user

__all__ = ["FieldError", "ValidationResult", "validate_todo", "validate_user"]

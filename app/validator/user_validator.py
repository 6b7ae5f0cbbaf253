"""
User 入参校验：邮箱格式 + 密码最小长度，一次性返回全部字段错误
"""

from typing import Any

from email_validator import EmailNotValidError, validate_email

from app.validator.schemas import FieldError, ValidationResult

DEFAULT_PASSWORD_MIN_LENGTH = 6


def _check_email(value: Any) -> FieldError | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return FieldError(kind="required", path="email", message="Path `email` is required.", value=value)
    if not isinstance(value, str):
        return FieldError(kind="type", path="email", message="Path `email` must be a string.", value=value)
    try:
        # 只做语法校验，不查 DNS
        validate_email(value.strip(), check_deliverability=False)
    except EmailNotValidError:
        return FieldError(kind="user defined", path="email", message=f"{value} is not a valid email", value=value)
    return None


def _check_password(value: Any, min_length: int) -> FieldError | None:
    if value is None or value == "":
        return FieldError(kind="required", path="password", message="Path `password` is required.", value=value)
    if not isinstance(value, str):
        return FieldError(kind="type", path="password", message="Path `password` must be a string.")
    if len(value) < min_length:
        # 不回显密码原文
        return FieldError(
            kind="minlength",
            path="password",
            message=f"Path `password` is shorter than the minimum allowed length ({min_length}).",
        )
    return None


def validate_user(
    payload: dict[str, Any],
    *,
    password_min_length: int = DEFAULT_PASSWORD_MIN_LENGTH,
) -> ValidationResult:
    """校验注册入参，ok 时 data 为 {email(去空白), password}"""
    result = ValidationResult(entity="User")
    email = payload.get("email")
    password = payload.get("password")

    email_error = _check_email(email)
    password_error = _check_password(password, password_min_length)

    for error in (email_error, password_error):
        if error:
            result.errors.append(error)

    if result.ok:
        result.data = {"email": email.strip(), "password": password}
    return result

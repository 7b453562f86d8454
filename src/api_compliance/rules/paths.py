"""Format rules for path templates handed to the HTTP method decorators."""

import re

from api_compliance.base import ValidationResult


def suggest_path(path: str) -> str:
    """Return the closest path that satisfies every format rule."""
    fixed = re.sub(r"/{2,}", "/", "/" + path.strip())
    if len(fixed) > 1:
        fixed = fixed.rstrip("/") or "/"
    return fixed


def check_path(path: object) -> ValidationResult:
    if not isinstance(path, str):
        return ValidationResult.failed(
            [f"Path must be a string, got {type(path).__name__}"],
            ["Pass the path as a string literal, e.g. '/users/{id}'"],
        )
    if not path:
        return ValidationResult.failed(
            ["Path must not be empty"],
            ["Use '/' for the root resource"],
        )

    errors = []
    if not path.startswith("/"):
        errors.append("Path must start with '/'")
    if "//" in path:
        errors.append("Path must not contain '//'")
    if path != "/" and path.endswith("/"):
        errors.append("Path must not end with '/' (only the root path '/' may)")

    if not errors:
        return ValidationResult.ok()
    return ValidationResult.failed(errors, [f"Use: {suggest_path(path)}"])


def is_valid_path(path: object) -> bool:
    return check_path(path).is_valid

"""Helpers turning jsonschema errors into ``FieldError`` diagnostics."""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

from email_validator import EmailNotValidError, validate_email
from jsonschema import Draft7Validator, FormatChecker
from jsonschema.exceptions import ValidationError

from .models import FieldError

ROOT_PATH = "root"

FORMAT_CHECKER = FormatChecker()


@FORMAT_CHECKER.checks("email", raises=EmailNotValidError)
def _is_email(instance: object) -> bool:
    # Non-strings are left to the "type" keyword.
    if not isinstance(instance, str):
        return True
    validate_email(instance, check_deliverability=False)
    return True


def compile_validator(schema: Dict[str, Any]) -> Draft7Validator:
    """Compile a Draft-07 validator with format assertions enabled."""
    return Draft7Validator(schema, format_checker=FORMAT_CHECKER)


def _pointer(parts: Iterable[Any]) -> str:
    segments = [str(p).replace("~", "~0").replace("/", "~1") for p in parts]
    if not segments:
        return ROOT_PATH
    return "/" + "/".join(segments)


def _missing_property(error: ValidationError) -> Optional[str]:
    if not isinstance(error.instance, dict):
        return None
    for prop in error.validator_value or []:
        if prop not in error.instance and error.message.startswith(repr(prop)):
            return prop
    return None


def _describe(error: ValidationError) -> FieldError:
    parts = list(error.absolute_path)
    kind = error.validator
    value = error.validator_value

    if kind == "required":
        prop = _missing_property(error)
        if prop is not None:
            return FieldError(path=_pointer(parts + [prop]), message="is required")
        return FieldError(path=_pointer(parts), message=error.message)
    if kind == "format":
        return FieldError(path=_pointer(parts), message=f"must be a valid {value}")
    if kind == "enum":
        allowed = ", ".join(str(v) for v in value)
        return FieldError(path=_pointer(parts), message=f"must be one of: {allowed}")
    if kind == "type":
        expected = " or ".join(value) if isinstance(value, list) else str(value)
        return FieldError(path=_pointer(parts), message=f"must be of type {expected}")
    return FieldError(path=_pointer(parts), message=error.message)


def collect_errors(validator: Draft7Validator, instance: Any) -> List[FieldError]:
    """Return every violation of ``instance``, not just the first one."""
    errors = [_describe(e) for e in validator.iter_errors(instance)]
    return sorted(errors, key=lambda e: (e.path, e.message))

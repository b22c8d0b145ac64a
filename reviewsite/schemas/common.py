"""Lenient coercions shared by request schemas."""

from __future__ import annotations

import math
from typing import Annotated, Any

from pydantic import BeforeValidator, ValidationError


def to_finite_number(value: Any) -> float | None:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def to_finite_int(value: Any) -> int | None:
    number = to_finite_number(value)
    return None if number is None else math.floor(number)


def blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


FiniteFloat = Annotated[float | None, BeforeValidator(to_finite_number)]
FiniteInt = Annotated[int | None, BeforeValidator(to_finite_int)]
OptionalText = Annotated[str | None, BeforeValidator(blank_to_none)]


def first_error(exc: ValidationError) -> tuple[str, str]:
    """(field, message) of the first validation error, without pydantic's prefix."""
    err = exc.errors()[0]
    field = ".".join(str(p) for p in err.get("loc", ()))
    ctx_error = (err.get("ctx") or {}).get("error")
    return field, str(ctx_error) if ctx_error else err["msg"]

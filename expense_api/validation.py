"""Validation of incoming expense payloads.

The validator never raises for bad input: it returns a
:class:`ValidationResult` holding either the normalised :class:`ExpenseInput`
or the messages collected for every failing field, so callers can report all
problems in a single response.
"""

from __future__ import annotations

# ruff: noqa: ANN401
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Final

__all__ = ["ExpenseInput", "ValidationResult", "validate_expense"]

FIELDS: Final[tuple[str, ...]] = ("description", "amount", "category", "date")
MAX_LENGTHS: Final[dict[str, int]] = {"description": 255, "category": 100}
MAX_INTEGER_DIGITS: Final[int] = 10
CENTS: Final[Decimal] = Decimal("0.01")


@dataclass(frozen=True, slots=True)
class ExpenseInput:
    """Validated values for the four mutable expense fields."""

    description: str
    amount: Decimal
    category: str
    date: date


@dataclass(slots=True)
class ValidationResult:
    """Outcome of :func:`validate_expense`.

    Attributes:
      value: Normalised input when validation succeeded, ``None`` otherwise.
      errors: Messages keyed by field name; empty when validation succeeded.
    """

    value: ExpenseInput | None = None
    errors: dict[str, list[str]] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors and self.value is not None

    def add(self, field_name: str, message: str) -> None:
        self.errors.setdefault(field_name, []).append(message)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value.strip() == "")


def _as_text(value: Any, *, name: str, result: ValidationResult) -> str | None:
    if not isinstance(value, str):
        result.add(name, f"The {name} field must be a string.")
        return None
    text = value.strip()
    limit = MAX_LENGTHS[name]
    if len(text) > limit:
        result.add(name, f"The {name} field must not be greater than {limit} characters.")
        return None
    return text


def _as_amount(value: Any, *, name: str, result: ValidationResult) -> Decimal | None:
    """Coerce JSON numbers and numeric strings into a two-decimal amount."""

    if isinstance(value, bool) or not isinstance(value, int | float | str | Decimal):
        result.add(name, f"The {name} field must be a number.")
        return None
    try:
        number = Decimal(value) if isinstance(value, int | Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        result.add(name, f"The {name} field must be a number.")
        return None
    if not number.is_finite():
        result.add(name, f"The {name} field must be a number.")
        return None
    # quantize() needs the integer digits to fit the decimal context precision.
    if number.adjusted() >= MAX_INTEGER_DIGITS:
        result.add(name, f"The {name} field must have at most {MAX_INTEGER_DIGITS} integer digits.")
        return None
    number = number.quantize(CENTS, rounding=ROUND_HALF_UP)
    # Rounding can carry into an extra digit (9999999999.995 -> 10000000000.00).
    if number.adjusted() >= MAX_INTEGER_DIGITS:
        result.add(name, f"The {name} field must have at most {MAX_INTEGER_DIGITS} integer digits.")
        return None
    return number


def _as_date(value: Any, *, name: str, result: ValidationResult) -> date | None:
    """Accept ``YYYY-MM-DD`` or an ISO 8601 datetime, keeping the calendar date."""

    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
    result.add(name, f"The {name} field must be a valid date.")
    return None


_COERCERS: Final[dict[str, Callable[..., Any]]] = {
    "description": _as_text,
    "amount": _as_amount,
    "category": _as_text,
    "date": _as_date,
}


def validate_expense(payload: Any) -> ValidationResult:
    """Validate a decoded JSON body for create and update requests.

    Every field is required: updates replace the whole record. A payload that
    is not a JSON object is handled as an empty one.
    """

    data: Mapping[str, Any] = payload if isinstance(payload, Mapping) else {}
    result = ValidationResult()

    for name in FIELDS:
        if _is_blank(data.get(name)):
            result.add(name, f"The {name} field is required.")

    values: dict[str, Any] = {}
    for name, coerce in _COERCERS.items():
        if name not in result.errors:
            values[name] = coerce(data[name], name=name, result=result)

    if not result.errors:
        result.value = ExpenseInput(**values)
    return result

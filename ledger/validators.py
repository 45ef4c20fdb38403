"""Validation helpers shared across the finance ledger services."""

from __future__ import annotations

from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from enum import Enum
from typing import Optional, Type, TypeVar

from .exceptions import ValidationError
from .models import parse_datetime

E = TypeVar("E", bound=Enum)

TITLE_MAX_LENGTH = 100
DESCRIPTION_MAX_LENGTH = 500
CATEGORY_NAME_MAX_LENGTH = 50


def _quantize_two_decimals(amount: Decimal) -> Decimal:
    """Round the amount to two decimal places using HALF_UP rounding."""
    return amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def parse_decimal(raw: object, field: str) -> Decimal:
    """Convert raw input to a finite Decimal with exactly two fraction digits."""
    if raw is None or isinstance(raw, bool):
        raise ValidationError(f"{field} must be a numeric value")
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be a numeric value") from exc
    if not value.is_finite():
        raise ValidationError(f"{field} must be a finite number")
    try:
        return _quantize_two_decimals(value)
    except InvalidOperation as exc:
        # Quantizing past the context precision (28 digits) is an invalid operation.
        raise ValidationError(f"{field} is out of range") from exc


def parse_amount(raw: object, field: str = "amount") -> Decimal:
    """Parse a non-negative ledger amount; the sign is carried by the transaction kind."""
    amount = parse_decimal(raw, field)
    if amount < 0:
        raise ValidationError(f"{field} must not be negative")
    return amount


def parse_positive_amount(raw: object, field: str = "amount") -> Decimal:
    amount = parse_decimal(raw, field)
    if amount <= 0:
        raise ValidationError(f"{field} must be greater than zero")
    return amount


def validate_required_str(value: object, field: str, max_length: int) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    trimmed = value.strip()
    if not trimmed:
        raise ValidationError(f"{field} cannot be empty")
    if len(trimmed) > max_length:
        raise ValidationError(f"{field} must be at most {max_length} characters")
    return trimmed


def validate_optional_str(value: object, field: str, max_length: int) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return validate_required_str(value, field, max_length)


def validate_datetime(value: object, field: str) -> datetime:
    if isinstance(value, datetime):
        dt = value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    elif isinstance(value, str):
        try:
            dt = parse_datetime(value)
        except ValueError as exc:
            raise ValidationError(f"{field} must be an ISO 8601 datetime") from exc
    else:
        raise ValidationError(f"{field} must be a datetime or ISO 8601 string")
    return dt.astimezone(timezone.utc)


def validate_date(value: object, field: str) -> date:
    """Accept a date, datetime or ``YYYY-MM-DD`` string and return the calendar date."""
    if isinstance(value, datetime):
        return value.astimezone(timezone.utc).date() if value.tzinfo else value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationError(f"{field} must be a YYYY-MM-DD date") from exc
    raise ValidationError(f"{field} must be a date or YYYY-MM-DD string")


def validate_enum(value: object, field: str, enum_cls: Type[E]) -> E:
    if isinstance(value, enum_cls):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string")
    try:
        return enum_cls(value.strip())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}") from exc


def parse_int(
    raw: object,
    field: str,
    *,
    minimum: Optional[int] = None,
    maximum: Optional[int] = None,
) -> int:
    if isinstance(raw, bool):
        raise ValidationError(f"{field} must be an integer")
    try:
        number = int(str(raw).strip())
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer") from exc
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field} must be at least {minimum}")
    if maximum is not None and number > maximum:
        raise ValidationError(f"{field} must be at most {maximum}")
    return number

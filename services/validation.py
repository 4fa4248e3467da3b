"""
services/validation.py
-----------------------
Turns raw user input (strings from bot commands, or already-typed values)
into typed subscription fields, collecting every problem before anything is
written.
"""

from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from dateutil.parser import isoparse

from config import DEFAULT_CURRENCY
from models.subscription import Category, Frequency, SubscriptionStatus
from utils.errors import ValidationError

REQUIRED_FIELDS = ("name", "category", "amount", "frequency", "start_date")

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("1e10")


def _parse_enum(enum_cls: type[Enum], value):
    if isinstance(value, enum_cls):
        return value
    key = str(value).strip().upper().replace("-", "_").replace(" ", "_")
    try:
        return enum_cls(key)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValueError(f"must be one of {allowed}")


def _parse_amount(value) -> Decimal:
    try:
        amount = Decimal(str(value).strip().replace(",", "."))
    except (InvalidOperation, ValueError):
        raise ValueError("must be a number")
    if not amount.is_finite() or amount <= 0:
        raise ValueError("must be a positive number")
    # Stored as NUMERIC(12,2)
    if amount >= MAX_AMOUNT:
        raise ValueError("must be less than 10,000,000,000")
    if amount != amount.quantize(CENT):
        raise ValueError("must have at most 2 decimal places")
    return amount


def _parse_date(value) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return isoparse(str(value).strip()).date()
    except (ValueError, OverflowError):
        raise ValueError("must be a date in YYYY-MM-DD format")


def _parse_optional_date(value) -> Optional[date]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return _parse_date(value)


def _parse_name(value) -> str:
    name = str(value or "").strip()
    if not name:
        raise ValueError("is required")
    if len(name) > 100:
        raise ValueError("must be at most 100 characters")
    return name


def _parse_currency(value) -> str:
    code = str(value or "").strip().upper()
    if not (code.isalpha() and 3 <= len(code) <= 5):
        raise ValueError("must be an ISO currency code such as EUR")
    return code


_PARSERS = {
    "name": _parse_name,
    "category": lambda v: _parse_enum(Category, v),
    "amount": _parse_amount,
    "currency": _parse_currency,
    "frequency": lambda v: _parse_enum(Frequency, v),
    "start_date": _parse_date,
    "end_date": _parse_optional_date,
    "status": lambda v: _parse_enum(SubscriptionStatus, v),
}


def check_date_order(start_date: date, end_date: Optional[date]) -> None:
    """Raise ValidationError if the end date precedes the start date."""
    if end_date is not None and end_date < start_date:
        raise ValidationError({"end_date": "must not be before start_date"})


def parse_subscription_fields(data: dict, partial: bool = False) -> dict:
    """
    Validate and convert subscription fields.

    Args:
        data: Field name -> raw value. Unknown keys are reported as errors.
        partial: If True (edits), only the supplied fields are checked and
            nothing is required; otherwise REQUIRED_FIELDS must be present and
            defaults are filled in for currency and status.

    Returns:
        Dict of typed values.

    Raises:
        ValidationError: Listing every failing field.
    """
    errors: dict[str, str] = {}
    cleaned: dict = {}

    for key, raw in data.items():
        parser = _PARSERS.get(key)
        if parser is None:
            errors[key] = "is not an editable field"
            continue
        try:
            cleaned[key] = parser(raw)
        except ValueError as e:
            errors[key] = str(e)

    if not partial:
        for key in REQUIRED_FIELDS:
            if key not in data or data[key] is None:
                errors.setdefault(key, "is required")
        cleaned.setdefault("currency", DEFAULT_CURRENCY)
        cleaned.setdefault("status", SubscriptionStatus.ACTIVE)
        cleaned.setdefault("end_date", None)

    start, end = cleaned.get("start_date"), cleaned.get("end_date")
    if start is not None and end is not None and end < start and "end_date" not in errors:
        errors["end_date"] = "must not be before start_date"

    if errors:
        raise ValidationError(errors)
    return cleaned

"""
Helper utilities
"""
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

ZERO = Decimal("0")


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """
    Parse a money-like value into a finite Decimal

    Shopify sends amounts as strings ("19.99"); settings and CSV rows may hold
    floats, ints or junk. NaN, infinities and unparseable values become
    `default`.
    """
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        return value if value.is_finite() else default
    try:
        parsed = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return default
    return parsed if parsed.is_finite() else default


def to_quantity(value: Any) -> int:
    """Parse a line item quantity; missing, negative or junk values count as 0"""
    try:
        quantity = int(value)
    except (TypeError, ValueError):
        return 0
    return max(quantity, 0)


def safe_divide(numerator: Decimal, denominator: Decimal, default: Decimal = ZERO) -> Decimal:
    """Safely divide two Decimals"""
    if not denominator:
        return default
    return numerator / denominator


def parse_date_param(value: Optional[str]) -> Optional[date]:
    """
    Parse a date query parameter

    Accepts plain ISO dates ("2024-03-01") and ISO datetimes as sent by the
    browser ("2024-03-01T10:00:00.000Z").
    """
    if not value:
        return None
    value = value.strip()
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        raise ValueError(f"Invalid date: {value}")


def money(value: Decimal) -> float:
    """Serialize a Decimal amount for JSON responses"""
    return float(value)

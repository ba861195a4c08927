from __future__ import annotations

import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any


# Upper bound for any persisted money value (smallest currency unit).
# Keeps integer columns well inside 32-bit range on every backend.
MAX_PRICE = 2_000_000_000


class CommerceError(Exception):
    """
    Base class for errors surfaced to callers of the commerce services.

    Carries the HTTP status the route layer answers with and an optional
    details dict that is safe to show to the client.
    """
    status_code = 500

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"error": self.message}
        if self.details:
            body["details"] = self.details
        return body


class NotFoundError(CommerceError):
    """404-level: the referenced entity does not exist."""
    status_code = 404


class ValidationError(CommerceError):
    """400-level input problem (malformed or missing field)."""
    status_code = 400


class StateError(CommerceError):
    """409-level: operation not applicable to the entity's current state."""
    status_code = 409


class BusinessRuleError(CommerceError):
    """422-level business rule violation (margin, empty cart, empty import)."""
    status_code = 422


class StoreUnavailableError(CommerceError):
    """503-level: the relational store failed and retries were exhausted."""
    status_code = 503


# Optional short currency affix ("$", "VND", "USD"), then the number itself.
# Letters inside the number ("1e5", "12ab34") do not match.
_CURRENCY_TEXT = re.compile(
    r"^\s*(?:[^\d\s.,\-]{1,4}\s*)?(-?\d[\d.,\s]*?)\s*(?:[^\d\s.,\-]{1,4})?\s*$"
)
_NUMBER_SEPARATORS = re.compile(r"[,\s]+")


def round_half_away(value: Any) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def parse_currency(value: Any) -> int | None:
    """
    Parse a money value into integer minor units.

    Accepts ints, floats and strings with a currency prefix or suffix
    ("1,200,000 VND", "$45.50"). Thousands separators are dropped. Returns
    None when no number can be read, including strings with letters inside
    the number ("1e5").
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        try:
            return round_half_away(value)
        except (InvalidOperation, ValueError):
            return None

    match = _CURRENCY_TEXT.match(str(value))
    if match is None:
        return None
    text = _NUMBER_SEPARATORS.sub("", match.group(1))
    try:
        return round_half_away(Decimal(text))
    except InvalidOperation:
        return None


def to_int(value: Any) -> int | None:
    """Lenient integer coercion: None/"" -> None, "12" -> 12, 12.0 -> 12, "1.5" -> None."""
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    text = str(value).strip()
    if not text:
        return None
    try:
        return int(text)
    except ValueError:
        try:
            as_float = float(text)
        except ValueError:
            return None
        return int(as_float) if as_float.is_integer() else None


def to_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text if text else None


def require_positive_int(value: Any, field: str, error_cls=ValidationError) -> int:
    number = to_int(value)
    if number is None or number <= 0:
        raise error_cls(f"{field} must be a positive integer")
    return number


def check_price_range(value: int | None, field: str, error_cls=ValidationError, details: dict | None = None) -> int | None:
    """None passes through (price omitted); anything outside 0..MAX_PRICE is rejected."""
    if value is None:
        return None
    if value < 0 or value > MAX_PRICE:
        raise error_cls(
            f"{field} must be between 0 and {MAX_PRICE}",
            details={**(details or {}), field: value},
        )
    return value

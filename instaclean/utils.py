import random
import string
import time
from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from email_validator import EmailNotValidError, validate_email

from instaclean.errors import ValidationError

_BASE36 = string.digits + string.ascii_uppercase


def to_base36(number: int) -> str:
    if number < 0:
        raise ValueError("number must be non-negative")
    if number == 0:
        return "0"
    digits = []
    while number:
        number, rem = divmod(number, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


def generate_booking_number(prefix: str = "IC") -> str:
    """PREFIX-TIMEPART-RANDOMPART, e.g. ``IC-M1Z8K2QP-7F3A``.

    The time part is the current epoch in milliseconds in base 36. Uniqueness
    is guaranteed by the database constraint, not by this function.
    """
    timestamp = to_base36(int(time.time() * 1000))
    suffix = "".join(random.choices(_BASE36, k=4))
    return f"{prefix}-{timestamp}-{suffix}"


def format_price(amount) -> str:
    return f"GH₵{Decimal(amount or 0):,.2f}"


# ----- Payload helpers -----

def clean_str(payload: dict, key: str):
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)
    value = value.strip()
    return value or None


def require_str(payload: dict, key: str, message: str, min_length: int = 1) -> str:
    value = clean_str(payload, key)
    if value is None or len(value) < min_length:
        raise ValidationError(message)
    return value


def optional_email(payload: dict, key: str):
    value = clean_str(payload, key)
    if value is None:
        return None
    try:
        return validate_email(value, check_deliverability=False).normalized.lower()
    except EmailNotValidError:
        raise ValidationError("Invalid email address") from None


def parse_money(value, field_name: str):
    if value is None or isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValidationError(f"{field_name} must be a number") from None
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field_name} must be positive")
    return amount.quantize(Decimal("0.01"))


def parse_int(value, field_name: str, minimum=None) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a whole number")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a whole number") from None
    if minimum is not None and number < minimum:
        raise ValidationError(f"{field_name} must be at least {minimum}")
    return number


def parse_date(value, field_name: str = "Date") -> date:
    if isinstance(value, date):
        return value
    if not value:
        raise ValidationError("Please select a date")
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise ValidationError(f"{field_name} must be an ISO date (YYYY-MM-DD)") from None


def parse_bool(value, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false", "1", "0", "on", "off"):
        return value.strip().lower() in ("true", "1", "on")
    raise ValidationError(f"{field_name} must be true or false")


def utcnow() -> datetime:
    return datetime.utcnow()

"""Field rules shared by the API models and the client-side form checks."""
import math
from datetime import date, datetime, timezone
from typing import Any, Optional

from models.category import CATEGORIES

NOTE_MAX_LENGTH = 200


def check_amount(value: Any) -> Optional[str]:
    """Returns an error message if the amount is missing, not numeric or not positive."""
    if value is None or value == '':
        return 'Please add an amount'
    if isinstance(value, bool):
        return 'Amount must be a number'
    try:
        amount = float(value)
    except (TypeError, ValueError, OverflowError):
        return 'Amount must be a number'
    if not math.isfinite(amount):
        return 'Amount must be a number'
    if amount <= 0:
        return 'Amount must be greater than 0'
    return None


def check_note(value: Any) -> Optional[str]:
    if value is None or not isinstance(value, str) or not value.strip():
        return 'Please add a note'
    if len(value.strip()) > NOTE_MAX_LENGTH:
        return f'Note cannot be more than {NOTE_MAX_LENGTH} characters'
    return None


def check_category(value: Any) -> Optional[str]:
    if value is None or value == '':
        return 'Please add a category'
    if value not in CATEGORIES:
        return f"'{value}' is not a valid category"
    return None


def check_date(value: Any) -> Optional[str]:
    if value is None or value == '':
        return 'Please add a date'
    if isinstance(value, (date, datetime)):
        return None
    if parse_date(value) is None:
        return 'Date is not valid'
    return None


def parse_date(value: Any) -> Optional[datetime]:
    """
    Parses YYYY-MM-DD or ISO datetime strings (and date objects) into a naive datetime.
    Aware values are converted to UTC first. Returns None when the value is not a date.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return datetime.combine(value, datetime.min.time())
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith('Z'):
            text = text[:-1] + '+00:00'
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed

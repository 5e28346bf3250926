"""Turns loose query-string filters into a MongoDB predicate."""
import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional, Tuple

from models.category import ALL_CATEGORIES
from utils.validation import parse_date

logger = logging.getLogger(__name__)


def month_bounds(year: int, month: int) -> Tuple[datetime, datetime]:
    """
    First instant and last second of a calendar month.
    The last day comes from stepping back one day from the 1st of the following
    month, so month lengths and leap years fall out of the calendar itself.
    """
    start = datetime(year, month, 1)
    next_month = datetime(year + (month // 12), (month % 12) + 1, 1)
    last_day = next_month - timedelta(days=1)
    end = last_day.replace(hour=23, minute=59, second=59)
    return start, end


def _parse_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _day_start(value: Any) -> Optional[datetime]:
    parsed = parse_date(value)
    if parsed is None:
        return None
    return parsed.replace(hour=0, minute=0, second=0, microsecond=0)


def build_expense_query(
    category: Optional[str] = None,
    start_date: Any = None,
    end_date: Any = None,
    month: Any = None,
    year: Any = None,
) -> Dict[str, Any]:
    """
    Builds the predicate used by both listing and summaries.
    Absent or unparseable values are ignored rather than rejected. When a
    month/year pair is usable it replaces any start/end range.
    """
    query: Dict[str, Any] = {}

    if category and category != ALL_CATEGORIES:
        query['category'] = category

    start, end = _day_start(start_date), _day_start(end_date)
    if start is not None and end is not None:
        query['date'] = {'$gte': start, '$lte': end}
    elif start_date or end_date:
        logger.debug(f"Ignoring incomplete or invalid date range: start={start_date!r} end={end_date!r}")

    month_number, year_number = _parse_int(month), _parse_int(year)
    if month_number is not None and year_number is not None:
        if 1 <= month_number <= 12 and 1 <= year_number <= 9998:
            first, last = month_bounds(year_number, month_number)
            query['date'] = {'$gte': first, '$lte': last}
        else:
            logger.debug(f"Ignoring out-of-range month/year filter: month={month!r} year={year!r}")

    return query

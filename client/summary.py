"""Display derivations for the summary panel."""
from typing import Any, Dict, List, Mapping

MONTH_NAMES = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']


def category_percentage(total: float, total_spent: float) -> float:
    """Share of the total, rounded to one decimal; 0 when nothing was spent."""
    if not total_spent:
        return 0
    return round(total / total_spent * 100, 1)


def month_label(year: int, month: int) -> str:
    return f"{MONTH_NAMES[month - 1]} {year}"


def category_rows(summary: Mapping[str, Any]) -> List[Dict[str, Any]]:
    """The byCategory buckets of a summary response with their percentage attached."""
    total_spent = summary.get('totalSpent') or 0
    return [
        {**bucket, 'percentage': category_percentage(bucket['total'], total_spent)}
        for bucket in summary.get('byCategory', [])
    ]


def month_rows(summary: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return [
        {**bucket, 'label': month_label(bucket['year'], bucket['month'])}
        for bucket in summary.get('byMonth', [])
    ]

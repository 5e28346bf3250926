"""Filter bar state for the expense list and summary views."""
from datetime import date
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from models.category import ALL_CATEGORIES

FILTER_FIELDS = ('category', 'start_date', 'end_date', 'month', 'year')
SUMMARY_FIELDS = ('category', 'month', 'year')

QUERY_NAMES = {
    'category': 'category',
    'start_date': 'startDate',
    'end_date': 'endDate',
    'month': 'month',
    'year': 'year',
}


def _current_year() -> str:
    return str(date.today().year)


class FilterState(BaseModel):
    """An immutable snapshot of the filter bar. Blank strings mean "not set"."""
    model_config = ConfigDict(frozen=True)

    category: str = ALL_CATEGORIES
    start_date: str = ''
    end_date: str = ''
    month: str = ''
    year: str = Field(default_factory=_current_year)


def reset_filters() -> FilterState:
    return FilterState()


def update_filter(state: FilterState, name: str, value: Optional[str]) -> FilterState:
    """Returns a new snapshot with one field changed."""
    if name not in FILTER_FIELDS:
        raise ValueError(f"Unknown filter field: {name}")
    return state.model_copy(update={name: '' if value is None else str(value)})


def to_query_params(state: FilterState, summary: bool = False) -> Dict[str, str]:
    """
    Query string for the list (or, with summary=True, the summary) endpoint.
    The 'All' category and blank fields are left out; the summary endpoint only
    understands category, month and year.
    """
    fields = SUMMARY_FIELDS if summary else FILTER_FIELDS
    params = {}
    for name in fields:
        value = getattr(state, name)
        if not value or (name == 'category' and value == ALL_CATEGORIES):
            continue
        params[QUERY_NAMES[name]] = value
    return params

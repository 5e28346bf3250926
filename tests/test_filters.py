"""Tests for services.filters: turning query-string filters into MongoDB predicates."""
from datetime import datetime

from services.filters import build_expense_query, month_bounds


def test_no_filters_matches_everything():
    assert build_expense_query() == {}


def test_category_all_is_not_a_filter():
    assert build_expense_query(category="All") == {}
    assert build_expense_query(category="Food") == {"category": "Food"}


def test_date_range_is_inclusive_at_midnight():
    query = build_expense_query(start_date="2025-10-01", end_date="2025-10-31")
    assert query == {"date": {"$gte": datetime(2025, 10, 1), "$lte": datetime(2025, 10, 31)}}


def test_date_range_needs_both_ends():
    assert build_expense_query(start_date="2025-10-01") == {}
    assert build_expense_query(end_date="2025-10-31") == {}


def test_month_year_covers_whole_month():
    query = build_expense_query(month="10", year="2025")
    assert query["date"]["$gte"] == datetime(2025, 10, 1)
    assert query["date"]["$lte"] == datetime(2025, 10, 31, 23, 59, 59)


def test_month_year_wins_over_date_range():
    query = build_expense_query(start_date="2025-01-01", end_date="2025-12-31", month=3, year=2025)
    assert query["date"] == {"$gte": datetime(2025, 3, 1), "$lte": datetime(2025, 3, 31, 23, 59, 59)}


def test_invalid_values_are_ignored():
    assert build_expense_query(start_date="not-a-date", end_date="2025-10-31") == {}
    assert build_expense_query(month="13", year="2025") == {}
    assert build_expense_query(month="abc", year="2025") == {}
    assert build_expense_query(month="2") == {}


def test_combined_category_and_month():
    query = build_expense_query(category="Travel", month="12", year="2024")
    assert query["category"] == "Travel"
    assert query["date"]["$lte"] == datetime(2024, 12, 31, 23, 59, 59)


def test_month_bounds_handles_leap_years():
    assert month_bounds(2024, 2) == (datetime(2024, 2, 1), datetime(2024, 2, 29, 23, 59, 59))
    assert month_bounds(2023, 2)[1] == datetime(2023, 2, 28, 23, 59, 59)
    assert month_bounds(2025, 4)[1].day == 30

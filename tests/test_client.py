"""Tests for the client package: state snapshots, form checks, summary display and the API client."""
from datetime import date, datetime

import httpx
import pytest

from client.api import ExpenseApiClient, ExpenseApiError
from client.app import (
    MESSAGE_TIMEOUT,
    AppState,
    cancel_edit,
    clear_message,
    dismiss_expired_message,
    load,
    remove_expense,
    save_expense,
    show_message,
    start_edit,
)
from client.filters import FilterState, reset_filters, to_query_params, update_filter
from client.forms import empty_form, form_from_expense, prepare_submission, update_field, validate_form
from client.summary import category_percentage, category_rows, month_label, month_rows
from main import app


# --- Filters ---

def test_default_filters_only_send_year():
    state = reset_filters()
    assert state.category == "All"
    assert to_query_params(state) == {"year": str(date.today().year)}


def test_update_filter_returns_new_snapshot():
    state = FilterState(year="2025")
    changed = update_filter(state, "category", "Food")
    assert state.category == "All"
    assert changed.category == "Food"
    with pytest.raises(ValueError):
        update_filter(state, "colour", "red")


def test_query_params_for_list_and_summary():
    state = FilterState(category="Travel", start_date="2025-01-01", end_date="2025-01-31", month="1", year="2025")
    assert to_query_params(state) == {
        "category": "Travel",
        "startDate": "2025-01-01",
        "endDate": "2025-01-31",
        "month": "1",
        "year": "2025",
    }
    assert to_query_params(state, summary=True) == {"category": "Travel", "month": "1", "year": "2025"}


# --- Forms ---

def test_empty_form_is_invalid():
    errors = validate_form(empty_form().model_copy(update={"date": ""}))
    assert set(errors) == {"amount", "date", "note"}


def test_form_checks_match_server_rules():
    form = empty_form()
    form = update_field(form, "amount", "0")
    form = update_field(form, "note", "x" * 201)
    errors = validate_form(form)
    assert errors["amount"] == "Amount must be greater than 0"
    assert errors["note"] == "Note must be less than 200 characters"


def test_form_messages_use_form_wording():
    errors = validate_form(empty_form().model_copy(update={"date": "", "note": "  "}))
    assert errors["note"] == "Note is required"
    assert errors["date"] == "Date is required"


def test_editing_a_field_clears_its_error():
    form, payload = prepare_submission(empty_form())
    assert payload is None
    assert "amount" in form.errors
    form = update_field(form, "amount", "12")
    assert "amount" not in form.errors
    assert "note" in form.errors


def test_successful_submission_resets_new_form():
    form = update_field(update_field(empty_form(), "amount", "12.5"), "note", " Taxi ")
    form = update_field(form, "category", "Travel")

    next_form, payload = prepare_submission(form)
    assert payload == {"amount": 12.5, "date": form.date, "note": "Taxi", "category": "Travel"}
    assert next_form == empty_form()


def test_edit_submission_keeps_values():
    form = form_from_expense({"amount": 500, "date": "2025-10-04T00:00:00", "note": "Lunch", "category": "Food"})
    assert form.date == "2025-10-04"
    next_form, payload = prepare_submission(form, editing=True)
    assert payload["amount"] == 500.0
    assert next_form.note == "Lunch"


def test_form_from_expense_accepts_datetimes():
    form = form_from_expense({"amount": 1, "date": datetime(2024, 2, 29, 13, 0), "note": "Leap"})
    assert form.date == "2024-02-29"
    assert form.category == "Other"


# --- Summary display ---

def test_category_percentage():
    assert category_percentage(250, 1000) == 25.0
    assert category_percentage(1, 3) == 33.3
    assert category_percentage(0, 0) == 0


def test_summary_rows():
    summary = {
        "totalSpent": 1500,
        "byCategory": [{"category": "Food", "total": 1000, "count": 2}, {"category": "Bills", "total": 500, "count": 1}],
        "byMonth": [{"year": 2025, "month": 10, "total": 1500, "count": 3}],
    }
    assert [row["percentage"] for row in category_rows(summary)] == [66.7, 33.3]
    assert month_rows(summary)[0]["label"] == "Oct 2025"
    assert month_label(2024, 1) == "Jan 2024"


# --- API client against the app in-process ---

@pytest.fixture
def api(client):
    # `client` installs the in-memory collection override
    return ExpenseApiClient(base_url="http://test", transport=httpx.ASGITransport(app=app))


async def test_client_round_trip(api):
    async with api:
        created = await api.create_expense({"amount": 500, "date": "2025-10-04", "note": "Lunch", "category": "Food"})
        assert created["category"] == "Food"

        listed = await api.get_expenses(FilterState(category="Food", year="2025", month="10"))
        assert [e["id"] for e in listed] == [created["id"]]

        summary = await api.get_summary(FilterState(year="2025"))
        assert summary["totalSpent"] == 500

        updated = await api.update_expense(created["id"], {"note": "Dinner"})
        assert updated["note"] == "Dinner"
        assert (await api.get_expense(created["id"]))["note"] == "Dinner"

        deleted = await api.delete_expense(created["id"])
        assert deleted == {"message": "Expense deleted successfully", "id": created["id"]}


async def test_client_surfaces_server_messages(api):
    async with api:
        with pytest.raises(ExpenseApiError) as excinfo:
            await api.delete_expense("0123456789abcdef01234567")
        assert excinfo.value.status_code == 404
        assert excinfo.value.message == "Expense not found"

        with pytest.raises(ExpenseApiError) as excinfo:
            await api.create_expense({"amount": -1, "date": "2025-10-04", "note": "Refund", "category": "Other"})
        assert excinfo.value.status_code == 400
        assert excinfo.value.message == "Amount must be greater than 0"


# --- App state ---

def test_message_reducers():
    state = show_message(AppState(), "success", "Saved", now=100.0)
    assert state.message.text == "Saved"
    assert dismiss_expired_message(state, now=100.0 + MESSAGE_TIMEOUT - 0.1) is state
    assert dismiss_expired_message(state, now=100.0 + MESSAGE_TIMEOUT).message is None
    assert clear_message(state).message is None


def test_edit_reducers_do_not_touch_prior_snapshot():
    state = AppState()
    editing = start_edit(state, {"id": "abc", "note": "Lunch"})
    assert state.editing is None
    assert editing.editing["id"] == "abc"
    assert cancel_edit(editing).editing is None


async def test_save_creates_then_reloads(api):
    async with api:
        state = await save_expense(api, AppState(), {"amount": 500, "date": "2025-10-04", "note": "Lunch", "category": "Food"})
    assert state.message.kind == "success"
    assert state.message.text == "Expense added successfully!"
    assert [e["note"] for e in state.expenses] == ["Lunch"]
    assert state.summary["totalSpent"] == 500


async def test_save_while_editing_updates_and_leaves_edit_mode(api):
    async with api:
        state = await save_expense(api, AppState(), {"amount": 500, "date": "2025-10-04", "note": "Lunch", "category": "Food"})
        state = start_edit(state, state.expenses[0])
        state = await save_expense(api, state, {"note": "Dinner"})
    assert state.editing is None
    assert state.message.text == "Expense updated successfully!"
    assert [e["note"] for e in state.expenses] == ["Dinner"]


async def test_failed_save_keeps_snapshot_and_shows_error(api):
    async with api:
        before = await save_expense(api, AppState(), {"amount": 5, "date": "2025-10-04", "note": "Tea", "category": "Food"})
        after = await save_expense(api, before, {"amount": -1, "date": "2025-10-04", "note": "Refund"})
    assert after.expenses == before.expenses
    assert after.summary == before.summary
    assert after.message.kind == "error"
    assert after.message.text == "Amount must be greater than 0"


async def test_remove_reloads_and_reports_failures(api):
    async with api:
        state = await save_expense(api, AppState(), {"amount": 5, "date": "2025-10-04", "note": "Tea", "category": "Food"})
        expense_id = state.expenses[0]["id"]
        state = start_edit(state, state.expenses[0])

        failed = await remove_expense(api, state, "0123456789abcdef01234567")
        assert failed.message.text == "Failed to delete expense"
        assert failed.expenses == state.expenses

        state = await remove_expense(api, state, expense_id)
        assert state.message.text == "Expense deleted successfully!"
        assert state.editing is None
        assert state.expenses == []
        assert state.summary["totalSpent"] == 0

        assert (await load(api, state)).expenses == []

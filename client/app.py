"""
Top-level client state: the loaded list and summary, the expense being edited,
the active filters and the transient message banner.

State is an immutable snapshot. Plain reducers return the next snapshot; the
async actions await the API write, then re-fetch list and summary from the
server instead of patching the local copy.
"""
import logging
import time
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from client.api import ExpenseApiClient, ExpenseApiError
from client.filters import FilterState, reset_filters

logger = logging.getLogger(__name__)

MESSAGE_TIMEOUT = 3.0  # seconds a banner stays up


def _empty_summary() -> Dict[str, Any]:
    return {'totalSpent': 0, 'byCategory': [], 'byMonth': []}


class Message(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal['success', 'error']
    text: str
    shown_at: float


class AppState(BaseModel):
    model_config = ConfigDict(frozen=True)

    expenses: List[Dict[str, Any]] = Field(default_factory=list)
    summary: Dict[str, Any] = Field(default_factory=_empty_summary)
    editing: Optional[Dict[str, Any]] = None
    filters: FilterState = Field(default_factory=reset_filters)
    message: Optional[Message] = None


# --- Reducers ---

def show_message(state: AppState, kind: str, text: str, now: Optional[float] = None) -> AppState:
    shown_at = time.monotonic() if now is None else now
    return state.model_copy(update={'message': Message(kind=kind, text=text, shown_at=shown_at)})


def clear_message(state: AppState) -> AppState:
    return state.model_copy(update={'message': None})


def dismiss_expired_message(state: AppState, now: Optional[float] = None) -> AppState:
    """Drops the banner once it has been visible for MESSAGE_TIMEOUT seconds."""
    if state.message is None:
        return state
    now = time.monotonic() if now is None else now
    if now - state.message.shown_at >= MESSAGE_TIMEOUT:
        return clear_message(state)
    return state


def start_edit(state: AppState, expense: Dict[str, Any]) -> AppState:
    return state.model_copy(update={'editing': expense})


def cancel_edit(state: AppState) -> AppState:
    return state.model_copy(update={'editing': None})


def set_filters(state: AppState, filters: FilterState) -> AppState:
    return state.model_copy(update={'filters': filters})


# --- Actions ---

async def load(api: ExpenseApiClient, state: AppState) -> AppState:
    """Re-fetches the list and summary for the current filters."""
    try:
        expenses = await api.get_expenses(state.filters)
        summary = await api.get_summary(state.filters)
    except ExpenseApiError as e:
        logger.error(f"Failed to load expenses: {e.message}")
        return show_message(state, 'error', 'Failed to load expenses')
    return state.model_copy(update={'expenses': expenses, 'summary': summary})


async def save_expense(api: ExpenseApiClient, state: AppState, payload: Dict[str, Any]) -> AppState:
    """
    Updates the expense being edited, or creates a new one when nothing is being edited.
    A failed write leaves the snapshot as it was apart from an error banner.
    """
    try:
        if state.editing is not None:
            await api.update_expense(state.editing['id'], payload)
            next_state = show_message(cancel_edit(state), 'success', 'Expense updated successfully!')
        else:
            await api.create_expense(payload)
            next_state = show_message(state, 'success', 'Expense added successfully!')
    except ExpenseApiError as e:
        return show_message(state, 'error', e.message or 'Operation failed')
    return await load(api, next_state)


async def remove_expense(api: ExpenseApiClient, state: AppState, expense_id: str) -> AppState:
    try:
        await api.delete_expense(expense_id)
    except ExpenseApiError as e:
        logger.error(f"Failed to delete expense {expense_id}: {e.message}")
        return show_message(state, 'error', 'Failed to delete expense')
    next_state = show_message(state, 'success', 'Expense deleted successfully!')
    if next_state.editing is not None and next_state.editing.get('id') == expense_id:
        next_state = cancel_edit(next_state)
    return await load(api, next_state)

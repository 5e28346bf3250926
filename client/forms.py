"""Expense form state and the advisory checks run before submitting."""
from datetime import date, datetime
from typing import Any, Dict, Mapping, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from models.category import DEFAULT_CATEGORY
from utils.validation import check_amount, check_category, check_date, check_note

FORM_FIELDS = ('amount', 'date', 'note', 'category')

FIELD_RULES = {
    'amount': check_amount,
    'date': check_date,
    'note': check_note,
    'category': check_category,
}

# Same rules as the API, in the form's own wording
FORM_MESSAGES = {
    'Please add an amount': 'Amount must be greater than 0',
    'Please add a date': 'Date is required',
    'Please add a note': 'Note is required',
    'Note cannot be more than 200 characters': 'Note must be less than 200 characters',
    'Please add a category': 'Category is required',
}


def _today() -> str:
    return date.today().isoformat()


class FormState(BaseModel):
    """
    An immutable snapshot of the add/edit form.
    Values are kept as the strings a form would hold; errors map field name to message.
    """
    model_config = ConfigDict(frozen=True)

    amount: str = ''
    date: str = Field(default_factory=_today)
    note: str = ''
    category: str = DEFAULT_CATEGORY
    errors: Dict[str, str] = Field(default_factory=dict)


def empty_form() -> FormState:
    return FormState()


def form_from_expense(expense: Mapping[str, Any]) -> FormState:
    """Prefills the form from an expense as returned by the API."""
    raw_date = expense.get('date')
    if isinstance(raw_date, datetime):
        day = raw_date.date().isoformat()
    elif isinstance(raw_date, date):
        day = raw_date.isoformat()
    else:
        day = str(raw_date or '')[:10]
    return FormState(
        amount=str(expense.get('amount', '')),
        date=day,
        note=expense.get('note', ''),
        category=expense.get('category') or DEFAULT_CATEGORY,
    )


def update_field(state: FormState, name: str, value: Any) -> FormState:
    """Sets one field and clears any error previously shown for it."""
    if name not in FORM_FIELDS:
        raise ValueError(f"Unknown form field: {name}")
    errors = {field: message for field, message in state.errors.items() if field != name}
    return state.model_copy(update={name: '' if value is None else str(value), 'errors': errors})


def validate_form(state: FormState) -> Dict[str, str]:
    errors = {}
    for name, rule in FIELD_RULES.items():
        message = rule(getattr(state, name))
        if message:
            errors[name] = FORM_MESSAGES.get(message, message)
    return errors


def prepare_submission(state: FormState, editing: bool = False) -> Tuple[FormState, Optional[Dict[str, Any]]]:
    """
    Validates the form and builds the request payload.
    Returns the next form state and the payload, or None when the form has errors.
    A successful new-expense submission resets the form; an edit keeps its values.
    """
    errors = validate_form(state)
    if errors:
        return state.model_copy(update={'errors': errors}), None

    payload = {
        'amount': float(state.amount),
        'date': state.date,
        'note': state.note.strip(),
        'category': state.category,
    }
    next_state = state.model_copy(update={'errors': {}}) if editing else empty_form()
    return next_state, payload

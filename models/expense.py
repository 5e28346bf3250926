"""Pydantic models for Expense data and summaries"""
from pydantic import BaseModel, ConfigDict, Field, field_validator
from datetime import datetime, timezone
from typing import Any, Callable, ClassVar, List, Optional

from models.category import DEFAULT_CATEGORY, Category
from utils.validation import check_amount, check_category, check_note, parse_date


def utc_now() -> datetime:
    """Current time as a naive UTC datetime at millisecond precision, the way MongoDB hands dates back."""
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


class ExpenseInput(BaseModel):
    """
    Field rules shared by create and update payloads.
    On partial updates a missing or null field means "leave unchanged"; any
    value that *is* supplied goes through the same checks as on creation.
    """
    model_config = ConfigDict(use_enum_values=True)

    partial_update: ClassVar[bool] = False

    @classmethod
    def run_rule(cls, rule: Callable[[Any], Optional[str]], value: Any) -> Any:
        if value is None and cls.partial_update:
            return None
        error = rule(value)
        if error:
            raise ValueError(error)
        return value

    @field_validator('amount', mode='before', check_fields=False)
    @classmethod
    def validate_amount(cls, value: Any) -> Any:
        return cls.run_rule(check_amount, value)

    @field_validator('note', mode='before', check_fields=False)
    @classmethod
    def validate_note(cls, value: Any) -> Any:
        value = cls.run_rule(check_note, value)
        return value.strip() if isinstance(value, str) else value

    @field_validator('category', mode='before', check_fields=False)
    @classmethod
    def validate_category(cls, value: Any) -> Any:
        if value is None and not cls.partial_update:
            return DEFAULT_CATEGORY
        return cls.run_rule(check_category, value)

    @field_validator('date', mode='before', check_fields=False)
    @classmethod
    def validate_date(cls, value: Any) -> Any:
        if value is None:
            return None if cls.partial_update else utc_now()
        parsed = parse_date(value)
        if parsed is None:
            raise ValueError('Date is not valid')
        return parsed


class ExpenseCreate(ExpenseInput):
    amount: float
    date: datetime = Field(default_factory=utc_now)
    note: str
    category: Category = DEFAULT_CATEGORY


class ExpenseUpdate(ExpenseInput):
    partial_update: ClassVar[bool] = True

    amount: Optional[float] = None
    date: Optional[datetime] = None
    note: Optional[str] = None
    category: Optional[Category] = None

    def changes(self) -> dict:
        """Only the fields the caller actually supplied with a value."""
        return self.model_dump(exclude_none=True, mode='python')


class Expense(BaseModel):
    """
    Represents a single stored expense.
    """
    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: str
    amount: float
    date: datetime
    note: str
    category: Category
    created_at: Optional[datetime] = Field(default=None, alias='createdAt')
    updated_at: Optional[datetime] = Field(default=None, alias='updatedAt')


class CategoryTotal(BaseModel):
    category: str
    total: float
    count: int


class MonthTotal(BaseModel):
    year: int
    month: int
    total: float
    count: int


class ExpenseSummary(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_spent: float = Field(default=0, alias='totalSpent')
    by_category: List[CategoryTotal] = Field(default_factory=list, alias='byCategory')
    by_month: List[MonthTotal] = Field(default_factory=list, alias='byMonth')


class DeleteResult(BaseModel):
    message: str
    id: str

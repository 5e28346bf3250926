"""API Routes for expenses"""
from fastapi import APIRouter, HTTPException, Depends, Request, Query, status
from typing import List, Annotated, Optional
from services import expenses_service
from services.filters import build_expense_query
from models.expense import DeleteResult, Expense, ExpenseCreate, ExpenseSummary, ExpenseUpdate
from motor.motor_asyncio import AsyncIOMotorCollection
import logging

router = APIRouter()
logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Expense not found"
SERVER_ERROR_MESSAGE = "Something went wrong!"

# --- Dependency Function ---
def get_expenses_collection(request: Request) -> AsyncIOMotorCollection:
    """Dependency to get the MongoDB expenses collection from the request state."""
    collection = getattr(request.state, "expenses_collection", None)
    if collection is None:
        logger.error("Expenses collection not found in application state. Check MongoDB connection.")
        raise HTTPException(status_code=503, detail="Database service not available.")
    return collection

# Type hint for the dependency
ExpensesCollectionDep = Annotated[AsyncIOMotorCollection, Depends(get_expenses_collection)]


def _server_error(action: str, error: Exception) -> HTTPException:
    if isinstance(error, ConnectionError):
        logger.error(f"Store error {action}: {error}")
    else:
        logger.exception(f"Unexpected error {action}: {error}")
    return HTTPException(status_code=500, detail=SERVER_ERROR_MESSAGE)

# --- API Routes ---

@router.get("/expenses", response_model=List[Expense], summary="List Expenses", description="Retrieves expenses matching the optional filters, newest first.")
async def get_expenses(
    collection: ExpensesCollectionDep,
    category: Optional[str] = Query(None, description="Exact category; 'All' disables the filter."),
    start_date: Optional[str] = Query(None, alias="startDate", description="Inclusive start date (YYYY-MM-DD)."),
    end_date: Optional[str] = Query(None, alias="endDate", description="Inclusive end date (YYYY-MM-DD)."),
    month: Optional[str] = Query(None, description="Month number (1-12); used together with year."),
    year: Optional[str] = Query(None, description="Year, e.g. 2025; used together with month."),
) -> List[Expense]:
    logger.info(f"GET /expenses called. category={category} startDate={start_date} endDate={end_date} month={month} year={year}")
    query = build_expense_query(category, start_date, end_date, month, year)
    try:
        return await expenses_service.list_expenses(collection, query)
    except Exception as e:
        raise _server_error("fetching expenses", e)


@router.get("/expenses/summary", response_model=ExpenseSummary, summary="Expense Summary", description="Total spent with per-category and per-month breakdowns.")
async def get_summary(
    collection: ExpensesCollectionDep,
    category: Optional[str] = Query(None, description="Exact category; 'All' disables the filter."),
    month: Optional[str] = Query(None, description="Month number (1-12); used together with year."),
    year: Optional[str] = Query(None, description="Year; used together with month."),
) -> ExpenseSummary:
    logger.info(f"GET /expenses/summary called. category={category} month={month} year={year}")
    query = build_expense_query(category=category, month=month, year=year)
    try:
        return await expenses_service.get_expense_summary(collection, query)
    except Exception as e:
        raise _server_error("building summary", e)


@router.get("/expenses/{expense_id}", response_model=Expense, summary="Get Expense")
async def get_expense(expense_id: str, collection: ExpensesCollectionDep) -> Expense:
    logger.info(f"GET /expenses/{expense_id} called.")
    try:
        expense = await expenses_service.get_expense(collection, expense_id)
    except Exception as e:
        raise _server_error(f"fetching expense {expense_id}", e)
    if expense is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return expense


@router.post("/expenses", response_model=Expense, status_code=status.HTTP_201_CREATED, summary="Create Expense")
async def create_expense(expense: ExpenseCreate, collection: ExpensesCollectionDep) -> Expense:
    logger.info(f"POST /expenses called: {expense.category} {expense.amount} on {expense.date:%Y-%m-%d}")
    try:
        return await expenses_service.create_expense(collection, expense)
    except Exception as e:
        raise _server_error("creating expense", e)


@router.put("/expenses/{expense_id}", response_model=Expense, summary="Update Expense", description="Partial update: only supplied fields are validated and changed.")
async def update_expense(expense_id: str, update: ExpenseUpdate, collection: ExpensesCollectionDep) -> Expense:
    logger.info(f"PUT /expenses/{expense_id} called with fields {sorted(update.changes())}")
    try:
        expense = await expenses_service.update_expense(collection, expense_id, update)
    except Exception as e:
        raise _server_error(f"updating expense {expense_id}", e)
    if expense is None:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return expense


@router.delete("/expenses/{expense_id}", response_model=DeleteResult, summary="Delete Expense")
async def delete_expense(expense_id: str, collection: ExpensesCollectionDep) -> DeleteResult:
    logger.warning(f"DELETE /expenses/{expense_id} called.")
    try:
        deleted = await expenses_service.delete_expense(collection, expense_id)
    except Exception as e:
        raise _server_error(f"deleting expense {expense_id}", e)
    if not deleted:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return DeleteResult(message="Expense deleted successfully", id=expense_id)

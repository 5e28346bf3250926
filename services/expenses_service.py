"""Service layer for handling expense-related logic."""
import logging
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorCollection # Type hint for collection
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from models.category import CATEGORIES
from models.expense import (
    CategoryTotal,
    Expense,
    ExpenseCreate,
    ExpenseSummary,
    ExpenseUpdate,
    MonthTotal,
    utc_now,
)

logger = logging.getLogger(__name__)

# Documents the API could not have written (unknown category, non-positive or
# non-finite amount) are left out of both listings and summaries.
VALID_DOCUMENT = {
    'category': {'$in': CATEGORIES},
    'amount': {'$gt': 0, '$lt': float('inf')},
}


def _stored_query(query: Dict[str, Any]) -> Dict[str, Any]:
    return {'$and': [query, VALID_DOCUMENT]} if query else dict(VALID_DOCUMENT)


def _to_object_id(expense_id: str) -> Optional[ObjectId]:
    """Malformed ids can never match a stored document, so they map to None."""
    try:
        return ObjectId(expense_id)
    except (InvalidId, TypeError):
        return None


def _document_to_expense(doc: Dict[str, Any]) -> Expense:
    doc = dict(doc)
    doc['id'] = str(doc.pop('_id'))
    return Expense(**doc)


# --- Database Interaction Functions (Depend on collection passed from route) ---

async def list_expenses(collection: AsyncIOMotorCollection, query: Dict[str, Any]) -> List[Expense]:
    """Fetches the expenses matching a resolved filter, newest first."""
    logger.info(f"Fetching expenses from collection '{collection.name}' with filter {query}...")
    expenses = []
    try:
        cursor = collection.find(_stored_query(query)).sort('date', -1)
        async for doc in cursor:
            try:
                expenses.append(_document_to_expense(doc))
            except ValidationError as e:
                logger.error(f"Data validation error for document ID {doc.get('_id', 'N/A')}: {e}")
                # Skip invalid documents
                continue
        logger.info(f"Fetched {len(expenses)} expenses successfully.")
    except PyMongoError as e:
        logger.error(f"Database error fetching expenses: {e}")
        raise ConnectionError(f"Database error fetching expenses: {e}")
    return expenses


async def get_expense(collection: AsyncIOMotorCollection, expense_id: str) -> Optional[Expense]:
    """Returns the expense with the given id, or None if there is none."""
    object_id = _to_object_id(expense_id)
    if object_id is None:
        logger.info(f"Rejecting malformed expense id '{expense_id}'.")
        return None
    try:
        doc = await collection.find_one({'_id': object_id})
    except PyMongoError as e:
        logger.error(f"Database error fetching expense {expense_id}: {e}")
        raise ConnectionError(f"Database error fetching expense: {e}")
    return _document_to_expense(doc) if doc else None


async def create_expense(collection: AsyncIOMotorCollection, expense: ExpenseCreate) -> Expense:
    """Inserts a validated expense and returns it as stored."""
    now = utc_now()
    document = expense.model_dump()
    document['created_at'] = now
    document['updated_at'] = now
    try:
        result = await collection.insert_one(document)
    except PyMongoError as e:
        logger.error(f"Database error inserting expense: {e}")
        raise ConnectionError(f"Database error inserting expense: {e}")
    document['_id'] = result.inserted_id
    logger.info(f"Created expense {result.inserted_id} ({document['category']}, {document['amount']}).")
    return _document_to_expense(document)


async def update_expense(
    collection: AsyncIOMotorCollection,
    expense_id: str,
    update: ExpenseUpdate,
) -> Optional[Expense]:
    """
    Applies the supplied fields of a partial update.
    Omitted fields keep their stored values. Returns None if the expense does not exist.
    """
    object_id = _to_object_id(expense_id)
    if object_id is None:
        return None

    changes = update.changes()
    try:
        if not changes:
            logger.info(f"Update for expense {expense_id} carried no fields; returning it unchanged.")
            doc = await collection.find_one({'_id': object_id})
        else:
            changes['updated_at'] = utc_now()
            doc = await collection.find_one_and_update(
                {'_id': object_id},
                {'$set': changes},
                return_document=ReturnDocument.AFTER,
            )
    except PyMongoError as e:
        logger.error(f"Database error updating expense {expense_id}: {e}")
        raise ConnectionError(f"Database error updating expense: {e}")

    if doc is None:
        return None
    logger.info(f"Updated expense {expense_id}: {sorted(changes)}")
    return _document_to_expense(doc)


async def delete_expense(collection: AsyncIOMotorCollection, expense_id: str) -> bool:
    """Permanently removes an expense. Returns False if nothing was deleted."""
    object_id = _to_object_id(expense_id)
    if object_id is None:
        return False
    logger.warning(f"Deleting expense {expense_id} from collection '{collection.name}'.")
    try:
        result = await collection.delete_one({'_id': object_id})
    except PyMongoError as e:
        logger.error(f"Database error deleting expense {expense_id}: {e}")
        raise ConnectionError(f"Database error deleting expense: {e}")
    return result.deleted_count > 0


# --- Aggregation ---

async def _aggregate(collection: AsyncIOMotorCollection, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    try:
        return [doc async for doc in collection.aggregate(pipeline)]
    except PyMongoError as e:
        logger.error(f"Database error running aggregation: {e}")
        raise ConnectionError(f"Database error building summary: {e}")


async def get_expense_summary(collection: AsyncIOMotorCollection, query: Dict[str, Any]) -> ExpenseSummary:
    """
    Computes the total spent plus per-category and per-month breakdowns.
    All three views are grouped independently over the same matched documents,
    so each expense lands in exactly one category bucket and one month bucket.
    """
    logger.info(f"Building expense summary with filter {query}...")
    match_stage = {'$match': _stored_query(query)}

    total_rows = await _aggregate(collection, [
        match_stage,
        {'$group': {'_id': None, 'total': {'$sum': '$amount'}}},
    ])
    total_spent = total_rows[0]['total'] if total_rows else 0

    # Ties on total fall back to the category name so equal inputs order the same way.
    category_rows = await _aggregate(collection, [
        match_stage,
        {'$group': {'_id': '$category', 'total': {'$sum': '$amount'}, 'count': {'$sum': 1}}},
        {'$sort': {'total': -1, '_id': 1}},
    ])

    month_rows = await _aggregate(collection, [
        match_stage,
        {'$group': {
            '_id': {'year': {'$year': '$date'}, 'month': {'$month': '$date'}},
            'total': {'$sum': '$amount'},
            'count': {'$sum': 1},
        }},
        {'$sort': {'_id.year': -1, '_id.month': -1}},
    ])

    summary = ExpenseSummary(
        total_spent=total_spent,
        by_category=[
            CategoryTotal(category=row['_id'], total=row['total'], count=row['count'])
            for row in category_rows
        ],
        by_month=[
            MonthTotal(year=row['_id']['year'], month=row['_id']['month'], total=row['total'], count=row['count'])
            for row in month_rows
        ],
    )
    logger.info(f"Summary built: total {summary.total_spent} across {len(summary.by_category)} categories, {len(summary.by_month)} months.")
    return summary

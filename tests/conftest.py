import uuid

import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from main import app
from routes import get_expenses_collection


@pytest.fixture
def collection():
    """A fresh in-memory expenses collection per test."""
    database = AsyncMongoMockClient()[f"expense_tracker_{uuid.uuid4().hex}"]
    return database["expenses"]


@pytest.fixture
def client(collection):
    """API client wired to the in-memory collection (lifespan is not run, so no real MongoDB)."""
    app.dependency_overrides[get_expenses_collection] = lambda: collection
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def create_expense(client):
    def _create(amount, date, note="Something", category="Other"):
        response = client.post("/api/expenses", json={
            "amount": amount,
            "date": date,
            "note": note,
            "category": category,
        })
        assert response.status_code == 201, response.text
        return response.json()
    return _create

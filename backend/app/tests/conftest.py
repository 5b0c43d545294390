"""
Shared fixtures: an in-memory SQLite database behind the get_db dependency.
"""
import os

# Must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["AUTH_PROVIDER"] = "local"
os.environ["ITINERARY_GENERATOR"] = "mock"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401
from app.db.base import Base
from app.db.session import get_db
from app.main import app


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def db(session_factory):
    """Session for arranging and inspecting data directly."""
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def client(session_factory):
    """Test client with get_db bound to the in-memory database."""
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def register_user(client):
    """Register a user and return (user json, auth headers)."""
    def _register(email="traveller@example.com", password="testpassword123", name=None):
        response = client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "name": name},
        )
        assert response.status_code == 201, response.text
        data = response.json()
        return data["user"], {"Authorization": f"Bearer {data['token']}"}
    return _register


@pytest.fixture
def auth_headers(register_user):
    _, headers = register_user()
    return headers


@pytest.fixture
def trip_payload():
    """Two-stop trip: A from day 0 to day 2, B from day 2 to day 5."""
    return {
        "title": "Summer loop",
        "destination": "Lisbon",
        "startDate": "2024-06-01",
        "endDate": "2024-06-06",
        "totalBudget": 100,
        "currency": "eur",
        "visibility": "private",
        "destinations": [
            {"location": "Lisbon", "startDate": "2024-06-01", "endDate": "2024-06-03", "transportType": "flight"},
            {"location": "Porto", "startDate": "2024-06-03", "endDate": "2024-06-06", "transportType": None},
        ],
    }


@pytest.fixture
def create_trip(client, auth_headers):
    """Create a trip through the API and return its JSON."""
    def _create(payload, headers=None):
        response = client.post("/api/trips", json=payload, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()
    return _create

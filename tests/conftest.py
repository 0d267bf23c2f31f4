import sys
from pathlib import Path

# Project root first on the path
sys.path.insert(0, str(Path(__file__).parent.parent))

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# SQLite engine for tests, patched in BEFORE the app is imported
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///./test.db"
test_engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False}
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

import taskflow.core.database
taskflow.core.database.engine = test_engine
taskflow.core.database.SessionLocal = TestingSessionLocal

from taskflow.core.database import Base, get_db
from taskflow.main import app


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture(autouse=True)
def setup_teardown():
    """Fresh schema around every test"""
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    return TestClient(app)


@pytest.fixture
def db():
    db = TestingSessionLocal()
    yield db
    db.close()


@pytest.fixture
def subscription(db):
    """Subscription in Europe/Berlin, created through the service layer"""
    from taskflow.services import subscription_service
    return subscription_service.signup(db, "Test", "test@example.com", "pass123", "Europe/Berlin")


@pytest.fixture
def other_subscription(db):
    from taskflow.services import subscription_service
    return subscription_service.signup(db, "Other", "other@example.com", "pass123", "UTC")


@pytest.fixture
def auth_token(client):
    """Signs up through the API and returns an access token"""
    client.post(
        "/auth/signup",
        json={"name": "Test", "email": "test@example.com", "password": "pass123", "time_zone_id": "Europe/Berlin"}
    )
    login_response = client.post(
        "/auth/login",
        json={"email": "test@example.com", "password": "pass123"}
    )
    return login_response.json()["access_token"]


@pytest.fixture
def auth_headers(auth_token):
    return {"Authorization": f"Bearer {auth_token}"}

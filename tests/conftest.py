# tests/conftest.py
import os

# Configure the environment before any service module is imported
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["DEBUG_ENDPOINTS_ENABLED"] = "false"
os.environ["AUTH_SERVICE_URL"] = "http://auth"
os.environ["CATALOG_SERVICE_URL"] = "http://catalog"
os.environ["MEDIA_SERVICE_URL"] = "http://media"
os.environ["MESSAGING_SERVICE_URL"] = "http://messaging"

import pytest
from fastapi.testclient import TestClient

from common.db import Base, SessionLocal, engine
from auth_service.main import app as auth_app
from auth_service.models import User
from auth_service.utils import get_password_hash
from catalog_service.main import app as catalog_app

TEST_EMAIL = "test@example.com"
TEST_PASSWORD = "password123"


@pytest.fixture(autouse=True)
def setup_database():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def test_user(db_session):
    """A user with a known password, stored in the users table."""
    user = User(
        full_name="Test User",
        email=TEST_EMAIL,
        password_hash=get_password_hash(TEST_PASSWORD),
        mobile_number="9876543210",
        location="Mumbai",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_client():
    return TestClient(auth_app, raise_server_exceptions=False)


@pytest.fixture
def catalog_client():
    client = TestClient(catalog_app, raise_server_exceptions=False)
    yield client
    catalog_app.dependency_overrides.clear()

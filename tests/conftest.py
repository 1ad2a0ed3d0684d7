"""
Shared test fixtures: file-backed SQLite database, test client, fresh cache, service.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set DATABASE_URL before importing app modules
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["CACHE_BACKEND"] = "memory"
os.environ["REDIS_URL"] = ""

from granite import schemas
from granite.cache import CacheCoordinator, MemoryCache, get_cache
from granite.database import Base, get_db
from granite.main import app
from granite.measurement_service import MeasurementService


# File-backed so several threads can share it
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False, "timeout": 30})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def cache():
    """A fresh in-memory cache, also used by the app for this test."""
    coordinator = CacheCoordinator(MemoryCache())
    app.dependency_overrides[get_cache] = lambda: coordinator
    yield coordinator
    app.dependency_overrides.pop(get_cache, None)


@pytest.fixture
def client(cache):
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def service(db, cache):
    return MeasurementService(db, cache)


@pytest.fixture
def customer(service):
    return service.create_customer(schemas.CustomerCreate(
        name="Sri Balaji Granites",
        phone_number="9840012345",
        email="orders@balajigranites.in",
        address="12 Quarry Road, Hosur",
    ))


@pytest.fixture
def make_sheet(service, customer):
    """Factory: open a draft sheet for the test customer."""
    def _make(customer_type="granite_shops"):
        return service.create_sheet(customer.id, customer_type)
    return _make


@pytest.fixture
def session_factory():
    """For tests that need one session per thread."""
    return TestingSessionLocal

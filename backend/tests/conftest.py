"""
Shared test fixtures for CoverOps tests

Provides database setup, client creation, and actor token fixtures
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.db.base import Base
from app.db.session import get_db
from app.core.security import create_access_token
from tests.factories import reset_sequences


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


# pysqlite does not emit BEGIN itself, which breaks SAVEPOINT handling;
# let SQLAlchemy control the transaction instead
@event.listens_for(engine, "connect")
def _sqlite_connect(dbapi_connection, connection_record):
    dbapi_connection.isolation_level = None


@event.listens_for(engine, "begin")
def _sqlite_begin(conn):
    conn.exec_driver_sql("BEGIN")


TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine):
    """Create all tables for testing using SQLAlchemy metadata"""
    # Import all models to ensure they're registered with Base
    from app.models import Customer, Order, OrderItem, PrintQueueEntry, AuditLog  # noqa: F401

    Base.metadata.create_all(bind=engine)


def drop_tables(engine):
    """Drop all tables after testing"""
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Create a fresh database session for each test"""
    create_tables(engine)
    reset_sequences()

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_tables(engine)


@pytest.fixture
def db(db_session):
    """Short alias used by most tests"""
    return db_session


@pytest.fixture
def client(db_session):
    """Create a test client with database override"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_token():
    """Access token for an Admin"""
    return create_access_token("admin-1", ["Admin"])


@pytest.fixture
def office_token():
    """Access token for an Office Employee (queue access, no maintenance)"""
    return create_access_token("office-1", ["Office Employee"])


@pytest.fixture
def warehouse_token():
    """Access token for a role with no print queue access"""
    return create_access_token("warehouse-1", ["Warehouse"])


@pytest.fixture
def admin_headers(admin_token):
    """Return authorization headers for admin actor"""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def office_headers(office_token):
    return {"Authorization": f"Bearer {office_token}"}


@pytest.fixture
def warehouse_headers(warehouse_token):
    return {"Authorization": f"Bearer {warehouse_token}"}

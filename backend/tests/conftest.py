"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from backend.app.main import app
from backend.app.db.session import get_db, Base
from backend.app.models.user import User
from backend.app.models.enums import UserRole
from backend.app.core.security import get_password_hash
from backend.app.core.jwt import create_user_token

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

# Event handler to enable foreign keys for SQLite
from sqlalchemy import event
from sqlalchemy.pool import Pool

@event.listens_for(Pool, "connect")
def set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints for SQLite."""
    if 'sqlite' in str(type(dbapi_conn)):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

engine = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = async_sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)

PASSWORDS = {
    UserRole.MANAGER: "manager-pass",
    UserRole.OPERATOR: "operator-pass",
    UserRole.ACCOUNTANT: "accountant-pass",
}


@pytest.fixture(scope="session", autouse=True)
def apply_overrides():
    """Route every request's session to the in-memory database."""

    async def override_get_db():
        async with TestingSessionLocal() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield
    app.dependency_overrides = {}


@pytest.fixture(autouse=True)
async def setup_database():
    """Create tables before each test function and drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session():
    async with TestingSessionLocal() as session:
        yield session


async def _create_user(db_session, role: UserRole, email: str, name: str) -> User:
    user = User(
        email=email,
        password_hash=get_password_hash(PASSWORDS[role]),
        name=name,
        role=role,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.fixture
async def manager_user(db_session):
    return await _create_user(db_session, UserRole.MANAGER, "manager@jericho.com", "Rami Haddad")


@pytest.fixture
async def operator_user(db_session):
    return await _create_user(db_session, UserRole.OPERATOR, "operator@jericho.com", "Lina Saleh")


@pytest.fixture
async def accountant_user(db_session):
    return await _create_user(db_session, UserRole.ACCOUNTANT, "accountant@jericho.com", "Omar Nassar")


def _auth_headers(user: User) -> dict:
    return {"Authorization": f"Bearer {create_user_token(user)}"}


@pytest.fixture
def manager_headers(manager_user):
    return _auth_headers(manager_user)


@pytest.fixture
def operator_headers(operator_user):
    return _auth_headers(operator_user)


@pytest.fixture
def accountant_headers(accountant_user):
    return _auth_headers(accountant_user)


@pytest.fixture
def shipment_payload():
    """A complete, valid import shipment as the entry form submits it."""
    return {
        "movement_date": "2025-03-14",
        "process_type": "import",
        "freight_type": "SEA",
        "client_name": "Al Noor Trading",
        "clearance_company": "Gulf Clearance",
        "customs_agent": "Yousef Khalil",
        "permit_number": "PRM-7781",
        "customs_permit_number": "CP-55120",
        "invoice_number": "INV-2025-118",
        "container_number": "MSCU1234567",
        "container_size": "40hcdry",
        "container_weight": 18.5,
        "container_leak_status": "green",
        "shipping_line": "MSC",
        "bill_of_lading_number": "BL-99812",
        "goods_description": "Ceramic tiles",
        "driver_name": "Khaled Mansour",
        "driver_phone": "0791234567",
        "tractor_number": "TR-3312",
        "trailer_number": "TL-8841",
        "delivery_location": "Amman Warehouse 4",
        "unloading_date": "2025-03-16",
        "delivery_date": "2025-03-17",
        "warehouse_manager": "Samir Aziz",
        "warehouse_manager_phone": "0797654321",
        "warehouse_working_hours": "Sun-Thu 08:00-16:00",
        "notes": "Fragile",
    }

"""
Конфигурация pytest для тестов Dalal
Объединяет фикстуры БД и моки для unit тестов
"""
import pytest
import pytest_asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from domain.entities import Base
from shared.services.reconciliation_service import ReconciliationService
from shared.services.record_store import Stores


# SQLite в памяти: одна БД на тест
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# =============================================================================
# Фикстуры для работы с реальной БД (интеграционные тесты)
# =============================================================================

@pytest_asyncio.fixture
async def test_engine():
    """Создать тестовый движок БД."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine):
    """Создать сессию БД для каждого теста."""
    session_factory = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def stores(db_session):
    return Stores(db_session)


@pytest.fixture
def reconciliation(stores):
    """Пересчет без пауз между повторами."""
    return ReconciliationService(stores, policy="all", max_attempts=3, retry_delay=0)


@pytest_asyncio.fixture
async def project(stores):
    return await stores.projects.create({
        "name": "Tower A",
        "budget": Decimal("100000"),
        "status": "Active",
        "role_rates": {"Mason": 25, "Electrician": 30},
    })


@pytest_asyncio.fixture
async def employee(stores, project):
    return await stores.employees.create({
        "name": "Ahmed Khan",
        "employee_code": "E001",
        "role": "Mason",
        "nationality": "Pakistani",
        "project_id": project.id,
        "pay_status": "Unpaid",
    })


# =============================================================================
# Моки для unit тестов
# =============================================================================

def make_store(records=None):
    """Мок RecordStore с async методами."""
    store = MagicMock()
    store.list = AsyncMock(return_value=list(records or []))
    store.get = AsyncMock(return_value=None)
    store.require = AsyncMock()
    store.create = AsyncMock()
    store.update = AsyncMock()
    store.delete = AsyncMock(return_value=True)
    return store


@pytest.fixture
def mock_stores():
    """Мок Stores: все коллекции пустые."""
    stores = MagicMock()
    for name in (
        "employees",
        "projects",
        "advances",
        "payrolls",
        "expenses",
        "statements",
        "pending_reconciliations",
        "activity_logs",
    ):
        setattr(stores, name, make_store())
    stores.reference_counts = AsyncMock(return_value={})
    stores.recent_activity = AsyncMock(return_value=[])
    return stores

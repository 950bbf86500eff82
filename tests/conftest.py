"""Test configuration and fixtures"""

import os

# Must be set before kwikqueue.config is imported
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SMS_PROVIDER", "mock")

from datetime import datetime, timedelta
from uuid import uuid4

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from kwikqueue.main import app
from kwikqueue.database import Base, get_db
from kwikqueue.api.auth import create_access_token, get_password_hash
from kwikqueue.api.deps import get_dispatcher, get_store
from kwikqueue.models.user import User, UserRole
from kwikqueue.notifications.dispatcher import NotificationDispatcher
from kwikqueue.notifications.notifier import MockNotifier
from kwikqueue.services.orders import OrderService
from kwikqueue.store.sql import SqlStore


class FakeClock:
    """Controllable replacement for utcnow"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> datetime:
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture
async def session_factory(tmp_path):
    """Fresh SQLite database per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
async def test_db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session_factory):
    return SqlStore(session_factory)


@pytest.fixture
def sms():
    return MockNotifier()


@pytest.fixture
def telegram():
    return MockNotifier(channel="telegram")


@pytest.fixture
def dispatcher(store, sms, telegram):
    return NotificationDispatcher(store, sms_notifier=sms, telegram_factory=lambda token: telegram)


@pytest.fixture
def clock():
    return FakeClock(datetime(2026, 3, 14, 12, 0, 0))


@pytest.fixture
def service(store, dispatcher, clock):
    return OrderService(store, dispatcher, clock=clock)


@pytest.fixture
async def test_company(store):
    """Company whose TEST code skips the presence check"""
    return await store.insert("companies", {
        "code": "TEST01",
        "name": "Kwik Burger",
        "city": "Luanda",
        "lat": -8.9159,
        "lng": 13.1817,
        "marketing_enabled": True,
        "telegram_bot_token": "123:abc",
        "telegram_chat_id": "-1001",
    })


@pytest.fixture
async def geo_company(store):
    """Company that enforces the presence check"""
    return await store.insert("companies", {
        "code": "KWIK02",
        "name": "Kwik Pizza",
        "lat": -8.8383,
        "lng": 13.2344,
    })


@pytest.fixture
async def other_company(store):
    return await store.insert("companies", {"code": "TEST99", "name": "Other Place"})


@pytest.fixture
async def test_products(store, test_company):
    products = [
        ("Hambúrguer Clássico", "Hambúrgueres", 500, "ACTIVE"),
        ("Batata Frita", "Acompanhamentos", 1000, "LOW_STOCK"),
        ("Sumo Natural", "Bebidas", 800, "OUT_OF_STOCK"),
    ]
    return [
        await store.insert("products", {
            "company_id": test_company["id"],
            "name": name,
            "category": category,
            "price": price,
            "status": status,
        })
        for name, category, price, status in products
    ]


@pytest.fixture
async def test_user(test_db, test_company):
    """Company admin of test_company"""
    user = User(
        id=uuid4(),
        company_id=test_company["id"],
        email="gerente@example.com",
        hashed_password=get_password_hash("testpass123"),
        full_name="Gerente",
        role=UserRole.COMPANY_ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()
    return user


@pytest.fixture
async def test_admin_user(test_db):
    """Create a super admin user"""
    user = User(
        id=uuid4(),
        email="admin@example.com",
        hashed_password=get_password_hash("adminpass123"),
        full_name="Admin User",
        role=UserRole.SUPER_ADMIN,
        is_active=True,
    )
    test_db.add(user)
    await test_db.commit()
    return user


@pytest.fixture
async def client(session_factory, store, dispatcher):
    """Test client wired to the test database, store and mock notifiers"""
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_dispatcher] = lambda: dispatcher

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def authenticated_client(client, test_user):
    """Create authenticated test client"""
    client.headers["Authorization"] = f"Bearer {create_access_token(test_user)}"
    return client


@pytest.fixture
async def admin_client(client, test_admin_user):
    """Create admin authenticated test client"""
    client.headers["Authorization"] = f"Bearer {create_access_token(test_admin_user)}"
    return client

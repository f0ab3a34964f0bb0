"""Shared fixtures: in-memory SQLite store and a recording broker."""
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from push_relay import models  # noqa: F401
from push_relay.config import Settings
from push_relay.database import Base, get_db
from push_relay.main import create_app
from push_relay.services.dispatcher import DispatchService
from push_relay.services.endpoints import EndpointProvisioner, PlatformApplications
from push_relay.services.rate_limiter import WindowRateLimiter
from push_relay.services.registration import RegistrationService
from push_relay.services.store import RelayStore

from fakes import APNS_ARN, FCM_ARN, WNS_ARN, FakeBroker


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def session(engine):
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session


@pytest.fixture
def store(session):
    return RelayStore(session)


@pytest.fixture
def broker():
    return FakeBroker()


@pytest.fixture
def applications():
    return PlatformApplications(fcm_arn=FCM_ARN, apns_arn=APNS_ARN, wns_arn=WNS_ARN)


@pytest.fixture
def provisioner(broker, applications):
    return EndpointProvisioner(broker, applications)


@pytest.fixture
def rate_limiter():
    return WindowRateLimiter(ceiling=50000)


@pytest.fixture
def registration():
    return RegistrationService()


@pytest.fixture
def dispatcher(broker, provisioner, rate_limiter):
    return DispatchService(broker=broker, provisioner=provisioner, rate_limiter=rate_limiter)


@pytest.fixture
def settings():
    return Settings(fcm_arn=FCM_ARN, apns_arn=APNS_ARN, wns_arn=WNS_ARN, rate_limit=50000)


@pytest_asyncio.fixture
async def client(session, broker, settings):
    app = create_app(config=settings, broker=broker)

    async def _get_db():
        yield session

    app.dependency_overrides[get_db] = _get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()

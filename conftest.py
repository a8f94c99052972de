"""
Shared fixtures: an in-memory database per test, a gateway with its own live
feed, and a small agency (admin, client account, client, project).
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ.setdefault("SECRET_KEY", "test-secret")

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401  registers every table on Base.metadata
from app.database import Base
from app.errors import TransientIOError
from app.models import Client, Profile, ProfileRole, Project
from app.schemas.profile import CurrentUser
from app.services.gateway import GatewayResult, SqlGateway, row_to_dict
from app.services.realtime import ChangeFeed
from app.utils.auth import create_access_token


class FlakyGateway(SqlGateway):
    """Gateway whose writes fail with a transient error while fail_writes is set"""

    fail_writes = False

    def _failure(self):
        return GatewayResult(error=TransientIOError("Connection lost"))

    async def insert(self, table, row):
        if self.fail_writes:
            return self._failure()
        return await super().insert(table, row)

    async def update(self, table, filters, patch):
        if self.fail_writes:
            return self._failure()
        return await super().update(table, filters, patch)

    async def delete(self, table, filters):
        if self.fail_writes:
            return self._failure()
        return await super().delete(table, filters)


class Seeder:
    """Writes fixture rows straight through a session, bypassing the live feed"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def add(self, obj) -> dict:
        with self.session_factory() as db:
            db.add(obj)
            db.commit()
            db.refresh(obj)
            return row_to_dict(obj)

    def profile(self, email: str, full_name: str, role: ProfileRole = ProfileRole.CLIENT, **fields) -> dict:
        return self.add(Profile(email=email, full_name=full_name, role=role.value, **fields))


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def feed():
    return ChangeFeed()


@pytest.fixture
def gateway(session_factory, feed):
    return SqlGateway(session_factory, feed)


@pytest.fixture
def flaky_gateway(session_factory, feed):
    return FlakyGateway(session_factory, feed)


@pytest.fixture
def seed(session_factory):
    return Seeder(session_factory)


@pytest.fixture
def admin_profile(seed):
    return seed.profile("admin@epikom.com", "Ana Admin", ProfileRole.ADMIN)


@pytest.fixture
def client_profile(seed):
    return seed.profile("hola@cafeaurora.com", "Lucia Herrera")


@pytest.fixture
def agency_client(seed, client_profile):
    return seed.add(Client(name="Café Aurora", email=client_profile["email"], profile_id=client_profile["id"]))


@pytest.fixture
def project(seed, agency_client):
    return seed.add(Project(name="Brand refresh", client_id=agency_client["id"], status="active"))


@pytest.fixture
def admin(admin_profile):
    return CurrentUser.model_validate(admin_profile)


@pytest.fixture
def client_user(client_profile):
    return CurrentUser.model_validate(client_profile)


@pytest.fixture
def auth_headers():
    """Bearer headers for a profile row"""
    def headers(profile: dict) -> dict:
        return {"Authorization": f"Bearer {create_access_token(profile['email'])}"}
    return headers


@pytest.fixture
def api(gateway):
    """TestClient bound to the test database"""
    from fastapi.testclient import TestClient

    from app.services.scheduler import ReminderScheduler
    from main import app

    app.state.gateway = gateway
    app.state.scheduler = ReminderScheduler(gateway)
    with TestClient(app) as client:
        yield client

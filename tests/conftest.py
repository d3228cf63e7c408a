# tests/conftest.py

import os

# Must be set before the app modules build their engine and settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENABLE_TOKEN_REVOCATION"] = "false"
os.environ["SECRET_KEY"] = "test-secret-key-for-the-task-manager-suite"
os.environ["FRONTEND_URL"] = "http://frontend.example.com"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth.models import User, UserRole
from app.core.config import get_settings
from app.core.database import Base, get_db
from app.core.email_service import get_email_service
from app.core.redis_service import TokenBlocklist, get_token_blocklist
from app.main import app

from .factories import make_user
from .fakes import FakeEmailService, FakeRedis


@pytest.fixture()
def settings():
    return get_settings()


@pytest.fixture()
def engine():
    """One in-memory database per test, shared by every session of that test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def email_service() -> FakeEmailService:
    return FakeEmailService()


@pytest.fixture()
def fake_redis() -> FakeRedis:
    return FakeRedis()


@pytest.fixture()
def blocklist(fake_redis) -> TokenBlocklist:
    return TokenBlocklist(fake_redis)


@pytest.fixture()
def client(session_factory, email_service, blocklist):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_token_blocklist] = lambda: blocklist
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture()
def admin(db_session) -> User:
    return make_user(db_session, "Alice Admin", "alice.admin@example.com", UserRole.ADMIN)


@pytest.fixture()
def employee(db_session) -> User:
    return make_user(db_session, "Bob Builder", "bob@example.com")


@pytest.fixture()
def other_employee(db_session) -> User:
    return make_user(db_session, "Carol Coder", "carol@example.com")

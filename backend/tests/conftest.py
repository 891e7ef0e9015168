"""
Shared fixtures: an isolated in-memory database per test, seeded users for
each role, and a TestClient wired to both.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-signing-key-that-is-long-enough-for-hs256")
os.environ.setdefault("JWT_ISSUER", "jobportal-tests")
os.environ.setdefault("JWT_AUDIENCE", "jobportal-test-clients")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from jobportal.api.deps import get_db, get_token_service
from jobportal.core.config import settings
from jobportal.core.security import Principal, TokenService
from jobportal.db.base import Base
from jobportal.db.session import enable_sqlite_foreign_keys
from jobportal.main import app
from jobportal.models import Role
from jobportal.services import jobs, users

PASSWORD = "secret123"


def principal_of(user) -> Principal:
    return Principal(user_id=user.id, name=user.username, email=user.email, role=user.role)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    enable_sqlite_foreign_keys(engine)
    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def tokens():
    return TokenService.from_settings(settings)


def _make_user(db, username, role):
    return users.create_user(
        db,
        email=f"{username}@example.com",
        username=username,
        password=PASSWORD,
        role=role,
        name=username.title(),
    )


@pytest.fixture
def admin(db):
    return _make_user(db, "admin", Role.ADMIN)


@pytest.fixture
def manager(db):
    return _make_user(db, "manager", Role.MANAGER)


@pytest.fixture
def other_manager(db):
    return _make_user(db, "rival", Role.MANAGER)


@pytest.fixture
def applicant(db):
    return _make_user(db, "applicant", Role.APPLICANT)


@pytest.fixture
def other_applicant(db):
    return _make_user(db, "bystander", Role.APPLICANT)


def job_fields(**overrides):
    fields = {
        "title": "Backend Engineer",
        "description": "Build APIs.",
        "location": "Remote",
        "employment_type": "Full-time",
        "salary_min": 50000,
        "salary_max": 80000,
        "company_name": "Acme",
        "application_deadline": datetime(2025, 12, 1),
    }
    fields.update(overrides)
    return fields


@pytest.fixture
def job(db, manager):
    return jobs.create_job(db, principal_of(manager), job_fields())


@pytest.fixture
def client(session_factory, tokens):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_token_service] = lambda: tokens
    # No context manager: the lifespan would touch the configured database
    yield TestClient(app, raise_server_exceptions=False)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers(tokens):
    def build(user):
        issued = tokens.issue(user.id, user.username, user.email, user.role)
        return {"Authorization": f"Bearer {issued.token}"}

    return build

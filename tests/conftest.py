"""
Shared test fixtures.

Provides:
- db: a session on a fresh in-memory SQLite database per test
- skills: the default skill catalogue, keyed by name
- make_user / alice / bob / carol / admin: registered accounts
- auth_headers: bearer headers for any user
- client: TestClient whose get_db dependency yields the test session
"""
import itertools
import os

# Settings are read once at import time, so configure them before importing the app
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_DEFAULT_SKILLS"] = "false"
os.environ["JWT_SECRET"] = "test-secret-key-for-testing"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from skillswap.core.database import get_db, init_db
from skillswap.core.security import create_access_token
from skillswap.main import app
from skillswap.schemas.user import UserCreate
from skillswap.services.skill_service import SkillService
from skillswap.services.swap_service import SwapRequestService
from skillswap.services.user_service import UserService

PASSWORD = "password123"


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def skills(db):
    service = SkillService(db)
    service.seed_defaults()
    return {skill.name: skill for skill in service.list_all()}


# =============================================================================
# User Fixtures
# =============================================================================

@pytest.fixture
def make_user(db):
    """Factory that registers a user and optionally overrides profile columns."""
    counter = itertools.count(1)

    def _make_user(name=None, role="user", location=None, **columns):
        n = next(counter)
        user = UserService(db).create_user(
            UserCreate(
                name=name or f"User {n}",
                email=f"user{n}@example.com",
                password=PASSWORD,
                location=location,
            ),
            role=role,
        )
        if columns:
            for key, value in columns.items():
                setattr(user, key, value)
            db.commit()
        return user

    return _make_user


@pytest.fixture
def alice(make_user):
    return make_user(name="Alice", location="Berlin")


@pytest.fixture
def bob(make_user):
    return make_user(name="Bob", location="Amsterdam")


@pytest.fixture
def carol(make_user):
    return make_user(name="Carol", location="Copenhagen")


@pytest.fixture
def admin(make_user):
    return make_user(name="Admin", role="admin")


@pytest.fixture
def swaps(db):
    return SwapRequestService(db)


@pytest.fixture
def make_swap(db, swaps):
    """Create a request and force it into ``status`` without going through the state machine."""

    def _make_swap(requester, target, status="pending", sender_skill="Python", receiver_skill="Guitar"):
        swap = swaps.create(requester.id, target.id, sender_skill, receiver_skill)
        if status != "pending":
            swap.status = status
            db.commit()
        return swap

    return _make_swap


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def auth_headers():
    def _auth_headers(user):
        token = create_access_token(data={"sub": user.id})
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
def client(db):
    """Create test client sharing the test session."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()

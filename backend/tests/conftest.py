"""
RecipeShare Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   No real database: services get an AsyncMock session whose execute()
       results are configured per test; endpoint tests call the ASGI app
       through httpx and swap dependencies via app.dependency_overrides.

Fixtures:
    mock_db_session     AsyncMock AsyncSession (add() is sync)
    make_result         builds a fake SQLAlchemy Result
    temp_storage        per-test storage directory
    sample_image_bytes  minimal JPEG
    user / other_user   detached User rows
    make_recipe         detached Recipe rows
    test_client         httpx AsyncClient on the app
    authed_client       same, with get_current_user / get_db_session overridden
"""

import os
import tempfile

# Before any app import: settings are read once at import time
os.environ.setdefault("STORAGE_ROOT", tempfile.mkdtemp(prefix="recipeshare_test_"))
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["ENVIRONMENT"] = "test"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["AUTH_RATE_LIMIT_REQUESTS"] = "10000"

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from app.models.category import Category
from app.models.profile import Profile
from app.models.recipe import Recipe
from app.models.user import User


# ══════════════════════════════════════════════════════════════════════════
# Database Fakes
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Usage:
        mock_db_session.execute.return_value = make_result(scalar=recipe)
        mock_db_session.execute.side_effect = [make_result(...), make_result(...)]
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.delete = AsyncMock()
    session.refresh = AsyncMock()
    session.get = AsyncMock(return_value=None)
    session.add = MagicMock()
    return session


@pytest.fixture
def make_result():
    """
    Factory for fake Result objects.

    scalar → scalar_one_or_none() / scalar_one()
    scalars → scalars().all() (and scalars().unique().all())
    rows → all() / first()
    one → one()
    """

    def _make(scalar=None, scalars=None, rows=None, one=None):
        result = MagicMock()
        result.scalar_one_or_none.return_value = scalar
        result.scalar_one.return_value = scalar
        result.scalars.return_value.all.return_value = scalars or []
        result.scalars.return_value.unique.return_value.all.return_value = scalars or []
        result.all.return_value = rows or []
        result.first.return_value = rows[0] if rows else None
        result.one.return_value = one
        return result

    return _make


# ══════════════════════════════════════════════════════════════════════════
# Domain Objects
# ══════════════════════════════════════════════════════════════════════════

def _now():
    return datetime.now(timezone.utc)


@pytest.fixture
def user():
    return User(id=uuid4(), email="cook@example.com", password_hash="x", created_at=_now())


@pytest.fixture
def other_user():
    return User(id=uuid4(), email="other@example.com", password_hash="x", created_at=_now())


@pytest.fixture
def profile(user):
    return Profile(
        id=user.id,
        username="cook",
        full_name="Test Cook",
        bio=None,
        avatar_url=None,
        created_at=_now(),
        updated_at=_now(),
    )


@pytest.fixture
def category():
    return Category(id=uuid4(), name="Desserts", emoji="🍰", description="Sweet things", created_at=_now(), updated_at=_now())


@pytest.fixture
def make_recipe(user):
    def _make(**overrides):
        fields = {
            "id": uuid4(),
            "title": "Pancakes",
            "description": "Fluffy",
            "ingredients": ["2 eggs", "1 cup flour"],
            "instructions": ["Mix", "Fry"],
            "prep_time": 10,
            "cook_time": 15,
            "servings": 4,
            "difficulty": "Easy",
            "image_url": None,
            "category_id": None,
            "user_id": user.id,
            "created_at": _now() - timedelta(days=1),
            "updated_at": _now() - timedelta(days=1),
        }
        fields.update(overrides)
        return Recipe(**fields)

    return _make


@pytest.fixture
def temp_storage(tmp_path):
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def sample_image_bytes():
    """Smallest JPEG that libmagic identifies: SOI + JFIF header + EOI."""
    return (
        b'\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00'
        b'\xff\xd9'
    )


# ══════════════════════════════════════════════════════════════════════════
# HTTP Clients
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client():
    """
    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
    """
    from app.main import app
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def authed_client(user, mock_db_session):
    """Client whose requests run as `user` against `mock_db_session`."""
    from app.database import get_db_session
    from app.dependencies import get_current_user, get_optional_user
    from app.main import app

    async def _db():
        yield mock_db_session

    app.dependency_overrides[get_db_session] = _db
    app.dependency_overrides[get_current_user] = lambda: user
    app.dependency_overrides[get_optional_user] = lambda: user

    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()

"""
Test fixtures - in-memory SQLite database + HTTP clients bound to the app
"""
import os

# Before any todo_app import: settings are cached on first use
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from todo_app.database import build_engine, create_tables, get_db
from todo_app.main import app
from todo_app.api.auth import get_password_hash
from todo_app.client.api_client import TodoApiClient
from todo_app.models.user import User
from todo_app.services.todo_store import SqlTodoStore


@pytest_asyncio.fixture()
async def db_session():
    """Create a fresh in-memory SQLite database for each test"""
    engine = build_engine("sqlite:///:memory:")
    await create_tables(engine)

    session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with session_factory() as session:
        yield session

    await engine.dispose()


@pytest_asyncio.fixture()
async def store(db_session):
    return SqlTodoStore(db_session)


@pytest_asyncio.fixture()
async def seed_user(db_session):
    """Insert one registered user"""
    user = User(username="testuser", hashed_password=get_password_hash("password123"))
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest_asyncio.fixture()
async def client(db_session):
    """httpx AsyncClient bound to the FastAPI app"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture()
async def api_client(db_session):
    """TodoApiClient talking to the app in-process"""

    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with TodoApiClient(base_url="http://test", transport=ASGITransport(app=app)) as api:
        yield api

    app.dependency_overrides.clear()

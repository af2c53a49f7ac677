# backend/tests/conftest.py
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from forum.core.database import get_session
from forum.main import app
from forum.models import Base


@pytest.fixture
def db_path(tmp_path):
    """A fresh SQLite file with the full schema."""
    path = tmp_path / "forum.db"
    engine = create_engine(f"sqlite:///{path}")
    Base.metadata.create_all(engine)
    engine.dispose()
    return path


@pytest_asyncio.fixture
async def session_factory(db_path):
    # NullPool: every session gets its own connection, like separate requests
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def client(db_path):
    """Test client whose requests hit the per-test SQLite database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{db_path}", poolclass=NullPool)
    factory = async_sessionmaker(engine, expire_on_commit=False)

    async def override_get_session():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    yield TestClient(app)
    app.dependency_overrides.clear()


def solve_question(question: str) -> str:
    """Answer an 'a op b = ?' captcha question."""
    a, op, b = question.split()[:3]
    a, b = int(a), int(b)
    if op == "+":
        return str(a + b)
    if op == "-":
        return str(a - b)
    if op == "*":
        return str(a * b)
    return str(a // b)


@pytest.fixture
def solve_captcha(client):
    """Fetch a fresh captcha (setting its cookie) and return the right answer."""
    def _solve() -> str:
        response = client.get("/api/auth/register")
        assert response.status_code == 200
        return solve_question(response.json()["question"])
    return _solve


@pytest.fixture
def register_user(client, solve_captcha):
    """Run the captcha + registration flow; the client keeps the session cookie."""
    def _register(username: str, password: str = "correct-horse") -> dict:
        response = client.post(
            "/api/auth/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": password,
                "confirm_password": password,
                "captcha": solve_captcha(),
            },
        )
        assert response.status_code == 201, response.text
        return response.json()
    return _register

"""Shared test fixtures."""

from __future__ import annotations

import base64
import os
from collections.abc import AsyncGenerator
from pathlib import Path

# Must be set before photohunt.main is imported (it builds the app at import time).
os.environ.setdefault("PHOTOHUNT_JWT_SECRET_KEY", "test-secret-key-with-enough-length-for-hs256")
os.environ.setdefault("PHOTOHUNT_REDIS_URL", "")
os.environ.setdefault("PHOTOHUNT_LOG_FORMAT", "console")
os.environ.setdefault("PHOTOHUNT_SEED_DEFAULT_WORDS", "false")
os.environ.setdefault("PHOTOHUNT_CLASSIFIER_PROVIDER", "fallback")

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from photohunt.classifier.service import BaseClassifier, ClassifierVerdict, get_classifier, reset_classifier
from photohunt.config import get_settings
from photohunt.database import close_db, get_engine, get_session, init_db
from photohunt.db.base import Base
from photohunt.exceptions import ClassifierUnavailableError
from photohunt.game import settings_service
from photohunt.game.seed import seed_all, seed_words
from photohunt.main import create_app

TEST_WORDS = ["apple", "book", "chair"]
ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "YCCAdmin"
PLAYER_PASSWORD = "secret123"

IMAGE_DATA = "data:image/jpeg;base64," + base64.b64encode(b"\xff\xd8\xff\xe0fake-jpeg-body").decode()


class FakeClassifier(BaseClassifier):
    """Scripted classifier. Set `verdict` or `error` before submitting."""

    def __init__(self) -> None:
        self.verdict = ClassifierVerdict(
            passed=True, confidence=85, is_screen_capture=False, explanation="Looks right."
        )
        self.error: Exception | None = None
        self.calls: list[str] = []

    def set_verdict(self, *, passed: bool = True, confidence: int = 85, is_screen_capture: bool = False) -> None:
        self.verdict = ClassifierVerdict(
            passed=passed and not is_screen_capture,
            confidence=confidence,
            is_screen_capture=is_screen_capture,
            explanation="Scripted verdict.",
        )

    def fail(self, message: str = "AI verification timed out. Please try again.") -> None:
        self.error = ClassifierUnavailableError(message)

    async def classify(self, image: bytes, mime_type: str, target_word: str) -> ClassifierVerdict:
        self.calls.append(target_word)
        if self.error is not None:
            raise self.error
        return self.verdict


@pytest_asyncio.fixture
async def db_engine(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> AsyncGenerator[AsyncEngine, None]:
    """Fresh SQLite database per test with the schema, admin account and a small word list."""
    monkeypatch.setenv("PHOTOHUNT_DATABASE_URL", f"sqlite+aiosqlite:///{tmp_path / 'photohunt.db'}")
    get_settings.cache_clear()
    reset_classifier()

    await init_db(get_settings().database_url)
    engine = get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async for session in get_session():
        await seed_all(session)
        await seed_words(session, TEST_WORDS)
        # Booth always open unless a test says otherwise
        await settings_service.set_booth_hours(session, "00:00", "00:00")
        await session.commit()
        break

    yield engine

    await close_db()
    reset_classifier()
    get_settings.cache_clear()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Get a direct database session for test setup and assertions."""
    async for session in get_session():
        yield session
        break


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest_asyncio.fixture
async def app(db_engine: AsyncEngine, fake_classifier: FakeClassifier) -> FastAPI:
    application = create_app()
    application.dependency_overrides[get_classifier] = lambda: fake_classifier
    return application


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client bound to the app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def login(client: AsyncClient, username: str, password: str = PLAYER_PASSWORD) -> dict[str, str]:
    """Log in (auto-registering) and return Authorization headers."""
    response = await client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['access_token']}"}


@pytest_asyncio.fixture
async def player_headers(client: AsyncClient) -> dict[str, str]:
    return await login(client, "alice")


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient) -> dict[str, str]:
    return await login(client, ADMIN_USERNAME, ADMIN_PASSWORD)

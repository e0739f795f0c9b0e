"""Pytest fixtures for testing."""
import time
from collections.abc import AsyncGenerator, Callable, Generator
from typing import Any

import httpx
import pytest
import respx

from core.config import Settings
from schemas.session import Identity, Session
from services.api_client import create_http_client

BASE_URL = "https://project.supabase.co"
ANON_KEY = "anon-key"


@pytest.fixture
def settings() -> Settings:
    """Settings pointing at a fake project, with retries that do not sleep."""
    return Settings(
        _env_file=None,
        supabase_url=BASE_URL,
        supabase_anon_key=ANON_KEY,
        retry_delay=0.0,
    )


@pytest.fixture
def mock_api() -> Generator[respx.MockRouter]:
    """Context manager for mocking hosted backend responses."""
    with respx.mock(base_url=BASE_URL, assert_all_called=False) as respx_mock:
        yield respx_mock


@pytest.fixture
async def http_client(settings: Settings) -> AsyncGenerator[httpx.AsyncClient]:
    """HTTP client configured the same way the application configures it."""
    async with create_http_client(settings) as client:
        yield client


@pytest.fixture
def identity() -> Identity:
    return Identity(id="user-1", email="ada@example.com", provider="google")


@pytest.fixture
def make_session() -> Callable[..., Session]:
    """Factory for sessions; ``expires_in`` may be negative for an expired token."""

    def _make(
        user_id: str = "user-1",
        expires_in: int = 3600,
        access_token: str = "access-token",
        refresh_token: str = "refresh-token",
    ) -> Session:
        return Session(
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=int(time.time()) + expires_in,
            user=Identity(id=user_id, email=f"{user_id}@example.com"),
        )

    return _make


@pytest.fixture
def token_response() -> Callable[..., dict[str, Any]]:
    """Factory for auth service token responses."""

    def _make(user_id: str = "user-1", access_token: str = "new-access-token") -> dict[str, Any]:
        return {
            "access_token": access_token,
            "token_type": "bearer",
            "expires_in": 3600,
            "refresh_token": "new-refresh-token",
            "user": {
                "id": user_id,
                "email": f"{user_id}@example.com",
                "app_metadata": {"provider": "google"},
            },
        }

    return _make


@pytest.fixture
def make_row() -> Callable[..., dict[str, Any]]:
    """Factory for bookmark rows as the table service returns them."""

    def _make(
        bookmark_id: str = "1",
        title: str = "Docs",
        url: str = "https://docs.example.com",
        created_at: str = "2024-01-02T00:00:00Z",
        user_id: str = "user-1",
    ) -> dict[str, Any]:
        return {
            "id": bookmark_id,
            "title": title,
            "url": url,
            "created_at": created_at,
            "user_id": user_id,
        }

    return _make

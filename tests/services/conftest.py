"""Fixtures for service tests."""
from datetime import UTC, datetime, timedelta
from typing import Any

import httpx
import pytest

from schemas.bookmark import BookmarkRecord
from services.app_state import AppState, StateStore
from services.bookmark_store import BookmarkStoreClient


def http_error(status_code: int, body: Any = None) -> httpx.HTTPStatusError:
    """Build the error httpx raises for a failed response."""
    request = httpx.Request("POST", "https://project.supabase.co/rest/v1/bookmarks")
    response = httpx.Response(status_code, json=body or {}, request=request)
    return httpx.HTTPStatusError(f"HTTP {status_code}", request=request, response=response)


class InMemoryCollection:
    """
    Stands in for the hosted bookmark table.

    Assigns ids and creation timestamps the way the service does, records
    every call, and can be told to fail the next calls.
    """

    def __init__(self, rows: list[dict[str, Any]] | None = None) -> None:
        self.rows: list[dict[str, Any]] = [dict(r) for r in rows or []]
        self.calls: list[str] = []
        self.failures: list[Exception] = []
        self._next_id = 100
        self._clock = datetime(2024, 2, 1, tzinfo=UTC)

    def fail_next(self, *errors: Exception) -> None:
        self.failures.extend(errors)

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if self.failures:
            raise self.failures.pop(0)

    async def select(self, order: str = "created_at.desc") -> list[dict[str, Any]]:
        self._record("select")
        return [
            dict(r)
            for r in sorted(self.rows, key=lambda r: r["created_at"], reverse=True)
        ]

    async def insert(self, values: dict[str, Any]) -> dict[str, Any]:
        self._record("insert")
        self._next_id += 1
        row = {
            **values,
            "id": str(self._next_id),
            "created_at": (self._clock + timedelta(minutes=self._next_id)).isoformat(),
        }
        self.rows.append(row)
        return dict(row)

    async def update(self, bookmark_id: str, values: dict[str, Any]) -> list[dict[str, Any]]:
        self._record("update")
        for row in self.rows:
            if row["id"] == bookmark_id:
                row.update(values)
                return [dict(row)]
        return []

    async def delete(self, bookmark_id: str) -> None:
        self._record("delete")
        self.rows = [r for r in self.rows if r["id"] != bookmark_id]


@pytest.fixture
def seed_rows(make_row) -> list[dict[str, Any]]:
    """The two bookmarks of the sign-in scenario."""
    return [
        make_row("1", "Docs", "https://docs.example.com", "2024-01-02T00:00:00Z"),
        make_row("2", "Blog", "https://blog.example.com", "2024-01-01T00:00:00Z"),
    ]


@pytest.fixture
def collection(seed_rows) -> InMemoryCollection:
    return InMemoryCollection(seed_rows)


@pytest.fixture
def state_store(identity) -> StateStore:
    """A store with ``identity`` already signed in."""
    return StateStore(AppState(identity=identity, loading=False))


@pytest.fixture
def store_client(collection, state_store) -> BookmarkStoreClient:
    return BookmarkStoreClient(collection, state_store, list_retries=3, retry_delay=0.0)


@pytest.fixture
def records(seed_rows) -> tuple[BookmarkRecord, ...]:
    return tuple(BookmarkRecord.model_validate(r) for r in seed_rows)


@pytest.fixture
def make_http_error():
    """Factory for ``httpx.HTTPStatusError`` instances."""
    return http_error

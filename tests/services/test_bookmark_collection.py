"""Tests for the bookmark table client."""
import json

import httpx
import pytest
from httpx import Response

from services.bookmark_collection import BookmarkCollection, id_filter
from services.exceptions import AuthenticationError, StoreOperationError


@pytest.fixture
def collection(http_client) -> BookmarkCollection:
    async def token() -> str:
        return "user-token"

    return BookmarkCollection(http_client, "anon-key", token)


def test__id_filter__targets_single_row() -> None:
    assert id_filter("42") == {"id": "eq.42"}


async def test__select__orders_newest_first(collection, mock_api, make_row) -> None:
    rows = [make_row("1"), make_row("2", created_at="2024-01-01T00:00:00Z")]
    route = mock_api.get("/rest/v1/bookmarks").mock(return_value=Response(200, json=rows))

    assert await collection.select() == rows

    request = route.calls[0].request
    assert request.url.params["select"] == "*"
    assert request.url.params["order"] == "created_at.desc"
    assert request.headers["authorization"] == "Bearer user-token"


async def test__select__uses_configured_table(http_client, mock_api) -> None:
    async def token() -> str:
        return "user-token"

    route = mock_api.get("/rest/v1/saved_links").mock(return_value=Response(200, json=[]))
    collection = BookmarkCollection(http_client, "anon-key", token, table="saved_links")

    assert await collection.select() == []
    assert route.called


async def test__insert__returns_created_row(collection, mock_api, make_row) -> None:
    created = make_row("9", title="My Site", url="https://example.com")
    route = mock_api.post("/rest/v1/bookmarks").mock(return_value=Response(201, json=[created]))

    result = await collection.insert(
        {"title": "My Site", "url": "https://example.com", "user_id": "user-1"},
    )

    assert result == created
    request = route.calls[0].request
    assert request.headers["prefer"] == "return=representation"
    assert json.loads(request.content) == [
        {"title": "My Site", "url": "https://example.com", "user_id": "user-1"},
    ]


async def test__update__filters_by_id(collection, mock_api, make_row) -> None:
    updated = make_row("1", title="Renamed")
    route = mock_api.patch("/rest/v1/bookmarks").mock(return_value=Response(200, json=[updated]))

    result = await collection.update("1", {"title": "Renamed", "url": "https://docs.example.com"})

    assert result == [updated]
    request = route.calls[0].request
    assert request.url.params["id"] == "eq.1"
    assert json.loads(request.content) == {"title": "Renamed", "url": "https://docs.example.com"}


async def test__update__no_matching_row_returns_empty(collection, mock_api) -> None:
    mock_api.patch("/rest/v1/bookmarks").mock(return_value=Response(200, json=[]))

    assert await collection.update("404", {"title": "X", "url": "https://x"}) == []


async def test__delete__filters_by_id(collection, mock_api) -> None:
    route = mock_api.delete("/rest/v1/bookmarks").mock(return_value=Response(204))

    await collection.delete("1")

    assert route.calls[0].request.url.params["id"] == "eq.1"


async def test__errors_propagate_as_httpx_errors(collection, mock_api) -> None:
    mock_api.delete("/rest/v1/bookmarks").mock(return_value=Response(403, json={}))

    with pytest.raises(httpx.HTTPStatusError):
        await collection.delete("1")


async def test__missing_session_is_raised_before_any_request(http_client, mock_api) -> None:
    async def no_token() -> str:
        raise AuthenticationError("No active session")

    collection = BookmarkCollection(http_client, "anon-key", no_token)

    with pytest.raises(AuthenticationError):
        await collection.select()
    assert not mock_api.calls


@pytest.mark.parametrize(
    "reply",
    [Response(201), Response(201, json=[])],
    ids=["no-body", "empty-array"],
)
async def test__insert__reply_without_row_raises_store_error(collection, mock_api, reply) -> None:
    mock_api.post("/rest/v1/bookmarks").mock(return_value=reply)

    with pytest.raises(StoreOperationError, match="Store returned no row") as exc_info:
        await collection.insert({"title": "X", "url": "https://x", "user_id": "user-1"})

    assert exc_info.value.error.category == "internal"

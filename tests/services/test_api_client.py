"""Tests for the API client helper functions."""

import httpx
import pytest
from httpx import Response

from services.api_client import api_delete, api_get, api_patch, api_post


@pytest.mark.asyncio
async def test__api_get__success(mock_api, http_client) -> None:
    """Test successful GET request."""
    mock_api.get("/rest/v1/bookmarks").mock(
        return_value=Response(200, json=[{"id": "1", "url": "https://example.com"}]),
    )

    result = await api_get(http_client, "/rest/v1/bookmarks", "anon-key", "user-token")

    assert result == [{"id": "1", "url": "https://example.com"}]


@pytest.mark.asyncio
async def test__api_get__with_params(mock_api, http_client) -> None:
    """Test GET request with query parameters."""
    route = mock_api.get("/rest/v1/bookmarks").mock(return_value=Response(200, json=[]))

    await api_get(
        http_client,
        "/rest/v1/bookmarks",
        "anon-key",
        "user-token",
        params={"select": "*", "order": "created_at.desc"},
    )

    request = route.calls[0].request
    assert request.url.params["select"] == "*"
    assert request.url.params["order"] == "created_at.desc"


@pytest.mark.asyncio
async def test__api_get__headers_set(mock_api, http_client) -> None:
    """The project key and the user token are sent on every request."""
    mock_api.get("/test").mock(return_value=Response(200, json={}))

    await api_get(http_client, "/test", "anon-key", "user-token-12345")

    headers = mock_api.calls[0].request.headers
    assert headers["apikey"] == "anon-key"
    assert headers["authorization"] == "Bearer user-token-12345"
    assert headers["x-client-info"] == "smartmarks"


@pytest.mark.asyncio
async def test__api_get__falls_back_to_anon_key_without_token(mock_api, http_client) -> None:
    mock_api.get("/test").mock(return_value=Response(200, json={}))

    await api_get(http_client, "/test", "anon-key")

    assert mock_api.calls[0].request.headers["authorization"] == "Bearer anon-key"


@pytest.mark.asyncio
async def test__api_post__sends_prefer_header(mock_api, http_client) -> None:
    """Test successful POST request asking for the written rows."""
    route = mock_api.post("/rest/v1/bookmarks").mock(
        return_value=Response(201, json=[{"id": "1"}]),
    )

    result = await api_post(
        http_client,
        "/rest/v1/bookmarks",
        "anon-key",
        "user-token",
        json=[{"title": "Docs"}],
        prefer="return=representation",
    )

    assert result == [{"id": "1"}]
    assert route.calls[0].request.headers["prefer"] == "return=representation"


@pytest.mark.asyncio
async def test__api_post__empty_body_returns_none(mock_api, http_client) -> None:
    mock_api.post("/auth/v1/logout").mock(return_value=Response(204))

    assert await api_post(http_client, "/auth/v1/logout", "anon-key", "user-token") is None


@pytest.mark.asyncio
async def test__api_patch__sends_filter_params(mock_api, http_client) -> None:
    route = mock_api.patch("/rest/v1/bookmarks").mock(
        return_value=Response(200, json=[{"id": "1", "title": "New"}]),
    )

    result = await api_patch(
        http_client,
        "/rest/v1/bookmarks",
        "anon-key",
        "user-token",
        json={"title": "New"},
        params={"id": "eq.1"},
    )

    assert result == [{"id": "1", "title": "New"}]
    assert route.calls[0].request.url.params["id"] == "eq.1"


@pytest.mark.asyncio
async def test__api_delete__success(mock_api, http_client) -> None:
    route = mock_api.delete("/rest/v1/bookmarks").mock(return_value=Response(204))

    await api_delete(http_client, "/rest/v1/bookmarks", "anon-key", "user-token", {"id": "eq.1"})

    assert route.called


@pytest.mark.asyncio
async def test__api_get__http_error(mock_api, http_client) -> None:
    """Test HTTP error handling."""
    mock_api.get("/rest/v1/bookmarks").mock(
        return_value=Response(401, json={"message": "JWT expired"}),
    )

    with pytest.raises(httpx.HTTPStatusError):
        await api_get(http_client, "/rest/v1/bookmarks", "anon-key", "user-token")

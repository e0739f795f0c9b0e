"""HTTP client helpers for requests to the hosted backend."""

from typing import Any

import httpx

from core.config import Settings

CLIENT_INFO = "smartmarks"


def create_http_client(settings: Settings) -> httpx.AsyncClient:
    """Create the HTTP client shared by the auth and table services."""
    return httpx.AsyncClient(
        base_url=settings.supabase_url,
        timeout=settings.api_timeout,
    )


def _get_headers(
    api_key: str,
    token: str | None = None,
    prefer: str | None = None,
) -> dict[str, str]:
    """
    Get common headers for API requests.

    The anon key identifies the project; the bearer token identifies the
    user. Requests made before sign-in authenticate with the anon key alone.
    """
    headers = {
        "apikey": api_key,
        "Authorization": f"Bearer {token or api_key}",
        "X-Client-Info": CLIENT_INFO,
    }
    if prefer:
        headers["Prefer"] = prefer
    return headers


def _json_or_none(response: httpx.Response) -> Any:
    """Decode a JSON body, treating an empty body as None."""
    if not response.content:
        return None
    return response.json()


async def api_get(
    client: httpx.AsyncClient,
    path: str,
    api_key: str,
    token: str | None = None,
    params: dict[str, Any] | None = None,
) -> Any:
    """Make an authenticated GET request to the API."""
    response = await client.get(
        path,
        params=params,
        headers=_get_headers(api_key, token),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_post(
    client: httpx.AsyncClient,
    path: str,
    api_key: str,
    token: str | None = None,
    json: Any = None,
    params: dict[str, Any] | None = None,
    prefer: str | None = None,
) -> Any:
    """Make an authenticated POST request to the API."""
    response = await client.post(
        path,
        json=json,
        params=params,
        headers=_get_headers(api_key, token, prefer),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_patch(
    client: httpx.AsyncClient,
    path: str,
    api_key: str,
    token: str | None,
    json: dict[str, Any],
    params: dict[str, Any] | None = None,
    prefer: str | None = None,
) -> Any:
    """Make an authenticated PATCH request to the API."""
    response = await client.patch(
        path,
        json=json,
        params=params,
        headers=_get_headers(api_key, token, prefer),
    )
    response.raise_for_status()
    return _json_or_none(response)


async def api_delete(
    client: httpx.AsyncClient,
    path: str,
    api_key: str,
    token: str | None,
    params: dict[str, Any] | None = None,
) -> None:
    """Make an authenticated DELETE request to the API."""
    response = await client.delete(
        path,
        params=params,
        headers=_get_headers(api_key, token),
    )
    response.raise_for_status()

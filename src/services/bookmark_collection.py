"""Client for the hosted bookmark table."""
from collections.abc import Awaitable, Callable
from typing import Any

import httpx

from services.api_client import api_delete, api_get, api_patch, api_post
from services.exceptions import StoreOperationError
from shared.api_errors import ParsedApiError

REST_PATH = "/rest/v1"

# Ask the table service to echo the written rows back
RETURN_REPRESENTATION = "return=representation"

TokenProvider = Callable[[], Awaitable[str]]


def id_filter(bookmark_id: str) -> dict[str, str]:
    """Build the row filter that targets a single bookmark."""
    return {"id": f"eq.{bookmark_id}"}


class BookmarkCollection:
    """
    Generic select/insert/update/delete over the bookmark table.

    Rows are scoped to the signed-in user by the service's row-level
    security, so no owner filter is sent with reads.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        api_key: str,
        token_provider: TokenProvider,
        table: str = "bookmarks",
    ) -> None:
        self._client = client
        self._api_key = api_key
        self._token_provider = token_provider
        self._path = f"{REST_PATH}/{table}"

    async def select(self, order: str = "created_at.desc") -> list[dict[str, Any]]:
        """Fetch every visible row in the given order."""
        token = await self._token_provider()
        rows = await api_get(
            self._client,
            self._path,
            self._api_key,
            token,
            params={"select": "*", "order": order},
        )
        return rows or []

    async def insert(self, values: dict[str, Any]) -> dict[str, Any]:
        """
        Insert one row and return it with its server-assigned fields.

        Raises:
            StoreOperationError: If the service did not echo the row back.
        """
        token = await self._token_provider()
        rows = await api_post(
            self._client,
            self._path,
            self._api_key,
            token,
            json=[values],
            params={"select": "*"},
            prefer=RETURN_REPRESENTATION,
        )
        if not rows:
            raise StoreOperationError("create", ParsedApiError("internal", "Store returned no row"))
        return rows[0]

    async def update(self, bookmark_id: str, values: dict[str, Any]) -> list[dict[str, Any]]:
        """
        Update one row by id.

        Returns:
            The updated rows; empty when no visible row has that id.
        """
        token = await self._token_provider()
        rows = await api_patch(
            self._client,
            self._path,
            self._api_key,
            token,
            json=values,
            params={**id_filter(bookmark_id), "select": "*"},
            prefer=RETURN_REPRESENTATION,
        )
        return rows or []

    async def delete(self, bookmark_id: str) -> None:
        """Delete one row by id."""
        token = await self._token_provider()
        await api_delete(
            self._client,
            self._path,
            self._api_key,
            token,
            params=id_filter(bookmark_id),
        )

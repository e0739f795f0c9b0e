"""
Bookmark Store Client: remote bookmark operations reconciled into local state.

Every operation talks to the bookmark table first and only touches local
state once the remote call has succeeded. A failed call raises
``StoreOperationError`` and leaves local state exactly as it was, so the
client never shows unsaved data as saved.
"""
import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import httpx
from pydantic import ValidationError

from schemas.bookmark import BookmarkCreate, BookmarkRecord, BookmarkUpdate
from schemas.session import Identity
from services.app_state import (
    BookmarkAdded,
    BookmarkRemoved,
    BookmarksLoaded,
    BookmarkUpdated,
    StateStore,
)
from services.bookmark_collection import BookmarkCollection
from services.exceptions import (
    AuthApiError,
    AuthenticationError,
    BookmarkNotFoundError,
    EmptyFieldError,
    StoreOperationError,
)
from shared.api_errors import ParsedApiError, parse_error

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Delete this bookmark?"

ConfirmPrompt = Callable[[str], bool | Awaitable[bool]]

T = TypeVar("T")


def _empty_field_name(error: ValidationError) -> str:
    """Name the first field that failed the non-empty check."""
    loc = error.errors()[0].get("loc") or ("title",)
    return "URL" if loc[0] == "url" else "Title"


async def _remote(
    operation: str,
    call: Callable[[], Awaitable[T]],
    entity_name: str = "",
) -> T:
    """Run a remote call, translating every failure into ``StoreOperationError``."""
    try:
        return await call()
    except httpx.HTTPError as e:
        raise StoreOperationError(operation, parse_error(e, "bookmark", entity_name)) from e
    except AuthApiError as e:
        raise StoreOperationError(operation, e.error) from e
    except AuthenticationError as e:
        raise StoreOperationError(operation, ParsedApiError("auth", "Not signed in")) from e


def _parse_records(operation: str, rows: list[dict[str, Any]]) -> list[BookmarkRecord]:
    """Validate rows returned by the table, translating bad rows into ``StoreOperationError``."""
    try:
        return [BookmarkRecord.model_validate(row) for row in rows]
    except ValidationError as e:
        logger.warning("Malformed bookmark row in %s reply: %s", operation, e)
        raise StoreOperationError(
            operation, ParsedApiError("internal", "Store returned a malformed bookmark"),
        ) from e


class BookmarkStoreClient:
    """Create/read/update/delete bookmarks for the signed-in identity."""

    def __init__(
        self,
        collection: BookmarkCollection,
        store: StateStore,
        list_retries: int = 3,
        retry_delay: float = 0.5,
    ) -> None:
        self._collection = collection
        self._store = store
        self.list_retries = list_retries
        self.retry_delay = retry_delay

    @property
    def records(self) -> tuple[BookmarkRecord, ...]:
        """The locally cached bookmarks, newest first."""
        return self._store.state.bookmarks

    async def list(self, owner: Identity) -> list[BookmarkRecord]:
        """
        Fetch all of the owner's bookmarks, newest first, and replace local state.

        Transient failures are retried with exponential backoff; reads are
        idempotent so repeating them is safe. The result is dropped from local
        state if ``owner`` is no longer the signed-in identity by the time it
        arrives.

        Raises:
            StoreOperationError: If the listing still fails after all attempts.
        """
        attempt = 0
        while True:
            try:
                rows: list[dict[str, Any]] = await _remote(
                    "list", lambda: self._collection.select(order="created_at.desc"),
                )
                break
            except StoreOperationError as e:
                attempt += 1
                logger.warning(
                    "Listing bookmarks failed (attempt %s/%s): %s",
                    attempt,
                    self.list_retries,
                    e.error.message,
                )
                if not e.error.is_transient or attempt >= self.list_retries:
                    raise
            # Exponential backoff
            await asyncio.sleep(self.retry_delay * (2 ** (attempt - 1)))

        records = _parse_records("list", rows)
        self._store.dispatch(BookmarksLoaded(owner_id=owner.id, records=tuple(records)))
        return records

    async def create(self, owner: Identity, title: str, url: str) -> BookmarkRecord:
        """
        Create a bookmark and prepend it to local state.

        Title and URL are trimmed. If either is empty nothing is sent and
        local state is unchanged.

        Raises:
            EmptyFieldError: If title or URL is empty after trimming.
            StoreOperationError: If the insert failed.
        """
        try:
            payload = BookmarkCreate(title=title, url=url, user_id=owner.id)
        except ValidationError as e:
            raise EmptyFieldError(_empty_field_name(e)) from e

        row = await _remote("create", lambda: self._collection.insert(payload.model_dump()))

        record = _parse_records("create", [row])[0]
        self._store.dispatch(BookmarkAdded(owner_id=owner.id, record=record))
        logger.info("Created bookmark %s", record.id)
        return record

    async def update(self, bookmark_id: str, title: str, url: str) -> BookmarkRecord:
        """
        Change a bookmark's title and URL, then patch local state.

        Raises:
            EmptyFieldError: If title or URL is empty after trimming.
            BookmarkNotFoundError: If no visible bookmark has that id.
            StoreOperationError: If the write failed.
        """
        try:
            changes = BookmarkUpdate(title=title, url=url)
        except ValidationError as e:
            raise EmptyFieldError(_empty_field_name(e)) from e

        rows = await _remote(
            "update",
            lambda: self._collection.update(bookmark_id, changes.model_dump()),
            bookmark_id,
        )
        if not rows:
            raise BookmarkNotFoundError(bookmark_id)

        record = _parse_records("update", rows[:1])[0]
        self._store.dispatch(BookmarkUpdated(record=record))
        return record

    async def delete(self, bookmark_id: str, confirm: ConfirmPrompt) -> bool:
        """
        Delete a bookmark after the user confirms.

        Returns:
            False if the user declined (nothing is sent), True once deleted.

        Raises:
            StoreOperationError: If the delete failed.
        """
        answer = confirm(DELETE_PROMPT)
        if inspect.isawaitable(answer):
            answer = await answer
        if not answer:
            logger.debug("Delete of bookmark %s declined", bookmark_id)
            return False

        await _remote("delete", lambda: self._collection.delete(bookmark_id), bookmark_id)

        self._store.dispatch(BookmarkRemoved(bookmark_id=bookmark_id))
        logger.info("Deleted bookmark %s", bookmark_id)
        return True

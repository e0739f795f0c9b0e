"""
The bookmark client controller.

``BookmarkApp`` owns the application state and is the only thing a
front-end talks to: it exposes one handler per user interaction, a
``subscribe()`` hook that fires on every state change, and the projected
rows to render. Session changes drive full refreshes of the bookmark list;
failures of remote calls end up as notices in the state instead of being
raised to the caller.
"""
import logging
from collections.abc import Callable
from types import TracebackType

import httpx

from core.config import Settings, get_settings
from schemas.bookmark import BookmarkRecord
from schemas.session import Identity
from services.api_client import create_http_client
from services.app_state import (
    AppState,
    DraftChanged,
    EditCancelled,
    EditStarted,
    IdentityChanged,
    Listener,
    NewBookmarkCleared,
    NewBookmarkInput,
    Notice,
    NoticeDismissed,
    NoticeRaised,
    SearchChanged,
    SessionRestored,
    StateStore,
)
from services.auth_provider import AuthProvider
from services.bookmark_collection import BookmarkCollection
from services.bookmark_store import BookmarkStoreClient, ConfirmPrompt
from services.exceptions import (
    AuthApiError,
    AuthenticationError,
    BookmarkNotFoundError,
    EmptyFieldError,
    StoreOperationError,
)
from services.session_storage import create_session_storage
from services.session_tracker import SessionTracker
from services.view_projection import BookmarkRow, rows, visible

logger = logging.getLogger(__name__)

Clipboard = Callable[[str], None]

COPIED_MESSAGE = "Link copied!"


class BookmarkApp:
    """Single controller owning session, bookmark list, search and edit state."""

    def __init__(
        self,
        auth: AuthProvider,
        collection: BookmarkCollection,
        *,
        confirm: ConfirmPrompt,
        clipboard: Clipboard | None = None,
        list_retries: int = 3,
        retry_delay: float = 0.5,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._auth = auth
        self._confirm = confirm
        self._clipboard = clipboard
        self._http_client = http_client
        self._unsubscribe: Callable[[], None] | None = None

        self.store = StateStore()
        self.tracker = SessionTracker(auth)
        self.bookmarks = BookmarkStoreClient(
            collection,
            self.store,
            list_retries=list_retries,
            retry_delay=retry_delay,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        confirm: ConfirmPrompt,
        clipboard: Clipboard | None = None,
    ) -> "BookmarkApp":
        """Wire a controller against the configured hosted backend."""
        settings = settings or get_settings()
        client = create_http_client(settings)
        auth = AuthProvider(client, settings, create_session_storage(settings.session_file))
        collection = BookmarkCollection(
            client,
            settings.supabase_anon_key,
            auth.access_token,
            table=settings.bookmarks_table,
        )
        return cls(
            auth,
            collection,
            confirm=confirm,
            clipboard=clipboard,
            list_retries=settings.list_retries,
            retry_delay=settings.retry_delay,
            http_client=client,
        )

    # Lifecycle

    async def start(self) -> None:
        """Listen for session changes, restore the session and load bookmarks."""
        if self._unsubscribe is None:
            self._unsubscribe = self.tracker.subscribe(self._on_identity_change)

        identity = await self.tracker.restore()
        # A token refresh during restore already announced this identity and listed
        current = self.store.state.identity
        already_listed = (
            identity is not None and current is not None and current.id == identity.id
        )
        self.store.dispatch(SessionRestored(identity=identity))
        if identity is not None and not already_listed:
            await self._refresh(identity)

    async def close(self) -> None:
        """Stop listening for session changes and release the HTTP client."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        if self._http_client is not None:
            await self._http_client.aclose()

    async def __aenter__(self) -> "BookmarkApp":
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    # State access

    @property
    def state(self) -> AppState:
        return self.store.state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a re-render callback. Returns an unsubscribe callable."""
        return self.store.subscribe(listener)

    def visible(self) -> list[BookmarkRecord]:
        """Bookmarks matching the current search term, newest first."""
        return visible(self.state.bookmarks, self.state.search_term)

    def rows(self) -> list[BookmarkRow]:
        """Visible bookmarks with their edit-mode flags."""
        return rows(self.state)

    # Session

    async def _on_identity_change(self, identity: Identity | None) -> None:
        previous = self.store.state.identity
        self.store.dispatch(IdentityChanged(identity=identity))
        if identity is None:
            logger.info("Signed out, local bookmarks cleared")
            return
        if previous is None or previous.id != identity.id:
            await self._refresh(identity)

    async def _refresh(self, identity: Identity) -> None:
        try:
            await self.bookmarks.list(identity)
        except StoreOperationError as e:
            self._raise_error(e)

    def sign_in(self, provider: str | None = None) -> str:
        """Start an OAuth sign-in; returns the URL the user must open."""
        return self._auth.sign_in(provider)

    async def complete_sign_in(self, auth_code: str) -> bool:
        """Finish the sign-in with the code from the redirect. Lists bookmarks on success."""
        try:
            await self._auth.exchange_code_for_session(auth_code)
        except (AuthApiError, AuthenticationError) as e:
            self._raise_error(e)
            return False
        return True

    async def sign_out(self) -> None:
        """End the session; local bookmarks are purged by the session change."""
        await self._auth.sign_out()

    # Add form and search

    def set_new_bookmark(self, title: str, url: str) -> None:
        self.store.dispatch(NewBookmarkInput(title=title, url=url))

    async def add_bookmark(self) -> BookmarkRecord | None:
        """
        Save the add-form inputs as a new bookmark.

        Empty inputs are ignored. The inputs are only cleared once the
        bookmark has been stored, so a failed save loses nothing.
        """
        state = self.store.state
        if state.identity is None:
            logger.debug("Add ignored, nobody is signed in")
            return None

        try:
            record = await self.bookmarks.create(state.identity, state.new_title, state.new_url)
        except EmptyFieldError as e:
            logger.debug("Add ignored: %s", e)
            return None
        except StoreOperationError as e:
            self._raise_error(e)
            return None

        self.store.dispatch(NewBookmarkCleared())
        return record

    def set_search(self, term: str) -> None:
        self.store.dispatch(SearchChanged(term=term))

    # Editing

    def _find(self, bookmark_id: str) -> BookmarkRecord | None:
        return next((b for b in self.store.state.bookmarks if b.id == bookmark_id), None)

    def start_edit(self, bookmark_id: str) -> bool:
        """Open the editor for a bookmark, discarding any other unsaved draft."""
        record = self._find(bookmark_id)
        if record is None:
            return False
        self.store.dispatch(EditStarted(record=record))
        return True

    def change_draft(self, title: str, url: str) -> None:
        self.store.dispatch(DraftChanged(title=title, url=url))

    def cancel_edit(self) -> None:
        self.store.dispatch(EditCancelled())

    async def save_edit(self) -> BookmarkRecord | None:
        """
        Persist the open draft.

        The draft stays open when the save fails so the user can retry.
        """
        draft = self.store.state.draft
        if draft is None:
            return None

        try:
            return await self.bookmarks.update(draft.bookmark_id, draft.title, draft.url)
        except EmptyFieldError as e:
            logger.debug("Save ignored: %s", e)
        except (StoreOperationError, BookmarkNotFoundError) as e:
            self._raise_error(e)
        return None

    # Row actions

    async def delete_bookmark(self, bookmark_id: str) -> bool:
        """Delete a bookmark after confirmation. Returns True once deleted."""
        try:
            return await self.bookmarks.delete(bookmark_id, self._confirm)
        except StoreOperationError as e:
            self._raise_error(e)
            return False

    def copy_url(self, bookmark_id: str) -> bool:
        """Copy a bookmark's URL to the clipboard."""
        record = self._find(bookmark_id)
        if record is None or self._clipboard is None:
            return False
        self._clipboard(record.url)
        self.store.dispatch(NoticeRaised(notice=Notice(level="info", message=COPIED_MESSAGE)))
        return True

    # Notices

    def dismiss_notice(self, index: int) -> None:
        self.store.dispatch(NoticeDismissed(index=index))

    def _raise_error(self, error: Exception) -> None:
        logger.warning("%s", error)
        self.store.dispatch(NoticeRaised(notice=Notice(level="error", message=str(error))))

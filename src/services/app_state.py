"""
Client application state and the pure transitions that act on it.

All mutable client state lives in one immutable ``AppState`` value. Handlers
never edit it in place: they dispatch an event and ``reduce()`` returns the
next state. ``StateStore`` keeps the current value and notifies subscribers
(typically a re-render) whenever it changes.
"""
import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Literal

from schemas.bookmark import BookmarkRecord
from schemas.session import Identity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EditDraft:
    """Unsaved working copy of one bookmark's title and URL."""

    bookmark_id: str
    title: str
    url: str


@dataclass(frozen=True)
class Notice:
    """A message for the user, e.g. a failed save."""

    level: Literal["info", "error"]
    message: str


@dataclass(frozen=True)
class AppState:
    identity: Identity | None = None
    loading: bool = True
    bookmarks: tuple[BookmarkRecord, ...] = ()
    search_term: str = ""
    draft: EditDraft | None = None
    new_title: str = ""
    new_url: str = ""
    notices: tuple[Notice, ...] = ()


# Events


@dataclass(frozen=True)
class SessionRestored:
    identity: Identity | None


@dataclass(frozen=True)
class IdentityChanged:
    identity: Identity | None


@dataclass(frozen=True)
class BookmarksLoaded:
    owner_id: str
    records: tuple[BookmarkRecord, ...]


@dataclass(frozen=True)
class BookmarkAdded:
    owner_id: str
    record: BookmarkRecord


@dataclass(frozen=True)
class BookmarkUpdated:
    record: BookmarkRecord


@dataclass(frozen=True)
class BookmarkRemoved:
    bookmark_id: str


@dataclass(frozen=True)
class SearchChanged:
    term: str


@dataclass(frozen=True)
class NewBookmarkInput:
    title: str
    url: str


@dataclass(frozen=True)
class NewBookmarkCleared:
    pass


@dataclass(frozen=True)
class EditStarted:
    record: BookmarkRecord


@dataclass(frozen=True)
class DraftChanged:
    title: str
    url: str


@dataclass(frozen=True)
class EditCancelled:
    pass


@dataclass(frozen=True)
class NoticeRaised:
    notice: Notice


@dataclass(frozen=True)
class NoticeDismissed:
    index: int


Event = (
    SessionRestored
    | IdentityChanged
    | BookmarksLoaded
    | BookmarkAdded
    | BookmarkUpdated
    | BookmarkRemoved
    | SearchChanged
    | NewBookmarkInput
    | NewBookmarkCleared
    | EditStarted
    | DraftChanged
    | EditCancelled
    | NoticeRaised
    | NoticeDismissed
)


def _is_current_owner(state: AppState, owner_id: str) -> bool:
    return state.identity is not None and state.identity.id == owner_id


def _change_identity(state: AppState, identity: Identity | None, loading: bool) -> AppState:
    # Bookmarks never outlive the identity they were loaded for
    same_user = (
        identity is not None
        and state.identity is not None
        and identity.id == state.identity.id
    )
    if same_user:
        return replace(state, identity=identity, loading=loading)
    return replace(state, identity=identity, loading=loading, bookmarks=(), draft=None)


def reduce(state: AppState, event: Event) -> AppState:  # noqa: PLR0911, PLR0912
    """Return the state that results from applying ``event`` to ``state``."""
    match event:
        case SessionRestored(identity=identity):
            return _change_identity(state, identity, loading=False)

        case IdentityChanged(identity=identity):
            return _change_identity(state, identity, loading=state.loading)

        case BookmarksLoaded(owner_id=owner_id, records=records):
            if not _is_current_owner(state, owner_id):
                logger.debug("Dropping bookmark listing for stale owner %s", owner_id)
                return state
            return replace(state, bookmarks=tuple(records))

        case BookmarkAdded(owner_id=owner_id, record=record):
            if not _is_current_owner(state, owner_id):
                return state
            return replace(state, bookmarks=(record, *state.bookmarks))

        case BookmarkUpdated(record=record):
            bookmarks = tuple(
                replace_fields(b, title=record.title, url=record.url) if b.id == record.id else b
                for b in state.bookmarks
            )
            draft = state.draft
            if draft is not None and draft.bookmark_id == record.id:
                draft = None
            return replace(state, bookmarks=bookmarks, draft=draft)

        case BookmarkRemoved(bookmark_id=bookmark_id):
            bookmarks = tuple(b for b in state.bookmarks if b.id != bookmark_id)
            draft = state.draft
            if draft is not None and draft.bookmark_id == bookmark_id:
                draft = None
            return replace(state, bookmarks=bookmarks, draft=draft)

        case SearchChanged(term=term):
            return replace(state, search_term=term)

        case NewBookmarkInput(title=title, url=url):
            return replace(state, new_title=title, new_url=url)

        case NewBookmarkCleared():
            return replace(state, new_title="", new_url="")

        case EditStarted(record=record):
            # Single draft slot: an unsaved draft for another record is dropped
            return replace(
                state,
                draft=EditDraft(bookmark_id=record.id, title=record.title, url=record.url),
            )

        case DraftChanged(title=title, url=url):
            if state.draft is None:
                return state
            return replace(state, draft=replace(state.draft, title=title, url=url))

        case EditCancelled():
            return replace(state, draft=None)

        case NoticeRaised(notice=notice):
            return replace(state, notices=(*state.notices, notice))

        case NoticeDismissed(index=index):
            if not 0 <= index < len(state.notices):
                return state
            return replace(state, notices=state.notices[:index] + state.notices[index + 1:])

    raise TypeError(f"Unknown event: {event!r}")


def replace_fields(record: BookmarkRecord, **changes: str) -> BookmarkRecord:
    """Copy a record with some fields replaced."""
    return record.model_copy(update=changes)


Listener = Callable[[AppState], None]


class StateStore:
    """Holds the current ``AppState`` and applies events to it."""

    def __init__(self, state: AppState | None = None) -> None:
        self._state = state or AppState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> AppState:
        return self._state

    def dispatch(self, event: Event) -> AppState:
        """Apply an event and notify listeners if the state changed."""
        new_state = reduce(self._state, event)
        if new_state != self._state:
            self._state = new_state
            for listener in list(self._listeners):
                listener(new_state)
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new state. Returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

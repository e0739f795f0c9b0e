"""Pure derivation of the displayed bookmark list from application state."""
from collections.abc import Sequence
from dataclasses import dataclass

from schemas.bookmark import BookmarkRecord
from services.app_state import AppState, EditDraft


@dataclass(frozen=True)
class BookmarkRow:
    """One displayed bookmark and whether it is in edit mode."""

    record: BookmarkRecord
    editing: bool


def visible(records: Sequence[BookmarkRecord], term: str) -> list[BookmarkRecord]:
    """
    Filter bookmarks by a case-insensitive substring of their title.

    Only the title is searched, not the URL. An empty term keeps every
    record; order is always preserved.
    """
    if not term:
        return list(records)
    needle = term.casefold()
    return [record for record in records if needle in record.title.casefold()]


def is_editing(draft: EditDraft | None, bookmark_id: str) -> bool:
    """Check whether ``bookmark_id`` is the record currently being edited."""
    return draft is not None and draft.bookmark_id == bookmark_id


def rows(state: AppState) -> list[BookmarkRow]:
    """Build the rows to render for the current state."""
    return [
        BookmarkRow(record=record, editing=is_editing(state.draft, record.id))
        for record in visible(state.bookmarks, state.search_term)
    ]

"""Shared exceptions for service layer operations."""
from shared.api_errors import ParsedApiError


class AuthenticationError(Exception):
    """Raised when an operation needs a session and none is established."""

    pass


class AuthApiError(Exception):
    """
    Raised when the auth service rejects or fails a request.

    Carries the parsed error so callers can tell an expired refresh token
    (category ``auth`` or ``validation``) apart from an outage.
    """

    def __init__(self, operation: str, error: ParsedApiError) -> None:
        self.operation = operation
        self.error = error
        super().__init__(f"Failed to {operation}: {error.message}")


class EmptyFieldError(Exception):
    """Raised when a required bookmark field is empty after trimming."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"{field_name} cannot be empty")


class StoreOperationError(Exception):
    """
    Raised when a remote bookmark operation fails.

    Local state is left as it was before the operation was attempted.
    """

    def __init__(self, operation: str, error: ParsedApiError) -> None:
        self.operation = operation
        self.error = error
        super().__init__(f"Could not {operation} bookmark: {error.message}")


class BookmarkNotFoundError(Exception):
    """Raised when a write targets a bookmark the store does not return."""

    def __init__(self, bookmark_id: str) -> None:
        self.bookmark_id = bookmark_id
        super().__init__(f"Bookmark '{bookmark_id}' not found")

"""
Shared API error parsing for the hosted backend.

Both the auth (session) service and the table (REST) service report failures
as HTTP errors with JSON bodies, but in different shapes. The parsing here
extracts a semantic category and a readable message so that callers can
decide whether to retry, sign the user out, or show a notice.
"""

from dataclasses import dataclass
from typing import Any, Literal

import httpx

ErrorCategory = Literal[
    "auth",          # 401 - Invalid or expired token
    "forbidden",     # 403 - Row-level security or access denied
    "not_found",     # 404 - Resource not found
    "validation",    # 400/422 - Rejected input
    "conflict",      # 409 - Unique/foreign key violation
    "rate_limited",  # 429 - Too many requests
    "unavailable",   # Transport failure, no response received
    "internal",      # 5xx or unexpected errors
]

TRANSIENT_CATEGORIES: frozenset[str] = frozenset({"internal", "unavailable", "rate_limited"})


@dataclass
class ParsedApiError:
    """Parsed API error with semantic category and message."""

    category: ErrorCategory
    message: str
    status_code: int | None = None

    @property
    def is_transient(self) -> bool:
        """Whether retrying the same request may succeed."""
        return self.category in TRANSIENT_CATEGORIES


def parse_http_error(  # noqa: PLR0911
    e: httpx.HTTPStatusError,
    entity_type: str = "",
    entity_name: str = "",
) -> ParsedApiError:
    """
    Parse HTTP error into semantic categories.

    Args:
        e: The HTTP status error from httpx
        entity_type: Type of entity (e.g., "bookmark") for error messages
        entity_name: Name/ID of entity for error messages

    Returns:
        ParsedApiError with category, message and status code
    """
    status = e.response.status_code

    if status == 401:
        return ParsedApiError("auth", "Invalid or expired token", status)

    if status == 403:
        return ParsedApiError("forbidden", "Access denied", status)

    if status == 404:
        if entity_name:
            msg = f"{entity_type.title()} '{entity_name}' not found" if entity_type else f"'{entity_name}' not found"  # noqa: E501
        else:
            msg = f"{entity_type.title()} not found" if entity_type else "Not found"
        return ParsedApiError("not_found", msg, status)

    if status == 409:
        message = _extract_message(e) or "A conflicting record already exists"
        return ParsedApiError("conflict", message, status)

    if status in (400, 422):
        return ParsedApiError("validation", _extract_message(e) or "Validation error", status)

    if status == 429:
        return ParsedApiError("rate_limited", "Too many requests, try again shortly", status)

    # Generic error for other status codes
    return ParsedApiError("internal", f"API error {status}", status)


def parse_transport_error(e: httpx.RequestError) -> ParsedApiError:
    """Parse a transport-level failure (DNS, connect, timeout) into a category."""
    if isinstance(e, httpx.TimeoutException):
        return ParsedApiError("unavailable", "Request timed out")
    return ParsedApiError("unavailable", f"Service unavailable: {e}")


def parse_error(e: httpx.HTTPError, entity_type: str = "", entity_name: str = "") -> ParsedApiError:
    """Parse any httpx error raised by a request helper."""
    if isinstance(e, httpx.HTTPStatusError):
        return parse_http_error(e, entity_type, entity_name)
    if isinstance(e, httpx.RequestError):
        return parse_transport_error(e)
    return ParsedApiError("internal", str(e) or "Unexpected API error")


def _safe_get_body(e: httpx.HTTPStatusError) -> dict[str, Any]:
    """Safely extract the JSON body from an error response."""
    try:
        body = e.response.json()
    except ValueError:
        return {}
    # Non-dict JSON body (list, string, etc.) - return empty
    return body if isinstance(body, dict) else {}


def _extract_message(e: httpx.HTTPStatusError) -> str:
    """
    Extract a human-readable message from an error body.

    The table service answers with ``{"code", "message", "details", "hint"}``;
    the auth service with ``{"error", "error_description"}`` or
    ``{"code", "error_code", "msg"}``.
    """
    body = _safe_get_body(e)
    for key in ("message", "error_description", "msg"):
        value = body.get(key)
        if isinstance(value, str) and value:
            return value
    value = body.get("error")
    if isinstance(value, str) and value:
        return value
    return ""

"""Pydantic schemas for bookmark records."""
from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def normalize_required_text(value: str, field_name: str) -> str:
    """
    Trim surrounding whitespace and reject empty text.

    Args:
        value: The raw input.
        field_name: Field name used in the error message.

    Returns:
        The trimmed value.

    Raises:
        ValueError: If nothing is left after trimming.
    """
    trimmed = (value or "").strip()
    if not trimmed:
        raise ValueError(f"{field_name} cannot be empty")
    return trimmed


class BookmarkRecord(BaseModel):
    """A single saved link as stored by the bookmark table."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    id: str
    title: str
    url: str
    created_at: datetime
    owner_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("user_id", "owner_id"),
    )

    @field_validator("id", "owner_id", mode="before")
    @classmethod
    def coerce_identifier(cls, value: Any) -> Any:
        """Accept integer keys from tables that use serial ids."""
        if isinstance(value, int):
            return str(value)
        return value


class BookmarkCreate(BaseModel):
    """Schema for creating a new bookmark."""

    title: str
    url: str
    user_id: str

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Trim the title and reject empty values."""
        return normalize_required_text(v, "Title")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Trim the URL and reject empty values."""
        return normalize_required_text(v, "URL")


class BookmarkUpdate(BaseModel):
    """Schema for updating an existing bookmark's title and URL."""

    title: str
    url: str

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Trim the title and reject empty values."""
        return normalize_required_text(v, "Title")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Trim the URL and reject empty values."""
        return normalize_required_text(v, "URL")

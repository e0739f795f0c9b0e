"""Pydantic schemas for the authenticated session."""
import time
from typing import Any

import jwt
from pydantic import BaseModel, ConfigDict, Field, model_validator


class Identity(BaseModel):
    """The authenticated user reference returned by the identity provider."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    email: str | None = None
    provider: str | None = None

    @model_validator(mode="before")
    @classmethod
    def read_provider(cls, data: Any) -> Any:
        """Pick the sign-in provider out of the user's ``app_metadata``."""
        if isinstance(data, dict) and "provider" not in data:
            metadata = data.get("app_metadata") or {}
            if isinstance(metadata, dict) and metadata.get("provider"):
                return {**data, "provider": metadata["provider"]}
        return data


class Session(BaseModel):
    """Tokens and user of an established session."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_at: int | None = None
    user: Identity

    @model_validator(mode="before")
    @classmethod
    def compute_expiry(cls, data: Any) -> Any:
        """
        Fill ``expires_at`` when the token response only carries ``expires_in``.

        Falls back to the ``exp`` claim of the access token. The signature is
        not verified here: the token is only ever presented back to the
        service that issued it, which does the verification.
        """
        if not isinstance(data, dict) or data.get("expires_at") is not None:
            return data
        if data.get("expires_in") is not None:
            return {**data, "expires_at": int(time.time()) + int(data["expires_in"])}
        token = data.get("access_token")
        if isinstance(token, str):
            try:
                claims = jwt.decode(token, options={"verify_signature": False})
            except jwt.PyJWTError:
                return data
            if "exp" in claims:
                return {**data, "expires_at": int(claims["exp"])}
        return data

    def is_expired(self, leeway: int = 0) -> bool:
        """Check whether the access token expires within ``leeway`` seconds."""
        if self.expires_at is None:
            return False
        return self.expires_at - leeway <= int(time.time())


class SessionState(BaseModel):
    """Local session state: who is signed in and whether restore is pending."""

    model_config = ConfigDict(frozen=True)

    identity: Identity | None = None
    loading: bool = Field(default=True)

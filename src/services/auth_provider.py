"""
Client for the hosted identity provider / session service.

Sign-in uses the OAuth authorization code flow with PKCE: ``sign_in()``
returns the provider URL to open in a browser, and the code handed back to
the redirect URL is exchanged with ``exchange_code_for_session()``. The
resulting session is persisted in a ``SessionStorage`` and refreshed before
its access token expires. Interested parties register with
``on_session_change()`` and are told about every transition.
"""
import base64
import hashlib
import inspect
import logging
import secrets
from collections.abc import Awaitable, Callable
from typing import Literal
from urllib.parse import urlencode

import httpx

from core.config import Settings
from schemas.session import Session
from services.api_client import api_post
from services.exceptions import AuthApiError, AuthenticationError
from services.session_storage import SessionStorage
from shared.api_errors import parse_error, parse_http_error

logger = logging.getLogger(__name__)

AUTH_PATH = "/auth/v1"

AuthEvent = Literal["SIGNED_IN", "SIGNED_OUT", "TOKEN_REFRESHED"]
SessionChangeHandler = Callable[[AuthEvent, Session | None], Awaitable[None] | None]
Unsubscribe = Callable[[], None]


def generate_pkce_pair() -> tuple[str, str]:
    """
    Generate a PKCE code verifier and its S256 challenge.

    Returns:
        Tuple of (verifier, challenge), both URL-safe without padding.
    """
    verifier = secrets.token_urlsafe(64)
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    challenge = base64.urlsafe_b64encode(digest).rstrip(b"=").decode("ascii")
    return verifier, challenge


class AuthProvider:
    """Session service client with change notifications."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: Settings,
        storage: SessionStorage,
    ) -> None:
        self._client = client
        self._settings = settings
        self._api_key = settings.supabase_anon_key
        self._storage = storage
        self._handlers: list[SessionChangeHandler] = []
        self._code_verifier: str | None = None

    def on_session_change(self, handler: SessionChangeHandler) -> Unsubscribe:
        """
        Register a handler for session transitions.

        Async handlers are awaited before the call that caused the transition
        returns.

        Returns:
            A callable that removes the handler. Calling it twice is harmless.
        """
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def _emit(self, event: AuthEvent, session: Session | None) -> None:
        logger.info("Session event %s", event)
        for handler in list(self._handlers):
            result = handler(event, session)
            if inspect.isawaitable(result):
                await result

    async def get_current_session(self) -> Session | None:
        """
        Return the stored session, refreshing it if the token is about to expire.

        Raises:
            AuthApiError: If the refresh failed for a transient reason.
        """
        session = self._storage.load()
        if session is None:
            return None
        if not session.is_expired(self._settings.token_refresh_leeway):
            return session
        return await self.refresh_session(session)

    async def refresh_session(self, session: Session | None = None) -> Session | None:
        """
        Trade the refresh token for a new session.

        A refresh token the service rejects ends the session: storage is
        cleared, ``SIGNED_OUT`` is emitted and None is returned.

        Raises:
            AuthApiError: If the service could not be reached or failed.
        """
        session = session or self._storage.load()
        if session is None:
            return None

        try:
            data = await api_post(
                self._client,
                f"{AUTH_PATH}/token",
                self._api_key,
                params={"grant_type": "refresh_token"},
                json={"refresh_token": session.refresh_token},
            )
        except httpx.HTTPStatusError as e:
            parsed = parse_http_error(e)
            if parsed.is_transient:
                raise AuthApiError("refresh session", parsed) from e
            logger.warning("Refresh token rejected (%s), ending session", parsed.message)
            self._storage.clear()
            await self._emit("SIGNED_OUT", None)
            return None
        except httpx.RequestError as e:
            raise AuthApiError("refresh session", parse_error(e)) from e

        refreshed = Session.model_validate(data)
        self._storage.save(refreshed)
        await self._emit("TOKEN_REFRESHED", refreshed)
        return refreshed

    async def access_token(self) -> str:
        """
        Get a valid access token for the current session.

        Raises:
            AuthenticationError: If no session is established.
        """
        session = await self.get_current_session()
        if session is None:
            raise AuthenticationError("No active session")
        return session.access_token

    def sign_in(self, provider: str | None = None, redirect_to: str | None = None) -> str:
        """
        Start an OAuth sign-in and return the URL the user must open.

        The PKCE verifier is kept until ``exchange_code_for_session()`` is
        called; starting another sign-in replaces it.
        """
        verifier, challenge = generate_pkce_pair()
        self._code_verifier = verifier

        params = {
            "provider": provider or self._settings.oauth_provider,
            "code_challenge": challenge,
            "code_challenge_method": "s256",
        }
        redirect = redirect_to or self._settings.oauth_redirect_url
        if redirect:
            params["redirect_to"] = redirect
        return f"{self._settings.auth_url}/authorize?{urlencode(params)}"

    async def exchange_code_for_session(self, auth_code: str) -> Session:
        """
        Complete a sign-in started with ``sign_in()``.

        Raises:
            AuthenticationError: If no sign-in is in progress.
            AuthApiError: If the service rejected the code or failed.
        """
        if not self._code_verifier:
            raise AuthenticationError("No sign-in in progress")

        try:
            data = await api_post(
                self._client,
                f"{AUTH_PATH}/token",
                self._api_key,
                params={"grant_type": "pkce"},
                json={"auth_code": auth_code, "code_verifier": self._code_verifier},
            )
        except httpx.HTTPError as e:
            raise AuthApiError("exchange sign-in code", parse_error(e)) from e

        self._code_verifier = None
        session = Session.model_validate(data)
        await self.set_session(session)
        return session

    async def set_session(self, session: Session) -> None:
        """Adopt an already established session and announce the sign-in."""
        self._storage.save(session)
        await self._emit("SIGNED_IN", session)

    async def sign_out(self) -> None:
        """
        End the session.

        The local session is cleared even when the service cannot be told
        about it; the token then simply runs out.
        """
        session = self._storage.load()
        self._storage.clear()
        if session is not None:
            try:
                await api_post(
                    self._client,
                    f"{AUTH_PATH}/logout",
                    self._api_key,
                    session.access_token,
                )
            except httpx.HTTPError as e:
                logger.warning("Remote sign-out failed: %s", e)
        await self._emit("SIGNED_OUT", None)

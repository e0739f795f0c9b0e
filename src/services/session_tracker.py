"""Tracks who is signed in and tells the rest of the client when that changes."""
import inspect
import logging
from collections.abc import Awaitable, Callable
from typing import Protocol

import httpx

from schemas.session import Identity, Session, SessionState
from services.exceptions import AuthApiError

logger = logging.getLogger(__name__)

IdentityChangeHandler = Callable[[Identity | None], Awaitable[None] | None]
Unsubscribe = Callable[[], None]


class SessionProvider(Protocol):
    """The part of the identity provider the tracker relies on."""

    async def get_current_session(self) -> Session | None: ...

    def on_session_change(
        self,
        handler: Callable[[str, Session | None], Awaitable[None] | None],
    ) -> Unsubscribe: ...


class SessionTracker:
    """
    Owns the local session state.

    The state starts as ``loading=True, identity=None``. ``restore()`` always
    ends the loading phase, whatever the provider answers, so a front-end is
    never left waiting on a spinner. The tracker only signals identity
    changes; it does not own any bookmark state.
    """

    def __init__(self, provider: SessionProvider) -> None:
        self._provider = provider
        self._state = SessionState()

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def identity(self) -> Identity | None:
        return self._state.identity

    @property
    def loading(self) -> bool:
        return self._state.loading

    async def restore(self) -> Identity | None:
        """
        Look up an existing session once at startup.

        A failing provider is treated as "no session": the user is shown the
        sign-in prompt and nothing destructive follows from it.
        """
        identity: Identity | None = None
        try:
            session = await self._provider.get_current_session()
            identity = session.user if session else None
        except (httpx.HTTPError, AuthApiError, ValueError) as e:
            logger.warning("Session restore failed, continuing signed out: %s", e)
        except Exception:
            # Unknown provider failure: still fail safe to signed out
            logger.exception("Unexpected error while restoring session")
        self._state = SessionState(identity=identity, loading=False)
        return identity

    def subscribe(self, on_change: IdentityChangeHandler) -> Unsubscribe:
        """
        Register for identity changes pushed by the provider.

        The returned callable must be called on teardown so handlers do not
        pile up across restarts of the owning component.
        """

        async def handle(event: str, session: Session | None) -> None:
            identity = session.user if session else None
            self._state = self._state.model_copy(update={"identity": identity})
            logger.debug("Identity changed on %s: %s", event, identity.id if identity else None)
            result = on_change(identity)
            if inspect.isawaitable(result):
                await result

        return self._provider.on_session_change(handle)

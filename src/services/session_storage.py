"""Persistence for the single signed-in session."""
import logging
from pathlib import Path
from typing import Protocol

from schemas.session import Session

logger = logging.getLogger(__name__)


class SessionStorage(Protocol):
    """A slot holding at most one session."""

    def load(self) -> Session | None:
        """Return the stored session, or None if there is none."""
        ...

    def save(self, session: Session) -> None:
        """Replace the stored session."""
        ...

    def clear(self) -> None:
        """Remove the stored session."""
        ...


class MemorySessionStorage:
    """Keeps the session for the lifetime of the process only."""

    def __init__(self, session: Session | None = None) -> None:
        self._session = session

    def load(self) -> Session | None:
        return self._session

    def save(self, session: Session) -> None:
        self._session = session

    def clear(self) -> None:
        self._session = None


class FileSessionStorage:
    """
    Keeps the session in a JSON file so it survives restarts.

    A file that cannot be parsed is treated as no session; it is
    overwritten by the next sign-in.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Session | None:
        if not self._path.exists():
            return None
        try:
            return Session.model_validate_json(self._path.read_text(encoding="utf-8"))
        except ValueError as e:
            logger.warning("Ignoring unreadable session file %s: %s", self._path, e)
            return None

    def save(self, session: Session) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(session.model_dump_json(), encoding="utf-8")

    def clear(self) -> None:
        self._path.unlink(missing_ok=True)


def create_session_storage(path: Path | None) -> SessionStorage:
    """Pick file storage when a path is configured, memory storage otherwise."""
    if path is None:
        return MemorySessionStorage()
    return FileSessionStorage(path)

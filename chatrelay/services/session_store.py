"""In-memory conversation store.

Sessions live for the lifetime of the process: there is no persistence and no
eviction, so memory grows with every session and turn. Turns on the same
session are serialized by the caller holding `SessionStore.lock(session_id)`.
"""

import asyncio
import logging
import secrets
import threading
import time

from chatrelay.core.exceptions import SessionNotFoundError
from chatrelay.models.chat_models import Session
from chatrelay.models.chat_models import Turn

logger = logging.getLogger(__name__)


def _new_session_id() -> str:
    return f"session-{int(time.time() * 1000)}-{secrets.token_hex(6)}"


class SessionStore:
    """Maps session ids to live `Session` objects."""

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._locks: dict[str, asyncio.Lock] = {}
        self._guard = threading.Lock()

    def get_or_create(self, session_id: str | None = None) -> Session:
        """Return the session for `session_id`, creating it on first reference.

        An absent or empty id mints a fresh one. Known ids always return the
        same object, never a copy.
        """
        with self._guard:
            if not session_id:
                session_id = _new_session_id()
                while session_id in self._sessions:
                    session_id = _new_session_id()
            session = self._sessions.get(session_id)
            if session is None:
                session = Session(id=session_id)
                self._sessions[session_id] = session
                self._locks[session_id] = asyncio.Lock()
                logger.info("Created session %s", session_id)
            return session

    def get(self, session_id: str) -> Session | None:
        with self._guard:
            return self._sessions.get(session_id)

    def append(self, session_id: str, turn: Turn) -> None:
        with self._guard:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(f"Unknown session id: {session_id}")
            session.messages.append(turn)
        logger.debug("[%s] Appended %s turn (%d chars)", session_id, turn.role.value, len(turn.content))

    def lock(self, session_id: str) -> asyncio.Lock:
        """Per-session lock that serializes read-generate-append cycles."""
        with self._guard:
            if session_id not in self._locks:
                raise SessionNotFoundError(f"Unknown session id: {session_id}")
            return self._locks[session_id]

    def __len__(self) -> int:
        with self._guard:
            return len(self._sessions)

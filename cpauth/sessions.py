"""Session tokens minted after a successful proof."""

from __future__ import annotations

import math
import secrets
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Dict

from .constants import SESSION_ID_BYTES, SESSION_TTL
from .errors import InvalidOrExpiredSession


@dataclass(frozen=True)
class Session:
    """Issued token. ``issued_at`` and ``expires_at`` are wall-clock times;
    expiry itself is decided on the monotonic ``deadline``."""

    session_id: str
    username: str
    issued_at: float
    expires_at: float
    deadline: float = field(repr=False, compare=False)


class SessionIssuer:
    def __init__(
        self,
        ttl: float = SESSION_TTL,
        clock: Callable[[], float] = time.monotonic,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        if not math.isfinite(ttl) or ttl <= 0:
            raise ValueError("Session lifetime must be a positive finite number")
        self.ttl = ttl
        self._clock = clock
        self._wall_clock = wall_clock
        self._lock = threading.Lock()
        self._sessions: Dict[str, Session] = {}

    def issue(self, username: str) -> Session:
        with self._lock:
            now = self._clock()
            self._sweep(now)
            session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
            while session_id in self._sessions:
                session_id = secrets.token_urlsafe(SESSION_ID_BYTES)
            issued_at = self._wall_clock()
            session = Session(
                session_id=session_id,
                username=username,
                issued_at=issued_at,
                expires_at=issued_at + self.ttl,
                deadline=now + self.ttl,
            )
            self._sessions[session_id] = session
        return session

    def validate(self, session_id: str) -> str:
        """Return the username bound to a live session."""

        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None and self._clock() >= session.deadline:
                del self._sessions[session_id]
                session = None
        if session is None:
            raise InvalidOrExpiredSession("Invalid or expired session")
        return session.username

    def revoke(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def _sweep(self, now: float) -> int:
        # Insertion order is deadline order: every session gets the same ttl.
        expired = []
        for key, entry in self._sessions.items():
            if now < entry.deadline:
                break
            expired.append(key)
        for key in expired:
            del self._sessions[key]
        return len(expired)

    def purge_expired(self) -> int:
        with self._lock:
            return self._sweep(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["Session", "SessionIssuer"]

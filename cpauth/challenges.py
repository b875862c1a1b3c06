"""Single-use store of in-flight authentication challenges."""

from __future__ import annotations

import math
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

from .constants import AUTH_ID_BYTES, CHALLENGE_TTL
from .crypto import sample_scalar
from .errors import UnknownOrExpiredChallenge
from .params import GroupParameters


@dataclass(frozen=True)
class PendingChallenge:
    auth_id: str
    username: str
    r1: int
    r2: int
    c: int
    expires_at: float


class ChallengeStore:
    """Hands out challenges and gives each one back at most once.

    ``consume`` is the only way to read an entry and it removes the entry in
    the same critical section, so a replayed or raced ``auth_id`` always finds
    nothing. Expired entries are dropped on access, swept whenever a new
    challenge is created, and removed by ``purge_expired``.
    """

    def __init__(
        self,
        params: GroupParameters,
        ttl: float = CHALLENGE_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not math.isfinite(ttl) or ttl <= 0:
            raise ValueError("Challenge lifetime must be a positive finite number")
        self.params = params
        self.ttl = ttl
        self._clock = clock
        self._lock = threading.Lock()
        self._pending: Dict[str, PendingChallenge] = {}

    def create(self, username: str, r1: int, r2: int) -> PendingChallenge:
        challenge = sample_scalar(self.params)
        with self._lock:
            now = self._clock()
            self._sweep(now)
            auth_id = secrets.token_urlsafe(AUTH_ID_BYTES)
            while auth_id in self._pending:
                auth_id = secrets.token_urlsafe(AUTH_ID_BYTES)
            pending = PendingChallenge(
                auth_id=auth_id,
                username=username,
                r1=r1,
                r2=r2,
                c=challenge,
                expires_at=now + self.ttl,
            )
            self._pending[auth_id] = pending
        return pending

    def consume(self, auth_id: str) -> PendingChallenge:
        with self._lock:
            pending = self._pending.pop(auth_id, None)
            now = self._clock()
        if pending is None or now >= pending.expires_at:
            raise UnknownOrExpiredChallenge("Unknown or expired authentication attempt")
        return pending

    def _sweep(self, now: float) -> int:
        # Entries share one lifetime and are inserted in creation order, so the
        # dict is ordered by expiry.
        expired = []
        for key, entry in self._pending.items():
            if now < entry.expires_at:
                break
            expired.append(key)
        for key in expired:
            del self._pending[key]
        return len(expired)

    def purge_expired(self) -> int:
        with self._lock:
            return self._sweep(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._pending)


__all__ = ["ChallengeStore", "PendingChallenge"]
